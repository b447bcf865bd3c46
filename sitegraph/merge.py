"""
Merge - combine the text-extracted document with heuristic data.

Precedence per field (first non-empty wins):

    name                    text document, heuristic page title
    domain                  text document, crawl domain
    logo_url                heuristic, text document
    descriptions, industry  text document (fallbacks fill gaps afterwards)
    products                text document, heuristic products, fallback
    people                  text document, heuristic people, fallback
    headquarters            heuristic, text document
    addresses, coordinates  heuristic
    emails, phones          heuristic, text document
    social media, tech      heuristic

Fallback entries are marked with is_placeholder=True so consumers can tell
them apart from extracted facts.
"""

import json
import logging
import re
from typing import Any, List, Optional, Tuple

from pydantic import ValidationError

from .models import (
    ClassificationDetail,
    CompanyDocument,
    Contact,
    HeuristicData,
    IndustryMatch,
    LocationSet,
    Person,
    Product,
)
from .services.text_extractor import ExtractionContext
from .utils import dedupe_people, dedupe_products

logger = logging.getLogger(__name__)

ROLE_CATEGORIES = {"Leadership", "Engineering", "Sales", "Marketing", "Operations", "Other"}
CODE_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$")
META_LINE = re.compile(r"META:\s*([^\n]{20,200})")
MARKETPLACE_CATEGORY_WORDS = re.compile(
    r"\b(fashion|electronics|mobile|laptop|home|kitchen|beauty|grocery|books|toys|sports|appliances|clothing|footwear|accessories|furniture)\b",
    re.IGNORECASE,
)
LEADERSHIP_SIGNALS = ["leadership", "our team", "management", "board of directors"]
MIN_SHORT_DESCRIPTION = 10
MIN_LONG_DESCRIPTION = 50
MIN_MARKETPLACE_PRODUCTS = 3


def empty_document() -> CompanyDocument:
    return CompanyDocument()


# ============================================================================
# PARSING
# ============================================================================

def _clean_people(people: Any) -> List[dict]:
    cleaned = []
    for person in people if isinstance(people, list) else []:
        if not isinstance(person, dict):
            continue
        person = dict(person)
        if person.get("role_category") not in ROLE_CATEGORIES:
            person["role_category"] = "Other"
        person["name"] = person.get("name") or ""
        person["title"] = person.get("title") or ""
        cleaned.append(person)
    return cleaned


def _clean_products(products: Any) -> List[dict]:
    cleaned = []
    for product in products if isinstance(products, list) else []:
        if isinstance(product, dict) and product.get("name"):
            product = dict(product)
            product["description"] = product.get("description") or ""
            cleaned.append(product)
    return cleaned


def parse_document(raw) -> CompanyDocument:
    """
    Parse a text-extraction answer into a CompanyDocument.

    Accepts a dict or a JSON string (optionally wrapped in ``` fences).
    Anything malformed yields an empty document; this never raises.
    """
    if raw is None:
        return empty_document()
    if isinstance(raw, CompanyDocument):
        return raw

    data = raw
    if isinstance(raw, str):
        try:
            data = json.loads(CODE_FENCE.sub("", raw.strip()))
        except ValueError as e:
            logger.warning(f"Text extraction returned invalid JSON: {e}")
            return empty_document()

    if not isinstance(data, dict) or not isinstance(data.get("company"), dict):
        logger.warning("Text extraction returned an unexpected structure")
        return empty_document()

    data = dict(data)
    data["people"] = _clean_people(data.get("people"))
    data["products_services"] = _clean_products(data.get("products_services"))
    try:
        return CompanyDocument.model_validate(data)
    except ValidationError as e:
        logger.warning(f"Text extraction document failed validation: {e.error_count()} errors")
        return empty_document()


def apply_industry_match(document: CompanyDocument, matches: List[IndustryMatch], threshold: int = 20) -> CompanyDocument:
    """Table match above threshold replaces the extracted industry labels."""
    if not matches or matches[0].score <= threshold:
        return document
    best = matches[0]
    logger.info(f"Using table classification {best.sub_industry!r} (score {best.score})")
    company = document.company.model_copy(update={
        "industry": best.industry,
        "sub_industry": best.sub_industry,
        "classification": ClassificationDetail(
            sector=best.sector,
            industry=best.industry,
            sub_industry=best.sub_industry,
            sic_code=best.sic_code,
            sic_description=best.sic_description,
            match_score=best.score,
        ),
    })
    return document.model_copy(update={"company": company})


# ============================================================================
# FALLBACKS
# ============================================================================

def validate_marketplace_products(products: List[Product], sub_industry: str) -> Tuple[bool, str]:
    if not products:
        return False, "no products found"
    label = (sub_industry or "").lower().strip()
    if label and len(products) == 1 and label in products[0].name.lower():
        return False, "single product matches the industry label"
    if len(products) < MIN_MARKETPLACE_PRODUCTS:
        return False, f"only {len(products)} products found, a marketplace needs at least {MIN_MARKETPLACE_PRODUCTS}"
    return True, ""


def _placeholder_product(name: str, description: str) -> Product:
    return Product(name=name, description=description, source="fallback", is_placeholder=True)


def fallback_products(context: ExtractionContext, company_name: str = "", description: str = "") -> List[Product]:
    products: List[Product] = []
    text = context.text.lower()

    if context.company_type == "B2C_MARKETPLACE":
        if len(context.navigation_categories) >= MIN_MARKETPLACE_PRODUCTS:
            for category in context.navigation_categories:
                products.append(_placeholder_product(
                    category.name,
                    f"Wide range of {category.name.lower()} products available for online shopping and delivery",
                ))
        else:
            words = [word.capitalize() for word in MARKETPLACE_CATEGORY_WORDS.findall(text)]
            for word in list(dict.fromkeys(words))[:5]:
                products.append(_placeholder_product(
                    word, f"Wide range of {word.lower()} products available for online shopping"
                ))
        products.append(_placeholder_product(
            "Online Shopping Platform",
            "E-commerce marketplace enabling customers to browse, purchase, and receive products "
            "with secure payment and delivery options",
        ))
        products.append(_placeholder_product(
            "Seller Marketplace Services",
            "Platform enabling sellers to list products, manage inventory, and reach customers across the region",
        ))
    elif context.company_type == "CONSUMER_PLATFORM":
        if "food" in text or "restaurant" in text or "delivery" in text:
            products.append(_placeholder_product(
                "Food Delivery Service",
                "Platform connecting customers with restaurants for online food ordering and delivery",
            ))
        if "ride" in text or "cab" in text or "driver" in text:
            products.append(_placeholder_product(
                "Ride Booking Service",
                "Platform for booking rides and connecting with drivers for transportation",
            ))
        if "grocery" in text:
            products.append(_placeholder_product(
                "Grocery Delivery", "Online grocery shopping and home delivery service"
            ))
    else:
        products.append(_placeholder_product(
            company_name or "Platform Service",
            description or "Digital platform providing services to customers",
        ))

    return products or [_placeholder_product("Core Platform", "Main service offering of the company")]


def _placeholder_person(title: str, role_category: str) -> Person:
    return Person(name="", title=title, role_category=role_category, is_placeholder=True)


def fallback_people(context: ExtractionContext) -> List[Person]:
    """Role-only entries; never invents names."""
    text = context.text.lower()
    if any(signal in text for signal in LEADERSHIP_SIGNALS):
        return [
            _placeholder_person("Chief Executive Officer", "Leadership"),
            _placeholder_person("Leadership Team", "Leadership"),
        ]
    if context.company_type == "B2C_MARKETPLACE":
        return [
            _placeholder_person("Platform Operations Team", "Operations"),
            _placeholder_person("Seller Management & Support", "Other"),
            _placeholder_person("Engineering & Technology", "Engineering"),
        ]
    if context.company_type == "CONSUMER_PLATFORM":
        return [
            _placeholder_person("Operations & Service Delivery", "Operations"),
            _placeholder_person("Technology & Product", "Engineering"),
        ]
    if context.company_type == "B2B_SAAS":
        return [
            _placeholder_person("Product & Engineering", "Engineering"),
            _placeholder_person("Sales & Customer Success", "Sales"),
        ]
    return [_placeholder_person("Leadership information not publicly disclosed", "Other")]


def fallback_short_description(company_name: str, context: ExtractionContext) -> str:
    first_page = context.text.split("---")[0] if context.text else ""
    match = META_LINE.search(first_page)
    if match:
        return match.group(1).strip()

    name = company_name or "This company"
    templates = {
        "B2C_MARKETPLACE": f"{name} is an online marketplace platform connecting buyers and sellers.",
        "CONSUMER_PLATFORM": f"{name} is a consumer platform providing digital services to users.",
        "B2B_SAAS": f"{name} provides software solutions for businesses.",
        "CONTENT_MEDIA": f"{name} is a media and content platform.",
    }
    return templates.get(context.company_type, f"{name} is a company providing products and services to customers.")


def fallback_long_description(company_name: str, context: ExtractionContext, short_description: str) -> str:
    name = company_name or "This company"
    domain = context.domain or "their website"
    bodies = {
        "B2C_MARKETPLACE": (
            "The platform enables users to discover and purchase products from multiple sellers in one "
            f"convenient location. {name} focuses on providing a seamless shopping experience with secure "
            "transactions and reliable delivery services."
        ),
        "CONSUMER_PLATFORM": (
            f"Through their digital platform, {name} delivers convenient services directly to consumers, "
            "leveraging technology to enhance user experience. The company operates in the consumer services "
            "sector, focusing on meeting customer needs efficiently."
        ),
        "B2B_SAAS": (
            f"{name} offers cloud-based software solutions designed to help businesses streamline their "
            "operations and improve productivity. Their platform serves companies looking to digitize and "
            "optimize their business processes."
        ),
    }
    body = bodies.get(
        context.company_type,
        f"{name} operates in their industry sector, serving customers through {domain}. The company is "
        "committed to delivering quality products and services to meet market demands.",
    )
    closing = f"For more information about {name} and their offerings, visit their official website."
    return f"{short_description} {body} {closing}".strip()


def apply_fallbacks(document: CompanyDocument, context: ExtractionContext) -> Tuple[CompanyDocument, List[str]]:
    """Fill every mandatory field; returns the document and a warning per fallback applied."""
    warnings: List[str] = []
    company = document.company
    name = company.name

    products = document.products_services
    if context.company_type == "B2C_MARKETPLACE":
        valid, reason = validate_marketplace_products(products, company.sub_industry)
        if not valid:
            warnings.append(f"Marketplace product validation failed ({reason}); using fallback products")
            products = fallback_products(context, name, company.short_description or company.long_description)
    elif not products:
        warnings.append("No products found; using fallback products")
        products = fallback_products(context, name, company.short_description or company.long_description)

    people = document.people
    if not people:
        warnings.append("No people found; using role placeholders")
        people = fallback_people(context)

    update = {}
    if len(company.short_description.strip()) < MIN_SHORT_DESCRIPTION:
        warnings.append("Short description missing; generated a fallback")
        update["short_description"] = fallback_short_description(name, context)
    short_description = update.get("short_description", company.short_description)
    if len(company.long_description.strip()) < MIN_LONG_DESCRIPTION:
        warnings.append("Long description missing; generated a fallback")
        update["long_description"] = fallback_long_description(name, context, short_description)
    if not company.domain:
        update["domain"] = context.domain

    for warning in warnings:
        logger.warning(f"{context.domain}: {warning}")

    return document.model_copy(update={
        "company": company.model_copy(update=update),
        "products_services": products,
        "people": people,
    }), warnings


# ============================================================================
# MERGE
# ============================================================================

def _merge_people(text_people: List[Person], heuristic_people: List[Person]) -> List[Person]:
    # Role placeholders only stand in when nobody is named
    for candidates in (text_people, heuristic_people):
        named = [p for p in dedupe_people(candidates) if p.name.strip()]
        if named:
            return named
    return dedupe_people(text_people or heuristic_people)


def merge_documents(
    text_doc: Optional[CompanyDocument],
    heuristic: HeuristicData,
    max_products: Optional[int] = None,
) -> CompanyDocument:
    text_doc = text_doc or empty_document()
    text_company = text_doc.company
    heuristic_locations = heuristic.locations

    company = text_company.model_copy(update={
        "name": text_company.name or heuristic.company_name,
        "domain": text_company.domain or heuristic.domain,
        "logo_url": heuristic.logo_url or text_company.logo_url,
    })

    if heuristic_locations.headquarters:
        headquarters = heuristic_locations.headquarters
        source = heuristic_locations.headquarters_source
    else:
        headquarters = text_doc.locations.headquarters
        source = ""

    return CompanyDocument(
        company=company,
        products_services=(
            dedupe_products(text_doc.products_services, max_products)
            or dedupe_products(heuristic.products, max_products)
        ),
        locations=LocationSet(
            headquarters=headquarters,
            addresses=heuristic_locations.addresses,
            coordinates=heuristic_locations.coordinates,
            headquarters_source=source,
        ),
        people=_merge_people(text_doc.people, heuristic.people),
        contact=Contact(
            emails=heuristic.emails or text_doc.contact.emails,
            phones=heuristic.phones or text_doc.contact.phones,
            contact_page=text_doc.contact.contact_page,
        ),
        social_media=heuristic.social_media,
        tech_stack=heuristic.tech_stack,
    )
