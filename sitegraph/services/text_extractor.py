"""
Text extractor - page summary in, structured company document out.

The pipeline only depends on the TextExtractor protocol. The default
adapter uses Instructor over the OpenAI client with a Pydantic response
model, so the answer is validated before it reaches the merge step.
"""

import asyncio
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional, Protocol

import instructor
from openai import OpenAI
from pydantic import BaseModel, Field

from ..config import Settings, get_settings
from ..errors import TextExtractionError
from ..models import CategoryCandidate, CrawlResult, HeuristicData, IndustryMatch, Person, Product
from ..utils import dedupe_by_key, truncate

logger = logging.getLogger(__name__)

CONTEXT_LIMIT = 30000
PAGE_SEPARATOR = "\n\n---\n\n"
MAX_HINT_PRODUCTS = 15
MAX_HINT_CATEGORIES = 15
MAX_HINT_PEOPLE = 20

CompanyType = Literal["B2C_MARKETPLACE", "CONSUMER_PLATFORM", "B2B_SAAS", "CONTENT_MEDIA", "ENTERPRISE_TECH", "OTHER"]

# (pattern, weight) per company type
COMPANY_TYPE_SIGNALS = {
    "B2C_MARKETPLACE": [
        (r"\b(marketplace|shop|buy|sell|cart|checkout|sellers|vendors|products|categories|deals|offers|browse|add to cart)\b", 2),
        (r"\b(fashion|electronics|grocery|home|kitchen|books|toys|beauty|accessories)\b", 1),
        (r"\b(delivery|shipping|order|track order|returns|refund)\b", 1),
    ],
    "CONSUMER_PLATFORM": [
        (r"\b(delivery|rides?|drivers?|restaurants?|food|menu|book now|track|live tracking)\b", 2),
        (r"\b(customers?|users?|order now|get started|download app)\b", 1),
    ],
    "B2B_SAAS": [
        (r"\b(api|integration|enterprise|business|solution|platform|dashboard|analytics|workspace|collaboration|management|automation)\b", 2),
        (r"\b(pricing|plans|features|documentation|developers|free trial|sign up|demo)\b", 1),
        (r"\b(teams?|organizations?|companies|businesses)\b", 1),
    ],
    "CONTENT_MEDIA": [
        (r"\b(watch|stream|video|news|article|blog|content|media|entertainment|shows?)\b", 2),
        (r"\b(subscribe|channel|playlist|episodes?)\b", 1),
    ],
    "ENTERPRISE_TECH": [
        (r"\b(infrastructure|cloud|security|compliance|scalable|deployment|kubernetes|database|server)\b", 2),
        (r"\b(enterprise|mission critical|high availability|disaster recovery)\b", 1),
    ],
}
COMPANY_TYPE_MIN_SCORE = 5


def infer_company_type(text: str, urls: List[str]) -> str:
    """Highest keyword score wins (first on ties); OTHER when every score is below 5."""
    combined = (text or "").lower() + " " + " ".join(url.lower() for url in urls)
    scores = {
        company_type: sum(len(re.findall(pattern, combined)) * weight for pattern, weight in signals)
        for company_type, signals in COMPANY_TYPE_SIGNALS.items()
    }
    best = max(scores, key=scores.get)
    return best if scores[best] >= COMPANY_TYPE_MIN_SCORE else "OTHER"


# ============================================================================
# CONTEXT
# ============================================================================

@dataclass
class ExtractionContext:
    """Everything the text extractor and the fallbacks need to know about one crawl."""
    domain: str
    text: str
    company_type: str = "OTHER"
    structured_products: List[Product] = field(default_factory=list)
    navigation_categories: List[CategoryCandidate] = field(default_factory=list)
    structured_people: List[Person] = field(default_factory=list)
    industry_matches: List[IndustryMatch] = field(default_factory=list)
    heuristics: Optional[HeuristicData] = None

    def hints(self) -> Dict[str, Any]:
        heuristics = self.heuristics or HeuristicData(domain=self.domain)
        return {
            "domain": self.domain,
            "company_name": heuristics.company_name,
            "company_type": self.company_type,
            "emails": heuristics.emails,
            "phones": heuristics.phones,
            "headquarters": heuristics.locations.headquarters,
            "addresses": heuristics.locations.addresses,
            "tech_stack": heuristics.tech_stack,
            "industry_suggestions": [
                {"sub_industry": m.sub_industry, "industry": m.industry, "sector": m.sector}
                for m in self.industry_matches[:5]
            ],
            "products": [
                {"name": p.name, "description": p.description}
                for p in self.structured_products[:MAX_HINT_PRODUCTS]
            ],
            "categories": [c.name for c in self.navigation_categories[:MAX_HINT_CATEGORIES]],
            "people": [
                {"name": p.name, "title": p.title}
                for p in self.structured_people[:MAX_HINT_PEOPLE]
            ],
        }


def summarize_pages(crawl_result: CrawlResult, limit: int = CONTEXT_LIMIT) -> str:
    blocks = [
        f"PAGE: {page.url}\nTITLE: {page.title}\nMETA: {page.meta_description}\nCONTENT:\n{page.text}"
        for page in crawl_result.pages
    ]
    return truncate(PAGE_SEPARATOR.join(blocks), limit)


def build_context(
    crawl_result: CrawlResult,
    heuristic_data: HeuristicData,
    industry_matches: Optional[List[IndustryMatch]] = None,
) -> ExtractionContext:
    text = summarize_pages(crawl_result)

    products = [
        Product(name=c.name, description=c.description, source=c.source_strategy)
        for page in crawl_result.pages
        for c in page.product_candidates
    ] + list(heuristic_data.products)
    people = [
        Person(name=c.name, title=c.title)
        for page in crawl_result.pages
        for c in page.people_candidates
    ] + list(heuristic_data.people)

    context = ExtractionContext(
        domain=crawl_result.domain,
        text=text,
        company_type=infer_company_type(text, [page.url for page in crawl_result.pages]),
        structured_products=dedupe_by_key(products, lambda p: p.name.lower()),
        navigation_categories=dedupe_by_key(heuristic_data.category_candidates, lambda c: c.name.lower()),
        structured_people=dedupe_by_key(
            people, lambda p: p.name.lower().strip() if len(p.name.strip()) > 2 else ""
        ),
        industry_matches=list(industry_matches or []),
        heuristics=heuristic_data,
    )
    logger.info(
        f"Context for {context.domain}: type {context.company_type}, "
        f"{len(context.navigation_categories)} categories, {len(context.structured_people)} people"
    )
    return context


# ============================================================================
# EXTRACTOR PROTOCOL
# ============================================================================

class TextExtractor(Protocol):
    async def extract(self, summary_text: str, hints: Dict[str, Any]) -> Dict[str, Any]:
        """Return a company document as a plain dict; raise TextExtractionError on failure."""
        ...


# Response models for the structured call
class ExtractedIdentity(BaseModel):
    name: str = ""
    domain: str = ""
    short_description: str = Field("", description="1-2 sentences on what the company does")
    long_description: str = Field("", description="Several paragraphs: overview, history, mission, scale")
    industry: str = ""
    sub_industry: str = ""

class ExtractedProduct(BaseModel):
    name: str
    description: str = ""

class ExtractedPerson(BaseModel):
    name: str = ""
    title: str = ""
    role_category: Literal["Leadership", "Engineering", "Sales", "Marketing", "Operations", "Other"] = "Other"

class ExtractedLocations(BaseModel):
    headquarters: str = Field("", description="City, Country")

class ExtractedContact(BaseModel):
    emails: List[str] = []
    phones: List[str] = []
    contact_page: str = ""

class ExtractedCompany(BaseModel):
    company: ExtractedIdentity = Field(default_factory=ExtractedIdentity)
    products_services: List[ExtractedProduct] = []
    locations: ExtractedLocations = Field(default_factory=ExtractedLocations)
    people: List[ExtractedPerson] = []
    contact: ExtractedContact = Field(default_factory=ExtractedContact)


TYPE_GUIDANCE = {
    "B2C_MARKETPLACE": (
        "COMPANY TYPE: B2C MARKETPLACE\n"
        "- Use every navigation category as a product, with a description\n"
        "- Add platform capabilities as services\n"
        "- Never use industry labels as products; at least 3 products"
    ),
    "CONSUMER_PLATFORM": (
        "COMPANY TYPE: CONSUMER PLATFORM\n"
        "- Extract platform verticals (food delivery, rides, grocery) as products\n"
        "- Extract user-facing features as services; at least 2 products"
    ),
    "B2B_SAAS": (
        "COMPANY TYPE: B2B SAAS\n"
        "- Extract actual product names; distinct feature sets become separate products"
    ),
    "CONTENT_MEDIA": (
        "COMPANY TYPE: CONTENT/MEDIA\n"
        "- Extract content categories as products and platform features as services"
    ),
}


def _numbered(lines: List[str]) -> str:
    return "\n".join(f"{i}. {line}" for i, line in enumerate(lines, 1))


def build_prompt(summary_text: str, hints: Dict[str, Any]) -> str:
    sections = [
        f"DOMAIN: {hints.get('domain', '')}",
        f"WEBSITE CONTENT:\n{summary_text}",
        "KNOWN DATA (use if available):\n"
        f"- Company Name: {hints.get('company_name') or 'unknown'}\n"
        f"- Emails: {', '.join(hints.get('emails') or []) or 'none'}\n"
        f"- Phones: {', '.join(hints.get('phones') or []) or 'none'}\n"
        f"- Tech Stack: {', '.join(hints.get('tech_stack') or []) or 'none'}\n"
        f"- Headquarters: {hints.get('headquarters') or 'unknown'}\n"
        f"- Addresses: {' | '.join(hints.get('addresses') or []) or 'none'}",
    ]

    suggestions = hints.get("industry_suggestions") or []
    if suggestions:
        sections.append(
            "SUGGESTED SUB-INDUSTRIES (from database, use one EXACTLY if it fits):\n"
            + _numbered([f"{s['sub_industry']} (Industry: {s['industry']}, Sector: {s['sector']})" for s in suggestions])
        )
    categories = hints.get("categories") or []
    if categories:
        sections.append("NAVIGATION CATEGORIES FOUND:\n" + _numbered(categories))
    products = hints.get("products") or []
    if products:
        sections.append(
            "STRUCTURED PRODUCTS/SERVICES FOUND (keep these names if accurate):\n"
            + _numbered([
                f"{p['name']}: {p['description'][:150]}" if p.get("description") else p["name"]
                for p in products
            ])
        )
    people = hints.get("people") or []
    if people:
        sections.append(
            "PEOPLE FOUND ON THE WEBSITE (include all of them, never invent names):\n"
            + _numbered([f"{p['name']} - {p['title']}" if p.get("title") else p["name"] for p in people])
        )
    guidance = TYPE_GUIDANCE.get(hints.get("company_type", ""))
    if guidance:
        sections.append(guidance)

    sections.append(
        "RULES:\n"
        "1. Use only the content above; empty string or empty list when not found\n"
        "2. industry/sub_industry are classification labels, never products\n"
        "3. products_services must describe real offerings, never empty for a live site\n"
        "4. people: real names only; use role entries with an empty name when none are listed\n"
        "5. headquarters in 'City, Country' format; prefer the known headquarters\n"
        "6. role_category is one of Leadership, Engineering, Sales, Marketing, Operations, Other"
    )
    return "\n\n".join(sections)


class InstructorTextExtractor:
    """OpenAI-backed extractor; requires OPENAI_API_KEY."""

    def __init__(self, settings: Optional[Settings] = None, client=None):
        self.settings = get_settings(settings)
        self._client = client

    @property
    def client(self):
        if self._client is None:
            if not self.settings.openai_api_key:
                raise TextExtractionError("OPENAI_API_KEY is not set")
            self._client = instructor.from_openai(OpenAI(api_key=self.settings.openai_api_key))
        return self._client

    def _extract_sync(self, summary_text: str, hints: Dict[str, Any]) -> Dict[str, Any]:
        try:
            company = self.client.chat.completions.create(
                model=self.settings.openai_model,
                response_model=ExtractedCompany,
                messages=[
                    {"role": "system", "content": "You extract company information from website content. Never invent facts."},
                    {"role": "user", "content": build_prompt(summary_text, hints)},
                ],
                temperature=0,
                max_retries=2,
            )
        except TextExtractionError:
            raise
        except Exception as e:
            raise TextExtractionError(f"Text extraction failed: {type(e).__name__}: {e}") from e
        return company.model_dump()

    async def extract(self, summary_text: str, hints: Dict[str, Any]) -> Dict[str, Any]:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._extract_sync, summary_text, hints)


def get_text_extractor(settings: Optional[Settings] = None) -> Optional[TextExtractor]:
    """Default adapter, or None when no API key is configured."""
    settings = get_settings(settings)
    if not settings.openai_api_key:
        logger.info("OPENAI_API_KEY not set; text extraction disabled")
        return None
    return InstructorTextExtractor(settings)
