"""
Heuristic extractor - deterministic field extraction over crawled pages.

NO LLM: regexes, link scans and the candidates the page parser already
collected. Only location resolution is async (optional place lookup).
"""

import logging
import re
from typing import Dict, List, Optional, Tuple

import extruct
from bs4 import BeautifulSoup

from .config import Settings, get_settings
from .location_extractor import LocationResolver
from .models import (
    CategoryCandidate,
    CrawlResult,
    HeuristicData,
    Page,
    Person,
    Product,
    SocialMedia,
)
from .page_parser import NOISE_TAGS
from .services.place_lookup import PlaceLookup
from .utils import dedupe_by_key, dedupe_people, dedupe_products, normalize_domain, resolve_url

logger = logging.getLogger(__name__)

TITLE_SUFFIX = re.compile(r"\s*[|\-–—]\s*(Home|Official|Website).*$", re.IGNORECASE)
EMAIL_PATTERN = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b")
PHONE_PATTERN = re.compile(r"(?:\+?\d{1,3}[-.\s]?)?\(?\d{3}\)?[-.\s]?\d{3}[-.\s]?\d{4}")
PLACEHOLDER_EMAIL_DOMAINS = ["example.com", "test.com", "domain.com"]

SOCIAL_PATTERNS: List[Tuple[str, Tuple[str, ...]]] = [
    ("linkedin", ("linkedin.com/company/",)),
    ("twitter", ("twitter.com/", "x.com/")),
    ("facebook", ("facebook.com/",)),
    ("instagram", ("instagram.com/",)),
]

LOGO_DIMENSIONS = re.compile(r"(200|150|100|80)x(200|150|100|80)")
LOGO_POSITION = re.compile(r"header|nav|top")
SCHEMA_LOGO = re.compile(r"\"logo\"\s*:\s*[\"']([^\"']+)[\"']", re.IGNORECASE)
DEFAULT_LOGO_PATH = "/logo.svg"
TEXT_PATTERN_URL_KEYWORDS = ["product", "service", "solution", "offering"]

ROLE_PATTERNS = [
    ("Leadership", re.compile(r"\bceo\b|chief executive|president|founder|co-founder|managing director|chairman")),
    ("Engineering", re.compile(r"\bcto\b|chief technology|engineer|developer|architect|technical|vp.*engineering|head.*engineering")),
    ("Sales", re.compile(r"sales|business development|\baccount|revenue|\bcro\b|chief revenue")),
    ("Marketing", re.compile(r"marketing|\bcmo\b|chief marketing|brand|communications|\bpr\b|public relations")),
]


def combine_text(pages: List[Page]) -> str:
    return "\n\n".join(page.text for page in pages)


# ============================================================================
# IDENTITY & CONTACT
# ============================================================================

def extract_company_name(pages: List[Page]) -> str:
    for page in pages:
        if not page.title:
            continue
        title = TITLE_SUFFIX.sub("", page.title).strip()
        if title and len(title) < 100:
            return title
    return ""


def extract_emails(text: str) -> List[str]:
    emails = [
        email for email in EMAIL_PATTERN.findall(text or "")
        if not any(domain in email for domain in PLACEHOLDER_EMAIL_DOMAINS)
    ]
    return list(dict.fromkeys(emails))


def extract_phones(text: str) -> List[str]:
    phones = [match.group(0).strip() for match in PHONE_PATTERN.finditer(text or "")]
    return list(dict.fromkeys(phone for phone in phones if len(phone) >= 10))


def extract_social_media(pages: List[Page]) -> SocialMedia:
    """Scan every link once; a later match for a platform replaces an earlier one."""
    found: Dict[str, str] = {}
    for page in pages:
        for link in list(page.links) + list(page.external_links):
            for platform, needles in SOCIAL_PATTERNS:
                if any(needle in link.url for needle in needles):
                    found[platform] = link.url
                    break
    return SocialMedia(**found)


def extract_tech_stack(pages: List[Page]) -> List[str]:
    tech: List[str] = []
    for page in pages:
        tech.extend(page.tech_signals)
    return list(dict.fromkeys(tech))


# ============================================================================
# LOGO
# ============================================================================

def score_logo_image(url: str, alt_text: str) -> int:
    alt = (alt_text or "").lower()
    url = (url or "").lower()

    score = 0
    if alt == "logo" or url.endswith("/logo.png") or url.endswith("/logo.svg"):
        score += 50
    if "logo" in alt and len(alt) < 20:
        score += 30
    if "/logo" in url:
        score += 25
    if "/brand" in url:
        score += 20
    if "brand" in alt:
        score += 15
    if LOGO_POSITION.search(url):
        score += 10
    if LOGO_DIMENSIONS.search(url):
        score += 15
    if url.endswith(".svg"):
        score += 10
    if url.endswith(".png"):
        score += 5
    return score


def _json_ld_logos(html: str, url: str) -> List[str]:
    try:
        data = extruct.extract(html, base_url=url, syntaxes=["json-ld"], errors="ignore")
    except Exception as e:
        logger.debug(f"JSON-LD parse failed for {url}: {e}")
        data = {}

    logos: List[str] = []
    items = list(data.get("json-ld", []))
    while items:
        item = items.pop(0)
        if not isinstance(item, dict):
            continue
        items.extend(item.get("@graph", []) if isinstance(item.get("@graph"), list) else [])
        logo = item.get("logo")
        if isinstance(logo, dict):
            logo = logo.get("url") or logo.get("contentUrl")
        if isinstance(logo, str) and logo:
            logos.append(logo)

    if not logos:
        match = SCHEMA_LOGO.search(html)
        if match:
            logos.append(match.group(1))
    return logos


def _markup_logo_candidates(page: Page) -> List[Tuple[str, int]]:
    raw: List[Tuple[str, int]] = []
    soup = BeautifulSoup(page.html, "lxml")

    og_image = soup.find("meta", attrs={"property": "og:image"})
    og_url = (og_image.get("content") or "") if og_image else ""
    if og_url and ("logo" in og_url.lower() or "brand" in og_url.lower()):
        raw.append((og_url, 35))

    for logo in _json_ld_logos(page.html, page.url)[:1]:
        raw.append((logo, 40))

    icon = soup.find("link", rel=lambda value: value and "icon" in value)
    href = (icon.get("href") or "") if icon else ""
    if href.endswith(".svg") or href.endswith(".png"):
        raw.append((href, 5))

    # Resolved against the page URL, same as <img> sources
    candidates: List[Tuple[str, int]] = []
    for value, score in raw:
        url = resolve_url(value, page.url)
        if url:
            candidates.append((url, score))
    return candidates


def extract_logo(pages: List[Page], domain: str) -> str:
    """Highest-scoring candidate wins, first one on ties; otherwise a best-effort /logo.svg guess."""
    candidates: List[Tuple[str, int]] = []
    for page in pages:
        for image in page.images:
            score = score_logo_image(image.url, image.alt_text)
            if score > 0:
                candidates.append((image.url, score))
        if page.html:
            candidates.extend(_markup_logo_candidates(page))

    if candidates:
        best_url, _ = max(candidates, key=lambda candidate: candidate[1])
        return best_url

    if domain:
        return normalize_domain(domain) + DEFAULT_LOGO_PATH
    return ""


# ============================================================================
# PRODUCTS & PEOPLE
# ============================================================================

def _page_lines(html: str) -> List[str]:
    soup = BeautifulSoup(html, "lxml")
    for tag in soup.find_all(NOISE_TAGS):
        tag.decompose()
    return [line.strip() for line in soup.get_text("\n").splitlines() if line.strip()]


def text_pattern_products(page: Page) -> List[Product]:
    """Heading-like line (ends with ':' or all caps) followed by a sentence-length line."""
    products: List[Product] = []
    heading = ""
    for line in _page_lines(page.html):
        if 5 < len(line) < 100 and (line.endswith(":") or line == line.upper()):
            heading = line.replace(":", "").strip()
            continue
        if heading and 20 < len(line) < 500 and not line.endswith(":") and line != line.upper():
            products.append(Product(name=heading, description=line, source="text-pattern"))
            heading = ""
    return products


def extract_products(pages: List[Page], limit: int = 20) -> List[Product]:
    products = [
        Product(name=candidate.name, description=candidate.description, source=candidate.source_strategy)
        for page in pages
        for candidate in page.product_candidates
    ]
    if not products:
        for page in pages:
            if page.html and any(keyword in page.url.lower() for keyword in TEXT_PATTERN_URL_KEYWORDS):
                products.extend(text_pattern_products(page))
    return dedupe_products(products, limit)


def infer_role_category(title: str) -> str:
    if not title:
        return "Other"
    title_lower = title.lower()
    for category, pattern in ROLE_PATTERNS:
        if pattern.search(title_lower):
            return category
    return "Other"


def extract_people(pages: List[Page]) -> List[Person]:
    people = [
        Person(name=candidate.name, title=candidate.title, role_category=infer_role_category(candidate.title))
        for page in pages
        for candidate in page.people_candidates
        if candidate.name.strip()
    ]
    return dedupe_people(people)


def extract_categories(pages: List[Page]) -> List[CategoryCandidate]:
    categories = [candidate for page in pages for candidate in page.category_candidates]
    return dedupe_by_key(categories, lambda c: c.name.strip().lower())


# ============================================================================
# EXTRACTOR
# ============================================================================

class HeuristicExtractor:
    def __init__(self, settings: Optional[Settings] = None, place_lookup: Optional[PlaceLookup] = None):
        self.settings = get_settings(settings)
        self.location_resolver = LocationResolver(self.settings, place_lookup)

    async def extract(self, crawl_result: CrawlResult) -> HeuristicData:
        pages = crawl_result.pages
        text = combine_text(pages)
        company_name = extract_company_name(pages)

        locations = await self.location_resolver.resolve(crawl_result, company_name)

        data = HeuristicData(
            domain=crawl_result.domain,
            company_name=company_name,
            emails=extract_emails(text),
            phones=extract_phones(text),
            social_media=extract_social_media(pages),
            tech_stack=extract_tech_stack(pages),
            logo_url=extract_logo(pages, crawl_result.domain),
            products=extract_products(pages, self.settings.max_products),
            people=extract_people(pages),
            category_candidates=extract_categories(pages),
            locations=locations,
        )
        logger.info(
            f"Heuristics for {crawl_result.domain}: {len(data.products)} products, "
            f"{len(data.people)} people, {len(data.tech_stack)} technologies, "
            f"HQ {data.locations.headquarters or 'unknown'}"
        )
        return data


async def extract(
    crawl_result: CrawlResult,
    settings: Optional[Settings] = None,
    place_lookup: Optional[PlaceLookup] = None,
) -> HeuristicData:
    return await HeuristicExtractor(settings, place_lookup).extract(crawl_result)
