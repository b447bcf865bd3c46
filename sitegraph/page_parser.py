"""
Page parser - raw HTML to an immutable Page record.

Pure functions only, no I/O. Candidate extraction for products,
navigation categories and people is split into independent strategies,
each returning its own candidate list; the union/dedup step is separate so
every heuristic can be exercised on its own.
"""

import re
from typing import Dict, List, Optional, Set, Tuple

from bs4 import BeautifulSoup, Tag

from .config import Settings, get_settings
from .models import CategoryCandidate, Image, Link, Page, PersonCandidate, ProductCandidate
from .tech_detection import detect_tech_stack
from .utils import dedupe_by_key, is_same_host, normalize_whitespace, resolve_url, truncate

NOISE_TAGS = ["script", "style", "noscript", "iframe", "svg"]

PRODUCT_URL_KEYWORDS = [
    "product", "service", "solution", "offering", "feature",
    "what-we-do", "our-products", "our-services", "platform",
]
PRODUCT_LIST_HEADINGS = ["product", "service", "solution", "offering"]
PEOPLE_LIST_HEADINGS = ["team", "leadership", "management", "founder", "executive"]

PRODUCT_CARD_SELECTORS = [
    ".product, .service, .solution, .offering, .feature",
    '[class*="product"], [class*="service"], [class*="solution"], [class*="feature"]',
    "article, .card, .item, .feature-box, .offering-card",
    '[id*="product"], [id*="service"], [id*="feature"]',
    "section, .section",
]
PRODUCT_HEADING_SELECTOR = 'h1, h2, h3, h4, h5, .title, .heading, .name, [class*="title"]'
PRODUCT_BODY_SELECTOR = "p, .description, .content, .summary, .text"
NAME_DESCRIPTION_SPLIT = re.compile(r"^([^:\-]{3,100})[:\-]\s*(.+)$")

NAV_SELECTORS = [
    'nav a, header a, [role="navigation"] a',
    ".nav a, .navbar a, .menu a, .header a",
    '[class*="nav"] a, [class*="menu"] a, [class*="category"] a',
    '[id*="nav"] a, [id*="menu"] a',
]
CATEGORY_SECTION_SELECTORS = [
    '.category, .categories, [class*="category"]',
    '.collection, .collections, [class*="collection"]',
    '.department, .departments, [class*="department"]',
    '[class*="shop-by"]',
]
NON_CATEGORY_LABELS = re.compile(
    r"^(home|about|contact|login|sign ?in|sign ?up|cart|checkout|account|help|support|careers|blog|terms|privacy|search|wishlist)$"
)

EXECUTIVE_TITLES = [
    "Chief Executive Officer", "CEO", "Chief Technology Officer", "CTO",
    "Chief Financial Officer", "CFO", "Chief Operating Officer", "COO",
    "Chief Marketing Officer", "CMO", "Chief Product Officer", "CPO",
    "Chief Revenue Officer", "CRO", "Chief Information Officer", "CIO",
    "Chief Human Resources Officer", "CHRO", "Chief Strategy Officer", "CSO",
    "Founder", "Co-Founder", "President", "Vice President", "VP",
    "Managing Director", "Director", "Head of", "Senior Vice President", "SVP",
]
PERSON_CARD_SELECTORS = [
    ".team-member, .person, .leader, .executive, .founder",
    '[class*="team"], [class*="person"], [class*="leader"], [class*="member"]',
    "article.bio, .bio-card, .profile-card",
    '[itemtype*="Person"]',
]
HEADER_NAME_SELECTOR = "header > h1, header > h2, header > h3, .Copy__header > h1"
HEADER_BODY_SELECTOR = ".Copy__body p, :scope > div > p, :scope > p"

# Tokens that never appear in a person's name
NON_NAME_TOKENS = {
    "our", "the", "meet", "team", "leadership", "about", "us", "contact", "company",
    "products", "product", "services", "service", "solutions", "careers", "news",
    "blog", "board", "directors", "management", "values", "mission", "vision",
    "story", "customers", "partners", "pricing", "features", "platform", "learn",
    "more", "get", "started", "why", "how", "what", "who", "we", "are", "with",
    "for", "your", "executive", "chief", "vice", "senior", "officer", "president",
    "founder", "founders", "co", "head", "privacy", "policy", "terms", "cookie", "cookies",
    "home", "menu", "read", "view", "all", "join",
}

_NAME_TOKEN_STRIP = ".,;:!?()[]\"'"


# ============================================================================
# HELPERS
# ============================================================================

def _text(element: Optional[Tag]) -> str:
    if element is None:
        return ""
    return normalize_whitespace(element.get_text(" "))


def _first_text(element: Tag, selector: str) -> str:
    return _text(element.select_one(selector))


def looks_like_name(value: str, min_words: int = 2, max_words: int = 4, require_capitals: bool = False) -> bool:
    """Word-shape check for a human name."""
    if not value or any(ch.isdigit() for ch in value):
        return False
    words = value.split()
    if not min_words <= len(words) <= max_words:
        return False
    for word in words:
        token = word.strip(_NAME_TOKEN_STRIP).lower()
        if not token or token in NON_NAME_TOKENS:
            return False
    if require_capitals and not all(word[0].isupper() for word in words):
        return False
    return True


def is_product_url(url: str) -> bool:
    url_lower = (url or "").lower()
    return any(keyword in url_lower for keyword in PRODUCT_URL_KEYWORDS)


def _previous_heading_text(element: Tag) -> str:
    heading = element.find_previous_sibling(["h1", "h2", "h3", "h4"])
    return _text(heading).lower()


# ============================================================================
# LINKS & IMAGES
# ============================================================================

def extract_links(soup: BeautifulSoup, base_url: str) -> Tuple[List[Link], List[Link]]:
    """Split anchors into same-host links and external links, document order."""
    internal: List[Link] = []
    external: List[Link] = []
    for anchor in soup.find_all("a", href=True):
        url = resolve_url(anchor.get("href", ""), base_url)
        if not url:
            continue
        link = Link(url=url, anchor_text=_text(anchor))
        if is_same_host(url, base_url):
            internal.append(link)
        else:
            external.append(link)
    return internal, external


def extract_images(soup: BeautifulSoup, base_url: str) -> List[Image]:
    images = []
    for img in soup.find_all("img", src=True):
        url = resolve_url(img.get("src", ""), base_url)
        if url:
            images.append(Image(url=url, alt_text=(img.get("alt") or "").strip()))
    return images


# ============================================================================
# PRODUCT STRATEGIES
# ============================================================================

def structured_product_matches(soup: BeautifulSoup, threshold: int) -> List[ProductCandidate]:
    """Card/section elements with a heading and a body."""
    products = []
    for selector in PRODUCT_CARD_SELECTORS:
        for element in soup.select(selector):
            heading = _first_text(element, PRODUCT_HEADING_SELECTOR)
            if not heading:
                lines = [line.strip() for line in element.get_text("\n").split("\n") if line.strip()]
                heading = normalize_whitespace(lines[0]) if lines else ""
            if not heading or len(heading) <= threshold or len(heading) >= 200:
                continue
            heading_lower = heading.lower()
            if "cookie" in heading_lower or "privacy" in heading_lower:
                continue
            description = _first_text(element, PRODUCT_BODY_SELECTOR)
            if not description:
                description = _text(element).replace(heading, "", 1).strip()
            products.append(ProductCandidate(
                name=heading,
                description=truncate(description, 500),
                source_strategy="structured",
            ))
    return products


def list_product_matches(soup: BeautifulSoup) -> List[ProductCandidate]:
    """List items under a heading that mentions products or services."""
    products = []
    for list_el in soup.find_all(["ul", "ol"]):
        heading = _previous_heading_text(list_el)
        if not any(word in heading for word in PRODUCT_LIST_HEADINGS):
            continue
        for item in list_el.find_all("li"):
            text = _text(item)
            match = NAME_DESCRIPTION_SPLIT.match(text)
            if match:
                products.append(ProductCandidate(
                    name=match.group(1).strip(),
                    description=truncate(match.group(2).strip(), 500),
                    source_strategy="list",
                ))
            elif 5 < len(text) < 200:
                products.append(ProductCandidate(name=text, source_strategy="list"))
    return products


def definition_list_matches(soup: BeautifulSoup) -> List[ProductCandidate]:
    products = []
    for dl in soup.find_all("dl"):
        for dt in dl.find_all("dt"):
            name = _text(dt)
            if not name or not 3 < len(name) < 200:
                continue
            sibling = dt.find_next_sibling()
            description = _text(sibling) if sibling is not None and sibling.name == "dd" else ""
            products.append(ProductCandidate(
                name=name,
                description=truncate(description, 500),
                source_strategy="definition-list",
            ))
    return products


def extract_product_sections(soup: BeautifulSoup, page_url: str, limit: int = 20) -> List[ProductCandidate]:
    # Stricter on pages that are not about products
    threshold = 3 if is_product_url(page_url) else 10
    candidates = (
        structured_product_matches(soup, threshold)
        + list_product_matches(soup)
        + definition_list_matches(soup)
    )
    candidates = [c for c in candidates if len(c.name) > 3]
    return dedupe_by_key(candidates, lambda c: c.name.lower())[:limit]


# ============================================================================
# NAVIGATION CATEGORIES
# ============================================================================

def _looks_like_category_href(href: str) -> bool:
    if href == "#" or href.startswith("javascript:"):
        return True
    if any(marker in href for marker in ("/category", "/collection", "/shop")):
        return True
    return "/product/" not in href and "/item/" not in href


def extract_navigation_categories(soup: BeautifulSoup, limit: int = 15) -> List[CategoryCandidate]:
    categories: List[CategoryCandidate] = []
    seen: Set[str] = set()

    for selector in NAV_SELECTORS:
        for anchor in soup.select(selector):
            text = _text(anchor)
            key = text.lower()
            if not text or not 2 < len(text) < 50 or key in seen:
                continue
            if NON_CATEGORY_LABELS.match(key):
                continue
            if _looks_like_category_href(anchor.get("href") or ""):
                categories.append(CategoryCandidate(name=text, source_strategy="navigation"))
                seen.add(key)

    for selector in CATEGORY_SECTION_SELECTORS:
        for element in soup.select(selector):
            name = _first_text(element, "h2, h3, h4, a")
            key = name.lower()
            if name and 2 < len(name) < 50 and key not in seen:
                categories.append(CategoryCandidate(name=name, source_strategy="category-section"))
                seen.add(key)

    return categories[:limit]


# ============================================================================
# PEOPLE STRATEGIES
# ============================================================================

def _title_pattern(title: str) -> re.Pattern:
    return re.compile(
        r"([A-Z][a-z]+(?:\s+[A-Z][a-z]+){1,3})[,\s\-–]+(?i:" + re.escape(title) + r")\b"
    )

EXECUTIVE_TITLE_PATTERNS = [(title, _title_pattern(title)) for title in EXECUTIVE_TITLES]


def executive_title_matches(text: str) -> List[PersonCandidate]:
    """`Jane Doe, CEO` style mentions anywhere in the visible text."""
    people = []
    seen: Set[str] = set()
    for title, pattern in EXECUTIVE_TITLE_PATTERNS:
        for match in pattern.finditer(text or ""):
            name = match.group(1).strip()
            key = name.lower()
            if key in seen or not looks_like_name(name):
                continue
            seen.add(key)
            people.append(PersonCandidate(name=name, title=title, source_strategy="executive-title-match"))
    return people


def header_body_matches(soup: BeautifulSoup) -> List[PersonCandidate]:
    """A short <header> heading followed by a descriptive paragraph."""
    people = []
    seen: Set[str] = set()
    for heading in soup.select(HEADER_NAME_SELECTOR):
        name = _text(heading)
        if not name or name.lower() in seen or not looks_like_name(name, max_words=5):
            continue
        title = ""
        for container in heading.find_parents(["section", "article", "div"], limit=3):
            title = _first_text(container, HEADER_BODY_SELECTOR)
            if title:
                break
        if not title:
            continue
        seen.add(name.lower())
        people.append(PersonCandidate(name=name, title=truncate(title, 200), source_strategy="header-body"))
    return people


def person_card_matches(soup: BeautifulSoup) -> List[PersonCandidate]:
    """Person cards with explicit name and title children."""
    people = []
    seen: Set[str] = set()
    for selector in PERSON_CARD_SELECTORS:
        for card in soup.select(selector):
            name = _first_text(card, 'h2, h3, h4, .name, [itemprop="name"]')
            if not name or not 2 < len(name) < 100 or name.lower() in seen:
                continue
            if not looks_like_name(name, max_words=5):
                continue
            title = _first_text(card, '.title, .role, .position, [itemprop="jobTitle"]')
            if not title:
                lines = [normalize_whitespace(line) for line in card.get_text("\n").split("\n")]
                lines = [line for line in lines if line and line != name]
                title = lines[0] if lines else ""
            seen.add(name.lower())
            people.append(PersonCandidate(name=name, title=truncate(title, 200), source_strategy="structured"))
    return people


def people_list_matches(soup: BeautifulSoup) -> List[PersonCandidate]:
    """List items under a team/leadership heading."""
    people = []
    seen: Set[str] = set()
    for list_el in soup.find_all(["ul", "ol"]):
        heading = _previous_heading_text(list_el)
        if not any(word in heading for word in PEOPLE_LIST_HEADINGS):
            continue
        for item in list_el.find_all("li"):
            name = _first_text(item, "h2, h3, h4, h5, strong, b")
            if not name or name.lower() in seen or not looks_like_name(name, max_words=5):
                continue
            rest = _text(item).replace(name, "", 1).strip(" ,-–—:")
            seen.add(name.lower())
            people.append(PersonCandidate(name=name, title=truncate(rest, 200), source_strategy="list"))
    return people


def heading_paragraph_matches(soup: BeautifulSoup) -> List[PersonCandidate]:
    """Name-shaped h2-h4 immediately followed by a paragraph."""
    people = []
    seen: Set[str] = set()
    for heading in soup.find_all(["h2", "h3", "h4"]):
        name = _text(heading)
        if name.lower() in seen or not looks_like_name(name, require_capitals=True):
            continue
        sibling = heading.find_next_sibling()
        if sibling is None or sibling.name != "p":
            continue
        # first sentence only
        title = truncate(_text(sibling).split(".")[0].strip(), 200)
        if not title:
            continue
        seen.add(name.lower())
        people.append(PersonCandidate(name=name, title=title, source_strategy="heading-paragraph"))
    return people


def extract_people(soup: BeautifulSoup, text: str, limit: int = 20) -> List[PersonCandidate]:
    candidates = (
        executive_title_matches(text)
        + header_body_matches(soup)
        + person_card_matches(soup)
        + people_list_matches(soup)
        + heading_paragraph_matches(soup)
    )
    return dedupe_by_key(candidates, lambda c: c.name.strip().lower())[:limit]


# ============================================================================
# PAGE ASSEMBLY
# ============================================================================

def parse_page(
    html: str,
    headers: Optional[Dict[str, str]],
    page_url: str,
    base_url: str,
    settings: Optional[Settings] = None,
) -> Page:
    """Parse one fetched document into a Page."""
    settings = get_settings(settings)
    html = html or ""
    soup = BeautifulSoup(html, "lxml")

    # Signatures live in scripts and links, so detect before stripping them
    tech_signals = detect_tech_stack(html, soup, headers)

    for tag in soup.find_all(NOISE_TAGS):
        tag.decompose()

    title = _text(soup.title)
    description_tag = soup.find("meta", attrs={"name": "description"})
    keywords_tag = soup.find("meta", attrs={"name": "keywords"})
    body = soup.body or soup
    text = truncate(normalize_whitespace(body.get_text(" ")), settings.text_limit)

    links, external_links = extract_links(soup, base_url)

    return Page(
        url=page_url,
        title=title,
        meta_description=(description_tag.get("content") or "").strip() if description_tag else "",
        meta_keywords=(keywords_tag.get("content") or "").strip() if keywords_tag else "",
        text=text,
        links=links,
        external_links=external_links,
        images=extract_images(soup, base_url),
        tech_signals=tech_signals,
        product_candidates=extract_product_sections(soup, page_url, settings.max_products_per_page),
        category_candidates=extract_navigation_categories(soup, settings.max_categories_per_page),
        people_candidates=extract_people(soup, text, settings.max_people_per_page),
        html=truncate(html, settings.html_limit),
    )
