"""
Shared normalization and dedup helpers.

Every helper here is pure and idempotent: running a dedup step on its own
output returns the same collection.
"""

import re
from typing import Callable, Iterable, List, Optional, TypeVar
from urllib.parse import urljoin, urlparse

from .errors import InvalidDomainError
from .models import Person, Product

T = TypeVar("T")

_NON_ALNUM = re.compile(r"[^a-z0-9]+")
_WHITESPACE = re.compile(r"\s+")


def slugify(value: str) -> str:
    """Lowercase, collapse every non-alphanumeric run to one hyphen, trim hyphens."""
    if not value:
        return ""
    return _NON_ALNUM.sub("-", value.lower()).strip("-")


def normalize_whitespace(text: str) -> str:
    if not text:
        return ""
    return _WHITESPACE.sub(" ", text).strip()


def normalize_domain(domain: str) -> str:
    """Turn user input into a base URL: add https:// when missing, drop the trailing slash."""
    url = (domain or "").strip()
    if not url:
        raise InvalidDomainError("Domain is required")
    if not url.startswith("http://") and not url.startswith("https://"):
        url = "https://" + url
    url = url.rstrip("/")
    if not urlparse(url).hostname:
        raise InvalidDomainError(f"Invalid domain: {domain!r}")
    return url


def resolve_url(href: str, base_url: str) -> Optional[str]:
    """Resolve href against base_url; None for non-http targets or garbage."""
    if not href:
        return None
    href = href.strip()
    if href.startswith(("mailto:", "tel:", "javascript:", "data:")):
        return None
    try:
        full_url = urljoin(base_url, href)
        parsed = urlparse(full_url)
    except ValueError:
        return None
    if parsed.scheme not in ("http", "https") or not parsed.hostname:
        return None
    return full_url


def is_same_host(url: str, base_url: str) -> bool:
    if not url:
        return False
    try:
        return urlparse(url).hostname == urlparse(base_url).hostname
    except ValueError:
        return False


def dedupe_by_key(items: Iterable[T], key: Callable[[T], str]) -> List[T]:
    """Keep the first item for each non-empty key, preserving order."""
    seen = set()
    unique: List[T] = []
    for item in items:
        value = key(item)
        if not value or value in seen:
            continue
        seen.add(value)
        unique.append(item)
    return unique


def dedupe_products(products: Iterable[Product], limit: Optional[int] = None) -> List[Product]:
    """Dedup by lowercase name; names shorter than 4 characters are dropped."""
    candidates = [p for p in products if len(p.name.strip()) >= 4]
    unique = dedupe_by_key(candidates, lambda p: p.name.strip().lower())
    return unique[:limit] if limit is not None else unique


def dedupe_people(people: Iterable[Person]) -> List[Person]:
    """
    Dedup named people by lowercase trimmed name (minimum 3 characters).

    Entries with an empty name are role-only placeholders; they are kept
    as-is and never collapse into each other.
    """
    seen = set()
    unique: List[Person] = []
    for person in people:
        key = person.name.strip().lower()
        if not key:
            unique.append(person)
            continue
        if len(key) < 3 or key in seen:
            continue
        seen.add(key)
        unique.append(person)
    return unique


def truncate(text: str, limit: int) -> str:
    return text[:limit] if text and len(text) > limit else (text or "")
