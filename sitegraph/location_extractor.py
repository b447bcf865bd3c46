"""
Location resolver - headquarters and addresses from page text.

Headquarters precedence, highest first:
    place lookup > explicit HQ phrase > footer address > address-derived city
A value set by a higher source is never replaced by a lower one.
"""

import logging
import re
from typing import List, Optional, Tuple

from .config import Settings, get_settings
from .models import CrawlResult, LocationSet
from .services.place_lookup import PlaceLookup

logger = logging.getLogger(__name__)

MAX_ADDRESSES = 3

_CAP_WORDS = r"[A-Z][a-zA-Z]+(?:\s[A-Z][a-zA-Z]+){0,2}"
_PLACE = r"[A-Z][a-zA-Z]+(?:\s[A-Z][a-zA-Z]+)*(?:,\s*[A-Z][a-zA-Z]+(?:\s[A-Z][a-zA-Z]+)*)?"

FOOTER_ADDRESS = re.compile(
    r"(" + _CAP_WORDS + r"),\s*(" + _CAP_WORDS + r"),\s*([A-Z]{2}\d{1,2}\s*\d[A-Z]{2}|\d{5,6})\b"
)
DUAL_HQ = re.compile(
    r"(?i:dual headquarters in)\s+([A-Z][a-zA-Z]+(?:\s[A-Z][a-zA-Z]+)*?)\s+and\s+([A-Z][a-zA-Z]+(?:\s[A-Z][a-zA-Z]+)*)"
)
SINGLE_HQ = [
    re.compile(
        r"(?i:\b(?:headquarters?|headquartered|head office|hq))"
        r"(?:\s+(?i:is|are|located|in|at)|\s*:){0,3}\s+(" + _PLACE + r")"
    ),
    re.compile(r"(?i:\b(?:based|located) in)\s+(" + _PLACE + r")"),
]
HQ_STOP_WORDS = re.compile(r"\s+(?:as well as|offices?|with|where|and|since)\b.*$", re.IGNORECASE)

STREET_ADDRESS = re.compile(
    r"\d+[\w\s,]+?\b(?:Street|St|Avenue|Ave|Road|Rd|Boulevard|Blvd|Lane|Ln|Drive|Dr|Way|Place|Pl|House|Building)\b[^.]{10,150}",
    re.IGNORECASE,
)
ADDRESS_JARGON = [
    "data", "campaign", "email", "book a demo", "discovery",
    "proposal", "onboarding", "questions",
]
CITY_SEGMENT = re.compile(r"[A-Z][a-zA-Z]+(?:\s[A-Z][a-zA-Z]+){0,2}")
STREET_SUFFIX = re.compile(
    r"\b(?:Street|St|Avenue|Ave|Road|Rd|Boulevard|Blvd|Lane|Ln|Drive|Dr|Way|Place|Pl|House|Building|Suite|Floor)\b",
    re.IGNORECASE,
)
POSTAL_TAIL = re.compile(r"\s*(?:[A-Z]{1,2}\d[\w ]*|\d[\d\s-]*)$")


# ============================================================================
# PATTERN PASSES
# ============================================================================

def find_footer_addresses(text: str) -> Tuple[str, List[str]]:
    """Return the headquarters guess from the first footer match and all full matches."""
    headquarters = ""
    addresses: List[str] = []
    for match in FOOTER_ADDRESS.finditer(text or ""):
        city, region = match.group(1).strip(), match.group(2).strip()
        if not headquarters and city and region:
            headquarters = f"{city}, {region}"
        full = match.group(0).strip()
        if len(full) > 10 and full not in addresses:
            addresses.append(full)
    return headquarters, addresses


def find_dual_headquarters(text: str) -> str:
    match = DUAL_HQ.search(text or "")
    if not match:
        return ""
    first, second = match.group(1).strip(), match.group(2).strip()
    if 2 < len(first) < 50 and 2 < len(second) < 50:
        return f"{first} and {second}"
    return ""


def clean_headquarters(value: str) -> str:
    value = re.sub(r"\s+", " ", value or "").strip()
    return HQ_STOP_WORDS.sub("", value).strip(" ,")


def find_single_headquarters(text: str) -> str:
    for pattern in SINGLE_HQ:
        for match in pattern.finditer(text or ""):
            location = clean_headquarters(match.group(1))
            if 3 < len(location) < 100:
                return location
    return ""


def find_street_addresses(text: str, limit: int = MAX_ADDRESSES) -> List[str]:
    addresses: List[str] = []
    for match in STREET_ADDRESS.finditer(text or ""):
        address = match.group(0).strip()
        lower = address.lower()
        if any(term in lower for term in ADDRESS_JARGON):
            continue
        if not 3 < len(address.split(" ")) < 20:
            continue
        if address not in addresses:
            addresses.append(address)
        if len(addresses) >= limit:
            break
    return addresses


def city_from_address(address: str) -> str:
    """`123 Main Street, Mumbai, Maharashtra 400001` -> `Mumbai, Maharashtra`."""
    segments = []
    for part in (address or "").split(",")[1:]:
        part = POSTAL_TAIL.sub("", part.strip()).strip()
        if part and CITY_SEGMENT.fullmatch(part) and not STREET_SUFFIX.search(part):
            segments.append(part)
    if segments:
        return ", ".join(segments[:2])
    match = re.search(r"([A-Z][a-zA-Z\s]+),\s*([A-Z][a-zA-Z\s]+)", address or "")
    if match:
        return f"{match.group(1).strip()}, {match.group(2).strip()}"
    return ""


def extract_locations_from_text(text: str) -> LocationSet:
    footer_hq, addresses = find_footer_addresses(text)

    headquarters, source = find_dual_headquarters(text), "hq_phrase"
    if not headquarters:
        headquarters = find_single_headquarters(text)
    if not headquarters and footer_hq:
        headquarters, source = footer_hq, "footer_address"

    for address in find_street_addresses(text):
        if address not in addresses:
            addresses.append(address)
    addresses = addresses[:MAX_ADDRESSES]

    if not headquarters and addresses:
        headquarters, source = city_from_address(addresses[0]), "address_city"

    return LocationSet(
        headquarters=headquarters,
        addresses=addresses,
        headquarters_source=source if headquarters else "",
    )


# ============================================================================
# RESOLVER
# ============================================================================

class LocationResolver:
    def __init__(self, settings: Optional[Settings] = None, place_lookup: Optional[PlaceLookup] = None):
        self.settings = get_settings(settings)
        self.place_lookup = place_lookup or PlaceLookup(
            self.settings.google_maps_api_key, timeout=self.settings.request_timeout
        )

    async def resolve(self, crawl_result: CrawlResult, company_hint: str = "") -> LocationSet:
        text = "\n\n".join(page.text for page in crawl_result.pages)
        locations = extract_locations_from_text(text)

        if not (self.place_lookup.enabled and company_hint):
            return locations

        try:
            found = await self.place_lookup.lookup_async(company_hint)
        except Exception as e:
            logger.warning(f"Place lookup failed for {company_hint!r}: {e}")
            return locations
        if not found:
            return locations

        # Structured place data outranks anything inferred from text
        update = {}
        if found.headquarters:
            update["headquarters"] = found.headquarters
            update["headquarters_source"] = "place_lookup"
        if found.addresses:
            update["addresses"] = found.addresses
        if found.coordinates:
            update["coordinates"] = found.coordinates
        return locations.model_copy(update=update)


async def resolve_locations(
    crawl_result: CrawlResult,
    company_hint: str = "",
    settings: Optional[Settings] = None,
    place_lookup: Optional[PlaceLookup] = None,
) -> LocationSet:
    return await LocationResolver(settings, place_lookup).resolve(crawl_result, company_hint)
