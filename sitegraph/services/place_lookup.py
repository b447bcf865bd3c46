import asyncio
import logging
from typing import Optional

import requests

from ..errors import PlaceLookupError
from ..models import Coordinates, LocationSet

logger = logging.getLogger(__name__)

FIND_PLACE_URL = "https://maps.googleapis.com/maps/api/place/findplacefromtext/json"
PLACE_DETAILS_URL = "https://maps.googleapis.com/maps/api/place/details/json"


def _component(components, kind: str) -> str:
    for component in components or []:
        if kind in component.get("types", []):
            return component.get("long_name", "")
    return ""


class PlaceLookup:
    """Google Places client: company name -> headquarters, address, coordinates."""

    def __init__(self, api_key: str, timeout: float = 5.0):
        self.api_key = api_key
        self.timeout = timeout

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    def _get(self, url: str, params: dict) -> dict:
        try:
            response = requests.get(url, params={**params, "key": self.api_key}, timeout=self.timeout)
            response.raise_for_status()
            return response.json()
        except (requests.RequestException, ValueError) as e:
            raise PlaceLookupError(f"Place lookup request failed: {e}") from e

    def lookup(self, company_name: str) -> Optional[LocationSet]:
        """
        Find the company's place and return its location data.

        Returns None when nothing is found; raises PlaceLookupError when the
        service cannot be reached or answers garbage.
        """
        if not self.enabled or not company_name:
            return None

        search = self._get(FIND_PLACE_URL, {
            "input": company_name,
            "inputtype": "textquery",
            "fields": "place_id,name,formatted_address,geometry",
        })
        candidates = search.get("candidates") or []
        if not candidates:
            return None

        details = self._get(PLACE_DETAILS_URL, {
            "place_id": candidates[0].get("place_id", ""),
            "fields": "name,formatted_address,address_components,geometry,types",
        }).get("result") or {}

        components = details.get("address_components")
        city = _component(components, "locality")
        country = _component(components, "country")
        formatted = details.get("formatted_address", "")

        headquarters = ""
        if city and country:
            headquarters = f"{city}, {country}"
        elif formatted:
            parts = formatted.split(",")
            headquarters = ",".join(parts[-2:]).strip() if len(parts) >= 2 else formatted

        coordinates = None
        location = (details.get("geometry") or {}).get("location")
        if location and "lat" in location and "lng" in location:
            coordinates = Coordinates(lat=location["lat"], lng=location["lng"])

        return LocationSet(
            headquarters=headquarters,
            addresses=[formatted] if formatted else [],
            coordinates=coordinates,
            headquarters_source="place_lookup" if headquarters else "",
        )

    async def lookup_async(self, company_name: str) -> Optional[LocationSet]:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self.lookup, company_name)
