"""Tests for headquarters/address extraction and the place lookup client."""

import logging
from unittest.mock import MagicMock, patch

import pytest
import requests

from sitegraph.errors import PlaceLookupError
from sitegraph.location_extractor import (
    LocationResolver,
    city_from_address,
    extract_locations_from_text,
    find_street_addresses,
    resolve_locations,
)
from sitegraph.models import Coordinates, LocationSet, Page
from sitegraph.services.place_lookup import PlaceLookup


def json_response(payload):
    response = MagicMock()
    response.json.return_value = payload
    return response


# ============================================================================
# TEXT PATTERNS
# ============================================================================

class TestTextPatterns:
    def test_hq_phrase_beats_footer_address(self):
        text = "Visit us at Acme Tower, London, 12345. Acme is headquartered in Berlin, Germany."
        locations = extract_locations_from_text(text)

        assert locations.headquarters == "Berlin, Germany"
        assert locations.headquarters_source == "hq_phrase"
        assert locations.addresses == ["Acme Tower, London, 12345"]

    def test_footer_address_when_no_phrase(self):
        locations = extract_locations_from_text("Contact: Shoreditch, London, 12345")

        assert locations.headquarters == "Shoreditch, London"
        assert locations.headquarters_source == "footer_address"

    def test_city_derived_from_street_address(self):
        locations = extract_locations_from_text("Visit 42 Baker Street, Springfield, Illinois 62704.")

        assert locations.addresses == ["42 Baker Street, Springfield, Illinois 62704"]
        assert locations.headquarters == "Springfield, Illinois"
        assert locations.headquarters_source == "address_city"

    def test_dual_headquarters(self):
        locations = extract_locations_from_text("Acme has dual headquarters in San Francisco and London.")
        assert locations.headquarters == "San Francisco and London"

    def test_hq_phrase_stops_at_trailing_clause(self):
        text = "We are based in Mumbai, India with offices in Bangalore."
        assert extract_locations_from_text(text).headquarters == "Mumbai, India"

    def test_no_location(self):
        locations = extract_locations_from_text("We make great software for everyone.")
        assert locations == LocationSet()

    def test_street_addresses_skip_marketing_copy(self):
        text = "Step 1 Book a demo on Main Street and our team will walk you through onboarding"
        assert find_street_addresses(text) == []

    def test_city_from_address(self):
        assert city_from_address("123 Main Street, Mumbai, Maharashtra 400001") == "Mumbai, Maharashtra"


# ============================================================================
# RESOLVER
# ============================================================================

class TestLocationResolver:
    TEXT = "Acme is headquartered in Berlin, Germany."

    @pytest.mark.asyncio
    async def test_place_lookup_outranks_text(self, settings, make_crawl_result):
        found = LocationSet(
            headquarters="Austin, United States",
            addresses=["500 W 2nd St, Austin, TX 78701, USA"],
            coordinates=Coordinates(lat=30.26, lng=-97.74),
            headquarters_source="place_lookup",
        )
        crawl_result = make_crawl_result([Page(url="https://acme.com", text=self.TEXT)])

        with patch.object(PlaceLookup, "lookup", return_value=found) as lookup:
            locations = await LocationResolver(settings, PlaceLookup("key")).resolve(crawl_result, "Acme")

        lookup.assert_called_once_with("Acme")
        assert locations.headquarters == "Austin, United States"
        assert locations.headquarters_source == "place_lookup"
        assert locations.coordinates.lat == 30.26

    @pytest.mark.asyncio
    async def test_lookup_failure_keeps_text_result(self, settings, make_crawl_result, caplog):
        crawl_result = make_crawl_result([Page(url="https://acme.com", text=self.TEXT)])

        with patch.object(PlaceLookup, "lookup", side_effect=PlaceLookupError("quota exceeded")):
            with caplog.at_level(logging.WARNING):
                locations = await resolve_locations(crawl_result, "Acme", settings, PlaceLookup("key"))

        assert locations.headquarters == "Berlin, Germany"
        assert locations.headquarters_source == "hq_phrase"
        assert "quota exceeded" in caplog.text

    @pytest.mark.asyncio
    async def test_lookup_skipped_without_key(self, settings, make_crawl_result):
        crawl_result = make_crawl_result([Page(url="https://acme.com", text=self.TEXT)])

        with patch.object(PlaceLookup, "lookup") as lookup:
            locations = await LocationResolver(settings).resolve(crawl_result, "Acme")

        lookup.assert_not_called()
        assert locations.headquarters == "Berlin, Germany"


# ============================================================================
# PLACE LOOKUP CLIENT
# ============================================================================

class TestPlaceLookup:
    DETAILS = {
        "result": {
            "formatted_address": "500 W 2nd St, Austin, TX 78701, USA",
            "address_components": [
                {"long_name": "Austin", "types": ["locality", "political"]},
                {"long_name": "United States", "types": ["country", "political"]},
            ],
            "geometry": {"location": {"lat": 30.26, "lng": -97.74}},
        }
    }

    @patch("sitegraph.services.place_lookup.requests.get")
    def test_lookup_parses_place_details(self, mock_get):
        mock_get.side_effect = [
            json_response({"candidates": [{"place_id": "abc123"}]}),
            json_response(self.DETAILS),
        ]

        locations = PlaceLookup("key").lookup("Acme")

        assert locations.headquarters == "Austin, United States"
        assert locations.addresses == ["500 W 2nd St, Austin, TX 78701, USA"]
        assert locations.coordinates == Coordinates(lat=30.26, lng=-97.74)
        assert mock_get.call_args_list[1].kwargs["params"]["place_id"] == "abc123"

    @patch("sitegraph.services.place_lookup.requests.get")
    def test_formatted_address_fallback(self, mock_get):
        mock_get.side_effect = [
            json_response({"candidates": [{"place_id": "abc123"}]}),
            json_response({"result": {"formatted_address": "500 W 2nd St, Austin, TX 78701, USA"}}),
        ]

        locations = PlaceLookup("key").lookup("Acme")

        assert locations.headquarters == "TX 78701, USA"
        assert locations.coordinates is None

    @patch("sitegraph.services.place_lookup.requests.get")
    def test_no_candidates(self, mock_get):
        mock_get.return_value = json_response({"candidates": []})
        assert PlaceLookup("key").lookup("Acme") is None

    @patch("sitegraph.services.place_lookup.requests.get")
    def test_network_error_raises(self, mock_get):
        mock_get.side_effect = requests.ConnectionError("network down")

        with pytest.raises(PlaceLookupError):
            PlaceLookup("key").lookup("Acme")

    @patch("sitegraph.services.place_lookup.requests.get")
    def test_disabled_without_key(self, mock_get):
        assert PlaceLookup("").lookup("Acme") is None
        mock_get.assert_not_called()
