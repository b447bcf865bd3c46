"""Shared fixtures: settings without external services and a scripted fetcher."""

from datetime import datetime, timezone
from typing import Dict, List, Optional, Union

import pytest

from sitegraph.config import Settings
from sitegraph.fetcher import FetchedPage
from sitegraph.models import CrawlResult, Page


class FakeFetcher:
    """Serves canned HTML per URL; records every requested URL."""

    def __init__(self, pages: Optional[Dict[str, Union[str, Exception]]] = None, headers: Optional[Dict[str, str]] = None):
        self.pages = pages or {}
        self.headers = headers or {}
        self.requested: List[str] = []

    async def fetch_async(self, url: str) -> Optional[FetchedPage]:
        self.requested.append(url)
        body = self.pages.get(url)
        if isinstance(body, Exception):
            raise body
        if body is None:
            return None
        return FetchedPage(url=url, html=body, headers=dict(self.headers))


@pytest.fixture
def settings():
    return Settings(
        max_pages=6,
        concurrency=3,
        crawl_deadline=10.0,
        google_maps_api_key="",
        openai_api_key="",
    )


@pytest.fixture
def make_fetcher():
    return FakeFetcher


@pytest.fixture
def make_crawl_result():
    def _make(pages: List[Page], domain: str = "https://acme.com", failed_urls: Optional[List[str]] = None):
        return CrawlResult(
            domain=domain,
            pages=pages,
            scraped_at=datetime.now(timezone.utc).isoformat(),
            failed_urls=failed_urls or [],
        )
    return _make
