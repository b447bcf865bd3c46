"""
Single-page HTTP fetcher.

A failed fetch (timeout, DNS error, non-2xx, non-HTML body) is a per-page
outcome: it is logged and reported as None, never raised.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Dict, Optional

import requests

from .config import Settings, get_settings

logger = logging.getLogger(__name__)

MAX_REDIRECTS = 5
HTML_CONTENT_TYPES = ("text/html", "application/xhtml+xml")


@dataclass
class FetchedPage:
    url: str
    html: str
    status_code: int = 200
    headers: Dict[str, str] = field(default_factory=dict)


class Fetcher:
    """Fetches pages with a fixed timeout and user agent."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = get_settings(settings)

    def fetch(self, url: str) -> Optional[FetchedPage]:
        try:
            with requests.Session() as session:
                session.max_redirects = MAX_REDIRECTS
                response = session.get(
                    url,
                    timeout=self.settings.request_timeout,
                    headers={"User-Agent": self.settings.user_agent},
                    allow_redirects=True,
                )
        except requests.RequestException as e:
            logger.warning(f"Fetch failed for {url}: {type(e).__name__}: {str(e)[:200]}")
            return None

        if not 200 <= response.status_code < 300:
            logger.warning(f"Fetch failed for {url}: HTTP {response.status_code}")
            return None

        content_type = response.headers.get("Content-Type", "").lower()
        if content_type and not any(ct in content_type for ct in HTML_CONTENT_TYPES):
            logger.info(f"Skipping non-HTML response for {url} ({content_type})")
            return None

        headers = {k.lower(): v for k, v in response.headers.items()}
        return FetchedPage(url=url, html=response.text, status_code=response.status_code, headers=headers)

    async def fetch_async(self, url: str) -> Optional[FetchedPage]:
        """Run the blocking fetch in the default executor."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self.fetch, url)
