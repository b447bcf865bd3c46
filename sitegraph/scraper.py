"""
Site crawler - bounded, priority-scheduled walk of a company website.

FAST & BOUNDED:
- Seeds: homepage plus common corporate paths, queued before anything is fetched
- People pages (about/team/leadership) jump the queue
- Pages fetched in small concurrent batches
- Stops at the page cap, when the queues drain, or at the crawl deadline

Per-page failures never abort the crawl; the result holds whatever
pages succeeded, possibly none.
"""

import asyncio
import logging
import time
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Deque, List, Optional, Protocol, Set, Tuple
from urllib.parse import urldefrag, urlparse

from .config import Settings, get_settings
from .crawl_profile import get_crawl_profile
from .fetcher import FetchedPage, Fetcher
from .models import CrawlResult, Link, Page
from .page_parser import parse_page
from .utils import is_same_host, normalize_domain

logger = logging.getLogger(__name__)

NAV_KEYWORDS = [
    "about", "product", "service", "contact", "career", "team",
    "company", "who-we-are", "what-we-do", "solutions", "jobs",
    "features", "pricing", "plans", "offerings", "portfolio",
]
PEOPLE_KEYWORDS = [
    "about", "company", "leadership", "team", "management",
    "executives", "board", "founders", "about-us", "who-we-are",
]
PEOPLE_EXCLUDED_KEYWORDS = ["blog", "news", "career", "press", "media", "event"]


class PageFetcher(Protocol):
    async def fetch_async(self, url: str) -> Optional[FetchedPage]:
        ...


@dataclass
class CrawlContext:
    """Mutable state of one crawl; created per call, never shared."""
    base_url: str
    priority_queue: Deque[str] = field(default_factory=deque)
    general_queue: Deque[str] = field(default_factory=deque)
    visited: Set[str] = field(default_factory=set)
    pages: List[Page] = field(default_factory=list)
    failed_urls: List[str] = field(default_factory=list)

    def has_pending(self) -> bool:
        return bool(self.priority_queue or self.general_queue)

    def is_known(self, url: str) -> bool:
        return url in self.visited or url in self.priority_queue or url in self.general_queue

    def next_batch(self, size: int) -> List[str]:
        """Pop up to size unvisited URLs, priority queue first, marking them visited."""
        batch: List[str] = []
        while len(batch) < size and self.has_pending():
            url = self.priority_queue.popleft() if self.priority_queue else self.general_queue.popleft()
            if url in self.visited:
                continue
            # Marked before dispatch so a batch never fetches the same URL twice
            self.visited.add(url)
            batch.append(url)
        return batch


# ============================================================================
# LINK SELECTION
# ============================================================================

def extract_navigation_links(links: List[Link], base_url: str) -> List[str]:
    """Same-host links whose path or anchor text contains a navigation keyword."""
    nav_links: List[str] = []
    for link in links:
        if not is_same_host(link.url, base_url):
            continue
        url, _ = urldefrag(link.url)
        path = urlparse(url).path.lower()
        text = (link.anchor_text or "").lower()
        if any(keyword in path or keyword in text for keyword in NAV_KEYWORDS):
            if url not in nav_links:
                nav_links.append(url)
    return nav_links


def categorize_people_links(links: List[str]) -> Tuple[List[str], List[str]]:
    """Split links into people-relevant ones and everything else."""
    people_links: List[str] = []
    other_links: List[str] = []
    for url in links:
        url_lower = url.lower()
        is_people = any(keyword in url_lower for keyword in PEOPLE_KEYWORDS)
        is_excluded = any(word in url_lower for word in PEOPLE_EXCLUDED_KEYWORDS)
        if is_people and not is_excluded:
            people_links.append(url)
        else:
            other_links.append(url)
    return people_links, other_links


# ============================================================================
# CRAWLER
# ============================================================================

class SiteCrawler:
    """Crawls one site per call; holds configuration only."""

    def __init__(self, settings: Optional[Settings] = None, fetcher: Optional[PageFetcher] = None):
        self.settings = get_settings(settings)
        self.fetcher = fetcher or Fetcher(self.settings)

    def _new_context(self, base_url: str) -> CrawlContext:
        context = CrawlContext(base_url=base_url)
        profile = get_crawl_profile(base_url)
        context.priority_queue.extend(profile.seed_urls)
        return context

    def _parse(self, fetched: FetchedPage, base_url: str) -> Optional[Page]:
        try:
            return parse_page(fetched.html, fetched.headers, fetched.url, base_url, self.settings)
        except Exception as e:
            logger.warning(f"Parse failed for {fetched.url}: {type(e).__name__}: {str(e)[:200]}")
            return None

    def _enqueue_links(self, context: CrawlContext, page: Page) -> None:
        nav_links = extract_navigation_links(page.links, context.base_url)
        people_links, other_links = categorize_people_links(nav_links)
        for url in people_links:
            if not context.is_known(url):
                context.priority_queue.append(url)
        for url in other_links:
            if not context.is_known(url):
                context.general_queue.append(url)

    async def crawl(self, domain: str) -> CrawlResult:
        base_url = normalize_domain(domain)
        context = self._new_context(base_url)
        max_pages = self.settings.max_pages
        deadline = time.monotonic() + self.settings.crawl_deadline

        logger.info(f"Crawling {base_url} (max {max_pages} pages, concurrency {self.settings.concurrency})")

        while context.has_pending() and len(context.pages) < max_pages:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                logger.warning(f"Crawl deadline reached for {base_url} after {len(context.pages)} pages")
                break

            batch_size = min(self.settings.concurrency, max_pages - len(context.pages))
            batch = context.next_batch(batch_size)
            if not batch:
                break

            try:
                results = await asyncio.wait_for(
                    asyncio.gather(*(self.fetcher.fetch_async(url) for url in batch), return_exceptions=True),
                    timeout=remaining,
                )
            except asyncio.TimeoutError:
                logger.warning(f"Crawl deadline reached for {base_url} while fetching {len(batch)} pages")
                context.failed_urls.extend(batch)
                break

            for url, result in zip(batch, results):
                if isinstance(result, BaseException):
                    logger.warning(f"Failed to scrape {url}: {type(result).__name__}: {result}")
                    context.failed_urls.append(url)
                    continue
                if result is None:
                    context.failed_urls.append(url)
                    continue
                page = self._parse(result, base_url)
                if page is None:
                    context.failed_urls.append(url)
                    continue
                context.pages.append(page)
                self._enqueue_links(context, page)

        logger.info(
            f"Crawl finished for {base_url}: {len(context.pages)} pages, "
            f"{len(context.failed_urls)} failed"
        )
        return CrawlResult(
            domain=base_url,
            pages=context.pages,
            scraped_at=datetime.now(timezone.utc).isoformat(),
            failed_urls=context.failed_urls,
        )


async def crawl(domain: str, settings: Optional[Settings] = None, fetcher: Optional[PageFetcher] = None) -> CrawlResult:
    """Crawl a domain with a fresh crawler and context."""
    return await SiteCrawler(settings, fetcher).crawl(domain)
