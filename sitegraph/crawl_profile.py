"""Seed URL profile for a crawl - common corporate paths, no per-company hardcoding."""

from dataclasses import dataclass, field
from typing import List, Sequence

from .config import COMMON_PATHS


@dataclass
class CrawlProfile:
    base_url: str
    seed_paths: Sequence[str] = field(default_factory=lambda: list(COMMON_PATHS))
    seed_urls: List[str] = field(default_factory=list)

    def ensure_defaults(self) -> None:
        """Homepage first, then each common path under the base URL."""
        if self.seed_urls:
            return
        self.seed_urls = [self.base_url]
        for path in self.seed_paths:
            url = self.base_url + path
            if url not in self.seed_urls:
                self.seed_urls.append(url)


def get_crawl_profile(base_url: str) -> CrawlProfile:
    profile = CrawlProfile(base_url=base_url)
    profile.ensure_defaults()
    return profile
