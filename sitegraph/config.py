"""
Runtime settings for the crawl-and-extract pipeline.

Values come from the environment (a local .env file is honoured via
python-dotenv). Every tuning constant of the crawler and extractors lives
here so callers can override it per analysis.
"""

import logging
import os
from dataclasses import dataclass, replace
from typing import Optional

import dotenv

dotenv.load_dotenv()

logger = logging.getLogger(__name__)

USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"

# Common corporate paths tried even when the homepage does not link to them
COMMON_PATHS = ["/about", "/team", "/company", "/about-us", "/contact", "/leadership"]


def _env_int(name: str, default: int, positive: bool = False) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning(f"Invalid integer for {name}={raw!r}, using default {default}")
        return default
    if positive and value <= 0:
        logger.warning(f"{name} must be positive, got {value}; using default {default}")
        return default
    return value


def _env_float(name: str, default: float, positive: bool = False) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning(f"Invalid number for {name}={raw!r}, using default {default}")
        return default
    if positive and value <= 0:
        logger.warning(f"{name} must be positive, got {value}; using default {default}")
        return default
    return value


@dataclass
class Settings:
    max_pages: int = 6
    concurrency: int = 3
    request_timeout: float = 5.0
    crawl_deadline: float = 30.0
    user_agent: str = USER_AGENT
    text_limit: int = 30000
    html_limit: int = 100000
    max_products_per_page: int = 20
    max_people_per_page: int = 20
    max_categories_per_page: int = 15
    max_products: int = 20
    industry_threshold: int = 20
    industry_csv_path: Optional[str] = None
    google_maps_api_key: str = ""
    openai_api_key: str = ""
    openai_model: str = "gpt-4o-mini"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from SITEGRAPH_* variables plus the API keys."""
        defaults = cls()
        return cls(
            max_pages=_env_int("SITEGRAPH_MAX_PAGES", defaults.max_pages, positive=True),
            concurrency=_env_int("SITEGRAPH_CONCURRENCY", defaults.concurrency, positive=True),
            request_timeout=_env_float("SITEGRAPH_REQUEST_TIMEOUT", defaults.request_timeout, positive=True),
            crawl_deadline=_env_float("SITEGRAPH_CRAWL_DEADLINE", defaults.crawl_deadline, positive=True),
            user_agent=os.getenv("SITEGRAPH_USER_AGENT") or defaults.user_agent,
            max_products_per_page=_env_int("SITEGRAPH_MAX_PRODUCTS_PER_PAGE", defaults.max_products_per_page),
            max_people_per_page=_env_int("SITEGRAPH_MAX_PEOPLE_PER_PAGE", defaults.max_people_per_page),
            max_categories_per_page=_env_int("SITEGRAPH_MAX_CATEGORIES_PER_PAGE", defaults.max_categories_per_page),
            max_products=_env_int("SITEGRAPH_MAX_PRODUCTS", defaults.max_products),
            industry_threshold=_env_int("SITEGRAPH_INDUSTRY_THRESHOLD", defaults.industry_threshold),
            industry_csv_path=os.getenv("SITEGRAPH_INDUSTRY_CSV") or None,
            google_maps_api_key=os.getenv("GOOGLE_MAPS_API_KEY", ""),
            openai_api_key=os.getenv("OPENAI_API_KEY", ""),
            openai_model=os.getenv("OPENAI_MODEL", defaults.openai_model),
        )

    def with_overrides(self, **overrides) -> "Settings":
        """Return a copy with the non-None overrides applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


def get_settings(settings: Optional[Settings] = None) -> Settings:
    return settings if settings is not None else Settings.from_env()
