"""Exceptions raised by the sitegraph pipeline."""


class SitegraphError(Exception):
    """Base class for all pipeline errors."""


class InvalidDomainError(SitegraphError):
    """The domain input is missing or cannot be turned into a URL."""


class CrawlFailedError(SitegraphError):
    """No page of the target site could be fetched."""

    def __init__(self, domain: str, attempted: int = 0):
        self.domain = domain
        self.attempted = attempted
        super().__init__(
            f"Could not analyze domain {domain}: no pages could be scraped "
            f"({attempted} URLs attempted)"
        )


class TextExtractionError(SitegraphError):
    """The text extraction service failed or returned unusable output."""


class PlaceLookupError(SitegraphError):
    """The place lookup service failed."""
