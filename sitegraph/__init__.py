"""
sitegraph - company website crawl and extraction pipeline.

Stage functions can be used on their own:
    crawl(domain) -> CrawlResult
    extract(crawl_result) -> HeuristicData
    generate(document) -> Graph
or chained with analyze(domain) -> AnalysisResult.
"""

from .config import Settings
from .errors import CrawlFailedError, InvalidDomainError, SitegraphError
from .graph_generator import generate
from .heuristic_extraction import extract
from .pipeline import analyze, analyze_many
from .scraper import crawl

__all__ = [
    "Settings",
    "SitegraphError",
    "InvalidDomainError",
    "CrawlFailedError",
    "crawl",
    "extract",
    "generate",
    "analyze",
    "analyze_many",
]
