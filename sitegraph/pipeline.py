"""
Analysis pipeline - domain in, company document and knowledge graph out.

    crawl -> heuristic extraction -> text extraction -> industry override
          -> merge -> fallbacks -> graph

Only InvalidDomainError and CrawlFailedError reach the caller; every later
stage degrades to fallbacks and records a warning instead of failing.
"""

import logging
from typing import Iterable, List, Optional

from .config import Settings, get_settings
from .errors import CrawlFailedError
from .graph_generator import generate
from .heuristic_extraction import extract
from .merge import apply_fallbacks, apply_industry_match, empty_document, merge_documents, parse_document
from .models import AnalysisResult, DomainOutcome
from .scraper import PageFetcher, crawl
from .services.industry_matcher import IndustryMatcher
from .services.place_lookup import PlaceLookup
from .services.text_extractor import TextExtractor, build_context, get_text_extractor

logger = logging.getLogger(__name__)

_DEFAULT = object()


async def analyze(
    domain: str,
    settings: Optional[Settings] = None,
    *,
    fetcher: Optional[PageFetcher] = None,
    text_extractor=_DEFAULT,
    industry_matcher: Optional[IndustryMatcher] = None,
    place_lookup: Optional[PlaceLookup] = None,
) -> AnalysisResult:
    """
    Run the full analysis for one domain.

    Args:
        domain: bare domain or URL
        settings: defaults to Settings.from_env()
        fetcher: page fetcher, defaults to the requests-backed Fetcher
        text_extractor: TextExtractor, or None to skip text extraction;
            defaults to the OpenAI adapter when OPENAI_API_KEY is set
        industry_matcher: defaults to the configured classification table
        place_lookup: defaults to Google Places when GOOGLE_MAPS_API_KEY is set

    Raises:
        InvalidDomainError: empty or unparseable domain
        CrawlFailedError: not a single page could be fetched
    """
    settings = get_settings(settings)
    if text_extractor is _DEFAULT:
        text_extractor = get_text_extractor(settings)
    if industry_matcher is None:
        industry_matcher = IndustryMatcher.from_csv(settings.industry_csv_path)

    warnings: List[str] = []

    logger.info(f"[CRAWL] {domain}")
    crawl_result = await crawl(domain, settings, fetcher)
    if not crawl_result.pages:
        raise CrawlFailedError(domain, attempted=len(crawl_result.failed_urls))
    if crawl_result.failed_urls:
        warnings.append(f"{len(crawl_result.failed_urls)} pages could not be fetched")

    logger.info(f"[HEURISTIC] {crawl_result.domain}: {len(crawl_result.pages)} pages")
    heuristic = await extract(crawl_result, settings, place_lookup)

    context = build_context(crawl_result, heuristic)
    matches = industry_matcher.find_matches(context.text, heuristic.company_name, crawl_result.domain)
    context.industry_matches = matches
    if matches:
        logger.info(f"[INDUSTRY] top match {matches[0].sub_industry!r} (score {matches[0].score})")

    raw_document = None
    if text_extractor is not None:
        logger.info(f"[TEXT] extracting document for {crawl_result.domain}")
        try:
            raw_document = await text_extractor.extract(context.text, context.hints())
        except Exception as e:
            logger.warning(f"Text extraction failed for {crawl_result.domain}: {type(e).__name__}: {e}")
            warnings.append(f"Text extraction failed: {e}")

    parsed_document = parse_document(raw_document)
    if raw_document is not None and parsed_document == empty_document():
        logger.warning(f"Text extraction for {crawl_result.domain} returned no usable fields")
        warnings.append("Text extraction returned an unusable document")
    text_document = apply_industry_match(parsed_document, matches, settings.industry_threshold)
    merged = merge_documents(text_document, heuristic, settings.max_products)
    document, fallback_warnings = apply_fallbacks(merged, context)
    warnings.extend(fallback_warnings)

    graph = generate(document)
    logger.info(
        f"[GRAPH] {crawl_result.domain}: {graph.stats.total_nodes} nodes, {graph.stats.total_edges} edges"
    )
    return AnalysisResult(company=document, graph=graph, warnings=warnings)


async def analyze_many(domains: Iterable[str], settings: Optional[Settings] = None, **kwargs) -> List[DomainOutcome]:
    """Analyze domains one after another; a failing domain never stops the batch."""
    settings = get_settings(settings)
    domains = list(domains)
    outcomes: List[DomainOutcome] = []

    for i, domain in enumerate(domains, 1):
        logger.info(f"[BATCH {i}/{len(domains)}] {domain}")
        try:
            result = await analyze(domain, settings, **kwargs)
            outcomes.append(DomainOutcome(domain=domain, success=True, result=result))
        except Exception as e:
            logger.error(f"[BATCH] Failed for {domain}: {str(e)[:200]}")
            outcomes.append(DomainOutcome(domain=domain, success=False, error=str(e)))

    successful = sum(1 for outcome in outcomes if outcome.success)
    logger.info(f"[BATCH] Complete. {successful}/{len(domains)} successful")
    return outcomes
