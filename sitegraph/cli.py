"""
Command line entry point.

    sitegraph stripe.com
    sitegraph stripe.com --stage crawl --max-pages 3
    sitegraph stripe.com --output stripe.json -v
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from .config import Settings
from .errors import SitegraphError
from .heuristic_extraction import extract
from .pipeline import analyze
from .scraper import crawl

logger = logging.getLogger(__name__)

STAGES = ["crawl", "extract", "analyze"]


async def run_stage(domain: str, stage: str, settings: Settings) -> Dict[str, Any]:
    if stage in ("crawl", "extract"):
        crawl_result = await crawl(domain, settings)
        if stage == "crawl":
            return crawl_result.model_dump(mode="json", exclude={"pages": {"__all__": {"html"}}})
        return (await extract(crawl_result, settings)).model_dump(mode="json")

    result = await analyze(domain, settings)
    return result.model_dump(mode="json", by_alias=True)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Crawl a company website and build its knowledge graph")
    parser.add_argument("domain", help="Company domain or URL, e.g. stripe.com")
    parser.add_argument("--max-pages", type=int, help="Maximum pages to crawl (default: 6)")
    parser.add_argument("--concurrency", type=int, help="Pages fetched per batch (default: 3)")
    parser.add_argument("--output", type=Path, help="Write JSON here instead of stdout")
    parser.add_argument("--stage", choices=STAGES, default="analyze", help="Stop after this stage")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry"""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s | %(levelname)s | %(message)s",
        stream=sys.stderr,
    )

    settings = Settings.from_env().with_overrides(max_pages=args.max_pages, concurrency=args.concurrency)

    try:
        payload = asyncio.run(run_stage(args.domain, args.stage, settings))
    except SitegraphError as e:
        logger.error(str(e))
        print(f"Error: {e}", file=sys.stderr)
        return 1

    output = json.dumps(payload, indent=2, ensure_ascii=False)
    if args.output:
        args.output.write_text(output, encoding="utf-8")
        logger.info(f"Saved {args.stage} output to {args.output}")
    else:
        print(output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
