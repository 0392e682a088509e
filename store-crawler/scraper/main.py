"""
Store crawler command line.

Searches Dollar General and Costco for a product, persists the records
to Supabase (``products`` table) and records a ``crawl_runs`` row.

Usage:
    python main.py "paper towels"                  # both stores, clears old rows
    python main.py "paper towels" --site costco    # one store
    python main.py "paper towels" --json           # print the API payload

Environment variables:
    DRY_RUN=true              # crawl only, skip all DB writes
    SUPABASE_URL / SUPABASE_SERVICE_KEY
    SETTLE_DELAY_SEC=5        # pause after each navigation
    GOTO_TIMEOUT_MS=60000     # navigation timeout
    SCREENSHOTS=false         # disable debug screenshots
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
import time

from dotenv import load_dotenv

from crawler import CrawlerService, build_crawl_response, build_search_response
from models import (
    BlockedByTarget, CrawlerError, SearchRequest, ValidationError, validate_term,
)
from result_sink import MemorySink, SupabaseSink
from run_metrics import collect_run_metrics

load_dotenv()

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("orchestrator")

DRY_RUN = os.getenv("DRY_RUN", "false").lower() == "true"

EXIT_OK = 0
EXIT_INVALID = 2
EXIT_BLOCKED = 3
EXIT_FAILED = 1


async def run(term: str, site: str | None = None, *, dry_run: bool = DRY_RUN) -> dict:
    """Run one search (both stores) or crawl (one store) and return the payload."""
    start = time.time()

    # Validate before touching the database.
    validate_term(term)
    if site is not None:
        SearchRequest.create(term, site)

    logger.info("=" * 60)
    logger.info("Store Crawler Starting")
    logger.info("  TERM:     %s", term)
    logger.info("  STORE:    %s", site or "(all)")
    logger.info("  DRY_RUN:  %s", dry_run)
    logger.info("=" * 60)

    # Dry runs keep records in process; nothing touches Supabase.
    sink = MemorySink() if dry_run else SupabaseSink.from_env()
    blocked: list[str] = []
    results = {}

    try:
        async with CrawlerService(sink) as crawler:
            if site is None:
                results = await crawler.search_detailed(term)
                payload = build_search_response(
                    {store: r.records for store, r in results.items()}
                )
            else:
                result = await crawler.crawl_detailed(term, site)
                results = {result.store: result}
                payload = build_crawl_response(result.records)
    except BlockedByTarget as exc:
        # Stores that finished before the block still belong in the run row.
        results = exc.results or results
        blocked.extend(exc.blocked_stores or [exc.store or exc.site])
        raise
    finally:
        collect_run_metrics(
            getattr(sink, "db", None),
            results,
            term=term,
            blocked_stores=blocked,
            runtime_seconds=time.time() - start,
            dry_run=dry_run,
        )

    logger.info("=" * 60)
    logger.info("CRAWL COMPLETE")
    for store, r in results.items():
        logger.info("  %-16s %d records (%s)", store, len(r.records), r.source.value)
    logger.info("  Duration:  %.1fs", time.time() - start)
    logger.info("=" * 60)
    return payload


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Search Dollar General and Costco for a product")
    parser.add_argument("term", nargs="?", default="", help="Product name to search for")
    parser.add_argument("--site", default=None, help="Single store: DOLLAR_GENERAL / COSTCO (or slug)")
    parser.add_argument("--json", action="store_true", help="Print the response payload as JSON")
    parser.add_argument("--dry-run", action="store_true", help="Skip all DB writes")
    args = parser.parse_args(argv)

    try:
        payload = asyncio.run(run(args.term, args.site, dry_run=args.dry_run or DRY_RUN))
    except ValidationError as exc:
        logger.error("Invalid input: %s", exc)
        return EXIT_INVALID
    except BlockedByTarget as exc:
        logger.error("%s", exc)
        return EXIT_BLOCKED
    except CrawlerError as exc:
        logger.error("Crawl failed: %s", exc)
        return EXIT_FAILED

    if args.json:
        print(json.dumps(payload, indent=2))
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
