"""
Post-crawl metrics — one row per run in ``crawl_runs``.

Fallback records look exactly like live ones, so this row (and the log
line that goes with it) is how an operator tells a healthy run from one
that served placeholders.  Called by main.py after every search/crawl.
"""

from __future__ import annotations

import logging
from collections import Counter
from datetime import datetime, timezone
from typing import Any

from models import SiteResult, Source

logger = logging.getLogger("metrics")


def collect_run_metrics(
    db: Any,
    results: dict[str, SiteResult],
    *,
    term: str,
    blocked_stores: list[str] | None = None,
    runtime_seconds: float = 0,
    dry_run: bool = False,
) -> dict[str, Any]:
    """Summarize a run and upsert it into ``crawl_runs``.

    Returns the metrics dict regardless of whether the DB write succeeds.
    """
    sources = Counter(r.source.value for r in results.values())
    blocked_stores = blocked_stores or []

    metrics: dict[str, Any] = {
        "run_at": datetime.now(timezone.utc).isoformat(),
        "term": term,
        "total_records": sum(len(r.records) for r in results.values()),
        "stores_searched": len(results) + len(blocked_stores),
        "live_count": sources.get(Source.LIVE.value, 0),
        "alternate_count": sources.get(Source.ALTERNATE.value, 0),
        "fallback_count": sources.get(Source.FALLBACK.value, 0),
        "blocked_count": len(blocked_stores),
        "blocked_stores": blocked_stores,
        "attempts": sum(len(r.attempts) for r in results.values()),
        "per_store": {
            store: {
                "records": len(r.records),
                "source": r.source.value,
                "outcomes": [a.outcome.value for a in r.attempts],
            }
            for store, r in results.items()
        },
        "runtime_seconds": round(runtime_seconds, 1),
    }

    logger.info(
        "Run metrics: %d records | live=%d alternate=%d fallback=%d blocked=%d | "
        "%d attempts | %.1fs",
        metrics["total_records"],
        metrics["live_count"], metrics["alternate_count"],
        metrics["fallback_count"], metrics["blocked_count"],
        metrics["attempts"], metrics["runtime_seconds"],
    )
    for store, summary in metrics["per_store"].items():
        if summary["source"] == Source.FALLBACK.value:
            logger.warning(
                "  %s served fallback data (attempts: %s)",
                store, ", ".join(summary["outcomes"]),
            )

    if dry_run or db is None:
        logger.info("[DRY RUN] Would insert crawl_runs row for %r", term)
        return metrics

    try:
        db.table("crawl_runs").insert(metrics).execute()
        logger.info("Run metrics saved for %r", term)
    except Exception as e:
        # Non-fatal: the records themselves are already persisted
        logger.warning("Failed to save run metrics: %s", e)

    return metrics
