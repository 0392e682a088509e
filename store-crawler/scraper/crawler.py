"""
Crawler service — the public ``search`` / ``crawl`` entry points.

Per store, the service runs up to two attempts (primary route, then the
alternate route) and lets ``policy`` decide what happens after each.
Every attempt gets its own rendering session, opened and closed around
that attempt only; the browser behind the sessions is launched once per
service and released when the service closes.

``search`` runs both stores as concurrent tasks.  They share the browser
process but nothing else: each task has its own context and page.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, AsyncContextManager, Callable

from playwright.async_api import Browser, Error as PlaywrightError, Playwright, async_playwright

from config.sites import COSTCO, DOLLAR_GENERAL, STORES, get_site
from models import (
    BlockedByTarget, ProductRecord, SearchRequest, SiteResult, Source,
)
from platforms import (
    BaseScraper, CostcoScraper, DocumentQuery, DollarGeneralScraper,
    RenderingSession, launch_stealth_browser,
)
from policy import ALTERNATE, PRIMARY, Action, fallback_records, next_action
from result_sink import ResultSink

logger = logging.getLogger("crawler")

SessionFactory = Callable[[str], AsyncContextManager[DocumentQuery]]

# ---------------------------------------------------------------------------
# Store router
# ---------------------------------------------------------------------------

SCRAPER_MAP: dict[str, type[BaseScraper]] = {
    DOLLAR_GENERAL: DollarGeneralScraper,
    COSTCO: CostcoScraper,
}


def build_scrapers() -> dict[str, BaseScraper]:
    return {store: SCRAPER_MAP[store](get_site(store)) for store in STORES}


# ---------------------------------------------------------------------------
# Per-store attempt loop
# ---------------------------------------------------------------------------


async def crawl_site(
    scraper: BaseScraper,
    term: str,
    open_session: SessionFactory,
) -> SiteResult:
    """Run primary → alternate → fallback for one store.

    Raises ``BlockedByTarget`` as soon as an attempt lands on a block page.
    """
    store = scraper.store
    attempts = []
    route = PRIMARY

    while True:
        url = scraper.url_for(route, term)
        async with open_session(scraper.slug) as page:
            result = await scraper.scrape(page, url)
        attempts.append(result)
        action = next_action(route, result.outcome)
        logger.info(
            "[%s] %s attempt → %s (%d records) → %s",
            scraper.slug, route, result.outcome.value, len(result.records), action.value,
        )

        if action is Action.RETURN:
            source = Source.LIVE if route == PRIMARY else Source.ALTERNATE
            return SiteResult(store, list(result.records), source, attempts)

        if action is Action.RETRY_ALTERNATE:
            route = ALTERNATE
            continue

        if action is Action.RAISE_BLOCKED:
            raise BlockedByTarget(
                scraper.name, result.reason or "block page", store=store,
            )

        records = fallback_records(store)
        logger.warning(
            "[%s] No live records after %d attempt(s) — serving %d fallback records",
            scraper.slug, len(attempts), len(records),
        )
        return SiteResult(store, records, Source.FALLBACK, attempts)


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class CrawlerService:
    """Owns the shared browser and the result sink for one logical run.

    Usage::

        async with CrawlerService(sink) as crawler:
            results = await crawler.search("paper towels")

    Tests pass ``session_factory`` to swap the Playwright adapter for a
    fake page; no browser is launched in that case.
    """

    def __init__(
        self,
        sink: ResultSink,
        *,
        session_factory: SessionFactory | None = None,
        scrapers: dict[str, BaseScraper] | None = None,
    ) -> None:
        self.sink = sink
        self.scrapers = scrapers or build_scrapers()
        self._session_factory = session_factory
        self._pw: Playwright | None = None
        self._browser: Browser | None = None
        self._browser_lock = asyncio.Lock()

    async def __aenter__(self) -> "CrawlerService":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        """Release the shared browser, if one was launched.

        The Playwright driver is stopped even when closing the browser fails.
        """
        try:
            if self._browser:
                try:
                    await self._browser.close()
                except PlaywrightError as exc:
                    logger.debug("Shared browser close failed: %s", exc)
        finally:
            self._browser = None
            if self._pw:
                pw, self._pw = self._pw, None
                await pw.stop()
                logger.info("Shared browser released")

    async def _ensure_browser(self) -> Browser:
        async with self._browser_lock:
            if self._browser is None:
                self._pw = await async_playwright().start()
                self._browser = await launch_stealth_browser(self._pw)
        return self._browser

    async def _open_factory(self) -> SessionFactory:
        if self._session_factory is not None:
            return self._session_factory
        browser = await self._ensure_browser()
        return lambda slug: RenderingSession(slug, browser=browser)

    async def _run(self, request: SearchRequest) -> SiteResult:
        open_session = await self._open_factory()
        scraper = self.scrapers[request.store]
        logger.info("[%s] Searching for %r", scraper.slug, request.term)
        return await crawl_site(scraper, request.term, open_session)

    # ------------------------------------------------------------------
    # Public entry points
    # ------------------------------------------------------------------

    async def crawl_detailed(self, term: Any, site: Any) -> SiteResult:
        request = SearchRequest.create(term, site)
        result = await self._run(request)
        self.sink.insert_many(result.records)
        return result

    async def crawl(self, term: Any, site: Any) -> list[ProductRecord]:
        """Search one store and persist its records (without clearing)."""
        result = await self.crawl_detailed(term, site)
        return result.records

    async def search_detailed(self, term: Any) -> dict[str, SiteResult]:
        """Search every store concurrently after clearing stored records.

        Records of stores that finished are persisted even when another
        store was blocked; the first ``BlockedByTarget`` is then raised
        with those stores' results attached as ``exc.results``.
        """
        requests = [SearchRequest.create(term, store) for store in STORES]

        for store in STORES:
            self.sink.replace_all(store)

        outcomes = await asyncio.gather(
            *(self._run(r) for r in requests),
            return_exceptions=True,
        )

        results: dict[str, SiteResult] = {}
        errors: list[BaseException] = []
        for request, outcome in zip(requests, outcomes):
            if isinstance(outcome, BaseException):
                logger.error("[%s] Search failed: %s", request.store, outcome)
                errors.append(outcome)
                continue
            self.sink.insert_many(outcome.records)
            results[request.store] = outcome
            logger.info(
                "Found %d %s products (%s)",
                len(outcome.records), outcome.site_name, outcome.source.value,
            )

        if errors:
            blocked = [e for e in errors if isinstance(e, BlockedByTarget)]
            if blocked:
                blocked[0].results = results
                blocked[0].blocked_stores = [e.store for e in blocked]
                raise blocked[0]
            raise errors[0]
        return results

    async def search(self, term: Any) -> dict[str, list[ProductRecord]]:
        results = await self.search_detailed(term)
        return {store: result.records for store, result in results.items()}


# ---------------------------------------------------------------------------
# Module-level helpers — one browser per call
# ---------------------------------------------------------------------------


async def search(term: Any, sink: ResultSink) -> dict[str, list[ProductRecord]]:
    """Search both stores for *term*; the browser is released before returning."""
    async with CrawlerService(sink) as crawler:
        return await crawler.search(term)


async def crawl(term: Any, site: Any, sink: ResultSink) -> list[ProductRecord]:
    """Search a single store for *term*."""
    async with CrawlerService(sink) as crawler:
        return await crawler.crawl(term, site)


# ---------------------------------------------------------------------------
# Response shaping (HTTP layer contract)
# ---------------------------------------------------------------------------


def build_search_response(results: dict[str, list[ProductRecord]]) -> dict[str, Any]:
    return {
        "success": True,
        "message": "Search completed successfully",
        "data": {
            get_site(store)["response_key"]: [r.to_dict() for r in records]
            for store, records in results.items()
        },
    }


def build_crawl_response(records: list[ProductRecord]) -> dict[str, Any]:
    return {"success": True, "results": [r.to_dict() for r in records]}
