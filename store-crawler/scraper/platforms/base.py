"""
Rendering sessions: the document-query capability and its Playwright adapter.

The extraction code never touches Playwright directly.  It talks to a
``DocumentQuery`` (navigate, query elements, read text and attributes,
read page metadata, take a best-effort screenshot) so it can run
against a fake page in tests and against a real browser in production.

Stealth stack (applied to every session):
  1. Real Chrome binary via ``channel="chrome"`` when installed, bundled
     Chromium otherwise.
  2. playwright-stealth — patches webdriver, plugins, languages,
     chrome.runtime, permissions and similar detection vectors.
  3. Analytics domain blocking.
  4. Fixed 1920x1080 viewport, desktop Chrome user agent and a
     navigation header set.
"""

from __future__ import annotations

import abc
import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from playwright.async_api import (
    async_playwright,
    Browser,
    BrowserContext,
    Error as PlaywrightError,
    Page,
    Playwright,
    TimeoutError as PlaywrightTimeout,
)
from playwright_stealth import Stealth

from config.sites import (
    BLOCKED_ANALYTICS_PATTERNS, BROWSER_ARGS, BROWSER_CHANNEL,
    EXTRA_HTTP_HEADERS, GOTO_TIMEOUT_MS, LOCALE, TIMEZONE_ID, USER_AGENT,
    VIEWPORT, WAIT_UNTIL,
)
from models import AttemptResult, NavigationError, NavigationTimeout
from pipeline import ExtractionPipeline

DEBUG_DIR = Path(os.getenv("DEBUG_DIR", "debug_screenshots"))
SCREENSHOTS_ENABLED = os.getenv("SCREENSHOTS", "true").lower() == "true"

_STEALTH = Stealth()

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Browser launch helper — shared between standalone sessions and crawler.py
# ---------------------------------------------------------------------------

async def launch_stealth_browser(
    pw: Playwright,
    *,
    extra_args: list[str] | None = None,
) -> Browser:
    """Launch a headless browser, preferring the real Chrome channel."""
    args = BROWSER_ARGS + (extra_args or [])

    try:
        browser = await pw.chromium.launch(
            headless=True,
            channel=BROWSER_CHANNEL,
            args=args,
        )
        logger.info("Browser launched: channel=%s", BROWSER_CHANNEL)
        return browser
    except PlaywrightError as exc:
        logger.warning(
            "Chrome channel %r unavailable (%s) — falling back to bundled "
            "Chromium.  Run 'playwright install chrome' for a real TLS "
            "fingerprint.",
            BROWSER_CHANNEL, exc,
        )

    browser = await pw.chromium.launch(headless=True, args=args)
    logger.info("Browser launched: bundled Chromium (fallback)")
    return browser


# ---------------------------------------------------------------------------
# Capability interface
# ---------------------------------------------------------------------------


class DocumentQuery(abc.ABC):
    """Read-only view of one rendered page.

    ``within`` scopes a query to a previously returned element (a product
    container); ``None`` queries the whole document.
    """

    slug: str

    @abc.abstractmethod
    async def navigate(self, url: str, *, timeout_ms: int = GOTO_TIMEOUT_MS) -> None:
        """Load *url* and return once the network has settled.

        Raises ``NavigationTimeout`` when the timeout elapses first and
        ``NavigationError`` for any other load failure.
        """

    @abc.abstractmethod
    async def query_all(self, selector: str, within: Any = None) -> list[Any]:
        ...

    @abc.abstractmethod
    async def read_text(self, element: Any) -> str:
        ...

    @abc.abstractmethod
    async def read_attribute(self, element: Any, name: str) -> str | None:
        ...

    @abc.abstractmethod
    async def visible_text(self) -> str:
        """Rendered text of the whole document body."""

    @abc.abstractmethod
    async def title(self) -> str:
        ...

    @property
    @abc.abstractmethod
    def current_url(self) -> str:
        ...

    async def screenshot(self, label: str) -> None:
        """Capture a debug screenshot.  Never raises."""


# ---------------------------------------------------------------------------
# Playwright adapter
# ---------------------------------------------------------------------------


class RenderingSession(DocumentQuery):
    """One browser context + page, released on every exit path.

    Usage (standalone — launches its own browser)::

        async with RenderingSession("costco") as session:
            await session.navigate(url)

    Usage (shared browser — one browser, one context per attempt)::

        browser = await launch_stealth_browser(pw)
        async with RenderingSession("costco", browser=browser) as session:
            ...
    """

    def __init__(self, slug: str, *, browser: Browser | None = None) -> None:
        self.slug = slug
        self._shared_browser = browser

        # Set by __aenter__
        self._pw: Playwright | None = None
        self._browser: Browser | None = None
        self._context: BrowserContext | None = None
        self._page: Page | None = None

    # ------------------------------------------------------------------
    # Async context manager — context/page lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> "RenderingSession":
        try:
            await self._open()
        except BaseException:
            await self.close()
            raise
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def _open(self) -> None:
        if self._shared_browser:
            self._browser = self._shared_browser
        else:
            self._pw = await async_playwright().start()
            self._browser = await launch_stealth_browser(self._pw)

        self._context = await self._browser.new_context(
            viewport=VIEWPORT,
            user_agent=USER_AGENT,
            extra_http_headers=EXTRA_HTTP_HEADERS,
            locale=LOCALE,
            timezone_id=TIMEZONE_ID,
        )
        await _STEALTH.apply_stealth_async(self._context)
        self._page = await self._context.new_page()

        async def _block_route(route):
            await route.abort()

        for pattern in BLOCKED_ANALYTICS_PATTERNS:
            await self._page.route(pattern, _block_route)

        logger.info("[%s] Session ready (shared=%s)", self.slug, bool(self._shared_browser))

    async def close(self) -> None:
        """Release page and context, plus the browser when we own it."""
        for obj in (self._page, self._context):
            if obj:
                try:
                    await obj.close()
                except PlaywrightError as exc:
                    logger.debug("[%s] Close failed: %s", self.slug, exc)
        self._page = None
        self._context = None
        if not self._shared_browser:
            if self._browser:
                try:
                    await self._browser.close()
                except PlaywrightError as exc:
                    logger.debug("[%s] Browser close failed: %s", self.slug, exc)
            if self._pw:
                await self._pw.stop()
        self._browser = None
        self._pw = None
        logger.info("[%s] Session closed", self.slug)

    @property
    def page(self) -> Page:
        assert self._page is not None, "RenderingSession must be used as an async context manager"
        return self._page

    # ------------------------------------------------------------------
    # DocumentQuery
    # ------------------------------------------------------------------

    async def navigate(self, url: str, *, timeout_ms: int = GOTO_TIMEOUT_MS) -> None:
        logger.info("[%s] Navigating to %s (wait_until=%s)", self.slug, url, WAIT_UNTIL)
        try:
            await self.page.goto(url, wait_until=WAIT_UNTIL, timeout=timeout_ms)
        except PlaywrightTimeout as exc:
            raise NavigationTimeout(
                url, f"Timed out after {timeout_ms} ms loading {url}",
            ) from exc
        except PlaywrightError as exc:
            raise NavigationError(url, f"Failed to load {url}: {exc}") from exc

    async def query_all(self, selector: str, within: Any = None) -> list[Any]:
        root = within if within is not None else self.page
        return await root.query_selector_all(selector)

    async def read_text(self, element: Any) -> str:
        return await element.inner_text()

    async def read_attribute(self, element: Any, name: str) -> str | None:
        return await element.get_attribute(name)

    async def visible_text(self) -> str:
        return await self.page.inner_text("body")

    async def title(self) -> str:
        return await self.page.title()

    @property
    def current_url(self) -> str:
        return self.page.url

    async def screenshot(self, label: str) -> None:
        """Save ``DEBUG_DIR/<slug>_<label>_<timestamp>.png``.

        Errors are logged and swallowed so this never breaks a crawl.
        """
        if not SCREENSHOTS_ENABLED or self._page is None:
            return
        stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
        path = DEBUG_DIR / f"{self.slug}_{label}_{stamp}.png"
        try:
            DEBUG_DIR.mkdir(parents=True, exist_ok=True)
            await self._page.screenshot(path=str(path), full_page=True)
            logger.info("[%s] Screenshot saved: %s (url=%s)", self.slug, path, self._page.url)
        except Exception as exc:
            logger.warning("[%s] Failed to save screenshot %r: %s", self.slug, label, exc)


# ---------------------------------------------------------------------------
# Store scrapers
# ---------------------------------------------------------------------------


class BaseScraper(abc.ABC):
    """Skeleton shared by both store integrations.

    A scraper knows how to build its two search URLs and runs the
    extraction pipeline against a page it is handed.  It owns no browser
    state, so one instance can serve several attempts.
    """

    store: str

    def __init__(
        self,
        site: dict[str, Any],
        *,
        pipeline: ExtractionPipeline | None = None,
    ) -> None:
        self.site = site
        self.name: str = site["name"]
        self.slug: str = site["slug"]
        self.pipeline = pipeline or ExtractionPipeline(site)

    @abc.abstractmethod
    def search_url(self, term: str) -> str:
        """Primary query-string search URL."""

    @abc.abstractmethod
    def alternate_url(self, term: str) -> str:
        """Differently shaped URL for the same term, tried once on an empty result."""

    def url_for(self, route: str, term: str) -> str:
        if route == "alternate":
            return self.alternate_url(term)
        return self.search_url(term)

    async def scrape(self, page: DocumentQuery, url: str) -> AttemptResult:
        """Run one extraction attempt against *url* on *page*."""
        logger.info("[%s] Attempt → %s", self.slug, url)
        return await self.pipeline.run(page, url)
