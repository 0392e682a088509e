"""
Single-attempt extraction pipeline.

One attempt walks a fixed sequence of states against one URL::

    navigate ─(timeout/error)──────────────────────────▶ TIMEOUT
       │
    settle delay
       │
    block check ─(block phrase)────────────────────────▶ BLOCKED
       │
    locate containers ─(no selector matched)───────────▶ EMPTY
       │
    extract ≤ MAX_CONTAINERS tiles ─(every tile failed)─▶ EMPTY
       │
       ▼
    SUCCESS(records)

The pipeline never raises for these outcomes.  It returns an
``AttemptResult`` and leaves retry/fallback decisions to ``policy``.
Session lifetime is owned by the caller.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Sequence

from config.sites import BLOCK_PHRASES, GOTO_TIMEOUT_MS, MAX_CONTAINERS, SETTLE_DELAY_SEC
from handlers.block_detection import detect_block
from handlers.selector_resolution import resolve
from models import AttemptResult, NavigationError, NavigationTimeout, Outcome, ProductRecord
from parser import parse_description, parse_link, parse_name, parse_price

logger = logging.getLogger(__name__)


class ExtractionPipeline:
    """Navigate → settle → block-check → extract, for one store."""

    def __init__(
        self,
        site: dict[str, Any],
        *,
        settle_delay_sec: float = SETTLE_DELAY_SEC,
        goto_timeout_ms: int = GOTO_TIMEOUT_MS,
        max_containers: int = MAX_CONTAINERS,
        block_phrases: Sequence[str] = BLOCK_PHRASES,
    ) -> None:
        self.site = site
        self.store: str = site["store"]
        self.selectors: dict[str, list[str]] = site["selectors"]
        self.settle_delay_sec = settle_delay_sec
        self.goto_timeout_ms = goto_timeout_ms
        self.max_containers = max_containers
        self.block_phrases = block_phrases

    async def run(self, page, url: str) -> AttemptResult:
        slug = page.slug

        try:
            await page.navigate(url, timeout_ms=self.goto_timeout_ms)
        except NavigationTimeout as exc:
            logger.warning("[%s] %s", slug, exc)
            return AttemptResult(Outcome.TIMEOUT, url, reason=str(exc))
        except NavigationError as exc:
            logger.warning("[%s] Navigation failed: %s", slug, exc)
            return AttemptResult(Outcome.TIMEOUT, url, reason=str(exc))

        if self.settle_delay_sec > 0:
            logger.info("[%s] Waiting %.1fs for client-side rendering…", slug, self.settle_delay_sec)
            await asyncio.sleep(self.settle_delay_sec)

        signal = await detect_block(page, self.block_phrases)
        if signal.blocked:
            await page.screenshot("blocked")
            return AttemptResult(Outcome.BLOCKED, url, reason=signal.reason)

        containers = await resolve(page, "container", self.selectors["container"])
        if containers is None:
            await page.screenshot("no_containers")
            return AttemptResult(Outcome.EMPTY, url, reason="no container selector matched")

        page_url = page.current_url or url
        records: list[ProductRecord] = []
        for index, container in enumerate(containers.elements[: self.max_containers]):
            try:
                records.append(await self.extract_record(page, container, page_url))
            except Exception as exc:
                logger.warning("[%s] Skipping tile %d: %s", slug, index, exc)

        if not records:
            return AttemptResult(Outcome.EMPTY, url, reason="every tile failed to parse")

        logger.info(
            "[%s] Extracted %d record(s) from %d container(s) via %r",
            slug, len(records), len(containers.elements), containers.selector,
        )
        return AttemptResult(Outcome.SUCCESS, url, records=tuple(records))

    async def extract_record(self, page, container: Any, page_url: str) -> ProductRecord:
        """Map one container element to a normalized record."""
        name_text = await self._field_text(page, "name", container)
        name = parse_name(name_text)

        price = parse_price(await self._field_text(page, "price", container))

        link = ""
        match = await resolve(page, "link", self.selectors["link"], within=container)
        if match is not None:
            link = parse_link(await page.read_attribute(match.first, "href"), page_url)

        description = parse_description(
            await self._field_text(page, "description", container),
            name,
            self.site["description_template"],
        )

        return ProductRecord(
            name=name,
            price=price,
            description=description,
            url=link,
            store=self.store,
        )

    async def _field_text(self, page, role: str, container: Any) -> str | None:
        match = await resolve(page, role, self.selectors[role], within=container)
        if match is None:
            return None
        return await page.read_text(match.first)
