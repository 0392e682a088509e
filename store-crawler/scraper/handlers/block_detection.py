"""
Anti-bot page detection.

Both stores sit behind bot management (Akamai on Costco, PerimeterX-style
interstitials on Dollar General).  A blocked request still returns a 200
with a challenge page, so the only reliable signal is the rendered text.

``check_text`` is the pure classifier; ``detect_block`` reads the page
and feeds it through.  Phrases live in ``config.sites.BLOCK_PHRASES``.
"""

from __future__ import annotations

import logging
from typing import Iterable

from config.sites import BLOCK_PHRASES
from models import BlockSignal

logger = logging.getLogger(__name__)


def check_text(text: str, phrases: Iterable[str] = BLOCK_PHRASES) -> BlockSignal:
    """Return ``Blocked(phrase)`` for the first phrase found in *text*."""
    lowered = (text or "").lower()
    for phrase in phrases:
        if phrase.lower() in lowered:
            return BlockSignal.block(phrase)
    return BlockSignal.not_blocked()


async def detect_block(page, phrases: Iterable[str] = BLOCK_PHRASES) -> BlockSignal:
    """Check the page title and visible body text for block phrases.

    A page whose text cannot be read is treated as not blocked; the
    container lookup that follows will come back empty and the retry
    policy takes over from there.
    """
    chunks: list[str] = []
    try:
        chunks.append(await page.title())
    except Exception as exc:
        logger.debug("[%s] Could not read title: %s", page.slug, exc)
    try:
        chunks.append(await page.visible_text())
    except Exception as exc:
        logger.debug("[%s] Could not read body text: %s", page.slug, exc)

    signal = check_text(" ".join(chunks), phrases)
    if signal.blocked:
        logger.warning(
            "[%s] Block page detected (%r) at %s",
            page.slug, signal.reason, page.current_url,
        )
    return signal
