"""
First-match-wins selector resolution.

Candidate lists are ordered from most specific to most generic.  The
first selector that matches at least one element wins and the rest are
never tried, even if a later one would match more elements.  A broad
selector like ``[class*="price"]`` happily matches badges and strike-
through prices, so precision beats coverage here.

The same resolver finds product containers on the page and the fields
inside each container.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Sequence

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SelectorMatch:
    """The winning selector for a role and the elements it matched."""

    role: str
    selector: str
    elements: list[Any]

    @property
    def first(self) -> Any:
        """The first element the winning selector matched."""
        return self.elements[0]


async def resolve(
    page,
    role: str,
    candidates: Sequence[str],
    *,
    within: Any = None,
) -> SelectorMatch | None:
    """Return the first candidate that matches, or ``None`` (not found).

    A selector that raises (invalid syntax, detached element) counts as a
    miss and resolution moves on to the next candidate.
    """
    for selector in candidates:
        try:
            elements = await page.query_all(selector, within=within)
        except Exception as exc:
            logger.debug(
                "[%s] %s selector %r failed: %s", page.slug, role, selector, exc,
            )
            continue
        if elements:
            if within is None:
                logger.info(
                    "[%s] %s matched %r → %d element(s)",
                    page.slug, role, selector, len(elements),
                )
            return SelectorMatch(role=role, selector=selector, elements=list(elements))

    if within is None:
        logger.info("[%s] No %s selector matched (%d tried)", page.slug, role, len(candidates))
    return None
