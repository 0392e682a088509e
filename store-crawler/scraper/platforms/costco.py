"""
Scraper for Costco catalog search.

Flow:
  1. Primary route: ``/CatalogSearch?dept=All&keyword=<term>``.
  2. Alternate route: ``/s?keyword=<term>`` — the newer search front end,
     which renders ``[data-testid="ProductTile"]`` cards instead of the
     legacy ``.product-tile-set`` grid.

Costco's bot manager answers automated traffic with an "Access Denied"
page or an HTTP/2 protocol error.  The former is a block (no retry, no
fallback); the latter surfaces as a navigation failure and goes through
the alternate route like any other empty attempt.
"""

from __future__ import annotations

import logging
import re
from urllib.parse import quote_plus

from config.sites import COSTCO
from .base import BaseScraper

logger = logging.getLogger(__name__)

_RE_SPACES = re.compile(r"\s+")


class CostcoScraper(BaseScraper):
    """Catalog-search scraper for costco.com."""

    store = COSTCO

    def search_url(self, term: str) -> str:
        return self.site["search_url"].format(term=quote_plus(term))

    def alternate_url(self, term: str) -> str:
        # The new search front end only accepts single-spaced keywords.
        keyword = _RE_SPACES.sub(" ", term).strip()
        return self.site["alternate_url"].format(term=quote_plus(keyword))
