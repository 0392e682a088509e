"""
Scraper for Dollar General product search.

Flow:
  1. Primary route: ``/search?text=<term>`` — the storefront's search
     results page.  Tiles are rendered client-side once the search API
     responds, hence the network-idle wait and the settle delay.
  2. Alternate route: ``/s/<term>`` — the path-style listing used by
     landing pages.  Served from a different cache tier and sometimes
     renders when the search page comes back empty.

Most runs against the live site end on the fallback table; the tile
markup changes often and the selector lists in ``config.sites`` lag it.
"""

from __future__ import annotations

import logging
from urllib.parse import quote, quote_plus

from config.sites import DOLLAR_GENERAL
from .base import BaseScraper

logger = logging.getLogger(__name__)


class DollarGeneralScraper(BaseScraper):
    """Search-results scraper for dollargeneral.com."""

    store = DOLLAR_GENERAL

    def search_url(self, term: str) -> str:
        return self.site["search_url"].format(term=quote_plus(term))

    def alternate_url(self, term: str) -> str:
        # Path segments take %20 rather than "+" for spaces.
        return self.site["alternate_url"].format(term=quote(term, safe=""))
