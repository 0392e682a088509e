"""Shared fixtures for the store crawler test suite."""

from __future__ import annotations

import sys
from contextlib import asynccontextmanager
from decimal import Decimal
from pathlib import Path
from typing import Any

import pytest

# Ensure the scraper modules are importable from tests/
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from config.sites import COSTCO, DOLLAR_GENERAL, get_site
from crawler import SCRAPER_MAP
from models import NavigationError, NavigationTimeout, ProductRecord
from pipeline import ExtractionPipeline
from platforms import DocumentQuery
from result_sink import MemorySink

TERM = "paper towels"

URLS = {
    DOLLAR_GENERAL: {
        "primary": "https://www.dollargeneral.com/search?text=paper+towels",
        "alternate": "https://www.dollargeneral.com/s/paper%20towels",
    },
    COSTCO: {
        "primary": "https://www.costco.com/CatalogSearch?dept=All&keyword=paper+towels",
        "alternate": "https://www.costco.com/s?keyword=paper+towels",
    },
}


# ---------------------------------------------------------------------------
# Fake rendering capability
# ---------------------------------------------------------------------------


class FakeElement:
    """A DOM element: text, attributes, and child elements keyed by selector."""

    def __init__(
        self,
        text: str = "",
        attrs: dict[str, str] | None = None,
        children: dict[str, list["FakeElement"]] | None = None,
        *,
        broken: bool = False,
    ) -> None:
        self.text = text
        self.attrs = attrs or {}
        self.children = children or {}
        self.broken = broken


class FakePage(DocumentQuery):
    """Serves canned documents keyed by URL.

    A route is a dict with any of: ``elements`` ({selector: [FakeElement]}),
    ``text``, ``title``, ``final_url``, ``timeout`` (bool), ``error`` (str),
    ``invalid`` (selectors that raise).  Unknown URLs render an empty page.
    """

    def __init__(self, slug: str, routes: dict[str, dict[str, Any]]) -> None:
        self.slug = slug
        self.routes = routes
        self.visited: list[str] = []
        self.screenshots: list[str] = []
        self.queries: list[str] = []
        self._route: dict[str, Any] = {}
        self._url = "about:blank"

    async def navigate(self, url: str, *, timeout_ms: int = 60_000) -> None:
        self.visited.append(url)
        route = self.routes.get(url, {})
        if route.get("timeout"):
            raise NavigationTimeout(url, f"Timed out after {timeout_ms} ms loading {url}")
        if route.get("error"):
            raise NavigationError(url, route["error"])
        self._route = route
        self._url = route.get("final_url", url)

    async def query_all(self, selector: str, within: Any = None) -> list[Any]:
        self.queries.append(selector)
        if selector in self._route.get("invalid", ()):
            raise ValueError(f"invalid selector {selector!r}")
        source = within.children if within is not None else self._route.get("elements", {})
        return list(source.get(selector, []))

    async def read_text(self, element: FakeElement) -> str:
        if element.broken:
            raise RuntimeError("element is detached from the DOM")
        return element.text

    async def read_attribute(self, element: FakeElement, name: str) -> str | None:
        return element.attrs.get(name)

    async def visible_text(self) -> str:
        return self._route.get("text", "Search results")

    async def title(self) -> str:
        return self._route.get("title", "Search")

    @property
    def current_url(self) -> str:
        return self._url

    async def screenshot(self, label: str) -> None:
        self.screenshots.append(label)


class FakeSessionFactory:
    """Session factory that records every open and close, per store slug."""

    def __init__(self, routes: dict[str, dict[str, Any]] | None = None) -> None:
        self.routes = routes or {}
        self.opened: list[str] = []
        self.closed: list[str] = []
        self.pages: list[FakePage] = []

    def __call__(self, slug: str):
        return self._session(slug)

    @asynccontextmanager
    async def _session(self, slug: str):
        page = FakePage(slug, self.routes)
        self.opened.append(slug)
        self.pages.append(page)
        try:
            yield page
        finally:
            self.closed.append(slug)

    def visited(self, slug: str) -> list[str]:
        return [url for page in self.pages if page.slug == slug for url in page.visited]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def make_tile():
    """Factory for a product container using the store's first selectors.

    Pass ``None`` for a field to leave it out of the tile.
    """

    def _make(
        store: str = DOLLAR_GENERAL,
        *,
        name: str | None = "Bounty Paper Towels",
        price: str | None = "$8.95",
        href: str | None = "/p/bounty-paper-towels",
        description: str | None = None,
        broken_name: bool = False,
    ) -> FakeElement:
        selectors = get_site(store)["selectors"]
        children: dict[str, list[FakeElement]] = {}
        if name is not None:
            children[selectors["name"][0]] = [FakeElement(name, broken=broken_name)]
        if price is not None:
            children[selectors["price"][0]] = [FakeElement(price)]
        if href is not None:
            children[selectors["link"][0]] = [FakeElement("", {"href": href})]
        if description is not None:
            children[selectors["description"][0]] = [FakeElement(description)]
        return FakeElement(name or "", children=children)

    return _make


@pytest.fixture
def results_page(make_tile):
    """Factory for a route dict listing *tiles* under the store's first container selector."""

    def _make(store: str = DOLLAR_GENERAL, tiles: list[FakeElement] | None = None, **extra):
        if tiles is None:
            tiles = [make_tile(store)]
        container = get_site(store)["selectors"]["container"][0]
        return {"elements": {container: tiles}, **extra}

    return _make


@pytest.fixture
def make_record():
    """Factory that builds ProductRecord objects with sensible defaults."""

    def _make(
        *,
        name: str = "Bounty Paper Towels",
        price: str = "8.95",
        description: str = "Select-A-Size, 6 double rolls",
        url: str = "https://www.dollargeneral.com/p/bounty-paper-towels",
        store: str = DOLLAR_GENERAL,
    ) -> ProductRecord:
        return ProductRecord(
            name=name,
            price=Decimal(price),
            description=description,
            url=url,
            store=store,
        )

    return _make


@pytest.fixture
def scrapers():
    """Both store scrapers with the settle delay switched off."""
    return {
        store: cls(get_site(store), pipeline=ExtractionPipeline(get_site(store), settle_delay_sec=0))
        for store, cls in SCRAPER_MAP.items()
    }


@pytest.fixture
def sink():
    return MemorySink()


@pytest.fixture
def sessions():
    return FakeSessionFactory()
