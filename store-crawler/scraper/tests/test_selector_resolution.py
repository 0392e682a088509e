"""Tests for first-match-wins selector resolution."""

from __future__ import annotations

import pytest

from conftest import FakeElement, FakePage
from handlers.selector_resolution import resolve

pytestmark = pytest.mark.asyncio

URL = "https://www.example-store.test/search"


async def _page(elements, **route) -> FakePage:
    page = FakePage("test-store", {URL: {"elements": elements, **route}})
    await page.navigate(URL)
    return page


async def test_first_matching_candidate_wins_even_if_later_matches_more():
    page = await _page({
        ".a": [FakeElement("one")],
        ".b": [FakeElement("x"), FakeElement("y"), FakeElement("z")],
    })

    match = await resolve(page, "container", [".a", ".b"])

    assert match.selector == ".a"
    assert len(match.elements) == 1
    assert page.queries == [".a"]


async def test_falls_through_to_later_candidate():
    page = await _page({".b": [FakeElement("x"), FakeElement("y")]})

    match = await resolve(page, "container", [".a", ".b", ".c"])

    assert match.selector == ".b"
    assert match.first.text == "x"
    assert page.queries == [".a", ".b"]


async def test_not_found_when_nothing_matches():
    page = await _page({".other": [FakeElement("x")]})

    assert await resolve(page, "container", [".a", ".b"]) is None


async def test_raising_selector_counts_as_miss():
    page = await _page({"h3": [FakeElement("Name")]}, invalid=["[[broken"])

    match = await resolve(page, "name", ["[[broken", "h3"])

    assert match.selector == "h3"


async def test_scoped_to_container():
    inner = FakeElement("Kirkland Towels")
    tile = FakeElement(children={"h3": [inner]})
    page = await _page({"h3": [FakeElement("Page heading")]})

    match = await resolve(page, "name", ["h3"], within=tile)

    assert match.first is inner


async def test_empty_candidate_list():
    page = await _page({})

    assert await resolve(page, "price", []) is None
