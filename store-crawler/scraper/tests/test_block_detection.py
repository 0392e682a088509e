"""Tests for anti-bot page detection."""

from __future__ import annotations

import pytest

from conftest import FakePage
from handlers.block_detection import check_text, detect_block

URL = "https://www.costco.com/CatalogSearch?dept=All&keyword=tv"


class TestCheckText:

    def test_clean_page(self):
        signal = check_text("Showing 48 results for paper towels")
        assert not signal.blocked
        assert signal.reason is None

    def test_phrase_is_case_insensitive(self):
        signal = check_text("ACCESS DENIED - Reference #18.2f")
        assert signal.blocked
        assert signal.reason == "access denied"

    def test_first_configured_phrase_reported(self):
        signal = check_text("Security check: solve the CAPTCHA to continue")
        # "captcha" precedes "security check" in the phrase list
        assert signal.reason == "captcha"

    def test_custom_phrases(self):
        assert check_text("Hold tight", ["hold tight"]).blocked
        assert not check_text("Access denied", ["hold tight"]).blocked

    def test_empty_text(self):
        assert not check_text("").blocked


@pytest.mark.asyncio
class TestDetectBlock:

    async def test_reads_title(self):
        page = FakePage("costco", {URL: {"title": "Access Denied", "text": ""}})
        await page.navigate(URL)

        signal = await detect_block(page)

        assert signal.blocked
        assert signal.reason == "access denied"

    async def test_reads_body_text(self):
        page = FakePage("costco", {URL: {"text": "Please verify you are a human"}})
        await page.navigate(URL)

        assert (await detect_block(page)).blocked

    async def test_normal_results_page(self):
        page = FakePage("costco", {URL: {"title": "Costco", "text": "48 results"}})
        await page.navigate(URL)

        assert not (await detect_block(page)).blocked

    async def test_unreadable_page_is_not_blocked(self):
        class _Unreadable(FakePage):
            async def title(self):
                raise RuntimeError("target closed")

            async def visible_text(self):
                raise RuntimeError("target closed")

        page = _Unreadable("costco", {})
        await page.navigate(URL)

        assert not (await detect_block(page)).blocked
