"""Tests for the command-line orchestrator (dry run, fake sessions)."""

from __future__ import annotations

import json

import pytest

import main
from conftest import URLS, FakeSessionFactory
from config.sites import COSTCO, DOLLAR_GENERAL
from crawler import CrawlerService


@pytest.fixture
def fake_crawler(monkeypatch, scrapers):
    """Route main.py's CrawlerService through fake sessions."""

    def _install(routes=None) -> FakeSessionFactory:
        sessions = FakeSessionFactory(routes)
        monkeypatch.setattr(
            main, "CrawlerService",
            lambda sink: CrawlerService(sink, session_factory=sessions, scrapers=scrapers),
        )
        return sessions

    return _install


def test_missing_term_exit_code():
    assert main.main(["", "--dry-run"]) == main.EXIT_INVALID


def test_unknown_store_exit_code():
    assert main.main(["towels", "--site", "walmart", "--dry-run"]) == main.EXIT_INVALID


def test_blocked_exit_code(fake_crawler):
    fake_crawler({URLS[COSTCO]["primary"]: {"title": "Access Denied"}})

    assert main.main(["paper towels", "--site", "costco", "--dry-run"]) == main.EXIT_BLOCKED


def test_search_prints_payload(fake_crawler, capsys):
    fake_crawler()

    assert main.main(["paper towels", "--json", "--dry-run"]) == main.EXIT_OK

    payload = json.loads(capsys.readouterr().out)
    assert payload["success"] is True
    assert payload["data"]["dollarGeneral"][0]["name"] == "Dollar General Paper Towels"
    assert payload["data"]["costco"][0]["price"] == 23.99


@pytest.mark.asyncio
async def test_run_single_store(fake_crawler, results_page):
    sessions = fake_crawler({URLS[COSTCO]["primary"]: results_page(COSTCO)})

    payload = await main.run("paper towels", "costco", dry_run=True)

    assert payload["success"] is True
    assert payload["results"][0]["store"] == COSTCO
    assert sessions.opened == ["costco"]


@pytest.mark.asyncio
async def test_blocked_search_still_reports_finished_store(fake_crawler, results_page, monkeypatch):
    captured = {}

    def _capture(db, results, **kwargs):
        captured["results"] = results
        captured["blocked"] = kwargs["blocked_stores"]
        return {}

    monkeypatch.setattr(main, "collect_run_metrics", _capture)
    fake_crawler({
        URLS[DOLLAR_GENERAL]["primary"]: results_page(DOLLAR_GENERAL),
        URLS[COSTCO]["primary"]: {"title": "Access Denied"},
    })

    with pytest.raises(main.BlockedByTarget):
        await main.run("paper towels", dry_run=True)

    assert set(captured["results"]) == {DOLLAR_GENERAL}
    assert captured["blocked"] == [COSTCO]
