"""
Result sinks — where finished record sets are persisted.

``SupabaseSink`` writes to the ``products`` table (one row per record,
keyed by ``store``).  ``MemorySink`` keeps rows in process; the CLI uses
it for dry runs and the test suite uses it everywhere.
"""

from __future__ import annotations

import abc
import logging
import os
from typing import Any

from dotenv import load_dotenv
from supabase import Client, create_client

from models import CrawlerError, ProductRecord

load_dotenv()

PRODUCTS_TABLE = os.getenv("PRODUCTS_TABLE", "products")

logger = logging.getLogger(__name__)


class ResultSink(abc.ABC):
    """Persistence collaborator for extracted records."""

    @abc.abstractmethod
    def replace_all(self, store: str) -> None:
        """Clear previously stored records for *store* before a fresh search."""

    @abc.abstractmethod
    def insert(self, record: ProductRecord) -> None:
        ...

    def insert_many(self, records: list[ProductRecord]) -> None:
        for record in records:
            self.insert(record)


class MemorySink(ResultSink):
    """In-process sink: ``rows[store]`` holds records in insertion order."""

    def __init__(self) -> None:
        self.rows: dict[str, list[ProductRecord]] = {}

    def replace_all(self, store: str) -> None:
        self.rows[store] = []

    def insert(self, record: ProductRecord) -> None:
        self.rows.setdefault(record.store, []).append(record)

    def all_records(self) -> list[ProductRecord]:
        return [r for records in self.rows.values() for r in records]


class SupabaseSink(ResultSink):
    """Writes records to Supabase, or only logs them when ``dry_run``."""

    def __init__(
        self,
        db: Client | Any,
        *,
        table: str = PRODUCTS_TABLE,
        dry_run: bool = False,
    ) -> None:
        self.db = db
        self.table = table
        self.dry_run = dry_run

    @classmethod
    def from_env(cls, *, dry_run: bool = False) -> "SupabaseSink":
        url = os.getenv("SUPABASE_URL", "")
        key = os.getenv("SUPABASE_SERVICE_KEY", "")
        if dry_run:
            return cls(None, dry_run=True)
        if not url or not key:
            raise CrawlerError("SUPABASE_URL and SUPABASE_SERVICE_KEY must be set")
        return cls(create_client(url, key))

    def replace_all(self, store: str) -> None:
        if self.dry_run:
            logger.info("[DRY RUN] Would clear %s rows for store=%s", self.table, store)
            return
        result = self.db.table(self.table).delete().eq("store", store).execute()
        count = len(result.data) if result.data else 0
        logger.info("Cleared %d %s row(s) for store=%s", count, self.table, store)

    def insert(self, record: ProductRecord) -> None:
        self.insert_many([record])

    def insert_many(self, records: list[ProductRecord]) -> None:
        if not records:
            return
        rows = [_to_row(r) for r in records]
        if self.dry_run:
            logger.info("[DRY RUN] Would insert %d %s row(s)", len(rows), self.table)
            return
        self.db.table(self.table).insert(rows).execute()
        logger.info("Inserted %d %s row(s) for store=%s", len(rows), self.table, records[0].store)


def _to_row(record: ProductRecord) -> dict[str, Any]:
    # Decimal is not JSON serializable; the column is numeric(10, 2).
    row = record.to_dict()
    row["price"] = str(record.price)
    return row
