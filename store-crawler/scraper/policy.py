"""
Retry / alternate-route and fallback-data policy.

Decisions are a lookup on (route, outcome)::

    route      SUCCESS   EMPTY       TIMEOUT     BLOCKED
    primary    return    alternate   alternate   raise
    alternate  return    fallback    fallback    raise

A block is final: probing again from the same fingerprint only makes
the next block more likely, and placeholder rows would hide the outage
from the caller.  Everything else ends in live records or the store's
fallback table, so a non-blocked search never comes back empty.
"""

from __future__ import annotations

import enum
from decimal import Decimal

from config.fallback_products import FALLBACK_PRODUCTS
from models import Outcome, ProductRecord

PRIMARY = "primary"
ALTERNATE = "alternate"

ROUTES = (PRIMARY, ALTERNATE)


class Action(str, enum.Enum):
    RETURN = "return"
    RETRY_ALTERNATE = "retry_alternate"
    FALLBACK = "fallback"
    RAISE_BLOCKED = "raise_blocked"


TRANSITIONS: dict[tuple[str, Outcome], Action] = {
    (PRIMARY, Outcome.SUCCESS): Action.RETURN,
    (PRIMARY, Outcome.EMPTY): Action.RETRY_ALTERNATE,
    (PRIMARY, Outcome.TIMEOUT): Action.RETRY_ALTERNATE,
    (PRIMARY, Outcome.BLOCKED): Action.RAISE_BLOCKED,
    (ALTERNATE, Outcome.SUCCESS): Action.RETURN,
    (ALTERNATE, Outcome.EMPTY): Action.FALLBACK,
    (ALTERNATE, Outcome.TIMEOUT): Action.FALLBACK,
    (ALTERNATE, Outcome.BLOCKED): Action.RAISE_BLOCKED,
}


def next_action(route: str, outcome: Outcome) -> Action:
    """Look up what to do after *route* finished with *outcome*."""
    try:
        return TRANSITIONS[(route, outcome)]
    except KeyError:
        raise ValueError(f"No transition for route={route!r} outcome={outcome!r}") from None


def fallback_records(store: str) -> list[ProductRecord]:
    """Build the fixed placeholder record set for *store*, in table order."""
    return [
        ProductRecord(
            name=row["name"],
            price=Decimal(row["price"]),
            description=row["description"],
            url=row["url"],
            store=store,
        )
        for row in FALLBACK_PRODUCTS[store]
    ]
