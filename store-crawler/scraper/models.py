"""Domain types shared by the extraction pipeline, the policies and the sinks."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from config.sites import SITES, resolve_store


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class CrawlerError(RuntimeError):
    """Base class for every error raised by the crawler."""


class ValidationError(CrawlerError):
    """Raised when a caller passes a missing or malformed argument."""


class InvalidSiteError(ValidationError):
    """Raised when the requested store is not one of the known stores."""

    def __init__(self, site: Any) -> None:
        super().__init__(f"Invalid store specified: {site!r}")
        self.site = site


class NavigationError(CrawlerError):
    """Raised when a page cannot be loaded."""

    def __init__(self, url: str, message: str) -> None:
        super().__init__(message)
        self.url = url


class NavigationTimeout(NavigationError):
    """Raised when the network does not settle within the navigation timeout."""


class BlockedByTarget(CrawlerError):
    """Raised when a store serves an anti-bot page instead of results.

    ``site`` is the display name used in the message, ``store`` the store
    id.  When raised from a multi-store search, ``results`` holds the
    ``SiteResult`` of every store that finished and ``blocked_stores``
    every store that was blocked.
    """

    def __init__(self, site: str, reason: str, *, store: str | None = None) -> None:
        super().__init__(
            f"Access to {site} was blocked ({reason}). Please try again later."
        )
        self.site = site
        self.reason = reason
        self.store = store
        self.results: dict[str, SiteResult] = {}
        self.blocked_stores: list[str] = [store] if store else []


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SearchRequest:
    """A single "search store S for term T" invocation."""

    term: str
    store: str

    @classmethod
    def create(cls, term: Any, site: Any) -> "SearchRequest":
        """Validate raw caller input and build a request."""
        term = validate_term(term)
        store = resolve_store(site) if isinstance(site, str) else None
        if store is None:
            raise InvalidSiteError(site)
        return cls(term=term, store=store)


def validate_term(term: Any) -> str:
    """Return the trimmed search term or raise ``ValidationError``."""
    if not isinstance(term, str) or not term.strip():
        raise ValidationError("Product name is required")
    return term.strip()


@dataclass(frozen=True, slots=True)
class ProductRecord:
    """One product listing, extracted live or taken from the fallback table."""

    name: str
    price: Decimal
    description: str
    url: str
    store: str

    def __post_init__(self) -> None:
        if self.price < 0:
            raise ValueError(f"price must be >= 0, got {self.price}")

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready form, with the price as a float."""
        return {
            "name": self.name,
            "price": float(self.price),
            "description": self.description,
            "url": self.url,
            "store": self.store,
        }


@dataclass(frozen=True, slots=True)
class BlockSignal:
    """Result of checking a rendered page for anti-bot signatures."""

    blocked: bool
    reason: str | None = None

    @classmethod
    def not_blocked(cls) -> "BlockSignal":
        """A clean page."""
        return cls(blocked=False)

    @classmethod
    def block(cls, reason: str) -> "BlockSignal":
        """A block page, tagged with the signature that matched."""
        return cls(blocked=True, reason=reason)


# ---------------------------------------------------------------------------
# Attempt / site outcomes
# ---------------------------------------------------------------------------


class Outcome(str, enum.Enum):
    """Terminal state of a single extraction attempt."""

    SUCCESS = "success"
    EMPTY = "empty"
    BLOCKED = "blocked"
    TIMEOUT = "timeout"


class Source(str, enum.Enum):
    """Where the records of a site result came from."""

    LIVE = "live"
    ALTERNATE = "alternate"
    FALLBACK = "fallback"


@dataclass(frozen=True, slots=True)
class AttemptResult:
    """What one navigate-and-extract pass produced."""

    outcome: Outcome
    url: str
    records: tuple[ProductRecord, ...] = ()
    reason: str | None = None


@dataclass(slots=True)
class SiteResult:
    """Final answer for one store, plus how it was obtained."""

    store: str
    records: list[ProductRecord]
    source: Source
    attempts: list[AttemptResult] = field(default_factory=list)

    @property
    def site_name(self) -> str:
        return SITES[self.store]["name"]
