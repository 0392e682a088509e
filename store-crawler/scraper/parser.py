"""
Field normalization for extracted product tiles.

Every helper takes raw strings read from the DOM and never raises: a
field that cannot be parsed falls back to its default so one bad tile
does not cost the whole page.
"""

from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation
from urllib.parse import urljoin

DEFAULT_NAME = "Unknown Product"
DEFAULT_PRICE = Decimal("0")

# Optional currency symbol, digits (thousands separators allowed) and
# exactly two decimals: "$1,234.56", "3.99", "$ 12.00".
_RE_PRICE = re.compile(r"\$?\s?(?P<amount>\d[\d,]*\.\d{2})(?!\d)")

def parse_name(text: str | None) -> str:
    """Trimmed name text; interior line breaks and spacing are kept."""
    return (text or "").strip() or DEFAULT_NAME


def parse_price(text: str | None) -> Decimal:
    """Return the first ``$1,234.56``-style amount in *text*, else ``0``.

    >>> parse_price("$1,234.56 each")
    Decimal('1234.56')
    >>> parse_price("See price in cart")
    Decimal('0')
    """
    if not text:
        return DEFAULT_PRICE
    match = _RE_PRICE.search(text)
    if not match:
        return DEFAULT_PRICE
    try:
        return Decimal(match.group("amount").replace(",", ""))
    except InvalidOperation:
        return DEFAULT_PRICE


def parse_link(href: str | None, page_url: str) -> str:
    """Resolve *href* against the page URL; empty when there is no link."""
    href = (href or "").strip()
    if not href or href.startswith(("javascript:", "#")):
        return ""
    return urljoin(page_url, href)


def parse_description(text: str | None, name: str, template: str) -> str:
    """Trimmed description text, or *template* filled with the product name."""
    description = (text or "").strip()
    if description:
        return description
    return template.format(name=name)
