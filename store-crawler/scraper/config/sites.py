"""
Store configuration for the two supported search integrations.

Stores:
  - dollar-general: DOLLAR_GENERAL — React storefront, tiles render
    client-side after the search API responds.
  - costco:         COSTCO — Akamai-protected catalog search; the tile
    grid is server-rendered but frequently replaced by a block page.

Each store carries an ordered selector set per semantic role.  Lists are
ordered from most specific to most generic and the first selector that
matches wins, so new markup variants go at the FRONT of a list.  None of
these lists are guaranteed to match the live sites; they are tuning
data and can be replaced without touching the extraction code.
"""

import os

from dotenv import load_dotenv

load_dotenv()

# ---------------------------------------------------------------------------
# Browser / Playwright defaults
# ---------------------------------------------------------------------------

BROWSER_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-blink-features=AutomationControlled",
    "--disable-dev-shm-usage",
    "--disable-infobars",
]

# Real Chrome gives a shipping TLS fingerprint; bundled Chromium is the
# fallback when it is not installed.
BROWSER_CHANNEL = "chrome"

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36"
)

VIEWPORT = {"width": 1920, "height": 1080}

# Header set of a top-level navigation typed into the address bar.
EXTRA_HTTP_HEADERS = {
    "Accept": (
        "text/html,application/xhtml+xml,application/xml;q=0.9,"
        "image/avif,image/webp,*/*;q=0.8"
    ),
    "Accept-Language": "en-US,en;q=0.9",
    "Accept-Encoding": "gzip, deflate, br",
    "Connection": "keep-alive",
    "Upgrade-Insecure-Requests": "1",
    "Sec-Fetch-Dest": "document",
    "Sec-Fetch-Mode": "navigate",
    "Sec-Fetch-Site": "none",
    "Sec-Fetch-User": "?1",
}

LOCALE = "en-US"
TIMEZONE_ID = "America/Chicago"

# Both storefronts hydrate from XHR calls after the document loads, so
# wait for the network to go quiet rather than for DOMContentLoaded.
WAIT_UNTIL = "networkidle"

GOTO_TIMEOUT_MS = int(os.getenv("GOTO_TIMEOUT_MS", "60000"))

# Pause after navigation so client-side rendering finishes and the
# request cadence looks like a person reading the page.
SETTLE_DELAY_SEC = float(os.getenv("SETTLE_DELAY_SEC", "5"))

# Containers processed per page.  Search pages can list 60+ tiles.
MAX_CONTAINERS = 5

# Lowercased before matching against the page's visible text and title.
BLOCK_PHRASES = [
    "captcha",
    "access denied",
    "please verify you are a human",
    "verify you are human",
    "security check",
    "unusual traffic",
    "pardon our interruption",
    "request unsuccessful",
]

# Third-party analytics that slow down settling and add detection surface.
BLOCKED_ANALYTICS_PATTERNS = [
    "*google-analytics.com*",
    "*googletagmanager.com*",
    "*facebook.net*",
    "*doubleclick.net*",
    "*hotjar.com*",
    "*quantummetric.com*",
    "*criteo.com*",
]

# ---------------------------------------------------------------------------
# Store identifiers
# ---------------------------------------------------------------------------

DOLLAR_GENERAL = "DOLLAR_GENERAL"
COSTCO = "COSTCO"

STORES = (DOLLAR_GENERAL, COSTCO)

# ---------------------------------------------------------------------------
# Per-store configuration
# ---------------------------------------------------------------------------

SITES: dict[str, dict] = {
    DOLLAR_GENERAL: {
        "name": "Dollar General",
        "slug": "dollar-general",
        "store": DOLLAR_GENERAL,
        "response_key": "dollarGeneral",
        "base_url": "https://www.dollargeneral.com",
        "search_url": "https://www.dollargeneral.com/search?text={term}",
        # Path-style product listing used by category/brand landing pages.
        "alternate_url": "https://www.dollargeneral.com/s/{term}",
        "selectors": {
            "container": [
                '[data-testid="product-tile"]',
                ".dg-product-card",
                ".product-tile",
                '[class*="ProductCard"]',
                'li[class*="product"]',
            ],
            "name": [
                '[data-testid="product-title"]',
                ".dg-product-card__title",
                ".product-name",
                "h3",
                "h2",
            ],
            "price": [
                '[data-testid="product-price"]',
                ".dg-product-card__price",
                ".price",
                '[class*="price"]',
            ],
            "link": [
                'a[href*="/p/"]',
                'a[href*="/product"]',
                "a[href]",
            ],
            "description": [
                '[data-testid="product-description"]',
                ".product-description",
                ".dg-product-card__subtitle",
            ],
        },
        "description_template": "{name} available at Dollar General",
    },
    COSTCO: {
        "name": "Costco",
        "slug": "costco",
        "store": COSTCO,
        "response_key": "costco",
        "base_url": "https://www.costco.com",
        "search_url": "https://www.costco.com/CatalogSearch?dept=All&keyword={term}",
        "alternate_url": "https://www.costco.com/s?keyword={term}",
        "selectors": {
            "container": [
                '[data-testid="ProductTile"]',
                ".product-tile-set .product-tile",
                ".product-tile",
                ".product",
                '[automation-id^="productList"]',
            ],
            "name": [
                '[data-testid$="_title"]',
                ".description a",
                ".description",
                '[automation-id^="productDescriptionLink"]',
                "h3",
            ],
            "price": [
                '[data-testid$="_price"]',
                '[automation-id^="itemPriceOutput"]',
                ".price",
                '[class*="price"]',
            ],
            "link": [
                'a[href*=".product."]',
                ".description a",
                "a[href]",
            ],
            "description": [
                ".product-description",
                ".product-features",
                '[automation-id^="productFeatures"]',
            ],
        },
        "description_template": "{name} from Costco",
    },
}

# Store ids in lookup order plus every accepted alias (case-insensitive).
_SITE_ALIASES: dict[str, str] = {}
for _store, _cfg in SITES.items():
    for _alias in (_store, _cfg["slug"], _cfg["response_key"], _cfg["name"]):
        _SITE_ALIASES[_alias.lower()] = _store
    _SITE_ALIASES[_cfg["slug"].replace("-", "_")] = _store


def resolve_store(identifier: str) -> str | None:
    """Map a store id, slug or display name to the canonical store id."""
    if not identifier:
        return None
    return _SITE_ALIASES.get(identifier.strip().lower())


def get_site(store: str) -> dict:
    """Return the configuration block for a canonical store id."""
    return SITES[store]
