# pricewatch/extraction/adapters/ebay_adapter.py

"""Adapter for eBay item pages."""

import re

from pricewatch.extraction.adapters.base_adapter import BaseAdapter
from pricewatch.extraction.document import PageNode

_ITEM_RE = re.compile(r"/itm/(?:[^/?#]+/)?(\d+)")
_APPROX_SPLIT_RE = re.compile(r"approximately", re.IGNORECASE)


class EbayAdapter(BaseAdapter):
    """Adapter for eBay item pages.

    eBay shows buyers a converted price ("approximately EUR 27.50")
    next to the listing price. Only the text before the marker is the
    seller's real price, and the ``content`` attribute is skipped
    because it holds the amount in cents.
    """

    name = "ebay"
    DOMAIN_FRAGMENT = "ebay"
    DEFAULT_CURRENCY = "USD"
    CURRENCY_BY_DOMAIN = {
        "ebay.com": "USD",
        "ebay.co.uk": "GBP",
        "ebay.de": "EUR",
        "ebay.fr": "EUR",
        "ebay.it": "EUR",
        "ebay.es": "EUR",
        "ebay.ie": "EUR",
        "ebay.nl": "EUR",
        "ebay.be": "EUR",
        "ebay.at": "EUR",
        "ebay.ch": "CHF",
        "ebay.ca": "CAD",
        "ebay.com.au": "AUD",
        "ebay.in": "INR",
        "ebay.com.sg": "SGD",
        "ebay.com.my": "MYR",
        "ebay.ph": "PHP",
        "ebay.com.hk": "HKD",
    }
    TITLE_SELECTORS = [
        "h1.x-item-title__mainTitle",
        '[data-testid="x-item-title"]',
        ".it-ttl",
        "#itemTitle",
        'h1[itemprop="name"]',
    ]
    PRICE_SELECTORS = [
        '.x-price-primary [itemprop="price"]',
        ".x-price-primary span",
        '[data-testid="x-price-primary"]',
        "#prcIsum",
        "#mm-saleDscPrc",
        ".display-price",
    ]
    IMAGE_SELECTORS = [
        ".ux-image-carousel-item img",
        "#icImg",
        'img[itemprop="image"]',
        ".img-container img",
    ]

    def detect_product(self) -> bool:
        return "/itm/" in self.url

    def extract_product_id(self) -> str | None:
        match = _ITEM_RE.search(self.url)
        return match.group(1) if match else None

    def _price_text(self, node: PageNode) -> str:
        text = node.text
        if not text:
            return ""
        return _APPROX_SPLIT_RE.split(text, maxsplit=1)[0].strip()
