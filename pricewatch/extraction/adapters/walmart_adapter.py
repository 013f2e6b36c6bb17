# pricewatch/extraction/adapters/walmart_adapter.py

"""Adapter for walmart.com."""

import re

from pricewatch.extraction.adapters.base_adapter import BaseAdapter

_IP_RE = re.compile(r"/ip/(?:[^/]+/)?(\d+)")


class WalmartAdapter(BaseAdapter):
    """Adapter for walmart.com."""

    name = "walmart"
    DOMAIN_FRAGMENT = "walmart"
    DEFAULT_CURRENCY = "USD"
    TITLE_SELECTORS = [
        "h1.prod-ProductTitle",
        '[data-automation-id="product-title"]',
        'h1[itemprop="name"]',
        ".prod-title",
        '[itemprop="name"]',
    ]
    PRICE_SELECTORS = [
        '[itemprop="price"]',
        '[data-automation-id="product-price"]',
        ".price-group .price-characteristic",
        ".price-characteristic",
        '[data-testid="product-price"]',
    ]
    IMAGE_SELECTORS = [
        ".prod-hero-image img",
        '[data-testid="hero-image"]',
        'img[itemprop="image"]',
        ".prod-ProductImage img",
    ]

    def detect_product(self) -> bool:
        return "/ip/" in self.url

    def extract_product_id(self) -> str | None:
        match = _IP_RE.search(self.url)
        return match.group(1) if match else None
