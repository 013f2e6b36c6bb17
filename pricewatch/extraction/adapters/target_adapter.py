# pricewatch/extraction/adapters/target_adapter.py

"""Adapter for target.com."""

import re

from pricewatch.extraction.adapters.base_adapter import BaseAdapter

_TCIN_RE = re.compile(r"/A-(\d+)")


class TargetAdapter(BaseAdapter):
    """Adapter for target.com."""

    name = "target"
    DOMAIN_FRAGMENT = "target.com"
    DEFAULT_CURRENCY = "USD"
    TITLE_SELECTORS = [
        '[data-test="product-title"]',
        'h1[data-test="product-detail-title"]',
        'h1[itemprop="name"]',
        ".ProductTitle h1",
    ]
    PRICE_SELECTORS = [
        '[data-test="product-price"]',
        '[data-test="product-price-current"]',
        '[itemprop="price"]',
        ".h-text-orangeDark",
    ]
    IMAGE_SELECTORS = [
        '[data-test="image-gallery"] img',
        'img[itemprop="image"]',
        ".ProductImages img",
        "picture img",
    ]

    def detect_product(self) -> bool:
        return "/p/" in self.url

    def extract_product_id(self) -> str | None:
        match = _TCIN_RE.search(self.url)
        return match.group(1) if match else None
