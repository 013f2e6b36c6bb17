# pricewatch/extraction/adapters/bestbuy_adapter.py

"""Adapter for bestbuy.com."""

import re

from pricewatch.extraction.adapters.base_adapter import BaseAdapter

_SKU_RE = re.compile(r"skuId=(\d+)|/(\d+)\.p\b")


class BestBuyAdapter(BaseAdapter):
    """Adapter for bestbuy.com."""

    name = "bestbuy"
    DOMAIN_FRAGMENT = "bestbuy"
    DEFAULT_CURRENCY = "USD"
    CURRENCY_BY_DOMAIN = {"bestbuy.ca": "CAD"}
    TITLE_SELECTORS = [
        '[data-testid="heading"]',
        ".sku-title h1",
        ".sku-title",
        'h1[itemprop="name"]',
        ".product-title h1",
    ]
    PRICE_SELECTORS = [
        '[data-testid="customer-price"]',
        ".priceView-customer-price span",
        ".priceView-customer-price",
        ".priceView-hero-price span",
        '[data-testid="pricing-price"]',
        '[itemprop="price"]',
    ]
    IMAGE_SELECTORS = [
        "img.primary-image",
        '[data-testid="product-images"] img',
        'img[itemprop="image"]',
        ".shop-media-gallery img",
    ]

    def detect_product(self) -> bool:
        return "/site/" in self.url and _SKU_RE.search(self.url) is not None

    def extract_product_id(self) -> str | None:
        match = _SKU_RE.search(self.url)
        if match is None:
            return None
        return match.group(1) or match.group(2)
