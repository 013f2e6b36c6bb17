# pricewatch/extraction/adapters/amazon_adapter.py

"""Adapter for Amazon product pages across regional storefronts."""

import re

from pricewatch.extraction.adapters.base_adapter import BaseAdapter

_ASIN_RE = re.compile(r"/(?:dp|gp/product)/([A-Z0-9]{10})")


class AmazonAdapter(BaseAdapter):
    """Adapter for Amazon product pages across regional storefronts."""

    name = "amazon"
    DOMAIN_FRAGMENT = "amazon"
    DEFAULT_CURRENCY = "USD"
    CURRENCY_BY_DOMAIN = {
        "amazon.com": "USD",
        "amazon.co.uk": "GBP",
        "amazon.de": "EUR",
        "amazon.fr": "EUR",
        "amazon.it": "EUR",
        "amazon.es": "EUR",
        "amazon.nl": "EUR",
        "amazon.ca": "CAD",
        "amazon.com.au": "AUD",
        "amazon.co.jp": "JPY",
        "amazon.in": "INR",
        "amazon.com.mx": "MXN",
        "amazon.com.br": "BRL",
        "amazon.se": "SEK",
        "amazon.pl": "PLN",
        "amazon.com.tr": "TRY",
        "amazon.ae": "AED",
        "amazon.sa": "SAR",
        "amazon.sg": "SGD",
    }
    TITLE_SELECTORS = [
        "#productTitle",
        "#title",
        'h1[data-feature-name="title"]',
        ".product-title",
    ]
    # Amazon reshuffles these often; keep the newest layouts first
    PRICE_SELECTORS = [
        '.a-price[data-a-color="price"] .a-offscreen',
        ".priceToPay .a-offscreen",
        "#corePrice_feature_div .a-offscreen",
        "#priceblock_ourprice",
        "#priceblock_dealprice",
        ".a-price.aok-align-center .a-offscreen",
        ".a-price-whole",
    ]
    IMAGE_SELECTORS = [
        "#landingImage",
        "#imgBlkFront",
        "#main-image",
        ".a-dynamic-image",
        "#ebooksImgBlkFront",
    ]
    IMAGE_ATTRS = ("src", "data-old-hires")

    def detect_product(self) -> bool:
        return "/dp/" in self.url or "/gp/product/" in self.url

    def extract_product_id(self) -> str | None:
        match = _ASIN_RE.search(self.url)
        return match.group(1) if match else None
