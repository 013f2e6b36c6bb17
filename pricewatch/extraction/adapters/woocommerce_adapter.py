# pricewatch/extraction/adapters/woocommerce_adapter.py

"""Adapter for WooCommerce storefronts, detected by page structure."""

import re

from pricewatch.extraction.adapters.base_adapter import BaseAdapter
from pricewatch.extraction.document import PageNode
from pricewatch.models.price_record import PriceRecord

_POST_ID_RE = re.compile(r"postid-(\d+)")
_RANGE_MARKS = ("–", "-")


class WooCommerceAdapter(BaseAdapter):
    """Adapter for WooCommerce storefronts, detected by page structure.

    Sale prices render the old amount inside ``<del>`` and the current one
    inside ``<ins>``; anything under ``<del>`` is ignored, as are variable
    products that only show a price range.
    """

    name = "woocommerce"
    TITLE_SELECTORS = [
        "h1.product_title",
        ".product_title",
        ".product-title",
        '[itemprop="name"]',
    ]
    PRICE_SELECTORS = [
        "p.price ins .woocommerce-Price-amount",
        "p.price ins .amount",
        ".woocommerce-variation-price .price .woocommerce-Price-amount",
        "p.price > .woocommerce-Price-amount",
        '[itemprop="price"]',
    ]
    IMAGE_SELECTORS = [
        ".woocommerce-product-gallery__image img",
        ".wp-post-image",
        ".product-image img",
        ".woocommerce-main-image img",
        "figure.woocommerce-product-gallery__wrapper img",
    ]
    IMAGE_ATTRS = ("src", "data-src", "data-large_image")

    @classmethod
    def matches_domain(cls, domain: str) -> bool:
        return False

    def detect_product(self) -> bool:
        return any((
            self.document.select_one("body.woocommerce") is not None,
            self.document.select_one("body.single-product") is not None,
            self.document.select_one(".product_title") is not None,
            self.document.select_one("form.cart") is not None,
            self.document.select_one(".woocommerce-Price-amount") is not None,
        ))

    def extract_product_id(self) -> str | None:
        sku = self.document.select_one(".sku")
        if sku is not None and sku.text and sku.text != "N/A":
            return sku.text
        body = self.document.select_one("body")
        if body is not None:
            match = _POST_ID_RE.search(body.get("class") or "")
            if match:
                return match.group(1)
        return None

    def extract_price(self) -> PriceRecord | None:
        scope = self.document.select_one(".summary.entry-summary")
        for selector in self.PRICE_SELECTORS:
            nodes = (scope or self.document).select(selector)
            for node in nodes:
                if _inside_del(node):
                    continue
                parsed = self._parse_node(node)
                if parsed is not None:
                    return parsed

        fallback = (scope or self.document).select_one(
            ".price, .woocommerce-Price-amount"
        )
        if fallback is not None and not _inside_del(fallback):
            return self._parse_node(fallback)
        return None

    def _price_text(self, node: PageNode) -> str:
        text = node.text
        if any(mark in text for mark in _RANGE_MARKS):
            return ""
        return text or node.get("content") or ""


def _inside_del(node: PageNode) -> bool:
    return node.tag == "del" or any(a.tag == "del" for a in node.ancestors())
