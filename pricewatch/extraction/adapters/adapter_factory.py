# pricewatch/extraction/adapters/adapter_factory.py

"""Pick the site adapter for a page, by domain first, then by structure."""

import logging

from pricewatch.extraction.adapters.amazon_adapter import AmazonAdapter
from pricewatch.extraction.adapters.base_adapter import BaseAdapter
from pricewatch.extraction.adapters.bestbuy_adapter import BestBuyAdapter
from pricewatch.extraction.adapters.ebay_adapter import EbayAdapter
from pricewatch.extraction.adapters.target_adapter import TargetAdapter
from pricewatch.extraction.adapters.walmart_adapter import WalmartAdapter
from pricewatch.extraction.adapters.woocommerce_adapter import (
    WooCommerceAdapter,
)
from pricewatch.extraction.document import PageDocument
from pricewatch.parsing.product_id import extract_domain

logger = logging.getLogger("pricewatch.adapters")

DOMAIN_ADAPTERS: list[type[BaseAdapter]] = [
    AmazonAdapter,
    EbayAdapter,
    WalmartAdapter,
    TargetAdapter,
    BestBuyAdapter,
]


def get_adapter(document: PageDocument, url: str) -> BaseAdapter | None:
    """Return an adapter for *url*, or ``None`` for unknown sites.

    A retailer adapter is only used on that retailer's product pages;
    other pages on its domain fall through to the generic layers.
    """
    domain = extract_domain(url)
    for adapter_cls in DOMAIN_ADAPTERS:
        if not adapter_cls.matches_domain(domain):
            continue
        adapter = adapter_cls(document, url)
        if adapter.detect_product():
            return adapter
        logger.debug("%s page is not a product page: %s", adapter.name, url)
        return None

    woo = WooCommerceAdapter(document, url)
    if woo.detect_product():
        logger.debug("Detected WooCommerce storefront at %s", domain)
        return woo
    return None


def expected_currency_for_domain(domain: str) -> str | None:
    """Currency a known retailer domain always prices in."""
    domain = domain.lower().removeprefix("www.")
    for adapter_cls in DOMAIN_ADAPTERS:
        if not adapter_cls.matches_domain(domain):
            continue
        return adapter_cls.CURRENCY_BY_DOMAIN.get(
            domain, adapter_cls.DEFAULT_CURRENCY
        )
    return None
