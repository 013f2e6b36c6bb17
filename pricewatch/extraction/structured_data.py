# pricewatch/extraction/structured_data.py

"""Machine-readable product data: JSON-LD, meta tags and microdata.

Each extractor returns a :class:`DetectionResult` carrying the layer's
fixed confidence, or ``None`` when the page does not expose the data.
Values found here are machine formatted ("1299.5"), so they are parsed
without the page's locale hint.
"""

import dataclasses
import json
import logging
import re
from collections.abc import Iterator
from decimal import Decimal, InvalidOperation
from typing import Any

from pricewatch.extraction.document import PageDocument
from pricewatch.models.detection import DetectionResult, ExtractionContext
from pricewatch.models.price_record import PriceRecord
from pricewatch.parsing.currency_data import (
    currency_decimals,
    currency_for_domain,
    currency_symbol,
)
from pricewatch.parsing.currency_parser import parse_price
from pricewatch.parsing.product_id import extract_domain

logger = logging.getLogger("pricewatch.structured_data")

JSON_LD_CONFIDENCE = 0.95
META_CONFIDENCE = 0.85
MICRODATA_CONFIDENCE = 0.75

_MACHINE_NUMBER_RE = re.compile(r"^\d+(?:\.\d+)?$")
_ISO_CODE_RE = re.compile(r"^[A-Za-z]{3}$")
_APPROX_MARKER = "approx"


def extract_json_ld(
    document: PageDocument,
    url: str,
    context: ExtractionContext,
) -> DetectionResult | None:
    """First schema.org ``Product`` block with a usable offer."""
    expected = _expected_currency(url, context)
    for block in document.json_ld_blocks():
        for item in _iter_products(block):
            price = _select_offer_price(item, url, expected)
            if price is None:
                logger.debug("Product block without a usable offer")
                continue
            return DetectionResult(
                title=str(item.get("name") or document.title or ""),
                price=price,
                url=url,
                domain=extract_domain(url),
                confidence=JSON_LD_CONFIDENCE,
                detection_method="json_ld",
                image_url=_image_url(item.get("image")),
                sku=str(
                    item.get("sku")
                    or item.get("gtin13")
                    or item.get("gtin")
                    or item.get("mpn")
                    or ""
                ),
            )
    return None


def extract_meta_tags(
    document: PageDocument,
    url: str,
    context: ExtractionContext,
) -> DetectionResult | None:
    """Open Graph / product meta price fields."""
    amount = document.meta("og:price:amount") or document.meta(
        "product:price:amount"
    )
    if not amount:
        return None
    currency = document.meta("og:price:currency") or document.meta(
        "product:price:currency"
    )
    title = document.meta("og:title") or document.title
    if not title:
        return None

    price = _parse_amount(amount, currency, url, "meta_tags")
    if price is None:
        return None
    return DetectionResult(
        title=title,
        price=price,
        url=url,
        domain=extract_domain(url),
        confidence=META_CONFIDENCE,
        detection_method="meta_tags",
        image_url=document.meta("og:image") or "",
    )


def extract_microdata(
    document: PageDocument,
    url: str,
    context: ExtractionContext,
) -> DetectionResult | None:
    """``itemprop="price"`` fields, scoped to a Product item if present."""
    product = document.select_one('[itemtype*="schema.org/Product"]')
    scope = product or document

    price_node = scope.select_one('[itemprop="price"]')
    if price_node is None:
        return None
    title_node = scope.select_one('[itemprop="name"]') or document.select_one(
        "h1"
    )
    title = title_node.text if title_node is not None else ""
    if not title:
        return None

    currency_node = scope.select_one('[itemprop="priceCurrency"]')
    currency = None
    if currency_node is not None:
        currency = currency_node.get("content") or currency_node.text

    # Visible text first: some sites put the amount in cents in @content
    amount = price_node.text or price_node.get("content") or ""
    price = _parse_amount(amount, currency, url, "microdata")
    if price is None:
        return None

    image_node = scope.select_one('[itemprop="image"]')
    image = ""
    if image_node is not None:
        image = image_node.get("src") or image_node.get("content") or ""
    return DetectionResult(
        title=title,
        price=price,
        url=url,
        domain=extract_domain(url),
        confidence=MICRODATA_CONFIDENCE,
        detection_method="microdata",
        image_url="" if image.startswith("data:") else image,
    )


# ── Private helpers ──────────────────────────────────


def _is_product(item: Any) -> bool:
    if not isinstance(item, dict):
        return False
    types = item.get("@type")
    if not isinstance(types, list):
        types = [types]
    return any(
        isinstance(t, str) and t.rstrip("/").rsplit("/", 1)[-1] == "Product"
        for t in types
    )


def _iter_products(data: Any) -> Iterator[dict[str, Any]]:
    """Flatten single, list and ``@graph`` wrapped JSON-LD shapes."""
    if isinstance(data, list):
        for entry in data:
            yield from _iter_products(entry)
        return
    if not isinstance(data, dict):
        return
    if _is_product(data):
        yield data
        return
    graph = data.get("@graph")
    if graph is not None:
        yield from _iter_products(graph)


def _iter_offers(offers: Any) -> Iterator[dict[str, Any]]:
    if isinstance(offers, list):
        for entry in offers:
            yield from _iter_offers(entry)
        return
    if not isinstance(offers, dict):
        return
    yield offers
    nested = offers.get("offers")
    if nested is not None:
        yield from _iter_offers(nested)


def _is_aggregate(offer: dict[str, Any]) -> bool:
    kind = offer.get("@type")
    return isinstance(kind, str) and kind.endswith("AggregateOffer")


def _select_offer_price(
    item: dict[str, Any], url: str, expected: str | None,
) -> PriceRecord | None:
    """Offer in the expected currency, else the first parseable one."""
    fallback: PriceRecord | None = None
    for offer in _iter_offers(item.get("offers")):
        if _APPROX_MARKER in json.dumps(offer, ensure_ascii=False).lower():
            logger.debug("Skipping converted offer: %s", offer.get("price"))
            continue
        if _is_aggregate(offer):
            value = offer.get("lowPrice", offer.get("price"))
        else:
            value = offer.get("price", offer.get("lowPrice"))
        if value is None or value == "":
            continue
        price = _parse_amount(
            value, offer.get("priceCurrency"), url, "json_ld"
        )
        if price is None:
            continue
        if expected and price.currency_code == expected:
            return price
        if fallback is None:
            fallback = price
    return fallback


def _parse_amount(
    amount: Any, currency: str | None, url: str, method: str,
) -> PriceRecord | None:
    """Parse a price value, forcing *currency* when one was declared."""
    declared = currency.strip() if isinstance(currency, str) else ""
    code = declared.upper() if _ISO_CODE_RE.match(declared) else ""
    domain = extract_domain(url)
    text = _canonical_amount(amount, code or currency_for_domain(domain) or "")
    if declared:
        text = f"{text} {code or declared}"
    parsed = parse_price(text, ExtractionContext(domain=domain))
    if parsed is None:
        return None
    if code and parsed.currency_code != code:
        parsed = dataclasses.replace(
            parsed, currency_code=code, symbol=currency_symbol(code)
        )
    return dataclasses.replace(parsed, detection_method=method)


def _canonical_amount(amount: Any, code: str) -> str:
    """Render a machine number with the currency's decimal count."""
    raw = str(amount).strip()
    if not _MACHINE_NUMBER_RE.match(raw):
        return raw
    try:
        value = Decimal(raw)
    except InvalidOperation:
        return raw
    return f"{value:.{currency_decimals(code)}f}"


def _expected_currency(url: str, context: ExtractionContext) -> str | None:
    if context.expected_currency:
        return context.expected_currency
    return currency_for_domain(context.domain or extract_domain(url))


def _image_url(image: Any) -> str:
    if isinstance(image, list):
        image = image[0] if image else None
    if isinstance(image, dict):
        image = image.get("url") or image.get("contentUrl")
    if isinstance(image, str) and not image.startswith("data:"):
        return image
    return ""
