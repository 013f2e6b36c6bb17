# pricewatch/extraction/product_extractor.py

"""Confidence-ranked extraction cascade over a single page."""

import dataclasses
import logging
import re
from collections.abc import Callable
from urllib.parse import parse_qs, urlparse

from pricewatch.config.settings import Settings
from pricewatch.extraction.adapters.adapter_factory import get_adapter
from pricewatch.extraction.document import PageDocument
from pricewatch.extraction.heuristics import (
    extract_heuristic,
    looks_like_product_url,
)
from pricewatch.extraction.structured_data import (
    extract_json_ld,
    extract_meta_tags,
    extract_microdata,
)
from pricewatch.models.detection import DetectionResult, ExtractionContext
from pricewatch.parsing.product_id import extract_domain

logger = logging.getLogger("pricewatch.extractor")

ADAPTER_CONFIDENCE = 0.90

# Always non-product, whatever else the URL contains
_NON_PRODUCT_SEGMENTS: frozenset[str] = frozenset({
    "cart", "basket", "bag", "checkout", "payment", "panier",
    "account", "my-account", "login", "register", "signin", "signup",
    "profile", "dashboard", "orders", "wishlist", "search", "results",
    "help", "support", "contact", "about", "faq", "returns", "shipping",
    "terms", "privacy", "policy", "blog", "news", "articles", "guides",
    "index.html", "index.php", "home",
})
# Listing areas; product pages may still live beneath them
_LISTING_SEGMENTS: frozenset[str] = frozenset({
    "category", "categories", "browse", "collections", "shop",
    "all-products", "catalog", "listing",
})
_COLLECTION_PAGE_RE = re.compile(r"^/collections/[^/]+/?$")
_SEARCH_PARAMS: frozenset[str] = frozenset({"q", "s"})

Layer = Callable[
    [PageDocument, str, ExtractionContext], DetectionResult | None
]


def is_non_product_url(url: str) -> bool:
    """Cheap rejection of carts, accounts, search and listing pages."""
    parsed = urlparse(url)
    path = parsed.path.lower()
    if len(path.rstrip("/")) <= 2:
        return True
    if _COLLECTION_PAGE_RE.match(path):
        return True
    if _SEARCH_PARAMS & set(parse_qs(parsed.query)):
        return True

    segments = {s for s in path.split("/") if s}
    if segments & _NON_PRODUCT_SEGMENTS:
        return True
    return bool(segments & _LISTING_SEGMENTS) and not looks_like_product_url(
        url
    )


class ProductExtractor:
    """Runs the extraction layers and keeps the most confident result.

    Each layer has a ceiling, the best confidence it can contribute; it
    is skipped once the running best already reaches that ceiling.
    """

    def __init__(
        self,
        min_confidence: float = Settings.MIN_CONFIDENCE,
    ) -> None:
        self.min_confidence = min_confidence
        self.layers: list[tuple[str, float, Layer]] = [
            ("adapter", ADAPTER_CONFIDENCE, self._from_adapter),
            ("json_ld", 0.95, extract_json_ld),
            ("meta_tags", 0.85, extract_meta_tags),
            ("microdata", 0.75, extract_microdata),
            ("heuristic", 0.70, extract_heuristic),
        ]

    def extract(
        self,
        document: PageDocument,
        url: str,
        context: ExtractionContext | None = None,
    ) -> DetectionResult | None:
        """Detect the product and its price on *document*."""
        if is_non_product_url(url):
            logger.debug("Skipping non-product URL %s", url)
            return None
        ctx = context or ExtractionContext(domain=extract_domain(url))

        best: DetectionResult | None = None
        for name, ceiling, layer in self.layers:
            if best is not None and best.confidence >= ceiling:
                continue
            try:
                result = layer(document, url, ctx)
            except Exception as exc:
                logger.warning(
                    "Extraction layer %s failed on %s: %s",
                    name,
                    url,
                    exc,
                    exc_info=True,
                )
                continue
            if result is None:
                continue
            logger.debug(
                "Layer %s found %s (confidence %.2f)",
                name,
                result.price.formatted_text,
                result.confidence,
            )
            if best is None or result.confidence > best.confidence:
                best = result

        if best is None or best.confidence < self.min_confidence:
            logger.info("No reliable price on %s", url)
            return None
        return _finalize(best)

    def _from_adapter(
        self,
        document: PageDocument,
        url: str,
        context: ExtractionContext,
    ) -> DetectionResult | None:
        adapter = get_adapter(document, url)
        if adapter is None:
            return None
        title = adapter.extract_title()
        price = adapter.extract_price()
        if not title or price is None:
            return None
        return DetectionResult(
            title=title,
            price=price,
            url=url,
            domain=adapter.domain,
            confidence=ADAPTER_CONFIDENCE,
            detection_method=f"adapter:{adapter.name}",
            image_url=adapter.extract_image() or "",
            sku=adapter.extract_product_id() or "",
        )


def _finalize(result: DetectionResult) -> DetectionResult:
    title = " ".join(result.title.split())[: Settings.TITLE_MAX_LENGTH]
    image = result.image_url if not result.image_url.startswith("data:") else ""
    return dataclasses.replace(result, title=title, image_url=image)
