# pricewatch/extraction/heuristics.py

"""Last-resort price detection for pages without machine-readable data.

Two passes: a handful of generic price selectors, then a scoring pass
over every short text fragment that parses as a price. Scores combine
the parser's own confidence with page-structure signals (naming,
proximity to the title and purchase button, font size) and penalties
for shipping, tax and related-product noise.
"""

import logging
import math
import re

from pricewatch.config.settings import Settings
from pricewatch.extraction.document import PageDocument, PageNode
from pricewatch.models.detection import (
    DetectionResult,
    ExtractionCandidate,
    ExtractionContext,
)
from pricewatch.models.price_record import PriceRecord
from pricewatch.parsing.currency_parser import parse_price
from pricewatch.parsing.product_id import extract_domain

logger = logging.getLogger("pricewatch.heuristics")

BASE_CONFIDENCE = 0.30
MAX_CONFIDENCE = 0.95

PRODUCT_URL_PATTERNS: tuple[str, ...] = (
    "/product/", "/products/", "/item/", "/items/", "/dp/", "/p/",
    "/itm/", "/goods/", "/pd/", "/buy/", "/store/", "-p-", "/detail/",
    "/produkter/", "/produit/", "/produto/", "/produkt/",
)
_PRODUCT_ID_URL_RE = re.compile(r"/\d{6,}|[?&](?:product|item|sku|id)=\d+")

TITLE_SELECTORS: tuple[str, ...] = (
    'h1[class*="product"]',
    'h1[id*="product"]',
    "h1.title",
    "h1",
)

QUICK_PRICE_SELECTORS: tuple[str, ...] = (
    '[itemprop="price"]',
    "[data-price]",
    ".price",
    ".product-price",
    ".product_price",
    '[class*="price-now"]',
    '[class*="current-price"]',
    '[id*="product-price"]',
)

IMAGE_SELECTORS: tuple[str, ...] = (
    "[data-product-image]",
    'img[itemprop="image"]',
    ".product-image img",
    '[class*="product"] img[src]',
    "main img[src]",
)

PURCHASE_PATTERNS: tuple[str, ...] = (
    "add to cart", "add to basket", "add to bag", "buy now",
    "añadir al carrito", "ajouter au panier", "in den warenkorb",
    "aggiungi al carrello", "adicionar ao carrinho", "カートに入れる",
    "addtocart", "add-to-cart", "add_to_cart",
)

_PRICE_HINT_RE = re.compile(r"[$£€¥₹₽¢₩₺₪]|\d")

_DISQUALIFYING_RE = re.compile(
    r"shipping|\bship\b|delivery|\btax\b|monthly|installment|/mo\b"
    r"|per month|\bsave\b|\boff\b|msrp|list price|handling|freight"
    r"|postage",
    re.IGNORECASE,
)
_NOISY_SECTIONS: tuple[str, ...] = (
    "related", "similar", "also-bought", "recommendations", "upsell",
    "cross-sell", "shipping", "delivery",
)
_SECTION_DEPTH = 5
_PARENT_CHAIN_LIMIT = 15


def looks_like_product_url(url: str) -> bool:
    lowered = url.lower()
    return any(p in lowered for p in PRODUCT_URL_PATTERNS) or bool(
        _PRODUCT_ID_URL_RE.search(lowered)
    )


def find_title_node(document: PageDocument) -> PageNode | None:
    for selector in TITLE_SELECTORS:
        node = document.select_one(selector)
        if node is not None and len(node.text) >= 3:
            return node
    return None


def find_purchase_control(document: PageDocument) -> PageNode | None:
    """First button whose text, id or class reads like add-to-cart."""
    for node in document.purchase_controls():
        haystacks = (
            (node.text or node.get("aria-label") or "").lower(),
            node.node_id.lower(),
            " ".join(node.classes).lower(),
        )
        if any(p in h for p in PURCHASE_PATTERNS for h in haystacks):
            return node
    return None


def dom_distance(first: PageNode, second: PageNode) -> float:
    """Steps from each node up to their nearest common ancestor."""
    chain_a = _parent_chain(first)
    chain_b = _parent_chain(second)
    for i, node_a in enumerate(chain_a):
        for j, node_b in enumerate(chain_b):
            if node_a == node_b:
                return i + j
    return math.inf


def gather_candidates(
    document: PageDocument, context: ExtractionContext,
) -> list[ExtractionCandidate]:
    """Short visible fragments that parse as a price."""
    candidates: list[ExtractionCandidate] = []
    for node in document.candidate_nodes():
        text = node.text
        if not text or len(text) > Settings.CANDIDATE_MAX_TEXT:
            continue
        if not _PRICE_HINT_RE.search(text) or not node.is_visible:
            continue
        parsed = parse_price(text, context)
        if parsed and parsed.confidence >= Settings.CANDIDATE_MIN_CONFIDENCE:
            candidates.append(ExtractionCandidate(node, text, parsed))
    return candidates


def score_candidate(
    candidate: ExtractionCandidate,
    title_node: PageNode | None,
    purchase_node: PageNode | None,
) -> float:
    node = candidate.node
    score = candidate.parsed.confidence * 100

    value = candidate.parsed.numeric
    if 0 < value < 10:
        score -= 30
    if 0 < value < 2:
        score -= 50

    naming = " ".join(node.classes).lower() + " " + node.node_id.lower()
    if "price" in naming:
        score += 20

    for anchor in (title_node, purchase_node):
        if anchor is not None:
            score += _proximity_bonus(dom_distance(node, anchor))

    font_size = node.font_size
    if font_size is not None:
        if font_size >= 24:
            score += 10
        elif font_size >= 18:
            score += 5

    if _DISQUALIFYING_RE.search(candidate.text):
        score -= 40

    for ancestor in node.ancestors(_SECTION_DEPTH):
        naming = " ".join(ancestor.classes).lower() + " " + (
            ancestor.node_id.lower()
        )
        if any(marker in naming for marker in _NOISY_SECTIONS):
            score -= 60
            break

    return score


def extract_heuristic(
    document: PageDocument,
    url: str,
    context: ExtractionContext,
) -> DetectionResult | None:
    """Generic extraction driven by page-structure signals."""
    parse_context = ExtractionContext(
        domain=context.domain or extract_domain(url),
        locale_hint=context.locale_hint or document.lang,
        expected_currency=context.expected_currency,
    )
    title_node = find_title_node(document)
    purchase_node = find_purchase_control(document)

    price = _quick_selector_price(document, parse_context)
    if price is None:
        price = _best_candidate_price(
            document, parse_context, title_node, purchase_node
        )
    if price is None:
        return None

    title = title_node.text if title_node is not None else document.title
    if not title:
        return None
    image_url = _find_image(document)

    confidence = BASE_CONFIDENCE + 0.20
    if looks_like_product_url(url):
        confidence += 0.10
    if title_node is not None:
        confidence += 0.10
    if purchase_node is not None:
        confidence += 0.20
    if image_url:
        confidence += 0.05

    return DetectionResult(
        title=title,
        price=price,
        url=url,
        domain=extract_domain(url),
        confidence=round(min(confidence, MAX_CONFIDENCE), 4),
        detection_method="heuristic",
        image_url=image_url,
    )


# ── Private helpers ──────────────────────────────────


def _parent_chain(node: PageNode) -> list[PageNode]:
    chain = [node]
    chain.extend(node.ancestors(_PARENT_CHAIN_LIMIT - 1))
    return chain


def _proximity_bonus(distance: float) -> int:
    if distance <= 3:
        return 15
    if distance <= 5:
        return 10
    if distance <= 8:
        return 5
    return 0


def _quick_selector_price(
    document: PageDocument, context: ExtractionContext,
) -> PriceRecord | None:
    for selector in QUICK_PRICE_SELECTORS:
        for node in document.select(selector):
            if not node.is_visible:
                continue
            text = node.text or node.get("data-price") or node.get("content")
            if not text:
                continue
            parsed = parse_price(text, context)
            if (
                parsed is not None
                and parsed.confidence >= Settings.QUICK_SELECTOR_CONFIDENCE
            ):
                logger.debug("Quick selector %s matched %s", selector, text)
                return parsed
    return None


def _best_candidate_price(
    document: PageDocument,
    context: ExtractionContext,
    title_node: PageNode | None,
    purchase_node: PageNode | None,
) -> PriceRecord | None:
    candidates = gather_candidates(document, context)
    if not candidates:
        return None
    for candidate in candidates:
        candidate.score = score_candidate(candidate, title_node, purchase_node)
    best = max(candidates, key=lambda c: c.score)
    logger.debug(
        "Best of %d candidates: %r scored %.1f",
        len(candidates),
        best.text,
        best.score,
    )
    if best.score < Settings.HEURISTIC_MIN_SCORE:
        return None
    return best.parsed


def _find_image(document: PageDocument) -> str:
    for selector in IMAGE_SELECTORS:
        node = document.select_one(selector)
        if node is None:
            continue
        src = node.get("src") or node.get("data-src") or ""
        if src and not src.startswith("data:"):
            return src
    return ""
