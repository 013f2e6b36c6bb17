# pricewatch/extraction/adapters/base_adapter.py

"""Abstract base class for all site adapters."""

import dataclasses
import logging
from abc import ABC, abstractmethod

from pricewatch.config.settings import Settings
from pricewatch.extraction.document import PageDocument, PageNode
from pricewatch.models.detection import ExtractionContext
from pricewatch.models.price_record import PriceRecord
from pricewatch.parsing.currency_parser import parse_price
from pricewatch.parsing.product_id import extract_domain


class BaseAdapter(ABC):
    """Selector-driven extraction for one retailer or platform.

    Subclasses list their selectors in priority order; the first selector
    producing a usable value wins.
    """

    name: str = "base"
    DOMAIN_FRAGMENT: str = ""
    CURRENCY_BY_DOMAIN: dict[str, str] = {}
    DEFAULT_CURRENCY: str | None = None
    TITLE_SELECTORS: list[str] = []
    PRICE_SELECTORS: list[str] = []
    IMAGE_SELECTORS: list[str] = []
    IMAGE_ATTRS: tuple[str, ...] = ("src", "data-src")
    MIN_PRICE_CONFIDENCE: float = Settings.QUICK_SELECTOR_CONFIDENCE
    CURRENCY_MISMATCH_FACTOR: float = 0.8

    def __init__(self, document: PageDocument, url: str) -> None:
        self.document = document
        self.url = url
        self.domain = extract_domain(url)
        self.locale = document.lang or "en-US"
        self.logger = logging.getLogger(f"pricewatch.adapters.{self.name}")

    @classmethod
    def matches_domain(cls, domain: str) -> bool:
        return bool(cls.DOMAIN_FRAGMENT) and cls.DOMAIN_FRAGMENT in domain

    def detect_product(self) -> bool:
        """True when the page looks like a product page for this site."""
        return True

    @abstractmethod
    def extract_product_id(self) -> str | None: ...

    def expected_currency(self) -> str | None:
        return self.CURRENCY_BY_DOMAIN.get(self.domain, self.DEFAULT_CURRENCY)

    def context(self) -> ExtractionContext:
        return ExtractionContext(
            domain=self.domain,
            locale_hint=self.locale,
            expected_currency=self.expected_currency() or "",
        )

    def parse_with_context(self, text: str) -> PriceRecord | None:
        return parse_price(text, self.context())

    def validate_currency(self, price: PriceRecord) -> PriceRecord:
        """Down-weight a price whose currency is not the site's own."""
        expected = self.expected_currency()
        if not expected or price.currency_code == expected:
            return price
        self.logger.warning(
            "[%s] Currency mismatch: expected %s, got %s",
            self.name,
            expected,
            price.currency_code,
        )
        return dataclasses.replace(
            price,
            confidence=round(
                price.confidence * self.CURRENCY_MISMATCH_FACTOR, 4
            ),
        )

    def extract_title(self) -> str | None:
        for selector in self.TITLE_SELECTORS:
            node = self.document.select_one(selector)
            if node is not None and node.text:
                return node.text
        return None

    def extract_price(self) -> PriceRecord | None:
        for selector in self.PRICE_SELECTORS:
            for node in self.document.select(selector):
                parsed = self._parse_node(node)
                if parsed is not None:
                    return parsed
        return None

    def extract_image(self) -> str | None:
        for selector in self.IMAGE_SELECTORS:
            node = self.document.select_one(selector)
            if node is None:
                continue
            for attr in self.IMAGE_ATTRS:
                value = node.get(attr)
                if value and not value.startswith("data:"):
                    return value
        return None

    # ── Private helpers ──────────────────────────────────

    def _price_text(self, node: PageNode) -> str:
        """Text to parse for a price node; ``content`` as fallback."""
        return node.text or node.get("content") or ""

    def _parse_node(self, node: PageNode) -> PriceRecord | None:
        text = self._price_text(node)
        if not text:
            return None
        parsed = self.parse_with_context(text)
        if parsed is None or parsed.confidence < self.MIN_PRICE_CONFIDENCE:
            return None
        return self.validate_currency(parsed)
