# pricewatch/models/detection.py

"""Inputs and outputs of a single extraction call."""

from dataclasses import dataclass
from typing import Any

from pricewatch.models.price_record import PriceRecord


@dataclass(frozen=True)
class ExtractionContext:
    """Hints that steer currency resolution for one page."""

    domain: str = ""
    locale_hint: str = ""
    expected_currency: str = ""

    def has_hints(self) -> bool:
        """True when a domain or locale hint was supplied."""
        return bool(self.domain or self.locale_hint)


@dataclass
class ExtractionCandidate:
    """A scored text fragment considered by the heuristic layer."""

    node: Any
    text: str
    parsed: PriceRecord
    score: float = 0.0


@dataclass
class DetectionResult:
    """Product identity and price extracted from a page."""

    title: str
    price: PriceRecord
    url: str
    domain: str
    confidence: float
    detection_method: str
    image_url: str = ""
    sku: str = ""
