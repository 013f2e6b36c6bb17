# pricewatch/models/price_record.py

"""Parsed monetary value with provenance and confidence."""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any


@dataclass(frozen=True)
class PriceRecord:
    """A price detected in page text.

    ``numeric`` is already quantized to the currency's canonical number
    of decimals; ``confidence`` is clamped to ``[0, 1]``.
    """

    numeric: Decimal
    currency_code: str
    symbol: str = ""
    formatted_text: str = ""
    locale_hint: str = ""
    confidence: float = 0.0
    detection_method: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Serialise to a JSON-safe dict (numeric kept as a string)."""
        return {
            "numeric": str(self.numeric),
            "currency_code": self.currency_code,
            "symbol": self.symbol,
            "formatted_text": self.formatted_text,
            "locale_hint": self.locale_hint,
            "confidence": self.confidence,
            "detection_method": self.detection_method,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PriceRecord":
        """Rebuild a record produced by :meth:`to_dict`."""
        return cls(
            numeric=Decimal(str(data["numeric"])),
            currency_code=data["currency_code"],
            symbol=data.get("symbol", ""),
            formatted_text=data.get("formatted_text", ""),
            locale_hint=data.get("locale_hint", ""),
            confidence=float(data.get("confidence", 0.0)),
            detection_method=data.get("detection_method", ""),
        )
