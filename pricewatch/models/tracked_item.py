# pricewatch/models/tracked_item.py

"""Tracked item model persisted by the item store."""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any

from pricewatch.config.settings import Settings
from pricewatch.models.price_record import PriceRecord


class ItemStatus(str, Enum):
    """Lifecycle status of a tracked item."""

    ACTIVE = "active"
    STALE = "stale"
    NO_PERMISSION = "no_permission"
    CAPTCHA_DETECTED = "captcha_detected"


@dataclass
class PriceHistoryEntry:
    """One observed price in an item's history."""

    price: Decimal
    currency: str
    timestamp: float
    method: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "price": str(self.price),
            "currency": self.currency,
            "timestamp": self.timestamp,
            "method": self.method,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PriceHistoryEntry":
        return cls(
            price=Decimal(str(data["price"])),
            currency=data["currency"],
            timestamp=float(data["timestamp"]),
            method=data.get("method", ""),
        )


@dataclass
class TrackingInfo:
    """Scheduling and health bookkeeping for a tracked item."""

    first_seen: float
    last_checked: float
    check_count: int = 0
    failed_checks: int = 0
    status: ItemStatus = ItemStatus.ACTIVE
    last_captcha: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "first_seen": self.first_seen,
            "last_checked": self.last_checked,
            "check_count": self.check_count,
            "failed_checks": self.failed_checks,
            "status": self.status.value,
            "last_captcha": self.last_captcha,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TrackingInfo":
        return cls(
            first_seen=float(data["first_seen"]),
            last_checked=float(data["last_checked"]),
            check_count=int(data.get("check_count", 0)),
            failed_checks=int(data.get("failed_checks", 0)),
            status=ItemStatus(data.get("status", "active")),
            last_captcha=data.get("last_captcha"),
        )


@dataclass
class TrackedItem:
    """A product page whose price is re-checked on a schedule."""

    item_id: str
    url: str
    domain: str
    title: str
    current_price: PriceRecord
    tracking: TrackingInfo
    price_history: list[PriceHistoryEntry] = field(
        default_factory=lambda: list[PriceHistoryEntry]()
    )
    image_url: str = ""
    sku: str = ""

    def append_history(
        self,
        entry: PriceHistoryEntry,
        limit: int = Settings.HISTORY_LIMIT,
    ) -> None:
        """Append *entry*, evicting the oldest beyond *limit*."""
        self.price_history.append(entry)
        if len(self.price_history) > limit:
            del self.price_history[: len(self.price_history) - limit]

    def to_dict(self) -> dict[str, Any]:
        return {
            "item_id": self.item_id,
            "url": self.url,
            "domain": self.domain,
            "title": self.title,
            "current_price": self.current_price.to_dict(),
            "tracking": self.tracking.to_dict(),
            "price_history": [e.to_dict() for e in self.price_history],
            "image_url": self.image_url,
            "sku": self.sku,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TrackedItem":
        return cls(
            item_id=data["item_id"],
            url=data["url"],
            domain=data["domain"],
            title=data.get("title", ""),
            current_price=PriceRecord.from_dict(data["current_price"]),
            tracking=TrackingInfo.from_dict(data["tracking"]),
            price_history=[
                PriceHistoryEntry.from_dict(e)
                for e in data.get("price_history", [])
            ],
            image_url=data.get("image_url", ""),
            sku=data.get("sku", ""),
        )
