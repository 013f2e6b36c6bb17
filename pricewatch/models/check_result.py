# pricewatch/models/check_result.py

"""Per-item check outcomes and the aggregate batch summary."""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum


class CheckStatus(str, Enum):
    """Classification of one price check."""

    NO_CHANGE = "no_change"
    PRICE_DROP = "price_drop"
    PRICE_INCREASE = "price_increase"
    ERROR = "error"
    NOT_FOUND = "not_found"
    PERMISSION_DENIED = "permission_denied"
    CAPTCHA_DETECTED = "captcha_detected"


@dataclass
class CheckOutcome:
    """Result of checking a single tracked item."""

    item_id: str
    status: CheckStatus
    old_price: Decimal | None = None
    new_price: Decimal | None = None
    currency: str = ""
    change: Decimal | None = None
    change_percent: float | None = None
    detection_method: str = ""
    error: str = ""

    @property
    def succeeded(self) -> bool:
        return self.status in (
            CheckStatus.NO_CHANGE,
            CheckStatus.PRICE_DROP,
            CheckStatus.PRICE_INCREASE,
        )


@dataclass
class CheckSummary:
    """Aggregate counters for a ``check_all`` run."""

    total: int = 0
    checked: int = 0
    skipped: int = 0
    success: int = 0
    errors: int = 0
    price_drops: int = 0
    price_increases: int = 0
    details: list[CheckOutcome] = field(
        default_factory=lambda: list[CheckOutcome]()
    )

    def record(self, outcome: CheckOutcome) -> None:
        """Fold one item's outcome into the counters."""
        self.checked += 1
        self.details.append(outcome)
        if not outcome.succeeded:
            self.errors += 1
            return
        self.success += 1
        if outcome.status is CheckStatus.PRICE_DROP:
            self.price_drops += 1
        elif outcome.status is CheckStatus.PRICE_INCREASE:
            self.price_increases += 1
