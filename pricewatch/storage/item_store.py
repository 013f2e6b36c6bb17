# pricewatch/storage/item_store.py

"""Tracked items and user settings, every write under the storage mutex."""

import copy
import logging
import time
from collections.abc import Callable
from typing import Any

from pricewatch.config.settings import Settings
from pricewatch.errors import (
    ItemNotFoundError,
    TrackingLimitError,
    ValidationError,
)
from pricewatch.models.price_record import PriceRecord
from pricewatch.models.tracked_item import (
    ItemStatus,
    PriceHistoryEntry,
    TrackedItem,
)
from pricewatch.storage.kv_store import KeyValueStore
from pricewatch.storage.storage_mutex import StorageMutex

logger = logging.getLogger("pricewatch.item_store")

ItemMutator = Callable[[TrackedItem], None]


class ItemStore:
    """Concurrency-safe access to the tracked item collection.

    The whole collection lives under one key, so every compound
    read-modify-write runs inside :meth:`StorageMutex.locked`; two
    concurrent writers are serialised instead of one silently
    overwriting the other.
    """

    def __init__(
        self,
        store: KeyValueStore,
        mutex: StorageMutex | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.store = store
        self.mutex = mutex or StorageMutex(store, clock=clock)
        self._clock = clock

    # ── Reads ────────────────────────────────────────────

    async def get_all_items(self) -> list[TrackedItem]:
        raw = await self._load_items()
        return [TrackedItem.from_dict(data) for data in raw.values()]

    async def get_item(self, item_id: str) -> TrackedItem | None:
        raw = await self._load_items()
        data = raw.get(item_id)
        return TrackedItem.from_dict(data) if data else None

    async def require_item(self, item_id: str) -> TrackedItem:
        """Like :meth:`get_item` but raises :class:`ItemNotFoundError`."""
        item = await self.get_item(item_id)
        if item is None:
            raise ItemNotFoundError(item_id)
        return item

    # ── Writes ───────────────────────────────────────────

    async def add_item(self, item: TrackedItem) -> TrackedItem:
        """Insert *item*, or refresh identity fields if already tracked.

        Raises:
            TrackingLimitError: If the collection is already at the
                configured ``max_products``.
        """
        settings = await self.get_settings()
        limit = settings["tracking"]["max_products"]
        async with self.mutex.locked():
            raw = await self._load_items()
            existing = raw.get(item.item_id)
            if existing is not None:
                stored = TrackedItem.from_dict(existing)
                stored.title = item.title or stored.title
                stored.image_url = item.image_url or stored.image_url
                stored.sku = item.sku or stored.sku
                raw[item.item_id] = stored.to_dict()
                await self._save_items(raw)
                logger.info("Refreshed tracked item %s", item.item_id)
                return stored
            if len(raw) >= limit:
                raise TrackingLimitError(
                    f"Already tracking {len(raw)} items (limit {limit})"
                )
            raw[item.item_id] = item.to_dict()
            await self._save_items(raw)
        logger.info("Tracking new item %s (%s)", item.item_id, item.url)
        return item

    async def update_item(
        self, item_id: str, mutator: ItemMutator,
    ) -> TrackedItem:
        """Apply *mutator* to the stored item and persist, under lock."""
        async with self.mutex.locked():
            raw = await self._load_items()
            data = raw.get(item_id)
            if data is None:
                raise ItemNotFoundError(item_id)
            item = TrackedItem.from_dict(data)
            mutator(item)
            raw[item_id] = item.to_dict()
            await self._save_items(raw)
        return item

    async def record_price(
        self, item_id: str, price: PriceRecord, method: str,
    ) -> tuple[PriceRecord, TrackedItem]:
        """Store a successful check; return ``(previous_price, item)``."""
        now = self._clock()
        previous: list[PriceRecord] = []

        def apply(item: TrackedItem) -> None:
            previous.append(item.current_price)
            item.current_price = price
            item.append_history(
                PriceHistoryEntry(
                    price=price.numeric,
                    currency=price.currency_code,
                    timestamp=now,
                    method=method,
                ),
                Settings.HISTORY_LIMIT,
            )
            item.tracking.last_checked = now
            item.tracking.check_count += 1
            item.tracking.failed_checks = 0
            item.tracking.status = ItemStatus.ACTIVE

        item = await self.update_item(item_id, apply)
        return previous[0], item

    async def delete_item(self, item_id: str) -> bool:
        async with self.mutex.locked():
            raw = await self._load_items()
            if raw.pop(item_id, None) is None:
                return False
            await self._save_items(raw)
        logger.info("Stopped tracking %s", item_id)
        return True

    # ── Settings ─────────────────────────────────────────

    async def get_settings(self) -> dict[str, dict[str, int]]:
        """Stored settings merged over the defaults."""
        stored = await self.store.get(Settings.SETTINGS_KEY) or {}
        return _deep_merge(Settings.DEFAULT_USER_SETTINGS, stored)

    async def update_settings(
        self, partial: dict[str, dict[str, Any]],
    ) -> dict[str, dict[str, int]]:
        """Merge *partial* per section and persist after validation.

        Raises:
            ValidationError: On unknown keys or out-of-range values;
                nothing is written in that case.
        """
        async with self.mutex.locked():
            current = await self.get_settings()
            merged = _deep_merge(current, partial)
            validate_settings(merged)
            await self.store.set(Settings.SETTINGS_KEY, merged)
        logger.info("Settings updated: %s", partial)
        return merged

    # ── Domain grants ────────────────────────────────────

    async def get_granted_domains(self) -> list[str]:
        """Domains the user allowed beyond the built-in retailers."""
        return sorted(await self.store.get(Settings.GRANTS_KEY) or [])

    async def grant_domain(self, domain: str) -> list[str]:
        domain = _clean_domain(domain)
        async with self.mutex.locked():
            granted = set(await self.store.get(Settings.GRANTS_KEY) or [])
            granted.add(domain)
            await self.store.set(Settings.GRANTS_KEY, sorted(granted))
        logger.info("Persisted fetch permission for %s", domain)
        return sorted(granted)

    async def revoke_domain(self, domain: str) -> list[str]:
        domain = _clean_domain(domain)
        async with self.mutex.locked():
            granted = set(await self.store.get(Settings.GRANTS_KEY) or [])
            granted.discard(domain)
            await self.store.set(Settings.GRANTS_KEY, sorted(granted))
        logger.info("Removed fetch permission for %s", domain)
        return sorted(granted)

    # ── Private helpers ──────────────────────────────────

    async def _load_items(self) -> dict[str, dict[str, Any]]:
        raw = await self.store.get(Settings.ITEMS_KEY)
        return raw or {}

    async def _save_items(self, raw: dict[str, dict[str, Any]]) -> None:
        await self.store.set(Settings.ITEMS_KEY, raw)


def validate_settings(settings: dict[str, dict[str, Any]]) -> None:
    """Raise :class:`ValidationError` unless every value is in range."""
    for section, values in settings.items():
        limits = Settings.SETTINGS_LIMITS.get(section)
        if limits is None:
            raise ValidationError(f"Unknown settings section {section!r}")
        if not isinstance(values, dict):
            raise ValidationError(f"Settings section {section!r} must be a mapping")
        for key, value in values.items():
            if key not in limits:
                raise ValidationError(f"Unknown setting {section}.{key}")
            low, high = limits[key]
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValidationError(
                    f"{section}.{key} must be an integer, got {value!r}"
                )
            if not low <= value <= high:
                raise ValidationError(
                    f"{section}.{key}={value} outside {low}..{high}"
                )


def _clean_domain(domain: str) -> str:
    return domain.strip().lower().removeprefix("www.")


def _deep_merge(
    base: dict[str, dict[str, Any]],
    override: dict[str, dict[str, Any]],
) -> dict[str, dict[str, Any]]:
    merged = copy.deepcopy(base)
    for section, values in override.items():
        if isinstance(values, dict) and isinstance(merged.get(section), dict):
            merged[section].update(values)
        else:
            merged[section] = copy.deepcopy(values)
    return merged
