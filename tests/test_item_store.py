# tests/test_item_store.py

"""Tests for the mutex-guarded tracked item store."""

import asyncio
import unittest
from decimal import Decimal

from pricewatch.config.settings import Settings
from pricewatch.errors import (
    ItemNotFoundError,
    TrackingLimitError,
    ValidationError,
)
from pricewatch.models.price_record import PriceRecord
from pricewatch.models.tracked_item import ItemStatus, TrackedItem
from pricewatch.storage.item_store import ItemStore, validate_settings
from pricewatch.storage.kv_store import MemoryKeyValueStore
from pricewatch.storage.storage_mutex import StorageMutex
from fakes import FakeClock, make_item


def _price(amount: str, currency: str = "USD") -> PriceRecord:
    return PriceRecord(
        numeric=Decimal(amount),
        currency_code=currency,
        symbol="$",
        formatted_text=f"${amount}",
        confidence=0.95,
        detection_method="json_ld",
    )


class TestItemStore(unittest.IsolatedAsyncioTestCase):
    """CRUD and price recording."""

    def setUp(self) -> None:
        self.kv = MemoryKeyValueStore()
        self.clock = FakeClock()
        self.store = ItemStore(
            self.kv,
            mutex=StorageMutex(self.kv, poll_interval=0.001, clock=self.clock),
            clock=self.clock,
        )

    async def test_add_and_get(self) -> None:
        """Added items can be read back by id."""
        item = make_item("a1", self.clock.now)
        await self.store.add_item(item)
        stored = await self.store.get_item("a1")
        assert stored is not None
        self.assertEqual(stored.url, item.url)
        self.assertEqual(stored.current_price.numeric, Decimal("19.99"))
        self.assertEqual(len(await self.store.get_all_items()), 1)

    async def test_require_missing_item(self) -> None:
        """require_item raises for unknown ids."""
        self.assertIsNone(await self.store.get_item("ghost"))
        with self.assertRaises(ItemNotFoundError):
            await self.store.require_item("ghost")

    async def test_add_existing_refreshes_identity_only(self) -> None:
        """Re-adding keeps tracking state and refreshes the title."""
        await self.store.add_item(make_item("a1", self.clock.now))
        await self.store.record_price("a1", _price("17.00"), "json_ld")

        again = make_item("a1", self.clock.now + 500, price="99.00")
        again.title = "Renamed"
        result = await self.store.add_item(again)

        self.assertEqual(result.title, "Renamed")
        self.assertEqual(result.current_price.numeric, Decimal("17.00"))
        self.assertEqual(result.tracking.check_count, 1)
        self.assertEqual(len(result.price_history), 1)

    async def test_tracking_limit(self) -> None:
        """Adding beyond max_products raises TrackingLimitError."""
        await self.store.update_settings({"tracking": {"max_products": 1}})
        await self.store.add_item(make_item("a1", self.clock.now))
        with self.assertRaises(TrackingLimitError):
            await self.store.add_item(make_item("a2", self.clock.now))
        self.assertEqual(len(await self.store.get_all_items()), 1)

    async def test_record_price_resets_health(self) -> None:
        """A successful check clears failures and reactivates the item."""
        item = make_item("a1", self.clock.now - 7200)
        item.tracking.failed_checks = 2
        item.tracking.status = ItemStatus.STALE
        await self.store.add_item(item)

        previous, updated = await self.store.record_price(
            "a1", _price("15.00"), "json_ld",
        )

        self.assertEqual(previous.numeric, Decimal("19.99"))
        self.assertEqual(updated.current_price.numeric, Decimal("15.00"))
        self.assertEqual(updated.tracking.failed_checks, 0)
        self.assertEqual(updated.tracking.status, ItemStatus.ACTIVE)
        self.assertEqual(updated.tracking.check_count, 1)
        self.assertEqual(updated.tracking.last_checked, self.clock.now)
        self.assertEqual(updated.price_history[-1].price, Decimal("15.00"))

    async def test_history_capped(self) -> None:
        """Only the most recent HISTORY_LIMIT entries are kept."""
        await self.store.add_item(make_item("a1", self.clock.now))
        for n in range(Settings.HISTORY_LIMIT + 5):
            self.clock.now += 60
            await self.store.record_price("a1", _price(f"{10 + n}.00"), "json_ld")

        item = await self.store.require_item("a1")
        self.assertEqual(len(item.price_history), Settings.HISTORY_LIMIT)
        self.assertEqual(item.price_history[0].price, Decimal("15.00"))
        timestamps = [e.timestamp for e in item.price_history]
        self.assertEqual(timestamps, sorted(timestamps))

    async def test_update_missing_item(self) -> None:
        """update_item raises for unknown ids and releases the lock."""
        with self.assertRaises(ItemNotFoundError):
            await self.store.update_item("ghost", lambda item: None)
        self.assertIsNone(await self.kv.get(Settings.LOCK_KEY))

    async def test_delete(self) -> None:
        """delete_item reports whether something was removed."""
        await self.store.add_item(make_item("a1", self.clock.now))
        self.assertTrue(await self.store.delete_item("a1"))
        self.assertFalse(await self.store.delete_item("a1"))

    async def test_concurrent_updates_all_persist(self) -> None:
        """Interleaved mutators on one item never lose an update."""
        await self.store.add_item(make_item("a1", self.clock.now))

        def bump(item: TrackedItem) -> None:
            item.tracking.check_count += 1

        await asyncio.gather(
            *(self.store.update_item("a1", bump) for _ in range(8))
        )
        item = await self.store.require_item("a1")
        self.assertEqual(item.tracking.check_count, 8)


class TestDomainGrants(unittest.IsolatedAsyncioTestCase):
    """User-granted domains kept in the key-value store."""

    def setUp(self) -> None:
        self.kv = MemoryKeyValueStore()
        self.store = ItemStore(self.kv)

    async def test_none_by_default(self) -> None:
        """Nothing is granted until the user grants it."""
        self.assertEqual(await self.store.get_granted_domains(), [])

    async def test_grant_survives_new_store(self) -> None:
        """A grant is visible to a store opened later on the same backend."""
        await self.store.grant_domain("WWW.Shop.Example")
        await self.store.grant_domain("shop.example")
        reopened = ItemStore(self.kv)
        self.assertEqual(await reopened.get_granted_domains(), ["shop.example"])
        self.assertEqual(
            await self.kv.get(Settings.GRANTS_KEY), ["shop.example"],
        )

    async def test_revoke(self) -> None:
        """Revoking removes only the named domain."""
        await self.store.grant_domain("a.example")
        await self.store.grant_domain("b.example")
        remaining = await self.store.revoke_domain("a.example")
        self.assertEqual(remaining, ["b.example"])
        self.assertEqual(await self.store.revoke_domain("zzz.example"), ["b.example"])


class TestSettings(unittest.IsolatedAsyncioTestCase):
    """User settings merge and validation."""

    def setUp(self) -> None:
        self.kv = MemoryKeyValueStore()
        self.store = ItemStore(self.kv)

    async def test_defaults(self) -> None:
        """With nothing stored the defaults apply."""
        settings = await self.store.get_settings()
        self.assertEqual(settings, Settings.DEFAULT_USER_SETTINGS)
        self.assertIsNot(settings, Settings.DEFAULT_USER_SETTINGS)

    async def test_partial_update_merges_per_section(self) -> None:
        """Unmentioned keys in a section keep their values."""
        merged = await self.store.update_settings(
            {"checking": {"batch_size": 20}}
        )
        self.assertEqual(merged["checking"]["batch_size"], 20)
        self.assertEqual(merged["checking"]["retry_attempts"], 3)
        self.assertEqual(merged["tracking"]["max_products"], 100)
        self.assertEqual(await self.store.get_settings(), merged)

    async def test_invalid_update_persists_nothing(self) -> None:
        """A rejected update leaves storage untouched."""
        for partial in (
            {"tracking": {"duration_days": 3}},
            {"checking": {"timeout_seconds": 61}},
            {"checking": {"colour": 1}},
            {"alerts": {"email": 1}},
            {"checking": {"batch_size": "5"}},
            {"checking": {"batch_size": True}},
        ):
            with self.subTest(partial=partial):
                with self.assertRaises(ValidationError):
                    await self.store.update_settings(partial)
                self.assertIsNone(await self.kv.get(Settings.SETTINGS_KEY))

    def test_validate_defaults(self) -> None:
        """The shipped defaults are within their limits."""
        validate_settings(Settings.DEFAULT_USER_SETTINGS)


if __name__ == "__main__":
    unittest.main()
