# pricewatch/storage/storage_mutex.py

"""Advisory lock kept in the shared key-value store."""

import asyncio
import logging
import time
import uuid
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Any

from pricewatch.config.settings import Settings
from pricewatch.storage.kv_store import KeyValueStore

logger = logging.getLogger("pricewatch.mutex")


class StorageMutex:
    """Mutual exclusion for read-modify-write sequences on the store.

    The lock is a record ``{"owner_id", "timestamp"}`` under
    :attr:`lock_key`. A record older than ``stale_after`` seconds
    belongs to a holder that died and may be taken over. If the lock
    cannot be obtained within ``timeout`` seconds it is force-acquired
    and the degradation is logged; callers never see a timeout.
    """

    def __init__(
        self,
        store: KeyValueStore,
        lock_key: str = Settings.LOCK_KEY,
        timeout: float = Settings.LOCK_TIMEOUT,
        poll_interval: float = Settings.LOCK_POLL_INTERVAL,
        stale_after: float = Settings.LOCK_STALE_AFTER,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self.store = store
        self.lock_key = lock_key
        self.timeout = timeout
        self.poll_interval = poll_interval
        self.stale_after = stale_after
        self._clock = clock
        self._sleep = sleep

    async def acquire(self) -> str:
        """Block until the lock is held; return the owner id."""
        owner_id = uuid.uuid4().hex
        started = self._clock()
        while True:
            if await self._try_acquire(owner_id):
                logger.debug("Lock %s acquired by %s", self.lock_key, owner_id)
                return owner_id
            if self._clock() - started >= self.timeout:
                await self._write_record(owner_id)
                logger.error(
                    "Lock %s not released within %.1fs; force-acquired by %s",
                    self.lock_key,
                    self.timeout,
                    owner_id,
                )
                return owner_id
            await self._sleep(self.poll_interval)

    async def release(self, owner_id: str) -> bool:
        """Clear the lock if *owner_id* still holds it."""
        record = await self.store.get(self.lock_key)
        if not record or record.get("owner_id") != owner_id:
            logger.warning(
                "Lock %s release by non-owner %s ignored",
                self.lock_key,
                owner_id,
            )
            return False
        await self.store.remove(self.lock_key)
        logger.debug("Lock %s released by %s", self.lock_key, owner_id)
        return True

    @asynccontextmanager
    async def locked(self) -> AsyncIterator[str]:
        """``async with mutex.locked():`` around a compound operation."""
        owner_id = await self.acquire()
        try:
            yield owner_id
        finally:
            await self.release(owner_id)

    # ── Private helpers ──────────────────────────────────

    async def _try_acquire(self, owner_id: str) -> bool:
        record = await self.store.get(self.lock_key)
        if record:
            age = self._clock() - float(record.get("timestamp", 0))
            if age <= self.stale_after:
                return False
            logger.warning(
                "Stale lock %s from %s (%.1fs old), taking over",
                self.lock_key,
                record.get("owner_id"),
                age,
            )
        await self._write_record(owner_id)
        # Another actor may have written between our read and write
        confirmed = await self.store.get(self.lock_key)
        return bool(confirmed) and confirmed.get("owner_id") == owner_id

    async def _write_record(self, owner_id: str) -> None:
        await self.store.set(
            self.lock_key,
            {"owner_id": owner_id, "timestamp": self._clock()},
        )
