# pricewatch/network/rate_limiter.py

"""Sliding-window rate limiter whose state lives in the shared store."""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any

from pricewatch.config.settings import Settings
from pricewatch.storage.kv_store import KeyValueStore
from pricewatch.storage.storage_mutex import StorageMutex

logger = logging.getLogger("pricewatch.rate_limiter")


class SharedRateLimiter:
    """At most ``max_requests`` requests per ``window`` seconds.

    Request timestamps are persisted under :attr:`key` so that every
    caller sharing the store (scheduled checks, on-demand checks, a
    restarted process) draws from the same quota. The window update is
    guarded by its own mutex, which is released before waiting.
    """

    def __init__(
        self,
        store: KeyValueStore,
        max_requests: int = Settings.RATE_LIMIT_MAX_REQUESTS,
        window: float = Settings.RATE_LIMIT_WINDOW,
        key: str = Settings.RATE_LIMIT_KEY,
        mutex: StorageMutex | None = None,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self.store = store
        self.max_requests = max_requests
        self.window = window
        self.key = key
        self.mutex = mutex or StorageMutex(
            store, lock_key=f"{key}_lock", clock=clock, sleep=sleep,
        )
        self._clock = clock
        self._sleep = sleep

    async def acquire(self) -> None:
        """Record one request, waiting first if the window is full."""
        wait = await self._reserve()
        if wait is None:
            return
        logger.info(
            "Rate limit reached (%d/%d in %.0fs), waiting %.2fs",
            self.max_requests,
            self.max_requests,
            self.window,
            wait,
        )
        await self._sleep(wait)
        await self.acquire()

    async def current_count(self) -> int:
        """Requests recorded within the trailing window."""
        now = self._clock()
        stamps = await self.store.get(self.key) or []
        return sum(1 for ts in stamps if now - ts < self.window)

    async def reset(self) -> None:
        async with self.mutex.locked():
            await self.store.set(self.key, [])

    # ── Private helpers ──────────────────────────────────

    async def _reserve(self) -> float | None:
        """Take a slot and return ``None``, or return seconds to wait."""
        async with self.mutex.locked():
            now = self._clock()
            stamps = [
                ts for ts in await self.store.get(self.key) or []
                if now - ts < self.window
            ]
            if len(stamps) < self.max_requests:
                stamps.append(now)
                await self.store.set(self.key, stamps)
                return None
            await self.store.set(self.key, stamps)
        oldest = min(stamps)
        return self.window - (now - oldest) + Settings.RATE_LIMIT_SLACK
