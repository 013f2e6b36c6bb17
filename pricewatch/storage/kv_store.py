# pricewatch/storage/kv_store.py

"""Key-value persistence shared by every actor in the process (and beyond).

Values are JSON documents. The store does no locking of its own;
callers that read-modify-write wrap themselves in a
:class:`~pricewatch.storage.storage_mutex.StorageMutex`.
"""

import asyncio
import json
import logging
import sqlite3
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Any

from pricewatch.config.settings import Settings

logger = logging.getLogger("pricewatch.kv_store")

_SCHEMA = """\
CREATE TABLE IF NOT EXISTS kv (
    key        TEXT PRIMARY KEY,
    value      TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
"""


class KeyValueStore(ABC):
    """Asynchronous get/set/remove over JSON values."""

    @abstractmethod
    async def get(self, key: str) -> Any | None: ...

    @abstractmethod
    async def set(self, key: str, value: Any) -> None: ...

    @abstractmethod
    async def remove(self, key: str) -> None: ...


class MemoryKeyValueStore(KeyValueStore):
    """In-process store that still serialises values and yields on I/O.

    Yielding to the loop on every call keeps interleavings realistic,
    so lock-free read-modify-write races show up in tests the same way
    they would against a real backend.
    """

    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    async def get(self, key: str) -> Any | None:
        await asyncio.sleep(0)
        raw = self._data.get(key)
        return json.loads(raw) if raw is not None else None

    async def set(self, key: str, value: Any) -> None:
        encoded = json.dumps(value)
        await asyncio.sleep(0)
        self._data[key] = encoded

    async def remove(self, key: str) -> None:
        await asyncio.sleep(0)
        self._data.pop(key, None)


class SQLiteKeyValueStore(KeyValueStore):
    """SQLite-backed store; blocking calls run in a worker thread."""

    def __init__(self, db_path: Path | None = None) -> None:
        path = db_path or Settings.DB_PATH
        path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(
            str(path), check_same_thread=False,
        )
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.executescript(_SCHEMA)
        logger.debug("SQLiteKeyValueStore opened at %s", path)

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()

    async def get(self, key: str) -> Any | None:
        return await asyncio.to_thread(self._get, key)

    async def set(self, key: str, value: Any) -> None:
        await asyncio.to_thread(self._set, key, json.dumps(value))

    async def remove(self, key: str) -> None:
        await asyncio.to_thread(self._remove, key)

    # ── Private helpers ──────────────────────────────────

    def _get(self, key: str) -> Any | None:
        row = self._conn.execute(
            "SELECT value FROM kv WHERE key = ?", (key,),
        ).fetchone()
        return json.loads(row[0]) if row else None

    def _set(self, key: str, encoded: str) -> None:
        self._conn.execute(
            "INSERT INTO kv (key, value, updated_at) VALUES (?, ?, ?) "
            "ON CONFLICT(key) DO UPDATE SET "
            "value=excluded.value, updated_at=excluded.updated_at",
            (key, encoded, datetime.now().isoformat()),
        )
        self._conn.commit()

    def _remove(self, key: str) -> None:
        self._conn.execute("DELETE FROM kv WHERE key = ?", (key,))
        self._conn.commit()
