"""Local cache mirror for last-known-good collections.

CacheMirror keeps named JSON snapshots (one per collection) so the client can
cold-start with no network. It is best-effort: writes never raise on the
caller and unreadable snapshots read as absent. The backing store is injected
so tests can swap the on-disk store for an in-memory one.
"""

import asyncio
import json
import os
import re
from pathlib import Path
from typing import Any, Protocol

from src.campus_client.errors import CacheError
from src.campus_client.logging import get_logger

logger = get_logger(__name__)

PROFESSOR_RESERVATIONS_KEY = "professor_reservations"
STUDENT_RESERVATIONS_KEY = "student_reservations"
TIMETABLE_KEY = "timetable"
EDITING_RESERVATION_KEY = "editing_reservation"

_KEY_RE = re.compile(r"^[A-Za-z0-9_-]+$")


class CacheStore(Protocol):
    """Narrow key/value interface behind the cache mirror."""

    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str) -> None: ...

    async def delete(self, key: str) -> None: ...


class MemoryStore:
    """In-process store, used by tests and as a throwaway cache."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self.data: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> str | None:
        return self.data.get(key)

    async def set(self, key: str, value: str) -> None:
        self.data[key] = value

    async def delete(self, key: str) -> None:
        self.data.pop(key, None)


class JsonFileStore:
    """One `<key>.json` file per snapshot under a cache directory.

    Writes go to a temporary file first and are moved into place, so a crash
    mid-write leaves the previous snapshot intact.
    """

    def __init__(self, cache_dir: str = "data/cache") -> None:
        """Initialize JsonFileStore.

        Args:
            cache_dir: Directory to store snapshot files.
        """
        self.cache_dir = Path(cache_dir)
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        logger.info("cache_store_initialized", cache_dir=str(self.cache_dir))

    def _path(self, key: str) -> Path:
        if not _KEY_RE.match(key):
            raise CacheError(f"Invalid cache key {key!r}")
        return self.cache_dir / f"{key}.json"

    async def get(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        return await asyncio.to_thread(path.read_text, encoding="utf-8")

    async def set(self, key: str, value: str) -> None:
        path = self._path(key)
        tmp = path.with_suffix(".json.tmp")

        def _write() -> None:
            tmp.write_text(value, encoding="utf-8")
            os.replace(tmp, path)

        await asyncio.to_thread(_write)

    async def delete(self, key: str) -> None:
        path = self._path(key)
        if path.exists():
            path.unlink()


def _jsonable(item: Any) -> Any:
    if hasattr(item, "to_wire"):
        return item.to_wire()
    if hasattr(item, "model_dump"):
        return item.model_dump(mode="json", by_alias=True)
    return item


class CacheMirror:
    """Best-effort snapshot mirror over a CacheStore.

    Any component may overwrite a snapshot; there is no locking, and the last
    write wins.
    """

    def __init__(self, store: CacheStore) -> None:
        self.store = store

    async def write(self, key: str, collection: list[Any]) -> None:
        """Overwrite a collection snapshot. Never raises."""
        try:
            payload = json.dumps([_jsonable(item) for item in collection])
            await self.store.set(key, payload)
        except Exception as e:
            logger.warning("cache_write_failed", key=key, error=str(e), type=type(e).__name__)
            return
        logger.debug("cache_written", key=key, records=len(collection))

    async def read(self, key: str) -> list[Any] | None:
        """Return the snapshot for key, or None if missing or unreadable."""
        try:
            raw = await self.store.get(key)
            if raw is None:
                logger.debug("cache_miss", key=key)
                return None
            data = json.loads(raw)
        except Exception as e:
            logger.warning("cache_read_failed", key=key, error=str(e), type=type(e).__name__)
            return None

        if not isinstance(data, list):
            logger.warning("cache_record_malformed", key=key, type=type(data).__name__)
            return None
        return data

    async def write_record(self, key: str, record: Any) -> None:
        """Overwrite a single-record snapshot (e.g. the reservation being edited)."""
        try:
            await self.store.set(key, json.dumps(_jsonable(record)))
        except Exception as e:
            logger.warning("cache_write_failed", key=key, error=str(e), type=type(e).__name__)

    async def read_record(self, key: str) -> dict | None:
        """Return a single-record snapshot, or None if missing or unreadable."""
        try:
            raw = await self.store.get(key)
            data = json.loads(raw) if raw is not None else None
        except Exception as e:
            logger.warning("cache_read_failed", key=key, error=str(e), type=type(e).__name__)
            return None
        return data if isinstance(data, dict) else None

    async def clear(self, key: str) -> None:
        """Drop a snapshot. Never raises."""
        try:
            await self.store.delete(key)
        except Exception as e:
            logger.warning("cache_clear_failed", key=key, error=str(e), type=type(e).__name__)
            return
        logger.info("cache_cleared", key=key)
