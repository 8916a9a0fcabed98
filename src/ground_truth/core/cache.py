"""Read-through cache for idempotent GETs, backed by the SQLite `cache` table.

Expiry is enforced lazily: a row older than the TTL is deleted the moment
someone reads it. Concurrent misses for the same key are not deduplicated;
the upsert in ``put`` makes the last writer win.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from sqlalchemy import delete
from sqlalchemy.dialects.sqlite import insert
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..sqlmodels import CacheEntry

logger = logging.getLogger(__name__)

CACHE_TTL_MS = 5 * 60 * 1000


def now_ms() -> int:
    return int(time.time() * 1000)


class CacheStore:
    """Key/value store with a fixed time-to-live."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        ttl_ms: int = CACHE_TTL_MS,
        clock: Callable[[], int] = now_ms,
    ):
        self._session_factory = session_factory
        self._ttl_ms = ttl_ms
        self._clock = clock

    async def get(self, key: str) -> Optional[str]:
        """Return the cached payload, or None if missing or expired."""
        async with self._session_factory() as session:
            entry = await session.get(CacheEntry, key)
            if entry is None:
                return None
            age = self._clock() - entry.stored_at
            if age > self._ttl_ms:
                await session.delete(entry)
                await session.commit()
                logger.debug("Cache entry expired (age %d ms): %s", age, key)
                return None
            return entry.data

    async def put(self, key: str, payload: str) -> None:
        stmt = insert(CacheEntry).values(key=key, data=payload, stored_at=self._clock())
        stmt = stmt.on_conflict_do_update(
            index_elements=[CacheEntry.key],
            set_={"data": stmt.excluded.data, "stored_at": stmt.excluded.stored_at},
        )
        async with self._session_factory() as session:
            await session.execute(stmt)
            await session.commit()

    async def delete(self, key: str) -> None:
        async with self._session_factory() as session:
            await session.execute(delete(CacheEntry).where(CacheEntry.key == key))
            await session.commit()
