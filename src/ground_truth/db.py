"""SQLite database connection and schema management.

The cache lives in ~/.ground-truth/cache.db by default.
WAL mode is enabled so concurrent tool calls can read while another writes.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from .sqlmodels import Base

logger = logging.getLogger(__name__)

DEFAULT_DATA_DIR = os.path.expanduser("~/.ground-truth")


def get_data_dir() -> Path:
    """Get the data directory, creating it if needed."""
    data_dir = Path(os.environ.get("DATA_DIR", DEFAULT_DATA_DIR))
    data_dir.mkdir(parents=True, exist_ok=True)
    return data_dir


def get_db_url() -> str:
    """Get the SQLite database URL."""
    db_path = get_data_dir() / "cache.db"
    return f"sqlite+aiosqlite:///{db_path}"


def _set_wal_mode(dbapi_connection, connection_record):
    """Enable WAL mode for concurrent reads during writes."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA synchronous=NORMAL")
    cursor.execute("PRAGMA busy_timeout=5000")
    cursor.close()


def create_engine(db_url: Optional[str] = None) -> AsyncEngine:
    engine = create_async_engine(db_url or get_db_url(), echo=False)
    event.listen(engine.sync_engine, "connect", _set_wal_mode)
    return engine


def get_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False)


async def init_db(engine: AsyncEngine):
    """Create all tables if they don't exist."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database initialized at %s", engine.url.database)


async def close_db(engine: AsyncEngine):
    """Close the database engine."""
    await engine.dispose()
