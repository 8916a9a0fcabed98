"""SQLAlchemy models for the local SQLite response cache.

Only successful (2xx) response bodies are stored, keyed by request URL.
Rows older than the cache TTL are treated as absent and deleted on read.
"""

from __future__ import annotations

from sqlalchemy import BigInteger, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class CacheEntry(Base):
    """A cached response body for one URL."""

    __tablename__ = "cache"

    key: Mapped[str] = mapped_column(String, primary_key=True)
    data: Mapped[str] = mapped_column(Text, nullable=False)
    stored_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
