"""Shared fixtures: a throwaway SQLite cache, a controllable clock, and
fetchers whose network is an ``httpx.MockTransport`` handler."""

from __future__ import annotations

import httpx
import pytest

from ground_truth.core.cache import CacheStore
from ground_truth.core.fetch import Fetcher, create_http_client
from ground_truth.db import close_db, create_engine, get_session_factory, init_db


class FakeClock:
    """Epoch-millisecond clock that only moves when told to."""

    def __init__(self, start: int = 1_700_000_000_000) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
async def cache(tmp_path, clock):
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'cache.db'}")
    await init_db(engine)
    yield CacheStore(get_session_factory(engine), clock=clock)
    await close_db(engine)


@pytest.fixture
async def make_fetcher(cache):
    """Build a Fetcher whose requests are answered by ``handler``."""
    clients: list[httpx.AsyncClient] = []

    def _make(handler) -> Fetcher:
        http = create_http_client(transport=httpx.MockTransport(handler))
        clients.append(http)
        return Fetcher(http, cache)

    yield _make
    for http in clients:
        await http.aclose()
