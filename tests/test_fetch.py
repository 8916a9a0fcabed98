"""Tests for cache-aside fetching and endpoint probing."""

from __future__ import annotations

import httpx
import pytest
from sqlalchemy.exc import OperationalError

from ground_truth.core.fetch import USER_AGENT, FetchError, FetchResult, get_timeout

URL = "https://api.example.com/v1/things"


class TestCachedFetch:
    async def test_miss_then_hit(self, make_fetcher) -> None:
        calls: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(str(request.url))
            return httpx.Response(200, text="payload")

        fetcher = make_fetcher(handler)

        first = await fetcher.cached_fetch(URL)
        second = await fetcher.cached_fetch(URL)

        assert (first.body, first.from_cache) == ("payload", False)
        assert (second.body, second.from_cache) == ("payload", True)
        assert len(calls) == 1

    async def test_server_error_is_not_cached(self, make_fetcher, cache) -> None:
        calls: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(str(request.url))
            return httpx.Response(500, text="boom")

        fetcher = make_fetcher(handler)

        first = await fetcher.cached_fetch(URL)
        second = await fetcher.cached_fetch(URL)

        assert first.status == 500 and first.body == "boom"
        assert second.from_cache is False
        assert len(calls) == 2
        assert await cache.get(URL) is None

    async def test_transport_error_propagates_uncached(self, make_fetcher, cache) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        fetcher = make_fetcher(handler)

        with pytest.raises(httpx.ConnectError):
            await fetcher.cached_fetch(URL)
        assert await cache.get(URL) is None

    async def test_cache_write_failure_still_returns_body(self, make_fetcher, cache, monkeypatch) -> None:
        async def locked(url: str, body: str) -> None:
            raise OperationalError("INSERT INTO cache", {}, Exception("database is locked"))

        monkeypatch.setattr(cache, "put", locked)
        fetcher = make_fetcher(lambda request: httpx.Response(200, text="payload"))

        result = await fetcher.cached_fetch(URL)

        assert (result.body, result.status, result.from_cache) == ("payload", 200, False)
        assert await cache.get(URL) is None

    async def test_expired_entry_refetches(self, make_fetcher, clock) -> None:
        bodies = iter(["v1", "v2"])

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text=next(bodies))

        fetcher = make_fetcher(handler)

        await fetcher.cached_fetch(URL)
        clock.advance(5 * 60 * 1000 + 1)
        result = await fetcher.cached_fetch(URL)

        assert (result.body, result.from_cache) == ("v2", False)

    async def test_direct_fetch_bypasses_cache(self, make_fetcher, cache) -> None:
        await cache.put(URL, "stale")

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="fresh")

        result = await make_fetcher(handler).fetch(URL)

        assert result.body == "fresh"
        assert await cache.get(URL) == "stale"

    async def test_sends_user_agent(self, make_fetcher) -> None:
        seen: dict[str, str] = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["ua"] = request.headers["user-agent"]
            return httpx.Response(200)

        await make_fetcher(handler).fetch(URL)
        assert seen["ua"] == USER_AGENT


def test_raise_for_status() -> None:
    FetchResult(url=URL, body="", status=204).raise_for_status()
    with pytest.raises(FetchError, match="HTTP 404"):
        FetchResult(url=URL, body="", status=404).raise_for_status()


def test_timeout_from_environment(monkeypatch) -> None:
    monkeypatch.setenv("FETCH_TIMEOUT_SECONDS", "3")
    timeout = get_timeout()
    assert timeout.read == 3.0
    assert timeout.connect == 3.0


class TestProbe:
    async def test_successful_probe(self, make_fetcher) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                text="x" * 1500,
                headers={"content-type": "application/json", "x-ratelimit-remaining": "59"},
            )

        probe = await make_fetcher(handler).probe(URL)

        assert probe.accessible is True
        assert probe.status == 200
        assert probe.content_type == "application/json"
        assert probe.auth_required is False
        assert probe.rate_limited is False
        assert probe.rate_limit_headers == {"x-ratelimit-remaining": "59"}
        assert len(probe.sample) == 1000
        assert probe.response_time_ms >= 0

    @pytest.mark.parametrize("status", [401, 403])
    async def test_auth_required(self, make_fetcher, status) -> None:
        probe = await make_fetcher(lambda request: httpx.Response(status)).probe(URL)
        assert probe.accessible is False
        assert probe.auth_required is True

    async def test_rate_limited(self, make_fetcher) -> None:
        probe = await make_fetcher(
            lambda request: httpx.Response(429, headers={"retry-after": "30"})
        ).probe(URL)
        assert probe.rate_limited is True
        assert probe.rate_limit_headers == {"retry-after": "30"}

    async def test_unreachable(self, make_fetcher) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("name resolution failed", request=request)

        probe = await make_fetcher(handler).probe(URL)

        assert probe.accessible is False
        assert probe.status is None
        assert probe.error == "name resolution failed"

    async def test_probe_is_not_cached(self, make_fetcher, cache) -> None:
        await make_fetcher(lambda request: httpx.Response(200, text="ok")).probe(URL)
        assert await cache.get(URL) is None
