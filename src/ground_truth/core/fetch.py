"""HTTP retrieval — cache-aside fetch, direct fetch, and endpoint probing.

Only 2xx bodies are ever written to the cache, so anything read back from it
is known-good content. Transport errors (``httpx.HTTPError``) propagate; the
callers decide how to report them.
"""

from __future__ import annotations

import logging
import os
import time
from typing import Optional

import httpx
from pydantic import Field
from sqlalchemy.exc import SQLAlchemyError

from .. import __version__
from .cache import CacheStore
from .models import ProbeResult, Record

logger = logging.getLogger(__name__)

USER_AGENT = f"GroundTruth/{__version__}"
DEFAULT_TIMEOUT_SECONDS = 10.0
SAMPLE_CHARS = 1000
RATE_LIMIT_HEADER_PREFIXES = ("x-ratelimit", "ratelimit", "retry-after")


class FetchError(Exception):
    """Raised when a response that needs to be good content is not 2xx."""

    def __init__(self, status: int, url: str) -> None:
        self.status = status
        self.url = url
        super().__init__(f"HTTP {status} from {url}")


class FetchResult(Record):
    """A response body, either fresh from the network or from the cache."""

    url: str
    body: str
    status: int = Field(description="200 for cache hits; only 2xx bodies are cached")
    from_cache: bool = False

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def raise_for_status(self) -> None:
        if not self.ok:
            raise FetchError(self.status, self.url)


def get_timeout() -> httpx.Timeout:
    """Per-request bound, overridable with FETCH_TIMEOUT_SECONDS."""
    seconds = float(os.environ.get("FETCH_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS))
    return httpx.Timeout(seconds, connect=min(seconds, 5.0))


def create_http_client(transport: Optional[httpx.AsyncBaseTransport] = None) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        timeout=get_timeout(),
        headers={"User-Agent": USER_AGENT},
        follow_redirects=True,
        transport=transport,
    )


class Fetcher:
    """Network access for the verification engine.

    Args:
        http: Shared async HTTP client.
        cache: Cache used by ``cached_fetch``.
    """

    def __init__(self, http: httpx.AsyncClient, cache: CacheStore):
        self.http = http
        self.cache = cache

    async def fetch(self, url: str) -> FetchResult:
        """GET a URL directly, bypassing the cache in both directions."""
        response = await self.http.get(url)
        return FetchResult(url=url, body=response.text, status=response.status_code)

    async def cached_fetch(self, url: str) -> FetchResult:
        """GET a URL through the cache.

        Hits return ``from_cache=True``. Misses go to the network and store the
        body only if the status is 2xx. A failed cache write is logged and the
        fresh body is still returned.
        """
        cached = await self.cache.get(url)
        if cached is not None:
            logger.debug("Cache hit: %s", url)
            return FetchResult(url=url, body=cached, status=200, from_cache=True)

        logger.debug("Cache miss: %s", url)
        result = await self.fetch(url)
        if result.ok:
            try:
                await self.cache.put(url, result.body)
            except SQLAlchemyError as exc:
                logger.warning("Could not cache %s: %s", url, exc)
        else:
            logger.info("Not caching HTTP %d from %s", result.status, url)
        return result

    async def probe(self, url: str) -> ProbeResult:
        """Report whether a URL answers, how fast, and what it asks of callers."""
        start = time.perf_counter()
        try:
            response = await self.http.get(url)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.warning("Probe of %s failed: %s", url, exc)
            return ProbeResult(
                url=url,
                accessible=False,
                response_time_ms=_elapsed_ms(start),
                error=str(exc) or exc.__class__.__name__,
            )

        status = response.status_code
        return ProbeResult(
            url=url,
            accessible=response.is_success,
            status=status,
            content_type=response.headers.get("content-type"),
            response_time_ms=_elapsed_ms(start),
            auth_required=status in (401, 403),
            rate_limited=status == 429,
            rate_limit_headers={
                name: value
                for name, value in response.headers.items()
                if name.lower().startswith(RATE_LIMIT_HEADER_PREFIXES)
            },
            sample=response.text[:SAMPLE_CHARS],
        )


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)
