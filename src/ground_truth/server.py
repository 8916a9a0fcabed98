"""Ground Truth MCP Server.

FastMCP server with 6 read-only verification tools.
Run: ground-truth-mcp
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Annotated, AsyncIterator

from mcp.server.fastmcp import Context, FastMCP
from mcp.types import ToolAnnotations
from pydantic import BaseModel, Field

from .core.cache import CacheStore
from .core.claims import verify_claim as run_claim_check
from .core.compare import compare_packages as run_comparison
from .core.fetch import Fetcher, create_http_client
from .core.hypothesis import run_hypothesis
from .core.market import estimate_market as run_market_estimate
from .core.models import Registry, TestSpec
from .core.pricing import check_pricing as run_pricing_check
from .db import close_db, create_engine, get_session_factory, init_db

logger = logging.getLogger(__name__)

READ_ONLY = ToolAnnotations(readOnlyHint=True, destructiveHint=False, idempotentHint=True, openWorldHint=True)


@dataclass
class AppContext:
    """Per-process resources handed to every tool call."""

    fetcher: Fetcher


@asynccontextmanager
async def lifespan(server: FastMCP) -> AsyncIterator[AppContext]:
    """Initialize the cache database and the shared HTTP client."""
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")
    engine = create_engine()
    await init_db(engine)
    cache = CacheStore(get_session_factory(engine))
    try:
        async with create_http_client() as http:
            yield AppContext(fetcher=Fetcher(http, cache))
    finally:
        await close_db(engine)


mcp = FastMCP(
    "Ground Truth",
    instructions="Verify claims against live data before presenting them — probe endpoints, count competing packages, read pricing pages, compare packages, cross-check claims, and run hypothesis test batteries.",
    lifespan=lifespan,
)


def _fetcher(ctx: Context) -> Fetcher:
    return ctx.request_context.lifespan_context.fetcher


def _dump(record: BaseModel, **kwargs) -> dict:
    return record.model_dump(mode="json", by_alias=True, **kwargs)


# ─── Tool 1: Endpoint Probe ──────────────────────────────────────────────────


@mcp.tool(annotations=READ_ONLY)
async def check_endpoint(url: str, ctx: Context) -> dict:
    """Probe a URL/API endpoint — status, auth requirements, response time, content type, rate limit headers, and a response sample.

    Use this to verify an API actually exists and what it returns before recommending it.

    Args:
        url: The URL to probe.
    """
    return _dump(await _fetcher(ctx).probe(url))


# ─── Tool 2: Market Estimate ─────────────────────────────────────────────────


@mcp.tool(annotations=READ_ONLY)
async def estimate_market(query: str, ctx: Context, registry: Registry = Registry.NPM) -> dict:
    """Count how many packages exist in a space and list the top 10 by relevance.

    Use this to validate competition claims ("nobody has built X").

    Args:
        query: Search query (e.g. 'mcp memory server').
        registry: 'npm' or 'pypi'. PyPI totals are approximate (scraped row count). Default 'npm'.
    """
    estimate = await run_market_estimate(_fetcher(ctx), query, registry)
    return _dump(estimate)


# ─── Tool 3: Pricing ─────────────────────────────────────────────────────────


@mcp.tool(annotations=READ_ONLY)
async def check_pricing(url: str, ctx: Context) -> dict:
    """Extract literal pricing signals from a pricing page — prices, plan tiers, free option, free trial.

    Args:
        url: The pricing page URL.
    """
    return _dump(await run_pricing_check(_fetcher(ctx), url))


# ─── Tool 4: Compare Packages ────────────────────────────────────────────────


@mcp.tool(annotations=READ_ONLY)
async def compare_packages(
    packages: Annotated[list[str], Field(min_length=2, max_length=10)],
    ctx: Context,
    registry: Registry = Registry.NPM,
) -> dict:
    """Compare registry metadata for 2-10 packages — latest version, license, publish dates, version count, keywords.

    Packages that cannot be found are reported as found=false without failing the rest.

    Args:
        packages: Package names to compare.
        registry: 'npm' or 'pypi'. Default 'npm'.
    """
    comparison = await run_comparison(_fetcher(ctx), packages, registry)
    return _dump(comparison, exclude_none=True)


# ─── Tool 5: Verify Claim ────────────────────────────────────────────────────


@mcp.tool(annotations=READ_ONLY)
async def verify_claim(
    claim: str,
    urls: Annotated[list[str], Field(min_length=1, max_length=10)],
    keywords: Annotated[list[str], Field(min_length=1, max_length=20)],
    ctx: Context,
) -> dict:
    """Cross-check a claim against evidence pages by keyword coverage.

    A source supports the claim when at least half of the keywords appear in it.

    Args:
        claim: The claim being checked.
        urls: Evidence URLs (1-10).
        keywords: Keywords that should appear in supporting evidence (1-20).
    """
    return _dump(await run_claim_check(_fetcher(ctx), claim, urls, keywords))


# ─── Tool 6: Test Hypothesis ─────────────────────────────────────────────────


@mcp.tool(annotations=READ_ONLY)
async def test_hypothesis(
    hypothesis: str,
    tests: Annotated[list[TestSpec], Field(min_length=1)],
    ctx: Context,
) -> dict:
    """Test a factual claim against live data with a battery of checks.

    Test types: endpoint_exists (url), npm_count_above / npm_count_below (query, threshold),
    response_contains (url, substring). Returns pass/fail per test and an overall verdict.

    Args:
        hypothesis: The claim to test.
        tests: Ordered list of tests to run.
    """
    return _dump(await run_hypothesis(_fetcher(ctx), hypothesis, tests))


def main():
    """Entry point for the CLI command."""
    mcp.run()


if __name__ == "__main__":
    main()
