"""Side-by-side package comparison with per-package failure isolation."""

from __future__ import annotations

import asyncio
import logging

import httpx

from .clients import npm, pypi
from .fetch import FetchError, Fetcher
from .models import ComparisonRow, PackageComparison, Registry

logger = logging.getLogger(__name__)


async def _compare_one(fetcher: Fetcher, name: str, registry: Registry) -> ComparisonRow:
    client = pypi if registry is Registry.PYPI else npm
    try:
        return await client.fetch_package(fetcher, name)
    except FetchError as exc:
        error = "not found" if exc.status == 404 else str(exc)
    except (httpx.HTTPError, httpx.InvalidURL, ValueError, AttributeError, TypeError) as exc:
        error = str(exc) or exc.__class__.__name__
    logger.warning("Comparison lookup for %s on %s failed: %s", name, registry.value, error)
    return ComparisonRow(name=name, found=False, error=error)


async def compare_packages(fetcher: Fetcher, names: list[str], registry: Registry = Registry.NPM) -> PackageComparison:
    """Fetch registry metadata for each package.

    One package failing (missing, unreachable, malformed) yields a
    ``found=False`` row and never aborts the others. Rows keep input order.
    """
    registry = Registry(registry)
    rows = list(await asyncio.gather(*(_compare_one(fetcher, name, registry) for name in names)))
    found = sum(1 for r in rows if r.found)
    return PackageComparison(registry=registry, packages=rows, found=found, missing=len(rows) - found)
