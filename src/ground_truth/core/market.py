"""Market estimation: how many packages already exist in a space."""

from __future__ import annotations

from .clients import npm, pypi
from .fetch import Fetcher
from .models import MarketEstimate, Registry


async def estimate_market(fetcher: Fetcher, query: str, registry: Registry = Registry.NPM) -> MarketEstimate:
    """Search a registry and return the total count plus the top 10 hits.

    PyPI totals are a count of scraped rows, not a registry figure; see
    ``MarketEstimate.approximate``.
    """
    if Registry(registry) is Registry.PYPI:
        return await pypi.search_packages(fetcher, query)
    return await npm.search_packages(fetcher, query)
