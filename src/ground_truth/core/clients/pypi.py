"""PyPI client.

Search has no JSON API, so results are scraped from https://pypi.org/search/.
Package metadata comes from the JSON API: https://docs.pypi.org/api/json/
"""

from __future__ import annotations

import html
import json
import logging
import re
from typing import Optional
from urllib.parse import quote, urlencode

from ..fetch import Fetcher
from ..models import ComparisonRow, MarketEstimate, PackageSummary, Registry

logger = logging.getLogger(__name__)

SEARCH_BASE = "https://pypi.org/search/"
API_BASE = "https://pypi.org/pypi"

MAX_RESULTS = 10
MAX_DESCRIPTION_CHARS = 120
MAX_KEYWORDS = 10

# Each field is located on its own; the lists may come back ragged.
_NAME_RE = re.compile(r'<span class="package-snippet__name">(.*?)</span>', re.DOTALL)
_VERSION_RE = re.compile(r'<span class="package-snippet__version">(.*?)</span>', re.DOTALL)
_DESCRIPTION_RE = re.compile(r'<p class="package-snippet__description">(.*?)</p>', re.DOTALL)


def search_url(query: str) -> str:
    return f"{SEARCH_BASE}?{urlencode({'q': query})}"


def package_url(name: str) -> str:
    return f"{API_BASE}/{quote(name)}/json"


def _extract(pattern: re.Pattern, page: str) -> list[str]:
    return [html.unescape(m).strip() for m in pattern.findall(page)]


def parse_search(query: str, page: str) -> MarketEstimate:
    """Normalize a rendered PyPI search page.

    Only as many rows as the shortest of the name/version/description lists
    are emitted. The page carries no authoritative hit count, so
    ``total_results`` is the number of names found and ``approximate`` is set.
    """
    names = _extract(_NAME_RE, page)
    versions = _extract(_VERSION_RE, page)
    descriptions = _extract(_DESCRIPTION_RE, page)

    count = min(len(names), len(versions), len(descriptions), MAX_RESULTS)
    if len({len(names), len(versions), len(descriptions)}) > 1:
        logger.info(
            "Ragged PyPI search markup for %r: %d names, %d versions, %d descriptions",
            query, len(names), len(versions), len(descriptions),
        )

    results = [
        PackageSummary(
            name=names[i],
            description=descriptions[i][:MAX_DESCRIPTION_CHARS],
            version=versions[i] or "unknown",
        )
        for i in range(count)
    ]
    return MarketEstimate(
        query=query,
        registry=Registry.PYPI,
        total_results=len(names),
        top_results=results,
        approximate=True,
    )


async def search_packages(fetcher: Fetcher, query: str) -> MarketEstimate:
    result = await fetcher.cached_fetch(search_url(query))
    result.raise_for_status()
    return parse_search(query, result.body)


def _split_keywords(raw: Optional[str]) -> list[str]:
    if not raw:
        return []
    return [k.strip() for k in raw.split(",") if k.strip()][:MAX_KEYWORDS]


def _upload_time(files: list) -> Optional[str]:
    times = [f.get("upload_time_iso_8601") or f.get("upload_time") for f in files if isinstance(f, dict)]
    times = [t for t in times if t]
    return min(times) if times else None


def parse_package(name: str, body: str) -> ComparisonRow:
    """Build a comparison row from a PyPI JSON API document."""
    data = json.loads(body)
    info = data.get("info") if isinstance(data, dict) else None
    if not isinstance(info, dict):
        raise ValueError(f"Unexpected PyPI metadata for {name}")

    releases = data.get("releases") or {}
    upload_times = [t for t in (_upload_time(files) for files in releases.values()) if t]

    return ComparisonRow(
        name=name,
        found=True,
        description=info.get("summary") or "",
        latest_version=info.get("version"),
        license=info.get("license") or None,
        last_published=_upload_time(data.get("urls") or []),
        created=min(upload_times) if upload_times else None,
        total_versions=len(releases),
        keywords=_split_keywords(info.get("keywords")),
    )


async def fetch_package(fetcher: Fetcher, name: str) -> ComparisonRow:
    result = await fetcher.cached_fetch(package_url(name))
    result.raise_for_status()
    return parse_package(name, result.body)
