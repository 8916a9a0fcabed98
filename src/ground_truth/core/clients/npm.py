"""npm registry client.

API docs: https://github.com/npm/registry/blob/main/docs/REGISTRY-API.md
No authentication required.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional
from urllib.parse import quote, urlencode

from ..fetch import Fetcher
from ..models import ComparisonRow, MarketEstimate, PackageSummary, Registry

logger = logging.getLogger(__name__)

API_BASE = "https://registry.npmjs.org"

MAX_RESULTS = 10
MAX_DESCRIPTION_CHARS = 120
MAX_KEYWORDS = 10


def search_url(query: str, size: int = MAX_RESULTS) -> str:
    return f"{API_BASE}/-/v1/search?{urlencode({'text': query, 'size': size})}"


def package_url(name: str) -> str:
    """Metadata URL for a package; the slash in a scoped name is escaped."""
    return f"{API_BASE}/{quote(name, safe='@')}"


def _load_json(body: str) -> dict:
    try:
        data = json.loads(body)
    except ValueError:
        logger.warning("npm returned a non-JSON body (%d chars)", len(body))
        return {}
    return data if isinstance(data, dict) else {}


def _parse_hit(obj: Any) -> Optional[PackageSummary]:
    """Parse one search hit into a PackageSummary."""
    if not isinstance(obj, dict):
        return None
    pkg = obj.get("package")
    if not isinstance(pkg, dict):
        return None
    name = pkg.get("name")
    if not isinstance(name, str) or not name:
        return None
    description = pkg.get("description")
    version = pkg.get("version")
    score = obj.get("score")
    final = score.get("final") if isinstance(score, dict) else None
    return PackageSummary(
        name=name,
        description=description[:MAX_DESCRIPTION_CHARS] if isinstance(description, str) else "",
        version=version if isinstance(version, str) and version else "unknown",
        score=round(float(final), 3) if isinstance(final, (int, float)) else None,
    )


def parse_search(query: str, body: str) -> MarketEstimate:
    """Normalize an npm search response.

    ``total_results`` is the registry's own count and may exceed the number of
    hits returned on the page.
    """
    data = _load_json(body)
    objects = data.get("objects")
    if not isinstance(objects, list):
        objects = []

    results = []
    for obj in objects:
        hit = _parse_hit(obj)
        if hit is not None:
            results.append(hit)
        if len(results) == MAX_RESULTS:
            break

    total = data.get("total")
    return MarketEstimate(
        query=query,
        registry=Registry.NPM,
        total_results=total if isinstance(total, int) else len(results),
        top_results=results,
    )


async def search_packages(fetcher: Fetcher, query: str) -> MarketEstimate:
    """Search npm and return the top hits with the registry's total count."""
    result = await fetcher.cached_fetch(search_url(query))
    result.raise_for_status()
    return parse_search(query, result.body)


async def count_packages(fetcher: Fetcher, query: str) -> int:
    """Total number of npm packages matching a query."""
    result = await fetcher.cached_fetch(search_url(query, size=1))
    result.raise_for_status()
    total = _load_json(result.body).get("total")
    return total if isinstance(total, int) else 0


def _license_name(value: Any) -> Optional[str]:
    # Older packages publish {"type": "MIT", "url": ...}
    if isinstance(value, dict):
        return value.get("type")
    return value if isinstance(value, str) else None


def parse_package(name: str, body: str) -> ComparisonRow:
    """Build a comparison row from a package's registry document."""
    data = json.loads(body)
    if not isinstance(data, dict) or "name" not in data:
        raise ValueError(f"Unexpected npm metadata for {name}")

    latest = (data.get("dist-tags") or {}).get("latest")
    times = data.get("time") or {}
    versions = data.get("versions") or {}
    keywords = data.get("keywords")
    if not isinstance(keywords, list):
        keywords = (versions.get(latest) or {}).get("keywords") or []

    return ComparisonRow(
        name=name,
        found=True,
        description=data.get("description") or "",
        latest_version=latest,
        license=_license_name(data.get("license")),
        last_published=times.get(latest) if latest else None,
        created=times.get("created"),
        total_versions=len(versions),
        keywords=[str(k) for k in keywords][:MAX_KEYWORDS],
    )


async def fetch_package(fetcher: Fetcher, name: str) -> ComparisonRow:
    result = await fetcher.cached_fetch(package_url(name))
    result.raise_for_status()
    return parse_package(name, result.body)
