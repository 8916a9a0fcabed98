"""Claim cross-referencing by keyword coverage across evidence pages."""

from __future__ import annotations

import asyncio
import logging

import httpx

from .fetch import FetchError, Fetcher
from .models import ClaimSummary, ClaimVerdict, EvidenceSource

logger = logging.getLogger(__name__)

SUPPORT_THRESHOLD = 0.5


def match_keywords(body: str, keywords: list[str]) -> list[str]:
    """Keywords that occur in the body, case-insensitively, in input order."""
    text = body.lower()
    return [k for k in keywords if k.lower() in text]


def score_source(url: str, body: str, keywords: list[str]) -> EvidenceSource:
    matched = match_keywords(body, keywords)
    ratio = round(len(matched) / len(keywords), 2) if keywords else 0.0
    return EvidenceSource(
        url=url,
        accessible=True,
        keywords_matched=matched,
        keywords_total=len(keywords),
        match_ratio=ratio,
        supports=ratio >= SUPPORT_THRESHOLD,
    )


async def _check_source(fetcher: Fetcher, url: str, keywords: list[str]) -> EvidenceSource:
    try:
        result = await fetcher.cached_fetch(url)
        result.raise_for_status()
    except (httpx.HTTPError, httpx.InvalidURL, FetchError) as exc:
        logger.warning("Evidence source %s unavailable: %s", url, exc)
        return EvidenceSource(
            url=url,
            accessible=False,
            keywords_total=len(keywords),
            match_ratio=0.0,
            supports=False,
            error=str(exc) or exc.__class__.__name__,
        )
    return score_source(url, result.body, keywords)


def summarize(supporting: int, total: int) -> ClaimSummary:
    if total and supporting == total:
        return ClaimSummary.CONFIRMED
    if supporting == 0:
        return ClaimSummary.UNCONFIRMED
    if supporting / total >= SUPPORT_THRESHOLD:
        return ClaimSummary.LIKELY_TRUE
    return ClaimSummary.LIKELY_FALSE


async def verify_claim(fetcher: Fetcher, claim: str, urls: list[str], keywords: list[str]) -> ClaimVerdict:
    """Check how well each evidence URL covers the claim's keywords.

    A source supports the claim when at least half of the keywords appear in
    it. Unreachable sources count against the claim rather than being dropped.
    """
    sources = list(await asyncio.gather(*(_check_source(fetcher, url, keywords) for url in urls)))
    supporting = sum(1 for s in sources if s.supports)
    return ClaimVerdict(
        claim=claim,
        sources=sources,
        supporting=supporting,
        contradicting=len(sources) - supporting,
        confidence=round(supporting / len(sources), 2) if sources else 0.0,
        summary=summarize(supporting, len(sources)),
    )
