"""Tests for claim cross-referencing."""

from __future__ import annotations

import httpx
import pytest

from ground_truth.core.claims import match_keywords, score_source, summarize, verify_claim
from ground_truth.core.models import ClaimSummary

KEYWORDS = ["mcp", "oauth", "python", "rust"]
EVIDENCE = "The MCP server supports OAuth 2.1 and is written in Python."


def test_three_of_four_keywords_supports() -> None:
    source = score_source("https://a.example", EVIDENCE, KEYWORDS)

    assert source.keywords_matched == ["mcp", "oauth", "python"]
    assert source.keywords_total == 4
    assert source.match_ratio == 0.75
    assert source.supports is True


def test_ratio_rounded_to_two_decimals() -> None:
    source = score_source("https://a.example", "alpha", ["alpha", "beta", "gamma"])
    assert source.match_ratio == 0.33
    assert source.supports is False


def test_keyword_match_is_case_insensitive_and_keeps_input_spelling() -> None:
    assert match_keywords("Uses PostgreSQL", ["postgresql", "MySQL", "POSTGRES"]) == ["postgresql", "POSTGRES"]


@pytest.mark.parametrize(
    "supporting, total, summary",
    [
        (3, 3, ClaimSummary.CONFIRMED),
        (0, 3, ClaimSummary.UNCONFIRMED),
        (1, 2, ClaimSummary.LIKELY_TRUE),
        (2, 3, ClaimSummary.LIKELY_TRUE),
        (1, 3, ClaimSummary.LIKELY_FALSE),
    ],
)
def test_summary_thresholds(supporting, total, summary) -> None:
    assert summarize(supporting, total) is summary


async def test_unreachable_source_counts_against_claim(make_fetcher) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.host == "down.example":
            raise httpx.ConnectError("connection refused", request=request)
        if request.url.host == "gone.example":
            return httpx.Response(404, text="mcp oauth python rust")
        return httpx.Response(200, text=EVIDENCE)

    urls = ["https://down.example/", "https://ok.example/", "https://gone.example/"]
    verdict = await verify_claim(make_fetcher(handler), "MCP server in Python with OAuth", urls, KEYWORDS)

    assert [s.url for s in verdict.sources] == urls
    down, ok, gone = verdict.sources
    assert (down.accessible, down.supports, down.error) == (False, False, "connection refused")
    assert ok.supports is True
    assert (gone.accessible, gone.supports) == (False, False)
    assert verdict.supporting == 1
    assert verdict.contradicting == 2
    assert verdict.confidence == 0.33
    assert verdict.summary is ClaimSummary.LIKELY_FALSE


async def test_all_sources_support(make_fetcher) -> None:
    fetcher = make_fetcher(lambda request: httpx.Response(200, text=EVIDENCE))

    verdict = await verify_claim(fetcher, "claim", ["https://a.example/", "https://b.example/"], KEYWORDS)

    assert verdict.summary is ClaimSummary.CONFIRMED
    assert verdict.confidence == 1.0
    assert verdict.model_dump(by_alias=True)["sources"][0]["matchRatio"] == 0.75


async def test_malformed_url_counts_against_claim(make_fetcher) -> None:
    fetcher = make_fetcher(lambda request: httpx.Response(200, text=EVIDENCE))

    verdict = await verify_claim(fetcher, "claim", ["https://ok.example/", "https://[::1"], KEYWORDS)

    ok, bad = verdict.sources
    assert ok.supports is True
    assert (bad.accessible, bad.supports) == (False, False)
    assert bad.error
    assert (verdict.supporting, verdict.contradicting) == (1, 1)
    assert verdict.summary is ClaimSummary.LIKELY_TRUE
