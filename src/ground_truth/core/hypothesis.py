"""Declarative hypothesis testing against live data.

A hypothesis comes with a battery of tests. Each test runs on its own: a
missing argument or a failed request makes that test inconclusive, and the
rest of the battery still runs.
"""

from __future__ import annotations

import logging

from .clients import npm
from .fetch import Fetcher
from .models import HypothesisSummary, HypothesisVerdict, Outcome, TestResult, TestSpec, TestType

logger = logging.getLogger(__name__)


def _inconclusive(spec: TestSpec, actual: str) -> TestResult:
    return TestResult(description=spec.description, type=spec.type, outcome=Outcome.INCONCLUSIVE, actual=actual, reason=actual)


def _verdict(spec: TestSpec, passed: bool, actual) -> TestResult:
    return TestResult(
        description=spec.description,
        type=spec.type,
        outcome=Outcome.PASS if passed else Outcome.FAIL,
        actual=actual,
    )


async def _endpoint_exists(fetcher: Fetcher, spec: TestSpec) -> TestResult:
    if not spec.url:
        return _inconclusive(spec, "no url provided")
    result = await fetcher.fetch(spec.url)
    return _verdict(spec, result.ok, f"status {result.status}")


async def _npm_count(fetcher: Fetcher, spec: TestSpec) -> TestResult:
    if not spec.query:
        return _inconclusive(spec, "no query provided")
    total = await npm.count_packages(fetcher, spec.query)
    threshold = spec.threshold or 0
    if spec.type is TestType.NPM_COUNT_ABOVE:
        return _verdict(spec, total > threshold, total)
    return _verdict(spec, total < threshold, total)


async def _response_contains(fetcher: Fetcher, spec: TestSpec) -> TestResult:
    if not spec.url:
        return _inconclusive(spec, "no url provided")
    result = await fetcher.cached_fetch(spec.url)
    contains = bool(spec.substring) and spec.substring in result.body
    return _verdict(spec, contains, f"{len(result.body)} chars, contains={str(contains).lower()}")


RUNNERS = {
    TestType.ENDPOINT_EXISTS: _endpoint_exists,
    TestType.NPM_COUNT_ABOVE: _npm_count,
    TestType.NPM_COUNT_BELOW: _npm_count,
    TestType.RESPONSE_CONTAINS: _response_contains,
}


async def run_test(fetcher: Fetcher, spec: TestSpec) -> TestResult:
    """Run one test; any exception becomes an inconclusive result."""
    try:
        return await RUNNERS[spec.type](fetcher, spec)
    except Exception as exc:
        logger.warning("Test %r (%s) errored: %s", spec.description, spec.type.value, exc)
        return _inconclusive(spec, str(exc) or exc.__class__.__name__)


def summarize(passed: int, total: int) -> HypothesisSummary:
    if total and passed == total:
        return HypothesisSummary.SUPPORTED
    if passed == 0:
        return HypothesisSummary.REFUTED
    return HypothesisSummary.PARTIALLY_SUPPORTED


async def run_hypothesis(fetcher: Fetcher, hypothesis: str, tests: list[TestSpec]) -> HypothesisVerdict:
    """Run every test in order and aggregate a verdict.

    Inconclusive tests count as failed: SUPPORTED needs every test to pass,
    REFUTED means none did.
    """
    results = []
    for spec in tests:
        results.append(await run_test(fetcher, TestSpec.model_validate(spec)))

    passed = sum(1 for r in results if r.passed)
    inconclusive = sum(1 for r in results if r.outcome is Outcome.INCONCLUSIVE)
    return HypothesisVerdict(
        hypothesis=hypothesis,
        results=results,
        passed=passed,
        failed=len(results) - passed,
        inconclusive=inconclusive,
        summary=summarize(passed, len(results)),
    )
