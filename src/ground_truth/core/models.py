"""Pydantic data models — the records every verification operation returns.

Fields are snake_case in Python and serialise to camelCase
(``model_dump(by_alias=True)``) for the tool responses.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel


class Record(BaseModel):
    """Base for all wire records: camelCase aliases, populate by either name."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Registry(str, Enum):
    """Package registries that can be searched and compared."""

    NPM = "npm"
    PYPI = "pypi"


class TestType(str, Enum):
    """Kinds of declarative hypothesis tests."""

    __test__ = False

    ENDPOINT_EXISTS = "endpoint_exists"
    NPM_COUNT_ABOVE = "npm_count_above"
    NPM_COUNT_BELOW = "npm_count_below"
    RESPONSE_CONTAINS = "response_contains"


class Outcome(str, Enum):
    """Result of a single hypothesis test.

    INCONCLUSIVE covers tests that could not be evaluated (missing input,
    unreachable upstream). It counts as a failure when aggregating.
    """

    PASS = "pass"
    FAIL = "fail"
    INCONCLUSIVE = "inconclusive"


class ClaimSummary(str, Enum):
    CONFIRMED = "CONFIRMED"
    UNCONFIRMED = "UNCONFIRMED"
    LIKELY_TRUE = "LIKELY_TRUE"
    LIKELY_FALSE = "LIKELY_FALSE"


class HypothesisSummary(str, Enum):
    SUPPORTED = "SUPPORTED"
    REFUTED = "REFUTED"
    PARTIALLY_SUPPORTED = "PARTIALLY_SUPPORTED"


class ProbeResult(Record):
    """What a URL looks like from the outside: status, auth, timing, sample."""

    url: str
    accessible: bool
    status: Optional[int] = None
    content_type: Optional[str] = None
    response_time_ms: int
    auth_required: bool = False
    rate_limited: bool = False
    rate_limit_headers: dict[str, str] = Field(default_factory=dict)
    sample: str = ""
    error: Optional[str] = None


class PackageSummary(Record):
    """One search hit, in upstream relevance order."""

    name: str
    description: str = Field("", max_length=120)
    version: str
    score: Optional[float] = None


class MarketEstimate(Record):
    """How crowded a package space is."""

    query: str
    registry: Registry
    total_results: int
    top_results: list[PackageSummary] = Field(default_factory=list, max_length=10)
    approximate: bool = Field(False, description="True when total_results is a row count, not a registry total")


class PricingSignals(Record):
    """Literal pricing facts pattern-matched from a page."""

    url: str
    prices: list[str] = Field(default_factory=list, max_length=20)
    plans: list[str] = Field(default_factory=list)
    has_free_option: bool = False
    has_free_trial: bool = False
    page_length: int = 0
    cached: bool = False


class ComparisonRow(Record):
    """Metadata for one package. Missing packages carry only name and error."""

    name: str
    found: bool
    description: Optional[str] = None
    latest_version: Optional[str] = None
    license: Optional[str] = None
    last_published: Optional[str] = None
    created: Optional[str] = None
    total_versions: Optional[int] = None
    keywords: Optional[list[str]] = Field(None, max_length=10)
    error: Optional[str] = None


class PackageComparison(Record):
    registry: Registry
    packages: list[ComparisonRow]
    found: int
    missing: int


class EvidenceSource(Record):
    """Keyword coverage of one evidence URL."""

    url: str
    accessible: bool
    keywords_matched: list[str] = Field(default_factory=list)
    keywords_total: int
    match_ratio: float = Field(ge=0.0, le=1.0)
    supports: bool
    error: Optional[str] = None


class ClaimVerdict(Record):
    claim: str
    sources: list[EvidenceSource]
    supporting: int
    contradicting: int
    confidence: float = Field(ge=0.0, le=1.0, description="Share of sources that support the claim")
    summary: ClaimSummary


class TestSpec(Record):
    """A declarative check to run against live data."""

    __test__ = False

    description: str
    type: TestType
    url: Optional[str] = None
    query: Optional[str] = None
    threshold: Optional[float] = None
    substring: Optional[str] = None


class TestResult(Record):
    __test__ = False

    description: str
    type: TestType
    outcome: Outcome
    actual: Union[int, str]
    reason: Optional[str] = None

    @computed_field
    @property
    def passed(self) -> bool:
        return self.outcome is Outcome.PASS


class HypothesisVerdict(Record):
    hypothesis: str
    results: list[TestResult]
    passed: int
    failed: int
    inconclusive: int = 0
    summary: HypothesisSummary
