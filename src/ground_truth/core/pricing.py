"""Pricing-signal extraction from page text.

Pure literal pattern matching, with no attempt to understand page layout.

Grammar (case-insensitive):

    price  := "$" DIGITS ("," DIGIT{3})* ("." DIGIT+)? [WS* ("/" | "per") WS* unit]
    unit   := "month" | "mo" | "year" | "yr" | "user" ["s"] | "seat" ["s"]
            | "request" ["s"] | "req" | ["1k" | "1m"] WS* "token" ["s"]
    plan   := TIER [WS+ ("plan" | "tier")]      (word-bounded)
    TIER   := free | starter | basic | pro | premium | enterprise
            | business | team | hobby | growth | scale
    free   := "free" WS+ ("plan" | "tier" | "forever" | "trial")
            | "$0" ["." "0"{1,2}]  not followed by ["."] DIGIT
    trial  := "free trial" | "trial period" | DIGITS ("-" | WS) "day" WS* "trial"
            | "start" WS+ ("a" | "your") WS+ ["free" WS+] "trial"
"""

from __future__ import annotations

import logging
import re

from .fetch import Fetcher
from .models import PricingSignals

logger = logging.getLogger(__name__)

MAX_PRICES = 20

PLAN_TIERS = ("free", "starter", "basic", "pro", "premium", "enterprise", "business", "team", "hobby", "growth", "scale")

PRICE_RE = re.compile(
    r"\$\d+(?:,\d{3})*(?:\.\d+)?"
    r"(?:\s*(?:/|per)\s*(?:month|mo|year|yr|users?|seats?|requests?|req|(?:1[km]\s*)?tokens?)\b)?",
    re.IGNORECASE,
)
PLAN_RE = re.compile(r"\b(" + "|".join(PLAN_TIERS) + r")(?:\s+(?:plan|tier))?\b", re.IGNORECASE)
FREE_PHRASE_RE = re.compile(r"\bfree\s+(?:plan|tier|forever|trial)\b", re.IGNORECASE)
ZERO_PRICE_RE = re.compile(r"\$0(?:\.0{1,2})?(?!\.?\d)")
TRIAL_RE = re.compile(
    r"\b(?:free\s+trial|trial\s+period|\d+(?:-|\s)day\s*trial|start\s+(?:a|your)\s+(?:free\s+)?trial)\b",
    re.IGNORECASE,
)


def _unique(items, limit=None) -> list[str]:
    seen: dict[str, None] = {}
    for item in items:
        seen.setdefault(item, None)
        if limit is not None and len(seen) >= limit:
            break
    return list(seen)


def extract_prices(text: str) -> list[str]:
    """Price strings as written, first occurrence order, at most 20."""
    return _unique((m.group(0) for m in PRICE_RE.finditer(text)), MAX_PRICES)


def extract_plans(text: str) -> list[str]:
    """Lower-cased plan tier names, first occurrence order."""
    return _unique(m.group(1).lower() for m in PLAN_RE.finditer(text))


def has_free_option(text: str) -> bool:
    return bool(FREE_PHRASE_RE.search(text) or ZERO_PRICE_RE.search(text))


def has_free_trial(text: str) -> bool:
    return bool(TRIAL_RE.search(text))


def extract_pricing(url: str, text: str, cached: bool = False) -> PricingSignals:
    return PricingSignals(
        url=url,
        prices=extract_prices(text),
        plans=extract_plans(text),
        has_free_option=has_free_option(text),
        has_free_trial=has_free_trial(text),
        page_length=len(text),
        cached=cached,
    )


async def check_pricing(fetcher: Fetcher, url: str) -> PricingSignals:
    """Fetch a pricing page (through the cache) and pull out its signals."""
    result = await fetcher.cached_fetch(url)
    result.raise_for_status()
    signals = extract_pricing(url, result.body, cached=result.from_cache)
    logger.info("Pricing %s: %d prices, %d plans", url, len(signals.prices), len(signals.plans))
    return signals
