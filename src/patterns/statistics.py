# src/patterns/statistics.py — v1
"""Descriptive text statistics, each computed in one pass over the text.

Rankings are by descending count; equal counts keep first-seen order.
"""

from __future__ import annotations

import logging
import re
from collections import Counter

from textflow.patterns import matcher
from textflow.patterns.models import LineStatistics, PatternStatistics

logger = logging.getLogger(__name__)

MAX_EXAMPLES = 10
MAX_TOP_FREQUENCIES = 10
LINE_BUCKETS = 10

COMMON_PATTERNS: dict[str, str] = {
    "Email addresses": r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b",
    "Phone numbers": r"\b\d{3}[-.]?\d{3}[-.]?\d{4}\b",
    "URLs": r"https?://\S+|www\.\S+",
    "Numeric values": r"\b\d+\b",
    "Capitalized words": r"\b[A-Z][a-z]+\b",
    "Hashtags": r"#\w+",
}

_NON_ALNUM_RE = re.compile(r"[^a-zA-Z0-9]")


def _ranked(counts: Counter, limit: int | None = None) -> dict:
    # sorted() is stable, so ties stay in insertion (first-seen) order
    ranked = sorted(counts.items(), key=lambda kv: -kv[1])
    if limit is not None:
        ranked = ranked[:limit]
    return dict(ranked)


def analyze_pattern_occurrence(
    text: str, pattern: str | re.Pattern[str],
) -> PatternStatistics:
    """Count matches of ``pattern`` in ``text``.

    Raises:
        PatternSyntaxError: If the pattern is invalid.
    """
    compiled = pattern if isinstance(pattern, re.Pattern) else matcher.compile_pattern(pattern)
    counts: Counter[str] = Counter()
    total = 0
    for m in compiled.finditer(text):
        total += 1
        counts[m.group()] += 1

    return PatternStatistics(
        total_occurrences=total,
        unique_occurrences=len(counts),
        examples=list(counts)[:MAX_EXAMPLES],
        top_frequencies=_ranked(counts, MAX_TOP_FREQUENCIES),
    )


def analyze_common_patterns(text: str) -> dict[str, PatternStatistics]:
    """Run :func:`analyze_pattern_occurrence` for every entry of COMMON_PATTERNS."""
    return {
        name: analyze_pattern_occurrence(text, pattern)
        for name, pattern in COMMON_PATTERNS.items()
    }


def analyze_word_frequency(text: str) -> dict[str, int]:
    """Lower-cased alphanumeric word counts, most frequent first."""
    counts: Counter[str] = Counter()
    for raw in text.split():
        word = _NON_ALNUM_RE.sub("", raw).lower()
        if word:
            counts[word] += 1
    return _ranked(counts)


def analyze_character_distribution(text: str) -> dict[str, int]:
    """Per-character counts, most frequent first."""
    return _ranked(Counter(text))


def analyze_line_length(text: str) -> LineStatistics:
    """Line-length summary with a ten-bucket histogram (0-9, 10-19, ... 90+)."""
    lines = matcher.split(text, r"\n")
    distribution = [0] * LINE_BUCKETS
    total_length = 0
    min_length: int | None = None
    max_length = 0
    for line in lines:
        length = len(line)
        total_length += length
        min_length = length if min_length is None else min(min_length, length)
        max_length = max(max_length, length)
        distribution[min(length // 10, LINE_BUCKETS - 1)] += 1

    count = len(lines)
    logger.debug("Line statistics over %d lines", count)
    return LineStatistics(
        line_count=count,
        average_length=total_length / count if count else 0.0,
        min_length=min_length or 0,
        max_length=max_length,
        distribution=distribution,
    )
