"""Adaptive minimum-occurrence threshold for word-cloud display.

The threshold is chosen from the shape of the per-text frequency
distribution (diversity, dominance of the top text, median frequency), the
session size and an independent spam estimate, then nudged towards the
caller's preferred number of visible groups.
"""
from __future__ import annotations

import logging
import math
import re
from collections import Counter
from dataclasses import asdict, dataclass
from typing import Dict, List, Sequence

from ..common.types import SpamSensitivity
from ..submissions import RawSubmission
from ..utils.stats import clamp, count_at_least, median, safe_div
from ..utils.text import contains_cjk

logger = logging.getLogger(__name__)

MIN_THRESHOLD = 1
MAX_THRESHOLD = 10
SMALL_SESSION = 10
DEFAULT_PREFERRED_VISIBLE = 50

_REPEATED_CHAR_RE = re.compile(r"(.)\1{3,}")
_REPEATED_UNIT_RE = re.compile(r"^([a-z]{1,2})\1{2,}$")
_LATIN_WORD_RE = re.compile(r"^[a-z]{3,}$")
_VOWEL_RE = re.compile(r"[aeiou]")


@dataclass
class DataAnalysis:
    total_entries: int = 0
    unique_words: int = 0
    diversity: float = 0.0
    max_frequency: int = 0
    avg_frequency: float = 0.0
    median_frequency: float = 0.0
    spam_ratio: float = 0.0
    dominance_ratio: float = 0.0

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


def frequency_distribution(submissions: Sequence[RawSubmission]) -> List[int]:
    """Occurrences per normalized text, most frequent first."""

    counts: Counter = Counter()
    for submission in submissions:
        counts[submission.entry_key or submission.text.strip().lower()] += 1
    return sorted(counts.values(), reverse=True)


def _looks_like_spam(text: str) -> bool:
    # Deliberately coarser than nlp.spam.is_spam: this only estimates how
    # noisy the whole snapshot is, including entries the filter would drop.
    lower = text.strip().lower()
    if len(lower) < 2 and not contains_cjk(lower):
        return True
    if _REPEATED_CHAR_RE.search(lower):
        return True
    if _REPEATED_UNIT_RE.match(lower):
        return True
    if _LATIN_WORD_RE.match(lower) and not _VOWEL_RE.search(lower):
        return True
    return False


def estimate_spam_ratio(submissions: Sequence[RawSubmission]) -> float:
    spam = sum(1 for submission in submissions if _looks_like_spam(submission.text))
    return safe_div(spam, max(len(submissions), 1))


def analyze_data(submissions: Sequence[RawSubmission]) -> DataAnalysis:
    """Summarize the frequency distribution of ``submissions``."""

    if not submissions:
        return DataAnalysis()

    frequencies = frequency_distribution(submissions)
    total = len(submissions)
    unique = len(frequencies)
    top = frequencies[0] if frequencies else 0

    return DataAnalysis(
        total_entries=total,
        unique_words=unique,
        diversity=safe_div(unique, total),
        max_frequency=top,
        avg_frequency=safe_div(total, unique),
        median_frequency=median(frequencies),
        spam_ratio=estimate_spam_ratio(submissions),
        dominance_ratio=safe_div(top, total),
    )


def _spam_bonus(spam_ratio: float, sensitivity: SpamSensitivity) -> int:
    if sensitivity == "medium":
        return 1 if spam_ratio > 0.15 else 0
    if sensitivity == "high":
        if spam_ratio > 0.25:
            return 3
        if spam_ratio > 0.1:
            return 2
        return 0
    return 0


def calculate_auto_min_occurrence(
    submissions: Sequence[RawSubmission],
    *,
    preferred_visible_count: int = DEFAULT_PREFERRED_VISIBLE,
    spam_sensitivity: SpamSensitivity = "medium",
) -> int:
    """Return the minimum group count to display, always in ``[1, 10]``.

    Sessions with fewer than ten submissions are never filtered.
    """

    if spam_sensitivity not in ("low", "medium", "high"):
        raise ValueError(f"Unknown spam sensitivity: {spam_sensitivity!r}")

    if len(submissions) < SMALL_SESSION:
        return MIN_THRESHOLD

    analysis = analyze_data(submissions)
    spam_ratio = analysis.spam_ratio

    # Everything is novel: show it all.
    if analysis.diversity >= 0.8 and spam_ratio < 0.15:
        return MIN_THRESHOLD

    # One runaway text: force alternatives into view.
    if analysis.dominance_ratio > 0.4:
        threshold = math.ceil(analysis.max_frequency * 0.15)
        return clamp(threshold, 2, MAX_THRESHOLD)

    if analysis.diversity < 0.3:
        if analysis.dominance_ratio > 0.25:
            threshold = math.ceil(analysis.max_frequency * 0.2)
        else:
            threshold = max(2, math.ceil(analysis.median_frequency))
    else:
        threshold = math.ceil(analysis.median_frequency)

    if analysis.total_entries > 500:
        threshold += 2
    elif analysis.total_entries > 200:
        threshold += 1
    elif analysis.total_entries < 50:
        threshold = max(1, threshold - 1)

    threshold += _spam_bonus(spam_ratio, spam_sensitivity)

    frequencies = frequency_distribution(submissions)
    visible = count_at_least(frequencies, threshold)
    if visible > preferred_visible_count * 1.5:
        threshold += 1
        visible = count_at_least(frequencies, threshold)
        if visible > preferred_visible_count * 1.8:
            threshold += 1
    elif visible < preferred_visible_count * 0.5 and threshold > 1:
        threshold -= 1

    threshold = clamp(threshold, MIN_THRESHOLD, MAX_THRESHOLD)

    # Diverse-looking data must not let a spam flood through unfiltered.
    if threshold == 1 and spam_ratio > 0.2:
        threshold = 2

    logger.debug(
        "Auto min occurrence",
        extra={"threshold": threshold, **analysis.to_dict()},
    )
    return threshold


def explain_threshold(submissions: Sequence[RawSubmission], threshold: int) -> str:
    """Return a short operator-facing reason for ``threshold``."""

    if not submissions:
        return "No data to analyze"

    analysis = analyze_data(submissions)
    reasons: List[str] = []

    if analysis.diversity > 0.8:
        reasons.append("high diversity (most words unique)")
    elif analysis.diversity < 0.3:
        reasons.append("low diversity (many repeats)")

    if analysis.dominance_ratio > 0.4:
        reasons.append("one word dominates")

    if analysis.spam_ratio > 0.3:
        reasons.append("high spam ratio")
    elif analysis.spam_ratio > 0.15:
        reasons.append("moderate spam detected")

    if analysis.total_entries > 500:
        reasons.append("large dataset")
    elif analysis.total_entries < 50:
        reasons.append("small dataset")

    if not reasons:
        return f"Threshold {threshold} based on normal data distribution"
    return f"Threshold {threshold} due to: {', '.join(reasons)}"


__all__ = [
    "DataAnalysis",
    "analyze_data",
    "calculate_auto_min_occurrence",
    "estimate_spam_ratio",
    "explain_threshold",
    "frequency_distribution",
]
