"""Semantic grouping: cluster phrasings that share a key phrase.

All "chicken" answers ("I like chicken", "fried chicken", "buy a chicken")
fold into one group whose identity is the lower-cased key phrase. Identical
phrasings are deduplicated inside the group by their normalized text.

The clustering key is derived per language and never translated, so
"badminton" and "羽毛球" stay separate groups.
"""
from __future__ import annotations

import logging
import math
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Set

from ..common.types import Language, Tier
from ..nlp.tokenization import ProcessedToken
from ..submissions import RawSubmission
from ..utils.text import normalize_text

logger = logging.getLogger(__name__)

MULTILINGUAL_BONUS = 1.2
DOMINANT_VARIANT_RATIO = 2


@dataclass
class SemanticVariant:
    """One distinct phrasing folded into a group."""

    text: str
    normalized: str
    count: int
    language: Language


@dataclass
class SemanticGroup:
    """A display unit for the renderer.

    Parameters
    ----------
    canonical:
        Lower-cased key phrase; the group's identity within one run.
    display_text:
        Human-facing label, either the key phrase or a dominant full variant.
    variants:
        Distinct phrasings keyed by normalized text.
    total_count:
        Sum of variant counts, i.e. the number of submissions in the group.
    tier:
        Visual tier, assigned by :func:`phrasecloud.aggregation.tiers.assign_tiers`.
    semantic_score:
        Ranking score, see :func:`semantic_score`.
    """

    canonical: str
    display_text: str
    key_phrase: str
    variants: Dict[str, SemanticVariant] = field(default_factory=dict)
    total_count: int = 0
    tier: Tier = "C"
    semantic_score: float = 0.0
    languages: Set[Language] = field(default_factory=set)
    colors: List[str] = field(default_factory=list)

    def add_color(self, color: str) -> None:
        if color and color not in self.colors:
            self.colors.append(color)

    def to_dict(self) -> dict[str, object]:
        variants = sorted(self.variants.values(), key=lambda v: (-v.count, v.normalized))
        return {
            "canonical": self.canonical,
            "display_text": self.display_text,
            "key_phrase": self.key_phrase,
            "total_count": self.total_count,
            "tier": self.tier,
            "semantic_score": round(self.semantic_score, 4),
            "languages": sorted(self.languages),
            "colors": list(self.colors),
            "variants": [
                {
                    "text": v.text,
                    "normalized": v.normalized,
                    "count": v.count,
                    "language": v.language,
                }
                for v in variants
            ],
        }


def build_count_map(submissions: Iterable[RawSubmission]) -> Counter:
    """Count submissions per normalized text."""

    counts: Counter = Counter()
    for submission in submissions:
        key = submission.entry_key or submission.text.strip().lower()
        if key:
            counts[key] += 1
    return counts


def colors_by_key(submissions: Iterable[RawSubmission]) -> Dict[str, List[str]]:
    """Distinct participant colors per normalized text, in first-seen order."""

    colors: Dict[str, List[str]] = {}
    for submission in submissions:
        key = submission.entry_key
        if not key or not submission.color:
            continue
        seen = colors.setdefault(key, [])
        if submission.color not in seen:
            seen.append(submission.color)
    return colors


def _source_key(token: ProcessedToken) -> str:
    return normalize_text(token.original)


def _resolve_count(token: ProcessedToken, counts: Mapping[str, int]) -> int:
    # The source entry's key comes first: the strategy's normalized form may
    # differ from it (segment joining, filler stripping).
    for key in (_source_key(token), token.normalized.lower()):
        if key and key in counts:
            return int(counts[key])
    return 1


def choose_display_text(group: SemanticGroup) -> str:
    """Pick the label shown for ``group``.

    Variants are ranked by count, then by text length. The key phrase is
    shown when the top variant is the key phrase itself or when no single
    phrasing dominates; a variant counted more than twice as often as the
    runner-up is shown verbatim for context.
    """

    if not group.variants:
        return group.key_phrase

    ranked = sorted(group.variants.values(), key=lambda v: (-v.count, -len(v.text)))
    top = ranked[0]
    if top.text.lower() == group.key_phrase.lower():
        return group.key_phrase
    if len(ranked) > 1 and top.count > ranked[1].count * DOMINANT_VARIANT_RATIO:
        return top.text
    return group.key_phrase


def semantic_score(group: SemanticGroup) -> float:
    """Return ``log(total + 1) * sqrt(variants) * multilingual bonus``.

    Logarithmic in raw count so one flood cannot dominate the ranking;
    super-linear in variant diversity so an idea expressed many ways ranks
    above a single phrase repeated.
    """

    frequency = math.log(group.total_count + 1)
    diversity = math.sqrt(len(group.variants))
    bonus = MULTILINGUAL_BONUS if len(group.languages) > 1 else 1.0
    return frequency * diversity * bonus


def group_semantically(
    tokens: Sequence[ProcessedToken],
    counts: Mapping[str, int],
    *,
    colors: Optional[Mapping[str, Sequence[str]]] = None,
    show_full_phrases: bool = True,
) -> List[SemanticGroup]:
    """Cluster ``tokens`` by lower-cased key phrase.

    ``counts`` maps normalized submission text to its number of occurrences
    (see :func:`build_count_map`); tokens without an entry count once. With
    ``show_full_phrases`` disabled every group is labelled by its key phrase.
    Groups are returned by descending semantic score.
    """

    if not tokens:
        return []

    colors = colors or {}
    groups: Dict[str, SemanticGroup] = {}

    for token in tokens:
        if not token.key_phrase:
            continue

        group_key = token.key_phrase.lower()
        group = groups.get(group_key)
        if group is None:
            group = SemanticGroup(
                canonical=group_key,
                display_text=token.key_phrase,
                key_phrase=token.key_phrase,
            )
            groups[group_key] = group

        count = _resolve_count(token, counts)
        variant_key = token.normalized.lower()
        variant = group.variants.get(variant_key)
        if variant is not None:
            variant.count += count
        else:
            group.variants[variant_key] = SemanticVariant(
                text=token.original,
                normalized=variant_key,
                count=count,
                language=token.language,
            )

        group.total_count += count
        group.languages.add(token.language)
        for color in colors.get(_source_key(token), ()):
            group.add_color(color)

    for group in groups.values():
        group.display_text = choose_display_text(group) if show_full_phrases else group.key_phrase
        group.semantic_score = semantic_score(group)

    logger.debug("Grouped tokens", extra={"tokens": len(tokens), "groups": len(groups)})
    return sorted(groups.values(), key=lambda g: g.semantic_score, reverse=True)


def create_individual_groups(
    tokens: Sequence[ProcessedToken],
    counts: Mapping[str, int],
    *,
    colors: Optional[Mapping[str, Sequence[str]]] = None,
    show_full_phrases: bool = True,
) -> List[SemanticGroup]:
    """One group per distinct normalized text, with no cross-phrasing merge."""

    colors = colors or {}
    groups: Dict[str, SemanticGroup] = {}

    for token in tokens:
        key = token.normalized.lower()
        if not key:
            continue

        count = _resolve_count(token, counts)
        group = groups.get(key)
        if group is None:
            group = SemanticGroup(
                canonical=key,
                display_text=token.original if show_full_phrases else token.key_phrase,
                key_phrase=token.key_phrase,
                variants={key: SemanticVariant(token.original, key, 0, token.language)},
            )
            groups[key] = group

        group.variants[key].count += count
        group.total_count += count
        group.languages.add(token.language)
        for color in colors.get(_source_key(token), ()):
            group.add_color(color)

    for group in groups.values():
        group.semantic_score = math.log(group.total_count + 1)

    return list(groups.values())


def filter_by_min_occurrence(groups: Iterable[SemanticGroup], min_occurrence: int) -> List[SemanticGroup]:
    return [group for group in groups if group.total_count >= min_occurrence]


def limit_groups(groups: Sequence[SemanticGroup], max_items: int) -> List[SemanticGroup]:
    return list(groups[: max(0, max_items)])


__all__ = [
    "SemanticGroup",
    "SemanticVariant",
    "build_count_map",
    "choose_display_text",
    "colors_by_key",
    "create_individual_groups",
    "filter_by_min_occurrence",
    "group_semantically",
    "limit_groups",
    "semantic_score",
]
