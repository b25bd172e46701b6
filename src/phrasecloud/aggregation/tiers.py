"""Rank-and-coverage tier assignment."""
from __future__ import annotations

from collections import Counter
from typing import Dict, Iterable, List

from ..common.types import TIERS
from .grouping import SemanticGroup

S_TIER_MAX_RANK = 5
S_TIER_MAX_PERCENT = 65.0
A_TIER_MAX_RANK = 20
A_TIER_MAX_PERCENT = 90.0
B_TIER_MAX_RANK = 50

TIER_RANK: Dict[str, int] = {tier: rank for rank, tier in enumerate(TIERS)}


def _rank_key(group: SemanticGroup):
    return (-group.total_count, -group.semantic_score, group.canonical)


def assign_tiers(groups: Iterable[SemanticGroup]) -> List[SemanticGroup]:
    """Assign S/A/B/C tiers in place and return the groups ranked by count.

    Walking groups by descending count with a running cumulative share:
    S needs rank < 5 and share <= 65%, A needs rank < 20 and share <= 90%,
    B needs rank < 50, everything else is C. The top-ranked group is always
    S. The rank caps bound S to five groups and S plus A to twenty whatever
    the distribution looks like.
    """

    ranked = sorted(groups, key=_rank_key)
    grand_total = sum(group.total_count for group in ranked)

    running = 0
    for index, group in enumerate(ranked):
        running += group.total_count
        cumulative = running / grand_total * 100 if grand_total > 0 else 100.0

        # The leader is S even when it alone covers more than the S share:
        # a runaway answer (e.g. 70% "chicken") must still head the cloud.
        # Covered by test_dominant_leader_is_still_s_tier.
        if index == 0 or (index < S_TIER_MAX_RANK and cumulative <= S_TIER_MAX_PERCENT):
            group.tier = "S"
        elif index < A_TIER_MAX_RANK and cumulative <= A_TIER_MAX_PERCENT:
            group.tier = "A"
        elif index < B_TIER_MAX_RANK:
            group.tier = "B"
        else:
            group.tier = "C"

    return ranked


def sort_for_display(groups: Iterable[SemanticGroup]) -> List[SemanticGroup]:
    return sorted(
        groups,
        key=lambda g: (TIER_RANK.get(g.tier, len(TIERS)), -g.total_count, g.canonical),
    )


def tier_distribution(groups: Iterable[SemanticGroup]) -> Dict[str, int]:
    counts = Counter(group.tier for group in groups)
    return {tier: counts.get(tier, 0) for tier in TIERS}


__all__ = ["TIER_RANK", "assign_tiers", "sort_for_display", "tier_distribution"]
