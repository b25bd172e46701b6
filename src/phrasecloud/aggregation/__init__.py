"""Grouping, thresholding and tiering of tokenized submissions."""

from .grouping import (
    SemanticGroup,
    SemanticVariant,
    build_count_map,
    colors_by_key,
    create_individual_groups,
    filter_by_min_occurrence,
    group_semantically,
    limit_groups,
)
from .threshold import DataAnalysis, analyze_data, calculate_auto_min_occurrence, explain_threshold
from .tiers import assign_tiers, sort_for_display, tier_distribution

__all__ = [
    "DataAnalysis",
    "SemanticGroup",
    "SemanticVariant",
    "analyze_data",
    "assign_tiers",
    "build_count_map",
    "calculate_auto_min_occurrence",
    "colors_by_key",
    "create_individual_groups",
    "explain_threshold",
    "filter_by_min_occurrence",
    "group_semantically",
    "limit_groups",
    "sort_for_display",
    "tier_distribution",
]
