"""End-to-end word-cloud processing: raw submissions to tiered display groups.

Every call works on a full snapshot and rebuilds all groups from scratch, so
repeated calls with the same snapshot return the same result. The only state
shared between calls is the set of lazily loaded NLP backends held by the
tokenizer.
"""
from __future__ import annotations

import logging
from collections import Counter
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Iterable, List, Literal, Mapping, Optional

from .aggregation.grouping import (
    SemanticGroup,
    build_count_map,
    colors_by_key,
    create_individual_groups,
    filter_by_min_occurrence,
    group_semantically,
    limit_groups,
)
from .aggregation.threshold import calculate_auto_min_occurrence, explain_threshold
from .aggregation.tiers import assign_tiers, sort_for_display, tier_distribution
from .common.config import DEFAULT_MAX_WORKERS, get_backend_settings
from .common.types import LANGUAGES, DisplayDensity, SpamSensitivity
from .nlp.backends import JiebaSegmenter, LinguaModel, SpacyTagger
from .nlp.language import LanguageDetector
from .nlp.spam import is_spam
from .nlp.tokenization import (
    FILLER_POLICIES,
    ChineseTokenizer,
    EnglishTokenizer,
    FillerPolicy,
    MalayTokenizer,
    MixedTokenizer,
    MultilingualTokenizer,
)
from .submissions import RawSubmission, coerce_submissions

logger = logging.getLogger(__name__)

MinOccurrenceMode = Literal["auto", "manual"]


@dataclass(frozen=True)
class DensityProfile:
    preferred_visible: int
    max_items: int


DENSITY_PROFILES: Dict[str, DensityProfile] = {
    "low": DensityProfile(preferred_visible=25, max_items=30),
    "medium": DensityProfile(preferred_visible=45, max_items=50),
    "high": DensityProfile(preferred_visible=90, max_items=100),
}


@dataclass
class ProcessorOptions:
    """Caller configuration for one processing run."""

    display_density: DisplayDensity = "medium"
    show_full_phrases: bool = True
    min_occurrence_mode: MinOccurrenceMode = "auto"
    manual_min_occurrence: int = 1
    enable_spam_filter: bool = True
    enable_semantic_grouping: bool = True
    spam_sensitivity: SpamSensitivity = "medium"
    filler_policy: FillerPolicy = "keep_all"
    max_workers: int = DEFAULT_MAX_WORKERS
    progress: bool = False

    def __post_init__(self) -> None:
        if self.display_density not in DENSITY_PROFILES:
            raise ValueError(f"Unknown display density: {self.display_density!r}")
        if self.min_occurrence_mode not in ("auto", "manual"):
            raise ValueError(f"Unknown min occurrence mode: {self.min_occurrence_mode!r}")
        if not 1 <= int(self.manual_min_occurrence) <= 10:
            raise ValueError("manual_min_occurrence must be between 1 and 10")
        if self.spam_sensitivity not in ("low", "medium", "high"):
            raise ValueError(f"Unknown spam sensitivity: {self.spam_sensitivity!r}")
        if self.filler_policy not in FILLER_POLICIES:
            raise ValueError(f"Unknown filler policy: {self.filler_policy!r}")
        if int(self.max_workers) < 1:
            raise ValueError("max_workers must be at least 1")

    @property
    def profile(self) -> DensityProfile:
        return DENSITY_PROFILES[self.display_density]


@dataclass
class ProcessingStats:
    """Operator-facing diagnostics for one run."""

    total_entries: int = 0
    unique_texts: int = 0
    empty_entries: int = 0
    spam_filtered: int = 0
    failed_entries: int = 0
    groups_created: int = 0
    displayed_groups: int = 0
    min_occurrence: int = 1
    threshold_reason: str = ""
    languages: Dict[str, int] = field(default_factory=dict)
    tier_distribution: Dict[str, int] = field(
        default_factory=lambda: {"S": 0, "A": 0, "B": 0, "C": 0}
    )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ProcessingResult:
    groups: List[SemanticGroup]
    stats: ProcessingStats
    min_occurrence: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "min_occurrence": self.min_occurrence,
            "groups": [group.to_dict() for group in self.groups],
            "stats": self.stats.to_dict(),
        }


def build_pipeline(
    settings: Optional[Mapping[str, Any]] = None,
    *,
    filler_policy: FillerPolicy = "keep_all",
) -> MultilingualTokenizer:
    """Compose the multilingual tokenizer and the backend handles it owns.

    Nothing is loaded here; each backend loads on first use.
    """

    resolved = dict(get_backend_settings())
    if settings:
        resolved.update(settings)

    segmenter = JiebaSegmenter(user_dict=resolved.get("jieba_dict"))
    tagger = SpacyTagger(model=resolved["spacy_model"])
    detector = LanguageDetector(model=LinguaModel())

    chinese = ChineseTokenizer(segmenter, filler_policy=filler_policy)
    english = EnglishTokenizer(tagger, filler_policy=filler_policy)
    tokenizer = MultilingualTokenizer(detector, max_workers=int(resolved["max_workers"]))
    tokenizer.register("zh", chinese)
    tokenizer.register("en", english)
    tokenizer.register("ms", MalayTokenizer(filler_policy=filler_policy))
    tokenizer.register("mixed", MixedTokenizer(chinese, english))
    return tokenizer


class WordCloudProcessor:
    """Run the spam filter, tokenizer, grouping, threshold and tier stages."""

    def __init__(
        self,
        tokenizer: MultilingualTokenizer,
        options: Optional[ProcessorOptions] = None,
    ) -> None:
        self.tokenizer = tokenizer
        self.options = options or ProcessorOptions()

    @classmethod
    def from_settings(
        cls,
        options: Optional[ProcessorOptions] = None,
        settings: Optional[Mapping[str, Any]] = None,
    ) -> "WordCloudProcessor":
        options = options or ProcessorOptions()
        tokenizer = build_pipeline(settings, filler_policy=options.filler_policy)
        return cls(tokenizer, options)

    def resolve_min_occurrence(self, submissions: List[RawSubmission]) -> int:
        options = self.options
        if options.min_occurrence_mode == "manual":
            return int(options.manual_min_occurrence)
        return calculate_auto_min_occurrence(
            submissions,
            preferred_visible_count=options.profile.preferred_visible,
            spam_sensitivity=options.spam_sensitivity,
        )

    def process(self, submissions: Iterable[Any]) -> ProcessingResult:
        options = self.options
        rows = coerce_submissions(submissions)
        stats = ProcessingStats(total_entries=len(rows))
        if not rows:
            return ProcessingResult(groups=[], stats=stats, min_occurrence=1)

        counts = build_count_map(rows)
        stats.unique_texts = len(counts)
        stats.empty_entries = sum(1 for row in rows if not row.entry_key)

        # One representative raw text per entry key; its count covers the rest.
        representatives: Dict[str, str] = {}
        for row in rows:
            key = row.entry_key
            if key and key not in representatives:
                representatives[key] = row.text.strip()

        if options.enable_spam_filter:
            spam_keys = {key for key, text in representatives.items() if is_spam(text)}
            stats.spam_filtered = sum(counts[key] for key in spam_keys)
            texts = [text for key, text in representatives.items() if key not in spam_keys]
        else:
            texts = list(representatives.values())

        logger.info(
            "Processing submissions",
            extra={
                "entries": stats.total_entries,
                "unique": stats.unique_texts,
                "spam": stats.spam_filtered,
            },
        )

        tokens = self.tokenizer.tokenize_batch(
            texts,
            max_workers=options.max_workers,
            progress=options.progress,
        )

        colors = colors_by_key(rows)
        if options.enable_semantic_grouping:
            groups = group_semantically(
                tokens, counts, colors=colors, show_full_phrases=options.show_full_phrases
            )
        else:
            groups = create_individual_groups(
                tokens, counts, colors=colors, show_full_phrases=options.show_full_phrases
            )

        grouped = sum(group.total_count for group in groups)
        stats.groups_created = len(groups)
        stats.failed_entries = max(
            0, stats.total_entries - stats.empty_entries - stats.spam_filtered - grouped
        )

        languages: Counter = Counter()
        for group in groups:
            for variant in group.variants.values():
                languages[variant.language] += variant.count
        stats.languages = {lang: languages[lang] for lang in LANGUAGES if languages[lang]}

        min_occurrence = self.resolve_min_occurrence(rows)
        stats.min_occurrence = min_occurrence
        if options.min_occurrence_mode == "auto":
            stats.threshold_reason = explain_threshold(rows, min_occurrence)
        else:
            stats.threshold_reason = f"Threshold {min_occurrence} set manually"

        visible = filter_by_min_occurrence(groups, min_occurrence)
        ranked = assign_tiers(visible)
        displayed = sort_for_display(limit_groups(ranked, options.profile.max_items))

        stats.displayed_groups = len(displayed)
        stats.tier_distribution = tier_distribution(displayed)

        logger.info(
            "Processing complete",
            extra={
                "groups": stats.groups_created,
                "displayed": stats.displayed_groups,
                "min_occurrence": min_occurrence,
            },
        )
        return ProcessingResult(groups=displayed, stats=stats, min_occurrence=min_occurrence)


def _processor_for(
    options: Optional[ProcessorOptions], processor: Optional[WordCloudProcessor]
) -> WordCloudProcessor:
    if processor is None:
        return WordCloudProcessor.from_settings(options)
    if options is not None:
        return WordCloudProcessor(processor.tokenizer, options)
    return processor


def process_word_cloud_data(
    submissions: Iterable[Any],
    options: Optional[ProcessorOptions] = None,
    *,
    processor: Optional[WordCloudProcessor] = None,
) -> List[SemanticGroup]:
    """Return the display-ready groups for ``submissions``."""

    return _processor_for(options, processor).process(submissions).groups


def get_processing_stats(
    submissions: Iterable[Any],
    options: Optional[ProcessorOptions] = None,
    *,
    processor: Optional[WordCloudProcessor] = None,
) -> ProcessingStats:
    return _processor_for(options, processor).process(submissions).stats


__all__ = [
    "DENSITY_PROFILES",
    "DensityProfile",
    "ProcessingResult",
    "ProcessingStats",
    "ProcessorOptions",
    "WordCloudProcessor",
    "build_pipeline",
    "get_processing_stats",
    "process_word_cloud_data",
]
