import pathlib
import sys

import pytest

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]
SRC_ROOT = PROJECT_ROOT / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from phrasecloud.common.types import TaggedTerm
from phrasecloud.nlp.language import LanguageDetector
from phrasecloud.nlp.tokenization import (
    ChineseTokenizer,
    EnglishTokenizer,
    MalayTokenizer,
    MixedTokenizer,
    MultilingualTokenizer,
    TextTokenizer,
)
from phrasecloud.processor import (
    DENSITY_PROFILES,
    ProcessorOptions,
    WordCloudProcessor,
    get_processing_stats,
    process_word_cloud_data,
)
from phrasecloud.utils.text import normalize_text


class FakeSegmenter:
    def cut(self, text):
        return [text]


class FakeTagger:
    LEXICON = {"i": "PRON", "like": "VERB", "buy": "VERB", "a": "DET", "fried": "ADJ"}

    def tag(self, text):
        return [TaggedTerm(word, self.LEXICON.get(word, "NOUN")) for word in normalize_text(text).split()]


class FakeModel:
    def __init__(self, codes=None):
        self.codes = codes or {}

    def identify(self, text):
        return self.codes.get(text)


class BrokenTokenizer(TextTokenizer):
    def tokenize(self, text):
        raise RuntimeError("tokenizer crashed")


def make_processor(options=None, codes=None, **strategies):
    chinese = ChineseTokenizer(FakeSegmenter())
    english = EnglishTokenizer(FakeTagger())
    registry = {
        "zh": chinese,
        "en": english,
        "ms": MalayTokenizer(),
        "mixed": MixedTokenizer(chinese, english),
    }
    registry.update(strategies)
    tokenizer = MultilingualTokenizer(LanguageDetector(FakeModel(codes)), registry, max_workers=2)
    return WordCloudProcessor(tokenizer, options or ProcessorOptions(max_workers=2))


def by_canonical(groups):
    return {group.canonical: group for group in groups}


def test_same_language_variants_merge_but_languages_stay_apart():
    texts = ["鸡肉", "鸡肉", "I like chicken", "buy a chicken", "fried chicken"]

    result = make_processor().process(texts)

    groups = by_canonical(result.groups)
    assert set(groups) == {"chicken", "鸡肉"}
    assert groups["chicken"].total_count == 3
    assert groups["chicken"].languages == {"en"}
    assert groups["鸡肉"].total_count == 2
    assert groups["鸡肉"].languages == {"zh"}
    assert result.min_occurrence == 1


def test_spam_is_filtered_before_tokenization():
    result = make_processor().process(["asdasdasd", "qweqweqwe", "aaaa", "hello"])

    assert result.stats.spam_filtered == 3
    assert [group.canonical for group in result.groups] == ["hello"]


def test_small_session_shows_every_group():
    result = make_processor().process(["apple", "apple", "apple", "banana", "banana", "cherry"])

    assert result.min_occurrence == 1
    assert [(g.canonical, g.total_count) for g in result.groups] == [("apple", 3), ("banana", 2), ("cherry", 1)]


def test_dominant_text_keeps_tier_s_and_filters_the_tail():
    texts = ["chicken"] * 420 + [f"topic{i}" for i in range(180)]

    result = make_processor().process(texts)

    assert result.min_occurrence >= 2
    assert [group.canonical for group in result.groups] == ["chicken"]
    assert result.groups[0].tier == "S"
    assert result.stats.groups_created == 181


def test_malay_compound_is_the_key_phrase():
    result = make_processor(codes={"nasi lemak sedap": "ms"}).process(["nasi lemak sedap"])

    [group] = result.groups
    assert group.canonical == "nasi lemak"
    assert set(group.variants) == {"nasi lemak sedap"}
    assert group.languages == {"ms"}


def test_empty_snapshot_returns_empty_result():
    result = make_processor().process([])

    assert result.groups == []
    stats = result.stats.to_dict()
    assert stats["total_entries"] == 0
    assert stats["spam_filtered"] == 0
    assert stats["groups_created"] == 0
    assert stats["displayed_groups"] == 0
    assert stats["languages"] == {}
    assert stats["tier_distribution"] == {"S": 0, "A": 0, "B": 0, "C": 0}


SNAPSHOT = [
    {"text": "I like chicken", "color": "red"},
    {"text": "i like chicken!", "color": "blue"},
    {"text": "fried chicken", "color": "red"},
    {"text": "鸡肉", "color": "green"},
    {"text": "aaaa"},
    {"text": "   "},
    {"text": None},
    {"text": "saya suka teh tarik"},
    {"text": "Teh tarik", "color": "red"},
    {"text": "我爱 coffee"},
    {"text": "coffee"},
]


def test_runs_are_idempotent():
    processor = make_processor(ProcessorOptions(min_occurrence_mode="manual", max_workers=3))

    first = [group.to_dict() for group in processor.process(SNAPSHOT).groups]
    second = [group.to_dict() for group in processor.process(SNAPSHOT).groups]

    assert first == second


def test_counts_are_conserved():
    options = ProcessorOptions(min_occurrence_mode="manual", display_density="high")

    result = make_processor(options).process(SNAPSHOT)

    stats = result.stats
    grouped = sum(group.total_count for group in result.groups)
    assert stats.total_entries == len(SNAPSHOT)
    assert stats.empty_entries == 2
    assert stats.spam_filtered == 1
    assert stats.failed_entries == 0
    assert grouped + stats.spam_filtered + stats.empty_entries == stats.total_entries

    groups = by_canonical(result.groups)
    assert groups["chicken"].total_count == 3
    assert groups["chicken"].variants["i like chicken"].count == 2
    assert groups["chicken"].colors == ["red", "blue"]
    assert groups["coffee"].total_count == 2
    assert groups["coffee"].languages == {"en", "mixed"}


def test_bad_timestamp_does_not_drop_the_entry():
    rows = [{"text": "hello"}, {"text": "hello", "created_at": "yesterday"}]

    result = make_processor(ProcessorOptions(min_occurrence_mode="manual")).process(rows)

    assert result.stats.total_entries == 2
    assert [(group.canonical, group.total_count) for group in result.groups] == [("hello", 2)]


def test_failed_tokenization_is_counted_and_skipped():
    processor = make_processor(
        ProcessorOptions(min_occurrence_mode="manual"),
        codes={"boom": "ms"},
        ms=BrokenTokenizer(),
    )

    result = processor.process(["boom", "boom", "fine"])

    assert [group.canonical for group in result.groups] == ["fine"]
    assert result.stats.failed_entries == 2


def test_tier_caps_hold_end_to_end():
    texts = []
    for i in range(150):
        texts.extend([f"idea{i}"] * (i % 4 + 1))
    options = ProcessorOptions(min_occurrence_mode="manual", display_density="high")

    result = make_processor(options).process(texts)

    distribution = result.stats.tier_distribution
    assert len(result.groups) == DENSITY_PROFILES["high"].max_items
    assert distribution["S"] <= 5
    assert distribution["S"] + distribution["A"] <= 20
    tiers = [group.tier for group in result.groups]
    assert tiers == sorted(tiers, key="SABC".index)


def test_density_limits_displayed_groups():
    texts = [f"idea{i}" for i in range(40)]
    options = ProcessorOptions(display_density="low", min_occurrence_mode="manual")

    result = make_processor(options).process(texts)

    assert result.stats.displayed_groups == 30
    assert result.stats.groups_created == 40


def test_manual_min_occurrence_filters_groups():
    options = ProcessorOptions(min_occurrence_mode="manual", manual_min_occurrence=2)

    result = make_processor(options).process(["apple"] * 3 + ["banana"] * 2 + ["cherry"])

    assert [group.canonical for group in result.groups] == ["apple", "banana"]
    assert result.stats.threshold_reason == "Threshold 2 set manually"


def test_grouping_can_be_disabled():
    options = ProcessorOptions(enable_semantic_grouping=False)

    result = make_processor(options).process(["I like chicken", "fried chicken"])

    assert sorted(group.canonical for group in result.groups) == ["fried chicken", "i like chicken"]


def test_canonical_only_display():
    options = ProcessorOptions(show_full_phrases=False)

    result = make_processor(options).process(["fried chicken"] * 3 + ["chicken"])

    assert [group.display_text for group in result.groups] == ["chicken"]


def test_spam_filter_can_be_disabled():
    options = ProcessorOptions(enable_spam_filter=False)

    result = make_processor(options).process(["aaaa", "hello"])

    assert result.stats.spam_filtered == 0
    assert sorted(group.canonical for group in result.groups) == ["aaaa", "hello"]


def test_language_histogram_counts_submissions():
    result = make_processor().process(["鸡肉", "鸡肉", "fried chicken", "saya lapar"])

    assert result.stats.languages == {"en": 1, "zh": 2, "ms": 1}


@pytest.mark.parametrize(
    "kwargs",
    [
        {"display_density": "huge"},
        {"min_occurrence_mode": "sometimes"},
        {"manual_min_occurrence": 0},
        {"manual_min_occurrence": 11},
        {"spam_sensitivity": "paranoid"},
        {"filler_policy": "aggressive"},
        {"max_workers": 0},
    ],
)
def test_invalid_options_are_rejected(kwargs):
    with pytest.raises(ValueError):
        ProcessorOptions(**kwargs)


def test_convenience_functions_use_the_given_processor():
    processor = make_processor()
    texts = ["apple", "apple", "banana"]

    groups = process_word_cloud_data(texts, processor=processor)
    stats = get_processing_stats(texts, processor=processor)
    limited = process_word_cloud_data(
        texts,
        ProcessorOptions(min_occurrence_mode="manual", manual_min_occurrence=2),
        processor=processor,
    )

    assert [group.canonical for group in groups] == ["apple", "banana"]
    assert stats.total_entries == 3
    assert stats.unique_texts == 2
    assert [group.canonical for group in limited] == ["apple"]
