"""Per-language tokenization and key-phrase extraction.

Each strategy turns one trimmed submission into a :class:`ProcessedToken`
carrying two keys:

- ``normalized``: the full canonicalized phrase, used to deduplicate identical
  submissions inside a group;
- ``key_phrase``: the single extracted entity or root, used to cluster
  different phrasings of the same idea ("i like chicken" -> "chicken").

Strategies never raise. Any failure inside one (a backend that could not be
loaded, a tagger error) is logged and degrades to the identity token, so a
single bad input cannot abort batch processing.
"""
from __future__ import annotations

import logging
import re
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, replace
from typing import Literal, Optional, TypeAlias

from tqdm import tqdm

from ..common.types import Language, PosTagger, Segmenter, TaggedTerm, TokenType
from ..utils.text import normalize_text, split_words
from .language import LanguageDetector

logger = logging.getLogger(__name__)

FillerPolicy: TypeAlias = Literal["keep_all", "strip"]
FILLER_POLICIES: tuple[FillerPolicy, ...] = ("keep_all", "strip")

# Only consulted under the "strip" policy. Short submissions lose their
# meaning when fillers are removed, so "keep_all" is the default.
FILLER_WORDS: dict[str, frozenset[str]] = {
    "en": frozenset(
        {
            "a", "an", "the", "i", "me", "my", "we", "you", "it", "is", "am", "are",
            "was", "be", "to", "of", "and", "so", "very", "really", "just", "like",
            "um", "uh", "oh", "lol",
        }
    ),
    "zh": frozenset({"的", "了", "吗", "呢", "啊", "吧", "呀", "哦", "嗯", "我", "是", "很", "也", "都"}),
    "ms": frozenset(
        {"saya", "aku", "yang", "adalah", "ke", "dari", "dan", "itu", "ini", "sangat", "lah", "pun", "nak"}
    ),
}

PRONOUNS = frozenset(
    {"i", "me", "you", "we", "us", "they", "them", "he", "him", "she", "her", "it", "ya", "u"}
)

QUESTION_STARTERS = frozenset(
    {"what", "whats", "why", "how", "who", "whos", "where", "wheres", "when", "whens"}
)

NOUN_TAGS = frozenset({"NOUN", "PROPN"})
MODIFIER_TAGS = frozenset({"ADJ", "VERB"})

MALAY_COMPOUND_RE = re.compile(r"\b(ayam goreng|nasi lemak|roti canai|teh tarik|makan malam)\b")

_NON_ALPHA_RE = re.compile(r"[^a-z]")


@dataclass
class ProcessedToken:
    """Tokenizer output for one submission.

    ``normalized`` and ``key_phrase`` are both non-empty whenever
    ``original`` is non-empty; the empty token (weight 0) is only produced
    for blank input.
    """

    original: str
    normalized: str
    key_phrase: str
    type: TokenType
    language: Language
    pos: Optional[str] = None
    semantic_weight: float = 1.0

    @classmethod
    def empty(cls, original: object) -> "ProcessedToken":
        text = original if isinstance(original, str) else ""
        return cls(
            original=text,
            normalized="",
            key_phrase="",
            type="word",
            language="en",
            semantic_weight=0.0,
        )

    @classmethod
    def identity(cls, original: str, language: Language) -> "ProcessedToken":
        lowered = original.strip().lower()
        return cls(
            original=original,
            normalized=lowered,
            key_phrase=lowered,
            type="word",
            language=language,
        )


class TextTokenizer:
    """Base class for per-language tokenization strategies."""

    language: Language = "en"

    def __init__(self, filler_policy: FillerPolicy = "keep_all") -> None:
        if filler_policy not in FILLER_POLICIES:
            raise ValueError(f"Unknown filler policy: {filler_policy!r}")
        self.filler_policy = filler_policy

    def tokenize(self, text: str) -> ProcessedToken:
        if not isinstance(text, str) or not text.strip():
            return ProcessedToken.empty(text)

        trimmed = text.strip()
        try:
            return self._tokenize(trimmed)
        except Exception as exc:
            logger.warning(
                "Tokenizer strategy failed; using identity token",
                extra={"strategy": type(self).__name__, "text": trimmed, "error": str(exc)},
            )
            return ProcessedToken.identity(trimmed, self.language)

    def _tokenize(self, text: str) -> ProcessedToken:
        raise NotImplementedError

    def _strip_fillers(self, words: Sequence[str], joiner: str = " ") -> Optional[str]:
        """Return ``words`` without fillers, or ``None`` when nothing would survive."""

        fillers = FILLER_WORDS.get(self.language, frozenset())
        kept = [word for word in words if word not in fillers]
        return joiner.join(kept) if kept else None


class ChineseTokenizer(TextTokenizer):
    """Dictionary segmentation; the longest segment is the key phrase.

    Multi-character segments are usually the content-bearing compound while
    single characters tend to be particles, so length stands in for salience.
    """

    language: Language = "zh"

    def __init__(self, segmenter: Segmenter, filler_policy: FillerPolicy = "keep_all") -> None:
        super().__init__(filler_policy)
        self.segmenter = segmenter

    def _tokenize(self, text: str) -> ProcessedToken:
        base = normalize_text(text)
        segments = [seg.strip() for seg in self.segmenter.cut(base) if seg.strip()]
        if not segments:
            return ProcessedToken.identity(text, self.language)

        # max() keeps the first of equally long segments.
        key_phrase = max(segments, key=len)
        normalized = "".join(segments)
        if self.filler_policy == "strip":
            normalized = self._strip_fillers(segments, joiner="") or normalized

        return ProcessedToken(
            original=text,
            normalized=normalized,
            key_phrase=key_phrase,
            type="phrase" if len(segments) > 1 else "word",
            language=self.language,
        )


class EnglishTokenizer(TextTokenizer):
    """Part-of-speech driven key-phrase extraction.

    The rightmost non-pronoun noun is the key phrase: in short answers such
    as "I like chicken" it is usually the object or topic. Questions keep
    their whole normalized text because a single noun loses their meaning.
    """

    language: Language = "en"

    def __init__(self, tagger: PosTagger, filler_policy: FillerPolicy = "keep_all") -> None:
        super().__init__(filler_policy)
        self.tagger = tagger

    def _tokenize(self, text: str) -> ProcessedToken:
        normalized = normalize_text(text)
        words = split_words(normalized)
        terms = list(self.tagger.tag(text))

        candidates = _noun_candidates(terms)
        if candidates:
            key_phrase = candidates[-1]
        else:
            key_phrase = words[-1] if words else normalized

        if _is_question(words, text):
            key_phrase = normalized

        if key_phrase in PRONOUNS:
            fallback = next((c for c in reversed(candidates) if c not in PRONOUNS), None)
            if fallback:
                key_phrase = fallback
            elif len(words) > 1:
                key_phrase = normalized

        is_phrase = _has_modifier_chunk(terms) or len(words) > 1

        if self.filler_policy == "strip":
            normalized = self._strip_fillers(words) or normalized

        return ProcessedToken(
            original=text,
            normalized=normalized,
            key_phrase=key_phrase,
            type="phrase" if is_phrase else "word",
            language=self.language,
            pos=terms[0].pos if terms else None,
        )


class MalayTokenizer(TextTokenizer):
    """Head-final rule for Malay with a closed list of food compounds.

    Splitting "nasi lemak" would break its meaning, so a known compound found
    anywhere in the phrase becomes the key phrase.
    """

    language: Language = "ms"

    def _tokenize(self, text: str) -> ProcessedToken:
        normalized = normalize_text(text)
        words = split_words(normalized) or [normalized]
        key_phrase = words[-1]

        compound = MALAY_COMPOUND_RE.search(normalized)
        if compound:
            key_phrase = compound.group(1)

        if self.filler_policy == "strip":
            normalized = self._strip_fillers(words) or normalized

        return ProcessedToken(
            original=text,
            normalized=normalized,
            key_phrase=key_phrase,
            type="phrase" if len(words) > 1 or compound else "word",
            language=self.language,
        )


class MixedTokenizer(TextTokenizer):
    """Run the Chinese and English strategies and keep the richer result.

    The Chinese result wins only when its normalized form is longer than the
    English one and actually differs from the input.
    """

    language: Language = "mixed"

    def __init__(self, chinese: TextTokenizer, english: TextTokenizer) -> None:
        super().__init__()
        self.chinese = chinese
        self.english = english

    def _tokenize(self, text: str) -> ProcessedToken:
        zh_token = self.chinese.tokenize(text)
        en_token = self.english.tokenize(text)
        if len(zh_token.normalized) > len(en_token.normalized) and zh_token.normalized != text:
            return replace(zh_token, language=self.language)
        return replace(en_token, language=self.language)


class MultilingualTokenizer:
    """Dispatch each submission to the strategy registered for its language."""

    def __init__(
        self,
        detector: LanguageDetector,
        strategies: Optional[dict[Language, TextTokenizer]] = None,
        *,
        max_workers: int = 4,
    ) -> None:
        self.detector = detector
        self._strategies: dict[Language, TextTokenizer] = dict(strategies or {})
        self.max_workers = max(1, int(max_workers))

    def register(self, language: Language, tokenizer: TextTokenizer) -> None:
        self._strategies[language] = tokenizer

    def strategy_for(self, language: Language) -> TextTokenizer:
        strategy = self._strategies.get(language) or self._strategies.get("en")
        if strategy is None:
            raise LookupError(f"No tokenizer registered for {language!r} and no English fallback")
        return strategy

    def tokenize(self, text: str) -> ProcessedToken:
        if not isinstance(text, str) or not text.strip():
            return ProcessedToken.empty(text)
        trimmed = text.strip()
        language = self.detector.detect(trimmed)
        return self.strategy_for(language).tokenize(trimmed)

    def tokenize_batch(
        self,
        texts: Sequence[str],
        *,
        max_workers: Optional[int] = None,
        progress: bool = False,
        on_progress: Optional[Callable[[int, int], None]] = None,
    ) -> list[ProcessedToken]:
        """Tokenize ``texts`` concurrently, preserving input order.

        Texts whose tokenization raises are logged and skipped, as are tokens
        with an empty normalized form.
        """

        total = len(texts)
        if total == 0:
            return []

        results: list[Optional[ProcessedToken]] = [None] * total
        workers = max(1, int(max_workers or self.max_workers))
        with ThreadPoolExecutor(max_workers=min(workers, total)) as pool:
            futures = {pool.submit(self.tokenize, text): index for index, text in enumerate(texts)}
            completed = as_completed(futures)
            if progress:
                completed = tqdm(completed, total=total, desc="Tokenizing", unit="text")

            for done, future in enumerate(completed, start=1):
                index = futures[future]
                try:
                    results[index] = future.result()
                except Exception as exc:
                    logger.error(
                        "Tokenization failed; skipping text",
                        extra={"text": texts[index], "error": str(exc)},
                    )
                if on_progress is not None:
                    on_progress(done, total)

        return [token for token in results if token is not None and token.normalized]


def _noun_candidates(terms: Sequence[TaggedTerm]) -> list[str]:
    candidates: list[str] = []
    for term in terms:
        word = normalize_text(term.text)
        if not word or term.pos == "PRON" or word in PRONOUNS:
            continue
        if term.pos in NOUN_TAGS:
            candidates.append(word)
    return candidates


def _has_modifier_chunk(terms: Sequence[TaggedTerm]) -> bool:
    return any(
        left.pos in MODIFIER_TAGS and right.pos in NOUN_TAGS
        for left, right in zip(terms, terms[1:])
    )


def _is_question(words: Sequence[str], original: str) -> bool:
    if not words:
        return False
    starter = _NON_ALPHA_RE.sub("", words[0])
    return starter in QUESTION_STARTERS or original.rstrip().endswith(("?", "\uff1f"))


__all__ = [
    "ChineseTokenizer",
    "EnglishTokenizer",
    "FILLER_POLICIES",
    "FILLER_WORDS",
    "FillerPolicy",
    "MalayTokenizer",
    "MixedTokenizer",
    "MultilingualTokenizer",
    "PRONOUNS",
    "ProcessedToken",
    "QUESTION_STARTERS",
    "TextTokenizer",
]
