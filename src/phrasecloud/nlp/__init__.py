"""Language detection, spam filtering and per-language tokenization."""

from .backends import BackendUnavailable, JiebaSegmenter, LazyBackend, LinguaModel, SpacyTagger
from .language import LanguageDetector
from .spam import is_spam, spam_verdicts
from .tokenization import (
    ChineseTokenizer,
    EnglishTokenizer,
    MalayTokenizer,
    MixedTokenizer,
    MultilingualTokenizer,
    ProcessedToken,
    TextTokenizer,
)

__all__ = [
    "BackendUnavailable",
    "ChineseTokenizer",
    "EnglishTokenizer",
    "JiebaSegmenter",
    "LanguageDetector",
    "LazyBackend",
    "LinguaModel",
    "MalayTokenizer",
    "MixedTokenizer",
    "MultilingualTokenizer",
    "ProcessedToken",
    "SpacyTagger",
    "TextTokenizer",
    "is_spam",
    "spam_verdicts",
]
