"""Shared infrastructure for the phrasecloud pipeline."""

from __future__ import annotations

from .config import get_backend_settings
from .types import (
    Language,
    LanguageModel,
    PosTagger,
    Segmenter,
    TaggedTerm,
    Tier,
    TokenType,
)

__all__ = [
    "Language",
    "LanguageModel",
    "PosTagger",
    "Segmenter",
    "TaggedTerm",
    "Tier",
    "TokenType",
    "get_backend_settings",
]
