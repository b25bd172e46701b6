"""Shared type definitions for the phrasecloud pipeline.

Language, token and tier tags are plain string literals so that groups can
be serialized for the renderer without conversion. The protocols describe
the minimal surface expected from the NLP backends, which keeps the
tokenizers testable with small in-process fakes.
"""
from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Literal, Protocol, TypeAlias, runtime_checkable

Language: TypeAlias = Literal["en", "zh", "ms", "mixed"]
TokenType: TypeAlias = Literal["word", "phrase", "compound"]
Tier: TypeAlias = Literal["S", "A", "B", "C"]
SpamSensitivity: TypeAlias = Literal["low", "medium", "high"]
DisplayDensity: TypeAlias = Literal["low", "medium", "high"]

LANGUAGES: tuple[Language, ...] = ("en", "zh", "ms", "mixed")
TIERS: tuple[Tier, ...] = ("S", "A", "B", "C")


@dataclass(frozen=True)
class TaggedTerm:
    """A single word with its coarse universal part-of-speech label."""

    text: str
    pos: str


@runtime_checkable
class Segmenter(Protocol):
    """Protocol for dictionary-based Chinese word segmenters."""

    def cut(self, text: str) -> list[str]:
        """Return the word-like segments of ``text`` in order."""
        ...


@runtime_checkable
class PosTagger(Protocol):
    """Protocol for part-of-speech taggers emitting universal POS labels."""

    def tag(self, text: str) -> Sequence[TaggedTerm]:
        """Return tagged terms for ``text`` in surface order."""
        ...


@runtime_checkable
class LanguageModel(Protocol):
    """Protocol for statistical language identifiers.

    ``identify`` returns an ISO 639-1 code (``"zh"``, ``"en"``, ``"ms"``) or
    ``None`` when the model has no confident answer.
    """

    def identify(self, text: str) -> str | None:
        ...


__all__ = [
    "DisplayDensity",
    "LANGUAGES",
    "Language",
    "LanguageModel",
    "PosTagger",
    "Segmenter",
    "SpamSensitivity",
    "TIERS",
    "TaggedTerm",
    "Tier",
    "TokenType",
]
