"""Lazily initialized NLP backends with single-flight loading.

Segmentation dictionaries, spaCy pipelines and n-gram language models are
expensive to build, so each one sits behind a handle that loads it at most
once. Handles are created by the caller's composition root (see
:func:`phrasecloud.processor.build_pipeline`) and shared by every tokenizer
that needs them; there is no module-level model cache.

``ensure_ready`` returns the same :class:`concurrent.futures.Future` to every
caller. The first caller performs the load; concurrent callers block on the
shared future and observe the same outcome, including a failed load, which
is reported once and then surfaces as :class:`BackendUnavailable`.
"""
from __future__ import annotations

import logging
from collections.abc import Sequence
from concurrent.futures import Future
from pathlib import Path
from threading import Lock
from typing import Any, Generic, Optional, TypeVar

from ..common.config import DEFAULT_SPACY_MODEL
from ..common.types import TaggedTerm

logger = logging.getLogger(__name__)

T = TypeVar("T")

__all__ = [
    "BackendUnavailable",
    "JiebaSegmenter",
    "LazyBackend",
    "LinguaModel",
    "SpacyTagger",
]


class BackendUnavailable(RuntimeError):
    """Raised when an NLP backend could not be initialized."""


class LazyBackend(Generic[T]):
    """Base class for backends that are loaded once, on first use."""

    name = "backend"

    def __init__(self) -> None:
        self._lock = Lock()
        self._future: Optional[Future] = None

    def _load(self) -> T:
        raise NotImplementedError

    def ensure_ready(self) -> Future:
        """Start loading the backend if nobody has yet; return the shared future."""

        with self._lock:
            future = self._future
            owner = future is None
            if owner:
                future = Future()
                self._future = future

        if owner:
            self._initialize(future)
        return future

    def _initialize(self, future: Future) -> None:
        try:
            handle = self._load()
        except Exception as exc:
            logger.warning(
                "Backend failed to load",
                extra={"backend": self.name, "error": str(exc)},
            )
            error = BackendUnavailable(f"{self.name} backend failed to load: {exc}")
            error.__cause__ = exc
            future.set_exception(error)
            return

        logger.debug("Backend ready", extra={"backend": self.name})
        future.set_result(handle)

    @property
    def ready(self) -> bool:
        future = self._future
        return bool(future and future.done() and future.exception() is None)

    def handle(self) -> T:
        """Block until the backend is loaded and return it.

        Raises :class:`BackendUnavailable` if loading failed.
        """

        return self.ensure_ready().result()


class JiebaSegmenter(LazyBackend[Any]):
    """Chinese word segmentation with a private ``jieba.Tokenizer``."""

    name = "jieba"

    def __init__(self, user_dict: Optional[Path | str] = None) -> None:
        super().__init__()
        self.user_dict = str(user_dict) if user_dict else None

    def _load(self) -> Any:
        import jieba

        jieba.setLogLevel(logging.WARNING)
        tokenizer = jieba.Tokenizer()
        tokenizer.initialize()
        if self.user_dict:
            tokenizer.load_userdict(self.user_dict)
        return tokenizer

    def cut(self, text: str) -> list[str]:
        """Segment ``text`` in precise mode (no overlapping segments)."""

        return list(self.handle().cut(text, cut_all=False))


class SpacyTagger(LazyBackend[Any]):
    """spaCy-backed English tagger that emits coarse universal POS labels."""

    name = "spacy"

    def __init__(self, model: str = DEFAULT_SPACY_MODEL) -> None:
        super().__init__()
        self.model = model

    def _load(self) -> Any:
        try:
            import spacy
        except ImportError as exc:  # pragma: no cover - import guard
            raise RuntimeError(
                "spaCy is required for English tagging. Install it in your environment "
                "(e.g., `pip install spacy`)."
            ) from exc

        try:
            return spacy.load(self.model, disable=["ner", "parser"])
        except OSError as exc:  # pragma: no cover - model lookup
            raise RuntimeError(
                f"Unable to load spaCy model '{self.model}'. Install it with "
                f"`python -m spacy download {self.model}` or set PHRASECLOUD_SPACY_MODEL."
            ) from exc

    def tag(self, text: str) -> Sequence[TaggedTerm]:
        doc = self.handle()(text)
        return [TaggedTerm(token.text, token.pos_.upper()) for token in doc if not token.is_space]


class LinguaModel(LazyBackend[Any]):
    """n-gram language identifier restricted to Chinese, English and Malay."""

    name = "lingua"

    def __init__(self, minimum_relative_distance: float = 0.0) -> None:
        super().__init__()
        self.minimum_relative_distance = minimum_relative_distance
        self._codes: dict[Any, str] = {}

    def _load(self) -> Any:
        from lingua import Language, LanguageDetectorBuilder

        self._codes = {
            Language.CHINESE: "zh",
            Language.ENGLISH: "en",
            Language.MALAY: "ms",
        }
        builder = LanguageDetectorBuilder.from_languages(*self._codes)
        if self.minimum_relative_distance > 0:
            builder = builder.with_minimum_relative_distance(self.minimum_relative_distance)
        return builder.build()

    def identify(self, text: str) -> Optional[str]:
        detected = self.handle().detect_language_of(text)
        if detected is None:
            return None
        return self._codes.get(detected)
