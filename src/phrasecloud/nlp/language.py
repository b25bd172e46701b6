"""Language detection for short Chinese / English / Malay submissions."""
from __future__ import annotations

import logging
from typing import Optional

from ..common.types import Language, LanguageModel
from ..utils.text import contains_cjk, contains_latin, normalize_text, split_words

logger = logging.getLogger(__name__)

# ISO 639-1 / 639-3 codes the statistical model may report.
LANG_CODES: dict[str, Language] = {
    "zh": "zh",
    "cmn": "zh",
    "en": "en",
    "eng": "en",
    "ms": "ms",
    "zsm": "ms",
    "zlm": "ms",
}

MALAY_KEYWORDS = frozenset(
    {"saya", "aku", "yang", "adalah", "ke", "dari", "tidak", "sangat", "dengan", "untuk"}
)


class LanguageDetector:
    """Classify a string as ``en``, ``zh``, ``ms`` or ``mixed``.

    The statistical model is consulted first. Script evidence always wins
    for code-mixed input: a string containing both CJK and Latin letters is
    ``mixed`` whatever the model says. When the model is unavailable or has
    no confident answer, a rule-based fallback decides.
    """

    def __init__(self, model: Optional[LanguageModel] = None) -> None:
        self.model = model

    def detect(self, text: str) -> Language:
        if not isinstance(text, str) or not text.strip():
            return "en"

        has_cjk = contains_cjk(text)
        has_latin = contains_latin(text)
        if has_cjk and has_latin:
            return "mixed"

        mapped = self._statistical(text)
        if mapped is not None:
            return mapped

        if has_cjk:
            return "zh"
        if any(word in MALAY_KEYWORDS for word in split_words(normalize_text(text))):
            return "ms"
        return "en"

    def _statistical(self, text: str) -> Optional[Language]:
        if self.model is None:
            return None
        try:
            code = self.model.identify(text)
        except Exception as exc:
            logger.debug("Statistical language model failed", extra={"error": str(exc)})
            return None
        if not code:
            return None
        return LANG_CODES.get(code.lower())


__all__ = ["LANG_CODES", "LanguageDetector", "MALAY_KEYWORDS"]
