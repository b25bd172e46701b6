"""Text helpers shared by the detector, spam filter and tokenizers."""
from __future__ import annotations

import re
from datetime import datetime, timezone

# Han ideographs (incl. extension A and compatibility block) plus kana.
CJK_RE = re.compile(r"[\u3040-\u30ff\u3400-\u4dbf\u4e00-\u9fff\uf900-\ufaff]")
LATIN_RE = re.compile(r"[A-Za-z]")

_PUNCT_RE = re.compile(r"[.,!?;:\u3002\uff0c\uff01\uff1f\uff1b\uff1a\"\u201c\u201d'\u2018\u2019\u300c\u300d\u300e\u300f\u3010\u3011()\uff08\uff09]")
_SPACE_RE = re.compile(r"\s+")


def contains_cjk(text: str) -> bool:
    return bool(CJK_RE.search(text or ""))


def contains_latin(text: str) -> bool:
    return bool(LATIN_RE.search(text or ""))


def normalize_text(text: object) -> str:
    """Case-fold ``text``, blank out punctuation and collapse whitespace.

    Filler words are kept. Non-string input yields ``""``; if stripping
    punctuation leaves nothing, the trimmed lower-cased input is returned so
    that punctuation-only submissions still have a stable key.
    """

    if not isinstance(text, str):
        return ""
    lowered = text.strip().lower()
    if not lowered:
        return ""
    cleaned = _SPACE_RE.sub(" ", _PUNCT_RE.sub(" ", lowered)).strip()
    return cleaned or lowered


def split_words(text: str) -> list[str]:
    return [word for word in _SPACE_RE.split(text.strip()) if word] if text else []


def utcnow_iso() -> str:
    """Return the current UTC timestamp in ISO-8601 format with a trailing 'Z'."""

    now = datetime.now(timezone.utc).replace(microsecond=0)
    return now.isoformat().replace("+00:00", "Z")


__all__ = [
    "CJK_RE",
    "LATIN_RE",
    "contains_cjk",
    "contains_latin",
    "normalize_text",
    "split_words",
    "utcnow_iso",
]
