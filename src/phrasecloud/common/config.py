from __future__ import annotations

import os

DEFAULT_SPACY_MODEL = "en_core_web_sm"
DEFAULT_MAX_WORKERS = 4


def get_backend_settings() -> dict[str, object]:
    """Return backend settings resolved from the environment.

    ``PHRASECLOUD_SPACY_MODEL`` selects the spaCy pipeline used for English
    tagging, ``PHRASECLOUD_JIEBA_DICT`` points at an optional jieba user
    dictionary and ``PHRASECLOUD_MAX_WORKERS`` bounds the tokenization pool.
    """

    raw_workers = os.getenv("PHRASECLOUD_MAX_WORKERS", "").strip()
    try:
        max_workers = int(raw_workers) if raw_workers else DEFAULT_MAX_WORKERS
    except ValueError:
        max_workers = DEFAULT_MAX_WORKERS

    return {
        "spacy_model": os.getenv("PHRASECLOUD_SPACY_MODEL", "").strip() or DEFAULT_SPACY_MODEL,
        "jieba_dict": os.getenv("PHRASECLOUD_JIEBA_DICT", "").strip() or None,
        "max_workers": max(1, max_workers),
    }
