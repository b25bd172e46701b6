"""Validated participant submissions and snapshot loading."""
from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from .utils.text import normalize_text

logger = logging.getLogger(__name__)


class RawSubmission(BaseModel):
    """One participant entry as supplied by the entry store.

    Accepts the store's column names (``participant_name``, ``created_at``)
    as well as the camel-case names used by the web client. Text that is
    missing or not a string becomes ``""`` so that malformed rows are
    filtered as empty input instead of failing the whole snapshot. An
    unreadable timestamp becomes ``None``.
    """

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    text: str = ""
    color: str = ""
    participant_label: str = Field(
        default="",
        validation_alias=AliasChoices("participant_label", "participant_name", "participantLabel"),
    )
    created_at: Optional[datetime] = Field(
        default=None,
        validation_alias=AliasChoices("created_at", "createdAt", "timestamp"),
    )

    @field_validator("text", mode="before")
    def coerce_text(cls, v: Any) -> str:
        return v if isinstance(v, str) else ""

    @field_validator("color", "participant_label", mode="before")
    def coerce_label(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @field_validator("created_at", mode="before")
    def coerce_created_at(cls, v: Any) -> Optional[datetime]:
        # The timestamp is informational; an unreadable one must not drop the answer.
        if isinstance(v, datetime):
            return v
        if not isinstance(v, str) or not v.strip():
            return None
        try:
            return datetime.fromisoformat(v.strip().replace("Z", "+00:00"))
        except ValueError:
            logger.debug("Ignoring unparseable created_at", extra={"value": v})
            return None

    @property
    def entry_key(self) -> str:
        """Occurrence-count key: the normalized text."""
        return normalize_text(self.text)


def coerce_submissions(rows: Iterable[Any]) -> List[RawSubmission]:
    """Validate ``rows`` (dicts, strings or submissions), skipping unusable ones."""

    submissions: List[RawSubmission] = []
    for row in rows:
        if isinstance(row, RawSubmission):
            submissions.append(row)
            continue
        if isinstance(row, str):
            submissions.append(RawSubmission(text=row))
            continue
        if not isinstance(row, dict):
            logger.warning(f"Skipping non-dict submission: {row!r}")
            continue
        try:
            submissions.append(RawSubmission.model_validate(row))
        except ValidationError as exc:
            logger.warning(
                "Skipping invalid submission",
                extra={"row": row, "errors": exc.error_count()},
            )
    return submissions


def load_submissions(path: str | Path) -> List[RawSubmission]:
    """Load a snapshot from a JSON array or a JSON-lines file.

    A JSON object with an ``entries`` list is accepted too, matching the
    store's export format.
    """

    source = Path(path)
    raw_text = source.read_text(encoding="utf-8")
    if not raw_text.strip():
        return []

    if source.suffix != ".jsonl":
        try:
            data = json.loads(raw_text)
        except json.JSONDecodeError:
            pass  # not a single document; read as JSON lines
        else:
            if isinstance(data, dict):
                data = data.get("entries", [])
            if not isinstance(data, list):
                raise ValueError(f"Unsupported JSON root type in {source}: {type(data).__name__}")
            logger.info(f"Loading {len(data)} submissions from {source}")
            return coerce_submissions(data)

    rows: List[Any] = []
    for line_no, line in enumerate(raw_text.splitlines(), start=1):
        line = line.strip()
        if not line:
            continue
        try:
            rows.append(json.loads(line))
        except json.JSONDecodeError:
            logger.error("Invalid JSON line", extra={"path": str(source), "line": line_no})
    logger.info(f"Loading {len(rows)} submissions from {source}")
    return coerce_submissions(rows)


__all__ = ["RawSubmission", "coerce_submissions", "load_submissions"]
