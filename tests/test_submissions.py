import json
import pathlib
import sys
from datetime import datetime

import pytest
from pydantic import ValidationError

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]
SRC_ROOT = PROJECT_ROOT / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from phrasecloud.submissions import RawSubmission, coerce_submissions, load_submissions


def test_store_and_client_field_names_are_accepted():
    store_row = RawSubmission.model_validate(
        {"text": "Nasi Lemak", "color": "#ff0000", "participant_name": "Ana", "created_at": "2024-05-01T10:00:00Z"}
    )
    client_row = RawSubmission.model_validate({"text": "x", "participantLabel": "Ben", "timestamp": "2024-05-01T10:00:00"})

    assert store_row.participant_label == "Ana"
    assert isinstance(store_row.created_at, datetime)
    assert store_row.entry_key == "nasi lemak"
    assert client_row.participant_label == "Ben"


def test_non_string_text_becomes_empty():
    row = RawSubmission.model_validate({"text": 12, "color": None})

    assert row.text == ""
    assert row.color == ""
    assert row.entry_key == ""


def test_submissions_are_immutable():
    row = RawSubmission(text="hello")

    with pytest.raises(ValidationError):
        row.text = "changed"


def test_coerce_submissions_skips_unusable_rows():
    rows = coerce_submissions(
        ["plain", {"text": "dict"}, 42, RawSubmission(text="model"), None]
    )

    assert [row.text for row in rows] == ["plain", "dict", "model"]


@pytest.mark.parametrize("value", ["yesterday", "", 1714557600, ["2024"], None])
def test_unreadable_timestamp_keeps_the_answer(value):
    rows = coerce_submissions([{"text": "hello", "created_at": value}])

    assert [row.text for row in rows] == ["hello"]
    assert rows[0].created_at is None


def test_iso_timestamp_with_zulu_suffix_is_parsed():
    row = RawSubmission.model_validate({"text": "hello", "createdAt": "2024-05-01T10:00:00Z"})

    assert row.created_at.year == 2024
    assert row.created_at.utcoffset().total_seconds() == 0


def test_load_json_array(tmp_path):
    path = tmp_path / "entries.json"
    path.write_text(json.dumps([{"text": "鸡肉"}, {"text": "chicken", "color": "blue"}]), encoding="utf-8")

    rows = load_submissions(path)

    assert [row.text for row in rows] == ["鸡肉", "chicken"]
    assert rows[1].color == "blue"


def test_load_entries_object(tmp_path):
    path = tmp_path / "export.json"
    path.write_text(json.dumps({"session": "abc", "entries": [{"text": "teh tarik"}]}), encoding="utf-8")

    assert [row.text for row in load_submissions(path)] == ["teh tarik"]


def test_load_json_lines_skips_invalid_lines(tmp_path):
    path = tmp_path / "entries.jsonl"
    path.write_text('{"text": "a"}\nnot json\n\n{"text": "b"}\n', encoding="utf-8")

    assert [row.text for row in load_submissions(path)] == ["a", "b"]


def test_json_lines_in_json_file_are_detected(tmp_path):
    path = tmp_path / "entries.json"
    path.write_text('{"text": "a"}\n{"text": "b"}\n', encoding="utf-8")

    assert [row.text for row in load_submissions(path)] == ["a", "b"]


def test_empty_file_loads_nothing(tmp_path):
    path = tmp_path / "empty.json"
    path.write_text("  \n", encoding="utf-8")

    assert load_submissions(path) == []


def test_scalar_json_root_is_rejected(tmp_path):
    path = tmp_path / "scalar.json"
    path.write_text("42", encoding="utf-8")

    with pytest.raises(ValueError):
        load_submissions(path)
