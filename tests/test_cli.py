import json
import pathlib
import sys

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]
SRC_ROOT = PROJECT_ROOT / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from phrasecloud import cli
from phrasecloud.common.types import TaggedTerm
from phrasecloud.nlp.language import LanguageDetector
from phrasecloud.nlp.tokenization import (
    ChineseTokenizer,
    EnglishTokenizer,
    MalayTokenizer,
    MultilingualTokenizer,
)
from phrasecloud.utils.text import normalize_text


class FakeSegmenter:
    def cut(self, text):
        return list(text) if len(text) > 2 else [text]


class FakeTagger:
    def tag(self, text):
        return [TaggedTerm(word, "NOUN") for word in normalize_text(text).split()]


def fake_build_pipeline(settings=None, *, filler_policy="keep_all"):
    tokenizer = MultilingualTokenizer(LanguageDetector(), max_workers=2)
    tokenizer.register("zh", ChineseTokenizer(FakeSegmenter(), filler_policy=filler_policy))
    tokenizer.register("en", EnglishTokenizer(FakeTagger(), filler_policy=filler_policy))
    tokenizer.register("ms", MalayTokenizer(filler_policy=filler_policy))
    return tokenizer


def write_entries(path, texts):
    path.write_text(json.dumps([{"text": text, "color": "red"} for text in texts]), encoding="utf-8")
    return path


def test_process_writes_groups_atomically(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(cli, "build_pipeline", fake_build_pipeline)
    source = write_entries(tmp_path / "entries.json", ["apple", "apple", "banana", "aaaa"])
    output = tmp_path / "out" / "groups.json"

    exit_code = cli.main(["process", str(source), "--output", str(output), "--stats"])

    assert exit_code == 0
    payload = json.loads(output.read_text(encoding="utf-8"))
    assert [group["canonical"] for group in payload["groups"]] == ["apple", "banana"]
    assert payload["groups"][0]["colors"] == ["red"]
    assert payload["stats"]["spam_filtered"] == 1
    assert payload["min_occurrence"] == 1
    assert "Wrote 2 groups" in capsys.readouterr().out
    assert list(output.parent.iterdir()) == [output]


def test_process_prints_json_to_stdout(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(cli, "build_pipeline", fake_build_pipeline)
    source = write_entries(tmp_path / "entries.json", ["saya suka nasi lemak", "nasi lemak dari mak"])

    exit_code = cli.main(["process", str(source), "--manual-min", "1", "--canonical-only"])

    assert exit_code == 0
    payload = json.loads(capsys.readouterr().out)
    assert "stats" not in payload
    [group] = payload["groups"]
    assert group["display_text"] == "nasi lemak"
    assert group["total_count"] == 2


def test_missing_input_returns_exit_code_two(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)

    assert cli.main(["process", str(tmp_path / "missing.json")]) == 2
    assert cli.main(["threshold", str(tmp_path / "missing.json")]) == 2


def test_invalid_snapshot_returns_exit_code_two(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    source = tmp_path / "scalar.json"
    source.write_text("42", encoding="utf-8")

    assert cli.main(["threshold", str(source)]) == 2


def test_threshold_explains_itself(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    source = write_entries(tmp_path / "entries.json", ["apple", "banana", "cherry"])

    exit_code = cli.main(["threshold", str(source), "--density", "low"])

    out = capsys.readouterr().out
    assert exit_code == 0
    assert "Min occurrence: 1" in out
    assert "small dataset" in out
    assert "entries=3 unique=3" in out


def test_detect_reports_language_and_spam(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(cli, "build_pipeline", fake_build_pipeline)

    exit_code = cli.main(["detect", "鸡肉", "saya lapar", "aaaa"])

    lines = capsys.readouterr().out.splitlines()
    assert exit_code == 0
    assert lines[2].startswith("zh")
    assert lines[3].startswith("ms")
    assert "lapar" in lines[3]
    assert lines[4].startswith("en")
    assert "True" in lines[4]
