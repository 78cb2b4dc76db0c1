"""Tests for the on-disk puzzle store."""

from __future__ import annotations

from pathlib import Path

import orjson
import pytest
from _pytest.monkeypatch import MonkeyPatch

from wordsearch import storage


@pytest.fixture
def store(tmp_path: Path, monkeypatch: MonkeyPatch) -> Path:
    monkeypatch.setattr(storage, "PUZZLES_DIR", tmp_path / "puzzles")
    monkeypatch.setattr(storage, "PLAYS_FILE", tmp_path / "plays.json")
    return tmp_path


def test_save_and_load_puzzle(store: Path) -> None:
    payload = {"theme": "Animals", "level": 1, "grid": ["CATXX"]}

    puzzle_id = storage.save_puzzle(payload)

    assert (store / "puzzles" / f"{puzzle_id}.json").exists()
    assert storage.load_puzzle(puzzle_id) == payload
    assert storage.load_puzzle("missing") is None


def test_save_puzzle_assigns_unique_identifiers(store: Path) -> None:
    first = storage.save_puzzle({"theme": "Food"})
    second = storage.save_puzzle({"theme": "Food"})

    assert first != second
    assert set(storage.load_all_puzzles()) == {first, second}


def test_save_puzzle_wraps_serialisation_errors(store: Path) -> None:
    with pytest.raises(storage.StorageError):
        storage.save_puzzle({"theme": object()})


def test_load_all_puzzles_skips_corrupted_files(store: Path) -> None:
    good_id = storage.save_puzzle({"theme": "Music"})
    (store / "puzzles" / "broken.json").write_text("{not json", encoding="utf-8")
    (store / "puzzles" / "list.json").write_text("[1, 2]", encoding="utf-8")

    puzzles = storage.load_all_puzzles()

    assert list(puzzles) == [good_id]


def test_load_all_puzzles_without_directory(store: Path) -> None:
    assert storage.load_all_puzzles() == {}


def test_load_play_records_skips_malformed_entries(store: Path) -> None:
    entries = [
        {"user_id": "u1", "puzzle_id": "p1", "level": 3, "status": "completed", "played_at": 100},
        {"puzzle_id": "p2", "level": 2},
        "garbage",
        {"user_id": 7, "puzzle_id": "p3", "level": "4", "played_at": "250.5"},
    ]
    (store / "plays.json").write_bytes(orjson.dumps(entries))

    records = storage.load_play_records()

    assert [record.user_id for record in records] == ["u1", "7"]
    assert records[0].completed is True
    assert records[1].level == 4
    assert records[1].played_at == pytest.approx(250.5)
    assert records[1].status == "started"


def test_load_play_records_handles_missing_or_invalid_file(store: Path) -> None:
    assert storage.load_play_records() == []

    (store / "plays.json").write_text('{"user_id": "u1"}', encoding="utf-8")

    assert storage.load_play_records() == []


def test_write_run_log_creates_parent_directories(tmp_path: Path) -> None:
    target = tmp_path / "logs" / "generation-log.json"

    storage.write_run_log(target, {"success_count": 2, "entries": []})

    assert orjson.loads(target.read_bytes()) == {"success_count": 2, "entries": []}
    assert target.read_text(encoding="utf-8").startswith("{\n")


def test_play_record_without_timestamp_reads_as_epoch() -> None:
    missing = storage.PlayRecord.from_dict({"user_id": "u1", "puzzle_id": "p1", "level": 2})
    garbled = storage.PlayRecord.from_dict({"user_id": "u2", "level": 2, "played_at": "yesterday"})

    assert missing.played_at == 0.0
    assert garbled.played_at == 0.0
