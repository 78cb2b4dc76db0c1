"""Tests for inventory and progress telemetry."""

from __future__ import annotations

from pathlib import Path

from _pytest.monkeypatch import MonkeyPatch

from wordsearch import storage, telemetry
from wordsearch.storage import PlayRecord

NOW = 1_700_000_000.0
DAY = 24 * 60 * 60


def test_summarise_puzzles_counts_dimensions() -> None:
    puzzles = [
        {"theme": "Animals", "difficulty": "simple", "level": 1},
        {"theme": "Animals", "difficulty": "simple", "level": 2},
        {"theme": "Food", "difficulty": "hard", "level": 20},
        {"theme": "Food", "level": None},
    ]

    snapshot = telemetry.summarise_puzzles(puzzles)

    assert snapshot.total_puzzles == 4
    assert snapshot.counts_by_difficulty == {"simple": 2, "hard": 1}
    assert snapshot.counts_by_theme == {"Animals": 2, "Food": 2}
    assert snapshot.counts_by_level == {1: 1, 2: 1, 20: 1}


def test_summarise_plays_uses_latest_level_per_user() -> None:
    records = [
        PlayRecord("alice", "p1", 1, "completed", NOW - 3 * DAY),
        PlayRecord("alice", "p2", 2, "started", NOW - DAY),
        PlayRecord("bob", "p3", 2, "completed", NOW - 30 * DAY),
        PlayRecord("carol", "p4", 5, "started", NOW - 2 * DAY),
    ]

    total, completed, progress = telemetry.summarise_plays(records, now=NOW)

    assert (total, completed) == (4, 2)
    assert progress.users_at_level == {2: 2, 5: 1}
    assert progress.recent_plays_at_level == {1: 1, 2: 1, 5: 1}


def test_summarise_plays_honours_recent_window() -> None:
    records = [
        PlayRecord("alice", "p1", 3, "started", NOW - 2 * DAY),
        PlayRecord("bob", "p2", 3, "started", NOW - 10),
    ]

    _, _, progress = telemetry.summarise_plays(records, now=NOW, recent_window=DAY)

    assert progress.recent_plays_at_level == {3: 1}


def test_collect_inventory_reads_store(tmp_path: Path, monkeypatch: MonkeyPatch) -> None:
    monkeypatch.setattr(storage, "PUZZLES_DIR", tmp_path / "puzzles")
    monkeypatch.setattr(storage, "PLAYS_FILE", tmp_path / "plays.json")
    puzzle_id = storage.save_puzzle({"theme": "Music", "difficulty": "medium", "level": 11})
    (tmp_path / "plays.json").write_text(
        f'[{{"user_id": "u1", "puzzle_id": "{puzzle_id}", "level": 11, '
        f'"status": "completed", "played_at": {NOW}}}]',
        encoding="utf-8",
    )

    snapshot, progress = telemetry.collect_inventory(now=NOW)

    assert snapshot.total_puzzles == 1
    assert snapshot.total_played == 1
    assert snapshot.total_completed == 1
    assert snapshot.consumption_rate == 100
    assert progress.users_at_level == {11: 1}


def test_collect_inventory_falls_back_when_store_fails(monkeypatch: MonkeyPatch) -> None:
    def _boom():
        raise OSError("disk unavailable")

    monkeypatch.setattr(storage, "load_all_puzzles", _boom)
    monkeypatch.setattr(storage, "load_play_records", _boom)

    snapshot, progress = telemetry.collect_inventory(now=NOW)

    assert snapshot.total_puzzles == 0
    assert snapshot.total_played == 0
    assert snapshot.counts_by_level == {}
    assert progress.users_at_level == {}


def test_plays_without_timestamp_are_not_recent() -> None:
    records = [
        PlayRecord.from_dict({"user_id": "alice", "puzzle_id": "p1", "level": 4}),
        PlayRecord("bob", "p2", 4, "started", NOW - 60),
    ]

    _, _, progress = telemetry.summarise_plays(records, now=NOW)

    assert progress.recent_plays_at_level == {4: 1}
    assert progress.users_at_level == {4: 2}
