"""Utility helpers for storing puzzles and reading play records on disk."""

from __future__ import annotations

import os
import tempfile
import time
from contextlib import suppress
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional
from uuid import uuid4

import orjson

from wordsearch.logging_config import get_logger

logger = get_logger("storage")

DATA_ROOT = Path(os.getenv("DATA_ROOT", "data"))
PUZZLES_DIR = DATA_ROOT / "puzzles"
PLAYS_FILE = DATA_ROOT / "plays.json"

PUZZLE_FILE_SUFFIX = ".json"


class StorageError(RuntimeError):
    """Raised when a puzzle cannot be persisted."""


@dataclass(slots=True)
class PlayRecord:
    """A single play of a puzzle as recorded by the game client."""

    user_id: str
    puzzle_id: str
    level: int
    status: str = "started"
    played_at: float = field(default_factory=time.time)

    @property
    def completed(self) -> bool:
        return self.status == "completed"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "user_id": self.user_id,
            "puzzle_id": self.puzzle_id,
            "level": self.level,
            "status": self.status,
            "played_at": self.played_at,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "PlayRecord":
        user_raw = payload.get("user_id")
        if user_raw in (None, ""):
            raise ValueError("Play record missing user identifier")
        played_raw = payload.get("played_at")
        played_at = 0.0
        if isinstance(played_raw, (int, float)):
            played_at = float(played_raw)
        else:
            with suppress(TypeError, ValueError):
                played_at = float(played_raw)
        return cls(
            user_id=str(user_raw),
            puzzle_id=str(payload.get("puzzle_id", "")),
            level=int(payload.get("level", 0) or 0),
            status=str(payload.get("status", "started") or "started"),
            played_at=played_at,
        )


def _ensure_directory(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def _write_atomic(path: Path, data: bytes) -> None:
    _ensure_directory(path.parent)
    with tempfile.NamedTemporaryFile("wb", delete=False, dir=path.parent) as tmp_file:
        tmp_file.write(data)
        tmp_file.flush()
        os.fsync(tmp_file.fileno())
        temp_path = Path(tmp_file.name)
    os.replace(temp_path, path)
    logger.debug("Atomic write complete for %s", path)


def _load_json(path: Path) -> Optional[Any]:
    try:
        raw = path.read_bytes()
    except FileNotFoundError:
        logger.debug("Requested JSON file %s does not exist", path)
        return None
    except OSError:
        logger.exception("Failed to read JSON file at %s", path)
        return None

    try:
        return orjson.loads(raw)
    except orjson.JSONDecodeError:
        logger.exception("Failed to decode JSON file at %s", path)
        return None


def _dump_json(payload: Any, *, indent: bool = False) -> bytes:
    return orjson.dumps(payload, option=orjson.OPT_INDENT_2 if indent else 0)


def save_puzzle(payload: Mapping[str, Any]) -> str:
    """Persist a puzzle document and return its new identifier."""

    puzzle_id = uuid4().hex
    path = PUZZLES_DIR / f"{puzzle_id}{PUZZLE_FILE_SUFFIX}"
    try:
        data = _dump_json(dict(payload))
        _write_atomic(path, data)
    except (OSError, TypeError) as exc:
        logger.exception("Failed to save puzzle to %s", path)
        raise StorageError(f"Unable to save puzzle: {exc}") from exc
    logger.debug("Saved puzzle %s to %s", puzzle_id, path)
    return puzzle_id


def load_puzzle(puzzle_id: str) -> Optional[Mapping[str, Any]]:
    """Load a puzzle document from persistent storage."""

    path = PUZZLES_DIR / f"{puzzle_id}{PUZZLE_FILE_SUFFIX}"
    payload = _load_json(path)
    if not isinstance(payload, Mapping):
        return None
    logger.debug("Loaded puzzle %s from %s", puzzle_id, path)
    return payload


def load_all_puzzles() -> Dict[str, Mapping[str, Any]]:
    """Load every stored puzzle document keyed by identifier."""

    if not PUZZLES_DIR.exists():
        return {}
    results: Dict[str, Mapping[str, Any]] = {}
    for path in sorted(PUZZLES_DIR.glob(f"*{PUZZLE_FILE_SUFFIX}")):
        payload = _load_json(path)
        if not isinstance(payload, Mapping):
            continue
        results[path.stem] = payload
    logger.debug("Loaded %s puzzles from disk", len(results))
    return results


def load_play_records() -> List[PlayRecord]:
    """Load the play records written by the game client."""

    payload = _load_json(PLAYS_FILE)
    if payload is None:
        return []
    if not isinstance(payload, list):
        logger.warning("Play records file %s does not hold a list", PLAYS_FILE)
        return []

    records: List[PlayRecord] = []
    for entry in payload:
        if not isinstance(entry, Mapping):
            continue
        try:
            records.append(PlayRecord.from_dict(entry))
        except (TypeError, ValueError):
            logger.warning("Skipping malformed play record %r", entry)
    return records


def write_run_log(path: str | Path, payload: Mapping[str, Any]) -> None:
    """Write the structured run log as pretty-printed JSON."""

    target = Path(path)
    _write_atomic(target, _dump_json(dict(payload), indent=True))
    logger.info("Run log written to %s", target)


__all__ = [
    "DATA_ROOT",
    "PLAYS_FILE",
    "PUZZLES_DIR",
    "PlayRecord",
    "StorageError",
    "load_all_puzzles",
    "load_play_records",
    "load_puzzle",
    "save_puzzle",
    "write_run_log",
]
