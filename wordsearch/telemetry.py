"""Inventory and user progress telemetry gathered from the local store."""

from __future__ import annotations

import time
from collections import Counter
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from wordsearch import storage
from wordsearch.inventory import InventorySnapshot, UserProgressSnapshot
from wordsearch.logging_config import get_logger
from wordsearch.storage import PlayRecord

logger = get_logger("telemetry")

RECENT_PLAYS_WINDOW_SECONDS = 7 * 24 * 60 * 60


def summarise_puzzles(puzzles: Iterable[Mapping[str, Any]]) -> InventorySnapshot:
    """Count stored puzzle documents by difficulty, theme and level."""

    by_difficulty: Counter[str] = Counter()
    by_theme: Counter[str] = Counter()
    by_level: Counter[int] = Counter()
    total = 0
    for payload in puzzles:
        total += 1
        difficulty = payload.get("difficulty")
        if difficulty:
            by_difficulty[str(difficulty)] += 1
        theme = payload.get("theme")
        if theme:
            by_theme[str(theme)] += 1
        try:
            by_level[int(payload.get("level"))] += 1
        except (TypeError, ValueError):
            logger.debug("Puzzle without a usable level: %r", payload.get("level"))
    return InventorySnapshot(
        total_puzzles=total,
        counts_by_difficulty=dict(by_difficulty),
        counts_by_theme=dict(by_theme),
        counts_by_level=dict(by_level),
    )


def summarise_plays(
    records: Iterable[PlayRecord],
    *,
    now: Optional[float] = None,
    recent_window: float = RECENT_PLAYS_WINDOW_SECONDS,
) -> Tuple[int, int, UserProgressSnapshot]:
    """Return ``(total_played, total_completed, progress)`` for play records.

    A user's current level is the level of their most recent play.
    """

    now = time.time() if now is None else now
    cutoff = now - recent_window
    total = 0
    completed = 0
    latest: Dict[str, PlayRecord] = {}
    recent: Counter[int] = Counter()

    for record in records:
        total += 1
        if record.completed:
            completed += 1
        if record.played_at >= cutoff:
            recent[record.level] += 1
        current = latest.get(record.user_id)
        if current is None or record.played_at >= current.played_at:
            latest[record.user_id] = record

    users_at_level: Counter[int] = Counter(record.level for record in latest.values())
    progress = UserProgressSnapshot(
        users_at_level=dict(users_at_level),
        recent_plays_at_level=dict(recent),
    )
    return total, completed, progress


def collect_inventory(
    *,
    now: Optional[float] = None,
    recent_window: float = RECENT_PLAYS_WINDOW_SECONDS,
) -> Tuple[InventorySnapshot, UserProgressSnapshot]:
    """Gather inventory and progress snapshots; never raises.

    When the store cannot be read the affected snapshot falls back to zero
    values, which the evaluation treats as an empty inventory in need of
    puzzles.
    """

    try:
        inventory = summarise_puzzles(storage.load_all_puzzles().values())
    except Exception:  # noqa: BLE001 - fall back to an empty inventory
        logger.exception("Failed to collect puzzle inventory, assuming empty inventory")
        inventory = InventorySnapshot()

    try:
        total_played, total_completed, progress = summarise_plays(
            storage.load_play_records(), now=now, recent_window=recent_window
        )
    except Exception:  # noqa: BLE001 - fall back to no usage signal
        logger.exception("Failed to collect play records, assuming no usage")
        total_played, total_completed, progress = 0, 0, UserProgressSnapshot()

    snapshot = InventorySnapshot(
        total_puzzles=inventory.total_puzzles,
        counts_by_difficulty=inventory.counts_by_difficulty,
        counts_by_theme=inventory.counts_by_theme,
        counts_by_level=inventory.counts_by_level,
        total_played=total_played,
        total_completed=total_completed,
    )
    logger.info(
        "Inventory: %s puzzles, %s plays (%s completed), consumption %.1f%%",
        snapshot.total_puzzles,
        snapshot.total_played,
        snapshot.total_completed,
        snapshot.consumption_rate,
    )
    logger.debug("By difficulty: %s", snapshot.counts_by_difficulty)
    logger.debug("By theme: %s", snapshot.counts_by_theme)
    return snapshot, progress


__all__ = [
    "RECENT_PLAYS_WINDOW_SECONDS",
    "collect_inventory",
    "summarise_plays",
    "summarise_puzzles",
]
