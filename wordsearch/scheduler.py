"""Per-level replenishment ranking."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from wordsearch.inventory import InventorySnapshot, UserProgressSnapshot
from wordsearch.levels import DEFAULT_LEVEL_TABLE, LevelConfig
from wordsearch.logging_config import get_logger

logger = get_logger("scheduler")

CRITICAL_LOW_SCORE = 100
USERS_HERE_BASE_SCORE = 50
USERS_HERE_PER_USER = 5
RECENT_PLAYS_BASE_SCORE = 40
BELOW_TARGET_SCORE = 20


@dataclass(frozen=True, slots=True)
class LevelPolicy:
    """Per-level stock thresholds."""

    min_per_level: int = 2
    target_per_level: int = 5
    max_per_level: int = 10


@dataclass(frozen=True, slots=True)
class PriorityEntry:
    """Ranking of how urgently one level needs new puzzles."""

    level: int
    level_config: LevelConfig
    current_count: int
    users_here: int
    recent_plays: int
    priority_score: int
    reasons: Tuple[str, ...]
    needed: int


def _score_level(
    current: int,
    users_here: int,
    recent_plays: int,
    policy: LevelPolicy,
) -> Tuple[int, List[str]]:
    if current >= policy.max_per_level:
        return 0, ["at_max"]

    score = 0
    reasons: List[str] = []
    below_target = current < policy.target_per_level

    if current < policy.min_per_level:
        score += CRITICAL_LOW_SCORE
        reasons.append("critical_low")
    if users_here > 0 and below_target:
        score += USERS_HERE_BASE_SCORE + USERS_HERE_PER_USER * users_here
        reasons.append(f"{users_here}_users_here")
    if recent_plays > 0 and below_target:
        score += RECENT_PLAYS_BASE_SCORE + recent_plays
        reasons.append(f"{recent_plays}_recent_plays")
    if below_target:
        score += BELOW_TARGET_SCORE
        reasons.append("below_target")
    return score, reasons


def prioritize_levels(
    snapshot: InventorySnapshot,
    progress: Optional[UserProgressSnapshot] = None,
    policy: LevelPolicy | None = None,
    levels: Iterable[LevelConfig] = DEFAULT_LEVEL_TABLE,
) -> List[PriorityEntry]:
    """Rank levels by how urgently they need more puzzles.

    Levels are scored in ascending level order and sorted by descending score;
    the sort is stable so ties keep the lower level first. Levels at or above
    ``max_per_level`` and levels without any signal are left out. ``needed``
    may be negative when the policy is inconsistent; callers clamp it.
    """

    policy = policy or LevelPolicy()
    progress = progress or UserProgressSnapshot()

    entries: List[PriorityEntry] = []
    for config in sorted(levels, key=lambda item: item.level):
        current = snapshot.counts_by_level.get(config.level, 0)
        users_here = progress.users_at_level.get(config.level, 0)
        recent_plays = progress.recent_plays_at_level.get(config.level, 0)

        score, reasons = _score_level(current, users_here, recent_plays, policy)
        if score <= 0:
            continue

        entries.append(
            PriorityEntry(
                level=config.level,
                level_config=config,
                current_count=current,
                users_here=users_here,
                recent_plays=recent_plays,
                priority_score=score,
                reasons=tuple(reasons),
                needed=min(
                    policy.max_per_level - current,
                    policy.target_per_level - current,
                ),
            )
        )

    entries.sort(key=lambda entry: entry.priority_score, reverse=True)
    if entries:
        logger.info(
            "Ranked %s levels needing puzzles, top: level %s (score %s, %s)",
            len(entries),
            entries[0].level,
            entries[0].priority_score,
            ", ".join(entries[0].reasons),
        )
    else:
        logger.info("No level needs new puzzles")
    return entries


__all__ = ["LevelPolicy", "PriorityEntry", "prioritize_levels"]
