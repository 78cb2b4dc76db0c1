"""Inventory snapshot model and the decision whether to generate at all."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Mapping, Optional, Sequence, Tuple

from wordsearch.levels import DIFFICULTY_TIERS, THEMES
from wordsearch.logging_config import get_logger

logger = get_logger("inventory")

# Rate reported for an empty inventory so the consumption rule never blocks bootstrap.
EMPTY_INVENTORY_CONSUMPTION_RATE = 100.0
MIN_LOW_INVENTORY_BATCH = 14


@dataclass(frozen=True, slots=True)
class InventorySnapshot:
    """Current puzzle counts and usage totals."""

    total_puzzles: int = 0
    counts_by_difficulty: Mapping[str, int] = field(default_factory=dict)
    counts_by_theme: Mapping[str, int] = field(default_factory=dict)
    counts_by_level: Mapping[int, int] = field(default_factory=dict)
    total_played: int = 0
    total_completed: int = 0

    @property
    def consumption_rate(self) -> float:
        """Plays per stored puzzle as a percentage."""

        if self.total_puzzles <= 0:
            return EMPTY_INVENTORY_CONSUMPTION_RATE
        return self.total_played / self.total_puzzles * 100

    def to_dict(self) -> Dict[str, object]:
        return {
            "total_puzzles": self.total_puzzles,
            "counts_by_difficulty": dict(self.counts_by_difficulty),
            "counts_by_theme": dict(self.counts_by_theme),
            "counts_by_level": {str(level): count for level, count in self.counts_by_level.items()},
            "total_played": self.total_played,
            "total_completed": self.total_completed,
            "consumption_rate": round(self.consumption_rate, 1),
        }


@dataclass(frozen=True, slots=True)
class UserProgressSnapshot:
    """Where players currently are and how much each level is being played."""

    users_at_level: Mapping[int, int] = field(default_factory=dict)
    recent_plays_at_level: Mapping[int, int] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class InventoryPolicy:
    """Thresholds used by :func:`evaluate_inventory`."""

    min_puzzles: int = 30
    max_puzzles: int = 200
    min_consumption_rate: float = 20
    min_per_difficulty: int = 8
    min_per_theme: int = 3


class DecisionReason(str, Enum):
    INVENTORY_FULL = "inventory_full"
    LOW_CONSUMPTION = "low_consumption"
    LOW_INVENTORY = "low_inventory"
    UNBALANCED_DIFFICULTY = "unbalanced_difficulty"
    UNBALANCED_THEME = "unbalanced_theme"
    INVENTORY_HEALTHY = "inventory_healthy"


@dataclass(frozen=True, slots=True)
class Decision:
    """Outcome of the inventory evaluation."""

    should_generate: bool
    reason: DecisionReason
    target_count: Optional[int] = None
    focus_difficulties: Tuple[str, ...] = ()
    focus_themes: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, object]:
        return {
            "should_generate": self.should_generate,
            "reason": self.reason.value,
            "target_count": self.target_count,
            "focus_difficulties": list(self.focus_difficulties),
            "focus_themes": list(self.focus_themes),
        }


def evaluate_inventory(
    snapshot: InventorySnapshot,
    policy: InventoryPolicy | None = None,
    *,
    themes: Sequence[str] = THEMES,
    difficulties: Sequence[str] = DIFFICULTY_TIERS,
) -> Decision:
    """Decide whether new puzzles are needed.

    The rules are checked in order and the first one that matches decides:
    a full inventory, under-played stock, a low total, an under-stocked
    difficulty tier, an under-stocked theme. Otherwise the inventory is
    healthy and nothing is generated.
    """

    policy = policy or InventoryPolicy()
    total = snapshot.total_puzzles
    rate = snapshot.consumption_rate

    if total >= policy.max_puzzles:
        logger.info("Inventory full (%s/%s puzzles), skipping generation", total, policy.max_puzzles)
        return Decision(should_generate=False, reason=DecisionReason.INVENTORY_FULL)

    if total >= policy.min_puzzles and rate < policy.min_consumption_rate:
        logger.info(
            "Low consumption rate (%.1f%% < %s%%), existing puzzles are under-played",
            rate,
            policy.min_consumption_rate,
        )
        return Decision(should_generate=False, reason=DecisionReason.LOW_CONSUMPTION)

    if total < policy.min_puzzles:
        target = max(MIN_LOW_INVENTORY_BATCH, policy.min_puzzles - total)
        logger.info("Inventory low (%s/%s puzzles), generating %s", total, policy.min_puzzles, target)
        return Decision(
            should_generate=True,
            reason=DecisionReason.LOW_INVENTORY,
            target_count=target,
        )

    low_difficulties = tuple(
        tier
        for tier in difficulties
        if snapshot.counts_by_difficulty.get(tier, 0) < policy.min_per_difficulty
    )
    if low_difficulties:
        logger.info("Low inventory for difficulties: %s", ", ".join(low_difficulties))
        return Decision(
            should_generate=True,
            reason=DecisionReason.UNBALANCED_DIFFICULTY,
            target_count=len(low_difficulties) * (policy.min_per_difficulty + 2),
            focus_difficulties=low_difficulties,
        )

    low_themes = tuple(
        theme for theme in themes if snapshot.counts_by_theme.get(theme, 0) < policy.min_per_theme
    )
    if low_themes:
        logger.info("Low inventory for themes: %s", ", ".join(low_themes))
        return Decision(
            should_generate=True,
            reason=DecisionReason.UNBALANCED_THEME,
            target_count=len(low_themes) * policy.min_per_theme,
            focus_themes=low_themes,
        )

    logger.info("Inventory healthy (%s puzzles, %.1f%% consumption)", total, rate)
    return Decision(should_generate=False, reason=DecisionReason.INVENTORY_HEALTHY)


__all__ = [
    "Decision",
    "DecisionReason",
    "EMPTY_INVENTORY_CONSUMPTION_RATE",
    "InventoryPolicy",
    "InventorySnapshot",
    "UserProgressSnapshot",
    "evaluate_inventory",
]
