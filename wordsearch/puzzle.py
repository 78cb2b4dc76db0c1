"""Puzzle record assembled from a word list and a placement result."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Sequence, Tuple

from wordsearch.levels import LEVEL_TABLE_VERSION, Direction, LevelConfig
from wordsearch.logging_config import get_logger
from wordsearch.placement import Grid, PlacedWord, PlacementResult

logger = get_logger("puzzle")

CREATED_BY = "wordsearch-generator"


def fallback_hint(word: str) -> str:
    return f"Find: {word}"


@dataclass(frozen=True)
class Puzzle:
    """A finished word-search puzzle ready to be persisted."""

    theme: str
    difficulty: str
    level: int
    grid_size: int
    grid: Grid
    placed_words: Tuple[PlacedWord, ...]
    hints: Mapping[str, str] = field(default_factory=dict)

    def hint_for(self, word: str) -> str:
        return self.hints.get(word) or fallback_hint(word)

    @property
    def tags(self) -> List[str]:
        return [self.theme.lower(), self.difficulty, f"level{self.level}"]


def assemble_puzzle(
    theme: str,
    level_config: LevelConfig,
    words: Sequence[str],
    hints: Sequence[str],
    placement: PlacementResult,
) -> Puzzle:
    """Combine the generated words and their placement into a :class:`Puzzle`.

    Hints are matched to placed words by text, using the first occurrence in
    ``words``. A placed word without a hint gets a generic one instead of
    failing the assembly.
    """

    hint_lookup: Dict[str, str] = {}
    for index, word in enumerate(words):
        if word in hint_lookup:
            continue
        hint_lookup[word] = (hints[index] if index < len(hints) else "").strip()

    resolved: Dict[str, str] = {}
    for placed in placement.placed_words:
        hint = hint_lookup.get(placed.word)
        if not hint:
            logger.debug("No hint for %s, using fallback", placed.word)
            hint = fallback_hint(placed.word)
        resolved[placed.word] = hint

    return Puzzle(
        theme=theme,
        difficulty=level_config.difficulty,
        level=level_config.level,
        grid_size=level_config.grid_size,
        grid=placement.grid,
        placed_words=placement.placed_words,
        hints=resolved,
    )


def puzzle_to_dict(
    puzzle: Puzzle,
    *,
    generated_at: datetime | None = None,
    version: str = LEVEL_TABLE_VERSION,
    created_by: str = CREATED_BY,
) -> Dict[str, Any]:
    """Convert a ``Puzzle`` into the document stored by the persistence layer."""

    generated_at = generated_at or datetime.now(timezone.utc)
    return {
        "theme": puzzle.theme,
        "difficulty": puzzle.difficulty,
        "level": puzzle.level,
        "grid_size": puzzle.grid_size,
        "grid": ["".join(row) for row in puzzle.grid],
        "words": [
            {
                "word": placed.word,
                "start_row": placed.start_row,
                "start_col": placed.start_col,
                "direction": placed.direction.value,
                "hint": puzzle.hint_for(placed.word),
            }
            for placed in puzzle.placed_words
        ],
        "created_by": created_by,
        "generated_date": generated_at.isoformat(),
        "popularity": 0,
        "completion_count": 0,
        "average_completion_time": 0,
        "tags": puzzle.tags,
        "version": version,
    }


def puzzle_from_dict(payload: Mapping[str, Any]) -> Puzzle:
    """Reconstruct a ``Puzzle`` from a stored document."""

    grid = tuple(tuple(str(row)) for row in payload["grid"])
    placed_words: List[PlacedWord] = []
    hints: Dict[str, str] = {}
    for entry in payload.get("words", []):
        placed = PlacedWord(
            word=str(entry["word"]),
            start_row=int(entry["start_row"]),
            start_col=int(entry["start_col"]),
            direction=Direction(entry["direction"]),
        )
        placed_words.append(placed)
        hints.setdefault(placed.word, str(entry.get("hint") or fallback_hint(placed.word)))

    return Puzzle(
        theme=str(payload["theme"]),
        difficulty=str(payload["difficulty"]),
        level=int(payload["level"]),
        grid_size=int(payload.get("grid_size", len(grid))),
        grid=grid,
        placed_words=tuple(placed_words),
        hints=hints,
    )


__all__ = [
    "CREATED_BY",
    "Puzzle",
    "assemble_puzzle",
    "fallback_hint",
    "puzzle_from_dict",
    "puzzle_to_dict",
]
