"""Grid placement engine for word-search puzzles.

Words are sorted by length and the longest ones are placed first while the
grid is still mostly empty. Every word gets a fixed budget of random
``(row, col, direction)`` attempts; a word that does not fit within the budget
is dropped rather than failing the whole grid. Words may cross each other on
cells that hold the same letter. Remaining cells are filled with random
letters, so the returned grid never contains empty cells.
"""

from __future__ import annotations

import random
import string
from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence, Tuple

from wordsearch.levels import Direction, InvalidConfiguration, LevelConfig
from wordsearch.logging_config import get_logger

logger = get_logger("placement")

MAX_PLACEMENT_ATTEMPTS = 200
FILLER_ALPHABET = string.ascii_uppercase

Grid = Tuple[Tuple[str, ...], ...]


@dataclass(frozen=True, slots=True)
class PlacedWord:
    """A word fixed in the grid by its start cell and direction."""

    word: str
    start_row: int
    start_col: int
    direction: Direction

    def coordinates(self) -> Iterator[Tuple[int, int]]:
        """Yield coordinates for every cell covered by the word."""

        for offset in range(len(self.word)):
            yield (
                self.start_row + offset * self.direction.row_delta,
                self.start_col + offset * self.direction.col_delta,
            )


@dataclass(frozen=True, slots=True)
class PlacementResult:
    """Filled grid together with the words that made it in."""

    grid: Grid
    placed_words: Tuple[PlacedWord, ...]
    dropped_words: Tuple[str, ...] = ()

    @property
    def grid_size(self) -> int:
        return len(self.grid)

    def rows(self) -> List[str]:
        """Return the grid as a list of row strings."""

        return ["".join(row) for row in self.grid]

    def read(self, placed: PlacedWord) -> str:
        """Read the letters along ``placed`` back out of the grid."""

        return "".join(self.grid[row][col] for row, col in placed.coordinates())


def _fits(
    grid: List[List[Optional[str]]],
    word: str,
    row: int,
    col: int,
    direction: Direction,
) -> bool:
    size = len(grid)
    for offset, letter in enumerate(word):
        r = row + offset * direction.row_delta
        c = col + offset * direction.col_delta
        if not (0 <= r < size and 0 <= c < size):
            return False
        existing = grid[r][c]
        if existing is not None and existing != letter:
            return False
    return True


def _write(
    grid: List[List[Optional[str]]],
    word: str,
    row: int,
    col: int,
    direction: Direction,
) -> None:
    for offset, letter in enumerate(word):
        grid[row + offset * direction.row_delta][col + offset * direction.col_delta] = letter


def place_words(
    words: Sequence[str],
    level_config: LevelConfig,
    *,
    rng: random.Random | None = None,
    max_attempts: int = MAX_PLACEMENT_ATTEMPTS,
) -> PlacementResult:
    """Lay ``words`` into a square grid following ``level_config``.

    Args:
        words: Words to place, uppercased before placement. Duplicates are
            attempted independently.
        level_config: Grid size and the directions enabled for the level.
        rng: Random generator; pass a seeded instance for reproducible grids.
        max_attempts: Random attempts per word before the word is dropped.

    Raises:
        InvalidConfiguration: If the level configuration is malformed, e.g. no
            placement directions are enabled.
        ValueError: If a word contains anything other than the letters A-Z.
    """

    level_config.validate()
    if max_attempts < 1:
        raise InvalidConfiguration("max_attempts must be positive")

    generator = rng or random.Random()
    size = level_config.grid_size
    directions = list(level_config.directions)
    grid: List[List[Optional[str]]] = [[None] * size for _ in range(size)]

    placed: List[PlacedWord] = []
    dropped: List[str] = []

    candidates: List[str] = []
    for word in words:
        normalised = word.upper()
        if not (normalised.isascii() and normalised.isalpha()):
            raise ValueError(f"Cannot place {word!r}: words must consist of the letters A-Z")
        candidates.append(normalised)

    for word in sorted(candidates, key=len, reverse=True):
        placement: Optional[PlacedWord] = None
        for _ in range(max_attempts):
            row = generator.randrange(size)
            col = generator.randrange(size)
            direction = generator.choice(directions)
            if _fits(grid, word, row, col, direction):
                _write(grid, word, row, col, direction)
                placement = PlacedWord(word=word, start_row=row, start_col=col, direction=direction)
                break

        if placement is None:
            logger.warning(
                "Could not place word %s in %sx%s grid (tried %s times)",
                word,
                size,
                size,
                max_attempts,
            )
            dropped.append(word)
            continue

        logger.debug(
            "Placed %s at (%s, %s) going %s",
            word,
            placement.start_row,
            placement.start_col,
            placement.direction.value,
        )
        placed.append(placement)

    filled = tuple(
        tuple(cell if cell is not None else generator.choice(FILLER_ALPHABET) for cell in row)
        for row in grid
    )

    if dropped:
        logger.info("Placed %s of %s words for level %s", len(placed), len(words), level_config.level)
    return PlacementResult(grid=filled, placed_words=tuple(placed), dropped_words=tuple(dropped))


__all__ = [
    "FILLER_ALPHABET",
    "Grid",
    "MAX_PLACEMENT_ATTEMPTS",
    "PlacedWord",
    "PlacementResult",
    "place_words",
]
