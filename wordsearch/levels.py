"""Level, theme and direction catalogs for word-search generation.

The level table is the single source of truth for grid sizes, word-count
ranges, difficulty tiers and the placement directions enabled at every level.
Higher levels never shrink the grid; that ordering is a property of the
table data and is not enforced in code.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Sequence, Tuple

import orjson

from wordsearch.logging_config import get_logger

logger = get_logger("levels")


class InvalidConfiguration(ValueError):
    """Raised when a level configuration or level table is malformed."""


class Direction(str, Enum):
    """Placement vectors available to the grid placement engine."""

    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"
    DIAGONAL_DOWN = "diagonal-down"
    DIAGONAL_UP = "diagonal-up"

    @property
    def row_delta(self) -> int:
        return _VECTORS[self][0]

    @property
    def col_delta(self) -> int:
        return _VECTORS[self][1]


_VECTORS: Dict[Direction, Tuple[int, int]] = {
    Direction.HORIZONTAL: (0, 1),
    Direction.VERTICAL: (1, 0),
    Direction.DIAGONAL_DOWN: (1, 1),
    Direction.DIAGONAL_UP: (1, -1),
}

THEMES: Tuple[str, ...] = (
    "Animals",
    "Countries",
    "Technology",
    "Food",
    "Sports",
    "Music",
    "Nature",
    "Movies",
    "Science",
    "History",
)

DIFFICULTY_TIERS: Tuple[str, ...] = ("simple", "medium", "hard")

LEVEL_TABLE_VERSION = "2.0"


@dataclass(frozen=True, slots=True)
class LevelConfig:
    """Tunable parameters for a single puzzle level."""

    level: int
    grid_size: int
    min_words: int
    max_words: int
    difficulty: str
    directions: Tuple[Direction, ...]

    def validate(self) -> None:
        """Raise :class:`InvalidConfiguration` when the values are inconsistent."""

        if self.level < 1:
            raise InvalidConfiguration(f"Level must be positive, got {self.level}")
        if self.grid_size < 1:
            raise InvalidConfiguration(
                f"Level {self.level}: grid size must be positive, got {self.grid_size}"
            )
        if self.min_words < 1 or self.max_words < 1:
            raise InvalidConfiguration(f"Level {self.level}: word counts must be positive")
        if self.min_words > self.max_words:
            raise InvalidConfiguration(
                f"Level {self.level}: min_words ({self.min_words}) exceeds max_words ({self.max_words})"
            )
        if self.difficulty not in DIFFICULTY_TIERS:
            raise InvalidConfiguration(
                f"Level {self.level}: unknown difficulty tier {self.difficulty!r}"
            )
        if not self.directions:
            raise InvalidConfiguration(f"Level {self.level}: no placement directions enabled")
        for direction in self.directions:
            if not isinstance(direction, Direction):
                raise InvalidConfiguration(
                    f"Level {self.level}: unsupported direction {direction!r}"
                )

    @property
    def max_word_length(self) -> int:
        """Longest word the word source may propose for this level."""

        return min(12, self.grid_size)


@dataclass(frozen=True, slots=True)
class LevelTable:
    """Ordered, versioned collection of level configurations."""

    version: str
    levels: Tuple[LevelConfig, ...]

    def __iter__(self) -> Iterator[LevelConfig]:
        return iter(self.levels)

    def __len__(self) -> int:
        return len(self.levels)

    def get(self, level: int) -> LevelConfig:
        """Return the configuration for ``level`` or raise :class:`KeyError`."""

        for config in self.levels:
            if config.level == level:
                return config
        raise KeyError(level)


_BASIC = (Direction.HORIZONTAL, Direction.VERTICAL)
_ALL = tuple(Direction)

# (level, grid size, min words, max words, difficulty, directions)
_DEFAULT_ROWS: Sequence[Tuple[int, int, int, int, str, Tuple[Direction, ...]]] = (
    # Beginner: small grids, straight lines only
    (1, 5, 3, 4, "simple", _BASIC),
    (2, 5, 4, 5, "simple", _BASIC),
    (3, 6, 4, 5, "simple", _BASIC),
    (4, 6, 5, 6, "simple", _BASIC),
    (5, 7, 5, 6, "simple", _BASIC),
    # Easy: diagonals unlocked
    (6, 8, 6, 7, "simple", _ALL),
    (7, 8, 6, 8, "simple", _ALL),
    (8, 8, 7, 8, "simple", _ALL),
    (9, 8, 7, 9, "simple", _ALL),
    (10, 8, 8, 10, "simple", _ALL),
    # Medium
    (11, 10, 8, 10, "medium", _ALL),
    (12, 10, 9, 11, "medium", _ALL),
    (13, 10, 10, 12, "medium", _ALL),
    (14, 10, 10, 12, "medium", _ALL),
    (15, 10, 11, 13, "medium", _ALL),
    # Hard
    (16, 12, 10, 12, "hard", _ALL),
    (17, 12, 11, 13, "hard", _ALL),
    (18, 12, 12, 14, "hard", _ALL),
    (19, 12, 13, 15, "hard", _ALL),
    (20, 12, 14, 16, "hard", _ALL),
    # Very hard
    (21, 15, 12, 15, "hard", _ALL),
    (22, 15, 13, 16, "hard", _ALL),
    (23, 15, 14, 17, "hard", _ALL),
    (24, 15, 15, 18, "hard", _ALL),
    (25, 15, 16, 19, "hard", _ALL),
    # Expert
    (26, 15, 16, 19, "hard", _ALL),
    (27, 15, 17, 20, "hard", _ALL),
    (28, 15, 18, 21, "hard", _ALL),
    (29, 15, 19, 22, "hard", _ALL),
    (30, 15, 20, 23, "hard", _ALL),
)


def _build_table(version: str, configs: Iterable[LevelConfig]) -> LevelTable:
    seen: set[int] = set()
    levels: List[LevelConfig] = []
    for config in configs:
        config.validate()
        if config.level in seen:
            raise InvalidConfiguration(f"Duplicate level {config.level} in level table")
        seen.add(config.level)
        levels.append(config)
    if not levels:
        raise InvalidConfiguration("Level table is empty")
    levels.sort(key=lambda config: config.level)
    return LevelTable(version=version, levels=tuple(levels))


DEFAULT_LEVEL_TABLE = _build_table(
    LEVEL_TABLE_VERSION,
    (
        LevelConfig(
            level=level,
            grid_size=grid_size,
            min_words=min_words,
            max_words=max_words,
            difficulty=difficulty,
            directions=directions,
        )
        for level, grid_size, min_words, max_words, difficulty, directions in _DEFAULT_ROWS
    ),
)


def parse_directions(values: Iterable[Any]) -> Tuple[Direction, ...]:
    """Convert direction names into :class:`Direction` members."""

    directions: List[Direction] = []
    for value in values:
        try:
            direction = Direction(str(value).strip().lower())
        except ValueError as exc:
            raise InvalidConfiguration(f"Unknown placement direction {value!r}") from exc
        if direction not in directions:
            directions.append(direction)
    return tuple(directions)


def level_config_from_dict(payload: Mapping[str, Any]) -> LevelConfig:
    """Build a :class:`LevelConfig` from a JSON mapping."""

    try:
        config = LevelConfig(
            level=int(payload["level"]),
            grid_size=int(payload["grid_size"]),
            min_words=int(payload["min_words"]),
            max_words=int(payload["max_words"]),
            difficulty=str(payload["difficulty"]).strip().lower(),
            directions=parse_directions(payload.get("directions", ())),
        )
    except InvalidConfiguration:
        raise
    except KeyError as exc:
        raise InvalidConfiguration(f"Level entry missing field {exc.args[0]!r}") from exc
    except (TypeError, ValueError) as exc:
        raise InvalidConfiguration(f"Malformed level entry: {exc}") from exc
    config.validate()
    return config


def load_level_table(path: str | Path | None = None) -> LevelTable:
    """Return the built-in level table or a validated override from ``path``.

    The override file holds either a list of level entries or an object with
    ``version`` and ``levels`` keys.
    """

    if path is None:
        return DEFAULT_LEVEL_TABLE

    file_path = Path(path)
    try:
        payload = orjson.loads(file_path.read_bytes())
    except OSError as exc:
        raise InvalidConfiguration(f"Unable to read level table {file_path}: {exc}") from exc
    except orjson.JSONDecodeError as exc:
        raise InvalidConfiguration(f"Level table {file_path} is not valid JSON") from exc

    version = LEVEL_TABLE_VERSION
    entries: Any = payload
    if isinstance(payload, Mapping):
        version = str(payload.get("version", LEVEL_TABLE_VERSION))
        entries = payload.get("levels", [])
    if not isinstance(entries, list):
        raise InvalidConfiguration(f"Level table {file_path} must contain a list of levels")

    configs = []
    for entry in entries:
        if not isinstance(entry, Mapping):
            raise InvalidConfiguration(f"Level table {file_path} contains a non-object entry")
        configs.append(level_config_from_dict(entry))
    table = _build_table(version, configs)
    logger.info("Loaded %s levels (version %s) from %s", len(table), table.version, file_path)
    return table


def get_level_config(level: int, table: LevelTable | None = None) -> LevelConfig:
    """Return the configuration for ``level`` from ``table`` (default table if omitted)."""

    return (table or DEFAULT_LEVEL_TABLE).get(level)


__all__ = [
    "DEFAULT_LEVEL_TABLE",
    "DIFFICULTY_TIERS",
    "Direction",
    "InvalidConfiguration",
    "LEVEL_TABLE_VERSION",
    "LevelConfig",
    "LevelTable",
    "THEMES",
    "get_level_config",
    "level_config_from_dict",
    "load_level_table",
    "parse_directions",
]
