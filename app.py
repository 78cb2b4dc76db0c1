"""Batch entrypoint deciding whether to generate word-search puzzles and generating them."""

from __future__ import annotations

import math
import os
import random
import sys
import time
from contextlib import suppress
from dataclasses import dataclass, field
from datetime import datetime, timezone
from functools import partial
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from wordsearch import storage
from wordsearch.inventory import (
    Decision,
    InventoryPolicy,
    InventorySnapshot,
    UserProgressSnapshot,
    evaluate_inventory,
)
from wordsearch.levels import THEMES, InvalidConfiguration, LevelConfig, LevelTable, load_level_table
from wordsearch.llm_generator import WordList, generate_word_list, get_llm
from wordsearch.logging_config import configure_logging, get_logger, logging_context
from wordsearch.placement import place_words
from wordsearch.puzzle import Puzzle, assemble_puzzle, puzzle_to_dict
from wordsearch.scheduler import LevelPolicy, PriorityEntry, prioritize_levels
from wordsearch.telemetry import collect_inventory

logger = get_logger("app")

WordSource = Callable[[str, LevelConfig], WordList]
PuzzleSink = Callable[[Puzzle], str]
TelemetrySource = Callable[[], Tuple[InventorySnapshot, Optional[UserProgressSnapshot]]]
Target = Tuple[str, LevelConfig]


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class Settings:
    """Container for run configuration read from environment variables."""

    inventory_policy: InventoryPolicy = field(default_factory=InventoryPolicy)
    level_policy: LevelPolicy = field(default_factory=LevelPolicy)
    max_puzzles_per_run: int = 30
    puzzle_count: int = 30
    force_generate: bool = False
    theme_filter: str = ""
    level_filter: str = ""
    generation_delay: float = 2.0
    run_log_path: str = "generation-log.json"
    level_config_path: Optional[str] = None


def _int_env(name: str, default: int, *, minimum: int = 0) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw.strip())
    except ValueError:
        logger.warning("Invalid %s provided, using default %s: %r", name, default, raw)
        return default
    if value < minimum:
        logger.warning("%s must be at least %s, using default %s", name, minimum, default)
        return default
    return value


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw.strip())
    except ValueError:
        logger.warning("Invalid %s provided, using default %s: %r", name, default, raw)
        return default
    if value < 0 or math.isnan(value):
        logger.warning("%s must not be negative, using default %s", name, default)
        return default
    return value


def _bool_env(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def load_settings() -> Settings:
    """Load run settings from environment variables, falling back to defaults."""

    defaults = InventoryPolicy()
    inventory_policy = InventoryPolicy(
        min_puzzles=_int_env("MIN_PUZZLES", defaults.min_puzzles),
        max_puzzles=_int_env("MAX_PUZZLES", defaults.max_puzzles),
        min_consumption_rate=_float_env("MIN_CONSUMPTION_RATE", defaults.min_consumption_rate),
        min_per_difficulty=_int_env("MIN_PER_DIFFICULTY", defaults.min_per_difficulty),
        min_per_theme=_int_env("MIN_PER_THEME", defaults.min_per_theme),
    )
    level_defaults = LevelPolicy()
    level_policy = LevelPolicy(
        min_per_level=_int_env("MIN_PER_LEVEL", level_defaults.min_per_level),
        target_per_level=_int_env("TARGET_PER_LEVEL", level_defaults.target_per_level),
        max_per_level=_int_env("MAX_PER_LEVEL", level_defaults.max_per_level),
    )

    settings = Settings(
        inventory_policy=inventory_policy,
        level_policy=level_policy,
        max_puzzles_per_run=_int_env("MAX_PUZZLES_PER_RUN", 30, minimum=1),
        puzzle_count=_int_env("PUZZLE_COUNT", 30, minimum=1),
        force_generate=_bool_env("FORCE_GENERATE"),
        theme_filter=os.getenv("THEME_FILTER", "").strip(),
        level_filter=os.getenv("LEVEL_FILTER", "").strip(),
        generation_delay=_float_env("GENERATION_DELAY_SECONDS", 2.0),
        run_log_path=os.getenv("RUN_LOG_PATH", "generation-log.json"),
        level_config_path=os.getenv("LEVEL_CONFIG_PATH") or None,
    )
    logger.debug("Loaded settings: %s", settings)
    return settings


# ---------------------------------------------------------------------------
# Run results
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class RunEntry:
    """Outcome of generating one puzzle target."""

    success: bool
    theme: str
    level: int
    difficulty: str
    puzzle_id: Optional[str] = None
    word_count: Optional[int] = None
    dropped_words: List[str] = field(default_factory=list)
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "success": self.success,
            "theme": self.theme,
            "level": self.level,
            "difficulty": self.difficulty,
        }
        if self.success:
            payload["puzzle_id"] = self.puzzle_id
            payload["word_count"] = self.word_count
            if self.dropped_words:
                payload["dropped_words"] = list(self.dropped_words)
        else:
            payload["error"] = self.error
        return payload


@dataclass(slots=True)
class RunResult:
    """Structured summary of a generation run, written once to the run log."""

    skipped: bool
    reason: str
    entries: List[RunEntry] = field(default_factory=list)
    duration_seconds: float = 0.0
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    inventory: Optional[InventorySnapshot] = None

    @property
    def success_count(self) -> int:
        return sum(1 for entry in self.entries if entry.success)

    @property
    def error_count(self) -> int:
        return sum(1 for entry in self.entries if not entry.success)

    @property
    def exit_code(self) -> int:
        return 1 if self.error_count else 0

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "skipped": self.skipped,
            "reason": self.reason,
            "entries": [entry.to_dict() for entry in self.entries],
            "success_count": self.success_count,
            "error_count": self.error_count,
            "duration_seconds": round(self.duration_seconds, 1),
            "timestamp": self.timestamp,
        }
        if self.inventory is not None:
            payload["inventory"] = self.inventory.to_dict()
        return payload


# ---------------------------------------------------------------------------
# Target planning
# ---------------------------------------------------------------------------


def parse_level_filter(raw: str, table: LevelTable) -> List[LevelConfig]:
    """Select levels from ``table`` by a filter such as ``"1-5"`` or ``"10"``."""

    text = (raw or "").strip()
    if not text:
        return list(table)

    try:
        if "-" in text:
            start_raw, end_raw = text.split("-", 1)
            start, end = int(start_raw), int(end_raw)
        else:
            start = end = int(text)
    except ValueError as exc:
        raise InvalidConfiguration(f"Invalid level filter {raw!r}") from exc

    selected = [config for config in table if start <= config.level <= end]
    if not selected:
        raise InvalidConfiguration(f"Level filter {raw!r} matches no configured level")
    return selected


def resolve_themes(decision: Decision, theme_filter: str = "") -> List[str]:
    """Themes to generate for: the decision's focus, else the filter, else all."""

    if decision.focus_themes:
        return list(decision.focus_themes)
    if theme_filter:
        return [theme_filter]
    return list(THEMES)


def resolve_levels(decision: Decision, levels: Sequence[LevelConfig]) -> List[LevelConfig]:
    """Restrict ``levels`` to the decision's focus difficulties when any match."""

    if not decision.focus_difficulties:
        return list(levels)
    focused = [config for config in levels if config.difficulty in decision.focus_difficulties]
    if not focused:
        logger.warning(
            "No selected level matches focus difficulties %s, keeping all selected levels",
            ", ".join(decision.focus_difficulties),
        )
        return list(levels)
    return focused


def levels_below_cap(
    inventory: InventorySnapshot,
    levels: Sequence[LevelConfig],
    policy: LevelPolicy,
) -> List[LevelConfig]:
    """Drop levels whose stock already reached ``max_per_level``."""

    open_levels = [
        config
        for config in levels
        if inventory.counts_by_level.get(config.level, 0) < policy.max_per_level
    ]
    if len(open_levels) < len(levels):
        logger.info("Skipping %s levels at capacity", len(levels) - len(open_levels))
    return open_levels


def plan_targets(
    priorities: Sequence[PriorityEntry],
    themes: Sequence[str],
    levels: Sequence[LevelConfig],
    count: int,
    rng: random.Random | None = None,
) -> List[Target]:
    """Build the ordered list of ``(theme, level)`` targets for this run.

    Ranked priorities are walked first, taking each entry's ``needed`` slots
    and a random theme per slot. Without priorities the count is spread evenly
    over every theme and level combination.
    """

    generator = rng or random.Random()
    targets: List[Target] = []
    if count <= 0 or not themes:
        return targets

    if priorities:
        for entry in priorities:
            for _ in range(max(0, entry.needed)):
                if len(targets) >= count:
                    return targets
                targets.append((generator.choice(list(themes)), entry.level_config))
        return targets

    if not levels:
        return targets
    per_combination = max(1, math.ceil(count / (len(themes) * len(levels))))
    for theme in themes:
        for config in levels:
            for _ in range(per_combination):
                if len(targets) >= count:
                    return targets
                targets.append((theme, config))
    return targets


# ---------------------------------------------------------------------------
# Generation
# ---------------------------------------------------------------------------


def build_puzzle(
    theme: str,
    level_config: LevelConfig,
    word_source: WordSource,
    *,
    rng: random.Random | None = None,
) -> Tuple[Puzzle, Tuple[str, ...]]:
    """Acquire words for a target, place them and assemble the puzzle.

    Returns the puzzle together with the words that could not be placed.
    """

    word_list = word_source(theme, level_config)
    placement = place_words(word_list.words, level_config, rng=rng)
    puzzle = assemble_puzzle(theme, level_config, word_list.words, word_list.hints, placement)
    return puzzle, placement.dropped_words


def _persist_puzzle(puzzle: Puzzle, *, version: str) -> str:
    return storage.save_puzzle(puzzle_to_dict(puzzle, version=version))


def run_generation(
    settings: Settings,
    *,
    word_source: WordSource | None = None,
    persist: PuzzleSink | None = None,
    telemetry: TelemetrySource | None = None,
    rng: random.Random | None = None,
    sleep: Callable[[float], None] = time.sleep,
    level_table: LevelTable | None = None,
) -> RunResult:
    """Run one scheduled generation cycle and return its result.

    Failures of individual targets are recorded in the result and do not stop
    the run. Configuration errors propagate.
    """

    started = time.perf_counter()
    generator = rng or random.Random()
    table = level_table or load_level_table(settings.level_config_path)
    selected_levels = parse_level_filter(settings.level_filter, table)

    inventory, progress = (telemetry or collect_inventory)()
    decision = evaluate_inventory(inventory, settings.inventory_policy)

    if settings.force_generate:
        logger.info("Force generation enabled, skipping inventory checks")
    if not decision.should_generate and not settings.force_generate:
        logger.info("No puzzles generated (reason: %s)", decision.reason.value)
        return RunResult(
            skipped=True,
            reason=decision.reason.value,
            duration_seconds=time.perf_counter() - started,
            inventory=inventory,
        )

    count = min(decision.target_count or settings.puzzle_count, settings.max_puzzles_per_run)
    themes = resolve_themes(decision, settings.theme_filter)
    levels = resolve_levels(decision, selected_levels)
    priorities = prioritize_levels(inventory, progress, settings.level_policy, levels)
    if not settings.force_generate:
        levels = levels_below_cap(inventory, levels, settings.level_policy)
    targets = plan_targets(priorities, themes, levels, count, generator)

    logger.info(
        "Generating %s puzzles (reason: %s) for themes %s",
        len(targets),
        decision.reason.value,
        ", ".join(themes),
    )

    if word_source is None:
        word_source = partial(generate_word_list, rng=generator, llm=get_llm())
    if persist is None:
        persist = partial(_persist_puzzle, version=table.version)

    result = RunResult(skipped=False, reason=decision.reason.value, inventory=inventory)
    for index, (theme, level_config) in enumerate(targets, start=1):
        with logging_context(theme=theme, level=level_config.level):
            logger.info("[%s/%s] %s - level %s", index, len(targets), theme, level_config.level)
            try:
                puzzle, dropped = build_puzzle(theme, level_config, word_source, rng=generator)
                puzzle_id = persist(puzzle)
            except InvalidConfiguration:
                raise
            except Exception as exc:  # noqa: BLE001 - record the failure and continue with other targets
                logger.exception("Failed to generate puzzle")
                result.entries.append(
                    RunEntry(
                        success=False,
                        theme=theme,
                        level=level_config.level,
                        difficulty=level_config.difficulty,
                        error=str(exc) or exc.__class__.__name__,
                    )
                )
                continue

            logger.info(
                "Saved puzzle %s (%sx%s, %s words placed)",
                puzzle_id,
                puzzle.grid_size,
                puzzle.grid_size,
                len(puzzle.placed_words),
            )
            result.entries.append(
                RunEntry(
                    success=True,
                    theme=theme,
                    level=level_config.level,
                    difficulty=level_config.difficulty,
                    puzzle_id=puzzle_id,
                    word_count=len(puzzle.placed_words),
                    dropped_words=list(dropped),
                )
            )
            if settings.generation_delay > 0 and index < len(targets):
                sleep(settings.generation_delay)

    result.duration_seconds = time.perf_counter() - started
    logger.info(
        "Run finished: %s succeeded, %s failed in %.1fs",
        result.success_count,
        result.error_count,
        result.duration_seconds,
    )
    return result


def main() -> int:
    """Run a generation cycle, write the run log and return the exit code."""

    configure_logging(os.getenv("LOG_LEVEL", "INFO"))
    run_log_path = os.getenv("RUN_LOG_PATH", "generation-log.json")
    try:
        settings = load_settings()
        run_log_path = settings.run_log_path
        result = run_generation(settings)
    except Exception as exc:  # noqa: BLE001 - fatal errors end the run with a failure code
        logger.exception("Fatal error during generation run")
        with suppress(OSError):
            storage.write_run_log(
                run_log_path,
                {
                    "skipped": False,
                    "reason": "fatal_error",
                    "error": str(exc),
                    "timestamp": datetime.now(timezone.utc).isoformat(),
                },
            )
        return 1

    try:
        storage.write_run_log(settings.run_log_path, result.to_dict())
    except OSError:
        logger.exception("Failed to write run log to %s", settings.run_log_path)
    return result.exit_code


if __name__ == "__main__":
    sys.exit(main())
