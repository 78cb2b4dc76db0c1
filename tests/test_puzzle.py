"""Tests for puzzle assembly and serialisation."""

from __future__ import annotations

import random
from datetime import datetime, timezone

from wordsearch.levels import Direction, get_level_config
from wordsearch.placement import PlacedWord, PlacementResult, place_words
from wordsearch.puzzle import assemble_puzzle, puzzle_from_dict, puzzle_to_dict


def _placement() -> PlacementResult:
    grid = (
        tuple("CATXX"),
        tuple("XXXXX"),
        tuple("DXXXX"),
        tuple("OXXXX"),
        tuple("GXXXX"),
    )
    return PlacementResult(
        grid=grid,
        placed_words=(
            PlacedWord("CAT", 0, 0, Direction.HORIZONTAL),
            PlacedWord("DOG", 2, 0, Direction.VERTICAL),
        ),
    )


def test_assemble_matches_hints_by_word() -> None:
    config = get_level_config(1)

    puzzle = assemble_puzzle(
        "Animals",
        config,
        ["DOG", "CAT", "DOG"],
        ["Barks", "Meows", "Second dog hint"],
        _placement(),
    )

    assert puzzle.theme == "Animals"
    assert puzzle.difficulty == "simple"
    assert puzzle.level == 1
    assert puzzle.grid_size == 5
    assert puzzle.hints == {"CAT": "Meows", "DOG": "Barks"}
    assert [placed.word for placed in puzzle.placed_words] == ["CAT", "DOG"]


def test_missing_hint_falls_back_to_word() -> None:
    puzzle = assemble_puzzle("Animals", get_level_config(1), ["CAT", "DOG"], ["Meows"], _placement())

    assert puzzle.hints["DOG"] == "Find: DOG"


def test_blank_hint_falls_back_to_word() -> None:
    puzzle = assemble_puzzle("Animals", get_level_config(1), ["CAT", "DOG"], ["  ", "Barks"], _placement())

    assert puzzle.hints["CAT"] == "Find: CAT"
    assert puzzle.hints["DOG"] == "Barks"


def test_dropped_words_have_no_hint_entry() -> None:
    config = get_level_config(1)
    placement = place_words(["CAT", "HIPPOPOTAMUS"], config, rng=random.Random(2))

    puzzle = assemble_puzzle("Animals", config, ["CAT", "HIPPOPOTAMUS"], ["Meows", "Large"], placement)

    assert list(puzzle.hints) == ["CAT"]


def test_puzzle_to_dict_document_shape() -> None:
    puzzle = assemble_puzzle("Animals", get_level_config(1), ["CAT", "DOG"], ["Meows", "Barks"], _placement())
    generated_at = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

    payload = puzzle_to_dict(puzzle, generated_at=generated_at)

    assert payload["grid"] == ["CATXX", "XXXXX", "DXXXX", "OXXXX", "GXXXX"]
    assert payload["words"][1] == {
        "word": "DOG",
        "start_row": 2,
        "start_col": 0,
        "direction": "vertical",
        "hint": "Barks",
    }
    assert payload["tags"] == ["animals", "simple", "level1"]
    assert payload["version"] == "2.0"
    assert payload["generated_date"] == "2024-05-01T12:00:00+00:00"
    assert payload["popularity"] == 0
    assert payload["completion_count"] == 0


def test_puzzle_from_dict_restores_placements() -> None:
    puzzle = assemble_puzzle("Animals", get_level_config(1), ["CAT", "DOG"], ["Meows", "Barks"], _placement())

    restored = puzzle_from_dict(puzzle_to_dict(puzzle))

    assert restored == puzzle
