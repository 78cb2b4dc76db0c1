"""Validation utilities for generated word lists."""

from __future__ import annotations

import re
import unicodedata
from dataclasses import dataclass, replace
from typing import Iterable, List, Optional

from wordsearch.logging_config import get_logger

logger = get_logger("validators")

__all__ = [
    "CharacterValidationError",
    "DuplicateWordError",
    "LengthValidationError",
    "MAX_WORD_LENGTH",
    "MIN_WORD_LENGTH",
    "WordHint",
    "WordValidationError",
    "WordValidationIssue",
    "normalise_word",
    "validate_word_list",
]

MIN_WORD_LENGTH = 3
MAX_WORD_LENGTH = 12

_LETTERS = re.compile(r"^[A-Z]+$")
_SEPARATORS = re.compile(r"[\s\-'’`´.]+")


@dataclass(frozen=True, slots=True)
class WordHint:
    """A candidate puzzle word with the hint shown to the player."""

    word: str
    hint: str


class WordValidationError(Exception):
    """Base class for validation errors describing why a word is rejected."""

    code = "invalid"

    def __init__(self, message: str, *, code: str | None = None) -> None:
        super().__init__(message)
        if code is not None:
            self.code = code


class CharacterValidationError(WordValidationError):
    """Raised when a word contains something other than the letters A-Z."""

    code = "characters"


class LengthValidationError(WordValidationError):
    """Raised when a word is shorter or longer than allowed."""

    code = "length"


class DuplicateWordError(WordValidationError):
    """Raised when the word duplicates an already accepted entry."""

    code = "duplicate"


@dataclass(frozen=True, slots=True)
class WordValidationIssue:
    """Represents a rejected word alongside the reason."""

    entry: WordHint
    word: str
    error: WordValidationError


def _strip_accents(text: str) -> str:
    decomposed = unicodedata.normalize("NFD", text)
    return "".join(ch for ch in decomposed if unicodedata.category(ch) != "Mn")


def normalise_word(word: str) -> str:
    """Uppercase ``word`` and drop accents, whitespace and joining punctuation."""

    cleaned = _strip_accents(unicodedata.normalize("NFC", word or "").strip())
    return _SEPARATORS.sub("", cleaned).upper()


def _validate_length(word: str, max_length: int) -> None:
    if not (MIN_WORD_LENGTH <= len(word) <= max_length):
        raise LengthValidationError(
            f"Word length must be between {MIN_WORD_LENGTH} and {max_length} characters",
        )


def _validate_characters(word: str) -> None:
    if not _LETTERS.fullmatch(word):
        raise CharacterValidationError("Word must consist only of the letters A-Z")


def validate_word_list(
    entries: Iterable[WordHint],
    *,
    max_length: int = MAX_WORD_LENGTH,
    deduplicate: bool = True,
    issues: Optional[List[WordValidationIssue]] = None,
) -> List[WordHint]:
    """Validate word/hint pairs and return only the acceptable ones.

    Args:
        entries: Candidate :class:`WordHint` pairs in source order.
        max_length: Longest accepted word, usually ``min(12, grid_size)``.
        deduplicate: When ``True`` (default) repeated words are rejected.
        issues: Optional list that receives a :class:`WordValidationIssue`
            for every rejected entry.

    Accepted words are returned normalised (uppercase A-Z only) with their
    hints whitespace-collapsed.
    """

    accepted: List[WordHint] = []
    rejected: List[WordValidationIssue] = []
    seen: set[str] = set()

    for entry in entries:
        word = normalise_word(entry.word)

        try:
            _validate_length(word, max_length)
            _validate_characters(word)
            if deduplicate and word in seen:
                raise DuplicateWordError("Word duplicates a previously accepted entry")
        except WordValidationError as exc:
            rejected.append(WordValidationIssue(entry=entry, word=word, error=exc))
            logger.debug("Rejected word %r (%s): %s", entry.word, exc.code, exc)
            continue

        if deduplicate:
            seen.add(word)
        accepted.append(replace(entry, word=word, hint=" ".join(str(entry.hint).split())))

    if issues is not None:
        issues.extend(rejected)

    if rejected:
        logger.info("Validation rejected %s words (accepted=%s)", len(rejected), len(accepted))
    else:
        logger.debug("Validation accepted %s words", len(accepted))

    return accepted
