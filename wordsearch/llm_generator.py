"""LLM powered word and hint generator for word-search puzzles."""

from __future__ import annotations

import json
import os
import random
from dataclasses import dataclass
from typing import Any, List, Tuple

from langchain_core.exceptions import OutputParserException
from langchain_core.output_parsers import PydanticOutputParser
from langchain_core.prompts import ChatPromptTemplate
from langchain_openai import ChatOpenAI
from pydantic import BaseModel, Field, ValidationError

from wordsearch.levels import LevelConfig
from wordsearch.logging_config import get_logger
from wordsearch.validators import (
    MIN_WORD_LENGTH,
    WordHint,
    WordValidationIssue,
    validate_word_list,
)

logger = get_logger("llm_generator")


class WordSourceError(RuntimeError):
    """Raised when a usable word list cannot be obtained for a target."""


@dataclass(frozen=True, slots=True)
class WordList:
    """Parallel words and hints returned by the word source."""

    words: Tuple[str, ...]
    hints: Tuple[str, ...]

    def __len__(self) -> int:
        return len(self.words)


class _WordListSchema(BaseModel):
    words: List[str] = Field(..., description="Puzzle words, single words without spaces or hyphens")
    hints: List[str] = Field(..., description="One short hint per word, in the same order")


_PARSER = PydanticOutputParser(pydantic_object=_WordListSchema)

_DIFFICULTY_GUIDANCE = {
    "simple": "common, everyday words that are easy to recognize",
    "medium": "moderately challenging words with some variety",
    "hard": "advanced vocabulary and less common words",
}

_PROMPT = ChatPromptTemplate.from_messages(
    [
        (
            "system",
            "You are a puzzle generator. Always respond with valid JSON only, "
            "no markdown formatting and no commentary.\n"
            "{format_instructions}",
        ),
        (
            "human",
            "Generate a word search puzzle with the following specifications:\n\n"
            "Theme: {theme}\n"
            "Level: {level} ({difficulty} difficulty)\n"
            "Grid Size: {grid_size}x{grid_size}\n"
            "Number of words: {word_count}\n\n"
            "Requirements:\n"
            "1. Provide exactly {word_count} words related to \"{theme}\"\n"
            "2. Each word should have a brief hint (one sentence, under 100 characters)\n"
            "3. Words should be appropriate for all ages, clearly related to the theme, "
            "varied in length ({min_length}-{max_length} letters), single words (no spaces or hyphens), "
            "English language, and {guidance}\n"
            "4. Ensure diversity in word choices",
        ),
    ]
).partial(format_instructions=_PARSER.get_format_instructions())

_DEFAULT_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
_TEMPERATURE = 0.8
_MAX_TOKENS = 1000


def get_llm() -> ChatOpenAI:
    """Create the configured OpenAI chat model."""

    api_key = os.getenv("OPENAI_API_KEY")
    if not api_key:
        raise RuntimeError("OPENAI_API_KEY environment variable is not configured")

    return ChatOpenAI(
        api_key=api_key,
        model=_DEFAULT_MODEL,
        temperature=_TEMPERATURE,
        max_tokens=_MAX_TOKENS,
    )


def _strip_code_fence(content: str) -> str:
    content = content.strip()
    if content.startswith("```") and content.endswith("```"):
        lines = content.splitlines()
        if len(lines) >= 3:
            return "\n".join(lines[1:-1]).strip()
    if content.startswith("```json"):
        return content[len("```json") :].strip("`\n ")
    return content


def _parse_response(raw_content: str) -> _WordListSchema:
    try:
        return _PARSER.parse(raw_content)
    except OutputParserException as exc:
        logger.warning("Primary parsing failed: %s", exc)

    cleaned = _strip_code_fence(raw_content)
    try:
        loaded = json.loads(cleaned)
    except json.JSONDecodeError as json_exc:
        logger.error("JSON decoding failed: %s", json_exc)
        raise WordSourceError("Unable to parse LLM response as JSON") from json_exc

    try:
        return _WordListSchema.model_validate(loaded)
    except ValidationError as validation_exc:
        logger.error("Parsed JSON does not match expected schema: %s", validation_exc)
        raise WordSourceError("Invalid JSON structure from LLM") from validation_exc


def choose_word_count(level_config: LevelConfig, rng: random.Random | None = None) -> int:
    """Pick how many words to request, uniformly within the level's range."""

    generator = rng or random.Random()
    return generator.randint(level_config.min_words, level_config.max_words)


def generate_word_list(
    theme: str,
    level_config: LevelConfig,
    *,
    rng: random.Random | None = None,
    llm: Any | None = None,
) -> WordList:
    """Ask the language model for themed words and hints for one puzzle.

    Args:
        theme: Puzzle theme, e.g. ``"Animals"``.
        level_config: Level whose grid size, difficulty and word range shape the prompt.
        rng: Random generator used to pick the word count.
        llm: Chat model exposing ``invoke``; defaults to the configured OpenAI model.

    Raises:
        WordSourceError: If the response cannot be parsed, words and hints are
            not parallel, or no word survives validation.
    """

    if not theme:
        raise ValueError("Theme must be provided")

    word_count = choose_word_count(level_config, rng)
    model = llm or get_llm()
    messages = _PROMPT.format_messages(
        theme=theme,
        level=level_config.level,
        difficulty=level_config.difficulty,
        grid_size=level_config.grid_size,
        word_count=word_count,
        min_length=MIN_WORD_LENGTH,
        max_length=level_config.max_word_length,
        guidance=_DIFFICULTY_GUIDANCE.get(level_config.difficulty, _DIFFICULTY_GUIDANCE["medium"]),
    )

    logger.debug("Requesting %s words from LLM", word_count)
    try:
        response = model.invoke(messages)
    except Exception as exc:  # noqa: BLE001 - surface provider failures as word source errors
        logger.exception("LLM request failed")
        raise WordSourceError(f"LLM request failed: {exc}") from exc

    raw_content = response.content if hasattr(response, "content") else str(response)
    parsed = _parse_response(str(raw_content))

    if not parsed.words:
        raise WordSourceError("Invalid words array in response")
    if len(parsed.hints) != len(parsed.words):
        raise WordSourceError(
            f"Invalid hints array in response ({len(parsed.hints)} hints for {len(parsed.words)} words)"
        )

    issues: List[WordValidationIssue] = []
    validated = validate_word_list(
        (WordHint(word=word, hint=hint) for word, hint in zip(parsed.words, parsed.hints)),
        max_length=level_config.max_word_length,
        issues=issues,
    )
    if not validated:
        raise WordSourceError(f"No usable words in response ({len(issues)} rejected)")

    logger.info("Generated %s words for %s (level %s)", len(validated), theme, level_config.level)
    return WordList(
        words=tuple(item.word for item in validated),
        hints=tuple(item.hint for item in validated),
    )


__all__ = ["WordList", "WordSourceError", "choose_word_count", "generate_word_list", "get_llm"]
