"""Tests for the LLM word list helper."""

from __future__ import annotations

import json
import random
from dataclasses import dataclass
from types import SimpleNamespace
from unittest.mock import patch

import pytest

from wordsearch.levels import get_level_config
from wordsearch.llm_generator import WordSourceError, choose_word_count, generate_word_list


@dataclass
class _DummyLLM:
    """Simple stub that returns a predefined payload."""

    payload: str

    def __post_init__(self) -> None:
        self.calls = []

    def invoke(self, messages):  # type: ignore[override]
        self.calls.append(messages)
        return SimpleNamespace(content=self.payload)


class _FailingLLM:
    def invoke(self, messages):  # type: ignore[override]
        raise ConnectionError("provider unavailable")


def _serialise(words: list[str], hints: list[str] | None = None) -> str:
    if hints is None:
        hints = [f"Hint for {word}" for word in words]
    return json.dumps({"words": words, "hints": hints})


def test_generate_word_list_returns_parallel_words_and_hints() -> None:
    llm = _DummyLLM(_serialise(["lion", "tiger", "bear"]))

    result = generate_word_list("Animals", get_level_config(3), llm=llm, rng=random.Random(1))

    assert result.words == ("LION", "TIGER", "BEAR")
    assert result.hints == ("Hint for lion", "Hint for tiger", "Hint for bear")
    assert len(llm.calls) == 1
    prompt = "\n".join(str(message.content) for message in llm.calls[0])
    assert "Theme: Animals" in prompt
    assert "Grid Size: 6x6" in prompt
    assert "3-6 letters" in prompt


def test_generate_word_list_uses_configured_model_by_default() -> None:
    llm = _DummyLLM(_serialise(["violin", "drum"]))

    with patch("wordsearch.llm_generator.get_llm", return_value=llm):
        result = generate_word_list("Music", get_level_config(10))

    assert result.words == ("VIOLIN", "DRUM")


def test_generate_word_list_accepts_fenced_json() -> None:
    payload = "```json\n" + _serialise(["apple", "pear"]) + "\n```"

    result = generate_word_list("Food", get_level_config(6), llm=_DummyLLM(payload))

    assert result.words == ("APPLE", "PEAR")


def test_generate_word_list_filters_invalid_words() -> None:
    payload = _serialise(
        ["ox", "hippopotamus", "sea horse", "cat", "CAT"],
        ["a", "b", "c", "d", "e"],
    )

    result = generate_word_list("Animals", get_level_config(8), llm=_DummyLLM(payload))

    assert result.words == ("SEAHORSE", "CAT")
    assert result.hints == ("c", "d")


def test_generate_word_list_rejects_mismatched_hints() -> None:
    payload = _serialise(["lion", "tiger"], ["only one"])

    with pytest.raises(WordSourceError):
        generate_word_list("Animals", get_level_config(3), llm=_DummyLLM(payload))


def test_generate_word_list_rejects_unparseable_response() -> None:
    with pytest.raises(WordSourceError):
        generate_word_list("Animals", get_level_config(3), llm=_DummyLLM("Here are some animals: lion"))


def test_generate_word_list_rejects_empty_result() -> None:
    with pytest.raises(WordSourceError):
        generate_word_list("Animals", get_level_config(3), llm=_DummyLLM(_serialise([], [])))
    with pytest.raises(WordSourceError):
        generate_word_list("Animals", get_level_config(3), llm=_DummyLLM(_serialise(["ox", "a1"])))


def test_generate_word_list_wraps_provider_errors() -> None:
    with pytest.raises(WordSourceError):
        generate_word_list("Animals", get_level_config(3), llm=_FailingLLM())


def test_choose_word_count_stays_in_level_range() -> None:
    config = get_level_config(30)
    rng = random.Random(4)

    counts = {choose_word_count(config, rng) for _ in range(200)}

    assert counts <= set(range(config.min_words, config.max_words + 1))
    assert min(counts) == config.min_words
    assert max(counts) == config.max_words
