"""Centralised logging helpers for the puzzle generator."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from contextvars import ContextVar, Token
from logging.config import dictConfig
from typing import Iterator

BASE_LOGGER_NAME = "wordsearch"

_theme_var: ContextVar[str] = ContextVar("theme", default="-")
_level_var: ContextVar[str] = ContextVar("puzzle_level", default="-")


class GenerationContextFilter(logging.Filter):
    """Ensure that log records always carry the current theme and level."""

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: D401 - logging API
        record.theme = getattr(record, "theme", _theme_var.get("-"))
        record.puzzle_level = getattr(record, "puzzle_level", _level_var.get("-"))
        return True


def configure_logging(level: int | str = "INFO") -> None:
    """Configure project-wide logging using :func:`logging.config.dictConfig`."""

    if isinstance(level, str):
        level = level.upper()

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "filters": {
                "generation_context": {
                    "()": "wordsearch.logging_config.GenerationContextFilter",
                }
            },
            "formatters": {
                "default": {
                    "format": "%(asctime)s [%(levelname)s] %(name)s [theme=%(theme)s level=%(puzzle_level)s] %(message)s",
                }
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                    "filters": ["generation_context"],
                    "level": level,
                }
            },
            "root": {
                "handlers": ["console"],
                "level": level,
            },
        }
    )


def get_logger(name: str) -> logging.Logger:
    """Return a logger within the project namespace."""

    if name.startswith(BASE_LOGGER_NAME):
        return logging.getLogger(name)
    return logging.getLogger(f"{BASE_LOGGER_NAME}.{name}")


@contextmanager
def logging_context(*, theme: str | None = None, level: int | str | None = None) -> Iterator[None]:
    """Temporarily bind the theme and level being generated to log records."""

    tokens: list[tuple[ContextVar[str], Token[str]]] = []
    if theme is not None:
        tokens.append((_theme_var, _theme_var.set(str(theme))))
    if level is not None:
        tokens.append((_level_var, _level_var.set(str(level))))
    try:
        yield
    finally:
        for var, token in reversed(tokens):
            var.reset(token)
