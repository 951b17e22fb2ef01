"""Helpers for interrogating runtime environment flags."""

from __future__ import annotations

import logging
import os

LOG_LEVEL_ENV = "ICONS_LOG_LEVEL"


def resolve_log_level(value: str | None) -> int:
    """Translate a level name such as ``"debug"`` into a :mod:`logging` level.

    Empty or unknown names fall back to ``INFO``.
    """
    if not value:
        return logging.INFO
    level = logging.getLevelName(value.strip().upper())
    if isinstance(level, int):
        return level
    return logging.INFO


def log_level_from_env() -> int:
    return resolve_log_level(os.environ.get(LOG_LEVEL_ENV))


__all__ = ["LOG_LEVEL_ENV", "log_level_from_env", "resolve_log_level"]
