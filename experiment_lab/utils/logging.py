"""Logging helpers."""
from __future__ import annotations

import logging
import os
from logging import Logger

LOG_FORMAT = "%(asctime)s | %(levelname)8s | %(name)s | %(message)s"


def _resolve_level(level: int | str | None) -> int:
    if level is None:
        level = os.getenv("LAB_LOG_LEVEL", "INFO")
    if isinstance(level, str):
        resolved = logging.getLevelName(level.strip().upper())
        return resolved if isinstance(resolved, int) else logging.INFO
    return int(level)


def configure_logging(level: int | str | None = None) -> None:
    logging.basicConfig(level=_resolve_level(level), format=LOG_FORMAT)


def get_logger(name: str) -> Logger:
    if not logging.getLogger().handlers:
        configure_logging()
    return logging.getLogger(name)
