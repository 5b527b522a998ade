"""Logging helpers shared by the API, the CLI and the services."""
from __future__ import annotations

import logging
import os
from logging import Logger

LOG_FORMAT = "%(asctime)s | %(levelname)8s | %(name)s | %(message)s"
LOG_LEVEL_ENV = "METRICSCOPE_LOG_LEVEL"


def _resolve_level(level: int | str | None) -> int:
    if level is None:
        level = os.getenv(LOG_LEVEL_ENV, "INFO")
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).strip().upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def configure_logging(level: int | str | None = None) -> None:
    logging.basicConfig(level=_resolve_level(level), format=LOG_FORMAT)


def get_logger(name: str) -> Logger:
    if not logging.getLogger().handlers:
        configure_logging()
    return logging.getLogger(name)
