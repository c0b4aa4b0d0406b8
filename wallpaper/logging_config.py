"""Logging setup shared by the daemon and the one-shot commands.

Console output goes to stderr at INFO (or the level named in
``WALLPAPER_LOG``); a daily-rotating file in the cache directory records
everything at DEBUG.
"""

from __future__ import annotations

import logging
from logging.handlers import TimedRotatingFileHandler
import os
from pathlib import Path

from wallpaper.env import get_log_dir

DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DEFAULT_LOG_LEVEL = logging.INFO
LOG_LEVEL_ENV = "WALLPAPER_LOG"
LOG_FILE_NAME = "wallpaper.log"
LOG_BACKUP_COUNT = 7


def _level_from_env(default: int) -> int:
    name = os.environ.get(LOG_LEVEL_ENV, "").strip().upper()
    if not name:
        return default
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else default


def setup_logging(
    verbose: bool = False,
    log_dir: Path | None = None,
    log_format: str = DEFAULT_LOG_FORMAT,
) -> logging.Logger:
    """Configure the root logger and return the ``wallpaper`` logger."""
    console_level = logging.DEBUG if verbose else _level_from_env(DEFAULT_LOG_LEVEL)
    formatter = logging.Formatter(log_format)

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)

    console = logging.StreamHandler()
    console.setLevel(console_level)
    console.setFormatter(formatter)
    root.addHandler(console)

    logger = logging.getLogger("wallpaper")
    directory = log_dir if log_dir is not None else get_log_dir()
    try:
        directory.mkdir(parents=True, exist_ok=True)
        file_handler = TimedRotatingFileHandler(
            directory / LOG_FILE_NAME,
            when="midnight",
            backupCount=LOG_BACKUP_COUNT,
            encoding="utf-8",
        )
    except OSError as exc:
        logger.warning("file logging disabled: %s", exc)
    else:
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    return logger


def log_service_start(logger: logging.Logger, service_name: str) -> None:
    logger.info("=" * 60)
    logger.info("%s starting", service_name)
    logger.info("=" * 60)
