from __future__ import annotations

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from .errors import ConfigError
from .profiles import _work_dir

LOG_LEVEL_ENV = "HYPOFLOW_LOG_LEVEL"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_MAX_BYTES = 2 * 1024 * 1024
LOG_BACKUPS = 3

_LOGGER: logging.Logger | None = None


def resolve_level(raw: str | None) -> int:
    """Map a level name such as ``debug`` to its ``logging`` constant; unset means INFO."""

    if raw is None or not raw.strip():
        return logging.INFO
    level = logging.getLevelName(raw.strip().upper())
    if not isinstance(level, int):
        raise ConfigError(f"{LOG_LEVEL_ENV} must be a logging level name, got {raw!r}")
    return level


def get_logger(log_dir: Path | None = None) -> logging.Logger:
    """Return the ``hypoflow`` logger, configuring it on first use.

    Records go to ``<work>/logs/app.log`` (rotating) and to stderr; stdout is
    left to command output. ``HYPOFLOW_LOG_LEVEL`` lowers or raises the level,
    e.g. ``debug`` to see table resolution and ignored update fields.
    """
    global _LOGGER
    if _LOGGER is not None:
        return _LOGGER

    base = _work_dir() / "logs" if log_dir is None else Path(log_dir)
    base.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger("hypoflow")
    logger.setLevel(resolve_level(os.getenv(LOG_LEVEL_ENV)))
    logger.propagate = False

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    handlers: list[logging.Handler] = [
        RotatingFileHandler(base / "app.log", maxBytes=LOG_MAX_BYTES, backupCount=LOG_BACKUPS, encoding="utf-8"),
        logging.StreamHandler(sys.stderr),
    ]
    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    _LOGGER = logger
    return logger
