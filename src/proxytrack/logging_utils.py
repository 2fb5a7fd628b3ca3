"""Logging setup for applications embedding the pipeline.

Modules log through ``logging.getLogger(__name__)`` inside the ``proxytrack``
namespace and never install handlers themselves. Applications call
:func:`configure_logging` once at startup:

    settings = load_settings("settings.yaml")
    configure_logging(settings)
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from proxytrack.config import Settings

PACKAGE_LOGGER = "proxytrack"

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _has_console(logger: logging.Logger) -> bool:
    return any(
        type(h) is logging.StreamHandler for h in logger.handlers
    )


def _has_file(logger: logging.Logger, path: Path) -> bool:
    target = str(path.resolve())
    return any(
        isinstance(h, logging.FileHandler) and h.baseFilename == target
        for h in logger.handlers
    )


def setup_logger(log_level: str = "INFO", log_file: str | Path | None = None) -> logging.Logger:
    """Configure and return the ``proxytrack`` logger.

    Repeated calls update the level and add a file handler for a new
    ``log_file``; the console handler is attached once.

    :param log_level: Level name such as "INFO" or "debug".
    :param log_file: Optional file that receives the same records.
    :returns: The package logger.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))
    logger.propagate = False

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    if not _has_console(logger):
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if log_file is not None and not _has_file(logger, Path(log_file)):
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def configure_logging(settings: Settings, log_file: str | Path | None = None) -> logging.Logger:
    """Apply ``settings.log_level`` to the package logger."""
    return setup_logger(settings.log_level, log_file)


__all__ = ["setup_logger", "configure_logging", "PACKAGE_LOGGER"]
