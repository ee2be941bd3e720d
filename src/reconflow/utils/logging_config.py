"""Logging configuration for ReconFlow."""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Union

from .exceptions import ConfigurationError

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s"


def _resolve_level(level: Union[int, str]) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.strip().upper())
    if not isinstance(resolved, int):
        raise ConfigurationError(f"Unknown logging level: {level}")
    return resolved


def setup_logging(
    level: Union[int, str] = logging.INFO,
    log_file: Optional[Path] = None,
    log_format: Optional[str] = None,
) -> logging.Logger:
    """
    Configure the ``reconflow`` logger.

    Args:
        level: Logging level, either numeric or a name such as "DEBUG"
        log_file: Optional path to a rotating log file
        log_format: Optional console format string

    Returns:
        The configured package logger
    """
    numeric_level = _resolve_level(level)

    logger = logging.getLogger("reconflow")
    # The file handler records DEBUG regardless of the console level
    logger.setLevel(logging.DEBUG if log_file else numeric_level)

    # Re-running setup (e.g. once per CLI invocation) must not stack handlers
    logger.handlers = []

    console_handler = logging.StreamHandler()
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(logging.Formatter(log_format or DEFAULT_FORMAT))
    logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5,
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        logger.addHandler(file_handler)

    return logger
