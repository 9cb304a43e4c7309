"""
Logging configuration for the OrthoIQ intelligence engine.

Modules log through ``logging.getLogger(__name__)``, so every engine logger
lives under the ``src`` package logger configured here.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

from src.utils.settings import Settings


PACKAGE_LOGGER = "src"

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(funcName)s:%(lineno)d | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(
    level: Optional[str] = None,
    log_file: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> logging.Logger:
    """
    Set up logging for the engine.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR). Defaults to settings.
        log_file: Optional file path to write logs to. Defaults to settings.
        settings: Settings to read defaults from (loaded from env if omitted)

    Returns:
        Configured package logger
    """
    settings = settings or Settings.from_env()
    level = level or settings.log_level
    log_file = log_file or settings.log_file
    level_num = getattr(logging, level.upper(), logging.INFO)

    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level_num)
    logger.handlers = []

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level_num)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path)
        file_handler.setLevel(level_num)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Get a logger under the engine's package logger.

    Args:
        name: Optional dotted suffix (``"scoring.stake"``) or a full module name

    Returns:
        Logger instance
    """
    if not name:
        return logging.getLogger(PACKAGE_LOGGER)
    if name == PACKAGE_LOGGER or name.startswith(f"{PACKAGE_LOGGER}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{PACKAGE_LOGGER}.{name}")
