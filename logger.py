#!/usr/bin/env python3
"""
Centralized logging for the sound detector.

Console output is color-coded when attached to a terminal; an optional
log file receives the same records without colors.

Usage:
    from logger import get_logger
    log = get_logger(__name__)
    log.info("Detection enabled")
    log.error("Failed to open DM channel", exc_info=True)
"""
import logging
import sys
from pathlib import Path
from typing import Optional, Union


LOG_FORMAT = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


class ColoredFormatter(logging.Formatter):
    """Color-coded log formatter for terminal output."""

    COLORS = {
        'DEBUG': '\033[36m',      # Cyan
        'INFO': '\033[32m',       # Green
        'WARNING': '\033[33m',    # Yellow
        'ERROR': '\033[31m',      # Red
        'CRITICAL': '\033[35m',   # Magenta
        'RESET': '\033[0m'
    }

    def format(self, record):
        levelname = record.levelname
        if sys.stdout.isatty():
            color = self.COLORS.get(levelname, '')
            record.levelname = f"{color}{levelname}{self.COLORS['RESET']}"
        try:
            return super().format(record)
        finally:
            # Other handlers share the record
            record.levelname = levelname


def setup_logging(
    log_file: Optional[Union[str, Path]] = None,
    level: str = "INFO",
    debug: bool = False
) -> logging.Logger:
    """
    Set up logging configuration.

    Args:
        log_file: Path to log file (if None, only console logging)
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        debug: If True, force DEBUG level

    Returns:
        Root logger
    """
    if debug:
        level = "DEBUG"

    log_level = getattr(logging, str(level).upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(ColoredFormatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    root_logger.addHandler(console_handler)

    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setLevel(log_level)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        root_logger.addHandler(file_handler)

    # urllib3 logs every connection at DEBUG
    logging.getLogger("urllib3").setLevel(max(log_level, logging.INFO))

    return root_logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger for a module (typically called with __name__)."""
    return logging.getLogger(name)
