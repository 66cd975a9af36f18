"""
Logging setup for hotsnet.

Library modules log through ``logging.getLogger(__name__)`` and stay silent
until an application calls :func:`setup_logging`, which attaches a colored
console handler and an optional file handler to the ``hotsnet`` logger.
"""

from __future__ import annotations

import sys
import logging
from pathlib import Path
from datetime import datetime
from typing import Optional, Union

from .config import LoggingParams


LOGGER_NAME = "hotsnet"


class ColoredFormatter(logging.Formatter):
    """Formatter with ANSI color codes for different log levels."""

    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
    }
    RESET = '\033[0m'

    def format(self, record: logging.LogRecord) -> str:
        # Work on a copy so other handlers keep the plain level name
        record = logging.makeLogRecord(record.__dict__)
        color = self.COLORS.get(record.levelname, '')
        record.levelname = f"{color}{record.levelname:8s}{self.RESET}"
        return super().format(record)


def setup_logging(
    config: Optional[LoggingParams] = None,
    output_dir: Optional[Union[str, Path]] = None,
    experiment_name: str = "hotsnet"
) -> logging.Logger:
    """
    Setup logging with console and file handlers.

    Args:
        config: Logging configuration. Defaults to LoggingParams().
        output_dir: Base output directory. If None, no log file is written.
        experiment_name: Name for log files.

    Returns:
        Configured root logger for hotsnet.
    """
    if config is None:
        config = LoggingParams()

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, config.log_level))
    logger.handlers.clear()
    logger.propagate = False

    if config.console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(logging.DEBUG)
        console_handler.setFormatter(ColoredFormatter(
            '%(asctime)s | %(levelname)s | %(message)s',
            datefmt='%H:%M:%S'
        ))
        logger.addHandler(console_handler)

    if output_dir is not None:
        log_dir = Path(output_dir) / config.log_dir
        log_dir.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = log_dir / f"{experiment_name}_{timestamp}.log"
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s | %(levelname)-8s | %(name)s | %(funcName)s:%(lineno)d | %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        ))
        logger.addHandler(file_handler)

        logger.info(f"Logging initialized: {log_file}")

    return logger


__all__ = [
    "LOGGER_NAME",
    "ColoredFormatter",
    "setup_logging",
]
