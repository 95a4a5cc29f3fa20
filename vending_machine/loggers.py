"""
Logging configuration for the vending machine.

This module provides a centralized logging setup with support for:
- Console output with colored formatting
- Optional file rotation with size limits
- Optional remote logging to Loki
"""

import logging
import time
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Final, Optional

import colorlog
import httpx

from vending_machine.infrastructure.settings import get_settings


# =============================================================================
# Constants
# =============================================================================

DEFAULT_LOG_FORMAT: Final[str] = (
    "%(name)s | %(asctime)s | %(levelname)s | %(funcName)s:%(lineno)d | %(message)s"
)
DEFAULT_DATE_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"
MAX_LOG_FILE_SIZE: Final[int] = 5 * 1024 * 1024  # 5 MB
LOG_BACKUP_COUNT: Final[int] = 3


# =============================================================================
# Color Configuration
# =============================================================================

LOG_COLORS: Final[dict[str, str]] = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "bold_red",
}


# =============================================================================
# Loki Integration
# =============================================================================

class LokiHandler(logging.Handler):
    """
    Logging handler that pushes records to a Loki instance.

    Attributes:
        url: Loki push endpoint.
        app: Application name for Loki labels.
        timeout: HTTP timeout in seconds.
    """

    def __init__(self, url: str, app: str, timeout: float = 2.0) -> None:
        super().__init__()
        self.url = url
        self.app = app
        self.timeout = timeout

    def build_payload(self, level: str, message: str) -> dict:
        """Build the Loki push body for a single log line."""
        return {
            "streams": [
                {
                    "stream": {"level": level, "app": self.app},
                    "values": [[str(int(time.time() * 1e9)), message]],
                }
            ]
        }

    def emit(self, record: logging.LogRecord) -> None:
        try:
            payload = self.build_payload(record.levelname.upper(), self.format(record))
            with httpx.Client(timeout=self.timeout) as client:
                client.post(self.url, json=payload)
        except Exception:
            # Logging here would recurse into this handler
            self.handleError(record)


# =============================================================================
# Logger Factory
# =============================================================================

def get_logger(
    name: str,
    app: str = "vending_machine",
    log_file: Optional[str] = None,
    level: int = logging.DEBUG,
    loki_url: Optional[str] = None,
    loki_timeout: float = 2.0,
) -> logging.Logger:
    """
    Create and configure a logger with console and optional file/Loki handlers.

    Args:
        name: Logger name.
        app: Application name for Loki labels.
        log_file: Path to the log file, or None to skip file logging.
        level: Logging level (default: DEBUG).
        loki_url: Loki push URL, or None to skip remote logging.
        loki_timeout: Timeout for Loki pushes in seconds.

    Returns:
        Configured logger instance.
    """
    logger_instance = logging.getLogger(name)
    logger_instance.setLevel(level)

    # Avoid duplicate handlers on repeated calls
    if logger_instance.handlers:
        return logger_instance

    console_formatter = colorlog.ColoredFormatter(
        f"%(name)s | %(log_color)s%(asctime)s | %(levelname)s | "
        f"%(funcName)s:%(lineno)d | %(message)s",
        datefmt=DEFAULT_DATE_FORMAT,
        log_colors=LOG_COLORS,
    )
    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(console_formatter)
    logger_instance.addHandler(console_handler)

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=MAX_LOG_FILE_SIZE,
            backupCount=LOG_BACKUP_COUNT,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(
            logging.Formatter(fmt=DEFAULT_LOG_FORMAT, datefmt=DEFAULT_DATE_FORMAT)
        )
        logger_instance.addHandler(file_handler)

    if loki_url:
        loki_handler = LokiHandler(loki_url, app, timeout=loki_timeout)
        loki_handler.setLevel(level)
        loki_handler.setFormatter(
            logging.Formatter(
                fmt="%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s",
                datefmt=DEFAULT_DATE_FORMAT,
            )
        )
        logger_instance.addHandler(loki_handler)

    return logger_instance


# =============================================================================
# Default Logger Instance
# =============================================================================

_log_settings = get_settings().logging

logger = get_logger(
    name=_log_settings.name,
    app=_log_settings.app,
    log_file=_log_settings.log_file,
    level=_log_settings.level,
    loki_url=_log_settings.loki_url,
    loki_timeout=_log_settings.loki_timeout,
)
