"""Logging configuration for ftpsession.

The library itself only creates named loggers under ``ftpsession``;
applications that want output call setup_logging(). Records pass
through a formatter that masks passwords and URL credentials.
"""

import logging
import re
import sys
from pathlib import Path
from typing import List, Optional


LOGGER_NAME = "ftpsession"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# PII patterns to redact from logs
PII_PATTERNS = [
    (re.compile(r'(password["\s:=]+)[^\s,}\]]+', re.IGNORECASE), r'\1[REDACTED]'),
    (re.compile(r'(passwd["\s:=]+)[^\s,}\]]+', re.IGNORECASE), r'\1[REDACTED]'),
    (re.compile(r'(PASS\s+)\S+'), r'\1[REDACTED]'),
    # ftp:// and socks5:// URLs with credentials
    (re.compile(r'(ftp|socks5)://[^:/\s]+:[^@\s]+@'), r'\1://[REDACTED]@'),
]


class PIIRedactingFormatter(logging.Formatter):
    """Formatter that redacts credentials from log messages."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        for pattern, replacement in PII_PATTERNS:
            message = pattern.sub(replacement, message)
        return message


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[Path] = None,
    console: bool = True
) -> logging.Logger:
    """
    Attach redacting handlers to the ``ftpsession`` logger.

    Calling it again replaces the handlers from the previous call.

    Args:
        level: Logging level (default INFO)
        log_file: Optional file to append records to
        console: Whether to write records to stderr (default True)

    Returns:
        The ``ftpsession`` logger
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    for old_handler in list(logger.handlers):
        logger.removeHandler(old_handler)
        old_handler.close()

    handlers: List[logging.Handler] = []
    if console:
        handlers.append(logging.StreamHandler(sys.stderr))
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    formatter = PIIRedactingFormatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


def get_logger(name: str = LOGGER_NAME) -> logging.Logger:
    """
    Get a logger instance.

    Args:
        name: Logger name, e.g. "ftpsession.client"

    Returns:
        Logger instance
    """
    return logging.getLogger(name)
