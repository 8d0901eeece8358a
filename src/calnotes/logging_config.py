"""
calnotes Logging Configuration

Configurable logging with debug mode support.
"""

import logging
import os
import re
import sys
from pathlib import Path
from typing import Optional


DEBUG_MODE = os.environ.get("CALNOTES_DEBUG", "").lower() in ("1", "true", "yes")

SECRET_PATTERNS = [
    "access_token",
    "refresh_token",
    "client_secret",
    "token",
]

SECRET_REGEXES = [
    r"ya29\.[0-9A-Za-z\-_]+",   # Google OAuth access token
    r"1//[0-9A-Za-z\-_]{20,}",  # Google OAuth refresh token
]


def mask_secrets(text: str, mask: str = "********") -> str:
    """Mask OAuth secrets in a string.

    Args:
        text: The text that may contain secrets
        mask: The string to replace secrets with

    Returns:
        Text with secrets masked
    """
    if not text:
        return text

    result = text
    for pattern in SECRET_PATTERNS:
        regex = rf'({pattern}["\']?\s*[=:]\s*["\']?)([^"\'\s,}}]+)(["\']?)'
        result = re.sub(regex, rf"\1{mask}\3", result, flags=re.IGNORECASE)

    for regex in SECRET_REGEXES:
        result = re.sub(regex, mask, result)

    return result


class SecretMaskingFormatter(logging.Formatter):
    """Formatter that masks secrets in log messages."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        return mask_secrets(message)


def setup_logging(
    level: Optional[int] = None,
    log_file: Optional[Path] = None,
    quiet: bool = False
) -> logging.Logger:
    """Set up logging configuration.

    Args:
        level: Logging level (default: DEBUG if CALNOTES_DEBUG, else INFO)
        log_file: Optional path to log file
        quiet: If True, suppress console output

    Returns:
        Configured package logger
    """
    if level is None:
        level = logging.DEBUG if DEBUG_MODE else logging.INFO

    logger = logging.getLogger("calnotes")
    logger.setLevel(level)
    logger.handlers.clear()

    if not quiet:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(level)

        if DEBUG_MODE:
            console_format = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
        else:
            console_format = "%(message)s"

        console_handler.setFormatter(SecretMaskingFormatter(console_format))
        logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)
        file_format = "%(asctime)s [%(levelname)s] %(name)s:%(lineno)d: %(message)s"
        file_handler.setFormatter(SecretMaskingFormatter(file_format))
        logger.addHandler(file_handler)

    return logger
