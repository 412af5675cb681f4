"""
Pocket Logging Configuration

Logs go to stderr so stdout carries only the output envelope.
"""

import os
import logging
import sys
from typing import Optional

from pocket_cli.registry.output import mask_secrets


def debug_enabled() -> bool:
    """Check the POCKET_DEBUG environment variable."""
    return os.environ.get("POCKET_DEBUG", "").lower() in ("1", "true", "yes")


class SecretMaskingFormatter(logging.Formatter):
    """Formatter that masks secrets in log messages."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        return mask_secrets(message)


def setup_logging(level: Optional[int] = None, debug: bool = False) -> logging.Logger:
    """Set up logging configuration.

    Args:
        level: Logging level (default: DEBUG in debug mode, else WARNING)
        debug: Force debug mode regardless of POCKET_DEBUG

    Returns:
        Configured logger
    """
    debug = debug or debug_enabled()
    if level is None:
        level = logging.DEBUG if debug else logging.WARNING

    logger = logging.getLogger("pocket_cli")
    logger.setLevel(level)
    logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)

    if debug:
        console_format = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    else:
        console_format = "%(levelname)s: %(message)s"

    console_handler.setFormatter(SecretMaskingFormatter(console_format))
    logger.addHandler(console_handler)

    return logger


def get_logger(name: str = "pocket_cli") -> logging.Logger:
    """Get a logger under the pocket_cli namespace.

    Args:
        name: Logger name (will be prefixed with 'pocket_cli.')

    Returns:
        Logger instance
    """
    if not name.startswith("pocket_cli"):
        name = f"pocket_cli.{name}"
    return logging.getLogger(name)
