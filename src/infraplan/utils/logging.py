"""Structured logging setup for infraplan."""

import logging
import sys
from typing import Optional


def setup_logging(level: int = logging.INFO, format_string: Optional[str] = None) -> logging.Logger:
    """
    Set up structured logging for infraplan.

    Args:
        level: Logging level (default: INFO)
        format_string: Custom format string (optional)

    Returns:
        Configured logger instance
    """
    if format_string is None:
        format_string = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=level,
        format=format_string,
        stream=sys.stderr,
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    logger = logging.getLogger("infraplan")
    logger.setLevel(level)
    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance for a specific module."""
    return logging.getLogger(f"infraplan.{name}")


# set by CLI flags; a configured log_level does not override them
_flag_level: Optional[int] = None


def set_flag_level(level: Optional[int]) -> None:
    """Pin the infraplan log level from a command-line flag (None releases it)."""
    global _flag_level
    _flag_level = level
    if level is not None:
        logging.getLogger("infraplan").setLevel(level)


def apply_config_level(level_name: str) -> None:
    """Apply the configured log level unless a command-line flag pinned one."""
    if _flag_level is not None:
        return
    logging.getLogger("infraplan").setLevel(level_name.upper())
