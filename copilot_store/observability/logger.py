"""
Logger configuration.

Installs one stdout handler on the root logger for hosts that do not set up
logging themselves, and keeps driver and HTTP client chatter at WARNING.

Dependencies: logging (stdlib), copilot_store.configs
System role: Centralized logging configuration
"""

import logging
import sys

from copilot_store.configs import get_settings

_NOISY_LOGGERS = ("sqlalchemy.engine", "sqlalchemy.pool", "aiosqlite", "asyncpg", "httpx", "httpcore")


def configure_logging(level: str | None = None) -> None:
    """
    Route all records to stdout with timestamps.

    Args:
        level: Root level name; defaults to the configured log_level
    """
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    root_logger.addHandler(handler)
    root_logger.setLevel((level or get_settings().log_level).upper())

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Return the module logger for ``name`` (usually __name__)."""
    return logging.getLogger(name)
