"""
Observability module.

Provides logging configuration and safe structured-logging helpers.
"""

from copilot_store.observability.logger import configure_logging, get_logger

__all__ = ["configure_logging", "get_logger"]
