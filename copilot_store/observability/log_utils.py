"""
Logging utilities for safe structured logging.

Keeps embeddings and document bodies out of log lines: vectors and other
sequences are logged as their length, documents as their id, strings are
truncated.

Dependencies: logging (stdlib), numpy
System role: Logging helper functions
"""

import logging
from typing import Any

import numpy as np

from copilot_store.core.partition_key import PartitionScope


def safe_log_value(value: Any, max_length: int = 200) -> str:
    """
    Safely convert any value to a string for logging.

    Args:
        value: Value to convert
        max_length: Maximum length before truncating

    Returns:
        str: Safe string representation
    """
    try:
        if value is None:
            return "None"
        if isinstance(value, str):
            val_str = value
        elif isinstance(value, PartitionScope):
            val_str = str(value)
        elif isinstance(value, np.ndarray):
            val_str = f"vector({value.size} dims)"
        elif isinstance(value, (list, tuple)):
            val_str = f"{type(value).__name__}({len(value)} items)"
        elif isinstance(value, dict):
            val_str = f"document(id={value['id']})" if "id" in value else f"dict({len(value)} keys)"
        else:
            val_str = str(value)

        if len(val_str) > max_length:
            return val_str[:max_length] + f"... (truncated, {len(val_str)} total)"
        return val_str
    except Exception as e:
        return f"<unable to log: {type(e).__name__}>"


def format_context(**context: Any) -> str:
    """Render ``key=value`` pairs with every value passed through safe_log_value."""
    return " ".join(f"{key}={safe_log_value(val)}" for key, val in context.items())


def log_with_context(
    logger: logging.Logger,
    level: int,
    message: str,
    **context: Any,
) -> None:
    """
    Log a message followed by its safely rendered context.

    Args:
        logger: Logger instance
        level: Log level (logging.INFO, etc.)
        message: Log message
        **context: Arbitrary key-value pairs (scopes, ids, vectors)
    """
    if not logger.isEnabledFor(level):
        return
    if context:
        message = f"{message} | {format_context(**context)}"
    logger.log(level, message)


def log_exception_with_context(
    logger: logging.Logger,
    message: str,
    exc: Exception,
    **context: Any,
) -> None:
    """
    Log an exception with its type, message and context.

    Args:
        logger: Logger instance
        message: Log message
        exc: Exception instance
        **context: Additional key-value pairs
    """
    context.update({"error_type": type(exc).__name__, "error_msg": str(exc)})
    logger.error(f"{message} | {format_context(**context)}", exc_info=exc)
