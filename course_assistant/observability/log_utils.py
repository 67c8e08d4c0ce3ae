"""
Logging utilities for safe structured logging.

Provides helpers for logging with structured context and for turning
exceptions into a short summary plus full diagnostic detail, the shape
used for failures reported across the process boundary.

Dependencies: logging, traceback (stdlib)
System role: Logging helper functions
"""

import logging
import traceback
from typing import Any


def safe_log_value(value: Any, max_length: int = 500) -> str:
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
        elif isinstance(value, (list, tuple, set)):
            val_str = f"{type(value).__name__}({len(value)} items)"
        elif isinstance(value, dict):
            val_str = f"dict({len(value)} keys)"
        else:
            val_str = str(value)

        if len(val_str) > max_length:
            return val_str[:max_length] + f"... (truncated, {len(val_str)} total)"
        return val_str
    except Exception as e:
        return f"<unable to log: {type(e).__name__}>"


def log_with_context(
    logger: logging.Logger,
    level: int,
    message: str,
    **context,
) -> None:
    """
    Log a message with structured context, safely converting all values.

    Args:
        logger: Logger instance
        level: Log level (logging.INFO, etc.)
        message: Log message
        **context: Context dict with arbitrary key-value pairs
    """
    safe_context = {key: safe_log_value(val) for key, val in context.items()}
    logger.log(level, message, extra=safe_context)


def log_exception_with_context(
    logger: logging.Logger,
    message: str,
    exc: BaseException,
    **context,
) -> None:
    """
    Log an exception with full context.

    Args:
        logger: Logger instance
        message: Log message
        exc: Exception instance
        **context: Additional context dict
    """
    safe_context = {key: safe_log_value(val) for key, val in context.items()}
    safe_context.update({
        "error_type": type(exc).__name__,
        "error_msg": str(exc),
    })
    logger.error(message, exc_info=exc, extra=safe_context)


def describe_exception(exc: BaseException, max_summary: int = 200) -> tuple[str, str]:
    """
    Split an exception into a human-readable summary and diagnostic detail.

    Args:
        exc: Exception to describe
        max_summary: Maximum summary length

    Returns:
        tuple[str, str]: (summary, detail) where detail holds the traceback
    """
    summary = safe_log_value(f"{type(exc).__name__}: {exc}", max_length=max_summary)
    detail = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return summary, detail
