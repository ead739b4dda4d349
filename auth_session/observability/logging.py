"""
Structured Logging Module

This module provides structured JSON logging with session ID support.

Pattern: Structured logging for observability
Pattern: Singleton configuration (configure once at startup)

Credential material (access, refresh and ID tokens) must never be passed to
these loggers; log the session ID instead.
"""

import contextvars
import logging
import sys
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Generator, Optional, TextIO

import structlog
from structlog.types import EventDict, Processor


_configured: bool = False


# =============================================================================
# Session ID Context
# =============================================================================

_session_id_var: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "session_id", default=None
)


def set_session_id(session_id: str) -> None:
    """
    Set the session ID for the current context.

    Args:
        session_id: Identifier of the session being operated on
    """
    _session_id_var.set(session_id)


def get_session_id() -> Optional[str]:
    """Get the current session ID, or None if unset."""
    return _session_id_var.get()


def clear_session_id() -> None:
    """Clear the session ID for the current context."""
    _session_id_var.set(None)


@contextmanager
def session_log_context(session_id: Optional[str]) -> Generator[None, None, None]:
    """
    Context manager that tags every log line inside it with a session ID.

    Args:
        session_id: Identifier of the session, or None to leave logs untagged

    Example:
        >>> with session_log_context(session.id):
        ...     logger.info("refresh_started")
    """
    token = _session_id_var.set(session_id)
    try:
        yield
    finally:
        _session_id_var.reset(token)


# =============================================================================
# Custom Processors
# =============================================================================


def add_session_id(
    logger: logging.Logger, _method_name: str, event_dict: EventDict
) -> EventDict:
    """Add session ID to log event if set and not already bound."""
    session_id = get_session_id()
    if session_id is not None:
        event_dict.setdefault("session_id", session_id)
    return event_dict


def add_timestamp(
    logger: logging.Logger, _method_name: str, event_dict: EventDict
) -> EventDict:
    """Add ISO 8601 timestamp to log event."""
    event_dict["timestamp"] = datetime.now(timezone.utc).isoformat()
    return event_dict


def rename_level(
    logger: logging.Logger, _method_name: str, event_dict: EventDict
) -> EventDict:
    """Rename log_level to level for cleaner output."""
    if "log_level" in event_dict:
        event_dict["level"] = event_dict.pop("log_level")
    return event_dict


def rename_logger_name(
    logger: logging.Logger, _method_name: str, event_dict: EventDict
) -> EventDict:
    """Rename logger_name (bound by get_logger) to logger."""
    if "logger_name" in event_dict:
        event_dict["logger"] = event_dict.pop("logger_name")
    return event_dict


# =============================================================================
# Singleton Configuration
# =============================================================================


def configure_logging(
    level: str = "INFO",
    stream: Optional[TextIO] = None,
    force: bool = False,
) -> None:
    """
    Configure structlog for the application.

    This should be called once at application startup. Subsequent calls
    are no-ops unless force=True.

    Args:
        level: Default log level (DEBUG, INFO, WARNING, ERROR)
        stream: Output stream (default: sys.stdout)
        force: Force reconfiguration (for testing only)
    """
    global _configured

    if _configured and not force:
        return

    processors: list[Processor] = [
        structlog.stdlib.add_log_level,
        add_timestamp,
        add_session_id,
        rename_level,
        rename_logger_name,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer(),
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(_level_to_int(level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream or sys.stdout),
        cache_logger_on_first_use=False,
    )

    _configured = True


def reset_logging() -> None:
    """
    Reset logging configuration state.

    WARNING: This should only be used in tests.
    """
    global _configured
    _configured = False
    structlog.reset_defaults()


# =============================================================================
# Logger Factory
# =============================================================================


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Get a structured logger with its name bound as context.

    Loggers are lazy: configuration is resolved on first use, so module-level
    loggers pick up a later configure_logging() call. The name is bound as
    logger_name (structlog reserves the logger keyword) and emitted as
    "logger" by rename_logger_name.

    Args:
        name: Logger name (typically module name)

    Returns:
        structlog BoundLogger

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("session_started", remember_me=True)
    """
    return structlog.get_logger(name, logger_name=name)


def _level_to_int(level: str) -> int:
    """Convert level string to logging int."""
    levels = {
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "WARNING": logging.WARNING,
        "ERROR": logging.ERROR,
        "CRITICAL": logging.CRITICAL,
    }
    return levels.get(level.upper(), logging.INFO)
