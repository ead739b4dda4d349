"""
Observability package: structured logging and Prometheus counters.
"""

from auth_session.observability.logging import (
    clear_session_id,
    configure_logging,
    get_logger,
    get_session_id,
    reset_logging,
    session_log_context,
    set_session_id,
)
from auth_session.observability.metrics import (
    generate_metrics,
    record_provider_call,
    record_refresh,
    record_teardown_failure,
    record_transition,
)

__all__ = [
    "clear_session_id",
    "configure_logging",
    "get_logger",
    "get_session_id",
    "reset_logging",
    "session_log_context",
    "set_session_id",
    "generate_metrics",
    "record_provider_call",
    "record_refresh",
    "record_teardown_failure",
    "record_transition",
]
