"""
Prometheus Metrics Module

Counters for session lifecycle observability. Nothing here is exposed over
HTTP; the host application decides how to publish generate_metrics().

Pattern: Metrics collection for observability
Pattern: Module-level collectors on the default registry, thin record_* helpers
"""

from prometheus_client import REGISTRY, Counter, generate_latest


# =============================================================================
# Session Lifecycle Counters
# =============================================================================

SESSION_TRANSITIONS_TOTAL = Counter(
    name="auth_session_transitions_total",
    documentation="Session state transitions",
    labelnames=["from_state", "to_state"],
)

REFRESH_TOTAL = Counter(
    name="auth_session_refresh_total",
    documentation="Session refresh attempts by outcome",
    labelnames=["outcome"],
)

TEARDOWN_FAILURES_TOTAL = Counter(
    name="auth_session_teardown_failures_total",
    documentation="Logout sub-steps that failed during local teardown",
    labelnames=["step"],
)

PROVIDER_CALLS_TOTAL = Counter(
    name="auth_session_provider_calls_total",
    documentation="Identity provider calls by operation and outcome",
    labelnames=["operation", "outcome"],
)


# =============================================================================
# Helper Functions
# =============================================================================


def record_transition(from_state: str, to_state: str) -> None:
    """Record a session state transition."""
    SESSION_TRANSITIONS_TOTAL.labels(from_state=from_state, to_state=to_state).inc()


def record_refresh(outcome: str) -> None:
    """
    Record a refresh outcome.

    Args:
        outcome: One of "success", "failure", "discarded"
    """
    REFRESH_TOTAL.labels(outcome=outcome).inc()


def record_teardown_failure(step: str) -> None:
    """Record a failed logout sub-step (e.g. "revoke", "clear_credentials")."""
    TEARDOWN_FAILURES_TOTAL.labels(step=step).inc()


def record_provider_call(operation: str, outcome: str) -> None:
    """
    Record an identity provider call.

    Args:
        operation: Provider operation name (login, refresh, revoke, ...)
        outcome: One of "success", "error", "timeout"
    """
    PROVIDER_CALLS_TOTAL.labels(operation=operation, outcome=outcome).inc()


def generate_metrics() -> str:
    """Render the default registry in Prometheus text format."""
    return generate_latest(REGISTRY).decode("utf-8")
