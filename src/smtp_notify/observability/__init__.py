"""Observability module: structured logging, session correlation, metrics."""

from .logging_config import JSONFormatter, SessionIDFilter, configure_logging
from .metrics import (
    emails_received_total,
    notifications_published_total,
    recipients_rejected_total,
)
from .session_id import get_session_id, session_id_var, set_session_id

__all__ = [
    # Logging
    "JSONFormatter",
    "SessionIDFilter",
    "configure_logging",
    # Metrics
    "emails_received_total",
    "notifications_published_total",
    "recipients_rejected_total",
    # Session correlation
    "get_session_id",
    "session_id_var",
    "set_session_id",
]
