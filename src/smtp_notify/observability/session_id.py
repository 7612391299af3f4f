"""SMTP session ID management for log correlation.

The SMTP handler sets the id of the session it is serving; every log record
emitted while handling that command carries it.
"""

from contextvars import ContextVar
from typing import Optional

# Context variable for session_id (async-safe)
session_id_var: ContextVar[Optional[str]] = ContextVar("session_id", default=None)


def get_session_id() -> str:
    """Get current SMTP session ID from context.

    Returns:
        str: Current session ID or "no-session" if not set
    """
    return session_id_var.get() or "no-session"


def set_session_id(session_id: Optional[str]) -> None:
    """Set SMTP session ID in current context.

    Args:
        session_id: Session ID to set (None clears it)
    """
    session_id_var.set(session_id)
