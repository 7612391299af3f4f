"""SessionState state machine for one SMTP mail transaction.

State flow:
IDLE → HAS_SENDER → HAS_RECIPIENT → DONE
HAS_RECIPIENT → HAS_RECIPIENT (additional RCPT)
DONE → HAS_SENDER (next message on the same connection)
Any state → IDLE on RSET (handled by reset(), not by the table)
"""

from enum import Enum
from typing import Dict, List


class SessionState(str, Enum):
    """Progress of the current mail transaction."""
    IDLE = "IDLE"                    # Connected, no MAIL yet
    HAS_SENDER = "HAS_SENDER"        # MAIL accepted
    HAS_RECIPIENT = "HAS_RECIPIENT"  # At least one RCPT resolved to a topic
    DONE = "DONE"                    # DATA published


ALLOWED_TRANSITIONS: Dict[SessionState, List[SessionState]] = {
    SessionState.IDLE: [SessionState.HAS_SENDER],
    SessionState.HAS_SENDER: [SessionState.HAS_RECIPIENT],
    SessionState.HAS_RECIPIENT: [SessionState.HAS_RECIPIENT, SessionState.DONE],
    SessionState.DONE: [SessionState.HAS_SENDER],
}


def can_transition(from_state: SessionState, to_state: SessionState) -> bool:
    """Validate if a state transition is allowed.

    Example:
        >>> can_transition(SessionState.IDLE, SessionState.HAS_SENDER)
        True
        >>> can_transition(SessionState.HAS_SENDER, SessionState.DONE)
        False
    """
    return to_state in ALLOWED_TRANSITIONS.get(from_state, [])
