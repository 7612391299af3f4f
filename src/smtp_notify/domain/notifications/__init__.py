"""Notifications domain module - recipient resolution, body extraction, SMTP session flow"""

from .body_extractor import BodyExtractor, decode_text
from .errors import (
    CommandSequenceError,
    DispatchError,
    DomainMismatch,
    InvalidTopic,
    NotificationError,
    ParseError,
    PrefixMismatch,
    UnsupportedContentType,
)
from .header_normalizer import decode_subject, normalize
from .html_text import html_to_text
from .models import (
    Anonymous,
    Authenticated,
    ConnectionInfo,
    Notification,
    ParsedMessage,
    SessionIdentity,
    TopicPolicy,
)
from .pipeline import NotificationPipeline
from .ports import DispatchSinkPort, MessageParserPort
from .session import NotificationSession, SmtpBackend
from .session_state import ALLOWED_TRANSITIONS, SessionState, can_transition
from .topic_resolver import ResolvedRecipient, TopicResolver
from .truncator import DEFAULT_MESSAGE_LIMIT, Truncator

__all__ = [
    "ALLOWED_TRANSITIONS",
    "Anonymous",
    "Authenticated",
    "BodyExtractor",
    "CommandSequenceError",
    "ConnectionInfo",
    "DEFAULT_MESSAGE_LIMIT",
    "DispatchError",
    "DispatchSinkPort",
    "DomainMismatch",
    "InvalidTopic",
    "MessageParserPort",
    "Notification",
    "NotificationError",
    "NotificationPipeline",
    "NotificationSession",
    "ParseError",
    "ParsedMessage",
    "PrefixMismatch",
    "ResolvedRecipient",
    "SessionIdentity",
    "SessionState",
    "SmtpBackend",
    "TopicPolicy",
    "TopicResolver",
    "Truncator",
    "UnsupportedContentType",
    "can_transition",
    "decode_subject",
    "decode_text",
    "html_to_text",
    "normalize",
]
