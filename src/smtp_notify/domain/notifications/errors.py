"""Errors raised by the email-to-notification pipeline.

Every error is terminal for the single SMTP command that raised it; the
session stays usable. Each class carries the SMTP reply the protocol adapter
sends back to the mail client.
"""


class NotificationError(Exception):
    """Base exception for the notification pipeline."""

    smtp_code = 554
    enhanced_code = "5.0.0"
    default_message = "error"

    def __init__(self, message: str = ""):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message

    @property
    def smtp_reply(self) -> str:
        """Full SMTP reply line, e.g. '550 5.1.1 Error: invalid domain'."""
        return f"{self.smtp_code} {self.enhanced_code} Error: {self.message}"


class DomainMismatch(NotificationError):
    """Recipient domain does not match the configured domain."""

    smtp_code = 550
    enhanced_code = "5.1.1"
    default_message = "invalid domain"


class PrefixMismatch(NotificationError):
    """Recipient local part lacks the configured prefix."""

    smtp_code = 550
    enhanced_code = "5.1.1"
    default_message = "invalid address"


class InvalidTopic(NotificationError):
    """Resolved topic is empty or violates the topic naming rule."""

    smtp_code = 550
    enhanced_code = "5.1.1"
    default_message = "invalid topic"


class UnsupportedContentType(NotificationError):
    """Message has no plain-text or HTML content we can publish."""

    smtp_code = 554
    enhanced_code = "5.6.1"
    default_message = "unsupported content type"


class ParseError(NotificationError):
    """Raw message (or one of its headers) could not be parsed."""

    smtp_code = 554
    enhanced_code = "5.6.0"
    default_message = "malformed message"


class DispatchError(NotificationError):
    """Publishing the notification to the pub/sub endpoint failed."""

    smtp_code = 451
    enhanced_code = "4.3.0"
    default_message = "publish failed"


class CommandSequenceError(NotificationError):
    """SMTP command issued in a state that does not allow it."""

    smtp_code = 503
    enhanced_code = "5.5.1"
    default_message = "bad sequence of commands"
