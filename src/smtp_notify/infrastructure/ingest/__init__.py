"""Ingest adapters: aiosmtpd handler and MIME parser."""

from .mime_parser import EmailMessageParser, parse_mime_message, to_parsed_message
from .smtp_handler import NotifySMTPHandler

__all__ = [
    "EmailMessageParser",
    "NotifySMTPHandler",
    "parse_mime_message",
    "to_parsed_message",
]
