"""MIME parser adapter: raw RFC 5322 bytes → immutable ParsedMessage tree.

Uses the stdlib email package with policy.default. Header values are kept
raw (encoded-words are decoded later by the header normalizer); bodies are
transfer-decoded (base64, quoted-printable) but not charset-decoded.

Architecture: Hexagonal - adapter implementing MessageParserPort
"""

import email
import email.policy
import logging
from email import errors as email_errors
from email.message import Message
from email.utils import collapse_rfc2231_value
from types import MappingProxyType
from typing import Dict

from ...domain.notifications.errors import ParseError
from ...domain.notifications.models import ParsedMessage
from ...domain.notifications.ports import MessageParserPort

logger = logging.getLogger(__name__)

MAX_PART_DEPTH = 50

# Defects that leave the MIME tree unreadable; everything else is tolerated
FATAL_DEFECTS = (
    email_errors.NoBoundaryInMultipartDefect,
    email_errors.StartBoundaryNotFoundDefect,
    email_errors.MultipartInvariantViolationDefect,
)


def parse_mime_message(raw_mime: bytes) -> Message:
    """Parse raw MIME bytes into an email.Message object.

    Args:
        raw_mime: Raw MIME message bytes

    Returns:
        email.Message: Parsed MIME message

    Raises:
        ParseError: If parsing fails or the multipart structure is broken
    """
    try:
        msg = email.message_from_bytes(raw_mime, policy=email.policy.default)
    except Exception as e:
        logger.error(f"Failed to parse MIME message: {e}")
        raise ParseError(f"invalid MIME message: {e}") from e

    for part in msg.walk():
        for defect in part.defects:
            if isinstance(defect, FATAL_DEFECTS):
                logger.warning(f"Rejecting message with MIME defect: {defect.__class__.__name__}")
                raise ParseError(f"invalid MIME message: {defect.__class__.__name__}")

    return msg


def _restore_header(value: str) -> str:
    # BytesParser keeps 8-bit header bytes as surrogate escapes
    return value.encode("utf-8", errors="surrogateescape").decode("utf-8", errors="replace")


def _headers(msg: Message) -> Dict[str, str]:
    headers: Dict[str, str] = {}
    for name, value in msg.raw_items():
        headers[name.lower()] = _restore_header(str(value))
    return headers


def _content_type_params(msg: Message) -> Dict[str, str]:
    params = msg.get_params() or []
    return {
        str(key).lower(): collapse_rfc2231_value(value)
        for key, value in params[1:]
    }


def to_parsed_message(msg: Message, depth: int = 0) -> ParsedMessage:
    """Convert an email.Message (and its sub-parts) into a ParsedMessage.

    Args:
        msg: Parsed email message or sub-part
        depth: Current nesting level

    Returns:
        ParsedMessage: Immutable tree mirroring the MIME structure

    Raises:
        ParseError: If parts are nested deeper than MAX_PART_DEPTH
    """
    if depth > MAX_PART_DEPTH:
        raise ParseError("MIME parts nested too deep")

    headers = _headers(msg)
    content_type = msg.get_content_type() if "content-type" in headers else ""

    if msg.is_multipart():
        parts = tuple(to_parsed_message(part, depth + 1) for part in msg.get_payload())
        body = None
    else:
        parts = ()
        body = msg.get_payload(decode=True) or b""

    return ParsedMessage(
        headers=MappingProxyType(headers),
        content_type=content_type,
        params=MappingProxyType(_content_type_params(msg)),
        body=body,
        parts=parts,
    )


class EmailMessageParser(MessageParserPort):
    """MessageParserPort backed by the stdlib email package."""

    def parse(self, raw: bytes) -> ParsedMessage:
        return to_parsed_message(parse_mime_message(raw))
