"""Subject decoding and the empty-body title/body swap."""

import re
from email.errors import HeaderParseError
from email.header import decode_header, make_header
from typing import Optional, Tuple

from .errors import ParseError

_FOLDING_RE = re.compile(r"\r?\n(?=[ \t])")


def decode_subject(raw_subject: Optional[str]) -> str:
    """Decode RFC 2047 encoded-words in a raw Subject header.

    Example:
        >>> decode_subject("=?UTF-8?B?VGhyZWUgc2FudGFzIPCfjoXwn46F8J+OhQ==?=")
        'Three santas 🎅🎅🎅'

    Raises:
        ParseError: Malformed encoded-word or unknown charset
    """
    if not raw_subject:
        return ""
    unfolded = _FOLDING_RE.sub("", raw_subject).strip()
    try:
        return str(make_header(decode_header(unfolded)))
    except (HeaderParseError, LookupError, UnicodeError) as e:
        raise ParseError(f"cannot decode subject: {e}") from e


def normalize(raw_subject: Optional[str], extracted_body: str) -> Tuple[str, str]:
    """Build (title, body) from the raw Subject and the extracted text.

    If the body is empty after stripping, the subject becomes the body and
    the title stays empty: a subject-only email still yields visible text.
    """
    subject = decode_subject(raw_subject).strip()
    body = extracted_body.strip()
    if not body:
        return "", subject
    return subject, body
