"""Selects the human-readable text of a parsed email.

Selection rules:
- text/plain (or no Content-Type at all): the decoded part is the body
- text/html: markup stripped to visible text
- multipart/*: the first text/plain part in document order wins, even if it
  is empty; the first text/html part is used only when no text/plain part
  exists anywhere in the tree
- anything else: UnsupportedContentType
"""

import codecs
import logging
from typing import Callable, Optional, Tuple

from .errors import ParseError, UnsupportedContentType
from .html_text import html_to_text
from .models import ParsedMessage

logger = logging.getLogger(__name__)

TEXT_PLAIN = "text/plain"
TEXT_HTML = "text/html"
DEFAULT_CHARSET = "utf-8"
MAX_MULTIPART_DEPTH = 10


def decode_text(part: ParsedMessage) -> str:
    """Decode a single part's payload with its declared charset.

    Missing and US-ASCII charsets decode as UTF-8 (a superset of ASCII);
    unknown charsets fall back to UTF-8. Undecodable bytes are replaced.
    """
    payload = part.body or b""
    charset = part.charset or DEFAULT_CHARSET
    try:
        if codecs.lookup(charset).name == "ascii":
            charset = DEFAULT_CHARSET
        return payload.decode(charset, errors="replace")
    except LookupError:
        logger.warning(f"Unknown charset {charset!r}, decoding as {DEFAULT_CHARSET}")
        return payload.decode(DEFAULT_CHARSET, errors="replace")


def _effective_type(part: ParsedMessage) -> str:
    return part.content_type or TEXT_PLAIN


def _is_attachment(part: ParsedMessage) -> bool:
    disposition = part.header("Content-Disposition") or ""
    return disposition.strip().lower().startswith("attachment")


class BodyExtractor:
    """Extracts plain text from a ParsedMessage.

    Args:
        html_converter: Turns an HTML body into visible text
    """

    def __init__(self, html_converter: Callable[[str], str] = html_to_text):
        self.html_converter = html_converter

    def extract(self, message: ParsedMessage) -> str:
        """Return the best available text of `message`.

        Returns:
            str: Decoded text, possibly empty

        Raises:
            UnsupportedContentType: No text/plain or text/html content
            ParseError: Multipart nesting deeper than MAX_MULTIPART_DEPTH
        """
        content_type = _effective_type(message)

        if content_type == TEXT_PLAIN:
            return decode_text(message)
        if content_type == TEXT_HTML:
            return self.html_converter(decode_text(message))
        if message.is_multipart:
            plain, html = self._find_text_parts(message, depth=0)
            if plain is not None:
                return decode_text(plain)
            if html is not None:
                logger.debug("No text/plain alternative, falling back to text/html")
                return self.html_converter(decode_text(html))
            logger.info(f"Multipart message ({content_type}) without text parts")

        raise UnsupportedContentType()

    def _find_text_parts(
        self,
        message: ParsedMessage,
        depth: int,
    ) -> Tuple[Optional[ParsedMessage], Optional[ParsedMessage]]:
        """Depth-first search for the first text/plain and text/html parts.

        Returns as soon as a text/plain part is found, since it always wins.
        """
        if depth >= MAX_MULTIPART_DEPTH:
            raise ParseError("multipart nesting too deep")

        first_html = None
        for part in message.parts:
            if part.is_multipart:
                plain, html = self._find_text_parts(part, depth + 1)
                if plain is not None:
                    return plain, None
                if first_html is None:
                    first_html = html
                continue

            if _is_attachment(part):
                continue

            content_type = _effective_type(part)
            if content_type == TEXT_PLAIN:
                return part, None
            if content_type == TEXT_HTML and first_html is None:
                first_html = part

        return None, first_html
