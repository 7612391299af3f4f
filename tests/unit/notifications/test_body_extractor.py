"""Unit tests for body selection and decoding."""

from types import MappingProxyType

import pytest

from smtp_notify.domain.notifications import (
    BodyExtractor,
    ParsedMessage,
    ParseError,
    UnsupportedContentType,
    decode_text,
)
from smtp_notify.domain.notifications.body_extractor import MAX_MULTIPART_DEPTH


def text_part(content_type: str, body: bytes, charset: str = None, **headers) -> ParsedMessage:
    params = {"charset": charset} if charset else {}
    return ParsedMessage(
        headers=MappingProxyType({k.replace("_", "-").lower(): v for k, v in headers.items()}),
        content_type=content_type,
        params=MappingProxyType(params),
        body=body,
    )


def multipart(subtype: str, *parts: ParsedMessage) -> ParsedMessage:
    return ParsedMessage(
        content_type=f"multipart/{subtype}",
        params=MappingProxyType({"boundary": "b"}),
        parts=tuple(parts),
    )


@pytest.fixture
def extractor():
    return BodyExtractor()


class TestDecodeText:
    """Test charset handling"""

    def test_default_charset_is_utf8(self):
        assert decode_text(text_part("text/plain", "Grüße".encode("utf-8"))) == "Grüße"

    def test_us_ascii_decodes_as_utf8(self):
        part = text_part("text/plain", "Grüße".encode("utf-8"), charset="us-ascii")
        assert decode_text(part) == "Grüße"

    def test_declared_charset(self):
        part = text_part("text/plain", "Grüße".encode("iso-8859-1"), charset="iso-8859-1")
        assert decode_text(part) == "Grüße"

    def test_unknown_charset_falls_back(self):
        part = text_part("text/plain", b"hello", charset="x-no-such-charset")
        assert decode_text(part) == "hello"

    def test_undecodable_bytes_replaced(self):
        part = text_part("text/plain", b"caf\xe9", charset="utf-8")
        assert decode_text(part) == "caf�"

    def test_missing_body(self):
        assert decode_text(ParsedMessage(content_type="text/plain")) == ""


class TestSinglePart:
    """Test single-part messages"""

    def test_text_plain(self, extractor):
        assert extractor.extract(text_part("text/plain", b"what's up\n")) == "what's up\n"

    def test_missing_content_type_is_plain(self, extractor):
        assert extractor.extract(text_part("", b"what's up")) == "what's up"

    def test_text_html_is_stripped(self, extractor):
        part = text_part("text/html", b"<p>Hello <b>world</b> &amp; all</p>")
        assert extractor.extract(part) == "Hello world & all"

    def test_unsupported_type(self, extractor):
        with pytest.raises(UnsupportedContentType):
            extractor.extract(text_part("text/somethingelse", b"what's up"))

    def test_non_text_type(self, extractor):
        with pytest.raises(UnsupportedContentType):
            extractor.extract(text_part("application/pdf", b"%PDF-1.4"))

    def test_empty_plain_is_not_an_error(self, extractor):
        assert extractor.extract(text_part("text/plain", b"")) == ""


class TestMultipart:
    """Test multipart selection rules"""

    def test_plain_preferred_over_html(self, extractor):
        message = multipart(
            "alternative",
            text_part("text/plain", b"plain version"),
            text_part("text/html", b"<p>html version</p>"),
        )
        assert extractor.extract(message) == "plain version"

    def test_plain_wins_even_when_listed_after_html(self, extractor):
        message = multipart(
            "alternative",
            text_part("text/html", b"<p>html version</p>"),
            text_part("text/plain", b"plain version"),
        )
        assert extractor.extract(message) == "plain version"

    def test_empty_plain_wins_over_html(self, extractor):
        message = multipart(
            "alternative",
            text_part("text/plain", b"\n\n"),
            text_part("text/html", b"<p>html version</p>"),
        )
        assert extractor.extract(message) == "\n\n"

    def test_first_plain_wins(self, extractor):
        message = multipart(
            "alternative",
            text_part("text/plain", b"first"),
            text_part("text/plain", b"second"),
        )
        assert extractor.extract(message) == "first"

    def test_html_fallback(self, extractor):
        message = multipart(
            "alternative",
            text_part("text/html", b"<div dir=\"ltr\">what&#39;s up<br clear=\"all\"><div><br></div></div>"),
        )
        assert extractor.extract(message) == "what's up"

    def test_nested_mixed_with_alternative(self, extractor):
        message = multipart(
            "mixed",
            multipart(
                "alternative",
                text_part("text/plain", b"nested plain"),
                text_part("text/html", b"<p>nested html</p>"),
            ),
            text_part("application/pdf", b"%PDF-1.4"),
        )
        assert extractor.extract(message) == "nested plain"

    def test_nested_plain_beats_earlier_html(self, extractor):
        message = multipart(
            "mixed",
            text_part("text/html", b"<p>outer html</p>"),
            multipart("alternative", text_part("text/plain", b"inner plain")),
        )
        assert extractor.extract(message) == "inner plain"

    def test_attached_text_file_skipped(self, extractor):
        message = multipart(
            "mixed",
            text_part("text/plain", b"notes.txt contents", content_disposition='attachment; filename="notes.txt"'),
            text_part("text/html", b"<p>the message</p>"),
        )
        assert extractor.extract(message) == "the message"

    def test_no_text_parts(self, extractor):
        message = multipart(
            "mixed",
            text_part("image/png", b"\x89PNG"),
            text_part("application/pdf", b"%PDF-1.4"),
        )
        with pytest.raises(UnsupportedContentType):
            extractor.extract(message)

    def test_empty_multipart(self, extractor):
        with pytest.raises(UnsupportedContentType):
            extractor.extract(multipart("alternative"))

    def test_depth_bound(self, extractor):
        message = text_part("text/plain", b"deep")
        for _ in range(MAX_MULTIPART_DEPTH + 1):
            message = multipart("mixed", message)
        with pytest.raises(ParseError):
            extractor.extract(message)

    def test_custom_html_converter(self):
        extractor = BodyExtractor(html_converter=lambda html: "converted")
        message = multipart("alternative", text_part("text/html", b"<p>x</p>"))
        assert extractor.extract(message) == "converted"
