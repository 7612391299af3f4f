"""HTML → visible text conversion used when a message has no plain-text part."""

import re

from bs4 import BeautifulSoup

_NON_CONTENT_TAGS = ["script", "style", "head", "title", "meta", "link", "noscript"]
_INLINE_WHITESPACE_RE = re.compile(r"[^\S\n]+")
_EDGE_SPACES_RE = re.compile(r"(?m)^ +| +$")
_EXTRA_NEWLINES_RE = re.compile(r"\n{3,}")


def html_to_text(html_body: str) -> str:
    """Strip markup from an HTML body and return its visible text.

    Tags are replaced by a space so adjacent words do not run together,
    entities are decoded, whitespace-only lines are blanked and runs of
    three or more newlines collapse to one empty line.

    Example:
        >>> html_to_text('<div dir="ltr">what&#39;s up<br><div><br></div></div>')
        "what's up"
    """
    if not html_body:
        return ""

    soup = BeautifulSoup(html_body, "html.parser")
    for tag in soup.find_all(_NON_CONTENT_TAGS):
        tag.decompose()

    text = soup.get_text(separator=" ")
    text = text.replace("\r\n", "\n").replace("\r", "\n").replace("\xa0", " ")
    text = _INLINE_WHITESPACE_RE.sub(" ", text)
    text = _EDGE_SPACES_RE.sub("", text)
    text = _EXTRA_NEWLINES_RE.sub("\n\n", text)
    return text.strip()
