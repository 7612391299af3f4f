"""Value objects shared by the notification pipeline."""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional, Tuple, Union


@dataclass(frozen=True)
class TopicPolicy:
    """Per-process recipient policy.

    Attributes:
        domain: Domain every recipient address must use (e.g. 'ntfy.sh')
        prefix: Optional local-part prefix stripped before the topic
            (e.g. 'ntfy-' for 'ntfy-mytopic@ntfy.sh')
    """
    domain: str
    prefix: str = ""


@dataclass(frozen=True)
class Anonymous:
    """Identity of a session that never authenticated."""

    @property
    def is_authenticated(self) -> bool:
        return False


@dataclass(frozen=True)
class Authenticated:
    """Identity of a session that logged in as `username`."""
    username: str

    @property
    def is_authenticated(self) -> bool:
        return True


SessionIdentity = Union[Anonymous, Authenticated]


@dataclass(frozen=True)
class ConnectionInfo:
    """Connection metadata supplied by the protocol engine."""
    remote_addr: str
    hostname: Optional[str] = None


@dataclass(frozen=True)
class ParsedMessage:
    """Immutable MIME tree handed to the body extractor.

    A single-part message carries `body` (transfer-decoded bytes) and no
    `parts`; a multipart message carries its sub-parts in document order.

    Attributes:
        headers: Raw header values keyed by lower-cased name (last one wins)
        content_type: Lower-cased media type, '' if the header was missing
        params: Content-Type parameters keyed by lower-cased name
        body: Transfer-decoded payload of a single part
        parts: Sub-parts of a multipart message
    """
    headers: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    content_type: str = ""
    params: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    body: Optional[bytes] = None
    parts: Tuple["ParsedMessage", ...] = ()

    def header(self, name: str) -> Optional[str]:
        """Case-insensitive header lookup."""
        return self.headers.get(name.lower())

    @property
    def charset(self) -> Optional[str]:
        return self.params.get("charset")

    @property
    def is_multipart(self) -> bool:
        return self.content_type.startswith("multipart/")


@dataclass(frozen=True)
class Notification:
    """Outcome of one DATA command, ready for the dispatch sink.

    `body` may hold lone surrogates when truncation split a multi-byte
    character; use `payload` to get the exact bytes to publish.
    """
    topic: str
    title: str
    body: str
    token: Optional[str] = None

    @property
    def payload(self) -> bytes:
        return self.body.encode("utf-8", errors="surrogateescape")
