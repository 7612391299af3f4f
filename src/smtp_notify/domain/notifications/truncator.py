"""Byte-exact body truncation."""

DEFAULT_MESSAGE_LIMIT = 4096


class Truncator:
    """Cuts bodies to at most `limit` UTF-8 bytes.

    The cut is made on bytes, not characters. A multi-byte character split at
    the boundary keeps its leading bytes as lone surrogates, so encoding the
    result with 'surrogateescape' yields exactly the first `limit` bytes.
    """

    def __init__(self, limit: int = DEFAULT_MESSAGE_LIMIT):
        if limit <= 0:
            raise ValueError(f"limit must be positive, got {limit}")
        self.limit = limit

    def truncate(self, body: str) -> str:
        encoded = body.encode("utf-8", errors="surrogateescape")
        if len(encoded) <= self.limit:
            return body
        return encoded[:self.limit].decode("utf-8", errors="surrogateescape")
