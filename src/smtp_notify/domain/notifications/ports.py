"""Ports for the collaborators the notification pipeline depends on.

Architecture: Hexagonal - port interfaces in the domain layer, adapters live
under infrastructure/.
"""

from abc import ABC, abstractmethod

from .models import Notification, ParsedMessage


class DispatchSinkPort(ABC):
    """Publishes a finished notification to the pub/sub endpoint.

    The sink also owns the topic naming rule, since the endpoint is the one
    that ultimately accepts or refuses a topic.
    """

    @abstractmethod
    async def send(self, notification: Notification) -> None:
        """Publish one notification.

        Args:
            notification: Topic, title, body and optional access token

        Raises:
            DispatchError: If the endpoint did not accept the message
        """
        pass

    @abstractmethod
    def is_valid_topic(self, topic: str) -> bool:
        """Check a topic name against the endpoint's naming rule."""
        pass


class MessageParserPort(ABC):
    """Turns raw RFC 5322 bytes into an immutable ParsedMessage tree."""

    @abstractmethod
    def parse(self, raw: bytes) -> ParsedMessage:
        """Parse a raw message.

        Raises:
            ParseError: If the message structure cannot be read
        """
        pass
