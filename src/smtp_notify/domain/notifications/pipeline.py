"""Raw message → Notification.

parse → extract body → normalize subject/body → truncate. Every stage either
succeeds or raises, so a Notification only exists when all of them passed.
"""

import logging
from typing import Optional

from .body_extractor import BodyExtractor
from .header_normalizer import normalize
from .models import Notification
from .ports import MessageParserPort
from .truncator import Truncator

logger = logging.getLogger(__name__)


class NotificationPipeline:
    """Builds notifications from raw RFC 5322 bytes.

    Args:
        parser: MIME parser adapter
        extractor: Body extractor
        truncator: Byte-budget truncator
    """

    def __init__(
        self,
        parser: MessageParserPort,
        extractor: BodyExtractor,
        truncator: Truncator,
    ):
        self.parser = parser
        self.extractor = extractor
        self.truncator = truncator

    def build(self, topic: str, raw: bytes, token: Optional[str] = None) -> Notification:
        """Turn one raw message into a Notification for `topic`.

        Raises:
            ParseError: Malformed message or subject
            UnsupportedContentType: No usable text in the message
        """
        message = self.parser.parse(raw)
        extracted = self.extractor.extract(message)
        title, body = normalize(message.header("Subject"), extracted)

        truncated = self.truncator.truncate(body)
        if truncated is not body:
            logger.info(
                f"Body for topic {topic} truncated to {self.truncator.limit} bytes"
            )

        return Notification(topic=topic, title=title, body=truncated, token=token)
