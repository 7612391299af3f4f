"""HTTP dispatch sink - publishes notifications to a pub/sub endpoint.

Each notification becomes one request:

    PUT {base_url}/{topic}
    Title: <title>                     (only when non-empty)
    Authorization: Bearer <token>      (only when the address carried one)

    <body bytes>

Architecture: Hexagonal - adapter implementing DispatchSinkPort
"""

import base64
import logging
import re
from typing import Dict, Optional

import httpx

from ...domain.notifications.errors import DispatchError
from ...domain.notifications.models import Notification
from ...domain.notifications.ports import DispatchSinkPort

logger = logging.getLogger(__name__)

TOPIC_PATTERN = re.compile(r"^[-_A-Za-z0-9]{1,64}$")


def is_valid_topic(topic: str) -> bool:
    """Topic naming rule of the pub/sub endpoint: 1-64 of [-_A-Za-z0-9]."""
    return bool(TOPIC_PATTERN.match(topic))


def encode_header_value(value: str) -> str:
    """Make a header value safe for HTTP.

    Printable ASCII passes unchanged; anything else becomes a single
    RFC 2047 encoded-word, which the pub/sub server decodes.

    Example:
        >>> encode_header_value("caf\u00e9")
        '=?UTF-8?B?Y2Fmw6k=?='
    """
    if value.isascii() and value.isprintable():
        return value
    encoded = base64.b64encode(value.encode("utf-8")).decode("ascii")
    return f"=?UTF-8?B?{encoded}?="


class HttpPublisher(DispatchSinkPort):
    """Dispatch sink using httpx.AsyncClient.

    Example:
        publisher = HttpPublisher(base_url="http://localhost:8080")
        await publisher.send(Notification(topic="mytopic", title="", body="hi"))
        await publisher.close()

    Args:
        base_url: Root URL of the pub/sub server
        timeout: Request timeout in seconds
        transport: Optional httpx transport (tests pass httpx.MockTransport)
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    def is_valid_topic(self, topic: str) -> bool:
        return is_valid_topic(topic)

    def _headers(self, notification: Notification) -> Dict[str, str]:
        headers = {"Content-Type": "text/plain; charset=utf-8"}
        if notification.title:
            headers["Title"] = encode_header_value(notification.title)
        if notification.token:
            headers["Authorization"] = f"Bearer {notification.token}"
        return headers

    async def send(self, notification: Notification) -> None:
        """Publish one notification.

        Raises:
            DispatchError: Transport failure or any status other than 200
        """
        url = f"{self.base_url}/{notification.topic}"
        try:
            response = await self._client.put(
                url,
                content=notification.payload,
                headers=self._headers(notification),
            )
        except httpx.TimeoutException as e:
            logger.error(f"Publish to {url} timed out")
            raise DispatchError("publish timed out") from e
        except httpx.HTTPError as e:
            logger.error(f"Publish to {url} failed: {e}")
            raise DispatchError(f"publish failed: {e}") from e

        if response.status_code != 200:
            error_text = response.text.strip()
            logger.error(f"Publish to {url} returned HTTP {response.status_code}: {error_text[:200]}")
            raise DispatchError(f"HTTP {response.status_code}: {error_text[:200]}")

        logger.debug(f"Published to {url}")

    async def close(self) -> None:
        await self._client.aclose()
