"""Pytest fixtures for the SMTP notify bridge.

Provides reusable test fixtures for:
- The default recipient policy (domain 'ntfy.sh', prefix 'ntfy-')
- A spy dispatch sink recording every published notification
- An SmtpBackend wired with the real MIME parser

Usage:
    @pytest.mark.asyncio
    async def test_publish(backend, sink, conn):
        session = backend.anonymous_login(conn)
        ...
        sink.send.assert_awaited_once()
"""

import os
import sys
from pathlib import Path
from unittest.mock import AsyncMock, Mock

# Settings require these; set them BEFORE importing the package
os.environ.setdefault("SMTP_DOMAIN", "ntfy.sh")
os.environ.setdefault("PUBLISH_BASE_URL", "http://localhost:8080")

import pytest

src_dir = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_dir))

from smtp_notify.domain.notifications import (
    ConnectionInfo,
    DispatchSinkPort,
    Notification,
    SmtpBackend,
    TopicPolicy,
)
from smtp_notify.infrastructure.dispatch.http_publisher import is_valid_topic
from smtp_notify.infrastructure.ingest.mime_parser import EmailMessageParser


TEST_DOMAIN = "ntfy.sh"
TEST_PREFIX = "ntfy-"


@pytest.fixture
def policy() -> TopicPolicy:
    """Recipient policy used by most tests."""
    return TopicPolicy(domain=TEST_DOMAIN, prefix=TEST_PREFIX)


@pytest.fixture
def sink():
    """Spy dispatch sink: records notifications, applies the real topic rule."""
    spy = Mock(spec=DispatchSinkPort)
    spy.send = AsyncMock(return_value=None)
    spy.is_valid_topic.side_effect = is_valid_topic
    return spy


@pytest.fixture
def conn() -> ConnectionInfo:
    """Connection metadata of a fake client."""
    return ConnectionInfo(remote_addr="1.2.3.4", hostname="myhostname")


@pytest.fixture
def backend(policy, sink) -> SmtpBackend:
    """SmtpBackend with prefix 'ntfy-' and the stdlib MIME parser."""
    return SmtpBackend(policy=policy, sink=sink, parser=EmailMessageParser())


@pytest.fixture
def backend_no_prefix(sink) -> SmtpBackend:
    """SmtpBackend with an empty address prefix."""
    return SmtpBackend(
        policy=TopicPolicy(domain=TEST_DOMAIN, prefix=""),
        sink=sink,
        parser=EmailMessageParser(),
    )


@pytest.fixture
def published(sink):
    """Return a callable fetching the single notification handed to the spy sink."""
    def _published() -> Notification:
        sink.send.assert_awaited_once()
        return sink.send.await_args.args[0]
    return _published
