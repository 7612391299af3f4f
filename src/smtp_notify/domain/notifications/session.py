"""SMTP session handling for the email → notification bridge.

One NotificationSession exists per SMTP connection. The protocol adapter
calls mail(), rcpt() and data() in command order; the session enforces that
order, resolves the topic, runs the pipeline and hands the result to the
dispatch sink.

Example:
    backend = SmtpBackend(policy, sink, parser)
    session = backend.anonymous_login(ConnectionInfo(remote_addr="1.2.3.4"))
    session.mail("phil@example.com")
    session.rcpt("ntfy-mytopic@ntfy.sh")
    await session.data(raw_message)
"""

import logging
import uuid
from typing import BinaryIO, Optional, Union

from .body_extractor import BodyExtractor
from .errors import CommandSequenceError, NotificationError
from .html_text import html_to_text
from .models import (
    Anonymous,
    Authenticated,
    ConnectionInfo,
    SessionIdentity,
    TopicPolicy,
)
from .pipeline import NotificationPipeline
from .ports import DispatchSinkPort, MessageParserPort
from .session_state import SessionState, can_transition
from .topic_resolver import TopicResolver
from .truncator import DEFAULT_MESSAGE_LIMIT, Truncator

logger = logging.getLogger(__name__)


class SmtpBackend:
    """Creates sessions and holds the process-wide collaborators.

    Counts successful and failed commands across all sessions; only the event
    loop thread mutates the counters.

    Args:
        policy: Recipient domain/prefix policy
        sink: Dispatch sink publishing notifications
        parser: MIME parser adapter
        message_limit: Body byte budget
    """

    def __init__(
        self,
        policy: TopicPolicy,
        sink: DispatchSinkPort,
        parser: MessageParserPort,
        message_limit: int = DEFAULT_MESSAGE_LIMIT,
    ):
        self.policy = policy
        self.sink = sink
        self.resolver = TopicResolver(policy, sink.is_valid_topic)
        self.pipeline = NotificationPipeline(
            parser=parser,
            extractor=BodyExtractor(html_converter=html_to_text),
            truncator=Truncator(message_limit),
        )
        self.success = 0
        self.failure = 0

    def login(self, conn: ConnectionInfo, username: str, password: str) -> "NotificationSession":
        """Open a session for an authenticated client.

        Credentials are accepted as given; verifying them is the protocol
        adapter's business.
        """
        logger.debug(f"{conn.remote_addr}: login as {username}")
        return NotificationSession(self, conn, Authenticated(username=username))

    def anonymous_login(self, conn: ConnectionInfo) -> "NotificationSession":
        """Open a session for a client that did not authenticate."""
        logger.debug(f"{conn.remote_addr}: anonymous login")
        return NotificationSession(self, conn, Anonymous())

    def record(self, succeeded: bool) -> None:
        if succeeded:
            self.success += 1
        else:
            self.failure += 1


class NotificationSession:
    """State of one SMTP connection.

    Attributes:
        session_id: Short random id used to correlate log lines
        conn: Remote endpoint metadata
        identity: Anonymous() or Authenticated(username)
        state: Current SessionState
        sender: Address from MAIL FROM
        topic: Topic resolved from the last accepted RCPT TO
        token: Access token carried in the recipient address, if any
    """

    def __init__(self, backend: SmtpBackend, conn: ConnectionInfo, identity: SessionIdentity):
        self.backend = backend
        self.conn = conn
        self.identity = identity
        self.session_id = uuid.uuid4().hex[:12]
        self.state = SessionState.IDLE
        self.sender: Optional[str] = None
        self.topic: Optional[str] = None
        self.token: Optional[str] = None

    def _require(self, command: str, to_state: SessionState) -> None:
        if not can_transition(self.state, to_state):
            logger.warning(f"{command} not allowed in state {self.state.value}")
            raise CommandSequenceError()

    def mail(self, sender: str) -> None:
        """Handle MAIL FROM. Valid at the start of a transaction."""
        self._require("MAIL", SessionState.HAS_SENDER)
        logger.debug(f"MAIL FROM: {sender}")
        self.sender = sender
        self.topic = None
        self.token = None
        self.state = SessionState.HAS_SENDER

    def rcpt(self, recipient: str) -> None:
        """Handle RCPT TO: resolve the recipient to a topic.

        On a resolution error the state is unchanged and the client may
        retry with another recipient.

        Raises:
            CommandSequenceError: No MAIL yet
            DomainMismatch, PrefixMismatch, InvalidTopic: Resolution failed
        """
        self._require("RCPT", SessionState.HAS_RECIPIENT)
        logger.debug(f"RCPT TO: {recipient}")
        try:
            resolved = self.backend.resolver.resolve(recipient, self.identity)
        except NotificationError as e:
            self.backend.record(succeeded=False)
            logger.debug(f"Rejected recipient {recipient}: {e.message}")
            raise

        self.topic = resolved.topic
        self.token = resolved.token
        self.state = SessionState.HAS_RECIPIENT

    async def data(self, raw: Union[bytes, BinaryIO]) -> None:
        """Handle DATA: build the notification and publish it.

        Dispatch happens at most once and only after every pipeline stage
        succeeded. Errors leave the state unchanged.

        Raises:
            CommandSequenceError: No accepted RCPT yet
            ParseError, UnsupportedContentType: Message cannot be published
            DispatchError: Endpoint refused the notification
        """
        self._require("DATA", SessionState.DONE)

        if not isinstance(raw, (bytes, bytearray)):
            raw = raw.read()

        try:
            notification = self.backend.pipeline.build(self.topic, bytes(raw), token=self.token)
            await self.backend.sink.send(notification)
        except NotificationError as e:
            self.backend.record(succeeded=False)
            logger.info(f"DATA for topic {self.topic} from {self.sender} failed: {e.message}")
            raise

        self.backend.record(succeeded=True)
        logger.info(
            f"Published email from {self.sender} to topic {self.topic} "
            f"({len(notification.payload)} bytes, title={'yes' if notification.title else 'no'})"
        )
        self.state = SessionState.DONE

    def reset(self) -> None:
        """Handle RSET: abandon the current transaction."""
        self.state = SessionState.IDLE
        self.sender = None
        self.topic = None
        self.token = None
