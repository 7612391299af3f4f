"""SMTP Handler for the email → notification bridge.

Implements an aiosmtpd handler that drives one NotificationSession per SMTP
connection:

- AUTH (any credentials)          → SmtpBackend.login
- first MAIL without AUTH         → SmtpBackend.anonymous_login
- MAIL / RCPT / DATA / RSET       → NotificationSession.mail / rcpt / data / reset

Domain errors become their SMTP replies; unexpected errors are logged and
answered with a temporary failure so the sending MTA retries.

Architecture: Hexagonal - Infrastructure adapter for the protocol engine
"""

import logging
import weakref
from typing import List, Optional

from aiosmtpd.smtp import SMTP, AuthResult, Envelope, LoginPassword, Session

from ...domain.notifications.errors import DispatchError, NotificationError
from ...domain.notifications.models import ConnectionInfo
from ...domain.notifications.session import NotificationSession, SmtpBackend
from ...domain.notifications.session_state import SessionState
from ...observability.metrics import (
    emails_received_total,
    notifications_published_total,
    recipients_rejected_total,
)
from ...observability.session_id import set_session_id

logger = logging.getLogger(__name__)

TEMPORARY_ERROR_REPLY = "451 4.3.0 Temporary server error"


def _connection_info(session: Session) -> ConnectionInfo:
    peer = session.peer
    remote_addr = peer[0] if isinstance(peer, (tuple, list)) and peer else str(peer)
    return ConnectionInfo(remote_addr=str(remote_addr), hostname=session.host_name)


def _decode_credential(value) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value or "")


def _data_failure_reply(error: Exception) -> str:
    """Count a failed DATA and pick the SMTP reply for it."""
    emails_received_total.labels(status="failure").inc()
    if isinstance(error, DispatchError):
        notifications_published_total.labels(status="error").inc()
    if isinstance(error, NotificationError):
        return error.smtp_reply
    logger.error(f"Unexpected error processing email: {error}", exc_info=error)
    return TEMPORARY_ERROR_REPLY


class NotifySMTPHandler:
    """aiosmtpd handler publishing received mail as notifications.

    Sessions are kept in a weak mapping keyed by the aiosmtpd session, so a
    closed connection drops its NotificationSession without dispatching.

    Args:
        backend: SmtpBackend creating NotificationSessions
    """

    def __init__(self, backend: SmtpBackend):
        self.backend = backend
        self._sessions: "weakref.WeakKeyDictionary[Session, NotificationSession]" = (
            weakref.WeakKeyDictionary()
        )

    def _session_for(self, session: Session) -> NotificationSession:
        """Return the NotificationSession of a connection, creating it anonymously."""
        notify_session = self._sessions.get(session)
        if notify_session is None:
            notify_session = self.backend.anonymous_login(_connection_info(session))
            self._sessions[session] = notify_session
        set_session_id(notify_session.session_id)
        return notify_session

    def authenticate(
        self,
        server: SMTP,
        session: Session,
        envelope: Envelope,
        mechanism: str,
        auth_data,
    ) -> AuthResult:
        """aiosmtpd authenticator: accept the login and open a session for it.

        Credentials are not verified; authenticated and anonymous sessions
        get the same recipient policy.
        """
        if not isinstance(auth_data, LoginPassword):
            logger.warning(f"Unsupported AUTH mechanism {mechanism}")
            return AuthResult(success=False, handled=False)

        username = _decode_credential(auth_data.login)
        password = _decode_credential(auth_data.password)
        notify_session = self.backend.login(_connection_info(session), username, password)
        self._sessions[session] = notify_session
        set_session_id(notify_session.session_id)
        logger.info(f"AUTH {mechanism} as {username}")
        return AuthResult(success=True, auth_data=username)

    async def handle_MAIL(
        self,
        server: SMTP,
        session: Session,
        envelope: Envelope,
        address: str,
        mail_options: List[str],
    ) -> str:
        """Handle MAIL FROM command.

        aiosmtpd only passes MAIL outside a transaction; a session still
        mid-transaction here was abandoned by HELO/EHLO, which does not call
        handle_RSET.
        """
        notify_session = self._session_for(session)
        if notify_session.state not in (SessionState.IDLE, SessionState.DONE):
            logger.debug(f"Discarding unfinished transaction in state {notify_session.state.value}")
            notify_session.reset()
        try:
            notify_session.mail(address)
        except NotificationError as e:
            return e.smtp_reply

        envelope.mail_from = address
        envelope.mail_options.extend(mail_options)
        return "250 OK"

    async def handle_RCPT(
        self,
        server: SMTP,
        session: Session,
        envelope: Envelope,
        address: str,
        rcpt_options: List[str],
    ) -> str:
        """Handle RCPT TO command: reject addresses without a valid topic."""
        notify_session = self._session_for(session)
        try:
            notify_session.rcpt(address)
        except NotificationError as e:
            recipients_rejected_total.labels(reason=type(e).__name__).inc()
            logger.info(
                f"RCPT {address} rejected: {e.smtp_reply}",
                extra={"remote_addr": notify_session.conn.remote_addr, "smtp_code": e.smtp_code},
            )
            return e.smtp_reply

        envelope.rcpt_tos.append(address)
        return "250 OK"

    async def handle_DATA(
        self,
        server: SMTP,
        session: Session,
        envelope: Envelope,
    ) -> str:
        """Handle DATA command (main entry point for publishing).

        Returns:
            str: SMTP response
                '250 Message accepted' - Notification published
                '550/554 ...' - Message rejected (not retried by the MTA)
                '451 ...' - Temporary failure (publish failed or server error)
        """
        notify_session = self._session_for(session)
        content = envelope.content or b""
        if isinstance(content, str):
            content = content.encode("utf-8", errors="surrogateescape")
        # SMTP line endings are CRLF on the wire; the pipeline works on LF text
        content = content.replace(b"\r\n", b"\n")

        logger.info(
            f"Received email: from={envelope.mail_from}, to={envelope.rcpt_tos}, "
            f"size={len(content)} bytes",
            extra={
                "remote_addr": notify_session.conn.remote_addr,
                "sender": envelope.mail_from,
                "topic": notify_session.topic,
            },
        )

        try:
            await notify_session.data(content)
        except Exception as e:
            # aiosmtpd ends the transaction after DATA whatever the reply
            notify_session.reset()
            return _data_failure_reply(e)

        emails_received_total.labels(status="success").inc()
        notifications_published_total.labels(status="success").inc()
        return "250 Message accepted"

    async def handle_RSET(
        self,
        server: SMTP,
        session: Session,
        envelope: Envelope,
    ) -> str:
        """Handle RSET command: abandon the current transaction."""
        notify_session: Optional[NotificationSession] = self._sessions.get(session)
        if notify_session is not None:
            set_session_id(notify_session.session_id)
            notify_session.reset()
        return "250 OK"
