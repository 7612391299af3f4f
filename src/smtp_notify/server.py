"""SMTP server entry point.

Starts an aiosmtpd Controller with NotifySMTPHandler, publishing every
accepted email to the configured pub/sub server.

Usage:
    SMTP_DOMAIN=ntfy.sh SMTP_ADDR_PREFIX=ntfy- \
    PUBLISH_BASE_URL=http://localhost:8080 smtp-notify

See Settings for all environment variables.
"""

import asyncio
import logging
import sys
from typing import Tuple

from aiosmtpd.controller import Controller
from prometheus_client import start_http_server

from .config import Settings, get_settings
from .domain.notifications.session import SmtpBackend
from .infrastructure.dispatch.http_publisher import HttpPublisher
from .infrastructure.ingest.mime_parser import EmailMessageParser
from .infrastructure.ingest.smtp_handler import NotifySMTPHandler
from .observability.logging_config import configure_logging

logger = logging.getLogger(__name__)


def build_backend(settings: Settings) -> Tuple[SmtpBackend, HttpPublisher]:
    """Wire the SmtpBackend and its HTTP publisher from settings."""
    publisher = HttpPublisher(
        base_url=settings.PUBLISH_BASE_URL,
        timeout=settings.PUBLISH_TIMEOUT,
    )
    backend = SmtpBackend(
        policy=settings.topic_policy(),
        sink=publisher,
        parser=EmailMessageParser(),
        message_limit=settings.MESSAGE_LIMIT,
    )
    return backend, publisher


def create_controller(settings: Settings, handler: NotifySMTPHandler) -> Controller:
    """Create (but do not start) the aiosmtpd Controller."""
    return Controller(
        handler,
        hostname=settings.SMTP_HOST,
        port=settings.SMTP_PORT,
        server_hostname=settings.SMTP_DOMAIN,
        data_size_limit=settings.SMTP_MAX_MESSAGE_BYTES,
        authenticator=handler.authenticate,
        auth_require_tls=settings.SMTP_AUTH_REQUIRE_TLS,
        enable_SMTPUTF8=True,
    )


async def serve(settings: Settings) -> None:
    """Run the SMTP server until cancelled."""
    backend, publisher = build_backend(settings)
    handler = NotifySMTPHandler(backend)
    controller = create_controller(settings, handler)

    logger.info("=== SMTP notify bridge starting ===")
    logger.info(f"SMTP Bind: {settings.SMTP_HOST}:{settings.SMTP_PORT}")
    logger.info(f"Accepting emails to: {settings.SMTP_ADDR_PREFIX}<topic>@{settings.SMTP_DOMAIN}")
    logger.info(f"Publishing to: {settings.PUBLISH_BASE_URL}")
    logger.info(f"Max Message Size: {settings.SMTP_MAX_MESSAGE_BYTES} bytes")

    if settings.METRICS_PORT:
        start_http_server(settings.METRICS_PORT)
        logger.info(f"Metrics on :{settings.METRICS_PORT}/metrics")

    controller.start()
    try:
        while True:
            await asyncio.sleep(3600)
            logger.info(f"Stats: {backend.success} successful, {backend.failure} failed commands")
    finally:
        logger.info("Shutting down SMTP server...")
        # The publisher's connection pool lives on the controller's loop
        asyncio.run_coroutine_threadsafe(publisher.close(), controller.loop).result(timeout=10)
        controller.stop()
        logger.info("SMTP server stopped")


def main() -> None:
    """Console script entry point."""
    settings = get_settings()
    configure_logging(level=settings.LOG_LEVEL, json_format=settings.LOG_JSON)
    try:
        asyncio.run(serve(settings))
    except KeyboardInterrupt:
        logger.info("Received interrupt signal, exiting")
        sys.exit(0)
    except Exception as e:
        logger.error(f"SMTP server failed: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
