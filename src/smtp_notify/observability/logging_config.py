"""Structured JSON logging for the SMTP bridge.

Every line carries the id of the SMTP session being served, so all log lines
of one mail transaction (MAIL, RCPT, DATA, publish) can be grouped.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict

from .session_id import get_session_id

# Optional attributes passed via `extra=` that end up as JSON fields
EXTRA_FIELDS = ("remote_addr", "topic", "sender", "smtp_code")

TEXT_FORMAT = "%(asctime)s %(levelname)-7s [%(session_id)s] %(name)s: %(message)s"


class SessionIDFilter(logging.Filter):
    """Stamp each record with the current SMTP session id."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.session_id = get_session_id()
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per log line."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "session_id": getattr(record, "session_id", "no-session"),
            "logger": record.name,
            "function": record.funcName,
            "message": record.getMessage(),
        }

        if record.exc_info:
            entry["error"] = str(record.exc_info[1])
            entry["traceback"] = self.formatException(record.exc_info)

        for name in EXTRA_FIELDS:
            if hasattr(record, name):
                entry[name] = str(getattr(record, name))

        return json.dumps(entry, ensure_ascii=False)


def configure_logging(level: str = "INFO", json_format: bool = True) -> None:
    """Install a single stdout handler on the root logger.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR)
        json_format: JSON lines if True, otherwise TEXT_FORMAT
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level: {level}")

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter() if json_format else logging.Formatter(TEXT_FORMAT))
    handler.addFilter(SessionIDFilter())

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(numeric_level)

    # aiosmtpd logs every SMTP command at INFO
    logging.getLogger("mail.log").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
