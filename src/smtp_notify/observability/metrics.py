"""Prometheus metrics for the SMTP bridge."""

from prometheus_client import Counter

emails_received_total = Counter(
    "smtp_notify_emails_received_total",
    "Total DATA commands handled",
    ["status"]  # status: success|failure
)

recipients_rejected_total = Counter(
    "smtp_notify_recipients_rejected_total",
    "RCPT TO addresses that did not resolve to a topic",
    ["reason"]  # reason: DomainMismatch|PrefixMismatch|InvalidTopic|...
)

notifications_published_total = Counter(
    "smtp_notify_notifications_published_total",
    "Publish requests sent to the pub/sub endpoint",
    ["status"]  # status: success|error
)
