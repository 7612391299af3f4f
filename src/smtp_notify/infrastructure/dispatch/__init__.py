"""Dispatch adapters publishing notifications to the pub/sub endpoint."""

from .http_publisher import HttpPublisher, encode_header_value, is_valid_topic

__all__ = ["HttpPublisher", "encode_header_value", "is_valid_topic"]
