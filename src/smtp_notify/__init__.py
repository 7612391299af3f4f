"""smtp-notify: publish incoming email to pub/sub topics over HTTP."""

__version__ = "0.1.0"
