"""
Logging filters.

RequestIdFilter stamps every record with the current request id, read from a
ContextVar that RequestIDMiddleware sets per request (ContextVar rather than
thread-local: concurrent requests share the event loop thread). Records logged
outside a request get "-".

RedactFilter masks values of sensitive `extra` keys before any handler sees them.
"""

import contextvars
import logging
from logging import LogRecord

_request_id_ctx: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "request_id", default=None
)


def set_request_id(request_id: str | None):
    """Set the id for the current context; returns the token for reset_request_id()."""
    return _request_id_ctx.set(request_id)


def reset_request_id(token) -> None:
    _request_id_ctx.reset(token)


def get_request_id() -> str | None:
    return _request_id_ctx.get()


class RequestIdFilter(logging.Filter):
    """
    Guarantee `record.request_id`: an explicit `extra={"request_id": ...}` wins,
    then the context value, then "-". Never drops a record.
    """

    def filter(self, record: LogRecord) -> bool:
        record.request_id = getattr(record, "request_id", None) or get_request_id() or "-"
        return True


class RedactFilter(logging.Filter):
    SENSITIVE = {"password", "secret", "token", "access_token", "refresh_token", "authorization"}
    MASK = "***REDACTED***"

    def filter(self, record: LogRecord) -> bool:
        for key in list(record.__dict__):
            if key.lower() in self.SENSITIVE:
                record.__dict__[key] = self.MASK
        return True
