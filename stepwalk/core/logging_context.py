"""
Context-scoped extra fields for log records.

LoggingContext pushes key/value pairs for the duration of a ``with`` block;
ContextFilter copies the active pairs onto every record passing through a
logger, so the formatters print them alongside the message.
"""

import contextvars
import logging
from typing import Any, Dict

_log_context: contextvars.ContextVar[Dict[str, Any]] = contextvars.ContextVar(
    "stepwalk_log_context", default={}
)


def current_context() -> Dict[str, Any]:
    return dict(_log_context.get())


class ContextFilter(logging.Filter):
    """Attach the active context fields to the record without overwriting explicit extras."""

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in _log_context.get().items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return True


class LoggingContext:
    """
    Push extra log fields for the enclosed block.

    Nested contexts merge with the outer one; the previous fields are
    restored on exit.

        with LoggingContext(logger, run_id=run.run_id):
            logger.info("dispatching")
    """

    def __init__(self, logger: logging.Logger = None, **fields: Any):
        self.logger = logger
        self.fields = fields
        self._token = None

    def __enter__(self):
        merged = dict(_log_context.get())
        merged.update(self.fields)
        self._token = _log_context.set(merged)
        return self

    def __exit__(self, exc_type, exc, tb):
        if self._token is not None:
            _log_context.reset(self._token)
            self._token = None
        return False
