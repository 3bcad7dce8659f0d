"""Logging setup with the edited document bound to every record."""

from __future__ import annotations

import contextlib
import contextvars
import logging
from typing import Any

from rich.logging import RichHandler


_document_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("docbuilder_document_id", default="-")


class _ContextFilter(logging.Filter):
    """Inject document session context into log records."""

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003
        record.document_id = _document_id_var.get()  # type: ignore[attr-defined]
        return True


@contextlib.contextmanager
def session_context(*, document_id: str) -> Any:
    """Temporarily bind the document being edited for structured logging.

    Timers armed inside this block keep the binding, since the event loop copies the
    current context when a callback is scheduled.

    Args:
        document_id: Document identifier.
    """

    token = _document_id_var.set(document_id)
    try:
        yield
    finally:
        _document_id_var.reset(token)


def configure_logging(level: str = "INFO") -> None:
    """Install a RichHandler on the root logger that prints the document id.

    Args:
        level: Logging level name.
    """

    handler = RichHandler(rich_tracebacks=True, show_time=True, show_level=True)
    handler.addFilter(_ContextFilter())

    formatter = logging.Formatter(
        fmt="%(asctime)s %(levelname)s doc=%(document_id)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.setLevel(level)
    # Calling configure_logging twice must not stack handlers
    if not any(isinstance(h, RichHandler) for h in root.handlers):
        root.addHandler(handler)
    else:
        # Re-apply the document filter and format to the handler already installed
        for h in root.handlers:
            if isinstance(h, RichHandler):
                if not any(isinstance(f, _ContextFilter) for f in h.filters):
                    h.addFilter(_ContextFilter())
                h.setFormatter(formatter)


def get_logger(name: str) -> logging.Logger:
    """Return the logger for a docbuilder module."""

    return logging.getLogger(name)


def log_exception(logger: logging.Logger, msg: str, **context: Any) -> None:
    """Log the active exception with its traceback and optional key/value context."""

    if context:
        logger.exception("%s | context=%s", msg, context)
    else:
        logger.exception("%s", msg)
