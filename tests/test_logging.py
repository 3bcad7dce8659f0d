"""Tests for logging setup."""

from __future__ import annotations

import logging

import pytest
from rich.logging import RichHandler

from docbuilder.logging import _ContextFilter, configure_logging, session_context


@pytest.fixture
def root_logger():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


def test_configure_logging_twice_keeps_one_handler_and_filter(root_logger: logging.Logger) -> None:
    """It should not stack handlers or context filters on repeated calls."""

    configure_logging("INFO")
    configure_logging("DEBUG")

    rich_handlers = [h for h in root_logger.handlers if isinstance(h, RichHandler)]
    assert len(rich_handlers) == 1
    assert sum(isinstance(f, _ContextFilter) for f in rich_handlers[0].filters) == 1
    assert root_logger.level == logging.DEBUG


def test_session_context_binds_document_id() -> None:
    """It should stamp records with the bound document and restore the default after."""

    context_filter = _ContextFilter()

    def stamped() -> str:
        record = logging.LogRecord("docbuilder.test", logging.INFO, __file__, 1, "msg", None, None)
        context_filter.filter(record)
        return record.document_id  # type: ignore[attr-defined]

    with session_context(document_id="doc-7"):
        assert stamped() == "doc-7"
    assert stamped() == "-"
