"""Document builder sessions."""

from __future__ import annotations

from docbuilder.builder.coordinator import DocumentBuilder, EventRecorder, SessionClosedError
from docbuilder.builder.state import BuilderState

__all__ = ["BuilderState", "DocumentBuilder", "EventRecorder", "SessionClosedError"]
