"""Event model for recording what happened during an editing session.

A session produces a sequence of events. When recording is enabled they are written to
JSONL so the session can be inspected later (e.g., to debug a lost edit or a failed save).
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, Field


class EventType(str, Enum):
    """High-level event categories."""

    SYSTEM = "system"
    EDIT = "edit"
    SAVE = "save"
    ERROR = "error"


class ContentType(str, Enum):
    """Semantic types within event streams."""

    CONTENT_LOADED = "content_loaded"
    SECTIONS_UPDATED = "sections_updated"
    HIGHLIGHT_EXPIRED = "highlight_expired"

    SAVE_STARTED = "save_started"
    SAVE_SUCCEEDED = "save_succeeded"
    SAVE_FAILED = "save_failed"
    SAVE_ERROR_CLEARED = "save_error_cleared"

    SESSION_CLOSED = "session_closed"


class SessionEvent(BaseModel):
    """A single event in an editing session."""

    document_id: str
    seq: int = Field(ge=1)
    ts: datetime = Field(default_factory=lambda: datetime.now(UTC))

    event_type: EventType
    content_type: ContentType

    data: str | dict | list | None = None
    metadata: dict[str, str | int | float | bool | None] = Field(default_factory=dict)
