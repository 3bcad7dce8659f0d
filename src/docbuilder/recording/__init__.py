"""Recording utilities for session events."""

from __future__ import annotations

from docbuilder.recording.file_recorder import FileEventRecorder, iter_events, session_events_path

__all__ = ["FileEventRecorder", "iter_events", "session_events_path"]
