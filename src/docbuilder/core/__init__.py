"""Event-loop scheduling core: debounce, save ordering, auto-save and highlights."""

from __future__ import annotations

from docbuilder.core.autosave import AutoSaveOrchestrator, SaveEvent, SaveStatus, save_status_label, transition
from docbuilder.core.concurrency import BackgroundTasks, DebounceTimer, SaveSerializer
from docbuilder.core.highlights import HighlightScheduler

__all__ = [
    "AutoSaveOrchestrator",
    "BackgroundTasks",
    "DebounceTimer",
    "HighlightScheduler",
    "SaveEvent",
    "SaveSerializer",
    "SaveStatus",
    "save_status_label",
    "transition",
]
