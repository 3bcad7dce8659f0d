"""File-based event recorder.

Records session events to `events.jsonl` for later inspection.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

from docbuilder.events import SessionEvent


def session_events_path(artifacts_dir: Path, document_id: str) -> Path:
    """Return where events for ``document_id`` are recorded."""

    return artifacts_dir / document_id / "events.jsonl"


@dataclass
class FileEventRecorder:
    """Append-only JSONL recorder."""

    path: Path

    def __post_init__(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def append(self, event: SessionEvent) -> None:
        """Append an event."""

        line = json.dumps(event.model_dump(mode="json"), ensure_ascii=False)
        with self.path.open("a", encoding="utf-8") as f:
            f.write(line + "\n")


def iter_events(path: Path) -> list[SessionEvent]:
    """Load all events from a JSONL file."""

    events: list[SessionEvent] = []
    if not path.exists():
        return events
    for line in path.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if not line:
            continue
        events.append(SessionEvent.model_validate_json(line))
    return events
