"""Document builder session.

One :class:`DocumentBuilder` owns the in-memory content of one document together with its
auto-save orchestrator and highlight scheduler. UI and chat collaborators go through it;
nothing else mutates the content.
"""

from __future__ import annotations

import functools
from collections.abc import Awaitable, Callable, Iterable, Mapping
from datetime import datetime
from typing import Any, Protocol

from docbuilder.builder.state import BuilderState
from docbuilder.chat.responses import ChatResponse, parse_chat_response
from docbuilder.config import Settings, load_settings
from docbuilder.core.autosave import AutoSaveOrchestrator, SaveEvent, SaveStatus
from docbuilder.core.highlights import HighlightScheduler
from docbuilder.events import ContentType, EventType, SessionEvent
from docbuilder.logging import get_logger, log_exception, session_context
from docbuilder.models.document import (
    DocumentContent,
    Section,
    SectionKey,
    SectionUpdate,
    dump_content,
    empty_content,
    merge_section_updates,
)
from docbuilder.models.validation import CompletionValidation
from docbuilder.recording.file_recorder import FileEventRecorder, session_events_path
from docbuilder.storage.protocol import DocumentStore, validate_document_id
from docbuilder.validation.completion import get_section_status, validate_all_sections

logger = get_logger(__name__)

_SAVE_EVENT_TYPES: dict[SaveEvent, tuple[EventType, ContentType]] = {
    SaveEvent.STARTED: (EventType.SAVE, ContentType.SAVE_STARTED),
    SaveEvent.SUCCEEDED: (EventType.SAVE, ContentType.SAVE_SUCCEEDED),
    SaveEvent.FAILED: (EventType.ERROR, ContentType.SAVE_FAILED),
    SaveEvent.ERROR_CLEARED: (EventType.SAVE, ContentType.SAVE_ERROR_CLEARED),
}


class SessionClosedError(RuntimeError):
    """Raised when a closed document session is used."""

    pass


class EventRecorder(Protocol):
    def append(self, event: SessionEvent) -> None: ...


class DocumentBuilder:
    """Editing session for one document."""

    def __init__(
        self,
        document_id: str,
        save: Callable[[DocumentContent], Awaitable[None]],
        *,
        content: Mapping[SectionKey, Section] | None = None,
        debounce_ms: int = 1000,
        saved_display_ms: int = 3000,
        highlight_duration_ms: int = 2000,
        enabled: bool = True,
        recorder: EventRecorder | None = None,
    ) -> None:
        """Initialize a session.

        Args:
            document_id: Identifier of the document being edited.
            save: Async save capability, called with a full content snapshot.
            content: Initial content. Defaults to an empty document.
            debounce_ms: Quiet period before an automatic save.
            saved_display_ms: How long the "saved" status is shown.
            highlight_duration_ms: How long a touched section stays highlighted.
            enabled: Whether edits schedule automatic saves. Manual saves always work.
            recorder: Optional sink for session events.
        """
        self.document_id = document_id
        self._content: DocumentContent = dict(content) if content is not None else empty_content()
        self._recorder = recorder
        self._seq = 0
        self._closed = False

        self._autosave: AutoSaveOrchestrator[DocumentContent] = AutoSaveOrchestrator(
            save,
            self._content,
            debounce_ms=debounce_ms,
            saved_display_ms=saved_display_ms,
            enabled=enabled,
            on_event=self._on_save_event,
        )
        self._highlights: HighlightScheduler[SectionKey] = HighlightScheduler(
            highlight_duration_ms,
            on_expire=self._on_highlight_expired,
        )

    @classmethod
    async def open(
        cls,
        document_id: str,
        store: DocumentStore,
        *,
        settings: Settings | None = None,
        recorder: EventRecorder | None = None,
    ) -> DocumentBuilder:
        """Load a document from ``store`` and start a session for it.

        Raises:
            DocumentLoadError: If the store cannot load the document.
            ValueError: If ``document_id`` is not a valid id.
        """

        settings = settings or load_settings()
        validate_document_id(document_id)
        if recorder is None and settings.record_events:
            recorder = FileEventRecorder(session_events_path(settings.artifacts_dir, document_id))

        with session_context(document_id=document_id):
            content = await store.load(document_id)
            builder = cls(
                document_id,
                functools.partial(store.save, document_id),
                debounce_ms=settings.debounce_ms,
                saved_display_ms=settings.saved_display_ms,
                highlight_duration_ms=settings.highlight_duration_ms,
                enabled=settings.autosave_enabled,
                recorder=recorder,
            )
            builder.replace_content(content)
            logger.info("Session opened", extra={"sections": len(content)})
        return builder

    # -- content --------------------------------------------------------------------------

    @property
    def content(self) -> DocumentContent:
        """A copy of the current content."""
        return dict(self._content)

    def replace_content(self, content: Mapping[SectionKey, Section]) -> None:
        """Replace the whole content, e.g. after the initial load.

        Neither highlights sections nor schedules a save.
        """

        self._ensure_open()
        with session_context(document_id=self.document_id):
            self._content = dict(content)
            self._autosave.set_content(self._content)
            self._emit(EventType.SYSTEM, ContentType.CONTENT_LOADED, data=dump_content(self._content))

    def apply_section_updates(self, updates: Iterable[SectionUpdate | Mapping[str, Any]]) -> list[SectionKey]:
        """Merge a batch of section updates into the content.

        The last update for a key wins. Every touched section is highlighted, and the whole
        batch counts as a single change for auto-save.

        Returns:
            Touched section keys, in first-touched order.
        """

        self._ensure_open()
        batch = [u if isinstance(u, SectionUpdate) else SectionUpdate.model_validate(u) for u in updates]
        if not batch:
            return []

        with session_context(document_id=self.document_id):
            self._content = merge_section_updates(self._content, batch)
            touched = list(dict.fromkeys(u.section_key for u in batch))
            for key in touched:
                self._highlights.mark_touched(key)
            self._autosave.notify_change(self._content)

            keys = [k.value for k in touched]
            logger.info("Applied section updates", extra={"sections": keys, "count": len(batch)})
            self._emit(
                EventType.EDIT,
                ContentType.SECTIONS_UPDATED,
                data=[u.model_dump(mode="json") for u in batch],
                metadata={"sections": ",".join(keys)},
            )
        return touched

    def apply_chat_response(self, payload: str | Mapping[str, Any]) -> ChatResponse:
        """Parse an assistant reply and apply its section updates as one batch.

        Raises:
            ChatResponseError: If the reply is malformed.
            ChatServiceError: If the reply is an error payload.
        """

        self._ensure_open()
        response = parse_chat_response(payload)
        self.apply_section_updates(response.section_updates)
        return response

    def get_completion_validation(self) -> CompletionValidation:
        """Readiness report for the current content, recomputed on every call."""
        return validate_all_sections(self._content)

    # -- save status ----------------------------------------------------------------------

    @property
    def save_status(self) -> SaveStatus:
        return self._autosave.status

    @property
    def last_saved_at(self) -> datetime | None:
        return self._autosave.last_saved_at

    @property
    def save_error(self) -> str | None:
        return self._autosave.error

    @property
    def save_label(self) -> str:
        return self._autosave.label

    @property
    def autosave_enabled(self) -> bool:
        return self._autosave.enabled

    @autosave_enabled.setter
    def autosave_enabled(self, value: bool) -> None:
        self._ensure_open()
        with session_context(document_id=self.document_id):
            self._autosave.enabled = value

    async def trigger_save(self) -> None:
        """Save the current content immediately, cancelling any pending automatic save."""

        self._ensure_open()
        with session_context(document_id=self.document_id):
            await self._autosave.trigger_save()

    def clear_save_error(self) -> None:
        self._ensure_open()
        with session_context(document_id=self.document_id):
            self._autosave.clear_error()

    # -- highlights -----------------------------------------------------------------------

    @property
    def highlighted_sections(self) -> frozenset[SectionKey]:
        return self._highlights.highlighted

    # -- lifecycle ------------------------------------------------------------------------

    @property
    def closed(self) -> bool:
        return self._closed

    def state(self) -> BuilderState:
        """Snapshot of everything external callers read."""

        highlighted = self._highlights.highlighted
        return BuilderState(
            document_id=self.document_id,
            content=dump_content(self._content),
            section_statuses={k.value: get_section_status(self._content.get(k)) for k in SectionKey},
            save_status=self.save_status,
            save_label=self.save_label,
            last_saved_at=self.last_saved_at,
            save_error=self.save_error,
            autosave_enabled=self.autosave_enabled,
            highlighted_sections=[k.value for k in SectionKey if k in highlighted],
            validation=self.get_completion_validation(),
        )

    async def flush(self) -> None:
        """Save unsaved changes now and wait for every save to finish."""

        self._ensure_open()
        with session_context(document_id=self.document_id):
            await self._autosave.flush()

    def close(self) -> None:
        """Tear down the session. No timer callback runs afterwards. Idempotent."""

        if self._closed:
            return
        with session_context(document_id=self.document_id):
            unsaved = self._autosave.has_unsaved_changes
            self._closed = True
            self._autosave.close()
            self._highlights.close()
            if unsaved:
                logger.warning("Session closed with unsaved changes")
            else:
                logger.info("Session closed")
            self._emit(EventType.SYSTEM, ContentType.SESSION_CLOSED, metadata={"unsaved_changes": unsaved})

    async def aclose(self) -> None:
        """Flush pending changes, then close."""

        if self._closed:
            return
        try:
            await self.flush()
        finally:
            self.close()

    async def __aenter__(self) -> DocumentBuilder:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    # -- internals ------------------------------------------------------------------------

    def _ensure_open(self) -> None:
        if self._closed:
            raise SessionClosedError(f"document session {self.document_id} is closed")

    def _on_save_event(self, event: SaveEvent, status: SaveStatus) -> None:
        mapped = _SAVE_EVENT_TYPES.get(event)
        if mapped is None:
            return
        event_type, content_type = mapped
        data = self._autosave.error if event is SaveEvent.FAILED else None
        self._emit(event_type, content_type, data=data, metadata={"status": status.value})

    def _on_highlight_expired(self, key: SectionKey) -> None:
        self._emit(EventType.EDIT, ContentType.HIGHLIGHT_EXPIRED, data=key.value)

    def _emit(
        self,
        event_type: EventType,
        content_type: ContentType,
        data: str | dict | list | None = None,
        *,
        metadata: dict[str, str | int | float | bool | None] | None = None,
    ) -> SessionEvent | None:
        if self._recorder is None:
            return None
        self._seq += 1
        ev = SessionEvent(
            document_id=self.document_id,
            seq=self._seq,
            event_type=event_type,
            content_type=content_type,
            data=data,
            metadata=dict(metadata or {}),
        )
        try:
            self._recorder.append(ev)
        except Exception:
            # Called from save and timer callbacks
            log_exception(logger, "Failed to record session event", content_type=content_type.value)
        return ev
