"""Debounced auto-save with a save status state machine.

Content changes arm a debounce timer; when it fires the latest content goes to a
:class:`~docbuilder.core.concurrency.SaveSerializer`. Status moves through
``idle -> saving -> saved -> idle`` on success, or ``idle -> saving -> error`` on failure.
``error`` persists until cleared or until a later save succeeds.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from enum import Enum
from typing import Generic, TypeVar

from docbuilder.core.concurrency import BackgroundTasks, DebounceTimer, SaveSerializer
from docbuilder.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

DEFAULT_DEBOUNCE_MS = 1000
DEFAULT_SAVED_DISPLAY_MS = 3000
FALLBACK_ERROR_MESSAGE = "Failed to save"


class SaveStatus(str, Enum):
    """Persistence status shown to the user."""

    IDLE = "idle"
    SAVING = "saving"
    SAVED = "saved"
    ERROR = "error"


class SaveEvent(str, Enum):
    """Inputs to the save status state machine."""

    STARTED = "started"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    DISPLAY_ELAPSED = "display_elapsed"
    ERROR_CLEARED = "error_cleared"


_TRANSITIONS: dict[tuple[SaveStatus, SaveEvent], SaveStatus] = {
    **{(s, SaveEvent.STARTED): SaveStatus.SAVING for s in SaveStatus},
    **{(s, SaveEvent.SUCCEEDED): SaveStatus.SAVED for s in SaveStatus},
    # A failure overrides a "saved" indicator that is still on display
    **{(s, SaveEvent.FAILED): SaveStatus.ERROR for s in SaveStatus},
    (SaveStatus.SAVED, SaveEvent.DISPLAY_ELAPSED): SaveStatus.IDLE,
    (SaveStatus.ERROR, SaveEvent.ERROR_CLEARED): SaveStatus.IDLE,
}


def transition(status: SaveStatus, event: SaveEvent) -> SaveStatus:
    """Return the status after ``event``. Pairs not in the table leave the status unchanged."""

    return _TRANSITIONS.get((status, event), status)


def save_status_label(status: SaveStatus, last_saved_at: datetime | None, error: str | None) -> str:
    """Render the short save indicator text."""

    if status is SaveStatus.SAVING:
        return "Saving..."
    if status is SaveStatus.SAVED:
        return "Saved"
    if status is SaveStatus.ERROR:
        return f"Save failed: {error}" if error else "Save failed"
    if last_saved_at is not None:
        return f"Last saved {last_saved_at.astimezone().strftime('%H:%M')}"
    return ""


class AutoSaveOrchestrator(Generic[T]):
    """Own the save status of one editing session.

    All methods must be called from the event loop the session runs on.
    """

    def __init__(
        self,
        save: Callable[[T], Awaitable[None]],
        content: T,
        *,
        debounce_ms: int = DEFAULT_DEBOUNCE_MS,
        saved_display_ms: int = DEFAULT_SAVED_DISPLAY_MS,
        enabled: bool = True,
        on_event: Callable[[SaveEvent, SaveStatus], None] | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            save: Async save capability. Any exception it raises becomes ``error`` status.
            content: Current content; this is what a manual save sends.
            debounce_ms: Quiet period before a debounced save.
            saved_display_ms: How long ``saved`` is shown before returning to ``idle``.
            enabled: Whether content changes schedule debounced saves.
            on_event: Observer called after every state machine input.
        """
        self.debounce_ms = debounce_ms
        self.saved_display_ms = saved_display_ms
        self._on_event = on_event

        self._content = content
        self._enabled = enabled
        # Content changed since the last value handed to the serializer
        self._dirty = False
        self._closed = False

        self._status = SaveStatus.IDLE
        self._error: str | None = None
        self._last_saved_at: datetime | None = None

        self._debounce: DebounceTimer[T] = DebounceTimer()
        self._saved_display: DebounceTimer[None] = DebounceTimer()
        self._tasks = BackgroundTasks()
        self._serializer: SaveSerializer[T] = SaveSerializer(
            save,
            on_start=self._handle_save_started,
            on_success=self._handle_save_succeeded,
            on_failure=self._handle_save_failed,
        )

    @property
    def status(self) -> SaveStatus:
        return self._status

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def last_saved_at(self) -> datetime | None:
        return self._last_saved_at

    @property
    def content(self) -> T:
        return self._content

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def has_unsaved_changes(self) -> bool:
        """Whether there are changes not yet handed to the save capability."""
        return self._dirty

    @property
    def enabled(self) -> bool:
        return self._enabled

    @enabled.setter
    def enabled(self, value: bool) -> None:
        if value == self._enabled:
            return
        self._enabled = value
        if not value:
            self._debounce.cancel()
        elif self._dirty and not self._closed:
            self._debounce.schedule(self._content, self.debounce_ms, self._dispatch_debounced)

    @property
    def label(self) -> str:
        return save_status_label(self._status, self._last_saved_at, self._error)

    def set_content(self, content: T) -> None:
        """Replace the current content without scheduling a save."""

        self._ensure_open()
        self._content = content

    def notify_change(self, content: T) -> None:
        """Record changed content and (re)arm the debounce timer when enabled."""

        self._ensure_open()
        self._content = content
        self._dirty = True
        if self._enabled:
            self._debounce.schedule(content, self.debounce_ms, self._dispatch_debounced)

    async def trigger_save(self) -> None:
        """Save the current content now, bypassing the debounce.

        Works from any status, including ``error``, and regardless of ``enabled``. Returns
        immediately if another save is in flight; the content is then queued behind it.
        """

        self._ensure_open()
        self._debounce.cancel()
        self._dirty = False
        logger.info("Manual save requested", extra={"status": self._status.value})
        await self._serializer.execute(self._content)

    async def flush(self) -> None:
        """Save any undispatched changes and wait until every save has finished."""

        self._ensure_open()
        self._debounce.cancel()
        if self._dirty:
            self._dirty = False
            await self._serializer.execute(self._content)
        await self._tasks.wait_all()
        await self._serializer.wait_idle()

    def clear_error(self) -> None:
        """Forget the last save error and leave ``error`` status."""

        self._error = None
        self._apply(SaveEvent.ERROR_CLEARED)

    def close(self) -> None:
        """Cancel every timer and drop queued work. Idempotent.

        A save already in flight is allowed to finish, but its outcome no longer changes
        the status.
        """

        if self._closed:
            return
        self._closed = True
        self._debounce.cancel()
        self._saved_display.cancel()
        if self._serializer.discard_pending():
            logger.info("Dropped queued save on close")

    def _ensure_open(self) -> None:
        if self._closed:
            raise RuntimeError("auto-save session is closed")

    def _apply(self, event: SaveEvent) -> None:
        previous = self._status
        self._status = transition(previous, event)
        if self._status is not SaveStatus.SAVED:
            self._saved_display.cancel()
        if previous is not self._status:
            logger.debug("Save status %s -> %s", previous.value, self._status.value)
        if self._on_event is not None:
            self._on_event(event, self._status)

    def _dispatch_debounced(self, value: T) -> None:
        self._dirty = False
        self._tasks.spawn(self._execute_unless_closed(value))

    async def _execute_unless_closed(self, value: T) -> None:
        if self._closed:
            return
        await self._serializer.execute(value)

    def _handle_save_started(self, value: T) -> None:
        if self._closed:
            return
        self._error = None
        self._apply(SaveEvent.STARTED)

    def _handle_save_succeeded(self, value: T) -> None:
        if self._closed:
            return
        self._last_saved_at = datetime.now(UTC)
        self._apply(SaveEvent.SUCCEEDED)
        self._saved_display.schedule(None, self.saved_display_ms, self._handle_display_elapsed)
        logger.info("Document saved", extra={"saved_at": self._last_saved_at.isoformat()})

    def _handle_save_failed(self, value: T, exc: Exception) -> None:
        if self._closed:
            return
        self._error = str(exc) or FALLBACK_ERROR_MESSAGE
        self._apply(SaveEvent.FAILED)

    def _handle_display_elapsed(self, _: None) -> None:
        self._apply(SaveEvent.DISPLAY_ELAPSED)
