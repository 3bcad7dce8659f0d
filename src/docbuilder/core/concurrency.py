"""Timer and save-ordering primitives for a single asyncio event loop.

Nothing here uses locks. All state is touched from the loop thread only, so ordering
follows from how callbacks are sequenced.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Coroutine
from typing import Any, Generic, TypeVar

from docbuilder.logging import get_logger, log_exception

logger = get_logger(__name__)

T = TypeVar("T")


class DebounceTimer(Generic[T]):
    """Single-arm debounce timer.

    Every ``schedule`` call replaces the previous arm with a new value and a freshly started
    delay, so a burst of calls fires once with the last value.
    """

    def __init__(self) -> None:
        self._handle: asyncio.TimerHandle | None = None

    def schedule(self, value: T, delay_ms: float, on_fire: Callable[[T], None]) -> None:
        """Arm the timer, replacing any pending arm.

        Args:
            value: Value handed to ``on_fire``.
            delay_ms: Quiet period in milliseconds.
            on_fire: Callback invoked on the event loop when the delay elapses.
        """

        self.cancel()
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(max(delay_ms, 0) / 1000, self._fire, value, on_fire)

    def cancel(self) -> bool:
        """Disarm without firing. Returns whether an arm was pending."""

        if self._handle is None:
            return False
        self._handle.cancel()
        self._handle = None
        return True

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def _fire(self, value: T, on_fire: Callable[[T], None]) -> None:
        self._handle = None
        on_fire(value)


class SaveSerializer(Generic[T]):
    """Run at most one save at a time, keeping a single last-write-wins pending value.

    The state is two slots: whether a save is in flight, and the one value waiting behind
    it. A new value arriving while a save runs overwrites the waiting value instead of
    starting a second save.
    """

    def __init__(
        self,
        save: Callable[[T], Awaitable[None]],
        *,
        on_start: Callable[[T], None] | None = None,
        on_success: Callable[[T], None] | None = None,
        on_failure: Callable[[T, Exception], None] | None = None,
    ) -> None:
        """Initialize the serializer.

        Args:
            save: Async save capability. Raising marks that save as failed.
            on_start: Called right before each save begins.
            on_success: Called after a save resolves.
            on_failure: Called with the exception after a save raises.
        """
        self._save = save
        self._on_start = on_start
        self._on_success = on_success
        self._on_failure = on_failure
        self._in_flight = False
        # Wrapped in a tuple so that ``None`` is a valid value to save
        self._pending: tuple[T] | None = None
        # Strong reference to the running drain task
        self._drain: asyncio.Task | None = None
        self._idle = asyncio.Event()
        self._idle.set()

    async def execute(self, value: T) -> None:
        """Save ``value`` now, or queue it behind the save in flight.

        When a save is already running this records ``value`` as the pending value and
        returns immediately. Otherwise it starts a drain task that runs the save, then keeps
        draining the pending slot until it is empty, and returns once everything has finished.

        Cancelling the caller does not cancel the drain task: the save in flight still ends
        in success or failure and the pending value is still saved.
        """

        if self._in_flight:
            if self._pending is not None:
                logger.debug("Queued save value superseded")
            self._pending = (value,)
            return

        self._in_flight = True
        self._idle.clear()
        self._drain = asyncio.get_running_loop().create_task(self._drain_from(value))
        await asyncio.shield(self._drain)

    async def _drain_from(self, value: T) -> None:
        try:
            current = value
            while True:
                await self._run_one(current)
                if self._pending is None:
                    break
                (current,) = self._pending
                self._pending = None
        finally:
            self._in_flight = False
            self._pending = None
            self._drain = None
            self._idle.set()

    def discard_pending(self) -> bool:
        """Drop the queued value, if any. Returns whether one was dropped."""

        dropped = self._pending is not None
        self._pending = None
        return dropped

    async def wait_idle(self) -> None:
        """Wait until no save is in flight and nothing is queued."""

        await self._idle.wait()

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    @property
    def has_pending(self) -> bool:
        return self._pending is not None

    async def _run_one(self, value: T) -> None:
        if self._on_start is not None:
            self._on_start(value)
        try:
            await self._save(value)
        except Exception as exc:
            log_exception(logger, "Save failed", error=str(exc))
            if self._on_failure is not None:
                self._on_failure(value, exc)
        else:
            if self._on_success is not None:
                self._on_success(value)


class BackgroundTasks:
    """Keep strong references to fire-and-forget tasks until they finish."""

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task] = set()

    def spawn(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task:
        """Schedule a coroutine on the running loop.

        Args:
            coro: Coroutine object.

        Returns:
            Task object.
        """
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def wait_all(self) -> None:
        """Wait for all tasks to complete."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    @property
    def active_count(self) -> int:
        """Get number of active tasks."""
        return len([t for t in self._tasks if not t.done()])
