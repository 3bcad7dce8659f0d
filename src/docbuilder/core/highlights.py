"""Transient "recently changed" markers for sections."""

from __future__ import annotations

from collections.abc import Callable, Hashable
from typing import Generic, TypeVar

from docbuilder.core.concurrency import DebounceTimer
from docbuilder.logging import get_logger

logger = get_logger(__name__)

K = TypeVar("K", bound=Hashable)

DEFAULT_HIGHLIGHT_MS = 2000


class HighlightScheduler(Generic[K]):
    """Track highlighted keys, each with its own expiry timer.

    The highlighted set is exactly the set of keys with an armed timer. Touching a key again
    restarts only that key's timer.
    """

    def __init__(
        self,
        duration_ms: int = DEFAULT_HIGHLIGHT_MS,
        *,
        on_expire: Callable[[K], None] | None = None,
    ) -> None:
        self.duration_ms = duration_ms
        self._on_expire = on_expire
        self._timers: dict[K, DebounceTimer[K]] = {}

    def mark_touched(self, key: K) -> None:
        """Highlight ``key`` and (re)start its expiry timer."""

        timer = self._timers.get(key)
        if timer is None:
            timer = DebounceTimer()
            self._timers[key] = timer
        timer.schedule(key, self.duration_ms, self._expire)

    def is_highlighted(self, key: K) -> bool:
        return key in self._timers

    @property
    def highlighted(self) -> frozenset[K]:
        return frozenset(self._timers)

    def close(self) -> None:
        """Cancel every expiry timer and clear the set."""

        for timer in self._timers.values():
            timer.cancel()
        self._timers.clear()

    def _expire(self, key: K) -> None:
        self._timers.pop(key, None)
        logger.debug("Highlight expired", extra={"key": str(key)})
        if self._on_expire is not None:
            self._on_expire(key)
