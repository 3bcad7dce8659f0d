"""Shared test helpers."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from docbuilder.models.document import DocumentContent, Section, SectionKey, SectionStatus


class RecordingSave:
    """Async save fake that records calls and how many ran at once."""

    def __init__(self, delay: float = 0.0, fail_with: Exception | None = None) -> None:
        self.delay = delay
        self.fail_with = fail_with
        self.calls: list[Any] = []
        self.call_times: list[float] = []
        self.active = 0
        self.max_active = 0

    async def __call__(self, value: Any) -> None:
        self.calls.append(value)
        self.call_times.append(asyncio.get_running_loop().time())
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if self.fail_with is not None:
                raise self.fail_with
        finally:
            self.active -= 1


class ListRecorder:
    """In-memory session event recorder."""

    def __init__(self) -> None:
        self.events: list[Any] = []

    def append(self, event: Any) -> None:
        self.events.append(event)

    @property
    def content_types(self) -> list[str]:
        return [e.content_type.value for e in self.events]


@pytest.fixture
def saver_factory() -> type[RecordingSave]:
    return RecordingSave


@pytest.fixture
def recorder() -> ListRecorder:
    return ListRecorder()


@pytest.fixture
def complete_content() -> DocumentContent:
    """Every section long enough and marked complete."""

    return {key: Section(content="x" * 120, status=SectionStatus.COMPLETE) for key in SectionKey}
