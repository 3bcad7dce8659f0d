"""Tests for the document builder session."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

import pytest

from docbuilder.builder.coordinator import DocumentBuilder, SessionClosedError
from docbuilder.config import Settings
from docbuilder.core.autosave import SaveStatus
from docbuilder.models.document import DocumentContent, Section, SectionKey, SectionStatus, SectionUpdate
from docbuilder.storage.file_store import FileDocumentStore
from docbuilder.storage.protocol import DocumentLoadError, DocumentStore


def _settings(tmp_path: Path, **overrides) -> Settings:
    values = {
        "debounce_ms": 20,
        "saved_display_ms": 50,
        "highlight_duration_ms": 60,
        "documents_dir": tmp_path / "documents",
        "artifacts_dir": tmp_path / "artifacts",
        "record_events": False,
    }
    values.update(overrides)
    return Settings(**values)


class BrokenStore(DocumentStore):
    async def load(self, document_id: str) -> DocumentContent:
        raise DocumentLoadError("database unavailable")

    async def save(self, document_id: str, content: DocumentContent) -> None:
        raise AssertionError("save must not be called")


class BrokenRecorder:
    def append(self, event: object) -> None:
        raise OSError("events disk full")


def test_batch_of_updates_triggers_one_save(saver_factory) -> None:
    """It should treat a batch as one change and apply the last update per key."""

    saver = saver_factory()

    async def scenario() -> DocumentBuilder:
        builder = DocumentBuilder("doc1", saver, debounce_ms=20, highlight_duration_ms=200)
        touched = builder.apply_section_updates(
            [
                SectionUpdate(section_key=SectionKey.PROBLEM_STATEMENT, content="draft"),
                {"sectionKey": "risks", "content": "vendor lock-in", "status": "complete"},
                SectionUpdate(section_key=SectionKey.PROBLEM_STATEMENT, content="final", status=SectionStatus.COMPLETE),
            ]
        )
        assert touched == [SectionKey.PROBLEM_STATEMENT, SectionKey.RISKS]
        assert builder.highlighted_sections == frozenset(touched)
        await asyncio.sleep(0.08)
        builder.close()
        return builder

    builder = asyncio.run(scenario())
    assert len(saver.calls) == 1
    saved = saver.calls[0]
    assert saved[SectionKey.PROBLEM_STATEMENT] == Section(content="final", status=SectionStatus.COMPLETE)
    assert saved[SectionKey.RISKS].content == "vendor lock-in"
    assert builder.save_status is SaveStatus.SAVED


def test_separate_batches_within_debounce_coalesce(saver_factory) -> None:
    """It should save once, with the latest content, for rapid separate edits."""

    saver = saver_factory()

    async def scenario() -> None:
        builder = DocumentBuilder("doc1", saver, debounce_ms=40)
        for text in ("a", "ab", "abc"):
            builder.apply_section_updates([SectionUpdate(section_key=SectionKey.RISKS, content=text)])
            await asyncio.sleep(0.01)
        await asyncio.sleep(0.1)
        builder.close()

    asyncio.run(scenario())
    assert len(saver.calls) == 1
    assert saver.calls[0][SectionKey.RISKS].content == "abc"


def test_empty_batch_is_a_no_op(saver_factory) -> None:
    """It should neither highlight nor schedule a save for an empty batch."""

    saver = saver_factory()

    async def scenario() -> None:
        builder = DocumentBuilder("doc1", saver, debounce_ms=10)
        assert builder.apply_section_updates([]) == []
        await asyncio.sleep(0.04)
        assert builder.highlighted_sections == frozenset()
        builder.close()

    asyncio.run(scenario())
    assert saver.calls == []


def test_replace_content_does_not_highlight_or_save(saver_factory) -> None:
    """It should load content quietly, while manual saves still send it."""

    saver = saver_factory()
    loaded = {SectionKey.TIMELINE: Section(content="Q4 launch", status=SectionStatus.IN_PROGRESS)}

    async def scenario() -> None:
        builder = DocumentBuilder("doc1", saver, debounce_ms=10)
        builder.replace_content(loaded)
        await asyncio.sleep(0.04)
        assert saver.calls == []
        assert builder.highlighted_sections == frozenset()
        await builder.trigger_save()
        builder.close()

    asyncio.run(scenario())
    assert saver.calls == [loaded]


def test_highlights_expire(saver_factory) -> None:
    """It should drop highlights after the configured duration."""

    async def scenario() -> None:
        builder = DocumentBuilder("doc1", saver_factory(), highlight_duration_ms=30, enabled=False)
        builder.apply_section_updates([SectionUpdate(section_key=SectionKey.RISKS, content="r")])
        assert builder.state().highlighted_sections == ["risks"]
        await asyncio.sleep(0.06)
        assert builder.highlighted_sections == frozenset()
        builder.close()

    asyncio.run(scenario())


def test_completion_validation_tracks_content(saver_factory, complete_content) -> None:
    """It should recompute readiness from the latest content on every call."""

    async def scenario() -> None:
        builder = DocumentBuilder("doc1", saver_factory(), content=complete_content, enabled=False)
        assert builder.get_completion_validation().is_ready is True
        builder.apply_section_updates([SectionUpdate(section_key=SectionKey.RISKS, content="tbd")])
        report = builder.get_completion_validation()
        assert report.is_ready is False
        assert [r.key for r in report.incomplete_required] == ["risks"]
        builder.close()

    asyncio.run(scenario())


def test_close_mid_debounce_never_saves(saver_factory) -> None:
    """It should cancel every timer so no save happens after teardown."""

    saver = saver_factory()

    async def scenario() -> None:
        builder = DocumentBuilder("doc1", saver, debounce_ms=20, highlight_duration_ms=20)
        builder.apply_section_updates([SectionUpdate(section_key=SectionKey.RISKS, content="r")])
        builder.close()
        assert builder.highlighted_sections == frozenset()
        await asyncio.sleep(0.06)

    asyncio.run(scenario())
    assert saver.calls == []


def test_closed_session_rejects_use(saver_factory) -> None:
    """It should raise SessionClosedError for edits and saves after close."""

    async def scenario() -> None:
        builder = DocumentBuilder("doc1", saver_factory())
        builder.close()
        with pytest.raises(SessionClosedError):
            builder.apply_section_updates([SectionUpdate(section_key=SectionKey.RISKS, content="r")])
        with pytest.raises(SessionClosedError):
            await builder.trigger_save()

    asyncio.run(scenario())


def test_save_failure_is_surfaced_and_content_kept(saver_factory) -> None:
    """It should keep the edit in memory and expose the error for retry."""

    saver = saver_factory(fail_with=RuntimeError("quota exceeded"))

    async def scenario() -> None:
        builder = DocumentBuilder("doc1", saver, debounce_ms=10)
        builder.apply_section_updates([SectionUpdate(section_key=SectionKey.RISKS, content="r")])
        await asyncio.sleep(0.04)
        assert builder.save_status is SaveStatus.ERROR
        assert builder.save_error == "quota exceeded"
        assert builder.save_label == "Save failed: quota exceeded"
        assert builder.content[SectionKey.RISKS].content == "r"
        builder.clear_save_error()
        assert builder.save_status is SaveStatus.IDLE
        builder.close()

    asyncio.run(scenario())


def test_apply_chat_response(saver_factory) -> None:
    """It should apply assistant updates and return the reply message."""

    async def scenario() -> None:
        builder = DocumentBuilder("doc1", saver_factory(), enabled=False)
        response = builder.apply_chat_response(
            {
                "aiMessage": "I drafted the problem statement.",
                "sectionUpdates": [
                    {"sectionKey": "problemStatement", "content": "Reviews are slow", "status": "in_progress"}
                ],
            }
        )
        assert response.ai_message == "I drafted the problem statement."
        assert builder.content[SectionKey.PROBLEM_STATEMENT].content == "Reviews are slow"
        assert SectionKey.PROBLEM_STATEMENT in builder.highlighted_sections
        builder.close()

    asyncio.run(scenario())


def test_events_are_recorded(saver_factory, recorder) -> None:
    """It should record edits, saves and teardown in sequence."""

    async def scenario() -> None:
        builder = DocumentBuilder("doc1", saver_factory(), debounce_ms=10, highlight_duration_ms=200, recorder=recorder)
        builder.apply_section_updates([SectionUpdate(section_key=SectionKey.RISKS, content="r")])
        await asyncio.sleep(0.04)
        builder.close()

    asyncio.run(scenario())
    assert recorder.content_types == ["sections_updated", "save_started", "save_succeeded", "session_closed"]
    assert [e.seq for e in recorder.events] == [1, 2, 3, 4]


def test_open_loads_from_store_and_saves_back(tmp_path: Path) -> None:
    """It should seed the session from the store and persist edits on close."""

    settings = _settings(tmp_path, debounce_ms=5000, record_events=True)
    store = FileDocumentStore(settings.documents_dir)

    async def scenario() -> None:
        await store.save("doc1", {SectionKey.TIMELINE: Section(content="Q3", status=SectionStatus.COMPLETE)})
        async with await DocumentBuilder.open("doc1", store, settings=settings) as builder:
            assert builder.content[SectionKey.TIMELINE].content == "Q3"
            assert builder.save_status is SaveStatus.IDLE
            builder.apply_section_updates([SectionUpdate(section_key=SectionKey.RISKS, content="scope creep")])
        assert builder.closed

    asyncio.run(scenario())
    stored = json.loads((settings.documents_dir / "doc1.json").read_text(encoding="utf-8"))
    assert stored["content"]["risks"] == {"content": "scope creep", "status": "in_progress"}
    assert stored["content"]["timeline"]["content"] == "Q3"
    assert (settings.artifacts_dir / "doc1" / "events.jsonl").exists()


def test_open_surfaces_load_failure(tmp_path: Path) -> None:
    """It should raise the store's load error to the caller."""

    async def scenario() -> None:
        await DocumentBuilder.open("doc1", BrokenStore(), settings=_settings(tmp_path))

    with pytest.raises(DocumentLoadError, match="database unavailable"):
        asyncio.run(scenario())


def test_open_rejects_invalid_document_id(tmp_path: Path) -> None:
    """It should refuse ids that are not safe path or key segments."""

    async def scenario() -> None:
        await DocumentBuilder.open("../etc", BrokenStore(), settings=_settings(tmp_path))

    with pytest.raises(ValueError):
        asyncio.run(scenario())


def test_recorder_failure_does_not_break_saving(saver_factory) -> None:
    """It should keep editing, saving and expiring "saved" when recording events fails."""

    saver = saver_factory()

    async def scenario() -> None:
        builder = DocumentBuilder(
            "doc1",
            saver,
            debounce_ms=10,
            saved_display_ms=150,
            recorder=BrokenRecorder(),
        )
        builder.apply_section_updates([SectionUpdate(section_key=SectionKey.RISKS, content="r")])
        await asyncio.sleep(0.05)
        assert builder.save_status is SaveStatus.SAVED
        await asyncio.sleep(0.2)
        assert builder.save_status is SaveStatus.IDLE
        builder.close()

    asyncio.run(scenario())
    assert len(saver.calls) == 1
