"""FastAPI app exposing document builder sessions.

Every handler is ``async`` so all sessions, timers and saves share the server's event loop.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from docbuilder.api.sessions import SessionNotFoundError, SessionRegistry
from docbuilder.builder.coordinator import DocumentBuilder
from docbuilder.builder.state import BuilderState
from docbuilder.chat.responses import ChatResponseError, ChatServiceError
from docbuilder.config import Settings, load_settings
from docbuilder.events import SessionEvent
from docbuilder.logging import configure_logging, get_logger
from docbuilder.models.document import SectionUpdate
from docbuilder.models.sections import SECTION_DEFINITIONS, SectionDefinition
from docbuilder.models.validation import CompletionValidation
from docbuilder.recording.file_recorder import iter_events, session_events_path
from docbuilder.storage import DocumentLoadError, DocumentStore, build_store, validate_document_id


class SectionUpdatesRequest(BaseModel):
    """Batch of section updates."""

    updates: list[SectionUpdate]


class ChatReplyResponse(BaseModel):
    """Assistant message plus the session state after its updates were applied."""

    ai_message: str
    state: BuilderState


class AutoSaveRequest(BaseModel):
    enabled: bool


def create_app(settings: Settings | None = None, store: DocumentStore | None = None) -> FastAPI:
    """Create FastAPI app."""

    settings = settings or load_settings()
    configure_logging(settings.log_level)
    logger = get_logger(__name__)
    registry = SessionRegistry(store or build_store(settings), settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        logger.info("Shutting down, closing sessions", extra={"open_sessions": len(registry)})
        await registry.close_all()

    app = FastAPI(title="DocBuilder", version="0.1.0", lifespan=lifespan)
    app.state.sessions = registry

    def session(document_id: str) -> DocumentBuilder:
        try:
            return registry.get(document_id)
        except SessionNotFoundError:
            raise HTTPException(status_code=404, detail="session not open") from None

    @app.get("/health")
    async def health() -> dict[str, Any]:
        return {"status": "ok", "open_sessions": len(registry)}

    @app.get("/sections")
    async def sections() -> list[SectionDefinition]:
        return list(SECTION_DEFINITIONS)

    @app.post("/documents/{document_id}/session")
    async def open_session(document_id: str) -> BuilderState:
        logger.info("API session open requested", extra={"session": document_id})
        try:
            builder = await registry.open(document_id)
        except ValueError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        except DocumentLoadError as exc:
            raise HTTPException(status_code=503, detail=str(exc)) from exc
        return builder.state()

    @app.delete("/documents/{document_id}/session", status_code=204)
    async def close_session(document_id: str) -> None:
        logger.info("API session close requested", extra={"session": document_id})
        try:
            await registry.close(document_id)
        except SessionNotFoundError:
            raise HTTPException(status_code=404, detail="session not open") from None

    @app.get("/documents/{document_id}")
    async def get_state(document_id: str) -> BuilderState:
        return session(document_id).state()

    @app.post("/documents/{document_id}/sections")
    async def apply_updates(document_id: str, req: SectionUpdatesRequest) -> BuilderState:
        builder = session(document_id)
        builder.apply_section_updates(req.updates)
        return builder.state()

    @app.post("/documents/{document_id}/chat")
    async def apply_chat(document_id: str, payload: dict[str, Any]) -> ChatReplyResponse:
        builder = session(document_id)
        try:
            response = builder.apply_chat_response(payload)
        except ChatServiceError as exc:
            raise HTTPException(status_code=502, detail={"message": str(exc), "code": exc.code}) from exc
        except ChatResponseError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        return ChatReplyResponse(ai_message=response.ai_message, state=builder.state())

    @app.post("/documents/{document_id}/save")
    async def save_now(document_id: str) -> BuilderState:
        builder = session(document_id)
        await builder.trigger_save()
        return builder.state()

    @app.delete("/documents/{document_id}/save-error")
    async def clear_save_error(document_id: str) -> BuilderState:
        builder = session(document_id)
        builder.clear_save_error()
        return builder.state()

    @app.put("/documents/{document_id}/autosave")
    async def set_autosave(document_id: str, req: AutoSaveRequest) -> BuilderState:
        builder = session(document_id)
        builder.autosave_enabled = req.enabled
        return builder.state()

    @app.get("/documents/{document_id}/validation")
    async def validation(document_id: str) -> CompletionValidation:
        return session(document_id).get_completion_validation()

    @app.get("/documents/{document_id}/events")
    async def events(document_id: str) -> list[SessionEvent]:
        logger.info("API events requested", extra={"session": document_id})
        try:
            validate_document_id(document_id)
        except ValueError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        recorded = iter_events(session_events_path(settings.artifacts_dir, document_id))
        if not recorded:
            raise HTTPException(status_code=404, detail="no recorded events")
        return recorded

    return app
