"""In-process registry of open document sessions."""

from __future__ import annotations

from docbuilder.builder.coordinator import DocumentBuilder
from docbuilder.config import Settings
from docbuilder.logging import get_logger
from docbuilder.storage.protocol import DocumentStore

logger = get_logger(__name__)


class SessionNotFoundError(KeyError):
    """Raised when no session is open for a document."""

    pass


class SessionRegistry:
    """Map document ids to their open :class:`DocumentBuilder`.

    Each document has at most one session; each session owns its own content and timers.
    """

    def __init__(self, store: DocumentStore, settings: Settings) -> None:
        self._store = store
        self._settings = settings
        self._sessions: dict[str, DocumentBuilder] = {}

    async def open(self, document_id: str) -> DocumentBuilder:
        """Return the open session for ``document_id``, loading it if needed."""

        existing = self._sessions.get(document_id)
        if existing is not None:
            return existing

        builder = await DocumentBuilder.open(document_id, self._store, settings=self._settings)
        # Another request may have opened the same document while we were loading
        existing = self._sessions.get(document_id)
        if existing is not None:
            builder.close()
            return existing
        self._sessions[document_id] = builder
        return builder

    def get(self, document_id: str) -> DocumentBuilder:
        try:
            return self._sessions[document_id]
        except KeyError:
            raise SessionNotFoundError(document_id) from None

    async def close(self, document_id: str) -> None:
        """Flush and close one session."""

        builder = self._sessions.pop(document_id, None)
        if builder is None:
            raise SessionNotFoundError(document_id)
        await builder.aclose()

    async def close_all(self) -> None:
        """Flush and close every session."""

        while self._sessions:
            document_id, builder = self._sessions.popitem()
            try:
                await builder.aclose()
            except Exception:
                logger.exception("Failed to close session", extra={"session": document_id})

    def __contains__(self, document_id: object) -> bool:
        return document_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
