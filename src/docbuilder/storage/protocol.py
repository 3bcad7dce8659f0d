"""Protocol for document persistence collaborators."""

from __future__ import annotations

import re
from abc import ABC, abstractmethod

from docbuilder.models.document import DocumentContent

_DOCUMENT_ID = re.compile(r"^[A-Za-z0-9_-]+$")


class DocumentStoreError(Exception):
    """Base class for persistence failures. ``str(exc)`` is shown to the user."""

    pass


class DocumentLoadError(DocumentStoreError):
    """Raised when stored content cannot be read."""

    pass


class DocumentSaveError(DocumentStoreError):
    """Raised when content cannot be written."""

    pass


def validate_document_id(document_id: str) -> str:
    """Reject ids that are unsafe as file names or key segments.

    Raises:
        ValueError: If the id is empty or contains characters outside ``[A-Za-z0-9_-]``.
    """

    if not _DOCUMENT_ID.match(document_id):
        raise ValueError(f"invalid document id: {document_id!r}")
    return document_id


class DocumentStore(ABC):
    """Async load/save capability for document content.

    Implementations own retries and timeouts; callers only see success or an exception.
    """

    @abstractmethod
    async def load(self, document_id: str) -> DocumentContent:
        """Load a document. A document that was never saved loads as empty content.

        Raises:
            DocumentLoadError: If the stored document cannot be read or parsed.
        """

    @abstractmethod
    async def save(self, document_id: str, content: DocumentContent) -> None:
        """Persist the full content of a document.

        Raises:
            DocumentSaveError: If the write fails.
        """
