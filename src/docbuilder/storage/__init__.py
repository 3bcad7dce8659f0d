"""Pluggable persistence for document content."""

from __future__ import annotations

from docbuilder.config import Settings
from docbuilder.storage.file_store import FileDocumentStore
from docbuilder.storage.protocol import (
    DocumentLoadError,
    DocumentSaveError,
    DocumentStore,
    DocumentStoreError,
    validate_document_id,
)
from docbuilder.storage.redis_store import RedisDocumentStore


def build_store(settings: Settings) -> DocumentStore:
    """Create the document store selected by ``settings.store_backend``."""

    if settings.store_backend == "redis":
        return RedisDocumentStore(redis_url=settings.redis_url, key_prefix=settings.redis_key_prefix)
    return FileDocumentStore(settings.documents_dir)


__all__ = [
    "DocumentLoadError",
    "DocumentSaveError",
    "DocumentStore",
    "DocumentStoreError",
    "FileDocumentStore",
    "RedisDocumentStore",
    "build_store",
    "validate_document_id",
]
