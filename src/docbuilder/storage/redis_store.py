"""Redis-based document store.

This is optional and complements the file store. It enables multi-instance deployments where
documents are accessible without reading local disk.
"""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass

import redis
from pydantic import ValidationError

from docbuilder.models.document import DocumentContent, dump_content, empty_content, load_content
from docbuilder.storage.protocol import (
    DocumentLoadError,
    DocumentSaveError,
    DocumentStore,
    validate_document_id,
)


@dataclass
class RedisDocumentStore(DocumentStore):
    """Document store keeping each document as a JSON string."""

    redis_url: str
    key_prefix: str

    def __post_init__(self) -> None:
        self._client = redis.Redis.from_url(self.redis_url, decode_responses=True)

    def key_for(self, document_id: str) -> str:
        return f"{self.key_prefix}:document:{validate_document_id(document_id)}"

    async def load(self, document_id: str) -> DocumentContent:
        key = self.key_for(document_id)
        try:
            raw = await asyncio.to_thread(self._client.get, key)
        except redis.RedisError as exc:
            raise DocumentLoadError(f"Failed to load document: {exc}") from exc
        if raw is None:
            return empty_content()
        try:
            return load_content(json.loads(raw))
        except (json.JSONDecodeError, ValidationError) as exc:
            raise DocumentLoadError(f"Stored document {document_id} is corrupt: {exc}") from exc

    async def save(self, document_id: str, content: DocumentContent) -> None:
        key = self.key_for(document_id)
        line = json.dumps(dump_content(content), ensure_ascii=False)
        try:
            await asyncio.to_thread(self._client.set, key, line)
        except redis.RedisError as exc:
            raise DocumentSaveError(f"Failed to save document: {exc}") from exc
