"""JSON file document store.

Each document lives in ``<root_dir>/<document_id>.json``. Writes go to a temporary file that
is then renamed over the old one, so readers never see a half-written document.
"""

from __future__ import annotations

import asyncio
import json
import os
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from docbuilder.logging import get_logger
from docbuilder.models.document import DocumentContent, dump_content, empty_content, load_content
from docbuilder.storage.protocol import (
    DocumentLoadError,
    DocumentSaveError,
    DocumentStore,
    validate_document_id,
)

logger = get_logger(__name__)


class FileDocumentStore(DocumentStore):
    """Document store backed by one JSON file per document."""

    def __init__(self, root_dir: str | Path) -> None:
        self.root_dir = Path(root_dir)

    def path_for(self, document_id: str) -> Path:
        return self.root_dir / f"{validate_document_id(document_id)}.json"

    async def load(self, document_id: str) -> DocumentContent:
        path = self.path_for(document_id)
        return await asyncio.to_thread(self._read, path)

    async def save(self, document_id: str, content: DocumentContent) -> None:
        path = self.path_for(document_id)
        # Serialize on the loop so the written payload is the snapshot we were given
        payload = {
            "document_id": document_id,
            "updated_at": datetime.now(UTC).isoformat(),
            "content": dump_content(content),
        }
        await asyncio.to_thread(self._write, path, payload)

    def _read(self, path: Path) -> DocumentContent:
        if not path.exists():
            logger.info("No stored document, starting empty", extra={"path": str(path)})
            return empty_content()
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
            return load_content(raw.get("content"))
        except (OSError, json.JSONDecodeError, AttributeError, ValidationError) as exc:
            raise DocumentLoadError(f"Failed to load document from {path.name}: {exc}") from exc

    def _write(self, path: Path, payload: dict[str, Any]) -> None:
        tmp = path.with_name(path.name + ".tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
            os.replace(tmp, path)
        except OSError as exc:
            raise DocumentSaveError(f"Failed to save document: {exc.strerror or exc}") from exc
