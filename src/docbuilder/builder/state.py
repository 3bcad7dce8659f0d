"""Serializable snapshot of a document builder session."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from docbuilder.core.autosave import SaveStatus
from docbuilder.models.document import SectionStatus
from docbuilder.models.validation import CompletionValidation


class BuilderState(BaseModel):
    """Read model of one editing session, as shown to the UI and chat collaborators."""

    document_id: str
    content: dict[str, dict[str, str]]
    section_statuses: dict[str, SectionStatus] = Field(default_factory=dict)
    save_status: SaveStatus
    save_label: str
    last_saved_at: datetime | None = None
    save_error: str | None = None
    autosave_enabled: bool = True
    highlighted_sections: list[str] = Field(default_factory=list)
    validation: CompletionValidation
