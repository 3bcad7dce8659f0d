"""Pydantic models used across the project."""

from __future__ import annotations

from docbuilder.models.document import (
    DocumentContent,
    Section,
    SectionKey,
    SectionStatus,
    SectionUpdate,
    dump_content,
    empty_content,
    load_content,
    merge_section_updates,
)
from docbuilder.models.sections import (
    REQUIRED_SECTIONS,
    SECTION_DEFINITIONS,
    SectionDefinition,
    get_section_definition,
)
from docbuilder.models.validation import CompletionValidation, SectionValidationResult

__all__ = [
    "CompletionValidation",
    "DocumentContent",
    "REQUIRED_SECTIONS",
    "SECTION_DEFINITIONS",
    "Section",
    "SectionDefinition",
    "SectionKey",
    "SectionStatus",
    "SectionUpdate",
    "SectionValidationResult",
    "dump_content",
    "empty_content",
    "get_section_definition",
    "load_content",
    "merge_section_updates",
]
