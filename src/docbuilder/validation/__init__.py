"""Rule-based readiness checks for document content."""

from __future__ import annotations

from docbuilder.validation.completion import (
    get_section_status,
    is_ready_to_complete,
    validate_all_sections,
    validate_section,
)

__all__ = [
    "get_section_status",
    "is_ready_to_complete",
    "validate_all_sections",
    "validate_section",
]
