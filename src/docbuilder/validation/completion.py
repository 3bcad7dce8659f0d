"""Document completion validation.

Every function here is pure: the same content always yields the same report, and nothing is
cached between calls.
"""

from __future__ import annotations

from collections.abc import Mapping

from docbuilder.models.document import Section, SectionKey, SectionStatus
from docbuilder.models.sections import REQUIRED_SECTIONS, get_section_definition
from docbuilder.models.validation import CompletionValidation, SectionValidationResult


def _key_name(key: SectionKey | str) -> str:
    return key.value if isinstance(key, SectionKey) else str(key)


def get_section_status(section: Section | None) -> SectionStatus:
    """Return the status to display for a section.

    Blank or missing sections always read as empty, whatever status they were stored with.
    """

    if section is None or not section.content.strip():
        return SectionStatus.EMPTY
    return section.status or SectionStatus.IN_PROGRESS


def validate_section(key: SectionKey | str, section: Section | None) -> SectionValidationResult:
    """Validate a single section against its definition.

    An empty section reports only that it is empty. Otherwise the length and status checks
    both run, so one section can carry two issues.
    """

    definition = get_section_definition(key)
    if definition is None:
        return SectionValidationResult(key=_key_name(key), is_valid=False, issues=["Unknown section"])

    issues: list[str] = []
    text = section.content.strip() if section is not None else ""

    if not text:
        issues.append(f"{definition.title} is empty")
        return SectionValidationResult(key=definition.key.value, is_valid=False, issues=issues)

    if len(text) < definition.min_content_length:
        issues.append(
            f"{definition.title} needs more detail "
            f"(minimum {definition.min_content_length} characters, currently {len(text)})"
        )

    if section.status != SectionStatus.COMPLETE:
        issues.append(f"{definition.title} is still in progress")

    return SectionValidationResult(key=definition.key.value, is_valid=not issues, issues=issues)


def validate_all_sections(content: Mapping[SectionKey, Section]) -> CompletionValidation:
    """Validate every required section, in canonical order.

    Optional sections are left out of both the results and the required total.
    """

    section_results = [validate_section(d.key, content.get(d.key)) for d in REQUIRED_SECTIONS]
    incomplete_required = [r for r in section_results if not r.is_valid]

    return CompletionValidation(
        is_ready=not incomplete_required,
        completed_count=len(section_results) - len(incomplete_required),
        total_required=len(REQUIRED_SECTIONS),
        section_results=section_results,
        incomplete_required=incomplete_required,
    )


def is_ready_to_complete(content: Mapping[SectionKey, Section]) -> bool:
    """Check whether a document can be marked complete."""

    return validate_all_sections(content).is_ready
