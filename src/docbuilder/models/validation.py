"""Completion validation report models."""

from __future__ import annotations

from pydantic import BaseModel, Field


class SectionValidationResult(BaseModel):
    """Outcome of checking one section against its rules."""

    key: str
    is_valid: bool
    issues: list[str] = Field(default_factory=list)


class CompletionValidation(BaseModel):
    """Readiness report over all required sections."""

    is_ready: bool
    completed_count: int = Field(ge=0)
    total_required: int = Field(ge=0)
    section_results: list[SectionValidationResult] = Field(default_factory=list)
    incomplete_required: list[SectionValidationResult] = Field(default_factory=list)
