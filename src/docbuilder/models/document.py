"""Document content models.

A document is a mapping from section key to section. A key that is missing from the mapping
is treated exactly like an empty section.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


class SectionKey(str, Enum):
    """The fixed set of document sections, in display order."""

    PROBLEM_STATEMENT = "problem_statement"
    GOALS_AND_METRICS = "goals_and_metrics"
    USER_STORIES = "user_stories"
    REQUIREMENTS = "requirements"
    TECHNICAL_CONSIDERATIONS = "technical_considerations"
    RISKS = "risks"
    TIMELINE = "timeline"

    @classmethod
    def _missing_(cls, value: object) -> SectionKey | None:
        # Chat payloads spell keys in camelCase (``problemStatement``)
        if isinstance(value, str):
            snake = _CAMEL_BOUNDARY.sub("_", value).lower()
            for member in cls:
                if member.value == snake:
                    return member
        return None


class SectionStatus(str, Enum):
    """Completion status of a single section."""

    EMPTY = "empty"
    IN_PROGRESS = "in_progress"
    COMPLETE = "complete"


class Section(BaseModel):
    """Free-text content of one section plus its completion status."""

    model_config = ConfigDict(frozen=True)

    content: str = ""
    status: SectionStatus = SectionStatus.EMPTY


class SectionUpdate(BaseModel):
    """A replacement for one section, produced by a local edit or the chat assistant."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    section_key: SectionKey = Field(alias="sectionKey")
    content: str
    status: SectionStatus = SectionStatus.IN_PROGRESS


DocumentContent = dict[SectionKey, Section]

_content_adapter: TypeAdapter[DocumentContent] = TypeAdapter(DocumentContent)


def empty_content() -> DocumentContent:
    """Return a document with every section present and empty."""

    return {key: Section() for key in SectionKey}


def load_content(raw: Mapping[str, Any] | None) -> DocumentContent:
    """Validate raw JSON-like data into document content.

    Raises:
        pydantic.ValidationError: If a key or section is malformed.
    """

    if raw is None:
        return empty_content()
    return _content_adapter.validate_python(dict(raw))


def dump_content(content: Mapping[SectionKey, Section]) -> dict[str, dict[str, str]]:
    """Serialize document content to JSON-safe data, keys in canonical order."""

    ordered = {key: content[key] for key in SectionKey if key in content}
    return _content_adapter.dump_python(ordered, mode="json")


def merge_section_updates(
    content: Mapping[SectionKey, Section],
    updates: Iterable[SectionUpdate],
) -> DocumentContent:
    """Return a new document with ``updates`` applied in order.

    The input mapping is never mutated. When a batch touches the same key more than once the
    last update wins.
    """

    merged: DocumentContent = dict(content)
    for update in updates:
        merged[update.section_key] = Section(content=update.content, status=update.status)
    return merged
