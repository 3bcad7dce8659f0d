"""Static section definitions.

This table is the single source of truth for section titles, guidance and the rules the
completion check applies. It is process-wide constant configuration.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from docbuilder.models.document import SectionKey


class SectionDefinition(BaseModel):
    """Display text and validation rules for one section."""

    model_config = ConfigDict(frozen=True)

    key: SectionKey
    title: str
    description: str
    placeholder: str
    required: bool
    min_content_length: int = Field(ge=0)
    guide_questions: tuple[str, ...] = Field(min_length=3)


SECTION_DEFINITIONS: tuple[SectionDefinition, ...] = (
    SectionDefinition(
        key=SectionKey.PROBLEM_STATEMENT,
        title="Problem Statement",
        description="A clear articulation of the problem you're solving",
        placeholder="What specific problem does your idea address? Who experiences this problem?",
        required=True,
        min_content_length=100,
        guide_questions=(
            "What specific problem are you trying to solve?",
            "Who experiences this problem most acutely?",
            "What is the current impact of this problem?",
            "Why is this problem worth solving now?",
        ),
    ),
    SectionDefinition(
        key=SectionKey.GOALS_AND_METRICS,
        title="Goals & Metrics",
        description="Success criteria and key performance indicators",
        placeholder="How will you measure success? What specific metrics will improve?",
        required=True,
        min_content_length=80,
        guide_questions=(
            "What does success look like for this solution?",
            "What specific metrics will you use to measure success?",
            "What are your target improvements (e.g., 30% reduction in X)?",
            "How will you track and report on these metrics?",
        ),
    ),
    SectionDefinition(
        key=SectionKey.USER_STORIES,
        title="User Stories",
        description="Descriptions of who uses this and what they can do",
        placeholder="As a [user type], I want [capability], so that [benefit]...",
        required=True,
        min_content_length=100,
        guide_questions=(
            "Who are the primary users of this solution?",
            "What are the key actions they need to perform?",
            "What benefit does each action provide?",
            "Are there different user types with different needs?",
        ),
    ),
    SectionDefinition(
        key=SectionKey.REQUIREMENTS,
        title="Requirements",
        description="Functional and non-functional requirements",
        placeholder="What must the solution do? What constraints must it meet?",
        required=True,
        min_content_length=100,
        guide_questions=(
            "What are the must-have features?",
            "What are nice-to-have features?",
            "Are there performance requirements?",
            "Are there security or compliance requirements?",
        ),
    ),
    SectionDefinition(
        key=SectionKey.TECHNICAL_CONSIDERATIONS,
        title="Technical Considerations",
        description="Architecture, constraints, and technical dependencies",
        placeholder="What technical aspects need to be considered?",
        required=True,
        min_content_length=50,
        guide_questions=(
            "What existing systems does this need to integrate with?",
            "Are there technical constraints to consider?",
            "What data or APIs will be needed?",
            "Are there scalability considerations?",
        ),
    ),
    SectionDefinition(
        key=SectionKey.RISKS,
        title="Risks",
        description="Risk assessment and mitigation strategies",
        placeholder="What could go wrong? How would you mitigate these risks?",
        required=True,
        min_content_length=50,
        guide_questions=(
            "What are the biggest risks to this project?",
            "What technical risks exist?",
            "What could cause delays or failures?",
            "How would you mitigate each risk?",
        ),
    ),
    SectionDefinition(
        key=SectionKey.TIMELINE,
        title="Timeline",
        description="Implementation timeline and milestones",
        placeholder="What is the expected timeline? What are the key milestones?",
        required=False,
        min_content_length=30,
        guide_questions=(
            "What is the expected timeline for implementation?",
            "What are the key milestones?",
            "Are there dependencies that affect timing?",
            "What would a phased rollout look like?",
        ),
    ),
)

REQUIRED_SECTIONS: tuple[SectionDefinition, ...] = tuple(d for d in SECTION_DEFINITIONS if d.required)

_BY_KEY: dict[SectionKey, SectionDefinition] = {d.key: d for d in SECTION_DEFINITIONS}


def get_section_definition(key: SectionKey | str) -> SectionDefinition | None:
    """Look up a section definition, returning ``None`` for unknown keys."""

    try:
        return _BY_KEY.get(SectionKey(key))
    except ValueError:
        return None
