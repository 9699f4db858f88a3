"""Pydantic models for editorial-review responses.

The editorial reviewer asks the model for an analysis of a batch of
chapters, the issues found, proposed text fixes and a release
readiness verdict.  Responses are camelCase; fields are snake_case
with camelCase aliases.
"""

from __future__ import annotations

from typing import Literal

import pydantic

from resilient_json.utils.serialization import snake_to_camel

IssueSeverity = Literal["minor", "major"]

IssueType = Literal[
    "gap",
    "transition",
    "grammar",
    "continuity",
    "time_skip",
    "character_consistency",
    "plot_hole",
    "style",
    "formatting",
    "paragraph_structure",
    "sentence_structure",
]

OverallFlowRating = Literal["excellent", "good", "adequate", "needs_work"]


class _CamelModel(pydantic.BaseModel):
    model_config = pydantic.ConfigDict(
        alias_generator=snake_to_camel, populate_by_name=True
    )


class EditorIssue(_CamelModel):
    """A problem the reviewer found in a chapter."""

    type: IssueType
    severity: IssueSeverity = "minor"
    chapter_number: int
    location: Literal["start", "middle", "end", "transition"] = "middle"
    description: str
    suggestion: str = ""
    auto_fixable: bool = False
    original_text: str | None = None
    context: str | None = None


class EditorFix(_CamelModel):
    """A proposed replacement (or insertion) of chapter text."""

    chapter_number: int
    fix_type: IssueType
    original_text: str = ""
    fixed_text: str
    reason: str = ""
    is_insertion: bool = False
    insertion_location: Literal["before", "after", "split"] | None = None


class EditorAnalysis(_CamelModel):
    """Scores and summary for the reviewed chapters."""

    overall_flow: OverallFlowRating = "adequate"
    continuity_score: int = pydantic.Field(default=0, ge=0, le=100)
    grammar_score: int = pydantic.Field(default=0, ge=0, le=100)
    style_score: int = pydantic.Field(default=0, ge=0, le=100)
    summary: str = ""
    strengths: list[str] = pydantic.Field(default_factory=list)
    recommendations: list[str] = pydantic.Field(default_factory=list)


class ReleaseReadiness(_CamelModel):
    """Whether the chapters can be published as they are."""

    is_ready_for_release: bool = False
    blocking_issues: list[str] = pydantic.Field(default_factory=list)
    suggested_improvements: list[str] = pydantic.Field(default_factory=list)


class EditorialReview(_CamelModel):
    """Complete editorial-review response."""

    analysis: EditorAnalysis | None = None
    issues: list[EditorIssue] = pydantic.Field(default_factory=list)
    fixes: list[EditorFix] = pydantic.Field(default_factory=list)
    readiness: ReleaseReadiness = pydantic.Field(default_factory=ReleaseReadiness)
