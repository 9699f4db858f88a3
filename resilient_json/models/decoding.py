"""Pydantic models for decode results, diagnostics and warnings."""

from __future__ import annotations

from typing import Annotated, Any, Literal

import pydantic

from resilient_json.utils.serialization import snake_to_camel

RepairStage = Literal[
    "raw",
    "stripped",
    "embedded",
    "controlCharsFixed",
    "commaFixed",
    "quotesFixed",
    "truncationFixed",
    "partialExtraction",
]

DecodeOutcome = Literal[
    "well_formed",
    "recoverable_framing",
    "recoverable_truncation",
    "partial_recovery",
    "unrecoverable",
]

SalvageStrategy = Literal["tail_array_cut", "complete_members", "isolated_field"]


class StageFailure(pydantic.BaseModel):
    """A single parse attempt that did not produce valid JSON."""

    model_config = pydantic.ConfigDict(
        alias_generator=snake_to_camel, populate_by_name=True
    )

    stage: RepairStage
    error_message: str
    offset: int | None = None


class DecodeDiagnostics(pydantic.BaseModel):
    """Context describing why a response could not be fully parsed.

    Attributes:
        raw_length: Length of the original response text.
        failed_stage: Last stage attempted before giving up.
        error_message: Parse error of the untouched response.
        excerpt: Text around the parse-error offset, or the
            head of the response.
        truncation_suspected: Whether the response looks cut
            short by an output-token ceiling.
        suggestion: Remediation hint, set when truncation is
            suspected.
        attempts: Every failed full-parse attempt, in order.
    """

    model_config = pydantic.ConfigDict(
        alias_generator=snake_to_camel, populate_by_name=True
    )

    raw_length: int
    failed_stage: RepairStage
    error_message: str
    excerpt: str
    truncation_suspected: bool = False
    suggestion: str | None = None
    attempts: list[StageFailure] = pydantic.Field(default_factory=list)


class FullDecode(pydantic.BaseModel):
    """The response parsed completely, possibly after repairs."""

    kind: Literal["full"] = "full"
    value: Any
    stage: RepairStage
    outcome: DecodeOutcome = "well_formed"
    notes: list[str] = pydantic.Field(default_factory=list)

    @property
    def is_partial(self) -> bool:
        return False


class PartialDecode(pydantic.BaseModel):
    """Only part of the response could be recovered.

    ``missing_fields`` names content that was lost;
    ``defaulted_fields`` names fields filled with placeholders
    supplied by schema hints.  Neither is model output.
    """

    kind: Literal["partial"] = "partial"
    value: Any
    strategy: SalvageStrategy
    missing_fields: list[str] = pydantic.Field(default_factory=list)
    defaulted_fields: list[str] = pydantic.Field(default_factory=list)
    diagnostics: DecodeDiagnostics
    outcome: Literal["partial_recovery"] = "partial_recovery"

    @property
    def is_partial(self) -> bool:
        return True


class FailedDecode(pydantic.BaseModel):
    """Every repair stage failed."""

    kind: Literal["failed"] = "failed"
    diagnostics: DecodeDiagnostics
    outcome: Literal["unrecoverable"] = "unrecoverable"

    @property
    def is_partial(self) -> bool:
        return False


DecodeResult = Annotated[
    FullDecode | PartialDecode | FailedDecode,
    pydantic.Field(discriminator="kind"),
]


class DecodeWarning(pydantic.BaseModel):
    """Non-fatal signal raised when truncation repair or salvage engaged."""

    source: str
    outcome: DecodeOutcome
    message: str
    raw_length: int
    missing_fields: list[str] = pydantic.Field(default_factory=list)
