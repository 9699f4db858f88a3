"""Tests for resilient_json.models — result types, hints and editorial models."""

from __future__ import annotations

import pydantic
import pytest

from resilient_json.models import decoding, editorial
from resilient_json.models.hints import NO_HINTS, SchemaHints


def _diagnostics() -> decoding.DecodeDiagnostics:
    return decoding.DecodeDiagnostics(
        raw_length=10,
        failed_stage="partialExtraction",
        error_message="Expecting value",
        excerpt="abc",
    )


class TestDecodeResult:
    """Tests for the tagged result union."""

    _adapter = pydantic.TypeAdapter(decoding.DecodeResult)

    def test_full_defaults(self) -> None:
        result = decoding.FullDecode(value={"a": 1}, stage="raw")
        assert result.kind == "full"
        assert result.outcome == "well_formed"
        assert result.is_partial is False

    def test_partial_is_flagged(self) -> None:
        result = decoding.PartialDecode(
            value={"a": 1},
            strategy="complete_members",
            missing_fields=["b"],
            diagnostics=_diagnostics(),
        )
        assert result.is_partial is True
        assert result.outcome == "partial_recovery"

    def test_failed_outcome(self) -> None:
        result = decoding.FailedDecode(diagnostics=_diagnostics())
        assert result.outcome == "unrecoverable"
        assert result.is_partial is False

    def test_discriminates_on_kind(self) -> None:
        data = {"kind": "partial", "value": {}, "strategy": "isolated_field", "diagnostics": _diagnostics()}
        assert isinstance(self._adapter.validate_python(data), decoding.PartialDecode)
        data = {"kind": "failed", "diagnostics": _diagnostics()}
        assert isinstance(self._adapter.validate_python(data), decoding.FailedDecode)

    def test_rejects_unknown_stage(self) -> None:
        with pytest.raises(pydantic.ValidationError):
            decoding.FullDecode(value=1, stage="magic")

    def test_diagnostics_accept_aliases(self) -> None:
        diag = decoding.DecodeDiagnostics.model_validate(
            {"rawLength": 5, "failedStage": "raw", "errorMessage": "x", "excerpt": "y"}
        )
        assert diag.raw_length == 5
        assert diag.attempts == []


class TestSchemaHints:
    """Tests for SchemaHints."""

    def test_no_hints_is_empty(self) -> None:
        assert NO_HINTS.is_empty

    def test_any_hint_makes_non_empty(self) -> None:
        assert not SchemaHints(isolated_fields=("analysis",)).is_empty

    def test_frozen(self) -> None:
        hints = SchemaHints(tail_arrays=("fixes",))
        with pytest.raises(pydantic.ValidationError):
            hints.tail_arrays = ("other",)


class TestEditorialModels:
    """Tests for the editorial-review response models."""

    def test_validates_camel_case_payload(self) -> None:
        review = editorial.EditorialReview.model_validate(
            {
                "analysis": {"overallFlow": "good", "continuityScore": 80, "summary": "Solid"},
                "issues": [
                    {
                        "type": "grammar",
                        "severity": "major",
                        "chapterNumber": 3,
                        "location": "start",
                        "description": "Tense shift",
                    }
                ],
                "fixes": [{"chapterNumber": 3, "fixType": "grammar", "fixedText": "He walked."}],
                "readiness": {"isReadyForRelease": True},
            }
        )
        assert review.analysis is not None
        assert review.analysis.continuity_score == 80
        assert review.issues[0].chapter_number == 3
        assert review.fixes[0].fixed_text == "He walked."
        assert review.readiness.is_ready_for_release is True

    def test_defaults_for_missing_sections(self) -> None:
        review = editorial.EditorialReview.model_validate({})
        assert review.analysis is None
        assert review.issues == []
        assert review.readiness.is_ready_for_release is False

    def test_score_bounds(self) -> None:
        with pytest.raises(pydantic.ValidationError):
            editorial.EditorAnalysis(style_score=101)

    def test_dumps_with_aliases(self) -> None:
        readiness = editorial.ReleaseReadiness(blocking_issues=["plot hole"])
        assert readiness.model_dump(by_alias=True)["blockingIssues"] == ["plot hole"]
