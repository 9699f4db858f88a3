"""
Error types and helpers for consistent error message extraction.
"""

from __future__ import annotations

import json

from resilient_json.models import decoding


def get_error_message(error: BaseException | object) -> str:
    """
    Safely extract an error message from an unknown error type.
    """
    if isinstance(error, json.JSONDecodeError):
        return error.msg
    if isinstance(error, Exception):
        return str(error) or type(error).__name__
    return "Unknown error"


def get_error_offset(error: BaseException | object) -> int | None:
    """Return the character offset a parse error points at, if any."""
    if isinstance(error, json.JSONDecodeError):
        return error.pos
    return None


class MalformedResponseError(ValueError):
    """Raised when a response cannot be decoded into a full result.

    The attached ``diagnostics`` carry everything needed to
    understand the failure without the original text.
    """

    def __init__(
        self,
        diagnostics: decoding.DecodeDiagnostics,
        *,
        source: str = "LLM",
        partial: bool = False,
    ) -> None:
        self.diagnostics = diagnostics
        self.source = source
        self.partial = partial
        super().__init__(self._format())

    def _format(self) -> str:
        d = self.diagnostics
        headline = (
            f"{self.source} returned JSON that could only be partially recovered."
            if self.partial
            else f"{self.source} returned invalid JSON."
        )
        lines = [
            headline,
            f"Parse error: {d.error_message}",
            f"Failed stage: {d.failed_stage}",
            f"Response length: {d.raw_length} characters",
            f"Excerpt: ...{d.excerpt}...",
        ]
        if d.suggestion:
            lines.append(f"SUGGESTION: {d.suggestion}")
        return "\n".join(lines)

    @property
    def raw_length(self) -> int:
        return self.diagnostics.raw_length

    @property
    def failed_stage(self) -> str:
        return self.diagnostics.failed_stage

    @property
    def error_message(self) -> str:
        return self.diagnostics.error_message

    @property
    def excerpt(self) -> str:
        return self.diagnostics.excerpt

    @property
    def truncation_suspected(self) -> bool:
        return self.diagnostics.truncation_suspected

    @property
    def suggestion(self) -> str | None:
        return self.diagnostics.suggestion
