"""Diagnostic context for responses that could not be fully decoded."""

from __future__ import annotations

from resilient_json import config
from resilient_json.decoder import scanner
from resilient_json.models import decoding

# An error this close to the end of the text usually means the
# text stopped rather than went wrong.
_TAIL_ERROR_FRACTION = 0.95

EMPTY_EXCERPT = "<empty response>"


def build_excerpt(text: str, offset: int | None, *, radius: int, head: int) -> str:
    """Return the text around *offset*, or the head of the text."""
    if not text.strip():
        return EMPTY_EXCERPT
    if offset is None:
        return text[:head]
    start = max(0, offset - radius)
    return text[start : offset + radius]


def is_truncation_suspected(
    framed: str,
    *,
    error_offset: int | None,
    length_threshold: int,
) -> bool:
    """Decide whether a response looks cut short.

    Only text that starts like a JSON document qualifies.  It is
    suspected when it is very long, ends inside a string or an
    open container, or fails to parse only near its end.

    Args:
        framed: Response text after fence stripping.
        error_offset: Parse-error offset within *framed*.
        length_threshold: Length above which truncation is
            always suspected.
    """
    body = framed.strip()
    if not body or body[0] not in "{[":
        return False
    if len(body) > length_threshold:
        return True
    state = scanner.scan(body)
    if not state.is_balanced:
        return True
    return error_offset is not None and error_offset >= len(body) * _TAIL_ERROR_FRACTION


def truncation_suggestion(raw_length: int) -> str:
    return (
        f"Response appears truncated at {raw_length} characters; "
        "request a smaller batch or raise the output token limit."
    )


def build_diagnostics(
    trimmed: str,
    framed: str,
    *,
    raw_length: int,
    failed_stage: decoding.RepairStage,
    attempts: list[decoding.StageFailure],
    framed_error_offset: int | None,
    settings: config.DecoderSettings,
) -> decoding.DecodeDiagnostics:
    """Assemble diagnostics from the recorded parse failures.

    The excerpt and error message come from the first attempt,
    which parsed the untouched (whitespace-trimmed) response, so
    they point at the response as the model produced it.
    """
    first = attempts[0] if attempts else None
    suspected = is_truncation_suspected(
        framed,
        error_offset=framed_error_offset,
        length_threshold=settings.truncation_length_threshold,
    )
    return decoding.DecodeDiagnostics(
        raw_length=raw_length,
        failed_stage=failed_stage,
        error_message=first.error_message if first else "Empty response",
        excerpt=build_excerpt(
            trimmed,
            first.offset if first else None,
            radius=settings.excerpt_radius,
            head=settings.excerpt_head,
        ),
        truncation_suspected=suspected,
        suggestion=truncation_suggestion(raw_length) if suspected else None,
        attempts=list(attempts),
    )
