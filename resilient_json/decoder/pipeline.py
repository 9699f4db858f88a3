"""
Decode pipeline: the ordered cascade of repair stages.

Each stage runs only when the previous ones failed to produce valid
JSON, and each parse attempt sees the output of every repair before
it.  The first attempt that parses wins:

1. ``raw``: the whitespace-trimmed response as-is.
2. ``stripped`` / ``embedded``: markdown fences removed, or the
   largest complete JSON block pulled out of surrounding prose.
3. ``controlCharsFixed`` / ``commaFixed`` / ``quotesFixed``:
   character-level repairs.
4. ``truncationFixed``: the document is closed up after being cut
   short.  Always reported as a warning.
5. ``partialExtraction``: part of the document is salvaged and
   returned as an explicitly tagged ``PartialDecode``.

``decode_result`` never raises for bad input; ``decode`` and
``decode_model`` raise ``MalformedResponseError`` instead of
returning anything that is not a trustworthy value.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, TypeVar

import pydantic

from resilient_json import config
from resilient_json.decoder import diagnostics, framing, salvage, sanitize, truncation
from resilient_json.models import decoding
from resilient_json.models.hints import NO_HINTS, SchemaHints
from resilient_json.utils import decode_tracking, errors, json_parsing, logger

log = logger.create_logger("JSON-Decoder")

T = TypeVar("T", bound=pydantic.BaseModel)

WarningCallback = Callable[[decoding.DecodeWarning], None]

# Marks a failed parse; ``None`` is a valid JSON value.
_FAILED = object()


def _attempt(text: str, stage: decoding.RepairStage, attempts: list[decoding.StageFailure]) -> Any:
    """Parse *text*, recording the failure under *stage*."""
    try:
        return json_parsing.loads(text)
    except (ValueError, RecursionError) as exc:
        attempts.append(
            decoding.StageFailure(
                stage=stage,
                error_message=errors.get_error_message(exc),
                offset=errors.get_error_offset(exc),
            )
        )
        return _FAILED


def _run_stages(
    raw: str,
    hints: SchemaHints,
    settings: config.DecoderSettings,
) -> decoding.FullDecode | decoding.PartialDecode | decoding.FailedDecode:
    attempts: list[decoding.StageFailure] = []
    trimmed = raw.strip()

    # Stage 1
    value = _attempt(trimmed, "raw", attempts)
    if value is not _FAILED:
        return decoding.FullDecode(value=value, stage="raw")
    framed_error_offset = attempts[-1].offset

    # Stage 2
    framed = framing.strip_fences(trimmed)
    if framed != trimmed:
        value = _attempt(framed, "stripped", attempts)
        if value is not _FAILED:
            return decoding.FullDecode(
                value=value,
                stage="stripped",
                outcome="recoverable_framing",
                notes=["Removed markdown code fence"],
            )
        framed_error_offset = attempts[-1].offset

    embedded = framing.extract_embedded(framed)
    # A document that opens at once may only lose trailing text.
    if embedded is not None and (
        not framed.startswith(("{", "[")) or framed.startswith(embedded)
    ):
        return decoding.FullDecode(
            value=json_parsing.loads(embedded),
            stage="embedded",
            outcome="recoverable_framing",
            notes=["Extracted JSON embedded in surrounding text"],
        )

    body = framing.trim_leading_prose(framed)

    # Stage 3
    control_fixed = sanitize.escape_control_characters(body)
    comma_fixed = sanitize.strip_trailing_commas(control_fixed)
    quotes_fixed = sanitize.repair_structure(comma_fixed)

    notes: list[str] = []
    if body != framed:
        notes.append("Dropped text before the JSON")
    last = framed
    repairs: tuple[tuple[decoding.RepairStage, str, str, str], ...] = (
        ("controlCharsFixed", body, control_fixed, "Escaped raw control characters"),
        ("commaFixed", control_fixed, comma_fixed, "Removed trailing commas"),
        ("quotesFixed", comma_fixed, quotes_fixed, "Escaped stray quotes and inserted missing commas"),
    )
    for stage, before, text, note in repairs:
        if text != before:
            notes.append(note)
        if text == last:
            continue
        value = _attempt(text, stage, attempts)
        if value is not _FAILED:
            return decoding.FullDecode(
                value=value, stage=stage, outcome="recoverable_framing", notes=notes
            )
        last = text

    # Stage 4
    for candidate in dict.fromkeys((quotes_fixed, comma_fixed)):
        repaired = truncation.repair_truncation(candidate, hints, settings=settings)
        if repaired is not None:
            return decoding.FullDecode(
                value=json_parsing.loads(repaired),
                stage="truncationFixed",
                outcome="recoverable_truncation",
                notes=[*notes, "Closed truncated JSON"],
            )
    attempts.append(
        decoding.StageFailure(
            stage="truncationFixed",
            error_message="Truncation repair could not produce valid JSON",
        )
    )

    # Stage 5
    recovered = salvage.salvage(comma_fixed, hints, settings=settings)
    if recovered is not None:
        return decoding.PartialDecode(
            value=recovered.value,
            strategy=recovered.strategy,
            missing_fields=recovered.missing_fields,
            defaulted_fields=recovered.defaulted_fields,
            diagnostics=diagnostics.build_diagnostics(
                trimmed,
                framed,
                raw_length=len(raw),
                failed_stage="truncationFixed",
                attempts=attempts,
                framed_error_offset=framed_error_offset,
                settings=settings,
            ),
        )

    return decoding.FailedDecode(
        diagnostics=diagnostics.build_diagnostics(
            trimmed,
            framed,
            raw_length=len(raw),
            failed_stage="partialExtraction",
            attempts=attempts,
            framed_error_offset=framed_error_offset,
            settings=settings,
        )
    )


def _warning_for(
    result: decoding.FullDecode | decoding.PartialDecode | decoding.FailedDecode,
    source: str,
    raw_length: int,
) -> decoding.DecodeWarning | None:
    if result.outcome == "recoverable_truncation":
        return decoding.DecodeWarning(
            source=source,
            outcome=result.outcome,
            message=(
                f"[{source}] JSON response was truncated and required repair. "
                "Consider increasing max tokens or reducing response size."
            ),
            raw_length=raw_length,
        )
    if isinstance(result, decoding.PartialDecode):
        missing = ", ".join(result.missing_fields) or "unknown"
        return decoding.DecodeWarning(
            source=source,
            outcome=result.outcome,
            message=(
                f"[{source}] JSON response could only be partially recovered; "
                f"missing: {missing}. Model output was lost."
            ),
            raw_length=raw_length,
            missing_fields=list(result.missing_fields),
        )
    return None


def _report(
    result: decoding.FullDecode | decoding.PartialDecode | decoding.FailedDecode,
    *,
    source: str,
    raw_length: int,
    on_warning: WarningCallback | None,
    settings: config.DecoderSettings,
) -> None:
    """Log, track and signal the outcome of one decode."""
    decode_tracking.record(source, result.outcome, raw_length=raw_length)

    if isinstance(result, decoding.FailedDecode):
        if settings.log_warnings:
            log.error(
                f"[{source}] JSON response could not be recovered",
                {
                    "rawLength": raw_length,
                    "error": result.diagnostics.error_message,
                    "truncationSuspected": result.diagnostics.truncation_suspected,
                },
            )
        return

    if result.outcome == "recoverable_framing":
        log.debug(
            f"[{source}] JSON response needed framing repairs",
            {"stage": result.stage, "notes": result.notes},
        )
        return

    warning = _warning_for(result, source, raw_length)
    if warning is None:
        return
    if settings.log_warnings:
        data: dict[str, object] = {"rawLength": raw_length}
        if warning.missing_fields:
            data["missing"] = warning.missing_fields
        log.warn(warning.message, data)
    if on_warning is not None:
        on_warning(warning)


def decode_result(
    raw: str | None,
    hints: SchemaHints | None = None,
    *,
    source: str = "LLM",
    on_warning: WarningCallback | None = None,
    settings: config.DecoderSettings | None = None,
) -> decoding.FullDecode | decoding.PartialDecode | decoding.FailedDecode:
    """Run the repair cascade and return a tagged result.

    Args:
        raw: Response text; ``None`` is treated as empty.
        hints: Schema hints naming droppable and defaultable
            fields.  Without hints nothing is ever defaulted.
        source: Caller label used in log and warning messages.
        on_warning: Called with a ``DecodeWarning`` when
            truncation repair or salvage was needed.
        settings: Decoder limits; defaults to the loaded settings.

    Returns:
        ``FullDecode``, ``PartialDecode`` or ``FailedDecode``.
    """
    settings = settings or config.get_settings()
    raw = raw or ""
    result = _run_stages(raw, hints or NO_HINTS, settings)
    _report(result, source=source, raw_length=len(raw), on_warning=on_warning, settings=settings)
    return result


def decode(
    raw: str | None,
    hints: SchemaHints | None = None,
    *,
    source: str = "LLM",
    allow_partial: bool = True,
    on_warning: WarningCallback | None = None,
    settings: config.DecoderSettings | None = None,
) -> Any:
    """Decode an LLM response into a JSON value.

    Args:
        raw: Response text; ``None`` is treated as empty.
        hints: Schema hints naming droppable and defaultable
            fields.
        source: Caller label used in log and warning messages.
        allow_partial: Return salvaged values.  When ``False``
            a partial recovery raises like a failure does.
        on_warning: Called with a ``DecodeWarning`` when
            truncation repair or salvage was needed.
        settings: Decoder limits; defaults to the loaded settings.

    Returns:
        The decoded value.

    Raises:
        MalformedResponseError: No value could be recovered, or
            only a partial one and ``allow_partial`` is ``False``.
    """
    result = decode_result(raw, hints, source=source, on_warning=on_warning, settings=settings)
    if isinstance(result, decoding.FailedDecode):
        raise errors.MalformedResponseError(result.diagnostics, source=source)
    if isinstance(result, decoding.PartialDecode) and not allow_partial:
        raise errors.MalformedResponseError(result.diagnostics, source=source, partial=True)
    return result.value


def decode_model(
    raw: str | None,
    model: type[T],
    hints: SchemaHints | None = None,
    *,
    source: str = "LLM",
    allow_partial: bool = True,
    on_warning: WarningCallback | None = None,
    settings: config.DecoderSettings | None = None,
) -> T:
    """Decode an LLM response and validate it into *model*.

    Raises:
        MalformedResponseError: As for ``decode``.
        pydantic.ValidationError: The decoded value does not fit
            *model*.
    """
    value = decode(
        raw,
        hints,
        source=source,
        allow_partial=allow_partial,
        on_warning=on_warning,
        settings=settings,
    )
    return model.model_validate(value)
