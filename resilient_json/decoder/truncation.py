"""
Truncation repair for responses cut off by an output-token ceiling.

The dominant failure mode of structured LLM output is a document
that simply stops: mid-string, mid-key, after a colon, or with a
stack of open arrays and objects.  Repair closes what can be closed
honestly and trims what cannot:

1. An open value string is closed, preferably at the last sentence
   boundary.  A *long* open string inside a hinted tail array is
   not closed at all; the partial element is dropped back to the
   last complete one.
2. Partial keys, keys without a value and half-written literals are
   dropped; a trailing comma is removed; a bare ``:`` gets ``null``.
3. Open containers are closed innermost first.

The result is re-checked and repair is re-applied to its own output
a bounded number of times.
"""

from __future__ import annotations

import re

from resilient_json import config
from resilient_json.decoder import scanner
from resilient_json.models.hints import NO_HINTS, SchemaHints
from resilient_json.utils import json_parsing, logger

log = logger.create_logger("Truncation-Repair")

_COMPLETE_LITERAL_RE = re.compile(
    r"-?(?:0|[1-9]\d*)(?:\.\d+)?(?:[eE][+-]?\d+)?|true|false|null"
)
# A run of backslashes followed by an incomplete \uXXXX escape.
_PARTIAL_UNICODE_RE = re.compile(r"(\\+)u[0-9a-fA-F]{0,3}$")

# Dangling member, then the comma before it, then the final check.
_MAX_TRIM_STEPS = 3


def _parses(text: str) -> bool:
    try:
        json_parsing.loads(text)
    except (ValueError, RecursionError):
        return False
    return True


def _is_escaped(text: str, index: int) -> bool:
    """Whether the character at *index* is preceded by an odd run of backslashes."""
    count = 0
    i = index - 1
    while i >= 0 and text[i] == "\\":
        count += 1
        i -= 1
    return count % 2 == 1


def strip_partial_escape(body: str) -> str:
    """Drop a dangling backslash or incomplete ``\\u`` escape at the end."""
    match = _PARTIAL_UNICODE_RE.search(body)
    if match and len(match.group(1)) % 2 == 1:
        return body[: match.start() + len(match.group(1)) - 1]
    trailing = len(body) - len(body.rstrip("\\"))
    if trailing % 2 == 1:
        return body[:-1]
    return body


def sentence_boundary(body: str, window: int) -> int | None:
    """Return the offset to cut an open string at, if a boundary exists.

    Looks at the last *window* characters for the last ``". "``
    (cut after the period) or escaped newline (cut before it).
    A boundary at the very start of the string is ignored.
    """
    start = max(0, len(body) - window)
    region = body[start:]
    candidates: list[int] = []

    period = region.rfind(". ")
    if period >= 0:
        candidates.append(start + period + 1)

    newline = region.rfind("\\n")
    while newline >= 0 and _is_escaped(body, start + newline):
        newline = region.rfind("\\n", 0, newline)
    if newline >= 0:
        candidates.append(start + newline)

    cut = max(candidates, default=0)
    return cut if cut > 0 else None


def close_open_string(text: str, string_start: int, *, window: int) -> str:
    """Close the string opened at *string_start* and left open at the end."""
    body = strip_partial_escape(text[string_start + 1 :])
    cut = sentence_boundary(body, window)
    if cut is not None:
        body = body[:cut]
    return text[: string_start + 1] + body + '"'


def _trim_dangling(text: str, hints: SchemaHints) -> str:
    """Drop the incomplete member at the end of *text*.

    A cut-off document ends in at most one dangling member plus the
    separator before it, so only ``_MAX_TRIM_STEPS`` cuts are made.
    Anything still malformed is left to the next repair pass.
    """
    for _ in range(_MAX_TRIM_STEPS):
        state = scanner.scan(text, hints.tail_arrays, hints.terminal_fields)
        top = state.top
        stripped = text.rstrip()
        if top is None:
            return stripped

        if top.phase == "literal" and state.literal_start >= 0:
            literal = text[state.literal_start :].strip()
            if not _COMPLETE_LITERAL_RE.fullmatch(literal):
                text = text[: top.member_start]
                continue

        if top.kind == "{" and top.phase == "colon":
            text = text[: top.member_start]
            continue

        if stripped.endswith(","):
            text = stripped[:-1]
            continue

        if stripped.endswith(":"):
            return stripped + " null"
        return stripped
    return text.rstrip()


def repair_once(
    text: str,
    hints: SchemaHints | None = None,
    *,
    settings: config.DecoderSettings | None = None,
) -> str | None:
    """Apply one round of truncation repair.

    Args:
        text: Response text after character repairs.
        hints: Tail-array hints from the caller.
        settings: Decoder limits; defaults to the loaded settings.

    Returns:
        The repaired text, or ``None`` when closing the text would
        mean fabricating the tail of a long string in a tail array
        with no complete element to fall back to.
    """
    settings = settings or config.get_settings()
    hints = hints or NO_HINTS

    state = scanner.scan(text, hints.tail_arrays, hints.terminal_fields)
    if state.in_string:
        top = state.top
        if state.in_key and top is not None:
            text = text[: top.member_start]
        else:
            open_length = len(text) - state.string_start
            tail = state.innermost_tail_array()
            if tail is not None and open_length >= settings.long_string_threshold:
                if tail.last_safe is None:
                    log.debug(
                        "Long open string in tail array has no complete element to fall back to",
                        {"array": tail.key, "openLength": open_length},
                    )
                    return None
                log.debug(
                    "Dropping partial tail array element",
                    {"array": tail.key, "droppedChars": len(text) - tail.last_safe},
                )
                text = text[: tail.last_safe]
            else:
                text = close_open_string(text, state.string_start, window=settings.sentence_window)

    text = _trim_dangling(text, hints)
    state = scanner.scan(text)
    return text + state.closers()


def repair_truncation(
    text: str,
    hints: SchemaHints | None = None,
    *,
    settings: config.DecoderSettings | None = None,
) -> str | None:
    """Repair truncated JSON, re-applying repair a bounded number of times.

    Args:
        text: Response text after character repairs.
        hints: Tail-array hints from the caller.
        settings: Decoder limits; defaults to the loaded settings.

    Returns:
        Text that parses as JSON, or ``None`` when repair declined,
        stopped making progress, or ran out of passes.
    """
    settings = settings or config.get_settings()
    candidate = text.strip()
    if not candidate:
        return None

    for _ in range(settings.max_truncation_passes):
        repaired = repair_once(candidate, hints, settings=settings)
        if repaired is None:
            return None
        if _parses(repaired):
            return repaired
        if repaired == candidate:
            return None
        candidate = repaired
    return None
