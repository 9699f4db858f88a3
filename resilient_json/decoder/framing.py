"""
Framing repairs: markdown fences and prose around the JSON.

Models sometimes wrap structured output in a fenced code block even
when JSON mode is requested, occasionally lose the closing fence to
the output-token ceiling, or surround the object with a sentence of
commentary.
"""

from __future__ import annotations

import re

from resilient_json.decoder import scanner
from resilient_json.utils import json_parsing

# A complete outer fence, optionally tagged with a language name.
_FENCE_RE = re.compile(
    r"^\s*```[ \t]*[A-Za-z0-9_+-]*[ \t]*\r?\n?(.*?)\r?\n?[ \t]*```\s*$",
    re.DOTALL,
)
_OPEN_FENCE_RE = re.compile(r"^```[ \t]*(?:json)?[ \t]*\r?\n?", re.IGNORECASE)
_CLOSE_FENCE_RE = re.compile(r"\s*\n?```\s*$")

# Prose before the JSON rarely contains many brackets; bound the
# number of top-level candidates examined.
_MAX_EMBEDDED_CANDIDATES = 32


def strip_fences(text: str) -> str:
    """Remove one outer markdown code fence.

    A complete fence is removed as a unit.  Otherwise a leading
    fence and a trailing fence are removed independently, which
    covers responses whose closing fence was truncated away.

    Args:
        text: Raw response text.

    Returns:
        The text without its fence, stripped of whitespace.
    """
    cleaned = text.strip()
    match = _FENCE_RE.match(cleaned)
    if match:
        return match.group(1).strip()

    cleaned = _OPEN_FENCE_RE.sub("", cleaned, count=1)
    cleaned = _CLOSE_FENCE_RE.sub("", cleaned, count=1)
    return cleaned.strip("`").strip()


def _is_json(text: str) -> bool:
    try:
        json_parsing.loads(text)
    except (ValueError, RecursionError):
        return False
    return True


def _first_opener(text: str, start: int = 0) -> int:
    positions = [p for p in (text.find("{", start), text.find("[", start)) if p >= 0]
    return min(positions) if positions else -1


def extract_embedded(text: str) -> str | None:
    """Find the largest complete JSON block surrounded by prose.

    Only top-level blocks are considered: scanning resumes after
    each balanced block, and stops at the first block that never
    closes so that a truncated document never yields one of its
    own nested values.

    Args:
        text: Fence-stripped response text.

    Returns:
        The longest top-level block that parses, or ``None``.
    """
    best: str | None = None
    start = _first_opener(text)
    for _ in range(_MAX_EMBEDDED_CANDIDATES):
        if start < 0:
            break
        end = scanner.find_balanced_end(text, start)
        if end is None:
            break
        candidate = text[start:end]
        if (best is None or len(candidate) > len(best)) and _is_json(candidate):
            best = candidate
        start = _first_opener(text, end)
    return best


def trim_leading_prose(text: str) -> str:
    """Drop any text before the first ``{`` or ``[``."""
    if text.startswith(("{", "[")):
        return text
    start = _first_opener(text)
    return text[start:] if start >= 0 else text
