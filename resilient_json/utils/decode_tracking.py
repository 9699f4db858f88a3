"""Per-session decode outcome tracking.

Counts how responses fared across all decode calls within a
session so operators can see how often upstream generation
truncates.  State is stored in ``contextvars`` so concurrent
async sessions are isolated.

Usage
-----
Call ``reset()`` at the start of a session and ``log_summary()``
at the end.  The decode pipeline calls ``record()`` once per
decode.
"""

from __future__ import annotations

import collections
import contextvars
import dataclasses

from resilient_json.models.decoding import DecodeOutcome
from resilient_json.utils import logger

log = logger.create_logger("Decode-Stats")


@dataclasses.dataclass
class _SessionStats:
    """Mutable accumulator for a single session."""

    total_decodes: int = 0
    total_chars: int = 0
    by_outcome: collections.Counter[str] = dataclasses.field(default_factory=collections.Counter)
    by_source: collections.Counter[str] = dataclasses.field(default_factory=collections.Counter)


_stats_var: contextvars.ContextVar[_SessionStats] = contextvars.ContextVar("_stats_var")


def _get_stats() -> _SessionStats:
    """Return the per-context stats, creating them on first access."""
    try:
        return _stats_var.get()
    except LookupError:
        stats = _SessionStats()
        _stats_var.set(stats)
        return stats


def reset() -> None:
    """Reset counters for a new session."""
    _stats_var.set(_SessionStats())


def record(source: str, outcome: DecodeOutcome, *, raw_length: int = 0) -> None:
    """Record the outcome of one decode call.

    Args:
        source: Caller label, usually the vendor name.
        outcome: How the response was recovered.
        raw_length: Length of the response text.
    """
    stats = _get_stats()
    stats.total_decodes += 1
    stats.total_chars += raw_length
    stats.by_outcome[outcome] += 1
    if outcome != "well_formed":
        stats.by_source[source] += 1


def snapshot() -> dict[str, int]:
    """Return the current counters as a flat dict."""
    stats = _get_stats()
    data = {"totalDecodes": stats.total_decodes, "totalChars": stats.total_chars}
    data.update(stats.by_outcome)
    return data


def log_summary() -> None:
    """Log the outcome summary for the session."""
    stats = _get_stats()
    if stats.total_decodes == 0:
        log.info("No responses were decoded during this session")
        return

    repaired = stats.total_decodes - stats.by_outcome["well_formed"]
    log.info(
        "Decode summary",
        {
            "totalDecodes": stats.total_decodes,
            "repaired": repaired,
            "truncated": stats.by_outcome["recoverable_truncation"],
            "partial": stats.by_outcome["partial_recovery"],
            "failed": stats.by_outcome["unrecoverable"],
        },
    )
    if stats.by_source:
        log.info("Repairs by source", dict(stats.by_source))
