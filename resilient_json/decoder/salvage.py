"""
Partial extraction: the last resort when no full parse is possible.

Strategies run in order and the first one that recovers anything
wins.  Every salvage reports which fields were lost and which were
filled with caller-supplied placeholders; nothing is defaulted that
the caller's ``SchemaHints`` do not name.
"""

from __future__ import annotations

import copy
import dataclasses
import re
from collections.abc import Callable
from typing import Any

from resilient_json import config
from resilient_json.decoder import scanner, truncation
from resilient_json.models.decoding import SalvageStrategy
from resilient_json.models.hints import NO_HINTS, SchemaHints
from resilient_json.utils import json_parsing, logger

log = logger.create_logger("Salvage")


@dataclasses.dataclass
class Salvage:
    """A partially recovered value."""

    value: Any
    strategy: SalvageStrategy
    missing_fields: list[str] = dataclasses.field(default_factory=list)
    defaulted_fields: list[str] = dataclasses.field(default_factory=list)


def _key_pattern(name: str, opener: str) -> re.Pattern[str]:
    return re.compile(rf'"{re.escape(name)}"\s*:\s*' + re.escape(opener))


def apply_defaults(value: dict[str, Any], hints: SchemaHints) -> list[str]:
    """Fill hinted fields missing from *value*; return the names filled."""
    added: list[str] = []
    for name in (*hints.anchor_arrays, *hints.tail_arrays):
        if name not in value:
            value[name] = []
            added.append(name)
    for name, default in hints.default_objects.items():
        if name not in value:
            value[name] = copy.deepcopy(default)
            added.append(name)
    return added


def cut_tail_array(
    text: str, hints: SchemaHints, settings: config.DecoderSettings
) -> Salvage | None:
    """Cut the document before a hinted tail array and empty it.

    Everything before the tail array's member is kept (closed up
    with the truncation closer); the tail array itself is replaced
    by ``[]``.  Defaults from *hints* describe the top-level object,
    so they are applied only when the tail array is a top-level
    member; a nested cut is reported by its dotted path.
    """
    for name in hints.tail_arrays:
        for match in _key_pattern(name, "[").finditer(text):
            state = scanner.scan(text[: match.start()])
            if state.in_string:
                continue
            head = text[: match.start()].rstrip()
            if head.endswith(","):
                head = head[:-1].rstrip()
            joiner = "" if head.endswith(("{", "[")) else ", "
            repaired = truncation.repair_truncation(
                f'{head}{joiner}"{name}": []', NO_HINTS, settings=settings
            )
            if repaired is None:
                continue
            value = json_parsing.loads(repaired)
            if not isinstance(value, dict):
                continue
            if len(state.frames) == 1:
                path = name
                defaulted = [name, *apply_defaults(value, hints)]
            else:
                path = ".".join([f.key for f in state.frames if f.key] + [name])
                defaulted = [path]
            return Salvage(
                value=value,
                strategy="tail_array_cut",
                missing_fields=[path],
                defaulted_fields=defaulted,
            )
    return None


def collect_complete_members(
    text: str, hints: SchemaHints, settings: config.DecoderSettings
) -> Salvage | None:
    """Rebuild the top-level object from the members that parse alone."""
    value: dict[str, Any] = {}
    dropped: list[str] = []
    for member in scanner.iter_top_level_members(text):
        if not member.complete:
            dropped.append(member.key)
            continue
        try:
            value[member.key] = json_parsing.loads(member.value_text)
        except (ValueError, RecursionError):
            dropped.append(member.key)

    if not value:
        return None
    defaulted = apply_defaults(value, hints)
    return Salvage(
        value=value,
        strategy="complete_members",
        missing_fields=[*dropped, *(n for n in defaulted if n not in dropped)],
        defaulted_fields=defaulted,
    )


def extract_isolated_field(
    text: str, hints: SchemaHints, settings: config.DecoderSettings
) -> Salvage | None:
    """Extract one well-known top-level object on its own."""
    for name in hints.isolated_fields:
        for match in _key_pattern(name, "{").finditer(text):
            start = match.end() - 1
            end = scanner.find_balanced_end(text, start)
            if end is None:
                continue
            try:
                field_value = json_parsing.loads(text[start:end])
            except (ValueError, RecursionError):
                continue
            value: dict[str, Any] = {name: field_value}
            defaulted = apply_defaults(value, hints)
            return Salvage(
                value=value,
                strategy="isolated_field",
                missing_fields=list(defaulted),
                defaulted_fields=defaulted,
            )
    return None


_STRATEGIES: tuple[
    Callable[[str, SchemaHints, config.DecoderSettings], Salvage | None], ...
] = (cut_tail_array, collect_complete_members, extract_isolated_field)


def salvage(
    text: str,
    hints: SchemaHints | None = None,
    *,
    settings: config.DecoderSettings | None = None,
) -> Salvage | None:
    """Recover what can be recovered from an unparseable response.

    Args:
        text: Response text after character repairs.
        hints: Caller schema hints naming droppable and
            defaultable fields.
        settings: Decoder limits; defaults to the loaded settings.

    Returns:
        The first successful ``Salvage``, or ``None``.
    """
    settings = settings or config.get_settings()
    hints = hints or NO_HINTS
    for strategy in _STRATEGIES:
        result = strategy(text, hints, settings)
        if result is not None:
            log.debug(
                "Salvage strategy succeeded",
                {"strategy": result.strategy, "missing": result.missing_fields},
            )
            return result
    return None
