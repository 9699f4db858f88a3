"""Strict JSON parsing for LLM response text.

``json.loads`` accepts ``NaN``, ``Infinity`` and ``-Infinity``; the
JavaScript callers that consume decoded responses do not, so they
are rejected here and every decode stage parses through ``loads``.
"""

from __future__ import annotations

import json
from typing import Any


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Non-standard JSON constant: {name}")


def loads(text: str) -> Any:
    """Parse *text* as standard JSON.

    Args:
        text: JSON text.

    Returns:
        The parsed value.

    Raises:
        json.JSONDecodeError: The text is not valid JSON.
        ValueError: The text uses ``NaN`` or ``Infinity``.
    """
    return json.loads(text, parse_constant=_reject_constant)
