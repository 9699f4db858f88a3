"""Serialization helpers shared by the Pydantic models.

Diagnostics and editorial payloads are exchanged with JavaScript
callers, so their models dump with camelCase aliases.
"""

from __future__ import annotations


def snake_to_camel(name: str) -> str:
    """Convert a snake_case string to camelCase.

    Args:
        name: A snake_case identifier such as
            ``"failed_stage"``.

    Returns:
        The camelCase equivalent, e.g. ``"failedStage"``.
    """
    head, *rest = name.split("_")
    return head + "".join(w.capitalize() for w in rest)
