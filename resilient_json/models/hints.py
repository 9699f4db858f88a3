"""Schema hints supplied by vendor-specific callers."""

from __future__ import annotations

from typing import Any

import pydantic


class SchemaHints(pydantic.BaseModel):
    """Field names that steer truncation repair and salvage.

    The decoder never guesses at a response's shape; anything
    it may drop or default has to be named here by the caller.

    Attributes:
        tail_arrays: Arrays usually emitted last whose partial
            trailing elements may be dropped (e.g. ``fixes``).
        anchor_arrays: Arrays emitted before the tail arrays;
            defaulted to ``[]`` when a salvage loses them.
        terminal_fields: Member names that end a complete tail
            array element (e.g. ``reason``).  When empty, any
            closed element counts as complete.
        default_objects: Top-level fields filled with a copy of
            the given value when a salvage loses them.
        isolated_fields: Top-level objects worth extracting on
            their own as a last resort (e.g. ``analysis``).
    """

    model_config = pydantic.ConfigDict(frozen=True)

    tail_arrays: tuple[str, ...] = ()
    anchor_arrays: tuple[str, ...] = ()
    terminal_fields: tuple[str, ...] = ()
    default_objects: dict[str, Any] = pydantic.Field(default_factory=dict)
    isolated_fields: tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        """Whether no hint of any kind was supplied."""
        return not (
            self.tail_arrays
            or self.anchor_arrays
            or self.terminal_fields
            or self.default_objects
            or self.isolated_fields
        )


NO_HINTS = SchemaHints()
