"""
Structural scanner for possibly broken JSON text.

One pass over the text tracks the open container stack, whether the
cursor sits inside a string (backslash aware), what each open
container expects next, and, for arrays named as tail arrays, the
last offset at which an element was complete.  Every repair stage
derives its decisions from this state instead of from overlapping
regular expressions.
"""

from __future__ import annotations

import dataclasses
import json
from collections.abc import Iterable, Iterator
from typing import Literal

# What the innermost container expects next.  Objects cycle
# key -> colon -> value -> after; arrays cycle value -> after.
# ``literal`` means a bare token (number, true/false/null) is
# being read.
Phase = Literal["key", "colon", "value", "literal", "after"]

_WHITESPACE = frozenset(" \t\n\r")
_LITERAL_TERMINATORS = frozenset(" \t\n\r,:]}\"{[")

_DECODER = json.JSONDecoder()


@dataclasses.dataclass
class Frame:
    """An open ``{`` or ``[`` container.

    Attributes:
        kind: ``"{"`` or ``"["``.
        start: Offset of the opening bracket.
        key: Member key this container is the value of, if
            its parent is an object.
        phase: What the container expects next.
        member_start: Offset just past the opener or the most
            recent comma, i.e. where the current member begins.
        current_key: Key of the member being read (objects).
        last_key: Key of the last completed member (objects).
        is_tail: Whether this array is a hinted tail array.
        last_safe: Offset just past the last complete element
            (tail arrays only).
    """

    kind: str
    start: int
    key: str | None
    phase: Phase
    member_start: int
    current_key: str | None = None
    last_key: str | None = None
    is_tail: bool = False
    last_safe: int | None = None


@dataclasses.dataclass
class ScanState:
    """Result of scanning a text to its end."""

    text: str
    frames: list[Frame] = dataclasses.field(default_factory=list)
    in_string: bool = False
    escape_next: bool = False
    string_start: int = -1
    literal_start: int = -1
    stray_closers: int = 0
    root_end: int | None = None

    @property
    def top(self) -> Frame | None:
        """The innermost open container."""
        return self.frames[-1] if self.frames else None

    @property
    def brace_depth(self) -> int:
        return sum(1 for f in self.frames if f.kind == "{")

    @property
    def bracket_depth(self) -> int:
        return sum(1 for f in self.frames if f.kind == "[")

    @property
    def in_key(self) -> bool:
        """Whether the scan ended inside an object key."""
        top = self.top
        return self.in_string and top is not None and top.kind == "{" and top.phase == "key"

    @property
    def is_balanced(self) -> bool:
        """No open string and no open container."""
        return not self.in_string and not self.frames

    def closers(self) -> str:
        """Brackets that close every open container, innermost first."""
        return "".join("}" if f.kind == "{" else "]" for f in reversed(self.frames))

    def innermost_tail_array(self) -> Frame | None:
        for frame in reversed(self.frames):
            if frame.is_tail:
                return frame
        return None


def _value_done(state: ScanState, end: int, closed: Frame | None, terminals: frozenset[str]) -> None:
    """Mark the innermost container's current value as complete."""
    top = state.top
    if top is None:
        if state.root_end is None:
            state.root_end = end
        return

    if top.kind == "{":
        top.last_key = top.current_key
    top.phase = "after"

    if top.is_tail:
        if not terminals or (closed is not None and closed.kind == "{" and closed.last_key in terminals):
            top.last_safe = end


def scan(
    text: str,
    tail_arrays: Iterable[str] = (),
    terminal_fields: Iterable[str] = (),
) -> ScanState:
    """Scan *text* and return the structural state at its end.

    Args:
        text: JSON text, possibly truncated or malformed.
        tail_arrays: Array keys whose complete elements are
            recorded as safe truncation points.
        terminal_fields: When given, a tail array element only
            counts as complete if its last member has one of
            these keys.

    Returns:
        The ``ScanState`` after the last character.
    """
    tails = frozenset(tail_arrays)
    terminals = frozenset(terminal_fields)
    state = ScanState(text=text)
    frames = state.frames

    for i, ch in enumerate(text):
        if state.in_string:
            if state.escape_next:
                state.escape_next = False
            elif ch == "\\":
                state.escape_next = True
            elif ch == '"':
                state.in_string = False
                top = state.top
                if top is not None and top.kind == "{" and top.phase == "key":
                    top.current_key = text[state.string_start + 1 : i]
                    top.phase = "colon"
                else:
                    _value_done(state, i + 1, None, terminals)
            continue

        if state.literal_start >= 0:
            if ch not in _LITERAL_TERMINATORS:
                continue
            state.literal_start = -1
            _value_done(state, i, None, terminals)

        if ch in _WHITESPACE:
            continue

        if ch == '"':
            state.in_string = True
            state.string_start = i
            continue

        if ch in "{[":
            parent = state.top
            key = parent.current_key if parent is not None and parent.kind == "{" else None
            frames.append(
                Frame(
                    kind=ch,
                    start=i,
                    key=key,
                    phase="key" if ch == "{" else "value",
                    member_start=i + 1,
                    is_tail=ch == "[" and key is not None and key in tails,
                )
            )
            continue

        if ch in "}]":
            expected = "{" if ch == "}" else "["
            if frames and frames[-1].kind == expected:
                closed = frames.pop()
                _value_done(state, i + 1, closed, terminals)
            else:
                state.stray_closers += 1
            continue

        if ch == ":":
            top = state.top
            if top is not None and top.kind == "{" and top.phase == "colon":
                top.phase = "value"
            continue

        if ch == ",":
            top = state.top
            if top is not None:
                top.member_start = i + 1
                top.phase = "key" if top.kind == "{" else "value"
                top.current_key = None
            continue

        state.literal_start = i
        top = state.top
        if top is not None and top.phase == "value":
            top.phase = "literal"

    return state


def find_balanced_end(text: str, start: int) -> int | None:
    """Return the offset just past the container opened at *start*.

    Strings are skipped with backslash awareness; bracket kinds
    are not cross-checked.  Returns ``None`` when the container
    never closes.
    """
    depth = 0
    in_string = False
    escape_next = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escape_next:
                escape_next = False
            elif ch == "\\":
                escape_next = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch in "{[":
            depth += 1
        elif ch in "}]":
            depth -= 1
            if depth == 0:
                return i + 1
    return None


@dataclasses.dataclass(frozen=True)
class Member:
    """A ``"key": value`` member of the top-level object."""

    key: str
    value_text: str
    complete: bool


def _split_member(chunk: str, complete: bool) -> Member | None:
    body = chunk.strip()
    if not body.startswith('"'):
        return None
    try:
        key, end = _DECODER.raw_decode(body)
    except json.JSONDecodeError:
        return None
    if not isinstance(key, str):
        return None
    rest = body[end:].lstrip()
    if not rest.startswith(":"):
        return Member(key=key, value_text="", complete=False)
    value_text = rest[1:].strip()
    return Member(key=key, value_text=value_text, complete=complete and bool(value_text))


def iter_top_level_members(text: str) -> Iterator[Member]:
    """Yield the members of the top-level object in *text*.

    Members terminated by a comma or the closing brace are
    ``complete``; a trailing member cut off by the end of the
    text is yielded with ``complete=False`` when its key is
    readable.  Yields nothing unless the text starts with ``{``.
    """
    stripped = text.lstrip()
    if not stripped.startswith("{"):
        return
    offset = len(text) - len(stripped)

    depth = 0
    in_string = False
    escape_next = False
    member_begin: int | None = None

    for i in range(offset, len(text)):
        ch = text[i]
        if in_string:
            if escape_next:
                escape_next = False
            elif ch == "\\":
                escape_next = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch in "{[":
            depth += 1
            if depth == 1:
                member_begin = i + 1
        elif ch in "}]":
            depth -= 1
            if depth == 0 and member_begin is not None:
                member = _split_member(text[member_begin:i], complete=True)
                if member is not None:
                    yield member
                return
        elif ch == "," and depth == 1 and member_begin is not None:
            member = _split_member(text[member_begin:i], complete=True)
            if member is not None:
                yield member
            member_begin = i + 1

    if member_begin is not None:
        member = _split_member(text[member_begin:], complete=False)
        if member is not None:
            yield member
