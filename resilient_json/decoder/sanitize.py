"""
Character and structure repairs applied before truncation repair.

Each function is a pure ``str -> str`` transform driven by a
character scan that knows whether it is inside a string, so repairs
never touch string content they should not.
"""

from __future__ import annotations

_SHORT_ESCAPES = {"\n": "\\n", "\r": "\\r", "\t": "\\t"}
_JSON_WHITESPACE = " \t\n\r"
_VALUE_ENDINGS = frozenset("}]0123456789el")
_STRING_CLOSERS = frozenset(",}]:")


def _is_control(ch: str) -> bool:
    code = ord(ch)
    return code < 0x20 or code == 0x7F


def _next_significant(text: str, start: int) -> int:
    """Index of the first non-whitespace character at or after *start*."""
    i = start
    n = len(text)
    while i < n and text[i] in _JSON_WHITESPACE:
        i += 1
    return i


def escape_control_characters(text: str) -> str:
    """Escape raw control characters inside strings.

    ``\\n``, ``\\r`` and ``\\t`` get their short escapes and every
    other character in 0x00-0x1F or 0x7F becomes ``\\u00XX``.  A
    character directly after an unescaped backslash is left alone.
    Outside strings, JSON whitespace is kept and other control
    characters are dropped.
    """
    out: list[str] = []
    in_string = False
    escape_next = False

    for ch in text:
        if in_string:
            if escape_next:
                escape_next = False
            elif ch == "\\":
                escape_next = True
            elif ch == '"':
                in_string = False
            elif _is_control(ch):
                out.append(_SHORT_ESCAPES.get(ch) or f"\\u{ord(ch):04x}")
                continue
            out.append(ch)
            continue

        if ch == '"':
            in_string = True
        elif _is_control(ch) and ch not in _JSON_WHITESPACE:
            continue
        out.append(ch)

    return "".join(out)


def strip_trailing_commas(text: str) -> str:
    """Remove commas whose next significant character is ``}`` or ``]``."""
    out: list[str] = []
    in_string = False
    escape_next = False

    for i, ch in enumerate(text):
        if in_string:
            if escape_next:
                escape_next = False
            elif ch == "\\":
                escape_next = True
            elif ch == '"':
                in_string = False
            out.append(ch)
            continue

        if ch == '"':
            in_string = True
        elif ch == ",":
            j = _next_significant(text, i + 1)
            if j < len(text) and text[j] in "}]":
                continue
        out.append(ch)

    return "".join(out)


def _needs_comma_before(out: list[str]) -> bool:
    """Whether the output so far ends in a value with no separator after it."""
    for ch in reversed(out):
        if ch in _JSON_WHITESPACE:
            continue
        return ch in _VALUE_ENDINGS
    return False


def repair_quotes(text: str) -> str:
    """Escape stray quotes inside strings and insert missing commas.

    A quote inside a string closes it only when the next
    significant character is ``,``, ``}``, ``]``, ``:`` or the end
    of the text.  A quote followed by a line break and another
    quote closes the string and gets the comma the model left
    out.  Any other quote is taken to be a literal quotation mark
    from the prose and escaped.  Outside strings, a string that
    directly follows a completed value gets a separating comma.
    """
    out: list[str] = []
    in_string = False
    escape_next = False
    n = len(text)

    for i, ch in enumerate(text):
        if escape_next:
            out.append(ch)
            escape_next = False
            continue
        if ch == "\\":
            out.append(ch)
            escape_next = True
            continue
        if ch != '"':
            out.append(ch)
            continue

        if not in_string:
            if _needs_comma_before(out):
                out.append(",")
            in_string = True
            out.append(ch)
            continue

        j = _next_significant(text, i + 1)
        if j == n or text[j] in _STRING_CLOSERS:
            in_string = False
            out.append(ch)
        elif text[j] == '"' and "\n" in text[i + 1 : j]:
            in_string = False
            out.append('",')
        else:
            out.append('\\"')

    return "".join(out)


def repair_structure(text: str) -> str:
    """Quote repair followed by another control-character and comma pass.

    Escaping a stray quote can move string boundaries, which
    exposes control characters and commas the first passes
    judged to be outside strings.
    """
    return strip_trailing_commas(escape_control_characters(repair_quotes(text)))
