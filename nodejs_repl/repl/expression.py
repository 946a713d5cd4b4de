"""
Locate JavaScript source fragments around a cursor offset.

Used by the send-line and send-last-expression commands. The scan is lexical:
it balances brackets and skips over string literals, which is enough for the
expressions people evaluate interactively.
"""

from __future__ import annotations

OPENERS = {")": "(", "]": "[", "}": "{"}
QUOTES = ("'", '"', "`")


def current_line(source: str, point: int) -> str:
    """Return the line of ``source`` containing offset ``point``."""
    point = max(0, min(point, len(source)))
    start = source.rfind("\n", 0, point) + 1
    end = source.find("\n", point)
    if end == -1:
        end = len(source)
    return source[start:end]


def last_expression(source: str, point: int) -> str:
    """Return the expression ending just before ``point``.

    Trailing whitespace and semicolons are skipped. The expression extends
    backwards over identifiers, member access (``.`` and ``?.``), call and
    index brackets, literals, and a leading ``new``.

    Returns:
        The expression text, or an empty string if none precedes ``point``
    """
    point = max(0, min(point, len(source)))
    end = point
    while end > 0 and (source[end - 1].isspace() or source[end - 1] == ";"):
        end -= 1

    pos = end
    while pos > 0:
        char = source[pos - 1]
        if char in OPENERS:
            start = _match_open(source, pos - 1)
            if start is None:
                break
            pos = start
        elif char in QUOTES:
            start = _string_start(source, pos - 1)
            if start is None:
                break
            pos = start
        elif _is_word_char(char):
            while pos > 0 and _is_word_char(source[pos - 1]):
                pos -= 1
        else:
            break

        # Continue through member access: foo.bar, foo?.bar
        if pos > 0 and source[pos - 1] == ".":
            pos -= 1
            if pos > 0 and source[pos - 1] == "?":
                pos -= 1
            continue
        # Call or index directly after something: foo(...), foo[...]
        if pos > 0 and (source[pos - 1] in OPENERS or _is_word_char(source[pos - 1])):
            if source[pos] in "([" or source[pos] in QUOTES:
                continue
        break

    start = _include_new(source, pos)
    return source[start:end]


def _is_word_char(char: str) -> bool:
    return char.isalnum() or char in "_$"


def _match_open(source: str, close_index: int) -> int | None:
    """Index of the bracket opening the one at ``close_index``."""
    stack = [source[close_index]]
    i = close_index - 1
    while i >= 0:
        char = source[i]
        if char in QUOTES:
            start = _string_start(source, i)
            if start is None:
                return None
            i = start - 1
            continue
        if char in OPENERS:
            stack.append(char)
        elif char in OPENERS.values():
            if OPENERS[stack[-1]] != char:
                return None
            stack.pop()
            if not stack:
                return i
        i -= 1
    return None


def _string_start(source: str, close_index: int) -> int | None:
    """Index of the quote opening the string literal closed at ``close_index``."""
    quote = source[close_index]
    i = close_index - 1
    while i >= 0:
        if source[i] == quote and not _escaped(source, i):
            return i
        if source[i] == "\n" and quote != "`":
            return None
        i -= 1
    return None


def _escaped(source: str, index: int) -> bool:
    backslashes = 0
    i = index - 1
    while i >= 0 and source[i] == "\\":
        backslashes += 1
        i -= 1
    return backslashes % 2 == 1


def _include_new(source: str, start: int) -> int:
    """Extend ``start`` backwards over a ``new`` keyword, if present."""
    i = start
    while i > 0 and source[i - 1] in " \t":
        i -= 1
    if i >= 3 and source[i - 3:i] == "new" and (i == 3 or not _is_word_char(source[i - 4])):
        return i - 3
    return start
