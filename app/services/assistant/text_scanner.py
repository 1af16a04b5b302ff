"""Single-pass scanning primitives for raw JSON response bodies.

Both scanners are tiny state machines fed one character at a time. They never
raise when the text runs out; callers get ``None`` and must treat it as a
failed extraction.
"""

from __future__ import annotations


class QuoteScanner:
    """
    Tracks whether the next character is escaped inside a JSON string.

    A backslash escapes exactly the following character, so a run of
    backslashes toggles the flag: ``\\\\"`` ends the string, ``\\"`` does not.
    """

    def __init__(self) -> None:
        self.escaped = False

    def feed(self, ch: str) -> bool:
        """Consume ``ch`` and return True if it is a terminating quote."""

        if self.escaped:
            self.escaped = False
            return False
        if ch == "\\":
            self.escaped = True
            return False
        return ch == '"'


class BraceCounter:
    """Counts ``{``/``}`` nesting. Quoted strings are not tracked."""

    def __init__(self) -> None:
        self.depth = 0

    def feed(self, ch: str) -> int:
        if ch == "{":
            self.depth += 1
        elif ch == "}":
            self.depth -= 1
        return self.depth


def find_unescaped_quote(text: str, from_index: int = 0) -> int | None:
    """Return the index of the first unescaped ``"`` at or after ``from_index``."""

    scanner = QuoteScanner()
    for i in range(max(from_index, 0), len(text)):
        if scanner.feed(text[i]):
            return i
    return None


def match_balanced_braces(text: str, start_index: int) -> int | None:
    """Return the index of the ``}`` closing the ``{`` at ``start_index``."""

    if not 0 <= start_index < len(text) or text[start_index] != "{":
        raise ValueError(f"No opening brace at index {start_index}")
    counter = BraceCounter()
    for i in range(start_index, len(text)):
        if counter.feed(text[i]) == 0:
            return i
    return None
