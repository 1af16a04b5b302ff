"""Pull single values and list items out of raw JSON bodies without parsing them."""

from __future__ import annotations

from dataclasses import dataclass

from app.core.errors import ParseFailure
from .text_scanner import BraceCounter, find_unescaped_quote, match_balanced_braces

JSON_WHITESPACE = " \t\r\n"


@dataclass(frozen=True)
class ExtractionResult:
    """Outcome of one extraction: the raw substring, or why it could not be found."""

    target: str
    value: str | None = None
    reason: str | None = None

    @classmethod
    def success(cls, target: str, value: str) -> "ExtractionResult":
        return cls(target=target, value=value)

    @classmethod
    def failure(cls, target: str, reason: str) -> "ExtractionResult":
        return cls(target=target, reason=reason)

    @property
    def ok(self) -> bool:
        return self.reason is None

    def unwrap(self, response_body: str | None = None) -> str:
        """Return the value, raising :class:`ParseFailure` if extraction failed."""

        if not self.ok:
            raise ParseFailure(self.target, self.reason, response_body)
        return self.value


def _skip_whitespace(document: str, index: int) -> int:
    while index < len(document) and document[index] in JSON_WHITESPACE:
        index += 1
    return index


def extract_field(property_name: str, document: str) -> ExtractionResult:
    """
    Return the raw string value of the first ``"property_name"`` in ``document``.

    The key is matched as a plain substring, so an occurrence inside an
    unrelated string value also counts. Escape sequences in the value are kept
    as-is; see :func:`app.services.text_normalization.normalize_message_text`.
    Whitespace around the colon is tolerated, so ``"id": "x"`` matches too.
    """

    key = f'"{property_name}"'
    key_index = document.find(key)
    if key_index == -1:
        return ExtractionResult.failure(property_name, "property not found")

    index = _skip_whitespace(document, key_index + len(key))
    if index >= len(document) or document[index] != ":":
        return ExtractionResult.failure(property_name, "no value after property")

    index = _skip_whitespace(document, index + 1)
    if index >= len(document) or document[index] != '"':
        return ExtractionResult.failure(property_name, "value is not a string")

    start = index + 1
    end = find_unescaped_quote(document, start)
    if end is None:
        return ExtractionResult.failure(property_name, "unterminated string value")
    return ExtractionResult.success(property_name, document[start:end])


class _ObjectListScanner:
    """
    Walks a document looking for the ``ordinal``-th object below ``depth`` outer braces.

    The first ``depth`` opening braces are skipped. After that a
    :class:`BraceCounter` tracks nesting, and every time it goes from 0 to 1 a
    new object of interest starts.
    """

    def __init__(self, ordinal: int, depth: int) -> None:
        self.ordinal = ordinal
        self.depth = depth
        self.ignored_opens = 0
        self.braces = BraceCounter()
        self.objects_found = 0
        self.start: int | None = None

    def feed(self, index: int, ch: str) -> bool:
        """Consume one character; return True once scanning can stop."""

        if ch == "{" and self.ignored_opens < self.depth:
            self.ignored_opens += 1
            return False
        # closing brace with nothing open at this depth: the list ended
        if ch == "}" and self.braces.depth < 1:
            return True

        if self.braces.feed(ch) == 1 and ch == "{":
            self.objects_found += 1
            if self.objects_found == self.ordinal:
                self.start = index
                return True
        return False


def extract_nth_object(ordinal: int, depth: int, document: str) -> ExtractionResult:
    """
    Return the ``ordinal``-th (1-based) object found after skipping ``depth`` outer braces.

    For an envelope like ``{"data": [{...}, {...}]}`` use ``depth=1``.
    """

    if ordinal < 1:
        raise ValueError("ordinal may not be lower than 1")
    if depth < 0:
        raise ValueError("depth may not be lower than 0")

    target = f"object #{ordinal} at depth {depth}"
    scanner = _ObjectListScanner(ordinal, depth)
    for index, ch in enumerate(document):
        if scanner.feed(index, ch):
            break

    if scanner.start is None:
        return ExtractionResult.failure(target, "no object at position")
    end = match_balanced_braces(document, scanner.start)
    if end is None:
        return ExtractionResult.failure(target, "no object at position")
    return ExtractionResult.success(target, document[scanner.start:end + 1])
