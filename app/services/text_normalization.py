"""Utilities for turning raw JSON string values into display text."""

from __future__ import annotations

# Applied in order; the patterns never overlap.
ESCAPE_REPLACEMENTS = (
    ("\\n", "\n"),
    ('\\"', '"'),
)


def _replace_escapes(text: str) -> str:
    for escaped, plain in ESCAPE_REPLACEMENTS:
        text = text.replace(escaped, plain)
    return text


def normalize_message_text(text: str | None) -> str:
    """Unescape newlines and quotes in a value taken straight from a JSON body.

    Replacements repeat until nothing changes, so ``\\\\"`` collapses to a bare
    quote and normalizing twice gives the same text as normalizing once.
    """

    if not text:
        return ""

    cleaned = str(text)
    while True:
        replaced = _replace_escapes(cleaned)
        if replaced == cleaned:
            return cleaned
        cleaned = replaced
