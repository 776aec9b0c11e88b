"""
Variable resolver - substitutes ``$name`` references in dialogue text.

A reference runs from the character after ``$`` up to the first
character that is not a letter or digit. Substitution is a single
left-to-right pass; resolved values are never scanned again, so a value
containing ``$`` is shown as-is.
"""

from __future__ import annotations

from typing import Callable

VariableLookup = Callable[[str], str]

MARKER = '$'


def _is_name_char(char: str) -> bool:
    return char.isalnum()


def find_variables(text: str) -> list[str]:
    """List the variable names referenced in a text, in order of appearance."""
    names = []
    i = text.find(MARKER)
    while i >= 0:
        end = i + 1
        while end < len(text) and _is_name_char(text[end]):
            end += 1
        if end > i + 1:
            names.append(text[i + 1:end])
        i = text.find(MARKER, end if end > i + 1 else i + 1)
    return names


def resolve_variables(text: str, lookup: VariableLookup) -> str:
    """
    Replace every ``$name`` in a text with ``lookup(name)``.

    Args:
        text: Text that may contain variable references
        lookup: Returns the display string for a variable name.
                Unknown names are the lookup's business; the playback
                store echoes the bare name back.

    Returns:
        The resolved text (the same object if it holds no ``$``)
    """
    if MARKER not in text:
        return text

    parts: list[str] = []
    length = len(text)
    i = 0

    while i < length:
        marker = text.find(MARKER, i)
        if marker < 0:
            parts.append(text[i:])
            break

        parts.append(text[i:marker])

        end = marker + 1
        while end < length and _is_name_char(text[end]):
            end += 1

        if end == marker + 1:
            # Lone '$' (e.g. "costs 5$")
            parts.append(MARKER)
        else:
            parts.append(lookup(text[marker + 1:end]))

        i = end

    return ''.join(parts)
