"""
Line classifier for dialogue scripts.

Every source line is one of:

```
# a comment                         COMMENT
Stranger:                           CHARACTER
[greeting]                          TAG
Hello there, traveller.             DIALOGUE
@set gold 10                        COMMAND
    Who are you?                    CHOICE (label row)
    [who]                           CHOICE (target row)
```

Classification is a plain character scan; no regexes.
"""

from __future__ import annotations

from enum import Enum, auto
from typing import Optional

DEFAULT_MIN_INDENT = 2


class LineKind(Enum):
    """Kind of a script line."""
    BLANK = auto()
    COMMENT = auto()
    TAG = auto()
    CHARACTER = auto()
    COMMAND = auto()
    CHOICE = auto()
    DIALOGUE = auto()


def is_indented(line: str, min_indent: int = DEFAULT_MIN_INDENT) -> bool:
    """
    Check whether a line belongs to a choice block.

    A line is indented if it starts with a tab, or with at least
    ``min_indent`` whitespace characters.
    """
    if not line:
        return False

    if line[0] == '\t':
        return True

    count = 0
    for char in line:
        if not char.isspace():
            break
        count += 1

    return count >= min_indent


def strip_indent(line: str) -> str:
    """Remove leading indentation (and trailing whitespace)."""
    return line.strip()


def _classify_content(content: str) -> LineKind:
    """Classify an already-trimmed, non-indented line."""
    if not content:
        return LineKind.BLANK
    if content[0] == '#':
        return LineKind.COMMENT
    if content[0] == '[' and content[-1] == ']' and len(content) > 1:
        return LineKind.TAG
    if content[0] == '@':
        return LineKind.COMMAND
    if content[-1] == ':':
        return LineKind.CHARACTER
    return LineKind.DIALOGUE


def classify_inner(line: str) -> LineKind:
    """Classify the content of a choice row after removing its indentation."""
    return _classify_content(strip_indent(line))


def classify(line: str, min_indent: int = DEFAULT_MIN_INDENT) -> LineKind:
    """
    Classify a raw script line.

    Args:
        line: The raw line, without its line terminator
        min_indent: Leading spaces that mark a choice row

    Returns:
        The line kind
    """
    content = line.strip()

    if not content:
        return LineKind.BLANK

    if content[0] == '#':
        return LineKind.COMMENT

    if is_indented(line, min_indent):
        # Commented-out choice rows must stay comments
        if classify_inner(line) == LineKind.COMMENT:
            return LineKind.COMMENT
        return LineKind.CHOICE

    return _classify_content(content)


def parse_tag(line: str) -> Optional[str]:
    """
    Extract the tag name from a ``[tag]`` line.

    Returns None when the line holds no well-formed tag.
    """
    content = line.strip()
    start = content.find('[')
    if start < 0:
        return None

    end = content.find(']', start + 1)
    if end < 0:
        return None

    name = content[start + 1:end].strip()
    return name or None


def parse_character(line: str) -> Optional[str]:
    """
    Extract the speaker from a ``Name:`` header.

    Returns None when nothing precedes the colon.
    """
    content = line.strip()
    if not content.endswith(':'):
        return None

    name = content[:-1].strip()
    return name or None


def parse_command(line: str) -> tuple[str, Optional[str]]:
    """
    Split a command line into its name and raw parameter blob.

    ``@jumpif cellar has_key`` -> ``("jumpif", "cellar has_key")``
    ``@close``                 -> ``("close", None)``
    """
    content = line.strip()
    if content.startswith('@'):
        content = content[1:]

    for i, char in enumerate(content):
        if char.isspace():
            parameter = content[i:].strip()
            return content[:i], parameter or None

    return content, None
