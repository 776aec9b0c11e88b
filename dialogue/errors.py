"""
Dialogue errors.

Content problems in a script (malformed tags, too many choices, a jump
to a tag that does not exist) are never raised: they are logged and the
dialogue keeps playing with fallback text. Only caller misuse raises.
"""

from __future__ import annotations


class DialogueError(Exception):
    """Base class for all dialogue errors."""


class EmptyGraphError(DialogueError):
    """A graph operation needs at least one node."""


class NoGraphError(DialogueError):
    """Playback was driven before a graph was bound."""


class DuplicateTagError(DialogueError, ValueError):
    """Two nodes in a hand-built graph share a tag."""

    def __init__(self, tag: str):
        super().__init__(f"Duplicate node tag: {tag!r}")
        self.tag = tag


class InvalidJumpError(DialogueError, IndexError):
    """Numeric jump outside the graph."""

    def __init__(self, index: int, count: int):
        super().__init__(f"Invalid jump index {index} (graph has {count} nodes)")
        self.index = index
        self.count = count


class InvalidChoiceError(DialogueError, IndexError):
    """Choice index outside the current node's choice list."""

    def __init__(self, index: int, count: int):
        super().__init__(f"Invalid choice index {index} (node has {count} choices)")
        self.index = index
        self.count = count


class GraphFormatError(DialogueError, ValueError):
    """Persisted graph or session data does not match the expected layout."""
