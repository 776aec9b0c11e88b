"""
Dialogue graph - the compiled, read-only output of the script compiler.
"""

from __future__ import annotations

from typing import Iterable, Iterator, Optional

from dialogue.errors import DuplicateTagError, EmptyGraphError
from dialogue.nodes import Choice, DialogueNode


class DialogueGraph:
    """
    An ordered sequence of dialogue nodes with tag lookup.

    The graph never changes after construction, so one instance can be
    shared by several playback sessions.
    """

    __slots__ = ('_nodes', '_index')

    def __init__(self, nodes: Iterable[DialogueNode] = ()):
        self._nodes: tuple[DialogueNode, ...] = tuple(nodes)
        self._index: dict[str, int] = {}

        for i, node in enumerate(self._nodes):
            if node.tag in self._index:
                raise DuplicateTagError(node.tag)
            self._index[node.tag] = i

    @property
    def nodes(self) -> tuple[DialogueNode, ...]:
        return self._nodes

    @property
    def tags(self) -> list[str]:
        return [node.tag for node in self._nodes]

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[DialogueNode]:
        return iter(self._nodes)

    def __getitem__(self, index: int) -> DialogueNode:
        return self._nodes[index]

    def __bool__(self) -> bool:
        return bool(self._nodes)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DialogueGraph):
            return NotImplemented
        return self._nodes == other._nodes

    def __hash__(self) -> int:
        return hash(self._nodes)

    def __repr__(self) -> str:
        return f"DialogueGraph({len(self._nodes)} nodes)"

    def find_index_by_tag(self, tag: str) -> Optional[int]:
        """Get the index of the node with a tag, or None."""
        return self._index.get(tag)

    def find_node_by_tag(self, tag: str) -> Optional[DialogueNode]:
        """Get the node with a tag, or None."""
        index = self._index.get(tag)
        if index is None:
            return None
        return self._nodes[index]

    def find_node_by_choice(self, choice: Choice) -> Optional[DialogueNode]:
        """Get the node a choice points at, or None."""
        return self.find_node_by_tag(choice.target_tag)

    def first(self) -> DialogueNode:
        """Get the first node."""
        if not self._nodes:
            raise EmptyGraphError("first() on an empty dialogue graph")
        return self._nodes[0]

    def last(self) -> DialogueNode:
        """Get the last node."""
        if not self._nodes:
            raise EmptyGraphError("last() on an empty dialogue graph")
        return self._nodes[-1]

    def unresolved_targets(self) -> list[tuple[str, str]]:
        """
        Find choice and jump targets that name no node in the graph.

        Returns:
            (node tag, missing target tag) pairs in graph order
        """
        missing = []
        for node in self._nodes:
            for choice in node.choices:
                if choice.target_tag not in self._index:
                    missing.append((node.tag, choice.target_tag))
            for command in node.commands:
                if command.name in ('jump', 'jumpif'):
                    args = command.arguments()
                    if args and args[0] not in self._index:
                        missing.append((node.tag, args[0]))
        return missing
