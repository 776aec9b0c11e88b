"""
Dialogue nodes - the immutable records a compiled graph is made of.
"""

from __future__ import annotations

from typing import Optional

from engine.core.component import Component


class Command(Component):
    """
    A post-node instruction.

    Attributes:
        name: Command identifier (``close``, ``jump``, ``set``, or a custom name)
        parameter: Raw argument blob, split by whoever runs the command
    """
    name: str
    parameter: Optional[str] = None

    def arguments(self) -> list[str]:
        """Whitespace-split parameter blob."""
        if not self.parameter:
            return []
        return self.parameter.split()

    def __str__(self) -> str:
        if self.parameter is None:
            return f"@{self.name}"
        return f"@{self.name} {self.parameter}"


class Choice(Component):
    """A player-selectable branch."""
    text: str
    target_tag: str


class DialogueNode(Component):
    """
    One beat of dialogue.

    Attributes:
        tag: Unique jump target within the graph
        character_id: Speaker (empty for narration)
        text: Dialogue text, source lines joined by single spaces
        commands: Instructions run after the node is shown
        choices: Branches offered to the player
    """
    tag: str
    character_id: str = ""
    text: str = ""
    commands: tuple[Command, ...] = ()
    choices: tuple[Choice, ...] = ()

    @property
    def has_choices(self) -> bool:
        return len(self.choices) > 0

    @property
    def has_commands(self) -> bool:
        return len(self.commands) > 0
