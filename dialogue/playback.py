"""
Dialogue playback - walks a compiled graph and drives a UI.

The playback engine knows nothing about rendering. It reports what to
show through a PlaybackHandler and, when given one, an EventBus:

- CHARACTER_CHANGED / DIALOGUE_CHANGED when a node is entered
- CHOICES_AVAILABLE when the node waits for a choice
- COMMAND_REQUESTED for commands the engine does not handle itself
- PLAYBACK_COMPLETED when the script ends or is closed

Built-in commands:

```
@close                  stop playback
@closeif <flag>         stop if <flag> is set
@jump <tag>             continue at <tag>
@jumpif <tag> <flag>    continue at <tag> if <flag> is set
@set <name> <value...>  store a number or text
@flag <name>            store true
@unset <name>           delete a variable
@print <text...>        debug output
```
"""

from __future__ import annotations

import logging
from enum import Enum, auto
from typing import TYPE_CHECKING, Any, Optional, Protocol, Sequence

from dialogue.errors import EmptyGraphError, InvalidChoiceError, InvalidJumpError, NoGraphError
from dialogue.graph import DialogueGraph
from dialogue.nodes import Choice, Command, DialogueNode
from dialogue.resolver import resolve_variables
from dialogue.variables import Variable, VariableStore

if TYPE_CHECKING:
    from pygame import Color
    from pygame.math import Vector2, Vector3
    from engine.core.events import EventBus

logger = logging.getLogger(__name__)

MAX_REDIRECTS = 64


class DialogueEvent(Enum):
    """Playback events published on the event bus."""
    CHARACTER_CHANGED = auto()
    DIALOGUE_CHANGED = auto()
    CHOICES_AVAILABLE = auto()
    COMMAND_REQUESTED = auto()
    PLAYBACK_COMPLETED = auto()
    PRINT = auto()


class PlaybackHandler(Protocol):
    """Receives presentation callbacks from a DialoguePlayback."""

    def on_character_changed(self, character_id: str) -> None: ...

    def on_dialogue_changed(self, text: str) -> None: ...

    def on_choices_available(self, choices: Sequence[Choice]) -> None: ...

    def on_command_request(self, playback: DialoguePlayback, command: Command) -> None: ...

    def on_playback_completed(self, playback: DialoguePlayback) -> None: ...

    def on_print(self, text: str) -> None: ...


class BasePlaybackHandler:
    """PlaybackHandler that ignores everything; subclass what you need."""

    def on_character_changed(self, character_id: str) -> None:
        pass

    def on_dialogue_changed(self, text: str) -> None:
        pass

    def on_choices_available(self, choices: Sequence[Choice]) -> None:
        pass

    def on_command_request(self, playback: DialoguePlayback, command: Command) -> None:
        pass

    def on_playback_completed(self, playback: DialoguePlayback) -> None:
        pass

    def on_print(self, text: str) -> None:
        pass


class DialoguePlayback:
    """
    A UI-agnostic dialogue session over one graph.

    Usage:
        playback = DialoguePlayback(graph, handler=ui)
        playback.start()
        playback.next()
        playback.select_choice(0)

    Each session owns its cursor and variables; the graph is only read,
    so several sessions may share it.
    """

    def __init__(
        self,
        graph: Optional[DialogueGraph] = None,
        handler: Optional[PlaybackHandler] = None,
        event_bus: Optional[EventBus] = None,
    ):
        self.handler = handler
        self.event_bus = event_bus
        self.variables = VariableStore()

        self._graph: Optional[DialogueGraph] = None
        self._index = 0
        self._current: Optional[DialogueNode] = None
        self._has_run_commands = False
        self._redirects = 0

        if graph is not None:
            self.set_graph(graph)

    # -- state --------------------------------------------------------------

    @property
    def graph(self) -> Optional[DialogueGraph]:
        return self._graph

    @property
    def has_graph(self) -> bool:
        return self._graph is not None

    @property
    def current_index(self) -> int:
        return self._index

    @property
    def current_node(self) -> Optional[DialogueNode]:
        """The node on screen, or None when the session is idle."""
        return self._current

    @property
    def is_active(self) -> bool:
        return self._current is not None

    @property
    def has_run_commands(self) -> bool:
        return self._has_run_commands

    # -- main functions -----------------------------------------------------

    def set_graph(self, graph: DialogueGraph, reset_variables: bool = False) -> None:
        """
        Bind the session to a graph and rewind it.

        Args:
            graph: The graph to play
            reset_variables: Also clear the variable store
        """
        self._graph = graph
        self.reset(reset_variables)

    def start(self) -> None:
        """Enter the first node."""
        graph = self._require_graph()
        if not graph:
            raise EmptyGraphError("cannot start playback of an empty dialogue graph")
        self._enter(0)

    def next(self, wrap: bool = False) -> None:
        """
        Advance the dialogue.

        Runs the current node's pending commands first. Does nothing while
        the current node waits for a choice.

        Args:
            wrap: Restart from the first node instead of completing
        """
        graph = self._require_graph()

        if self._current is None:
            if not graph:
                raise EmptyGraphError("cannot advance an empty dialogue graph")
            self._enter(0)
            return

        if self._run_commands():
            return

        if self._current.has_choices:
            return

        index = self._index + 1
        if index >= len(graph):
            if not wrap:
                self._complete()
                return
            index = 0

        # Skip blocks that are the one already on screen
        while index < len(graph) and index != self._index and graph[index] is self._current:
            index += 1

        if index >= len(graph):
            self._complete()
            return

        self._enter(index)

    def jump(self, target: int | str) -> None:
        """
        Continue playback at a node.

        Args:
            target: Node index, or node tag

        Raises:
            InvalidJumpError: If an index is out of range
        """
        graph = self._require_graph()

        if isinstance(target, str):
            index = graph.find_index_by_tag(target)
            if index is None:
                logger.warning(f"Dialogue jump target not found: [{target}]")
                return
        else:
            index = target
            if not 0 <= index < len(graph):
                raise InvalidJumpError(index, len(graph))

        self._enter(index)

    def select_choice(self, choice_index: int) -> None:
        """
        Pick one of the current node's choices.

        Raises:
            InvalidChoiceError: If the index is out of range
        """
        node = self._current
        if node is None or not node.has_choices:
            logger.warning("select_choice() called while no choice is open")
            return

        if not 0 <= choice_index < len(node.choices):
            raise InvalidChoiceError(choice_index, len(node.choices))

        self.jump(node.choices[choice_index].target_tag)

    def stop(self) -> None:
        """Stop playback, report completion and rewind."""
        self._complete()

    def reset(self, reset_variables: bool = False) -> None:
        """
        Rewind to the first node without emitting anything.

        Args:
            reset_variables: Also clear the variable store
        """
        self._index = 0
        self._current = None
        self._has_run_commands = False

        if reset_variables:
            self.variables.clear()

    def reload_block(self) -> None:
        """
        Present the active node again (re-resolves its variables).

        Commands that already ran for the node are not run twice.
        """
        if self._current is None:
            return
        self._enter(self._index, reload=True)

    def resolve(self, text: str) -> str:
        """Resolve ``$name`` references against this session's variables."""
        return resolve_variables(text, self.variables.display)

    # -- variables ----------------------------------------------------------

    def set_variable(self, name: str, value: Any) -> None:
        """Set a variable and refresh the active node."""
        self.variables.set(name, value)
        self.reload_block()

    def remove_variable(self, name: str) -> None:
        self.variables.remove(name)

    def has_variable(self, name: str) -> bool:
        return name in self.variables

    def get_bool(self, name: str, default: bool = False) -> bool:
        return self.variables.get_bool(name, default)

    def get_int(self, name: str, default: int = 0) -> int:
        return self.variables.get_int(name, default)

    def get_float(self, name: str, default: float = 0.0) -> float:
        return self.variables.get_float(name, default)

    def get_vec2(self, name: str, default: Optional[Vector2] = None) -> Vector2:
        return self.variables.get_vec2(name, default)

    def get_vec3(self, name: str, default: Optional[Vector3] = None) -> Vector3:
        return self.variables.get_vec3(name, default)

    def get_color(self, name: str, default: Optional[Color] = None) -> Color:
        return self.variables.get_color(name, default)

    def get_text(self, name: str, default: str = "") -> str:
        return self.variables.get_text(name, default)

    # -- helpers ------------------------------------------------------------

    def _require_graph(self) -> DialogueGraph:
        if self._graph is None:
            raise NoGraphError("no dialogue graph bound to this playback")
        return self._graph

    def _enter(self, index: int, reload: bool = False) -> None:
        """Make a node current and present it."""
        node = self._graph[index]
        self._index = index
        self._current = node
        if not reload:
            self._has_run_commands = False

        # Commands may redirect a choice block before it is shown
        if node.has_choices and self._run_commands():
            return

        character = self.resolve(node.character_id)
        text = self.resolve(node.text)

        if self.handler:
            self.handler.on_character_changed(character)
            self.handler.on_dialogue_changed(text)
        self._publish(DialogueEvent.CHARACTER_CHANGED, character_id=character)
        self._publish(DialogueEvent.DIALOGUE_CHANGED, text=text)

        if node.has_choices:
            choices = tuple(
                Choice(text=self.resolve(choice.text), target_tag=choice.target_tag)
                for choice in node.choices
            )
            if self.handler:
                self.handler.on_choices_available(choices)
            self._publish(DialogueEvent.CHOICES_AVAILABLE, choices=choices)

    def _complete(self) -> None:
        if self.handler:
            self.handler.on_playback_completed(self)
        self._publish(DialogueEvent.PLAYBACK_COMPLETED)
        self.reset()

    def _publish(self, event_type: DialogueEvent, **data: Any) -> None:
        if self.event_bus:
            self.event_bus.publish(event_type, playback=self, **data)

    def _run_commands(self) -> bool:
        """
        Run the current node's commands once.

        Returns:
            True if a command moved or stopped playback
        """
        if self._has_run_commands or self._current is None:
            return False

        self._has_run_commands = True
        node = self._current

        for command in node.commands:
            if self._run_builtin(command):
                return True
        return False

    def _run_builtin(self, command: Command) -> bool:
        """Evaluate one command; forwards unknown names to the host."""
        args = command.arguments()
        name = command.name

        if name == "close":
            self.stop()
            return True

        if name == "closeif":
            if not args:
                return self._usage(command, "@closeif <flag>")
            if args[0] in self.variables:
                self.stop()
                return True
            return False

        if name == "jump":
            if not args:
                return self._usage(command, "@jump <tag>")
            return self._command_jump(args[0])

        if name == "jumpif":
            if len(args) < 2:
                return self._usage(command, "@jumpif <tag> <flag>")
            if args[1] in self.variables:
                return self._command_jump(args[0])
            return False

        if name == "set":
            if len(args) < 2:
                return self._usage(command, "@set <name> <value...>")
            value = command.parameter.split(None, 1)[1]
            self.variables.set(args[0], Variable.parse(value))
            logger.debug(f"Dialogue variable set: {args[0]} = {self.variables.get(args[0])}")
            return False

        if name == "flag":
            if not args:
                return self._usage(command, "@flag <name>")
            self.variables.set(args[0], True)
            return False

        if name == "unset":
            if not args:
                return self._usage(command, "@unset <name>")
            self.variables.remove(args[0])
            return False

        if name == "print":
            text = self.resolve(command.parameter or "")
            logger.info(f"Dialogue print: {text}")
            if self.handler:
                self.handler.on_print(text)
            self._publish(DialogueEvent.PRINT, text=text)
            return False

        # Custom command: fire and forget
        if self.handler:
            self.handler.on_command_request(self, command)
        self._publish(DialogueEvent.COMMAND_REQUESTED, command=command)
        return False

    def _command_jump(self, tag: str) -> bool:
        if self._graph.find_index_by_tag(tag) is None:
            logger.warning(f"Dialogue jump target not found: [{tag}]")
            return False

        # Choice blocks run their commands on entry, so @jump chains nest
        if self._redirects >= MAX_REDIRECTS:
            logger.error(f"Dialogue jump loop detected at [{tag}]; stopping playback")
            self.stop()
            return True

        self._redirects += 1
        try:
            self.jump(tag)
        finally:
            self._redirects -= 1
        return True

    def _usage(self, command: Command, usage: str) -> bool:
        logger.error(f"Dialogue script: invalid use of command '{command}'. Usage: {usage}")
        return False
