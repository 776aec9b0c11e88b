"""
Dialogue script compiler - turns script text into a DialogueGraph.

Supports a simple line-based format:

```
# Comments start with a hash
[gate]
Guard:
Halt! Who goes there, $player?
@set alarm 1
    A friend.
    [friend]
    None of your business.
    [hostile]

[friend]
Guard:
Pass, then.
@close
```

A character header opens a node; following text lines are joined with
single spaces; ``@`` lines attach commands; indented rows form the
node's choice list, each a label row followed by a ``[target]`` row.
Nodes without an explicit tag are named ``start`` (the first one) and
``node_0``, ``node_1``, ... afterwards.

Malformed content never stops compilation: the compiler logs a warning,
keeps a CompileWarning record, and carries on with fallback values.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum, auto
from pathlib import Path
from typing import Optional

from dialogue.classifier import (
    DEFAULT_MIN_INDENT,
    LineKind,
    classify,
    classify_inner,
    parse_character,
    parse_command,
    parse_tag,
    strip_indent,
)
from dialogue.graph import DialogueGraph
from dialogue.nodes import Choice, Command, DialogueNode

logger = logging.getLogger(__name__)

START_TAG = "start"
AUTO_TAG_PREFIX = "node_"


class CompilerConfig:
    """Limits and syntax settings for the script compiler."""

    def __init__(
        self,
        min_indent: int = DEFAULT_MIN_INDENT,
        max_commands: int = 5,
        max_choices: int = 8,
        max_nodes: int = 2048,
        max_line_length: int = 1024,
    ):
        self.min_indent = min_indent
        self.max_commands = max_commands
        self.max_choices = max_choices
        self.max_nodes = max_nodes
        self.max_line_length = max_line_length


class CompilerState(Enum):
    """State of the compiler state machine."""
    IDLE = auto()
    IN_DIALOGUE = auto()
    IN_CHOICE = auto()


@dataclass(frozen=True)
class CompileWarning:
    """A non-fatal problem found while compiling."""
    line: int
    message: str
    source: str = ""

    def __str__(self) -> str:
        if self.line > 0:
            return f"line {self.line}: {self.message}"
        return self.message


class ScriptCompiler:
    """
    Compiles dialogue scripts into dialogue graphs.

    One compiler can be reused; every compile() starts from a clean
    state, so the same text always yields an equal graph.
    """

    def __init__(self, config: Optional[CompilerConfig] = None):
        self.config = config or CompilerConfig()
        self.warnings: list[CompileWarning] = []
        self._reset()

    def _reset(self) -> None:
        self._state = CompilerState.IDLE
        self._nodes: list[DialogueNode] = []
        self._used_tags: set[str] = set()
        self._auto_counter = 0
        self._line_no = 0
        self._line = ""
        self._clear_pending()

    def _clear_pending(self) -> None:
        self._tag: Optional[str] = None
        self._character: Optional[str] = None
        self._text: list[str] = []
        self._commands: list[Command] = []
        self._choices: list[Choice] = []
        self._choice_label: Optional[str] = None

    # -- entry points -------------------------------------------------------

    def compile(self, text: str) -> DialogueGraph:
        """
        Compile script text.

        Args:
            text: The whole script, lines separated by ``\\n``

        Returns:
            The compiled graph (possibly empty)
        """
        self._reset()
        self.warnings = []

        for line_no, line in enumerate(text.split('\n'), start=1):
            line = line.rstrip('\r')
            self._line_no = line_no
            self._line = line

            kind = classify(line, self.config.min_indent)
            if kind in (LineKind.BLANK, LineKind.COMMENT):
                continue

            self._dispatch(line, kind)

        # End-of-script: flush whatever is still pending
        self._line_no = 0
        self._line = ""
        self._finish()

        graph = DialogueGraph(self._nodes)
        logger.debug(f"Compiled dialogue script: {len(graph)} nodes, {len(self.warnings)} warnings")
        return graph

    def compile_file(self, path: str | Path) -> DialogueGraph:
        """Compile a script file (UTF-8)."""
        path = Path(path)
        with open(path, 'r', encoding='utf-8') as f:
            content = f.read()
        return self.compile(content)

    # -- state machine ------------------------------------------------------

    def _dispatch(self, line: str, kind: LineKind) -> None:
        if self._state == CompilerState.IN_CHOICE:
            self._parse_choice(line, kind)
        else:
            self._parse_dialogue(line, kind)

    def _change_state(self, state: CompilerState, line: str, kind: LineKind) -> None:
        self._state = state
        self._dispatch(line, kind)

    def _parse_dialogue(self, line: str, kind: LineKind) -> None:
        if kind == LineKind.CHOICE:
            self._change_state(CompilerState.IN_CHOICE, line, kind)
            return

        if kind == LineKind.CHARACTER:
            # A new header closes the block being built
            if self._state == CompilerState.IN_DIALOGUE:
                self._commit()
                self._change_state(CompilerState.IDLE, line, kind)
                return

            self._character = self._read_character(line)
            self._state = CompilerState.IN_DIALOGUE
            return

        if kind == LineKind.TAG:
            # A tag after the block body names the next block
            if self._state == CompilerState.IN_DIALOGUE and self._has_body():
                self._commit()
                self._change_state(CompilerState.IDLE, line, kind)
                return

            tag = self._read_tag(line)
            if self._tag is not None:
                self._warn(f"tag [{self._tag}] replaced by [{tag}]")
            self._tag = tag
            return

        if kind == LineKind.COMMAND:
            self._add_command(line)
            return

        if kind == LineKind.DIALOGUE:
            self._text.append(self._clip(line.strip()))

    def _parse_choice(self, line: str, kind: LineKind) -> None:
        # We've left the choice block
        if kind != LineKind.CHOICE:
            self._close_choices()
            state = CompilerState.IDLE if self._character is None else CompilerState.IN_DIALOGUE
            self._change_state(state, line, kind)
            return

        inner = strip_indent(line)
        inner_kind = classify_inner(line)

        if inner_kind == LineKind.TAG:
            self._add_choice(self._read_tag(inner))
            return

        if inner_kind == LineKind.COMMAND:
            self._warn("commands are not allowed inside a choice block; row ignored")
            return

        if self._choice_label is not None:
            self._warn(f"choice {self._choice_label!r} has no target and was replaced")
        self._choice_label = self._clip(inner)

    # -- accumulators -------------------------------------------------------

    def _has_body(self) -> bool:
        return bool(self._text or self._commands or self._choices)

    def _has_content(self) -> bool:
        return self._character is not None or self._has_body()

    def _add_command(self, line: str) -> None:
        name, parameter = parse_command(line)
        if not name:
            self._warn("command line without a command name; ignored")
            return

        if len(self._commands) >= self.config.max_commands:
            self._warn(f"more than {self.config.max_commands} commands; @{name} dropped")
            return

        self._commands.append(Command(name=name, parameter=parameter))

    def _add_choice(self, target: str) -> None:
        if self._choice_label is None:
            self._warn(f"choice target [{target}] has no label; ignored")
            return

        label = self._choice_label
        self._choice_label = None

        if len(self._choices) >= self.config.max_choices:
            self._warn(f"more than {self.config.max_choices} choices; {label!r} dropped")
            return

        self._choices.append(Choice(text=label, target_tag=target))

    def _close_choices(self) -> None:
        if self._choice_label is not None:
            self._warn(f"choice {self._choice_label!r} has no target and was dropped")
            self._choice_label = None

    def _finish(self) -> None:
        if self._state == CompilerState.IN_CHOICE:
            self._close_choices()

        if self._has_content():
            self._commit()
        elif self._tag is not None:
            self._warn(f"tag [{self._tag}] at end of script names no node; ignored")

        self._clear_pending()
        self._state = CompilerState.IDLE

    def _commit(self) -> None:
        """Flush the pending fields into a new node."""
        self._close_choices()

        if len(self._nodes) >= self.config.max_nodes:
            self._warn(f"more than {self.config.max_nodes} nodes; block dropped")
            self._clear_pending()
            return

        if self._tag is not None:
            tag = self._tag
        elif not self._nodes:
            tag = START_TAG
        else:
            tag = f"{AUTO_TAG_PREFIX}{self._auto_counter}"
            self._auto_counter += 1

        if tag in self._used_tags:
            unique = self._unique_tag(tag)
            self._warn(f"duplicate tag [{tag}] renamed to [{unique}]")
            tag = unique

        node = DialogueNode(
            tag=tag,
            character_id=self._character or "",
            text=' '.join(self._text),
            commands=tuple(self._commands),
            choices=tuple(self._choices),
        )

        self._nodes.append(node)
        self._used_tags.add(tag)
        self._clear_pending()

    def _unique_tag(self, tag: str) -> str:
        n = 1
        while f"{tag}_{n}" in self._used_tags:
            n += 1
        return f"{tag}_{n}"

    # -- field parsers ------------------------------------------------------

    def _read_tag(self, line: str) -> str:
        tag = parse_tag(line)
        if tag is None:
            self._warn("malformed tag attribute")
            return line.strip()
        return tag

    def _read_character(self, line: str) -> str:
        character = parse_character(line)
        if character is None:
            self._warn("malformed character block")
            return line.strip()
        return character

    def _clip(self, text: str) -> str:
        limit = self.config.max_line_length
        if len(text) > limit:
            self._warn(f"line longer than {limit} characters; truncated")
            return text[:limit]
        return text

    def _warn(self, message: str) -> None:
        warning = CompileWarning(line=self._line_no, message=message, source=self._line)
        self.warnings.append(warning)
        logger.warning(f"Dialogue script {warning}")


def compile_script(text: str, config: Optional[CompilerConfig] = None) -> DialogueGraph:
    """Compile script text with a throwaway compiler."""
    return ScriptCompiler(config).compile(text)


def compile_script_file(
    input_path: str | Path,
    output_path: Optional[str | Path] = None,
    config: Optional[CompilerConfig] = None,
) -> Path:
    """
    Compile a dialogue script to JSON.

    Args:
        input_path: Path to .dialogue file
        output_path: Path to output .json file (default: same name with .json)
        config: Compiler limits

    Returns:
        The path written
    """
    from dialogue.persistence import save_graph

    input_path = Path(input_path)
    if output_path is None:
        output_path = input_path.with_suffix('.json')
    else:
        output_path = Path(output_path)

    graph = ScriptCompiler(config).compile_file(input_path)
    save_graph(graph, output_path)
    logger.info(f"Compiled {input_path} -> {output_path}")
    return output_path
