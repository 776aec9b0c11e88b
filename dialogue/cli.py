"""
Command line tools for dialogue scripts.

    python -m dialogue compile village.dialogue -o village.json
    python -m dialogue check village.dialogue
    python -m dialogue play village.dialogue
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence, TextIO

from dialogue.compiler import CompilerConfig, ScriptCompiler, compile_script_file
from dialogue.errors import DialogueError
from dialogue.graph import DialogueGraph
from dialogue.nodes import Choice, Command
from dialogue.persistence import load_graph
from dialogue.playback import BasePlaybackHandler, DialoguePlayback

logger = logging.getLogger(__name__)


class TerminalHandler(BasePlaybackHandler):
    """Prints playback output to a text stream."""

    def __init__(self, out: TextIO):
        self.out = out
        self.character = ""
        self.choices: tuple[Choice, ...] = ()
        self.completed = False

    def on_character_changed(self, character_id: str) -> None:
        self.character = character_id
        self.choices = ()

    def on_dialogue_changed(self, text: str) -> None:
        if self.character:
            self.out.write(f"{self.character}: {text}\n")
        else:
            self.out.write(f"{text}\n")

    def on_choices_available(self, choices) -> None:
        self.choices = tuple(choices)
        for i, choice in enumerate(self.choices, start=1):
            self.out.write(f"  {i}) {choice.text}\n")

    def on_command_request(self, playback: DialoguePlayback, command: Command) -> None:
        self.out.write(f"  <{command}>\n")

    def on_print(self, text: str) -> None:
        self.out.write(f"  [print] {text}\n")

    def on_playback_completed(self, playback: DialoguePlayback) -> None:
        self.completed = True
        self.out.write("-- end --\n")


def _config_from_args(args: argparse.Namespace) -> CompilerConfig:
    return CompilerConfig(
        min_indent=args.min_indent,
        max_commands=args.max_commands,
        max_choices=args.max_choices,
    )


def _load(path: Path, config: CompilerConfig) -> DialogueGraph:
    if path.suffix == ".json":
        return load_graph(path)
    return ScriptCompiler(config).compile_file(path)


def cmd_compile(args: argparse.Namespace) -> int:
    compile_script_file(args.script, args.output, _config_from_args(args))
    return 0


def cmd_check(args: argparse.Namespace) -> int:
    compiler = ScriptCompiler(_config_from_args(args))
    graph = compiler.compile_file(args.script)

    problems = 0
    for warning in compiler.warnings:
        print(f"{args.script}:{warning.line}: warning: {warning.message}")
        problems += 1

    for node_tag, target in graph.unresolved_targets():
        print(f"{args.script}: error: [{node_tag}] points at missing tag [{target}]")
        problems += 1

    print(f"{len(graph)} nodes, {problems} problems")
    return 1 if problems else 0


def cmd_play(args: argparse.Namespace, stdin: TextIO = sys.stdin, stdout: TextIO = sys.stdout) -> int:
    graph = _load(Path(args.script), _config_from_args(args))
    if not graph:
        print("Script has no dialogue.", file=stdout)
        return 1

    handler = TerminalHandler(stdout)
    playback = DialoguePlayback(graph, handler=handler)
    playback.start()

    while not handler.completed:
        node = playback.current_node
        prompt = "> " if node is not None and node.has_choices else "(enter) "
        stdout.write(prompt)
        stdout.flush()

        line = stdin.readline()
        if not line or line.strip().lower() in ("q", "quit"):
            break

        answer = line.strip()
        if node is not None and node.has_choices:
            if not answer.isdigit() or not 1 <= int(answer) <= len(node.choices):
                stdout.write(f"Pick 1-{len(node.choices)}.\n")
                continue
            playback.select_choice(int(answer) - 1)
        else:
            playback.next()

    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="dialogue", description="Dialogue script tools")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    parser.add_argument("-q", "--quiet", action="store_true", help="only log warnings")
    parser.add_argument("--min-indent", type=int, default=2, help="spaces that mark a choice row")
    parser.add_argument("--max-commands", type=int, default=5)
    parser.add_argument("--max-choices", type=int, default=8)

    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("compile", help="compile a script to JSON")
    p.add_argument("script", type=Path)
    p.add_argument("-o", "--output", type=Path, default=None)
    p.set_defaults(func=cmd_compile)

    p = sub.add_parser("check", help="report authoring problems")
    p.add_argument("script", type=Path)
    p.set_defaults(func=cmd_check)

    p = sub.add_parser("play", help="play a script in the terminal")
    p.add_argument("script", type=Path, help=".dialogue script or compiled .json")
    p.set_defaults(func=cmd_play)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    level = logging.INFO
    if args.verbose:
        level = logging.DEBUG
    elif args.quiet:
        level = logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    try:
        return args.func(args)
    except (OSError, DialogueError) as e:
        logger.error(str(e))
        return 2


if __name__ == "__main__":
    sys.exit(main())
