"""
Dialogue module - branching dialogue scripts for NPCs and events.

Provides:
- Script compilation to an immutable dialogue graph
- Playback with choices, commands and variables
- Variable substitution in dialogue text
- JSON persistence of graphs and session variables
"""

from dialogue.classifier import LineKind, classify
from dialogue.compiler import CompilerConfig, CompileWarning, ScriptCompiler, compile_script, compile_script_file
from dialogue.errors import (
    DialogueError,
    DuplicateTagError,
    EmptyGraphError,
    GraphFormatError,
    InvalidChoiceError,
    InvalidJumpError,
    NoGraphError,
)
from dialogue.graph import DialogueGraph
from dialogue.nodes import Choice, Command, DialogueNode
from dialogue.playback import BasePlaybackHandler, DialogueEvent, DialoguePlayback, PlaybackHandler
from dialogue.resolver import resolve_variables
from dialogue.variables import Variable, VariableStore, VariableType

__all__ = [
    # Compiling
    "LineKind",
    "classify",
    "CompilerConfig",
    "CompileWarning",
    "ScriptCompiler",
    "compile_script",
    "compile_script_file",
    # Graph
    "DialogueGraph",
    "DialogueNode",
    "Choice",
    "Command",
    # Playback
    "DialoguePlayback",
    "PlaybackHandler",
    "BasePlaybackHandler",
    "DialogueEvent",
    "resolve_variables",
    "Variable",
    "VariableStore",
    "VariableType",
    # Errors
    "DialogueError",
    "DuplicateTagError",
    "EmptyGraphError",
    "GraphFormatError",
    "InvalidChoiceError",
    "InvalidJumpError",
    "NoGraphError",
]
