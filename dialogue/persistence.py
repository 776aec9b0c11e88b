"""
Dialogue persistence - JSON files for compiled graphs and session state.

A compiled graph is stored as:

```
{
  "version": 1,
  "nodes": [
    {"tag": "start", "character_id": "Stranger", "text": "Hello there.",
     "commands": [{"name": "set", "parameter": "met_stranger 1"}],
     "choices": [{"text": "Hi!", "target_tag": "greet"}]}
  ]
}
```

A playback session only persists its variables. The cursor is not
saved: a restored session starts again at the first node.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import jsonschema

from dialogue.errors import GraphFormatError
from dialogue.graph import DialogueGraph
from dialogue.nodes import Choice, Command, DialogueNode
from dialogue.playback import DialoguePlayback
from dialogue.variables import VariableStore, VariableType

logger = logging.getLogger(__name__)

FORMAT_VERSION = 1

GRAPH_SCHEMA: dict[str, Any] = {
    "type": "object",
    "required": ["nodes"],
    "properties": {
        "version": {"type": "integer"},
        "nodes": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["tag", "character_id", "text", "commands", "choices"],
                "additionalProperties": False,
                "properties": {
                    "tag": {"type": "string", "minLength": 1},
                    "character_id": {"type": "string"},
                    "text": {"type": "string"},
                    "commands": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "required": ["name"],
                            "additionalProperties": False,
                            "properties": {
                                "name": {"type": "string", "minLength": 1},
                                "parameter": {"type": ["string", "null"]},
                            },
                        },
                    },
                    "choices": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "required": ["text", "target_tag"],
                            "additionalProperties": False,
                            "properties": {
                                "text": {"type": "string"},
                                "target_tag": {"type": "string"},
                            },
                        },
                    },
                },
            },
        },
    },
}

SESSION_SCHEMA: dict[str, Any] = {
    "type": "object",
    "required": ["variables"],
    "properties": {
        "version": {"type": "integer"},
        "variables": {
            "type": "object",
            "additionalProperties": {
                "type": "object",
                "required": ["type", "value"],
                "properties": {
                    "type": {"enum": [kind.value for kind in VariableType]},
                },
            },
        },
    },
}


def _validate(data: Any, schema: dict[str, Any], what: str) -> None:
    try:
        jsonschema.validate(instance=data, schema=schema)
    except jsonschema.ValidationError as e:
        raise GraphFormatError(f"Invalid {what}: {e.message}") from e


# -- graphs -------------------------------------------------------------------

def node_to_dict(node: DialogueNode) -> dict[str, Any]:
    """Serialise one node (tag, character, text, commands, choices)."""
    return {
        'tag': node.tag,
        'character_id': node.character_id,
        'text': node.text,
        'commands': [
            {'name': command.name, 'parameter': command.parameter}
            for command in node.commands
        ],
        'choices': [
            {'text': choice.text, 'target_tag': choice.target_tag}
            for choice in node.choices
        ],
    }


def node_from_dict(data: dict[str, Any]) -> DialogueNode:
    return DialogueNode(
        tag=data['tag'],
        character_id=data.get('character_id', ''),
        text=data.get('text', ''),
        commands=tuple(
            Command(name=c['name'], parameter=c.get('parameter'))
            for c in data.get('commands', [])
        ),
        choices=tuple(
            Choice(text=c['text'], target_tag=c['target_tag'])
            for c in data.get('choices', [])
        ),
    )


def graph_to_dict(graph: DialogueGraph) -> dict[str, Any]:
    """Convert a graph to JSON-compatible data."""
    return {
        'version': FORMAT_VERSION,
        'nodes': [node_to_dict(node) for node in graph],
    }


def graph_from_dict(data: Any) -> DialogueGraph:
    """
    Rebuild a graph from graph_to_dict() output.

    Raises:
        GraphFormatError: If the data does not match the graph layout
    """
    _validate(data, GRAPH_SCHEMA, "dialogue graph")
    try:
        return DialogueGraph(node_from_dict(node) for node in data['nodes'])
    except ValueError as e:
        raise GraphFormatError(f"Invalid dialogue graph: {e}") from e


def save_graph(graph: DialogueGraph, path: str | Path) -> None:
    """Save a compiled graph as JSON."""
    path = Path(path)
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(graph_to_dict(graph), f, indent=2, ensure_ascii=False)


def load_graph(path: str | Path) -> DialogueGraph:
    """
    Load a compiled graph.

    Raises:
        FileNotFoundError: If the file does not exist
        GraphFormatError: If the file is not a valid graph
    """
    path = Path(path)
    with open(path, 'r', encoding='utf-8') as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise GraphFormatError(f"{path} is not valid JSON: {e}") from e

    graph = graph_from_dict(data)
    logger.debug(f"Loaded dialogue graph {path} ({len(graph)} nodes)")
    return graph


# -- sessions -----------------------------------------------------------------

def session_to_dict(playback: DialoguePlayback) -> dict[str, Any]:
    """Serialise a playback session (variables only)."""
    return {
        'version': FORMAT_VERSION,
        'variables': playback.variables.to_dict(),
    }


def restore_session(playback: DialoguePlayback, data: Any) -> None:
    """
    Restore a session's variables and rewind it to the first node.

    Raises:
        GraphFormatError: If the data does not match the session layout
    """
    _validate(data, SESSION_SCHEMA, "dialogue session")
    try:
        variables = VariableStore.from_dict(data['variables'])
    except (TypeError, ValueError) as e:
        raise GraphFormatError(f"Invalid dialogue session: {e}") from e

    playback.variables = variables
    playback.reset()


def save_session(playback: DialoguePlayback, path: str | Path) -> None:
    """Save a playback session's variables as JSON."""
    path = Path(path)
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(session_to_dict(playback), f, indent=2, ensure_ascii=False)


def load_session(playback: DialoguePlayback, path: str | Path) -> None:
    """Restore a playback session's variables from a JSON file."""
    path = Path(path)
    with open(path, 'r', encoding='utf-8') as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise GraphFormatError(f"{path} is not valid JSON: {e}") from e

    restore_session(playback, data)
