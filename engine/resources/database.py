"""
Script Database.

Handles loading of dialogue data from a data directory:

```
data/
  scripts/    *.dialogue  (source scripts, compiled on load)
  compiled/   *.json      (pre-compiled graphs, schema-validated)
```

A compiled graph wins over a script with the same id.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from dialogue.compiler import CompilerConfig, ScriptCompiler
from dialogue.errors import GraphFormatError
from dialogue.graph import DialogueGraph
from dialogue.persistence import load_graph, save_graph
from engine.core.events import EngineEvent

if TYPE_CHECKING:
    from engine.core.events import EventBus


class ScriptDatabase:
    """
    Central storage for dialogue graphs, keyed by script id (file stem).
    """

    SCRIPT_SUFFIX = ".dialogue"

    def __init__(
        self,
        data_path: Path | str,
        config: Optional[CompilerConfig] = None,
        event_bus: Optional[EventBus] = None,
    ):
        self._data_path = Path(data_path)
        self._compiler = ScriptCompiler(config)
        self.event_bus = event_bus

        # Data stores
        self.graphs: dict[str, DialogueGraph] = {}
        self.warnings: dict[str, list] = {}

        self.logger = logging.getLogger(__name__)

    @property
    def scripts_dir(self) -> Path:
        return self._data_path / "scripts"

    @property
    def compiled_dir(self) -> Path:
        return self._data_path / "compiled"

    def load_all(self) -> None:
        """Compile every script, then load every pre-compiled graph."""
        self.graphs.clear()
        self.warnings.clear()

        self._compile_scripts()
        self._load_compiled()

        self.logger.info(f"Loaded {len(self.graphs)} dialogue graphs.")
        if self.event_bus:
            self.event_bus.publish(EngineEvent.RESOURCES_LOADED, count=len(self.graphs))

    def _compile_scripts(self) -> None:
        """Compile all source scripts."""
        if not self.scripts_dir.exists():
            self.logger.warning(f"Script directory not found: {self.scripts_dir}")
            return

        for file_path in sorted(self.scripts_dir.glob(f"*{self.SCRIPT_SUFFIX}")):
            try:
                graph = self._compiler.compile_file(file_path)
            except (OSError, UnicodeDecodeError) as e:
                self._load_failed(file_path, e)
                continue

            script_id = file_path.stem
            self.graphs[script_id] = graph
            if self._compiler.warnings:
                self.warnings[script_id] = list(self._compiler.warnings)

            if self.event_bus:
                self.event_bus.publish(
                    EngineEvent.SCRIPT_COMPILED,
                    script_id=script_id,
                    nodes=len(graph),
                    warnings=len(self._compiler.warnings),
                )

    def _load_compiled(self) -> None:
        """Load all pre-compiled graphs."""
        if not self.compiled_dir.exists():
            self.logger.debug(f"Compiled graph directory not found: {self.compiled_dir}")
            return

        for file_path in sorted(self.compiled_dir.glob("*.json")):
            try:
                graph = load_graph(file_path)
            except (OSError, GraphFormatError) as e:
                self._load_failed(file_path, e)
                continue

            if file_path.stem in self.graphs:
                self.logger.debug(f"Compiled graph {file_path.name} overrides its script")
            self.graphs[file_path.stem] = graph

    def _load_failed(self, file_path: Path, error: Exception) -> None:
        self.logger.error(f"Failed to load {file_path}: {error}")
        if self.event_bus:
            self.event_bus.publish(
                EngineEvent.SCRIPT_LOAD_FAILED,
                path=str(file_path),
                error=str(error),
            )

    def get(self, script_id: str) -> DialogueGraph | None:
        return self.graphs.get(script_id)

    def compile_all(self, output_dir: Path | str | None = None) -> list[Path]:
        """
        Write every loaded graph as JSON.

        Args:
            output_dir: Destination (default: the compiled/ directory)

        Returns:
            The files written
        """
        output_dir = Path(output_dir) if output_dir is not None else self.compiled_dir
        output_dir.mkdir(parents=True, exist_ok=True)

        written = []
        for script_id, graph in sorted(self.graphs.items()):
            path = output_dir / f"{script_id}.json"
            save_graph(graph, path)
            written.append(path)

        self.logger.info(f"Wrote {len(written)} compiled graphs to {output_dir}")
        return written
