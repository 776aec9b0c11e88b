"""
Component base class for immutable data records.

Components are pure data containers with NO logic that mutates them.
Compiled dialogue data (nodes, choices, commands) is built from these so
one compiled graph can be shared by any number of playback sessions.

Usage:
    class Choice(Component):
        text: str
        target_tag: str
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict


class Component(BaseModel):
    """
    Base class for all data records.

    Components are frozen Pydantic models, giving:
    - Automatic validation
    - JSON-friendly dumping
    - Hashable, immutable instances

    IMPORTANT: Do NOT add methods that modify state.
    Logic belongs in the compiler and playback systems.
    """

    model_config = ConfigDict(
        frozen=True,
        extra='forbid',
    )

    def to_dict(self) -> dict[str, Any]:
        """Dump to plain Python data, preserving field order."""
        return self.model_dump(mode='python')

    def clone(self, **changes: Any) -> Component:
        """Create a copy of this component with some fields replaced."""
        return self.model_copy(update=changes, deep=True)
