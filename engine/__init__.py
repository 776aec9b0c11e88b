"""
Dialogue Engine

Host-agnostic infrastructure shared by the dialogue system:
immutable data records, the typed event bus, and resource loading.

Quick Start:
    from engine.core import EventBus
    from engine.resources import ScriptDatabase

    bus = EventBus()
    db = ScriptDatabase("game/data", event_bus=bus)
    db.load_all()
    graph = db.get("village_elder")
"""

__version__ = "0.1.0"
__author__ = "Developer"

# Re-export core components for convenience
from engine.core import (
    Component,
    EventBus,
    Event,
    EngineEvent,
)

__all__ = [
    # Data
    "Component",
    # Events
    "EventBus",
    "Event",
    "EngineEvent",
]
