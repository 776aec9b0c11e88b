"""
Core engine module.

Exports:
- Component: Immutable data record base
- EventBus, Event, EngineEvent: Event system
"""

from engine.core.component import Component
from engine.core.events import EventBus, Event, EngineEvent, EventHandler

__all__ = [
    # Data
    "Component",
    # Events
    "EventBus",
    "Event",
    "EngineEvent",
    "EventHandler",
]
