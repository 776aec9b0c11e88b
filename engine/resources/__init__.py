"""
Resource loading.

Exports:
- ScriptDatabase: Loads and caches dialogue graphs from a data directory
"""

from engine.resources.database import ScriptDatabase

__all__ = ["ScriptDatabase"]
