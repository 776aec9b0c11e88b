"""
Script variables - a closed set of value types for playback sessions.

Variables are what ``@set``/``@flag`` write, what ``$name`` references
display, and what ``@jumpif``/``@closeif`` test for. Only the types in
VariableType can be stored; anything else is rejected up front.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterator, Optional

from pygame import Color
from pygame.math import Vector2, Vector3


class VariableType(Enum):
    """Type tag of a stored variable."""
    BOOL = "bool"
    INT = "int"
    FLOAT = "float"
    VECTOR2 = "vec2"
    VECTOR3 = "vec3"
    COLOR = "color"
    STRING = "string"


def _format_number(value: float) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


@dataclass(frozen=True)
class Variable:
    """
    A tagged variable value.

    Attributes:
        type: Which member of the union this is
        value: The payload (bool, int, float, Vector2, Vector3, Color or str)
    """
    type: VariableType
    value: Any

    def __hash__(self) -> int:
        # Vector and Color payloads are mutable pygame objects
        if self.type in (VariableType.VECTOR2, VariableType.VECTOR3, VariableType.COLOR):
            return hash((self.type, tuple(self.value)))
        return hash((self.type, self.value))

    @classmethod
    def of(cls, value: Any) -> Variable:
        """
        Wrap a Python value, inferring its type tag.

        Raises:
            TypeError: If the value is not one of the supported types
        """
        if isinstance(value, Variable):
            return value
        # bool before int: bool is an int subclass
        if isinstance(value, bool):
            return cls(VariableType.BOOL, value)
        if isinstance(value, int):
            return cls(VariableType.INT, value)
        if isinstance(value, float):
            return cls(VariableType.FLOAT, value)
        if isinstance(value, Vector2):
            return cls(VariableType.VECTOR2, Vector2(value))
        if isinstance(value, Vector3):
            return cls(VariableType.VECTOR3, Vector3(value))
        if isinstance(value, Color):
            return cls(VariableType.COLOR, Color(value))
        if isinstance(value, str):
            return cls(VariableType.STRING, value)
        raise TypeError(f"Unsupported variable type: {type(value).__name__}")

    @classmethod
    def parse(cls, text: str) -> Variable:
        """
        Read a ``@set`` value: a number if it looks like one, else a string.
        """
        text = text.strip()
        try:
            return cls(VariableType.INT, int(text))
        except ValueError:
            pass
        try:
            number = float(text)
        except ValueError:
            return cls(VariableType.STRING, text)
        # "nan"/"inf" are words in a dialogue script, not numbers
        if number != number or number in (float('inf'), float('-inf')):
            return cls(VariableType.STRING, text)
        return cls(VariableType.FLOAT, number)

    def __str__(self) -> str:
        if self.type == VariableType.FLOAT:
            return _format_number(self.value)
        if self.type in (VariableType.VECTOR2, VariableType.VECTOR3):
            return "(" + ", ".join(_format_number(float(c)) for c in self.value) + ")"
        if self.type == VariableType.COLOR:
            r, g, b, a = self.value
            return f"({r}, {g}, {b}, {a})"
        return str(self.value)

    def to_json(self) -> dict[str, Any]:
        """Serialise to JSON-compatible data."""
        if self.type in (VariableType.VECTOR2, VariableType.VECTOR3):
            value = [float(c) for c in self.value]
        elif self.type == VariableType.COLOR:
            value = list(tuple(self.value))
        else:
            value = self.value
        return {"type": self.type.value, "value": value}

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> Variable:
        """
        Rebuild a variable from to_json() output.

        Raises:
            ValueError: On an unknown type tag or a payload of the wrong shape
        """
        kind = VariableType(data["type"])
        value = data["value"]

        if kind == VariableType.VECTOR2:
            return cls(kind, Vector2(*value))
        if kind == VariableType.VECTOR3:
            return cls(kind, Vector3(*value))
        if kind == VariableType.COLOR:
            return cls(kind, Color(*value))
        if kind == VariableType.FLOAT and isinstance(value, int) and not isinstance(value, bool):
            value = float(value)

        variable = cls.of(value)
        if variable.type != kind:
            raise ValueError(f"Variable payload {value!r} is not a {kind.value}")
        return variable


class VariableStore:
    """
    Name -> Variable mapping owned by one playback session.

    Typed getters return their default when the name is missing or holds
    a different type; get_float() also accepts integers.
    """

    def __init__(self, values: Optional[dict[str, Any]] = None):
        self._values: dict[str, Variable] = {}
        if values:
            for name, value in values.items():
                self.set(name, value)

    def __contains__(self, name: object) -> bool:
        return name in self._values

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def contains(self, name: str) -> bool:
        return name in self._values

    def get(self, name: str) -> Optional[Variable]:
        return self._values.get(name)

    def set(self, name: str, value: Any) -> Variable:
        """Store a value under a name, replacing any previous one."""
        variable = Variable.of(value)
        self._values[name] = variable
        return variable

    def remove(self, name: str) -> bool:
        """Delete a variable. Returns False if it did not exist."""
        return self._values.pop(name, None) is not None

    def clear(self) -> None:
        self._values.clear()

    def items(self) -> list[tuple[str, Variable]]:
        return list(self._values.items())

    def _typed(self, name: str, kind: VariableType) -> Optional[Any]:
        variable = self._values.get(name)
        if variable is None or variable.type != kind:
            return None
        return variable.value

    def get_bool(self, name: str, default: bool = False) -> bool:
        value = self._typed(name, VariableType.BOOL)
        return default if value is None else value

    def get_int(self, name: str, default: int = 0) -> int:
        value = self._typed(name, VariableType.INT)
        return default if value is None else value

    def get_float(self, name: str, default: float = 0.0) -> float:
        variable = self._values.get(name)
        if variable is None:
            return default
        if variable.type in (VariableType.FLOAT, VariableType.INT):
            return float(variable.value)
        return default

    def get_vec2(self, name: str, default: Optional[Vector2] = None) -> Vector2:
        value = self._typed(name, VariableType.VECTOR2)
        if value is None:
            return Vector2(default) if default is not None else Vector2()
        return Vector2(value)

    def get_vec3(self, name: str, default: Optional[Vector3] = None) -> Vector3:
        value = self._typed(name, VariableType.VECTOR3)
        if value is None:
            return Vector3(default) if default is not None else Vector3()
        return Vector3(value)

    def get_color(self, name: str, default: Optional[Color] = None) -> Color:
        value = self._typed(name, VariableType.COLOR)
        if value is None:
            return Color(default) if default is not None else Color(0, 0, 0, 0)
        return Color(value)

    def get_text(self, name: str, default: str = "") -> str:
        value = self._typed(name, VariableType.STRING)
        return default if value is None else value

    def display(self, name: str) -> str:
        """Display string for ``$name``; unknown names come back unchanged."""
        variable = self._values.get(name)
        if variable is None:
            return name
        return str(variable)

    def to_dict(self) -> dict[str, dict[str, Any]]:
        return {name: variable.to_json() for name, variable in self._values.items()}

    @classmethod
    def from_dict(cls, data: dict[str, dict[str, Any]]) -> VariableStore:
        store = cls()
        for name, entry in data.items():
            store._values[name] = Variable.from_json(entry)
        return store
