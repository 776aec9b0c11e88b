import pytest
from pygame import Color
from pygame.math import Vector2, Vector3

from dialogue.variables import Variable, VariableStore, VariableType


@pytest.mark.parametrize("value, kind", [
    (True, VariableType.BOOL),
    (3, VariableType.INT),
    (2.5, VariableType.FLOAT),
    (Vector2(1, 2), VariableType.VECTOR2),
    (Vector3(1, 2, 3), VariableType.VECTOR3),
    (Color(255, 0, 0), VariableType.COLOR),
    ("hello", VariableType.STRING),
])
def test_type_inference(value, kind):
    assert Variable.of(value).type == kind


def test_unsupported_type_rejected():
    with pytest.raises(TypeError):
        Variable.of([1, 2])
    with pytest.raises(TypeError):
        Variable.of(None)


def test_vectors_are_copied():
    position = Vector2(1, 2)
    variable = Variable.of(position)
    position.x = 99
    assert variable.value == Vector2(1, 2)


@pytest.mark.parametrize("text, kind, value", [
    ("5", VariableType.INT, 5),
    ("-12", VariableType.INT, -12),
    ("2.5", VariableType.FLOAT, 2.5),
    ("Hello there", VariableType.STRING, "Hello there"),
    ("nan", VariableType.STRING, "nan"),
    ("  7  ", VariableType.INT, 7),
])
def test_parse(text, kind, value):
    variable = Variable.parse(text)
    assert variable.type == kind
    assert variable.value == value


def test_display_strings():
    assert str(Variable.of(True)) == "True"
    assert str(Variable.of(5)) == "5"
    assert str(Variable.of(5.0)) == "5"
    assert str(Variable.of(2.5)) == "2.5"
    assert str(Variable.of(Vector2(1, 2.5))) == "(1, 2.5)"
    assert str(Variable.of(Color(1, 2, 3, 4))) == "(1, 2, 3, 4)"


def test_json_round_trip_keeps_types():
    for value in (False, 4, 1.5, Vector2(1, 2), Vector3(1, 2, 3), Color(9, 8, 7, 6), "text"):
        variable = Variable.of(value)
        assert Variable.from_json(variable.to_json()) == variable


def test_from_json_rejects_mismatched_payload():
    with pytest.raises(ValueError):
        Variable.from_json({"type": "int", "value": "five"})
    with pytest.raises(ValueError):
        Variable.from_json({"type": "matrix", "value": 1})


def test_store_basics():
    store = VariableStore({"gold": 10})
    assert store.contains("gold")
    assert "gold" in store
    assert len(store) == 1

    store.set("name", "Ash")
    assert store.get("name") == Variable(VariableType.STRING, "Ash")
    assert sorted(store) == ["gold", "name"]

    assert store.remove("gold")
    assert not store.remove("gold")
    assert "gold" not in store

    store.clear()
    assert len(store) == 0


def test_typed_getters_fall_back_to_default():
    store = VariableStore({"flag": True, "gold": 10, "speed": 1.5, "name": "Ash"})

    assert store.get_bool("flag")
    assert store.get_bool("gold") is False
    assert store.get_int("gold") == 10
    assert store.get_int("name", -1) == -1
    assert store.get_text("name") == "Ash"
    assert store.get_text("missing", "?") == "?"
    assert store.get_float("speed") == 1.5
    assert store.get_float("gold") == 10.0
    assert store.get_float("name") == 0.0


def test_vector_and_color_getters():
    store = VariableStore({"pos": Vector2(3, 4), "tint": Color(1, 2, 3)})

    assert store.get_vec2("pos") == Vector2(3, 4)
    assert store.get_vec2("missing") == Vector2(0, 0)
    assert store.get_vec3("pos", Vector3(1, 1, 1)) == Vector3(1, 1, 1)
    assert store.get_color("tint") == Color(1, 2, 3)
    assert store.get_color("missing") == Color(0, 0, 0, 0)

    # Returned objects are copies
    store.get_vec2("pos").x = 100
    assert store.get_vec2("pos") == Vector2(3, 4)


def test_display():
    store = VariableStore({"gold": 10})
    assert store.display("gold") == "10"
    assert store.display("unknown") == "unknown"


def test_store_dict_round_trip():
    store = VariableStore({"gold": 10, "pos": Vector2(1, 2), "met": True})
    restored = VariableStore.from_dict(store.to_dict())
    assert restored.items() == store.items()


def test_variables_are_hashable():
    assert hash(Variable.of(Vector2(1, 2))) == hash(Variable.of(Vector2(1, 2)))
    assert hash(Variable.of(Vector3(1, 2, 3))) == hash(Variable.of(Vector3(1, 2, 3)))
    assert hash(Variable.of(Color(1, 2, 3))) == hash(Variable.of(Color(1, 2, 3)))

    values = {Variable.of(Vector2(1, 2)), Variable.of(Vector2(1, 2)), Variable.of(5), Variable.of("a")}
    assert len(values) == 3
