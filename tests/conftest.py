import os
import sys
import pytest

# Ensure engine modules can be imported
sys.path.append(os.getcwd())


class RecordingHandler:
    """Playback handler that records every callback in order."""

    def __init__(self):
        self.calls = []

    def on_character_changed(self, character_id):
        self.calls.append(("character", character_id))

    def on_dialogue_changed(self, text):
        self.calls.append(("dialogue", text))

    def on_choices_available(self, choices):
        self.calls.append(("choices", [(c.text, c.target_tag) for c in choices]))

    def on_command_request(self, playback, command):
        self.calls.append(("command", command.name, command.parameter))

    def on_playback_completed(self, playback):
        self.calls.append(("completed",))

    def on_print(self, text):
        self.calls.append(("print", text))

    def of(self, kind):
        return [call for call in self.calls if call[0] == kind]

    def texts(self):
        return [call[1] for call in self.calls if call[0] == "dialogue"]

    def clear(self):
        self.calls.clear()


@pytest.fixture
def event_bus():
    """Fresh EventBus for each test."""
    from engine.core.events import EventBus
    return EventBus()


@pytest.fixture
def recorder():
    """Playback handler that records callbacks."""
    return RecordingHandler()


@pytest.fixture
def compile_text():
    """Compile a script with default settings."""
    from dialogue.compiler import compile_script
    return compile_script


@pytest.fixture
def tavern_script():
    """A small script using every construct."""
    return (
        "# The tavern scene\n"
        "Barkeep:\n"
        "Welcome, $player.\n"
        "What'll it be?\n"
        "\tAle, please.\n"
        "\t[ale]\n"
        "\tJust looking.\n"
        "\t[leave]\n"
        "\n"
        "[ale]\n"
        "Barkeep:\n"
        "That's $price coins.\n"
        "@set price 5\n"
        "@flag bought_ale\n"
        "\n"
        "[leave]\n"
        "Barkeep:\n"
        "Suit yourself.\n"
        "@close\n"
    )
