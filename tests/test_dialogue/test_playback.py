import logging

import pytest
from dialogue.errors import EmptyGraphError, InvalidChoiceError, InvalidJumpError, NoGraphError
from dialogue.graph import DialogueGraph
from dialogue.playback import MAX_REDIRECTS, DialogueEvent, DialoguePlayback


@pytest.fixture
def play(compile_text, recorder):
    """Compile a script and bind it to a recording playback."""
    def _play(script, **kwargs):
        return DialoguePlayback(compile_text(script), handler=recorder, **kwargs)
    return _play


def test_start_presents_first_node(play, recorder):
    playback = play("Ann:\nHello.\nBob:\nHi.\n")
    playback.start()

    assert recorder.calls == [("character", "Ann"), ("dialogue", "Hello.")]
    assert playback.current_index == 0
    assert playback.is_active


def test_next_walks_nodes_then_completes(play, recorder):
    playback = play("Ann:\nHello.\nBob:\nHi.\n")
    playback.start()
    playback.next()
    playback.next()

    assert recorder.texts() == ["Hello.", "Hi."]
    assert recorder.of("completed") == [("completed",)]
    assert not playback.is_active
    assert playback.current_index == 0


def test_next_when_idle_enters_first_node(play, recorder):
    playback = play("Ann:\nHello.\n")
    playback.next()
    assert recorder.texts() == ["Hello."]


def test_next_with_wrap_restarts(play, recorder):
    playback = play("Ann:\nOne.\nBob:\nTwo.\n")
    playback.start()
    playback.next()
    playback.next(wrap=True)

    assert recorder.texts() == ["One.", "Two.", "One."]
    assert recorder.of("completed") == []


def test_set_command_feeds_later_text(play, recorder):
    playback = play("Ann:\nSetting up.\n@set score 5\nAnn:\nScore: $score\n")
    playback.start()
    playback.next()

    assert recorder.texts()[-1] == "Score: 5"
    assert playback.get_int("score") == 5


def test_set_command_with_text_value(play):
    playback = play("Ann:\nHi.\n@set greeting   Hello there\n")
    playback.start()
    playback.next()
    assert playback.get_text("greeting") == "Hello there"


def test_close_completes_without_next_node(play, recorder):
    playback = play("Ann:\nBye.\n@close\nAnn:\nNever shown.\n")
    playback.start()
    playback.next()

    assert recorder.texts() == ["Bye."]
    assert recorder.of("completed") == [("completed",)]
    assert not playback.is_active


def test_jump_to_missing_tag_is_silent(play, recorder):
    playback = play("Ann:\nOne.\nBob:\nTwo.\n")
    playback.start()
    playback.next()
    recorder.clear()

    playback.jump("missing_tag")

    assert recorder.calls == []
    assert playback.current_index == 1


def test_jump_by_tag_and_index(play, recorder):
    playback = play("Ann:\nOne.\n[two]\nBob:\nTwo.\n")
    playback.jump("two")
    playback.jump(0)
    assert recorder.texts() == ["Two.", "One."]


def test_jump_out_of_range_raises(play):
    playback = play("Ann:\nOne.\n")
    with pytest.raises(InvalidJumpError):
        playback.jump(5)
    with pytest.raises(InvalidJumpError):
        playback.jump(-1)


def test_choices_block_next(play, recorder, tavern_script):
    playback = play(tavern_script)
    playback.set_variable("player", "Ash")
    playback.start()

    assert recorder.texts() == ["Welcome, Ash. What'll it be?"]
    assert recorder.of("choices") == [
        ("choices", [("Ale, please.", "ale"), ("Just looking.", "leave")]),
    ]

    recorder.clear()
    playback.next()
    assert recorder.calls == []
    assert playback.current_index == 0


def test_select_choice(play, recorder, tavern_script):
    playback = play(tavern_script)
    playback.start()
    playback.select_choice(1)

    assert recorder.texts()[-1] == "Suit yourself."
    playback.next()
    assert recorder.of("completed") == [("completed",)]


def test_tavern_walkthrough(play, recorder, tavern_script):
    playback = play(tavern_script)
    playback.start()
    playback.select_choice(0)
    playback.next()

    assert recorder.texts() == [
        "Welcome, player. What'll it be?",
        "That's price coins.",
        "Suit yourself.",
    ]
    assert playback.get_int("price") == 5
    assert playback.get_bool("bought_ale")


def test_invalid_choice_index(play, tavern_script):
    playback = play(tavern_script)
    playback.start()
    with pytest.raises(InvalidChoiceError):
        playback.select_choice(2)


def test_select_choice_without_choices_is_ignored(play, recorder, caplog):
    playback = play("Ann:\nOne.\n")
    playback.start()
    recorder.clear()

    with caplog.at_level(logging.WARNING):
        playback.select_choice(0)

    assert recorder.calls == []
    assert "no choice is open" in caplog.text


def test_choice_labels_are_resolved(play, recorder):
    playback = play("Ann:\nPick.\n\tPay $price\n\t[pay]\n[pay]\nAnn:\nThanks.\n")
    playback.set_variable("price", 3)
    playback.start()
    assert recorder.of("choices") == [("choices", [("Pay 3", "pay")])]


def test_choice_node_runs_commands_before_showing(play, recorder):
    playback = play(
        "Ann:\nPick.\n@jump elsewhere\n\tA\n\t[start]\n"
        "[elsewhere]\nBob:\nElsewhere.\n"
    )
    playback.start()

    assert recorder.texts() == ["Elsewhere."]
    assert recorder.of("choices") == []


def test_jump_loop_between_choice_nodes_stops(play, recorder):
    playback = play(
        "[a]\nAnn:\nA\n@jump b\n\tX\n\t[a]\n"
        "[b]\nBob:\nB\n@jump a\n\tY\n\t[b]\n"
    )
    playback.start()

    assert MAX_REDIRECTS > 0
    assert recorder.texts() == []
    assert recorder.of("completed") == [("completed",)]
    assert not playback.is_active


def test_jump_command(play, recorder):
    playback = play("Ann:\nOne.\n@jump end\nBob:\nSkipped.\n[end]\nCid:\nEnd.\n")
    playback.start()
    playback.next()
    assert recorder.texts() == ["One.", "End."]


def test_jump_command_to_missing_tag_continues(play, recorder):
    playback = play("Ann:\nOne.\n@jump nowhere\nBob:\nTwo.\n")
    playback.start()
    playback.next()
    assert recorder.texts() == ["One.", "Two."]


@pytest.mark.parametrize("has_key, expected", [(True, "Key!"), (False, "No key.")])
def test_jumpif(play, recorder, has_key, expected):
    playback = play(
        "Ann:\nCheck.\n@jumpif secret has_key\n"
        "Ann:\nNo key.\n"
        "[secret]\nAnn:\nKey!\n"
    )
    if has_key:
        playback.set_variable("has_key", True)
    playback.start()
    playback.next()
    assert recorder.texts()[-1] == expected


def test_closeif(play, recorder):
    script = "Ann:\nMaybe.\n@closeif done\nAnn:\nStill here.\n"

    playback = play(script)
    playback.start()
    playback.next()
    assert recorder.texts()[-1] == "Still here."

    recorder.clear()
    playback.reset()
    playback.set_variable("done", True)
    playback.start()
    playback.next()
    assert recorder.texts() == ["Maybe."]
    assert recorder.of("completed") == [("completed",)]


def test_flag_and_unset(play):
    playback = play("Ann:\nOne.\n@flag met\nAnn:\nTwo.\n@unset met\nAnn:\nThree.\n")
    playback.start()
    playback.next()
    assert playback.has_variable("met")
    playback.next()
    assert not playback.has_variable("met")


def test_print_command(play, recorder, caplog):
    playback = play("Ann:\nOne.\n@print gold is $gold\n")
    playback.set_variable("gold", 10)
    playback.start()

    with caplog.at_level(logging.INFO):
        playback.next()

    assert recorder.of("print") == [("print", "gold is 10")]
    assert "gold is 10" in caplog.text


def test_custom_command_is_forwarded(play, recorder):
    playback = play("Ann:\nWhoa.\n@shake 3\n@flash\n")
    playback.start()
    playback.next()
    assert recorder.of("command") == [("command", "shake", "3"), ("command", "flash", None)]


def test_invalid_builtin_usage_is_logged(play, recorder, caplog):
    playback = play("Ann:\nOne.\n@jumpif only_tag\nAnn:\nTwo.\n")
    playback.start()

    with caplog.at_level(logging.ERROR):
        playback.next()

    assert "Usage: @jumpif <tag> <flag>" in caplog.text
    assert recorder.texts()[-1] == "Two."


def test_set_variable_reloads_current_node(play, recorder):
    playback = play("Ann:\nYou have $gold gold.\n")
    playback.start()
    playback.set_variable("gold", 7)
    assert recorder.texts() == ["You have gold gold.", "You have 7 gold."]


def test_commands_run_once_across_reload(play, recorder):
    class RewardingRecorder(type(recorder)):
        def on_command_request(self, playback, command):
            super().on_command_request(playback, command)
            playback.set_variable("gold", 5)

    handler = RewardingRecorder()
    playback = play("Ann:\nYou have $gold.\n@reward\nAnn:\nDone.\n")
    playback.handler = handler
    playback.start()
    playback.next()

    assert handler.texts() == ["You have gold.", "You have 5.", "Done."]
    assert len(handler.of("command")) == 1


def test_stop_completes_and_rewinds(play, recorder):
    playback = play("Ann:\nOne.\nBob:\nTwo.\n")
    playback.start()
    playback.next()
    playback.stop()

    assert recorder.of("completed") == [("completed",)]
    assert playback.current_node is None
    assert playback.current_index == 0


def test_reset_keeps_variables_unless_asked(play):
    playback = play("Ann:\nOne.\n")
    playback.set_variable("gold", 1)
    playback.reset()
    assert playback.get_int("gold") == 1
    playback.reset(reset_variables=True)
    assert not playback.has_variable("gold")


def test_set_graph_rewinds(play, compile_text):
    playback = play("Ann:\nOne.\nBob:\nTwo.\n")
    playback.start()
    playback.next()
    playback.set_variable("gold", 1)

    playback.set_graph(compile_text("Cid:\nNew.\n"))
    assert playback.current_node is None
    assert playback.get_int("gold") == 1


def test_no_graph():
    playback = DialoguePlayback()
    assert not playback.has_graph
    with pytest.raises(NoGraphError):
        playback.start()
    with pytest.raises(NoGraphError):
        playback.next()


def test_empty_graph():
    playback = DialoguePlayback(DialogueGraph())
    with pytest.raises(EmptyGraphError):
        playback.start()


def test_sessions_share_graph(compile_text):
    graph = compile_text("Ann:\nYou have $gold.\n")
    first = DialoguePlayback(graph)
    second = DialoguePlayback(graph)

    first.set_variable("gold", 1)
    assert first.get_int("gold") == 1
    assert not second.has_variable("gold")


def test_events_are_published(compile_text, event_bus, tavern_script):
    seen = []

    def on_event(event):
        seen.append((event.type, event.data))

    for event_type in DialogueEvent:
        event_bus.subscribe(event_type, on_event)

    playback = DialoguePlayback(compile_text(tavern_script), event_bus=event_bus)
    playback.start()
    playback.select_choice(1)
    playback.next()

    types = [event_type for event_type, _ in seen]
    assert types == [
        DialogueEvent.CHARACTER_CHANGED,
        DialogueEvent.DIALOGUE_CHANGED,
        DialogueEvent.CHOICES_AVAILABLE,
        DialogueEvent.CHARACTER_CHANGED,
        DialogueEvent.DIALOGUE_CHANGED,
        DialogueEvent.PLAYBACK_COMPLETED,
    ]
    assert seen[1][1]["text"] == "Welcome, player. What'll it be?"
    assert seen[1][1]["playback"] is playback
    assert [c.target_tag for c in seen[2][1]["choices"]] == ["ale", "leave"]


def test_custom_command_event(compile_text, event_bus):
    commands = []

    def on_command(event):
        commands.append(event["command"])

    event_bus.subscribe(DialogueEvent.COMMAND_REQUESTED, on_command)

    playback = DialoguePlayback(compile_text("Ann:\nHi.\n@camera pan left\n"), event_bus=event_bus)
    playback.start()
    playback.next()

    assert [str(c) for c in commands] == ["@camera pan left"]


def test_remove_variable_and_resolve(play):
    playback = play("Ann:\nOne.\n")
    playback.set_variable("name", "Ash")
    assert playback.resolve("Hi $name") == "Hi Ash"

    playback.remove_variable("name")
    assert not playback.has_variable("name")
    assert playback.resolve("Hi $name") == "Hi name"
