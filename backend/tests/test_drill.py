from __future__ import annotations

import asyncio
import io

import pytest

from verbmaster.catalog import GCSETheme, GrammaticalPerson, Tense, Tier
from verbmaster.drill import ConsoleSpeechEngine, handle_command
from verbmaster.narration import Utterance


class RecordingController:
    def __init__(self) -> None:
        self.calls: list[tuple] = []
        self.autoplay = False

    def __getattr__(self, name):
        def _record(*args):
            self.calls.append((name, *args))

        return _record

    def toggle_autoplay(self) -> bool:
        self.autoplay = not self.autoplay
        return self.autoplay

    async def ask_question(self, question: str) -> None:
        self.calls.append(("ask_question", question))


def _handle(line: str):
    controller = RecordingController()
    out = io.StringIO()
    keep_going = asyncio.run(handle_command(controller, line, out))
    return keep_going, controller.calls, out.getvalue()


@pytest.mark.parametrize(
    "line, call",
    [
        ("n", ("next_verb",)),
        ("p", ("prev_verb",)),
        ("r", ("refresh",)),
        ("v 3", ("select_verb", 2)),
        ("tense 2", ("set_tense", Tense.PRETERITE)),
        ("theme 1", ("set_theme", GCSETheme.FAMILY)),
        ("tier 2", ("set_tier", Tier.HIGHER)),
        ("person 4", ("set_person", GrammaticalPerson.NOSOTROS)),
        ("say hola amigos", ("speak_phrase", "hola amigos")),
        ("ask why is it soy?", ("ask_question", "why is it soy?")),
        ("clear", ("clear_chat",)),
    ],
)
def test_commands_drive_controller(line, call) -> None:
    keep_going, calls, _out = _handle(line)

    assert keep_going is True
    assert calls == [call]


def test_quit_stops_loop() -> None:
    keep_going, calls, _out = _handle("q")

    assert keep_going is False
    assert calls == []


def test_autoplay_toggle_is_reported() -> None:
    _keep_going, _calls, out = _handle("a")

    assert out.strip() == "autoplay on"


def test_listing_and_unknown_command() -> None:
    assert "1. SER - to be (permanent)" in _handle("verbs")[2]
    assert "Preterite (Past)" in _handle("options")[2]
    assert "commands:" in _handle("bogus")[2]


def test_out_of_range_option_is_rejected() -> None:
    controller = RecordingController()

    with pytest.raises(ValueError):
        asyncio.run(handle_command(controller, "tier 9", io.StringIO()))


def test_options_group_themes_by_area() -> None:
    out = _handle("options")[2]
    lines = out.splitlines()

    area = lines.index(" 3. School & World of Work")
    assert lines[area + 1] == "  9. School life"
    assert lines.index(" 1. Identity, Lifestyle & Culture") < lines.index(" 2. Local, National & Global Interests") < area


def test_theme_number_matches_listing() -> None:
    _keep_going, calls, _out = _handle("theme 9")

    assert calls == [("set_theme", GCSETheme.SCHOOL_LIFE)]


def test_console_engine_forgets_fired_handles() -> None:
    engine = ConsoleSpeechEngine(io.StringIO(), seconds_per_word=0.001)
    events = RecordingEvents()

    async def scenario():
        for text in ("hola", "adiós", "gracias"):
            engine.speak(Utterance(text, "es-ES", 1.0), events)
        assert engine.pending == 6
        await asyncio.sleep(0.6)
        return engine.pending

    assert asyncio.run(scenario()) == 0
    assert events.ended == ["hola", "adiós", "gracias"]


class RecordingEvents:
    def __init__(self) -> None:
        self.started: list[str] = []
        self.ended: list[str] = []

    def utterance_started(self, utterance: Utterance) -> None:
        self.started.append(utterance.text)

    def utterance_ended(self, utterance: Utterance) -> None:
        self.ended.append(utterance.text)
