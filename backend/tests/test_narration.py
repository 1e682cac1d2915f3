from __future__ import annotations

import pytest

from verbmaster.catalog import Verb
from verbmaster.narration import (
    SPOKEN_STAGES,
    NarrationStage,
    Narrator,
    Voice,
    best_english_voice,
    best_spanish_voice,
    next_stage,
)
from verbmaster.schemas import VerbExplanation

from conftest import SER_CARD
from speech_fakes import RecordingSpeechEngine

SER = Verb(spanish="ser", english="to be (permanent)", category="irregular")
CARD = VerbExplanation(**SER_CARD)


def _narrator(engine: RecordingSpeechEngine):
    parts: list[str] = []
    done: list[bool] = []
    narrator = Narrator(engine, on_part=parts.append, on_done=lambda: done.append(True))
    return narrator, parts, done


def test_transition_function_walks_fixed_order() -> None:
    order = []
    stage = NarrationStage.IDLE
    while stage is not NarrationStage.DONE:
        stage = next_stage(stage)
        order.append(stage)

    assert order == [*SPOKEN_STAGES, NarrationStage.DONE]
    assert next_stage(NarrationStage.DONE) is NarrationStage.DONE


def test_narrates_six_stages_in_order() -> None:
    engine = RecordingSpeechEngine()
    narrator, parts, done = _narrator(engine)

    narrator.start(SER, CARD)
    for _ in range(6):
        engine.finish()

    assert engine.texts == [
        "ser",
        "to be (permanent)",
        SER_CARD["conjugation"],
        SER_CARD["exampleSentence"],
        SER_CARD["englishTranslation"],
        SER_CARD["contextNote"],
    ]
    assert [u.lang for u in engine.spoken] == ["es-ES", "en-GB", "es-ES", "es-ES", "en-GB", "en-GB"]
    assert [u.rate for u in engine.spoken] == [0.7, 1.0, 0.7, 0.7, 1.0, 1.0]
    assert [p for p in parts if p != "none"] == ["verb", "english", "verb", "spanish", "english", "english"]
    assert parts[-1] == "none"
    assert narrator.stage is NarrationStage.DONE
    assert done == [True]
    assert not narrator.speaking


@pytest.mark.parametrize("finished", range(6))
def test_cancel_at_any_stage_silences_later_callbacks(finished) -> None:
    engine = RecordingSpeechEngine()
    narrator, _parts, done = _narrator(engine)

    narrator.start(SER, CARD)
    for _ in range(finished):
        engine.finish()
    interrupted = engine.spoken[-1]
    narrator.cancel()

    # A late end event from the engine must not restart the chain
    narrator.utterance_ended(interrupted)
    narrator.utterance_started(interrupted)

    assert len(engine.spoken) == finished + 1
    assert narrator.stage is NarrationStage.IDLE
    assert done == []


def test_end_event_emitted_during_cancel_is_ignored() -> None:
    engine = RecordingSpeechEngine(end_on_cancel=True)
    narrator, _parts, done = _narrator(engine)

    narrator.start(SER, CARD)
    engine.finish()
    narrator.cancel()

    assert len(engine.spoken) == 2
    assert done == []


def test_restart_ignores_events_from_previous_run() -> None:
    engine = RecordingSpeechEngine()
    narrator, _parts, _done = _narrator(engine)

    narrator.start(SER, CARD)
    old_first = engine.spoken[0]
    narrator.start(SER, CARD)
    narrator.utterance_ended(old_first)

    assert narrator.stage is NarrationStage.VERB
    assert len(engine.spoken) == 2


def test_speak_phrase_interrupts_chain_in_spanish() -> None:
    engine = RecordingSpeechEngine()
    narrator, _parts, done = _narrator(engine)

    narrator.start(SER, CARD)
    phrase = narrator.speak_phrase("soy")
    engine.finish()

    assert phrase.lang == "es-ES"
    assert phrase.rate == 0.7
    assert engine.spoken[-1] is phrase
    assert len(engine.spoken) == 2
    assert done == []


def test_voice_preferences() -> None:
    voices = [
        Voice("Jorge", "es-MX"),
        Voice("Monica", "es-ES"),
        Voice("Paulina Premium", "es-MX"),
        Voice("Karen Female", "en-AU"),
        Voice("Kate Female", "en-GB"),
        Voice("Alex", "en-US"),
    ]

    assert best_spanish_voice(voices).name == "Paulina Premium"
    assert best_spanish_voice(voices[:2]).name == "Monica"
    assert best_spanish_voice(voices[:1]).name == "Jorge"
    assert best_english_voice(voices).name == "Kate Female"
    assert best_english_voice(voices[:4]).name == "Karen Female"
    assert best_english_voice([Voice("Alex", "en-US")]).name == "Alex"
    assert best_spanish_voice([Voice("Alex", "en-US")]) is None


def test_utterances_use_chosen_voices() -> None:
    engine = RecordingSpeechEngine()
    narrator, _parts, _done = _narrator(engine)

    narrator.start(SER, CARD)
    engine.finish()

    assert engine.spoken[0].voice.name == "Microsoft Helena"
    assert engine.spoken[1].voice.name == "Serena Female"


def test_refresh_voices_picks_up_new_voice_list() -> None:
    engine = RecordingSpeechEngine(voices=[])
    narrator, _parts, _done = _narrator(engine)
    assert narrator.spanish_voice is None

    engine.voices = [Voice("Lucia Natural", "es-ES")]
    narrator.refresh_voices()

    assert narrator.spanish_voice.name == "Lucia Natural"


def test_engine_voice_change_reselects_voices() -> None:
    engine = RecordingSpeechEngine(voices=[Voice("Jorge", "es-MX")])
    narrator, _parts, _done = _narrator(engine)
    assert narrator.spanish_voice.name == "Jorge"
    assert narrator.english_voice is None

    engine.set_voices([Voice("Jorge", "es-MX"), Voice("Monica", "es-ES"), Voice("Kate Female", "en-GB")])
    narrator.start(SER, CARD)

    assert narrator.spanish_voice.name == "Monica"
    assert engine.spoken[0].voice.name == "Monica"
    assert narrator.english_voice.name == "Kate Female"
