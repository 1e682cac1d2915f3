"""
Spoken narration of a lesson card.

The card is read aloud in a fixed order: the Spanish verb, its English
meaning, the conjugated form, the example sentence, its translation and
finally the exam tip. Each stage is one utterance; when the speech engine
reports that an utterance ended, the narrator moves to the next stage.

The narrator only reacts to utterances it is currently tracking. ``cancel``
forgets every tracked utterance before stopping the engine, so an end event
that the engine emits while (or after) being stopped is ignored. Voices are
picked again whenever the engine reports that its voice list changed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Literal, Optional, Protocol, Sequence, Set, Tuple

from .catalog import Verb
from .schemas import VerbExplanation

logger = logging.getLogger(__name__)

AudioPart = Literal["none", "verb", "spanish", "english"]

SPANISH_LANG = "es-ES"
ENGLISH_LANG = "en-GB"
SPANISH_RATE = 0.7
ENGLISH_RATE = 1.0


class NarrationStage(str, Enum):
	IDLE = "idle"
	VERB = "verb"
	MEANING = "meaning"
	CONJUGATION = "conjugation"
	SENTENCE = "sentence"
	TRANSLATION = "translation"
	TIP = "tip"
	DONE = "done"


_NEXT_STAGE: Dict[NarrationStage, NarrationStage] = {
	NarrationStage.IDLE: NarrationStage.VERB,
	NarrationStage.VERB: NarrationStage.MEANING,
	NarrationStage.MEANING: NarrationStage.CONJUGATION,
	NarrationStage.CONJUGATION: NarrationStage.SENTENCE,
	NarrationStage.SENTENCE: NarrationStage.TRANSLATION,
	NarrationStage.TRANSLATION: NarrationStage.TIP,
	NarrationStage.TIP: NarrationStage.DONE,
	NarrationStage.DONE: NarrationStage.DONE,
}

SPOKEN_STAGES: Tuple[NarrationStage, ...] = (
	NarrationStage.VERB,
	NarrationStage.MEANING,
	NarrationStage.CONJUGATION,
	NarrationStage.SENTENCE,
	NarrationStage.TRANSLATION,
	NarrationStage.TIP,
)

# (spanish?, highlighted part) per spoken stage
_STAGE_VOICE: Dict[NarrationStage, Tuple[bool, AudioPart]] = {
	NarrationStage.VERB: (True, "verb"),
	NarrationStage.MEANING: (False, "english"),
	NarrationStage.CONJUGATION: (True, "verb"),
	NarrationStage.SENTENCE: (True, "spanish"),
	NarrationStage.TRANSLATION: (False, "english"),
	NarrationStage.TIP: (False, "english"),
}


def next_stage(stage: NarrationStage) -> NarrationStage:
	return _NEXT_STAGE[stage]


@dataclass(frozen=True)
class Voice:
	name: str
	lang: str


@dataclass(eq=False)
class Utterance:
	text: str
	lang: str
	rate: float
	voice: Optional[Voice] = None
	stage: Optional[NarrationStage] = None


class SpeechEvents(Protocol):
	def utterance_started(self, utterance: Utterance) -> None: ...

	def utterance_ended(self, utterance: Utterance) -> None: ...


class SpeechEngine(Protocol):
	def speak(self, utterance: Utterance, events: SpeechEvents) -> None: ...

	def cancel(self) -> None: ...

	def get_voices(self) -> Sequence[Voice]: ...

	def on_voices_changed(self, callback: Callable[[], None]) -> None: ...


def pick_voice(voices: Sequence[Voice], lang_prefix: str, tiers: Sequence[Callable[[Voice], bool]]) -> Optional[Voice]:
	"""First voice matching the earliest preference tier, else the first voice of the language."""
	candidates = [voice for voice in voices if voice.lang.startswith(lang_prefix)]
	for matches in tiers:
		for voice in candidates:
			if matches(voice):
				return voice
	return candidates[0] if candidates else None


def _name_has(*markers: str) -> Callable[[Voice], bool]:
	return lambda voice: any(marker in voice.name for marker in markers)


SPANISH_VOICE_TIERS: Tuple[Callable[[Voice], bool], ...] = (
	_name_has("Neural", "Premium", "Natural"),
	_name_has("Helena", "Monica", "Lucia"),
)

ENGLISH_VOICE_TIERS: Tuple[Callable[[Voice], bool], ...] = (
	lambda voice: "Female" in voice.name and "GB" in voice.lang,
	_name_has("Female"),
)


def best_spanish_voice(voices: Sequence[Voice]) -> Optional[Voice]:
	return pick_voice(voices, "es", SPANISH_VOICE_TIERS)


def best_english_voice(voices: Sequence[Voice]) -> Optional[Voice]:
	return pick_voice(voices, "en", ENGLISH_VOICE_TIERS)


class Narrator:
	def __init__(
		self,
		engine: SpeechEngine,
		*,
		on_part: Optional[Callable[[AudioPart], None]] = None,
		on_done: Optional[Callable[[], None]] = None,
	) -> None:
		self._engine = engine
		self._on_part = on_part or (lambda _part: None)
		self._on_done = on_done or (lambda: None)
		self._stage = NarrationStage.IDLE
		self._plan: Dict[NarrationStage, Utterance] = {}
		self._tracked: Set[Utterance] = set()
		self.spanish_voice: Optional[Voice] = None
		self.english_voice: Optional[Voice] = None
		self.refresh_voices()
		engine.on_voices_changed(self.voices_changed)

	@property
	def stage(self) -> NarrationStage:
		return self._stage

	@property
	def speaking(self) -> bool:
		return bool(self._tracked)

	def refresh_voices(self) -> None:
		voices = list(self._engine.get_voices())
		self.spanish_voice = best_spanish_voice(voices)
		self.english_voice = best_english_voice(voices)

	def voices_changed(self) -> None:
		"""Engine callback: the installed voice list changed, pick voices again."""
		self.refresh_voices()
		logger.debug("narration_voices_changed", extra={"voices": len(self._engine.get_voices())})

	def _utterance(self, text: str, *, spanish: bool, stage: Optional[NarrationStage] = None) -> Utterance:
		if spanish:
			return Utterance(text, SPANISH_LANG, SPANISH_RATE, self.spanish_voice, stage)
		return Utterance(text, ENGLISH_LANG, ENGLISH_RATE, self.english_voice, stage)

	def build_plan(self, verb: Verb, explanation: VerbExplanation) -> Dict[NarrationStage, Utterance]:
		texts = {
			NarrationStage.VERB: verb.spanish,
			NarrationStage.MEANING: verb.english,
			NarrationStage.CONJUGATION: explanation.conjugation,
			NarrationStage.SENTENCE: explanation.exampleSentence,
			NarrationStage.TRANSLATION: explanation.englishTranslation,
			NarrationStage.TIP: explanation.contextNote,
		}
		return {
			stage: self._utterance(texts[stage], spanish=_STAGE_VOICE[stage][0], stage=stage)
			for stage in SPOKEN_STAGES
		}

	def start(self, verb: Verb, explanation: VerbExplanation) -> None:
		self.cancel()
		self._plan = self.build_plan(verb, explanation)
		self._tracked = set(self._plan.values())
		logger.debug("narration_started", extra={"verb": verb.spanish})
		self._transition()

	def _transition(self) -> None:
		self._stage = next_stage(self._stage)
		if self._stage is NarrationStage.DONE:
			self._tracked = set()
			self._plan = {}
			self._on_part("none")
			self._on_done()
			return
		self._engine.speak(self._plan[self._stage], self)

	def utterance_started(self, utterance: Utterance) -> None:
		if utterance not in self._tracked or utterance.stage is None:
			return
		self._on_part(_STAGE_VOICE[utterance.stage][1])

	def utterance_ended(self, utterance: Utterance) -> None:
		if utterance not in self._tracked or utterance.stage is not self._stage:
			return
		self._transition()

	def cancel(self) -> None:
		self._tracked = set()
		self._plan = {}
		self._stage = NarrationStage.IDLE
		self._engine.cancel()
		self._on_part("none")

	def speak_phrase(self, text: str) -> Utterance:
		"""Speak one Spanish phrase on demand, interrupting any running narration."""
		self.cancel()
		utterance = self._utterance(text, spanish=True)
		self._engine.speak(utterance, self)
		return utterance
