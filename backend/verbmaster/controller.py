from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Protocol, Sequence, Set

from .catalog import (
	AUTOPLAY_DELAY_SECONDS,
	VERBS,
	GCSETheme,
	GrammaticalPerson,
	Tense,
	Tier,
	Verb,
)
from .client import is_retryable
from .narration import AudioPart, Narrator, SpeechEngine
from .schemas import ChatMessage, VerbExplanation

logger = logging.getLogger(__name__)

NARRATION_DELAY_SECONDS = 0.8
BUSY_MESSAGE = "AI is busy, retrying..."
CHAT_FAILURE_MESSAGE = "Sorry, I had trouble answering. Please try again!"
WARM_UP_VERB = Verb(spanish="ser", english="to be", category="irregular")


class VerbApi(Protocol):
	async def get_ai_config(self) -> dict: ...

	async def get_verb_explanation(
		self, verb: Verb, tense: Tense, theme: GCSETheme, tier: Tier, person: GrammaticalPerson
	) -> VerbExplanation: ...

	async def ask_verb_question(
		self, question: str, verb: Verb, tense: Tense, current_sentence: str, current_translation: str
	) -> str: ...


def model_label(model: str) -> str:
	return "Flash 3.0" if "3-flash" in model else "Flash 2.5"


@dataclass
class DrillState:
	index: int = 0
	tense: Tense = Tense.PRESENT
	theme: GCSETheme = GCSETheme.FAMILY
	tier: Tier = Tier.FOUNDATION
	person: GrammaticalPerson = GrammaticalPerson.YO
	model_label: str = "Flash 2.5"
	explanation: Optional[VerbExplanation] = None
	loading: bool = False
	error: Optional[str] = None
	autoplay: bool = False
	active_part: AudioPart = "none"
	chat: List[ChatMessage] = field(default_factory=list)
	chat_loading: bool = False


class DrillController:
	"""
	Owns everything the drill screen shows and reacts to user actions.

	Every load captures a token from a counter owned by this controller; a
	reply is applied only while its token is still the latest one, so a slow
	reply for old parameters never overwrites a newer card.
	"""

	def __init__(
		self,
		api: VerbApi,
		engine: SpeechEngine,
		*,
		verbs: Sequence[Verb] = VERBS,
		narration_delay: float = NARRATION_DELAY_SECONDS,
		autoplay_delay: float = AUTOPLAY_DELAY_SECONDS,
		on_change: Optional[Callable[[DrillState], None]] = None,
	) -> None:
		if not verbs:
			raise ValueError("verb list must not be empty")
		self.api = api
		self.verbs = tuple(verbs)
		self.state = DrillState()
		self.narration_delay = narration_delay
		self.autoplay_delay = autoplay_delay
		self._on_change = on_change
		self._load_id = 0
		self._closed = False
		self._timers: Set[asyncio.TimerHandle] = set()
		self._advance_timer: Optional[asyncio.TimerHandle] = None
		self._tasks: Set[asyncio.Task] = set()
		self.narrator = Narrator(engine, on_part=self._set_active_part, on_done=self._narration_finished)

	@property
	def current_verb(self) -> Verb:
		return self.verbs[self.state.index]

	@property
	def load_id(self) -> int:
		return self._load_id

	def _changed(self) -> None:
		if self._on_change is not None:
			self._on_change(self.state)

	def _set_active_part(self, part: AudioPart) -> None:
		self.state.active_part = part
		self._changed()

	def _spawn(self, coro) -> asyncio.Task:
		task = asyncio.get_running_loop().create_task(coro)
		self._tasks.add(task)
		task.add_done_callback(self._tasks.discard)
		return task

	def _later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
		handle: Optional[asyncio.TimerHandle] = None

		def _fire() -> None:
			self._timers.discard(handle)
			if not self._closed:
				callback()

		handle = asyncio.get_running_loop().call_later(delay, _fire)
		self._timers.add(handle)
		return handle

	def _cancel_advance(self) -> None:
		handle, self._advance_timer = self._advance_timer, None
		if handle is not None:
			handle.cancel()
			self._timers.discard(handle)

	# Start-up

	async def start(self) -> None:
		config = await self.api.get_ai_config()
		self.state.model_label = model_label(config.get("model", ""))
		self._spawn(self._warm_up())
		await self.load()

	async def _warm_up(self) -> None:
		try:
			await self.api.get_verb_explanation(
				WARM_UP_VERB, Tense.PRESENT, self.state.theme, Tier.HIGHER, GrammaticalPerson.YO
			)
		except Exception:
			logger.debug("warm_up_request_failed", exc_info=True)

	# Loading

	def load(self) -> asyncio.Task:
		self._load_id += 1
		token = self._load_id
		self.state.loading = True
		self.state.error = None
		self.state.explanation = None
		self._cancel_advance()
		self.stop_speech()
		self._changed()
		state = self.state
		return self._spawn(self._do_load(token, self.current_verb, state.tense, state.theme, state.tier, state.person))

	async def _do_load(
		self, token: int, verb: Verb, tense: Tense, theme: GCSETheme, tier: Tier, person: GrammaticalPerson
	) -> None:
		try:
			result = await self.api.get_verb_explanation(verb, tense, theme, tier, person)
		except Exception as exc:
			if token != self._load_id:
				logger.debug("stale_load_discarded", extra={"token": token, "latest": self._load_id})
				return
			logger.warning("verb_explanation_failed", extra={"verb": verb.spanish, "error": str(exc)})
			self.state.error = BUSY_MESSAGE if is_retryable(exc) else f"AI error: {str(exc) or 'Unknown AI error'}"
			self.state.loading = False
			self._changed()
			return

		if token != self._load_id:
			logger.debug("stale_load_discarded", extra={"token": token, "latest": self._load_id})
			return
		self.state.explanation = result
		self.state.loading = False
		self._changed()
		if self.state.autoplay:
			self._later(self.narration_delay, lambda: self._narrate_if_current(token, result))

	def _narrate_if_current(self, token: int, explanation: VerbExplanation) -> None:
		if self.state.autoplay and token == self._load_id:
			self.narrator.start(self.current_verb, explanation)

	def refresh(self) -> asyncio.Task:
		return self.load()

	# Selection

	def select_verb(self, index: int) -> Optional[asyncio.Task]:
		if not 0 <= index < len(self.verbs):
			raise IndexError(f"verb index {index} out of range")
		if index == self.state.index:
			return None
		self.state.index = index
		return self.load()

	def set_tense(self, tense: Tense) -> Optional[asyncio.Task]:
		return self._set_param("tense", Tense(tense))

	def set_theme(self, theme: GCSETheme) -> Optional[asyncio.Task]:
		return self._set_param("theme", GCSETheme(theme))

	def set_tier(self, tier: Tier) -> Optional[asyncio.Task]:
		return self._set_param("tier", Tier(tier))

	def set_person(self, person: GrammaticalPerson) -> Optional[asyncio.Task]:
		return self._set_param("person", GrammaticalPerson(person))

	def _set_param(self, name: str, value) -> Optional[asyncio.Task]:
		if getattr(self.state, name) == value:
			return None
		setattr(self.state, name, value)
		return self.load()

	def next_verb(self) -> asyncio.Task:
		self.stop_speech()
		self.state.index = (self.state.index + 1) % len(self.verbs)
		return self.load()

	def prev_verb(self) -> asyncio.Task:
		self.stop_speech()
		self.state.index = (self.state.index - 1) % len(self.verbs)
		return self.load()

	# Speech

	def stop_speech(self) -> None:
		self.narrator.cancel()

	def toggle_autoplay(self) -> bool:
		self.state.autoplay = not self.state.autoplay
		self._cancel_advance()
		if self.state.autoplay:
			self.narrator.refresh_voices()
			if self.state.explanation is not None:
				self.narrator.start(self.current_verb, self.state.explanation)
		else:
			self.stop_speech()
		self._changed()
		return self.state.autoplay

	def speak_phrase(self, text: str) -> None:
		self.narrator.speak_phrase(text)

	def _narration_finished(self) -> None:
		if self.state.autoplay:
			self._cancel_advance()
			self._advance_timer = self._later(self.autoplay_delay, self._autoplay_advance)

	def _autoplay_advance(self) -> None:
		self._advance_timer = None
		if self.state.autoplay:
			self.next_verb()

	# Tutor chat

	async def ask_question(self, question: str) -> Optional[str]:
		question = question.strip()
		explanation = self.state.explanation
		if not question or explanation is None:
			return None
		self.state.chat.append(ChatMessage(role="user", content=question))
		self.state.chat_loading = True
		self._changed()
		try:
			answer = await self.api.ask_verb_question(
				question,
				self.current_verb,
				self.state.tense,
				explanation.exampleSentence,
				explanation.englishTranslation,
			)
		except Exception as exc:
			logger.warning("verb_question_failed", extra={"error": str(exc)})
			answer = CHAT_FAILURE_MESSAGE
		finally:
			self.state.chat_loading = False
		self.state.chat.append(ChatMessage(role="assistant", content=answer))
		self._changed()
		return answer

	def clear_chat(self) -> None:
		self.state.chat.clear()
		self._changed()

	# Shutdown

	async def close(self) -> None:
		self._closed = True
		self.state.autoplay = False
		for handle in list(self._timers):
			handle.cancel()
		self._timers.clear()
		self.stop_speech()
		tasks = list(self._tasks)
		for task in tasks:
			task.cancel()
		await asyncio.gather(*tasks, return_exceptions=True)
