"""Console front end for the drill controller.

Runs against a live Verb Master API and "speaks" by printing each utterance,
holding it for roughly the time a speech engine would take to read it.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Callable, List, Optional, Sequence, Set, TextIO

from .catalog import THEME_AREAS, VERBS, GCSETheme, GrammaticalPerson, Tense, Tier, verb_labels
from .client import ClientConfig, VerbMasterClient
from .controller import DrillController, DrillState
from .log import configure_logging
from .narration import SpeechEvents, Utterance, Voice

logger = logging.getLogger(__name__)

CONSOLE_VOICES = (
	Voice(name="Console Spanish Natural", lang="es-ES"),
	Voice(name="Console English Female", lang="en-GB"),
)

HELP = """commands:
  n / p             next / previous verb
  v <number>        pick verb by number (see 'verbs')
  tense|theme|tier|person <number>   change a setting (see 'options')
  r                 new example for the same settings
  a                 toggle autoplay narration
  say <text>        speak a Spanish phrase
  ask <question>    ask the tutor about the current card
  clear             clear the tutor chat
  verbs | options | help | q"""


class ConsoleSpeechEngine:
	def __init__(self, out: TextIO = sys.stdout, *, seconds_per_word: float = 0.35) -> None:
		self.out = out
		self.seconds_per_word = seconds_per_word
		self._pending: Set[asyncio.Handle] = set()

	@property
	def pending(self) -> int:
		return len(self._pending)

	def get_voices(self) -> Sequence[Voice]:
		return CONSOLE_VOICES

	def on_voices_changed(self, callback: Callable[[], None]) -> None:
		# The console voice list is fixed
		pass

	def _schedule(self, delay: float, callback: Callable[[], None]) -> None:
		handle: Optional[asyncio.Handle] = None

		def _fire() -> None:
			self._pending.discard(handle)
			callback()

		handle = asyncio.get_running_loop().call_later(delay, _fire)
		self._pending.add(handle)

	def speak(self, utterance: Utterance, events: SpeechEvents) -> None:
		words = max(1, len(utterance.text.split()))
		duration = max(0.5, words * self.seconds_per_word / max(utterance.rate, 0.1))

		def _start() -> None:
			print(f"  ({utterance.lang}) {utterance.text}", file=self.out)
			events.utterance_started(utterance)

		self._schedule(0, _start)
		self._schedule(duration, lambda: events.utterance_ended(utterance))

	def cancel(self) -> None:
		for handle in self._pending:
			handle.cancel()
		self._pending.clear()


class ConsoleView:
	def __init__(self, out: TextIO = sys.stdout) -> None:
		self.out = out
		self._last: Optional[tuple] = None

	def __call__(self, state: DrillState) -> None:
		snapshot = (state.index, state.loading, state.error, state.explanation, len(state.chat), state.chat_loading)
		if snapshot == self._last:
			return
		self._last = snapshot
		verb = VERBS[state.index]
		if state.loading:
			print(f"[{state.index + 1}/{len(VERBS)}] {verb.spanish.upper()} ... loading", file=self.out)
			return
		if state.error:
			print(f"! {state.error}", file=self.out)
			return
		if state.explanation is not None and not state.chat_loading and not state.chat:
			exp = state.explanation
			print(
				f"[{state.index + 1}/{len(VERBS)}] {verb.spanish.upper()} ({verb.english}, {verb.category}) "
				f"| {state.tense.value} | {state.person.value} | {state.tier.value} | {state.model_label}\n"
				f"  Conjugation: {exp.conjugation}\n"
				f"  Ejemplo:     {exp.exampleSentence}\n"
				f"  Translation: {exp.englishTranslation}\n"
				f"  Exam tip:    {exp.contextNote}",
				file=self.out,
			)
		elif state.chat and not state.chat_loading:
			last = state.chat[-1]
			print(f"  {last.role}: {last.content}", file=self.out)


def _themes() -> List[GCSETheme]:
	return [theme for themes in THEME_AREAS.values() for theme in themes]


def _numbered(members: Sequence, start: int = 1) -> List[str]:
	return [f"  {i}. {member.value}" for i, member in enumerate(members, start=start)]


def _options() -> str:
	lines = ["tense:", *_numbered(list(Tense)), "theme:"]
	number = 1
	for area, themes in THEME_AREAS.items():
		lines.append(f" {area}")
		lines.extend(_numbered(themes, start=number))
		number += len(themes)
	lines += ["tier:", *_numbered(list(Tier)), "person:", *_numbered(list(GrammaticalPerson))]
	return "\n".join(lines)


def _pick(members: Sequence, raw: str):
	index = int(raw) - 1
	if not 0 <= index < len(members):
		raise ValueError(f"choose 1..{len(members)}")
	return members[index]


async def handle_command(controller: DrillController, line: str, out: TextIO = sys.stdout) -> bool:
	"""Apply one console command; returns False when the user quits."""
	command, _, arg = line.strip().partition(" ")
	arg = arg.strip()
	if command in ("q", "quit", "exit"):
		return False
	if command == "n":
		controller.next_verb()
	elif command == "p":
		controller.prev_verb()
	elif command == "r":
		controller.refresh()
	elif command == "a":
		state = "on" if controller.toggle_autoplay() else "off"
		print(f"autoplay {state}", file=out)
	elif command == "v":
		controller.select_verb(int(arg) - 1)
	elif command == "tense":
		controller.set_tense(_pick(list(Tense), arg))
	elif command == "theme":
		controller.set_theme(_pick(_themes(), arg))
	elif command == "tier":
		controller.set_tier(_pick(list(Tier), arg))
	elif command == "person":
		controller.set_person(_pick(list(GrammaticalPerson), arg))
	elif command == "say" and arg:
		controller.speak_phrase(arg)
	elif command == "ask":
		await controller.ask_question(arg)
	elif command == "clear":
		controller.clear_chat()
	elif command == "verbs":
		print("\n".join(f"{i}. {label}" for i, label in enumerate(verb_labels(), start=1)), file=out)
	elif command == "options":
		print(_options(), file=out)
	elif command:
		print(HELP, file=out)
	return True


async def run(api_url: Optional[str]) -> int:
	client = VerbMasterClient(ClientConfig(VERB_MASTER_API_URL=api_url) if api_url else None)
	view = ConsoleView()
	controller = DrillController(client, ConsoleSpeechEngine(), on_change=view)
	loop = asyncio.get_running_loop()
	try:
		await controller.start()
		print(HELP)
		while True:
			line = await loop.run_in_executor(None, sys.stdin.readline)
			if not line:
				break
			try:
				if not await handle_command(controller, line):
					break
			except (ValueError, IndexError) as exc:
				print(f"? {exc}")
	finally:
		await controller.close()
		await client.aclose()
	return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
	parser = argparse.ArgumentParser(description="Drill CCEA GCSE Spanish verbs from the console.")
	parser.add_argument("--api-url", default=None, help="Verb Master API base URL (default: $VERB_MASTER_API_URL)")
	parser.add_argument("--log-level", default="WARNING")
	args = parser.parse_args(argv)
	configure_logging(args.log_level)
	try:
		return asyncio.run(run(args.api_url))
	except KeyboardInterrupt:
		return 130


if __name__ == "__main__":
	raise SystemExit(main())
