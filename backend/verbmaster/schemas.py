from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict


class VerbRef(BaseModel):
	spanish: Optional[str] = None
	english: Optional[str] = None
	category: Optional[str] = None


class VerbExplanationRequest(BaseModel):
	verb: Optional[VerbRef] = None
	tense: Optional[str] = None
	theme: Optional[str] = None
	tier: Optional[str] = None
	person: Optional[str] = None

	def missing_fields(self) -> bool:
		return not (self.verb and self.verb.spanish and self.tense and self.theme and self.tier and self.person)


class VerbExplanation(BaseModel):
	# Field names follow the JSON contract shared with the browser UI
	model_config = ConfigDict(frozen=True)

	conjugation: str
	exampleSentence: str
	englishTranslation: str
	contextNote: str


class VerbQuestionRequest(BaseModel):
	question: Optional[str] = None
	verb: Optional[VerbRef] = None
	tense: Optional[str] = None
	currentSentence: Optional[str] = None
	currentTranslation: Optional[str] = None

	def missing_fields(self) -> bool:
		return not (
			self.question
			and self.question.strip()
			and self.verb
			and self.verb.spanish
			and self.tense
			and self.currentSentence
			and self.currentTranslation
		)


class VerbQuestionResponse(BaseModel):
	answer: str


class ConfigResponse(BaseModel):
	model: str


class ErrorResponse(BaseModel):
	error: str
	code: str
	retryable: bool = False


class ChatMessage(BaseModel):
	role: Literal["user", "assistant"]
	content: str
