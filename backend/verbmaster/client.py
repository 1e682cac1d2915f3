"""Async HTTP client for the Verb Master API, used by the drill controller."""

from __future__ import annotations

import re
from enum import Enum
from typing import Any, Dict, Optional, Union

import httpx
from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from .catalog import Verb
from .gemini_client import RETRYABLE_CODES
from .schemas import VerbExplanation
from .settings import DEFAULT_MODEL

DEFAULT_API_BASE_URL = "http://127.0.0.1:8000/api"

# Fallback for errors that arrive without a structured code
_RETRYABLE_MESSAGE = re.compile(r"429|5\d\d|timeout|temporar|unavailable|internal|resource exhausted", re.IGNORECASE)


class ApiError(Exception):
	def __init__(
		self,
		message: str,
		*,
		status: Optional[int] = None,
		code: Optional[str] = None,
		retryable: Optional[bool] = None,
	) -> None:
		super().__init__(message)
		self.status = status
		self.code = code
		self._retryable = retryable

	@property
	def retryable(self) -> bool:
		if self._retryable is not None:
			return self._retryable
		if self.code is not None:
			return self.code in RETRYABLE_CODES
		return is_retryable_message(str(self))


def is_retryable_message(message: str) -> bool:
	return bool(_RETRYABLE_MESSAGE.search(message))


def is_retryable(error: BaseException) -> bool:
	if isinstance(error, ApiError):
		return error.retryable
	return is_retryable_message(str(error))


def _value(item: Union[str, Enum]) -> str:
	return item.value if isinstance(item, Enum) else item


class ClientConfig(BaseSettings):
	api_url: str = Field(default=DEFAULT_API_BASE_URL, validation_alias="VERB_MASTER_API_URL")

	model_config = SettingsConfigDict(env_file=".env", extra="ignore", frozen=True)

	@property
	def api_base(self) -> str:
		return self.api_url.rstrip("/")


class VerbMasterClient:
	def __init__(
		self,
		config: Optional[ClientConfig] = None,
		*,
		transport: Optional[httpx.AsyncBaseTransport] = None,
	) -> None:
		self.config = config or ClientConfig()
		# No client-side timeout; a stale reply is simply ignored by the controller
		self._client = httpx.AsyncClient(base_url=self.config.api_base, timeout=None, transport=transport)

	async def get_ai_config(self) -> Dict[str, str]:
		try:
			r = await self._client.get("/config")
			if r.is_error:
				return {"model": DEFAULT_MODEL}
			data = r.json()
			return {"model": str(data["model"])}
		except Exception:
			return {"model": DEFAULT_MODEL}

	async def get_verb_explanation(
		self,
		verb: Verb,
		tense: Union[str, Enum],
		theme: Union[str, Enum],
		tier: Union[str, Enum],
		person: Union[str, Enum],
	) -> VerbExplanation:
		data = await self._post_json(
			"/verb-explanation",
			{
				"verb": verb.model_dump(),
				"tense": _value(tense),
				"theme": _value(theme),
				"tier": _value(tier),
				"person": _value(person),
			},
		)
		try:
			return VerbExplanation.model_validate(data, strict=True)
		except ValidationError as exc:
			raise ApiError("Invalid AI response: missing explanation fields.") from exc

	async def ask_verb_question(
		self,
		question: str,
		verb: Verb,
		tense: Union[str, Enum],
		current_sentence: str,
		current_translation: str,
	) -> str:
		data = await self._post_json(
			"/verb-question",
			{
				"question": question,
				"verb": verb.model_dump(),
				"tense": _value(tense),
				"currentSentence": current_sentence,
				"currentTranslation": current_translation,
			},
		)
		answer = data.get("answer") if isinstance(data, dict) else None
		if not answer or not isinstance(answer, str):
			raise ApiError("Invalid AI response: missing answer text.")
		trimmed = answer.strip()
		if not trimmed:
			raise ApiError("Invalid AI response: empty answer text.")
		return trimmed

	async def _post_json(self, path: str, payload: Dict[str, Any]) -> Any:
		try:
			r = await self._client.post(path, json=payload)
		except httpx.TimeoutException as exc:
			raise ApiError(f"Request timeout: {exc}", code="upstream_timeout", retryable=True) from exc
		except httpx.RequestError as exc:
			raise ApiError(f"Network error: {exc}", code="network_error", retryable=True) from exc

		raw = r.text
		parsed: Any = None
		if raw:
			try:
				parsed = r.json()
			except ValueError:
				parsed = None

		if r.is_error:
			body = parsed if isinstance(parsed, dict) else {}
			message = body.get("error") or body.get("details") or raw or f"API request failed ({r.status_code})"
			raise ApiError(
				str(message),
				status=r.status_code,
				code=body.get("code"),
				retryable=body.get("retryable"),
			)

		if parsed is None:
			raise ApiError("Invalid API response: expected JSON body.", status=r.status_code)
		return parsed

	async def aclose(self) -> None:
		await self._client.aclose()
