from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict

from fastapi import APIRouter, Depends

from ..deps import get_gemini_client, get_settings
from ..errors import EMPTY_RESPONSE, MISSING_FIELDS, VerbMasterHTTPError
from ..gemini_client import INVALID_RESPONSE, GeminiClient
from ..prompts import (
	EXPLANATION_TEMPERATURE,
	QUESTION_MAX_OUTPUT_TOKENS,
	QUESTION_TEMPERATURE,
	SYSTEM_PROMPT_DEFAULT,
	TUTOR_SYSTEM_PROMPT,
	build_explanation_prompt,
	build_question_prompt,
)
from ..schemas import (
	ErrorResponse,
	VerbExplanation,
	VerbExplanationRequest,
	VerbQuestionRequest,
	VerbQuestionResponse,
)
from ..settings import Settings

router = APIRouter(tags=["verbs"])
logger = logging.getLogger(__name__)

EXPLANATION_FIELDS = ("conjugation", "exampleSentence", "englishTranslation", "contextNote")
FALLBACK_ANSWER = "Sorry, I could not generate a response."
ERROR_RESPONSES = {status: {"model": ErrorResponse} for status in (400, 429, 500, 502)}

_OPENING_FENCE = re.compile(r"^```(?:json)?\s*\n?", re.IGNORECASE)
_CLOSING_FENCE = re.compile(r"\n?```\s*$")


def strip_code_fences(text: str) -> str:
	cleaned = text.strip()
	if cleaned.startswith("```"):
		cleaned = _OPENING_FENCE.sub("", cleaned)
		cleaned = _CLOSING_FENCE.sub("", cleaned)
	return cleaned.strip()


def parse_explanation(raw: str) -> VerbExplanation:
	"""Turn the model's raw reply into a lesson card.

	Raises VerbMasterHTTPError (502) when the reply is empty, is not a JSON
	object, or lacks any of the four card fields.
	"""
	text = (raw or "").strip()
	if not text:
		raise VerbMasterHTTPError(502, "Empty response from AI", code=EMPTY_RESPONSE)
	try:
		data: Any = json.loads(strip_code_fences(text))
	except ValueError as exc:
		logger.warning("verb_explanation_invalid_reply", extra={"reason": "json", "reply": text[:200]})
		raise VerbMasterHTTPError(502, "Invalid AI response structure", code=INVALID_RESPONSE) from exc
	if not isinstance(data, dict) or not all(_present(data.get(field)) for field in EXPLANATION_FIELDS):
		logger.warning("verb_explanation_invalid_reply", extra={"reason": "fields", "reply": text[:200]})
		raise VerbMasterHTTPError(502, "Invalid AI response structure", code=INVALID_RESPONSE)
	return VerbExplanation(**{field: str(data[field]) for field in EXPLANATION_FIELDS})


def _present(value: Any) -> bool:
	if isinstance(value, str):
		return bool(value.strip())
	# 0, False, null and empty containers count as missing
	return bool(value)


def _cache_or_instruction(app_settings: Settings, instruction: str) -> Dict[str, Any]:
	if app_settings.gemini_cache_name:
		return {"cached_content": app_settings.gemini_cache_name}
	return {"system_instruction": instruction}


@router.post("/verb-explanation", response_model=VerbExplanation, responses=ERROR_RESPONSES)
async def verb_explanation(
	req: VerbExplanationRequest,
	client: GeminiClient = Depends(get_gemini_client),
	app_settings: Settings = Depends(get_settings),
):
	if req.missing_fields():
		raise VerbMasterHTTPError(400, "Missing required fields", code=MISSING_FIELDS)
	verb = req.verb
	prompt = build_explanation_prompt(
		spanish=verb.spanish,
		english=verb.english or "",
		category=verb.category or "",
		tense=req.tense,
		person=req.person,
		theme=req.theme,
		tier=req.tier,
	)
	raw = await client.generate(
		prompt,
		temperature=EXPLANATION_TEMPERATURE,
		**_cache_or_instruction(app_settings, SYSTEM_PROMPT_DEFAULT),
	)
	explanation = parse_explanation(raw)
	logger.info(
		"verb_explanation_generated",
		extra={"verb": verb.spanish, "tense": req.tense, "person": req.person, "tier": req.tier},
	)
	return explanation


@router.post("/verb-question", response_model=VerbQuestionResponse, responses=ERROR_RESPONSES)
async def verb_question(
	req: VerbQuestionRequest,
	client: GeminiClient = Depends(get_gemini_client),
	app_settings: Settings = Depends(get_settings),
):
	if req.missing_fields():
		raise VerbMasterHTTPError(400, "Missing required fields", code=MISSING_FIELDS)
	prompt = build_question_prompt(
		question=req.question.strip(),
		spanish=req.verb.spanish,
		english=req.verb.english or "",
		tense=req.tense,
		current_sentence=req.currentSentence,
		current_translation=req.currentTranslation,
	)
	raw = await client.generate(
		prompt,
		temperature=QUESTION_TEMPERATURE,
		max_output_tokens=QUESTION_MAX_OUTPUT_TOKENS,
		**_cache_or_instruction(app_settings, TUTOR_SYSTEM_PROMPT),
	)
	answer = (raw or "").strip() or FALLBACK_ANSWER
	logger.info("verb_question_answered", extra={"verb": req.verb.spanish, "answer_chars": len(answer)})
	return VerbQuestionResponse(answer=answer)
