from __future__ import annotations

from typing import AsyncIterator

from fastapi import Request

from .errors import MISSING_CREDENTIALS, VerbMasterHTTPError
from .gemini_client import GeminiClient
from .settings import Settings


def get_settings(request: Request) -> Settings:
	return request.app.state.settings


async def get_gemini_client(request: Request) -> AsyncIterator[GeminiClient]:
	app_settings: Settings = request.app.state.settings
	if not app_settings.gemini_api_key:
		raise VerbMasterHTTPError(500, "Server misconfigured: missing API key", code=MISSING_CREDENTIALS)
	client = GeminiClient(
		app_settings.gemini_api_key,
		base_url=app_settings.gemini_base_url,
		model=app_settings.gemini_model,
	)
	try:
		yield client
	finally:
		await client.aclose()
