from __future__ import annotations

import logging
from typing import Dict, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .gemini_client import (
	INVALID_RESPONSE,
	RATE_LIMITED,
	RETRYABLE_CODES,
	GeminiError,
)

logger = logging.getLogger(__name__)

METHOD_NOT_ALLOWED = "method_not_allowed"
NOT_FOUND = "not_found"
MISSING_FIELDS = "missing_fields"
INVALID_REQUEST = "invalid_request"
MISSING_CREDENTIALS = "missing_credentials"
EMPTY_RESPONSE = "empty_response"

_STATUS_CODES: Dict[int, str] = {
	404: NOT_FOUND,
	405: METHOD_NOT_ALLOWED,
}

_STATUS_MESSAGES: Dict[int, str] = {
	404: "Not found",
	405: "Method not allowed",
}


class VerbMasterHTTPError(HTTPException):
	def __init__(self, status_code: int, detail: str, *, code: str) -> None:
		super().__init__(status_code=status_code, detail=detail)
		self.code = code


def upstream_status(error: GeminiError) -> int:
	if error.code == RATE_LIMITED:
		return 429
	if error.code == INVALID_RESPONSE:
		return 502
	return 500


def error_body(message: str, code: str) -> Dict[str, object]:
	return {"error": message, "code": code, "retryable": code in RETRYABLE_CODES}


def _json_error(status_code: int, message: str, code: str, headers: Optional[Dict[str, str]] = None) -> JSONResponse:
	return JSONResponse(status_code=status_code, content=error_body(message, code), headers=headers)


def install_exception_handlers(app: FastAPI) -> None:
	@app.exception_handler(VerbMasterHTTPError)
	async def _verb_master_error(request: Request, exc: VerbMasterHTTPError) -> JSONResponse:
		return _json_error(exc.status_code, str(exc.detail), exc.code, exc.headers)

	@app.exception_handler(StarletteHTTPException)
	async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
		message = _STATUS_MESSAGES.get(exc.status_code, str(exc.detail))
		code = _STATUS_CODES.get(exc.status_code, "http_error")
		return _json_error(exc.status_code, message, code, getattr(exc, "headers", None))

	@app.exception_handler(RequestValidationError)
	async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
		return _json_error(400, "Invalid request body", INVALID_REQUEST)

	@app.exception_handler(GeminiError)
	async def _gemini_error(request: Request, exc: GeminiError) -> JSONResponse:
		logger.error(
			"gemini_error",
			extra={"path": request.url.path, "code": exc.code, "upstream_status": exc.upstream_status},
		)
		return _json_error(upstream_status(exc), str(exc) or "Internal server error", exc.code)
