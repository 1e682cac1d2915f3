from __future__ import annotations
import logging
from pathlib import Path
import httpx
from typing import Any, Dict, List, Optional
from .settings import settings

logger = logging.getLogger(__name__)

RATE_LIMITED = "rate_limited"
UPSTREAM_UNAVAILABLE = "upstream_unavailable"
UPSTREAM_TIMEOUT = "upstream_timeout"
UPSTREAM_ERROR = "upstream_error"
INVALID_RESPONSE = "invalid_response"

RETRYABLE_CODES = frozenset({RATE_LIMITED, UPSTREAM_UNAVAILABLE, UPSTREAM_TIMEOUT})


class GeminiError(RuntimeError):
	"""Raised when a Gemini call fails; ``code`` classifies the failure for callers."""

	def __init__(self, message: str, *, code: str = UPSTREAM_ERROR, upstream_status: Optional[int] = None) -> None:
		super().__init__(message)
		self.code = code
		self.upstream_status = upstream_status

	@property
	def retryable(self) -> bool:
		return self.code in RETRYABLE_CODES


def _classify_status(status_code: int, body: str) -> str:
	if status_code == 429 or "RESOURCE_EXHAUSTED" in body:
		return RATE_LIMITED
	if status_code >= 500:
		return UPSTREAM_UNAVAILABLE
	return UPSTREAM_ERROR


def _error_message(response: httpx.Response) -> str:
	try:
		data = response.json()
		message = data["error"]["message"]
	except Exception:
		message = response.text or response.reason_phrase
	return f"Gemini request failed ({response.status_code}): {message}"


def _text_part(text: str) -> Dict[str, Any]:
	return {"parts": [{"text": text}]}


class GeminiClient:
	def __init__(
		self,
		api_key: Optional[str] = None,
		*,
		base_url: Optional[str] = None,
		model: Optional[str] = None,
		transport: Optional[httpx.AsyncBaseTransport] = None,
	) -> None:
		self.api_key = api_key or settings.gemini_api_key
		if not self.api_key:
			raise ValueError("GEMINI_API_KEY is not configured")
		self.model = model or settings.gemini_model
		# Google AI Studio (Generative Language API)
		self.base_url = (base_url or settings.gemini_base_url).rstrip("/")
		self.upload_url = self.base_url.replace("googleapis.com/", "googleapis.com/upload/", 1)
		# No application timeout: a hung upstream call waits until the caller gives up
		self._client = httpx.AsyncClient(timeout=None, transport=transport)

	async def generate(
		self,
		prompt: str,
		*,
		system_instruction: Optional[str] = None,
		cached_content: Optional[str] = None,
		temperature: Optional[float] = None,
		max_output_tokens: Optional[int] = None,
	) -> str:
		payload: Dict[str, Any] = {"contents": [{"role": "user", **_text_part(prompt)}]}
		generation_config: Dict[str, Any] = {}
		if temperature is not None:
			generation_config["temperature"] = temperature
		if max_output_tokens is not None:
			generation_config["maxOutputTokens"] = max_output_tokens
		if generation_config:
			payload["generationConfig"] = generation_config
		# A cache already carries its own system instruction
		if cached_content:
			payload["cachedContent"] = cached_content
		elif system_instruction:
			payload["systemInstruction"] = _text_part(system_instruction)

		data = await self._request_json("POST", f"{self.base_url}/models/{self.model}:generateContent", json=payload)
		return self._extract_text(data)

	@staticmethod
	def _extract_text(data: Dict[str, Any]) -> str:
		candidates = data.get("candidates") or []
		if not candidates:
			return ""
		parts: List[Dict[str, Any]] = (candidates[0].get("content") or {}).get("parts") or []
		return "".join(str(part["text"]) for part in parts if "text" in part).strip()

	async def upload_file(self, path: Path, *, mime_type: str = "text/plain", display_name: Optional[str] = None) -> Dict[str, Any]:
		"""Upload ``path`` through the Files API resumable protocol and return the file resource."""
		content = path.read_bytes()
		start_headers = {
			"X-Goog-Upload-Protocol": "resumable",
			"X-Goog-Upload-Command": "start",
			"X-Goog-Upload-Header-Content-Length": str(len(content)),
			"X-Goog-Upload-Header-Content-Type": mime_type,
		}
		start = await self._send(
			"POST",
			f"{self.upload_url}/files",
			headers=start_headers,
			json={"file": {"display_name": display_name or path.name}},
		)
		session_url = start.headers.get("x-goog-upload-url")
		if not session_url:
			raise GeminiError("Files API did not return an upload URL", code=INVALID_RESPONSE)

		finish_headers = {
			"Content-Length": str(len(content)),
			"X-Goog-Upload-Offset": "0",
			"X-Goog-Upload-Command": "upload, finalize",
		}
		finished = await self._send("POST", session_url, headers=finish_headers, content=content)
		try:
			return finished.json()["file"]
		except Exception as exc:
			raise GeminiError(f"Unexpected Files API response: {finished.text}", code=INVALID_RESPONSE) from exc

	async def create_cache(
		self,
		*,
		file_uri: str,
		mime_type: str,
		system_instruction: str,
		ttl_seconds: int,
		display_name: str,
	) -> Dict[str, Any]:
		payload: Dict[str, Any] = {
			"model": f"models/{self.model}",
			"contents": [{"role": "user", "parts": [{"fileData": {"mimeType": mime_type, "fileUri": file_uri}}]}],
			"systemInstruction": _text_part(system_instruction),
			"ttl": f"{ttl_seconds}s",
			"displayName": display_name,
		}
		data = await self._request_json("POST", f"{self.base_url}/cachedContents", json=payload)
		if "name" not in data:
			raise GeminiError(f"Unexpected cache response: {data}", code=INVALID_RESPONSE)
		return data

	async def _request_json(self, method: str, url: str, **kwargs: Any) -> Dict[str, Any]:
		r = await self._send(method, url, **kwargs)
		try:
			return r.json()
		except ValueError as exc:
			raise GeminiError(f"Unexpected Gemini response: {r.text}", code=INVALID_RESPONSE) from exc

	async def _send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
		params = dict(kwargs.pop("params", None) or {})
		params["key"] = self.api_key
		try:
			r = await self._client.request(method, url, params=params, **kwargs)
			r.raise_for_status()
		except httpx.HTTPStatusError as http_err:
			response = http_err.response
			code = _classify_status(response.status_code, response.text)
			logger.warning(
				"gemini_request_failed",
				extra={"status_code": response.status_code, "code": code, "model": self.model},
			)
			raise GeminiError(_error_message(response), code=code, upstream_status=response.status_code) from http_err
		except httpx.TimeoutException as timeout_err:
			logger.warning("gemini_request_failed", extra={"code": UPSTREAM_TIMEOUT, "model": self.model})
			raise GeminiError(f"Gemini request timed out: {timeout_err}", code=UPSTREAM_TIMEOUT) from timeout_err
		except httpx.RequestError as net_err:
			logger.warning("gemini_request_failed", extra={"code": UPSTREAM_TIMEOUT, "model": self.model})
			raise GeminiError(f"Gemini request failed: {net_err}", code=UPSTREAM_TIMEOUT) from net_err
		return r

	async def aclose(self) -> None:
		await self._client.aclose()
