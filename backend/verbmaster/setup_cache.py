"""
Context cache setup.

Uploads the GCSE Spanish reference guide to the Gemini Files API, creates a
context cache bound to it and records the cache name as GEMINI_CACHE_NAME in
.env, where the API server picks it up on its next start.

Usage: verbmaster-setup-cache [path-to-guide] [--env-file .env] [--model NAME]
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
from pathlib import Path
from typing import Dict, Optional, Sequence

from dotenv import dotenv_values, set_key

from .gemini_client import GeminiClient, GeminiError
from .log import configure_logging
from .prompts import REFERENCE_GUIDE_SYSTEM_PROMPT
from .settings import settings

logger = logging.getLogger(__name__)

DEFAULT_GUIDE_PATH = Path("LLM_GCSE_Spanish_Reference_Guide.txt")
CACHE_TTL_SECONDS = 86400
CACHE_DISPLAY_NAME = "CCEA_Spanish_Reference_Guide"
GUIDE_MIME_TYPE = "text/plain"
PLACEHOLDER_KEY = "YOUR_KEY_HERE"


class SetupError(RuntimeError):
	pass


def read_api_key(env_path: Path) -> str:
	values: Dict[str, Optional[str]] = dotenv_values(env_path) if env_path.exists() else {}
	api_key = values.get("GEMINI_API_KEY") or os.getenv("GEMINI_API_KEY")
	if not api_key or api_key == PLACEHOLDER_KEY:
		raise SetupError(f"GEMINI_API_KEY not set in {env_path}")
	return api_key


def write_cache_name(env_path: Path, cache_name: str) -> None:
	env_path.touch(exist_ok=True)
	set_key(str(env_path), "GEMINI_CACHE_NAME", cache_name, quote_mode="never")


async def create_reference_cache(client: GeminiClient, guide_path: Path) -> Dict[str, object]:
	print("Uploading reference guide to Gemini Files API...")
	uploaded = await client.upload_file(guide_path, mime_type=GUIDE_MIME_TYPE, display_name=guide_path.name)
	print(f"File uploaded: {uploaded.get('name')}")
	logger.info("cache_setup_file_uploaded", extra={"file": uploaded.get("name")})
	if not uploaded.get("uri"):
		raise SetupError(f"Files API returned no URI for {guide_path}")

	print("Creating context cache...")
	cache = await client.create_cache(
		file_uri=str(uploaded["uri"]),
		mime_type=str(uploaded.get("mimeType") or GUIDE_MIME_TYPE),
		system_instruction=REFERENCE_GUIDE_SYSTEM_PROMPT,
		ttl_seconds=CACHE_TTL_SECONDS,
		display_name=CACHE_DISPLAY_NAME,
	)
	print(f"Cache created: {cache['name']}")
	print(f"  Expires: {cache.get('expireTime', 'unknown')}")
	logger.info("cache_setup_cache_created", extra={"cache": cache["name"], "model": client.model})
	return cache


async def setup_cache(guide_path: Path, env_path: Path, *, model: Optional[str] = None, client: Optional[GeminiClient] = None) -> str:
	api_key = read_api_key(env_path)
	print("API key found")

	if not guide_path.is_file():
		raise SetupError(f"Reference guide not found at: {guide_path}")
	print(f"Reference guide found ({guide_path.stat().st_size / 1024:.1f} KB)")

	owns_client = client is None
	if client is None:
		client = GeminiClient(api_key, model=model or settings.gemini_model)
	try:
		cache = await create_reference_cache(client, guide_path)
	finally:
		if owns_client:
			await client.aclose()

	cache_name = str(cache["name"])
	write_cache_name(env_path, cache_name)
	print(f"Written GEMINI_CACHE_NAME to {env_path}")
	print(f"Done. Restart the API server to pick up the cache (TTL {CACHE_TTL_SECONDS // 60} minutes).")
	print("Re-run this command when the cache expires.")
	return cache_name


def main(argv: Optional[Sequence[str]] = None) -> int:
	parser = argparse.ArgumentParser(description="Create the Gemini context cache for the GCSE reference guide.")
	parser.add_argument("guide", nargs="?", type=Path, default=DEFAULT_GUIDE_PATH, help="path to the reference guide (.txt)")
	parser.add_argument("--env-file", type=Path, default=Path(".env"))
	parser.add_argument("--model", default=None, help="model the cache is created for (default: GEMINI_MODEL)")
	args = parser.parse_args(argv)
	configure_logging("WARNING")

	print("CCEA Spanish Verb Master - Context Cache Setup")
	try:
		asyncio.run(setup_cache(args.guide, args.env_file.resolve(), model=args.model))
	except (SetupError, GeminiError) as exc:
		print(f"Error: {exc}")
		logger.error("cache_setup_failed", extra={"error": str(exc)})
		return 1
	return 0


if __name__ == "__main__":
	raise SystemExit(main())
