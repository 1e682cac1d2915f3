from __future__ import annotations

import json
from typing import Any, Callable

import pytest
from fastapi.testclient import TestClient

from verbmaster.deps import get_gemini_client
from verbmaster.main import create_app
from verbmaster.settings import Settings

SER_CARD = {
    "conjugation": "soy",
    "exampleSentence": "Soy estudiante en un instituto de Belfast.",
    "englishTranslation": "I am a student at a school in Belfast.",
    "contextNote": "Use 'soy' for permanent traits; examiners reward accurate ser/estar choice.",
}


class FakeGeminiClient:
    def __init__(self, reply: str = "", *, error: Exception | None = None) -> None:
        self.reply = reply
        self.error = error
        self.calls: list[dict[str, Any]] = []
        self.model = "gemini-2.5-flash"

    async def generate(self, prompt: str, **kwargs: Any) -> str:
        self.calls.append({"prompt": prompt, **kwargs})
        if self.error is not None:
            raise self.error
        return self.reply


def make_settings(**overrides: Any) -> Settings:
    values: dict[str, Any] = {
        "GEMINI_API_KEY": "test-key",
        "GEMINI_CACHE_NAME": None,
        "GEMINI_MODEL": "gemini-2.5-flash",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def fake_gemini() -> FakeGeminiClient:
    return FakeGeminiClient(json.dumps(SER_CARD))


@pytest.fixture
def api_client() -> Callable[..., TestClient]:
    def _build(fake: FakeGeminiClient | None = None, **settings_overrides: Any) -> TestClient:
        app = create_app(settings=make_settings(**settings_overrides))
        if fake is not None:
            app.dependency_overrides[get_gemini_client] = lambda: fake
        return TestClient(app)

    return _build
