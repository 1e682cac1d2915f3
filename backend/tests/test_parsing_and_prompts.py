from __future__ import annotations

import json
import logging

import pytest

from verbmaster.catalog import VERBS, verb_labels
from verbmaster.errors import VerbMasterHTTPError
from verbmaster.log import JsonFormatter
from verbmaster.prompts import build_explanation_prompt, build_question_prompt
from verbmaster.routers.verbs import parse_explanation, strip_code_fences

from conftest import SER_CARD


@pytest.mark.parametrize(
    "raw",
    [
        '{"a": 1}',
        '```json\n{"a": 1}\n```',
        '```\n{"a": 1}\n```',
        '  ```JSON\n{"a": 1}```  ',
    ],
)
def test_strip_code_fences(raw) -> None:
    assert json.loads(strip_code_fences(raw)) == {"a": 1}


def test_parse_explanation_coerces_values_to_text() -> None:
    card = parse_explanation(json.dumps({**SER_CARD, "conjugation": 7}))

    assert card.conjugation == "7"
    assert card.exampleSentence == SER_CARD["exampleSentence"]


@pytest.mark.parametrize(
    "raw, detail, code",
    [
        ("", "Empty response from AI", "empty_response"),
        ("   ", "Empty response from AI", "empty_response"),
        ("not json", "Invalid AI response structure", "invalid_response"),
        ("[1, 2]", "Invalid AI response structure", "invalid_response"),
        (json.dumps({**SER_CARD, "contextNote": "  "}), "Invalid AI response structure", "invalid_response"),
        (json.dumps({k: v for k, v in SER_CARD.items() if k != "conjugation"}), "Invalid AI response structure", "invalid_response"),
        (json.dumps({**SER_CARD, "conjugation": 0}), "Invalid AI response structure", "invalid_response"),
        (json.dumps({**SER_CARD, "contextNote": False}), "Invalid AI response structure", "invalid_response"),
        (json.dumps({**SER_CARD, "englishTranslation": None}), "Invalid AI response structure", "invalid_response"),
    ],
)
def test_parse_explanation_rejects_bad_replies(raw, detail, code) -> None:
    with pytest.raises(VerbMasterHTTPError) as excinfo:
        parse_explanation(raw)

    assert excinfo.value.status_code == 502
    assert excinfo.value.detail == detail
    assert excinfo.value.code == code


def test_explanation_prompt_carries_all_parameters() -> None:
    prompt = build_explanation_prompt(
        spanish="ir",
        english="to go",
        category="irregular",
        tense="Future",
        person="Nosotros (We)",
        theme="Travel and tourism",
        tier="Foundation",
        seed=42,
    )

    for fragment in ("ir (to go)", "irregular", "Future", "Nosotros (We)", "Travel and tourism", "Foundation", "42"):
        assert fragment in prompt
    for field in SER_CARD:
        assert f'"{field}"' in prompt


def test_explanation_prompt_seed_varies_by_default() -> None:
    prompt = build_explanation_prompt(
        spanish="ir", english="to go", category="irregular", tense="Future", person="Yo (I)", theme="x", tier="Higher"
    )

    assert "Random seed for variety: " in prompt


def test_question_prompt_includes_card_context() -> None:
    prompt = build_question_prompt(
        question="Why soy?",
        spanish="ser",
        english="to be",
        tense="Present",
        current_sentence="Soy alto.",
        current_translation="I am tall.",
    )

    assert '"ser" (to be) in the Present tense' in prompt
    assert '"Soy alto."' in prompt
    assert '"I am tall."' in prompt
    assert '"Why soy?"' in prompt


def test_verb_catalogue_is_unique_and_labelled() -> None:
    spanish = [verb.spanish for verb in VERBS]

    assert len(spanish) == len(set(spanish))
    assert VERBS[0].spanish == "ser"
    assert verb_labels()[0] == f"SER - {VERBS[0].english}"


def test_json_formatter_puts_extras_under_context() -> None:
    record = logging.LogRecord("verbmaster.test", logging.INFO, __file__, 1, "verb_question_answered", None, None)
    record.verb = "ser"

    payload = json.loads(JsonFormatter().format(record))

    assert payload["message"] == "verb_question_answered"
    assert payload["level"] == "INFO"
    assert payload["context"] == {"verb": "ser"}
