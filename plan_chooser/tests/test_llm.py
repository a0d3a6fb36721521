import json
from unittest.mock import MagicMock, patch

from plan_chooser.catalog.models import Plan
from plan_chooser.llm.config import LLMConfig
from plan_chooser.llm.groq_client import _build_user_message, explain_recommendations
from plan_chooser.recommendations.engine import recommend
from plan_chooser.recommendations.models import UserPreferences

SAMPLE_PLANS = [
    Plan(plan_id="vhi-a", insurer="VHI", plan_name="Plan A", plan_tier="MID",
         hospital_cover="PRIVATE", maternity_cover=True),
    Plan(plan_id="laya-b", insurer="Laya Healthcare", plan_name="Plan B", plan_tier="HIGH",
         hospital_cover=None, maternity_cover=True),
]

SAMPLE_PREFERENCES = UserPreferences(hospital_level="PRIVATE", maternity_needed=True)

SAMPLE_RESULTS = recommend(SAMPLE_PLANS, SAMPLE_PREFERENCES)

ENABLED_CONFIG = LLMConfig(api_key="test-key", enabled=True)
DISABLED_CONFIG = LLMConfig(api_key="test-key", enabled=False)


def _mock_groq_response(content: str) -> MagicMock:
    message = MagicMock()
    message.content = content
    choice = MagicMock()
    choice.message = message
    response = MagicMock()
    response.choices = [choice]
    return response


@patch("plan_chooser.llm.groq_client.Groq")
def test_explain_recommendations_returns_reasons(mock_groq_cls):
    llm_response = json.dumps({
        "explanations": [
            {"plan_id": "vhi-a", "reason": "Private hospital cover with maternity included."},
            {"plan_id": "laya-b", "reason": "Covers maternity; check its hospital level."},
        ]
    })
    mock_groq_cls.return_value.chat.completions.create.return_value = _mock_groq_response(llm_response)

    result = explain_recommendations(SAMPLE_PREFERENCES, SAMPLE_RESULTS, config=ENABLED_CONFIG)

    assert result["vhi-a"] == "Private hospital cover with maternity included."
    assert result["laya-b"] == "Covers maternity; check its hospital level."


@patch("plan_chooser.llm.groq_client.Groq")
def test_explain_recommendations_ignores_unknown_plans(mock_groq_cls):
    llm_response = json.dumps({
        "explanations": [
            {"plan_id": "made-up", "reason": "Not a real plan."},
            {"plan_id": "vhi-a", "reason": ""},
        ]
    })
    mock_groq_cls.return_value.chat.completions.create.return_value = _mock_groq_response(llm_response)

    assert explain_recommendations(SAMPLE_PREFERENCES, SAMPLE_RESULTS, config=ENABLED_CONFIG) == {}


@patch("plan_chooser.llm.groq_client.Groq")
def test_explain_recommendations_fallback_on_api_error(mock_groq_cls):
    mock_groq_cls.return_value.chat.completions.create.side_effect = Exception("API timeout")

    result = explain_recommendations(SAMPLE_PREFERENCES, SAMPLE_RESULTS, config=ENABLED_CONFIG)

    assert result == {}


@patch("plan_chooser.llm.groq_client.Groq")
def test_explain_recommendations_fallback_on_bad_json(mock_groq_cls):
    mock_groq_cls.return_value.chat.completions.create.return_value = _mock_groq_response("not json")

    result = explain_recommendations(SAMPLE_PREFERENCES, SAMPLE_RESULTS, config=ENABLED_CONFIG)

    assert result == {}


@patch("plan_chooser.llm.groq_client.Groq")
def test_explain_recommendations_disabled(mock_groq_cls):
    result = explain_recommendations(SAMPLE_PREFERENCES, SAMPLE_RESULTS, config=DISABLED_CONFIG)

    assert result == {}
    mock_groq_cls.assert_not_called()


@patch("plan_chooser.llm.groq_client.Groq")
def test_explain_recommendations_without_key_or_results(mock_groq_cls):
    assert explain_recommendations(SAMPLE_PREFERENCES, SAMPLE_RESULTS, config=LLMConfig(api_key="")) == {}
    assert explain_recommendations(SAMPLE_PREFERENCES, [], config=ENABLED_CONFIG) == {}
    mock_groq_cls.assert_not_called()


def test_user_message_lists_answers_and_unverified_fields():
    message = _build_user_message(SAMPLE_PREFERENCES.answered(), SAMPLE_RESULTS)
    assert "- hospital_level: PRIVATE" in message
    assert "| 1 | vhi-a | VHI | Plan A |" in message
    assert "Hospital cover not verified" in message
