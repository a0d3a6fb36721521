from __future__ import annotations

import pytest

from plan_chooser.adaptive.questions import (
    QUESTION_BANK,
    all_of,
    any_of,
    is_true,
    preferences_from_answers,
    validate_answer,
)
from plan_chooser.catalog.models import Plan
from plan_chooser.recommendations.models import UserPreferences


def test_bank_has_twelve_unique_questions():
    keys = [q.key for q in QUESTION_BANK]
    assert len(keys) == 12
    assert len(set(keys)) == 12


def test_every_question_sets_a_preference_field():
    for question in QUESTION_BANK:
        assert question.preference in UserPreferences.model_fields
        for option in question.options:
            prefs = UserPreferences(**{question.preference: option.preference_value})
            assert getattr(prefs, question.preference) == option.preference_value


def test_preferences_from_answers():
    prefs = preferences_from_answers({
        "maternityNeeded": "YES",
        "hospitalLevel": "PRIVATE",
        "gpVisits": "NO",
    })
    assert prefs.maternity_needed is True
    assert prefs.hospital_level == "PRIVATE"
    assert prefs.gp_visits is False
    assert prefs.outpatient_cover is None


def test_preferences_from_unknown_answer_raises():
    with pytest.raises(ValueError):
        preferences_from_answers({"gpVisits": "SOMETIMES"})
    with pytest.raises(ValueError):
        preferences_from_answers({"petCover": "YES"})


def test_validate_answer_returns_the_option():
    option = validate_answer("gpVisits", "NO")
    assert option.preference_value is False
    assert option.matches(Plan(plan_id="p", insurer="VHI", plan_name="P", plan_tier="MID", gp_visits=False))
    with pytest.raises(ValueError):
        validate_answer("gpVisits", "SOMETIMES")


def test_combinators_propagate_unknown():
    plan = Plan(plan_id="p", insurer="VHI", plan_name="P", plan_tier="MID", dental_cover=True)
    assert all_of(is_true("dental_cover"), is_true("optical_cover"))(plan) is None
    assert any_of(is_true("dental_cover"), is_true("optical_cover"))(plan) is True

    no_dental = plan.model_copy(update={"dental_cover": False})
    assert all_of(is_true("dental_cover"), is_true("optical_cover"))(no_dental) is False
    assert any_of(is_true("dental_cover"), is_true("optical_cover"))(no_dental) is None
