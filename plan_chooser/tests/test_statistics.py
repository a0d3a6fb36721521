from __future__ import annotations

import pytest

from plan_chooser.adaptive.questions import QUESTION_BANK
from plan_chooser.adaptive.statistics import QuestionStatisticsStore
from plan_chooser.catalog.data_store import load_catalog
from plan_chooser.catalog.models import Plan


def _plans():
    return [
        Plan(plan_id=str(i), insurer="VHI", plan_name=str(i), plan_tier="MID", gp_visits=i < 3)
        for i in range(4)
    ]


def test_questions_are_seeded_at_zero_power():
    store = QuestionStatisticsStore()
    questions = store.questions()
    assert len(questions) == len(QUESTION_BANK)
    assert all(q.discriminative_power == 0.0 for q in questions)
    assert all(q.total_responses == 0 for q in questions)


def test_refresh_recomputes_power_from_plans():
    store = QuestionStatisticsStore()
    store.refresh(_plans())
    assert store.get("gpVisits").discriminative_power == pytest.approx(0.5)

    stats = {s.answer_value: s for s in store.answer_stats("gpVisits")}
    assert stats["YES"].plans_matching == 3
    assert stats["YES"].plans_not_matching == 1
    assert stats["NO"].plans_matching == 1
    assert stats["YES"].discriminative_power == pytest.approx(0.5)


def test_refresh_on_bundled_catalog_orders_questions():
    store = QuestionStatisticsStore()
    store.refresh(load_catalog().plans)
    snapshot = store.ranking_snapshot()
    assert sorted(snapshot.values()) == list(range(1, len(QUESTION_BANK) + 1))
    best = min(snapshot, key=snapshot.get)
    assert store.get(best).discriminative_power == max(q.discriminative_power for q in store.questions())


def test_response_counters():
    store = QuestionStatisticsStore()
    store.record_shown("gpVisits")
    store.record_shown("gpVisits")
    store.record_response("gpVisits", "YES", plans_remaining=10)
    store.record_response("gpVisits", "NO", plans_remaining=4)
    store.record_dropoff("gpVisits")

    question = store.get("gpVisits")
    assert question.times_shown == 2
    assert question.total_responses == 2
    assert question.times_dropped == 1
    assert question.dropoff_rate == 0.5
    assert question.avg_plans_remaining == pytest.approx(7.0)

    stats = {s.answer_value: s.times_selected for s in store.answer_stats("gpVisits")}
    assert stats == {"YES": 1, "NO": 1}


def test_responses_do_not_change_power():
    store = QuestionStatisticsStore()
    store.record_response("gpVisits", "YES")
    assert store.get("gpVisits").discriminative_power == 0.0


def test_unknown_question_or_answer_raises():
    store = QuestionStatisticsStore()
    with pytest.raises(ValueError):
        store.record_shown("petCover")
    with pytest.raises(ValueError):
        store.record_response("gpVisits", "SOMETIMES")


def test_deactivated_questions_stay_listed():
    store = QuestionStatisticsStore()
    store.set_active("budgetPriority", False)
    assert store.get("budgetPriority").is_active is False
