from __future__ import annotations

import pytest

from plan_chooser.catalog.data_store import load_catalog
from plan_chooser.catalog.models import Plan
from plan_chooser.recommendations.config import RecommendationConfig
from plan_chooser.recommendations.engine import recommend, recommend_with_summary


def _plan(plan_id: str, **overrides) -> Plan:
    data = {
        "plan_id": plan_id,
        "insurer": "VHI",
        "plan_name": f"Plan {plan_id}",
        "plan_tier": "MID",
        "hospital_cover": "PRIVATE",
        "outpatient_cover": True,
        "gp_visits": True,
        "maternity_cover": True,
        "mental_health": True,
        "overseas_emergency": True,
        "semi_private_room": True,
        "private_room": True,
        "excess_required": False,
    }
    data.update(overrides)
    return Plan(**data)


PLANS = [
    _plan("full"),
    _plan("semi", hospital_cover="SEMI_PRIVATE", outpatient_cover=False),
    _plan("unknown", hospital_cover=None, outpatient_cover=None, mental_health=None),
    _plan("no-maternity", maternity_cover=False),
    _plan("basic", plan_tier="BASIC", hospital_cover="PUBLIC", outpatient_cover=False, gp_visits=False),
]

PREFERENCES = {
    "hospitalLevel": "PRIVATE",
    "outpatientCover": True,
    "maternityNeeded": True,
    "mentalHealthCover": True,
    "gpVisits": True,
}


def test_results_are_ranked_and_explained():
    results = recommend(PLANS, PREFERENCES)
    assert [r.plan.plan_id for r in results] == ["full", "semi", "unknown"]
    assert [r.rank for r in results] == [1, 2, 3]

    top = results[0]
    assert top.relative_score == 100
    assert top.raw_score == 90
    assert [d.category for d in top.top_drivers] == ["hospital_cover", "outpatient_cover", "maternity_cover"]
    assert len(top.reasons) == 3
    assert top.trade_off_vs_runner_up == "vs Plan semi: 37.5 points higher"
    assert top.verification_needed is False


def test_relative_scores_are_bounded():
    results = recommend(PLANS, PREFERENCES)
    for r in results:
        assert 0 <= r.relative_score <= 100
    assert results[1].relative_score == round(52.5 / 90 * 100)


def test_relative_score_rounds_halves_up():
    plans = [
        _plan("a", hospital_cover="HI_TECH", physiotherapy=True),
        _plan("b", hospital_cover=None, physiotherapy=True),
    ]
    results = recommend(plans, {"hospitalLevel": "HI_TECH", "physiotherapy": True})
    assert [(r.plan.plan_id, r.raw_score) for r in results] == [("a", 40.0), ("b", 5.0)]
    assert [r.relative_score for r in results] == [100, 13]


def test_trade_off_only_on_rank_one():
    results = recommend(PLANS, PREFERENCES)
    assert all(r.trade_off_vs_runner_up is None for r in results[1:])


def test_unknown_data_is_surfaced_not_hidden():
    results = recommend(PLANS, PREFERENCES)
    unknown = next(r for r in results if r.plan.plan_id == "unknown")
    assert unknown.verification_needed is True
    assert unknown.verification_flags == [
        "Hospital cover not verified",
        "Outpatient cover not verified",
        "Mental health cover not verified",
    ]


def test_drivers_exclude_zero_point_entries():
    results = recommend(PLANS, PREFERENCES)
    unknown = next(r for r in results if r.plan.plan_id == "unknown")
    assert all(d.points > 0 for d in unknown.top_drivers)
    assert len(unknown.top_drivers) <= 3


def test_summary_counts_eliminated_plans():
    summary = recommend_with_summary(PLANS, PREFERENCES, top_n=2)
    assert summary.total_plans == 5
    assert summary.total_candidates == 3
    assert summary.eliminated == 2
    assert len(summary.results) == 2
    assert summary.weight_version == "canonical"


def test_no_answers_ranks_by_data_quality():
    results = recommend(PLANS, {}, top_n=10)
    assert all(r.raw_score == 0 and r.relative_score == 0 for r in results)
    assert all(r.top_drivers == [] and r.verification_flags == [] for r in results)
    assert results[-1].plan.plan_id == "unknown"


def test_close_scores_mention_completeness():
    plans = [_plan("a", overseas_emergency=None, semi_private_room=None), _plan("b")]
    results = recommend(plans, {"hospitalLevel": "PRIVATE"})
    assert results[0].plan.plan_id == "b"
    assert "complete" in results[0].trade_off_vs_runner_up


def test_recommend_is_deterministic():
    first = [r.model_dump() for r in recommend(PLANS, PREFERENCES)]
    second = [r.model_dump() for r in recommend(list(reversed(PLANS)), PREFERENCES)]
    assert first == second


def test_empty_catalog_returns_empty_list():
    assert recommend([], PREFERENCES) == []


def test_everything_eliminated_returns_empty_list():
    plans = [_plan("a", maternity_cover=False), _plan("b", maternity_cover=False)]
    assert recommend(plans, {"maternityNeeded": True}) == []


def test_top_n_below_one_raises():
    with pytest.raises(ValueError):
        recommend(PLANS, PREFERENCES, top_n=0)


def test_weight_version_can_be_selected():
    config = RecommendationConfig(weight_version="flat_100")
    summary = recommend_with_summary(PLANS, PREFERENCES, config=config)
    assert summary.weight_version == "flat_100"
    assert summary.results[0].raw_score == 70


def test_bundled_catalog_maternity_scenario():
    catalog = load_catalog()
    results = recommend(catalog.plans, {"maternityNeeded": True}, top_n=20)
    ids = {r.plan.plan_id for r in results}
    assert len(results) == 10
    assert "vhi-public-plus" not in ids
    assert "laya-inspire-plus" in ids
