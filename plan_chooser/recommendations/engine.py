from __future__ import annotations

import logging
import math
from typing import Any, Iterable, Mapping

from ..catalog.models import Plan
from .config import DEFAULT_RECOMMENDATION_CONFIG, RecommendationConfig
from .elimination import filter_plans
from .models import (
    ComparisonResult,
    Driver,
    RecommendationResponse,
    ScoredPlan,
    UserPreferences,
)
from .ranking import rank_scored_plans
from .scoring import score_plan
from .weights import get_weight_table

logger = logging.getLogger(__name__)

CATEGORY_LABELS: dict[str, str] = {
    "hospital_cover": "Hospital cover level",
    "outpatient_cover": "Outpatient cover",
    "maternity_cover": "Maternity cover",
    "mental_health": "Mental health cover",
    "overseas_emergency": "Overseas emergency cover",
    "day_to_day": "Day-to-day benefits",
    "gp_visits": "GP visit benefit",
    "dental_optical": "Dental and optical benefits",
    "physiotherapy": "Physiotherapy benefit",
    "consultant_choice": "Choice of consultant",
    "maternity_extras": "Maternity extras",
    "budget_fit": "Plan tier fits your budget",
}


def _as_preferences(preferences: UserPreferences | Mapping[str, Any]) -> UserPreferences:
    if isinstance(preferences, UserPreferences):
        return preferences
    return UserPreferences.model_validate(preferences)


def _relative_score(raw: float, top_raw: float) -> int:
    if top_raw <= 0:
        return 0
    # halves round up
    return max(0, min(100, math.floor(raw / top_raw * 100 + 0.5)))


def top_drivers(scored: ScoredPlan, limit: int = 3) -> list[Driver]:
    """Highest-scoring breakdown entries. Zero-point entries never count as drivers."""
    positive = [c for c in scored.breakdown if c.points > 0]
    # stable sort keeps rule order among equal points
    positive.sort(key=lambda c: -c.points)
    return [Driver(category=c.category, points=c.points) for c in positive[:limit]]


def _reasons(drivers: list[Driver]) -> list[str]:
    return [
        f"{CATEGORY_LABELS.get(d.category, d.category)} matches your answers (+{d.points:g} pts)"
        for d in drivers
    ]


def trade_off_text(best: ScoredPlan, runner_up: ScoredPlan, closeness_threshold: float) -> str:
    """Describe why *best* is ahead of *runner_up*."""
    name = runner_up.plan.plan_name
    gap = round(best.total_score - runner_up.total_score, 2)
    if gap > closeness_threshold:
        return f"vs {name}: {gap:g} points higher"

    lead = f"vs {name}: scores within {closeness_threshold:g} points"
    best_c = best.plan.completeness_score
    other_c = runner_up.plan.completeness_score
    if best_c != other_c:
        return f"{lead}; ranked higher on verified plan data ({best_c:.0%} vs {other_c:.0%} complete)"
    if len(best.verification_flags) != len(runner_up.verification_flags):
        return (
            f"{lead}; fewer details to verify "
            f"({len(best.verification_flags)} vs {len(runner_up.verification_flags)})"
        )
    return f"{lead}; otherwise equivalent"


def _build_results(
    ranked: list[ScoredPlan], top_n: int, config: RecommendationConfig,
) -> list[ComparisonResult]:
    top = ranked[:top_n]
    top_raw = top[0].total_score
    results: list[ComparisonResult] = []
    for index, item in enumerate(top):
        drivers = top_drivers(item, config.max_drivers)
        trade_off = None
        if index == 0 and len(ranked) > 1:
            trade_off = trade_off_text(item, ranked[1], config.closeness_threshold)
        results.append(
            ComparisonResult(
                rank=index + 1,
                plan=item.plan,
                raw_score=item.total_score,
                relative_score=_relative_score(item.total_score, top_raw),
                top_drivers=drivers,
                reasons=_reasons(drivers),
                trade_off_vs_runner_up=trade_off,
                verification_needed=bool(item.verification_flags),
                verification_flags=list(item.verification_flags),
                completeness_score=item.plan.completeness_score,
            )
        )
    return results


def recommend_with_summary(
    all_plans: Iterable[Plan],
    preferences: UserPreferences | Mapping[str, Any],
    top_n: int = DEFAULT_RECOMMENDATION_CONFIG.top_n,
    config: RecommendationConfig = DEFAULT_RECOMMENDATION_CONFIG,
    weight_version: str | None = None,
) -> RecommendationResponse:
    """
    Eliminate, score, rank and explain plans for one set of answers.

    Steps:
    - Drop plans that explicitly exclude a hard requirement.
    - Score each survivor independently against the weight table.
    - Order by score bands, completeness, open flags and name.
    - Keep the first ``top_n`` and derive relative scores and drivers.
    """
    if top_n < 1:
        raise ValueError("top_n must be at least 1")
    prefs = _as_preferences(preferences)
    version = weight_version or config.weight_version
    weights = get_weight_table(version)

    plans = list(all_plans)

    # --- Hard filters ---
    candidates = filter_plans(plans, prefs)
    if not candidates:
        logger.info("No plans survived elimination (%d in catalog)", len(plans))
        return RecommendationResponse(
            results=[],
            total_plans=len(plans),
            total_candidates=0,
            eliminated=len(plans),
            weight_version=version,
        )

    # --- Scoring ---
    scored = [score_plan(plan, prefs, weights) for plan in candidates]

    # --- Ranking ---
    ranked = rank_scored_plans(scored, config.closeness_threshold)
    results = _build_results(ranked, top_n, config)
    logger.info(
        "Recommended %d of %d candidates; top pick %s (%.2f)",
        len(results), len(candidates), results[0].plan.plan_id, results[0].raw_score,
    )
    return RecommendationResponse(
        results=results,
        total_plans=len(plans),
        total_candidates=len(candidates),
        eliminated=len(plans) - len(candidates),
        weight_version=version,
    )


def recommend(
    all_plans: Iterable[Plan],
    preferences: UserPreferences | Mapping[str, Any],
    top_n: int = DEFAULT_RECOMMENDATION_CONFIG.top_n,
    config: RecommendationConfig = DEFAULT_RECOMMENDATION_CONFIG,
    weight_version: str | None = None,
) -> list[ComparisonResult]:
    """Ranked, explained results best first. Empty when nothing survives."""
    return recommend_with_summary(all_plans, preferences, top_n, config, weight_version).results
