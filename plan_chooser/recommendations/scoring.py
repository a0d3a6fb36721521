from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping

from ..catalog.models import FIELD_LABELS, HOSPITAL_COVER_ORDER, Plan
from .models import ScoreComponent, ScoredPlan, UserPreferences
from .weights import WeightTable, get_weight_table

logger = logging.getLogger(__name__)

# (plan field value, user answer) -> fraction of the requirement met, in [0, 1]
Compare = Callable[[Any, Any], float]


def benefit_present(value: Any, answer: Any) -> float:
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, (int, float)):
        return 1.0 if value > 0 else 0.0
    return 0.0


def hospital_level_met(value: Any, answer: Any) -> float:
    """Full marks at or above the requested level, half one level below."""
    try:
        offered = HOSPITAL_COVER_ORDER.index(value)
        wanted = HOSPITAL_COVER_ORDER.index(answer)
    except ValueError:
        return 0.0
    if offered >= wanted:
        return 1.0
    if wanted - offered == 1:
        return 0.5
    return 0.0


_TIER_FIT: dict[str, dict[str, float]] = {
    "LOWEST": {"BASIC": 1.0, "MID": 0.5},
    "VALUE": {"MID": 1.0, "BASIC": 0.5, "HIGH": 0.5},
    "PREMIUM": {"HIGH": 1.0, "PREMIUM": 1.0, "MID": 0.5},
}


def tier_fit(value: Any, answer: Any) -> float:
    return _TIER_FIT.get(answer, {}).get(value, 0.0)


@dataclass(frozen=True)
class ScoringRule:
    """
    One preference dimension.

    ``fields`` maps each answer to the plan fields it is checked against and
    ``levels`` maps each answer to how strongly it is required (1.0 full,
    0.5 partial). Answers missing from ``levels`` carry no requirement.
    """

    preference: str
    category: str
    fields: Mapping[Any, tuple[str, ...]]
    levels: Mapping[Any, float]
    compare: Compare = benefit_present

    def fields_for(self, answer: Any) -> tuple[str, ...]:
        return self.fields.get(answer, ())

    def level_for(self, answer: Any) -> float:
        return self.levels.get(answer, 0.0)


def _yes(field_name: str) -> dict:
    return {"fields": {True: (field_name,)}, "levels": {True: 1.0}}


_HOSPITAL_ANSWERS = {level: ("hospital_cover",) for level in HOSPITAL_COVER_ORDER}

SCORING_RULES: tuple[ScoringRule, ...] = (
    ScoringRule(
        preference="hospital_level",
        category="hospital_cover",
        fields=_HOSPITAL_ANSWERS,
        levels={level: 1.0 for level in HOSPITAL_COVER_ORDER},
        compare=hospital_level_met,
    ),
    ScoringRule(preference="outpatient_cover", category="outpatient_cover", **_yes("outpatient_cover")),
    ScoringRule(preference="maternity_needed", category="maternity_cover", **_yes("maternity_cover")),
    ScoringRule(preference="mental_health_cover", category="mental_health", **_yes("mental_health")),
    ScoringRule(preference="overseas_coverage", category="overseas_emergency", **_yes("overseas_emergency")),
    ScoringRule(
        preference="day_to_day_benefits",
        category="day_to_day",
        fields={
            answer: ("gp_visits", "dental_cover", "optical_cover", "physiotherapy")
            for answer in ("ESSENTIAL", "IMPORTANT")
        },
        levels={"ESSENTIAL": 1.0, "IMPORTANT": 0.5},
    ),
    ScoringRule(preference="gp_visits", category="gp_visits", **_yes("gp_visits")),
    ScoringRule(
        preference="dental_optical",
        category="dental_optical",
        fields={
            "BOTH": ("dental_cover", "optical_cover"),
            "DENTAL": ("dental_cover",),
            "OPTICAL": ("optical_cover",),
        },
        levels={"BOTH": 1.0, "DENTAL": 1.0, "OPTICAL": 1.0},
    ),
    ScoringRule(preference="physiotherapy", category="physiotherapy", **_yes("physiotherapy")),
    ScoringRule(
        preference="consultant_choice",
        category="consultant_choice",
        fields={answer: ("consultant_choice",) for answer in ("IMPORTANT", "SOMEWHAT")},
        levels={"IMPORTANT": 1.0, "SOMEWHAT": 0.5},
    ),
    ScoringRule(
        preference="maternity_extras",
        category="maternity_extras",
        fields={"ENHANCED": ("prenatal_postnatal_benefit",), "BASIC": ("maternity_cover",)},
        levels={"ENHANCED": 1.0, "BASIC": 1.0},
    ),
    ScoringRule(
        preference="budget_priority",
        category="budget_fit",
        fields={answer: ("plan_tier",) for answer in _TIER_FIT},
        levels={answer: 1.0 for answer in _TIER_FIT},
        compare=tier_fit,
    ),
)


@dataclass
class _RuleOutcome:
    points: float
    unknown_fields: list[str] = field(default_factory=list)


def apply_rule(rule: ScoringRule, plan: Plan, answer: Any, weight: float) -> _RuleOutcome | None:
    """Score one rule. Returns None when the answer carries no requirement."""
    level = rule.level_for(answer)
    fields = rule.fields_for(answer)
    if level <= 0 or not fields:
        return None

    met = 0.0
    unknown: list[str] = []
    for name in fields:
        value = getattr(plan, name)
        if value is None:
            unknown.append(name)
            continue
        met += rule.compare(value, answer)
    points = round(weight * level * met / len(fields), 2)
    return _RuleOutcome(points=points, unknown_fields=unknown)


def score_plan(
    plan: Plan,
    preferences: UserPreferences | Mapping[str, Any],
    weights: WeightTable | str | None = None,
) -> ScoredPlan:
    """
    Score one plan against the user's answers.

    Unanswered preferences add nothing. An unknown plan field relevant to an
    answered requirement adds 0 points and a "<field> not verified" flag.
    ``weights`` may be a table, a version name, or None for the canonical table.
    """
    if not isinstance(preferences, UserPreferences):
        preferences = UserPreferences.model_validate(preferences)
    if weights is None or isinstance(weights, str):
        weights = get_weight_table(weights or "canonical")

    breakdown: list[ScoreComponent] = []
    flags: list[str] = []
    for rule in SCORING_RULES:
        answer = getattr(preferences, rule.preference)
        if answer is None:
            continue
        weight = float(weights.get(rule.category, 0.0))
        if weight <= 0:
            continue
        outcome = apply_rule(rule, plan, answer, weight)
        if outcome is None:
            continue
        breakdown.append(ScoreComponent(category=rule.category, points=outcome.points))
        for name in outcome.unknown_fields:
            flag = f"{FIELD_LABELS.get(name, name)} not verified"
            if flag not in flags:
                flags.append(flag)

    total = round(sum(c.points for c in breakdown), 2)
    logger.debug("Scored %s: %.2f (%d flags)", plan.plan_id, total, len(flags))
    return ScoredPlan(
        plan=plan,
        total_score=total,
        breakdown=tuple(breakdown),
        verification_flags=tuple(flags),
    )
