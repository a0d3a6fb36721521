from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable

from ..catalog.models import FIELD_LABELS, HOSPITAL_COVER_ORDER, Plan
from .models import UserPreferences

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HardRequirement:
    preference: str
    plan_field: str


# A plan is dropped only when the user needs the benefit and the plan
# explicitly excludes it. Unknown (None) never eliminates.
HARD_REQUIREMENTS: tuple[HardRequirement, ...] = (
    HardRequirement(preference="maternity_needed", plan_field="maternity_cover"),
    HardRequirement(preference="mental_health_cover", plan_field="mental_health"),
    HardRequirement(preference="overseas_coverage", plan_field="overseas_emergency"),
)

# One level below the requested hospital cover still earns half points when
# scoring; two or more levels below is a definite mismatch.
HOSPITAL_SHORTFALL_LIMIT = 2


def hospital_shortfall(offered: str | None, wanted: str | None) -> int:
    """Levels by which *offered* falls short of *wanted*. 0 when either is unknown."""
    if offered not in HOSPITAL_COVER_ORDER or wanted not in HOSPITAL_COVER_ORDER:
        return 0
    return max(0, HOSPITAL_COVER_ORDER.index(wanted) - HOSPITAL_COVER_ORDER.index(offered))


def elimination_reason(plan: Plan, preferences: UserPreferences) -> str | None:
    """Return why *plan* fails a hard requirement, or None if it survives."""
    if hospital_shortfall(plan.hospital_cover, preferences.hospital_level) >= HOSPITAL_SHORTFALL_LIMIT:
        return f"Hospital cover is {plan.hospital_cover}, {preferences.hospital_level} requested"
    for req in HARD_REQUIREMENTS:
        if getattr(preferences, req.preference) is not True:
            continue
        if getattr(plan, req.plan_field) is False:
            return f"{FIELD_LABELS.get(req.plan_field, req.plan_field)} not included"
    return None


def filter_plans(plans: Iterable[Plan], preferences: UserPreferences) -> list[Plan]:
    """Drop plans that definitively fail a hard requirement. Input order is kept."""
    kept: list[Plan] = []
    dropped = 0
    for plan in plans:
        if elimination_reason(plan, preferences) is None:
            kept.append(plan)
        else:
            dropped += 1
    logger.info("Elimination kept %d plans, dropped %d", len(kept), dropped)
    return kept
