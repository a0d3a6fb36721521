from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Sequence

# Fixed, ordered key-field set used for the data-quality score.
KEY_FIELDS: tuple[str, ...] = (
    "hospital_cover",
    "outpatient_cover",
    "gp_visits",
    "maternity_cover",
    "mental_health",
    "overseas_emergency",
    "semi_private_room",
    "private_room",
    "excess_required",
)


@dataclass(frozen=True)
class Completeness:
    null_key_count: int
    known_key_count: int
    completeness_score: float


def _field_value(plan: Any, field: str) -> Any:
    if isinstance(plan, Mapping):
        return plan.get(field)
    return getattr(plan, field, None)


def compute_completeness(
    plan: Any, key_fields: Sequence[str] = KEY_FIELDS,
) -> Completeness:
    """Count unknown key fields on *plan* (a model or a plain mapping).

    Absent attributes and ``None`` both count as unknown.
    """
    total = len(key_fields)
    if total == 0:
        return Completeness(null_key_count=0, known_key_count=0, completeness_score=1.0)
    nulls = sum(1 for f in key_fields if _field_value(plan, f) is None)
    return Completeness(
        null_key_count=nulls,
        known_key_count=total - nulls,
        completeness_score=(total - nulls) / total,
    )
