from __future__ import annotations

from datetime import date
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, computed_field

from .completeness import compute_completeness

HospitalCover = Literal["PUBLIC", "SEMI_PRIVATE", "PRIVATE", "HI_TECH"]
PlanTier = Literal["BASIC", "MID", "HIGH", "PREMIUM"]

HOSPITAL_COVER_ORDER: tuple[str, ...] = ("PUBLIC", "SEMI_PRIVATE", "PRIVATE", "HI_TECH")
PLAN_TIERS: tuple[str, ...] = ("BASIC", "MID", "HIGH", "PREMIUM")

# Human-readable names used in verification flags and explanations.
FIELD_LABELS: dict[str, str] = {
    "hospital_cover": "Hospital cover",
    "semi_private_room": "Semi-private room",
    "private_room": "Private room",
    "day_case": "Day-case procedures",
    "gp_visits": "GP visits",
    "dental_cover": "Dental cover",
    "optical_cover": "Optical cover",
    "physiotherapy": "Physiotherapy",
    "outpatient_cover": "Outpatient cover",
    "maternity_cover": "Maternity cover",
    "prenatal_postnatal_benefit": "Pre/post-natal benefit",
    "mental_health": "Mental health cover",
    "consultant_choice": "Consultant choice",
    "overseas_emergency": "Overseas emergency cover",
    "overseas_planned": "Planned treatment abroad",
    "cardiac_cover": "Cardiac cover",
    "cancer_cover": "Cancer cover",
    "excess_required": "Excess",
    "plan_tier": "Plan tier",
}


class Plan(BaseModel):
    """One insurer product. ``None`` on a benefit field means unknown, not excluded."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    plan_id: str = Field(..., min_length=1)
    insurer: str = Field(..., min_length=1)
    plan_name: str = Field(..., min_length=1)
    plan_tier: PlanTier

    hospital_cover: HospitalCover | None = None
    semi_private_room: bool | None = None
    private_room: bool | None = None
    day_case: bool | None = None

    gp_visits: bool | None = None
    gp_visit_cost: float | None = None
    dental_cover: bool | None = None
    optical_cover: bool | None = None
    physiotherapy: bool | None = None
    physio_cost: float | None = None

    outpatient_cover: bool | None = None
    specialist_visit_cost: float | None = None

    maternity_cover: bool | None = None
    maternity_waiting_months: int | None = None
    prenatal_postnatal_benefit: float | None = None
    menopause_benefit: float | None = None

    mental_health: bool | None = None
    consultant_choice: bool | None = None

    overseas_emergency: bool | None = None
    overseas_planned: bool | None = None

    cardiac_cover: bool | None = None
    cancer_cover: bool | None = None

    excess_required: bool | None = None
    excess_amount_text: str | None = None
    estimated_annual_cost: float | None = None

    regulatory_notes: str | None = None
    source_url: str | None = None
    last_verified: date | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def null_key_count(self) -> int:
        return compute_completeness(self).null_key_count

    @computed_field  # type: ignore[prop-decorator]
    @property
    def known_key_count(self) -> int:
        return compute_completeness(self).known_key_count

    @computed_field  # type: ignore[prop-decorator]
    @property
    def completeness_score(self) -> float:
        return compute_completeness(self).completeness_score
