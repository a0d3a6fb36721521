from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..catalog.models import HospitalCover, Plan


class UserPreferences(BaseModel):
    """One user's quiz answers. Absent or ``None`` means the question was not answered."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        strict=True,
        extra="forbid",
        frozen=True,
    )

    adults: int | None = Field(default=None, ge=0)
    children: int | None = Field(default=None, ge=0)
    dependents: int | None = Field(default=None, ge=0)

    hospital_level: HospitalCover | None = None
    day_to_day_benefits: Literal["ESSENTIAL", "IMPORTANT", "NOT_NEEDED"] | None = None
    gp_visits: bool | None = None
    dental_optical: Literal["BOTH", "DENTAL", "OPTICAL", "NONE"] | None = None
    physiotherapy: bool | None = None
    maternity_needed: bool | None = None
    maternity_extras: Literal["ENHANCED", "BASIC", "NOT_APPLICABLE"] | None = None
    mental_health_cover: bool | None = None
    outpatient_cover: bool | None = None
    consultant_choice: Literal["IMPORTANT", "SOMEWHAT", "NOT_IMPORTANT"] | None = None
    overseas_coverage: bool | None = None
    budget_priority: Literal["LOWEST", "VALUE", "PREMIUM"] | None = None

    def answered(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


@dataclass(frozen=True)
class ScoreComponent:
    category: str
    points: float


@dataclass(frozen=True)
class ScoredPlan:
    plan: Plan
    total_score: float
    breakdown: tuple[ScoreComponent, ...] = ()
    verification_flags: tuple[str, ...] = field(default_factory=tuple)

    def points_for(self, category: str) -> float | None:
        for component in self.breakdown:
            if component.category == category:
                return component.points
        return None


class Driver(BaseModel):
    category: str
    points: float


class ComparisonResult(BaseModel):
    rank: int
    plan: Plan
    raw_score: float
    relative_score: int = Field(..., ge=0, le=100)
    top_drivers: list[Driver] = Field(default_factory=list, max_length=3)
    reasons: list[str] = Field(default_factory=list)
    trade_off_vs_runner_up: str | None = None
    verification_needed: bool
    verification_flags: list[str] = Field(default_factory=list)
    completeness_score: float


class RecommendationRequest(BaseModel):
    preferences: UserPreferences = Field(default_factory=UserPreferences)
    top_n: int = Field(default=5, ge=1, le=20)
    weight_version: str | None = Field(
        default=None, description="Named weight table; defaults to the configured version",
    )
    explain: bool = Field(default=False, description="Ask the LLM for a one-line summary per plan")


class RecommendationResponse(BaseModel):
    results: list[ComparisonResult]
    total_plans: int
    total_candidates: int
    eliminated: int
    weight_version: str
    explanations: dict[str, str] = Field(default_factory=dict)
