from __future__ import annotations

import os
from dataclasses import dataclass, field


def _default_weight_version() -> str:
    return os.getenv("SCORING_WEIGHT_VERSION", "canonical")


@dataclass(frozen=True)
class RecommendationConfig:
    top_n: int = 5
    closeness_threshold: float = 5.0  # points; scores this close are treated as tied
    max_drivers: int = 3
    weight_version: str = field(default_factory=_default_weight_version)


DEFAULT_RECOMMENDATION_CONFIG = RecommendationConfig()
