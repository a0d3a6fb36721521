from __future__ import annotations

import os
from dataclasses import dataclass, field


def _env_int(name: str, default: int) -> int:
    return int(os.getenv(name, str(default)))


@dataclass(frozen=True)
class AdaptiveConfig:
    base_weight: float = 1.0
    info_gain_weight: float = 0.5
    popularity_weight: float = 0.1
    friction_weight: float = 0.3


@dataclass(frozen=True)
class StoppingPolicy:
    """When the caller should end a quiz early. The ranker never enforces this."""

    max_questions: int = field(default_factory=lambda: _env_int("QUIZ_MAX_QUESTIONS", 12))
    min_remaining_plans: int = field(default_factory=lambda: _env_int("QUIZ_MIN_REMAINING_PLANS", 3))

    def should_stop(self, questions_answered: int, plans_remaining: int | None = None) -> bool:
        if questions_answered >= self.max_questions:
            return True
        return plans_remaining is not None and plans_remaining <= self.min_remaining_plans


DEFAULT_ADAPTIVE_CONFIG = AdaptiveConfig()
DEFAULT_STOPPING_POLICY = StoppingPolicy()
