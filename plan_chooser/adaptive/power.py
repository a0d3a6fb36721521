from __future__ import annotations

import logging
from dataclasses import dataclass
from statistics import fmean
from typing import Callable, Iterable, Sequence

from ..catalog.models import Plan
from .questions import get_question

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnswerPower:
    question_key: str
    answer_value: str
    matching_count: int
    non_matching_count: int
    unknown_count: int
    total_plans: int
    discriminative_power: float


def discriminative_power(matching: int, total: int) -> float:
    """
    ``|matching - non_matching| / total`` as a fraction in [0, 1].

    An answer that fits every plan or none of them cannot narrow the field,
    so it scores 0, as does an empty catalog.
    """
    if total <= 0 or matching <= 0 or matching >= total:
        return 0.0
    non_matching = total - matching
    return abs(matching - non_matching) / total


def as_percentage(power: float) -> float:
    """Display helper; all stored and compared powers stay fractions."""
    return round(power * 100, 2)


def answer_power(question_key: str, answer_value: str, plans: Sequence[Plan]) -> AnswerPower:
    """Count how *answer_value* splits *plans*. Plans with unknown data count as non-matching."""
    option = get_question(question_key).option(answer_value)
    matching = 0
    unknown = 0
    for plan in plans:
        result = option.matches(plan)
        if result is True:
            matching += 1
        elif result is None:
            unknown += 1
    total = len(plans)
    power = discriminative_power(matching, total)
    logger.debug(
        "DP for %s=%s: |%d - %d| / %d = %.1f%%",
        question_key, answer_value, matching, total - matching, total, as_percentage(power),
    )
    return AnswerPower(
        question_key=question_key,
        answer_value=answer_value,
        matching_count=matching,
        non_matching_count=total - matching,
        unknown_count=unknown,
        total_plans=total,
        discriminative_power=power,
    )


def answer_powers(question_key: str, plans: Iterable[Plan]) -> list[AnswerPower]:
    plans = list(plans)
    return [
        answer_power(question_key, value, plans)
        for value in get_question(question_key).answer_values
    ]


def question_power(
    question_key: str,
    plans: Iterable[Plan],
    aggregate: Callable[[list[float]], float] = fmean,
) -> float:
    """Aggregate (mean by default) of the question's answer powers."""
    powers = [a.discriminative_power for a in answer_powers(question_key, plans)]
    return float(aggregate(powers)) if powers else 0.0
