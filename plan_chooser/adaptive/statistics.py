from __future__ import annotations

import logging
from typing import Iterable, Sequence

from ..catalog.models import Plan
from .models import Question, QuestionAnswerStat
from .power import answer_powers, question_power
from .questions import QUESTION_BANK, QuestionDefinition, get_question

logger = logging.getLogger(__name__)


class QuestionStatisticsStore:
    """
    Aggregate per-question statistics for the adaptive quiz.

    Powers are seeded at 0 and only change through ``refresh``. Counters
    are anonymous: they record which question was shown, answered or
    abandoned, never who answered it. Callers serialise concurrent updates.
    """

    def __init__(self, bank: Iterable[QuestionDefinition] = QUESTION_BANK) -> None:
        self._questions: dict[str, Question] = {}
        self._answers: dict[str, dict[str, QuestionAnswerStat]] = {}
        self._remaining_samples: dict[str, int] = {}
        for definition in bank:
            self._questions[definition.key] = Question(
                question_key=definition.key,
                question_text=definition.text,
                question_type=definition.question_type,
            )
            self._answers[definition.key] = {
                value: QuestionAnswerStat(question_key=definition.key, answer_value=value)
                for value in definition.answer_values
            }

    def _require(self, question_key: str) -> Question:
        try:
            return self._questions[question_key]
        except KeyError:
            raise ValueError(f"Unknown question key {question_key!r}") from None

    def refresh(self, plans: Sequence[Plan]) -> list[Question]:
        """Recompute every answer and question power from *plans*."""
        plans = list(plans)
        for key, question in self._questions.items():
            for power in answer_powers(key, plans):
                stat = self._answers[key][power.answer_value]
                self._answers[key][power.answer_value] = stat.model_copy(
                    update={
                        "plans_matching": power.matching_count,
                        "plans_not_matching": power.non_matching_count,
                        "plans_unknown": power.unknown_count,
                        "discriminative_power": power.discriminative_power,
                    }
                )
            self._questions[key] = question.model_copy(
                update={"discriminative_power": question_power(key, plans)}
            )
        logger.info("Refreshed discriminative power for %d questions over %d plans",
                    len(self._questions), len(plans))
        return self.questions()

    def record_shown(self, question_key: str) -> None:
        question = self._require(question_key)
        self._questions[question_key] = question.model_copy(
            update={"times_shown": question.times_shown + 1}
        )

    def record_response(
        self, question_key: str, answer_value: str, plans_remaining: int | None = None,
    ) -> None:
        question = self._require(question_key)
        get_question(question_key).option(answer_value)

        avg = question.avg_plans_remaining
        if plans_remaining is not None:
            samples = self._remaining_samples.get(question_key, 0) + 1
            self._remaining_samples[question_key] = samples
            previous = avg or 0.0
            avg = previous + (plans_remaining - previous) / samples
        self._questions[question_key] = question.model_copy(
            update={"total_responses": question.total_responses + 1, "avg_plans_remaining": avg}
        )

        stat = self._answers[question_key][answer_value]
        self._answers[question_key][answer_value] = stat.model_copy(
            update={"times_selected": stat.times_selected + 1}
        )

    def record_dropoff(self, question_key: str) -> None:
        question = self._require(question_key)
        self._questions[question_key] = question.model_copy(
            update={"times_dropped": question.times_dropped + 1}
        )

    def set_active(self, question_key: str, active: bool) -> None:
        question = self._require(question_key)
        self._questions[question_key] = question.model_copy(update={"is_active": active})

    def get(self, question_key: str) -> Question:
        return self._require(question_key)

    def questions(self) -> list[Question]:
        return list(self._questions.values())

    def answer_stats(self, question_key: str) -> list[QuestionAnswerStat]:
        self._require(question_key)
        return list(self._answers[question_key].values())

    def ranking_snapshot(self) -> dict[str, int]:
        """``{question_key: rank}`` by descending power, 1 = most discriminating."""
        ordered = sorted(
            self._questions.values(), key=lambda q: (-q.discriminative_power, q.question_key),
        )
        return {q.question_key: i + 1 for i, q in enumerate(ordered)}
