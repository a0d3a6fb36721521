"""
Adaptive question ordering.

A quiz session moves NOT_STARTED -> IN_PROGRESS -> COMPLETE. The pool starts
as every active question sorted by descending discriminative power. After
each answer the remaining questions are re-ranked by

    priority = base + info_gain - friction

where *base* is the stored power (plus a small popularity bonus), *info_gain*
is power recomputed on the plans still in play, and *friction* penalises
questions users tend to abandon on.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Iterable, Sequence

from ..catalog.models import Plan
from .config import DEFAULT_ADAPTIVE_CONFIG, AdaptiveConfig
from .models import NextQuestion, Question, QuizSession, QuizState
from .power import question_power
from .questions import QUESTIONS_BY_KEY, validate_answer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RankedQuestion:
    question: Question
    priority: float
    base: float
    info_gain: float
    friction: float
    power_rank: int


def _power_order(questions: Iterable[Question]) -> list[Question]:
    return sorted(questions, key=lambda q: (-q.discriminative_power, q.question_key))


def start_session(questions: Iterable[Question], session_id: str | None = None) -> QuizSession:
    active = [q for q in questions if q.is_active]
    pool = [q.question_key for q in _power_order(active)]
    session = QuizSession(
        session_id=session_id or uuid.uuid4().hex,
        state=QuizState.IN_PROGRESS if pool else QuizState.COMPLETE,
        pool=pool,
    )
    logger.info("Started quiz session %s with %d questions", session.session_id, len(pool))
    return session


def answer_question(session: QuizSession, question_key: str, answer_value: str) -> QuizSession:
    """Record one answer and return the updated session."""
    if session.state is not QuizState.IN_PROGRESS:
        raise ValueError(f"Session {session.session_id} is {session.state.value}, not IN_PROGRESS")
    if question_key not in session.pool:
        raise ValueError(f"Question {question_key!r} is not in the remaining pool")
    validate_answer(question_key, answer_value)

    pool = [key for key in session.pool if key != question_key]
    return session.model_copy(
        update={
            "pool": pool,
            "asked_keys": [*session.asked_keys, question_key],
            "answers": {**session.answers, question_key: answer_value},
            "state": QuizState.IN_PROGRESS if pool else QuizState.COMPLETE,
        }
    )


def complete_session(session: QuizSession) -> QuizSession:
    """End the session early, e.g. when a stopping rule fires."""
    if session.state is QuizState.NOT_STARTED:
        raise ValueError(f"Session {session.session_id} has not started")
    return session.model_copy(update={"state": QuizState.COMPLETE})


def rank_questions(
    questions: Iterable[Question],
    asked_keys: Iterable[str] = (),
    plans: Sequence[Plan] | None = None,
    config: AdaptiveConfig = DEFAULT_ADAPTIVE_CONFIG,
) -> list[RankedQuestion]:
    """Rank active, unasked questions by effective priority, best first."""
    asked = set(asked_keys)
    candidates = [q for q in questions if q.is_active and q.question_key not in asked]
    if not candidates:
        return []

    power_rank = {q.question_key: i for i, q in enumerate(_power_order(candidates))}
    max_responses = max(q.total_responses for q in candidates)

    ranked: list[RankedQuestion] = []
    for q in candidates:
        popularity = q.total_responses / max_responses if max_responses else 0.0
        base = config.base_weight * q.discriminative_power + config.popularity_weight * popularity
        info_gain = 0.0
        if plans is not None and q.question_key in QUESTIONS_BY_KEY:
            info_gain = config.info_gain_weight * question_power(q.question_key, plans)
        friction = config.friction_weight * q.dropoff_rate
        ranked.append(
            RankedQuestion(
                question=q,
                priority=round(base + info_gain - friction, 6),
                base=base,
                info_gain=info_gain,
                friction=friction,
                power_rank=power_rank[q.question_key],
            )
        )
    ranked.sort(key=lambda r: (-r.priority, r.power_rank, r.question.question_key))
    return ranked


def next_question(
    pool: Iterable[Question],
    asked_keys: Sequence[str] = (),
    plans: Sequence[Plan] | None = None,
    config: AdaptiveConfig = DEFAULT_ADAPTIVE_CONFIG,
) -> NextQuestion | None:
    """The best remaining question, or None when the pool is exhausted."""
    ranked = rank_questions(pool, asked_keys, plans, config)
    if not ranked:
        logger.info("No more questions available")
        return None
    best = ranked[0]
    q = best.question
    definition = QUESTIONS_BY_KEY.get(q.question_key)
    logger.info("Next best question: %s (priority %.3f)", q.question_key, best.priority)
    return NextQuestion(
        question_key=q.question_key,
        question_text=q.question_text,
        question_type=q.question_type,
        discriminative_power=q.discriminative_power,
        rank=best.power_rank + 1,
        position=len(asked_keys) + 1,
        remaining=len(ranked),
        options=definition.answer_values if definition else [],
    )


def session_pool(session: QuizSession, questions: Iterable[Question]) -> list[Question]:
    """The session's remaining questions, resolved against current statistics."""
    remaining = set(session.pool)
    return [q for q in questions if q.question_key in remaining]
