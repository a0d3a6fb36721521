from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field

from .questions import QuestionType


class QuizState(str, Enum):
    NOT_STARTED = "NOT_STARTED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETE = "COMPLETE"


class Question(BaseModel):
    question_key: str
    question_text: str
    question_type: QuestionType
    discriminative_power: float = Field(default=0.0, ge=0.0, le=1.0)
    total_responses: int = Field(default=0, ge=0)
    times_shown: int = Field(default=0, ge=0)
    times_dropped: int = Field(default=0, ge=0)
    avg_plans_remaining: float | None = None
    is_active: bool = True

    @property
    def dropoff_rate(self) -> float:
        return self.times_dropped / self.times_shown if self.times_shown else 0.0


class QuestionAnswerStat(BaseModel):
    question_key: str
    answer_value: str
    plans_matching: int = 0
    plans_not_matching: int = 0
    plans_unknown: int = 0
    discriminative_power: float = Field(default=0.0, ge=0.0, le=1.0)
    times_selected: int = 0


class QuizSession(BaseModel):
    session_id: str
    state: QuizState = QuizState.NOT_STARTED
    pool: list[str] = Field(default_factory=list)
    asked_keys: list[str] = Field(default_factory=list)
    answers: dict[str, str] = Field(default_factory=dict)


class NextQuestion(BaseModel):
    question_key: str
    question_text: str
    question_type: QuestionType
    discriminative_power: float
    rank: int
    position: int
    remaining: int
    options: list[str] = Field(default_factory=list)


class QuizAnswerRequest(BaseModel):
    session_id: str
    question_key: str
    answer_value: str


class QuizCompleteRequest(BaseModel):
    session_id: str
    top_n: int = Field(default=5, ge=1, le=20)
    abandoned: bool = Field(default=False, description="User left before the pool was exhausted")
