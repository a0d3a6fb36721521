"""
Quiz question bank.

Each question lists its enumerated answers. Every answer carries two things:
the value it sets on ``UserPreferences`` and a plan predicate saying which
plans fit that answer. Predicates return ``True``/``False``, or ``None`` when
the plan data needed to decide is unknown.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Literal, Mapping

from pydantic.alias_generators import to_camel

from ..catalog.models import HOSPITAL_COVER_ORDER, Plan
from ..recommendations.models import UserPreferences

QuestionType = Literal["boolean", "single_choice"]
Predicate = Callable[[Plan], "bool | None"]

YES = "YES"
NO = "NO"


# --- Predicate combinators ---

def is_true(field_name: str) -> Predicate:
    def check(plan: Plan) -> bool | None:
        value = getattr(plan, field_name)
        return None if value is None else value is True
    return check


def is_false(field_name: str) -> Predicate:
    def check(plan: Plan) -> bool | None:
        value = getattr(plan, field_name)
        return None if value is None else value is False
    return check


def is_positive(field_name: str) -> Predicate:
    def check(plan: Plan) -> bool | None:
        value = getattr(plan, field_name)
        return None if value is None else value > 0
    return check


def hospital_at_least(level: str) -> Predicate:
    wanted = HOSPITAL_COVER_ORDER.index(level)

    def check(plan: Plan) -> bool | None:
        if plan.hospital_cover is None:
            return None
        return HOSPITAL_COVER_ORDER.index(plan.hospital_cover) >= wanted
    return check


def tier_in(*tiers: str) -> Predicate:
    def check(plan: Plan) -> bool | None:
        return plan.plan_tier in tiers
    return check


def all_of(*predicates: Predicate) -> Predicate:
    """False as soon as one part is False, unknown if any part is unknown."""
    def check(plan: Plan) -> bool | None:
        results = [p(plan) for p in predicates]
        if any(r is False for r in results):
            return False
        if any(r is None for r in results):
            return None
        return True
    return check


def any_of(*predicates: Predicate) -> Predicate:
    def check(plan: Plan) -> bool | None:
        results = [p(plan) for p in predicates]
        if any(r is True for r in results):
            return True
        if any(r is None for r in results):
            return None
        return False
    return check


def any_plan(plan: Plan) -> bool | None:
    return True


# --- Question bank ---

@dataclass(frozen=True)
class AnswerOption:
    value: str
    label: str
    preference_value: Any
    matches: Predicate


@dataclass(frozen=True)
class QuestionDefinition:
    key: str
    text: str
    question_type: QuestionType
    preference: str
    options: tuple[AnswerOption, ...]

    @property
    def answer_values(self) -> list[str]:
        return [o.value for o in self.options]

    def option(self, value: str) -> AnswerOption:
        for option in self.options:
            if option.value == value:
                return option
        raise ValueError(
            f"Unknown answer {value!r} for question {self.key!r}; expected one of {self.answer_values}"
        )


def _yes_no(preference: str, text: str, plan_field: str) -> QuestionDefinition:
    return QuestionDefinition(
        key=to_camel(preference),
        text=text,
        question_type="boolean",
        preference=preference,
        options=(
            AnswerOption(YES, "Yes", True, is_true(plan_field)),
            AnswerOption(NO, "No", False, is_false(plan_field)),
        ),
    )


_DAY_TO_DAY = ("gp_visits", "dental_cover", "optical_cover", "physiotherapy")

QUESTION_BANK: tuple[QuestionDefinition, ...] = (
    QuestionDefinition(
        key="hospitalLevel",
        text="What level of hospital cover do you want?",
        question_type="single_choice",
        preference="hospital_level",
        options=(
            AnswerOption("PUBLIC", "Public hospitals only", "PUBLIC", hospital_at_least("PUBLIC")),
            AnswerOption(
                "SEMI_PRIVATE", "Semi-private rooms", "SEMI_PRIVATE", hospital_at_least("SEMI_PRIVATE"),
            ),
            AnswerOption("PRIVATE", "Private rooms", "PRIVATE", hospital_at_least("PRIVATE")),
            AnswerOption("HI_TECH", "Hi-tech hospitals", "HI_TECH", hospital_at_least("HI_TECH")),
        ),
    ),
    QuestionDefinition(
        key="dayToDayBenefits",
        text="How important are day-to-day benefits such as GP, dental and physio?",
        question_type="single_choice",
        preference="day_to_day_benefits",
        options=(
            AnswerOption(
                "ESSENTIAL", "Essential", "ESSENTIAL", all_of(*(is_true(f) for f in _DAY_TO_DAY)),
            ),
            AnswerOption(
                "IMPORTANT", "Nice to have", "IMPORTANT", any_of(*(is_true(f) for f in _DAY_TO_DAY)),
            ),
            AnswerOption("NOT_NEEDED", "Not needed", "NOT_NEEDED", any_plan),
        ),
    ),
    _yes_no("gp_visits", "Do you want cover for GP visits?", "gp_visits"),
    QuestionDefinition(
        key="dentalOptical",
        text="Do you need dental or optical cover?",
        question_type="single_choice",
        preference="dental_optical",
        options=(
            AnswerOption(
                "BOTH", "Both", "BOTH", all_of(is_true("dental_cover"), is_true("optical_cover")),
            ),
            AnswerOption("DENTAL", "Dental only", "DENTAL", is_true("dental_cover")),
            AnswerOption("OPTICAL", "Optical only", "OPTICAL", is_true("optical_cover")),
            AnswerOption("NONE", "Neither", "NONE", any_plan),
        ),
    ),
    _yes_no("physiotherapy", "Do you want physiotherapy cover?", "physiotherapy"),
    _yes_no("maternity_needed", "Are you planning a family or need maternity cover?", "maternity_cover"),
    QuestionDefinition(
        key="maternityExtras",
        text="Which maternity benefits matter to you?",
        question_type="single_choice",
        preference="maternity_extras",
        options=(
            AnswerOption(
                "ENHANCED", "Enhanced pre/post-natal support", "ENHANCED",
                is_positive("prenatal_postnatal_benefit"),
            ),
            AnswerOption("BASIC", "Standard maternity cover", "BASIC", is_true("maternity_cover")),
            AnswerOption("NOT_APPLICABLE", "Not applicable", "NOT_APPLICABLE", any_plan),
        ),
    ),
    _yes_no("mental_health_cover", "Do you need mental health cover?", "mental_health"),
    _yes_no(
        "outpatient_cover", "Do you want cover for outpatient specialist visits?", "outpatient_cover",
    ),
    QuestionDefinition(
        key="consultantChoice",
        text="How important is choosing your own consultant?",
        question_type="single_choice",
        preference="consultant_choice",
        options=(
            AnswerOption("IMPORTANT", "Important", "IMPORTANT", is_true("consultant_choice")),
            AnswerOption("SOMEWHAT", "Somewhat", "SOMEWHAT", is_true("consultant_choice")),
            AnswerOption("NOT_IMPORTANT", "Not important", "NOT_IMPORTANT", any_plan),
        ),
    ),
    _yes_no(
        "overseas_coverage", "Do you need emergency cover when travelling abroad?", "overseas_emergency",
    ),
    QuestionDefinition(
        key="budgetPriority",
        text="What best describes your budget?",
        question_type="single_choice",
        preference="budget_priority",
        options=(
            AnswerOption("LOWEST", "Lowest price", "LOWEST", tier_in("BASIC")),
            AnswerOption("VALUE", "Best value", "VALUE", tier_in("MID")),
            AnswerOption("PREMIUM", "Most comprehensive", "PREMIUM", tier_in("HIGH", "PREMIUM")),
        ),
    ),
)

QUESTIONS_BY_KEY: dict[str, QuestionDefinition] = {q.key: q for q in QUESTION_BANK}


def get_question(question_key: str) -> QuestionDefinition:
    try:
        return QUESTIONS_BY_KEY[question_key]
    except KeyError:
        raise ValueError(f"Unknown question key {question_key!r}") from None


def validate_answer(question_key: str, answer_value: str) -> AnswerOption:
    return get_question(question_key).option(answer_value)


def preferences_from_answers(answers: Mapping[str, str]) -> UserPreferences:
    """Build preferences from ``{question_key: answer_value}``. Unknown keys or answers raise ValueError."""
    values: dict[str, Any] = {}
    for key, answer in answers.items():
        definition = get_question(key)
        values[definition.preference] = definition.option(answer).preference_value
    return UserPreferences(**values)
