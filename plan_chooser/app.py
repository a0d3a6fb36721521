from __future__ import annotations

import os

from fastapi import Depends, FastAPI, HTTPException, Request
from starlette.middleware.sessions import SessionMiddleware

from .adaptive.config import DEFAULT_STOPPING_POLICY
from .adaptive.models import (
    NextQuestion,
    QuizAnswerRequest,
    QuizCompleteRequest,
    QuizSession,
    QuizState,
)
from .adaptive.questions import preferences_from_answers
from .adaptive.ranker import (
    answer_question,
    complete_session,
    next_question,
    rank_questions,
    session_pool,
    start_session,
)
from .adaptive.statistics import QuestionStatisticsStore
from .analytics.aggregator import compute_analytics, post_session_stats
from .analytics.store import get_events, record_event
from .catalog.data_store import PlanCatalog, catalog_statistics, load_catalog
from .catalog.models import Plan
from .consent.dependencies import ConsentRequest, analytics_allowed, require_consent
from .llm.groq_client import explain_recommendations
from .recommendations.config import DEFAULT_RECOMMENDATION_CONFIG
from .recommendations.elimination import filter_plans
from .recommendations.engine import recommend_with_summary
from .recommendations.models import RecommendationRequest, RecommendationResponse
from .recommendations.weights import available_versions


app = FastAPI(title="Irish Health Plan Chooser API", version="1.0.0")
app.add_middleware(
    SessionMiddleware,
    secret_key=os.environ.get("SESSION_SECRET", "plan-chooser-secret-change-in-production"),
)

QUIZ_KEY = "quiz"
CURRENT_QUESTION_KEY = "quiz_current"
SNAPSHOT_KEY = "ranking_snapshot"


# ── Shared state ─────────────────────────────────────────────────────────


def get_catalog(request: Request) -> PlanCatalog:
    """Return the loaded catalog, loading it (and refreshing question power) on first call."""
    state = request.app.state
    if getattr(state, "catalog", None) is None:
        state.catalog = load_catalog()
        get_statistics_store(request).refresh(state.catalog.plans)
    return state.catalog


def get_statistics_store(request: Request) -> QuestionStatisticsStore:
    state = request.app.state
    if getattr(state, "question_stats", None) is None:
        state.question_stats = QuestionStatisticsStore()
    return state.question_stats


def _track(request: Request, event_type: str, data: dict | None = None) -> None:
    if analytics_allowed(request):
        record_event(event_type, data)


def _load_quiz(request: Request, session_id: str) -> QuizSession:
    raw = request.session.get(QUIZ_KEY)
    if not raw or raw.get("session_id") != session_id:
        raise HTTPException(status_code=404, detail=f"Unknown quiz session {session_id}")
    return QuizSession.model_validate(raw)


def _save_quiz(request: Request, session: QuizSession) -> None:
    request.session[QUIZ_KEY] = session.model_dump(mode="json")


def _serve_next(
    request: Request,
    session: QuizSession,
    store: QuestionStatisticsStore,
    plans: list[Plan],
) -> NextQuestion | None:
    if session.state is not QuizState.IN_PROGRESS:
        request.session.pop(CURRENT_QUESTION_KEY, None)
        return None
    question = next_question(
        session_pool(session, store.questions()), session.asked_keys, plans=plans,
    )
    if question is None:
        request.session.pop(CURRENT_QUESTION_KEY, None)
        return None
    store.record_shown(question.question_key)
    request.session[CURRENT_QUESTION_KEY] = question.question_key
    _track(request, "question_shown", {"question_key": question.question_key})
    return question


# ── Public endpoints ─────────────────────────────────────────────────────


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/metadata")
def metadata(catalog: PlanCatalog = Depends(get_catalog)) -> dict:
    return {
        "insurers": catalog.insurers,
        "tiers": catalog.tiers,
        "total_plans": len(catalog),
        "weight_versions": available_versions(),
        "default_weight_version": DEFAULT_RECOMMENDATION_CONFIG.weight_version,
    }


@app.get("/plans")
def plans(
    insurer: str | None = None,
    tier: str | None = None,
    catalog: PlanCatalog = Depends(get_catalog),
) -> list[Plan]:
    selected = list(catalog.plans)
    if insurer:
        selected = [p for p in selected if p.insurer.lower() == insurer.strip().lower()]
    if tier:
        selected = [p for p in selected if p.plan_tier == tier.strip().upper()]
    return selected


@app.get("/plans/statistics")
def plan_statistics(catalog: PlanCatalog = Depends(get_catalog)) -> dict:
    return catalog_statistics(catalog.plans)


# ── Consent ──────────────────────────────────────────────────────────────


@app.post("/consent")
def consent(body: ConsentRequest, request: Request) -> dict:
    request.session["consent"] = body.model_dump()
    return {"status": "recorded", "consent": body.model_dump()}


@app.delete("/consent")
def withdraw_consent(request: Request) -> dict:
    request.session.clear()
    return {"status": "withdrawn"}


# ── Recommendations ──────────────────────────────────────────────────────


@app.post("/recommendations", response_model=RecommendationResponse)
def recommendations(
    body: RecommendationRequest,
    request: Request,
    catalog: PlanCatalog = Depends(get_catalog),
    consent: dict = Depends(require_consent),
) -> RecommendationResponse:
    try:
        response = recommend_with_summary(
            catalog.plans, body.preferences, body.top_n, weight_version=body.weight_version,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    if body.explain:
        response.explanations = explain_recommendations(body.preferences, response.results)

    _track(request, "recommendations", {
        "results_returned": len(response.results),
        "total_candidates": response.total_candidates,
    })
    return response


# ── Adaptive quiz ────────────────────────────────────────────────────────


@app.post("/quiz/start")
def quiz_start(
    request: Request,
    catalog: PlanCatalog = Depends(get_catalog),
    consent: dict = Depends(require_consent),
) -> dict:
    store = get_statistics_store(request)
    session = start_session(store.questions())
    request.session[SNAPSHOT_KEY] = store.ranking_snapshot()
    _track(request, "session_started")

    question = _serve_next(request, session, store, list(catalog.plans))
    _save_quiz(request, session)
    return {
        "session_id": session.session_id,
        "state": session.state,
        "plans_remaining": len(catalog),
        "next_question": question,
    }


@app.post("/quiz/answer")
def quiz_answer(
    body: QuizAnswerRequest,
    request: Request,
    catalog: PlanCatalog = Depends(get_catalog),
    consent: dict = Depends(require_consent),
) -> dict:
    store = get_statistics_store(request)
    session = _load_quiz(request, body.session_id)
    try:
        session = answer_question(session, body.question_key, body.answer_value)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    survivors = filter_plans(catalog.plans, preferences_from_answers(session.answers))
    store.record_response(body.question_key, body.answer_value, len(survivors))
    _track(request, "question_answered", {
        "question_key": body.question_key,
        "plans_remaining": len(survivors),
    })

    stop = DEFAULT_STOPPING_POLICY.should_stop(len(session.asked_keys), len(survivors))
    if stop and session.state is QuizState.IN_PROGRESS:
        session = complete_session(session)

    question = _serve_next(request, session, store, survivors)
    _save_quiz(request, session)
    return {
        "session_id": session.session_id,
        "state": session.state,
        "questions_answered": len(session.asked_keys),
        "plans_remaining": len(survivors),
        "next_question": question,
    }


@app.post("/quiz/complete")
def quiz_complete(
    body: QuizCompleteRequest,
    request: Request,
    catalog: PlanCatalog = Depends(get_catalog),
    consent: dict = Depends(require_consent),
) -> dict:
    store = get_statistics_store(request)
    session = _load_quiz(request, body.session_id)

    current = request.session.pop(CURRENT_QUESTION_KEY, None)
    if body.abandoned and current and session.state is QuizState.IN_PROGRESS:
        store.record_dropoff(current)
        _track(request, "question_dropped", {"question_key": current})

    if session.state is not QuizState.COMPLETE:
        session = complete_session(session)
    _save_quiz(request, session)

    preferences = preferences_from_answers(session.answers)
    try:
        response = recommend_with_summary(catalog.plans, preferences, body.top_n)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    _track(request, "session_completed", {"questions_answered": len(session.asked_keys)})
    _track(request, "recommendations", {
        "results_returned": len(response.results),
        "total_candidates": response.total_candidates,
    })
    return {
        "session_id": session.session_id,
        "state": session.state,
        "questions_answered": len(session.asked_keys),
        "recommendations": response,
    }


# ── Question statistics ──────────────────────────────────────────────────


@app.get("/questions/ranking")
def questions_ranking(request: Request, catalog: PlanCatalog = Depends(get_catalog)) -> list[dict]:
    ranked = rank_questions(get_statistics_store(request).questions())
    return [
        {
            "question_key": r.question.question_key,
            "question_text": r.question.question_text,
            "discriminative_power": r.question.discriminative_power,
            "priority": r.priority,
            "rank": r.power_rank + 1,
            "total_responses": r.question.total_responses,
            "dropoff_rate": round(r.question.dropoff_rate, 3),
        }
        for r in ranked
    ]


@app.post("/questions/refresh")
def questions_refresh(request: Request, catalog: PlanCatalog = Depends(get_catalog)) -> dict:
    questions = get_statistics_store(request).refresh(catalog.plans)
    return {"questions_refreshed": len(questions), "questions": questions}


@app.get("/statistics/post-session")
def statistics_post_session(
    request: Request, catalog: PlanCatalog = Depends(get_catalog),
) -> dict:
    return post_session_stats(
        catalog.plans,
        get_statistics_store(request).questions(),
        previous_snapshot=request.session.get(SNAPSHOT_KEY),
    )


@app.get("/analytics")
def analytics() -> dict:
    return compute_analytics(get_events())
