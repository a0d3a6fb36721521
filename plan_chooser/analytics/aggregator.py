from __future__ import annotations

from collections import Counter
from typing import Any, Iterable, Mapping

from ..adaptive.models import Question
from ..adaptive.power import as_percentage
from ..catalog.data_store import catalog_statistics
from ..catalog.models import Plan


def compute_analytics(events: list[dict[str, Any]]) -> dict[str, Any]:
    started = [e for e in events if e["type"] == "session_started"]
    completed = [e for e in events if e["type"] == "session_completed"]
    total = len(started)

    # Questions answered per completed session
    answered = [c["questions_answered"] for c in completed if "questions_answered" in c]
    avg_answered = round(sum(answered) / len(answered), 1) if answered else 0.0

    # Drop-off points
    dropoff_counter: Counter[str] = Counter()
    for e in events:
        if e["type"] == "question_dropped":
            dropoff_counter[e.get("question_key", "unknown")] += 1
    dropoffs = [{"question_key": k, "count": c} for k, c in dropoff_counter.most_common(10)]

    # Most answered questions
    answer_counter: Counter[str] = Counter()
    for e in events:
        if e["type"] == "question_answered":
            answer_counter[e.get("question_key", "unknown")] += 1
    most_answered = [{"question_key": k, "count": c} for k, c in answer_counter.most_common(10)]

    # Recommendation outcomes
    recs = [e for e in events if e["type"] == "recommendations"]
    empty_results = sum(1 for r in recs if r.get("results_returned", 0) == 0)

    return {
        "sessions_started": total,
        "sessions_completed": len(completed),
        "completion_rate": round(len(completed) / total * 100, 1) if total else 0.0,
        "avg_questions_answered": avg_answered,
        "dropoffs": dropoffs,
        "most_answered": most_answered,
        "recommendation_stats": {
            "requests": len(recs),
            "empty_results": empty_results,
        },
    }


def _question_entry(q: Question, rank: int) -> dict[str, Any]:
    return {
        "question_key": q.question_key,
        "question_text": q.question_text,
        "discriminative_power": q.discriminative_power,
        "discriminative_power_pct": as_percentage(q.discriminative_power),
        "rank": rank,
    }


def post_session_stats(
    plans: Iterable[Plan],
    questions: Iterable[Question],
    previous_snapshot: Mapping[str, int] | None = None,
    top_k: int = 3,
) -> dict[str, Any]:
    """
    The panel shown after a quiz: catalog coverage and which questions best
    separate plans.

    ``previous_snapshot`` maps question keys to an earlier rank (1 = best).
    When given, each question reports ``rank_change`` (positive = moved up).
    """
    catalog = catalog_statistics(plans)
    ordered = sorted(questions, key=lambda q: (-q.discriminative_power, q.question_key))
    entries = [_question_entry(q, i + 1) for i, q in enumerate(ordered)]

    if previous_snapshot:
        for entry in entries:
            before = previous_snapshot.get(entry["question_key"])
            entry["rank_change"] = None if before is None else before - entry["rank"]

    return {
        "total_plans": catalog["total_plans"],
        "avg_completeness_pct": catalog["avg_completeness_pct"],
        "top_questions": entries[:top_k],
        "bottom_questions": entries[-top_k:][::-1] if len(entries) > top_k else [],
        "questions": entries,
    }
