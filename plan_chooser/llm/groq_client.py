from __future__ import annotations

import json
import logging
from typing import Any, Sequence

from groq import Groq

from ..recommendations.models import ComparisonResult, UserPreferences
from .config import DEFAULT_LLM_CONFIG, LLMConfig

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You explain Irish private health insurance recommendations. "
    "Given a user's answers and an already ranked list of plans, "
    "write a short, plain one-sentence explanation for each plan. "
    "Do not change the order, invent benefits, or quote prices. "
    "If a plan has unverified details, tell the user to check them with the insurer.\n\n"
    "Return ONLY valid JSON in this exact format:\n"
    '{"explanations": [{"plan_id": "<plan_id>", "reason": "<one sentence>"}]}\n'
    "Include only plans from the provided list."
)


def _build_user_message(
    preferences: dict[str, Any],
    results: Sequence[ComparisonResult],
) -> str:
    lines = ["## User Answers"]
    if preferences:
        for key, value in preferences.items():
            lines.append(f"- {key}: {value}")
    else:
        lines.append("- (no answers given)")

    lines.append("\n## Ranked Plans")
    lines.append("| Rank | ID | Insurer | Plan | Score | Key drivers | Unverified |")
    lines.append("|---|---|---|---|---|---|---|")
    for r in results:
        drivers = ", ".join(d.category for d in r.top_drivers) or "-"
        flags = "; ".join(r.verification_flags) or "-"
        lines.append(
            f"| {r.rank} | {r.plan.plan_id} | {r.plan.insurer} | {r.plan.plan_name} "
            f"| {r.relative_score} | {drivers} | {flags} |"
        )

    return "\n".join(lines)


def explain_recommendations(
    preferences: UserPreferences,
    results: Sequence[ComparisonResult],
    config: LLMConfig = DEFAULT_LLM_CONFIG,
) -> dict[str, str]:
    """
    Ask Groq for a one-sentence explanation per ranked plan.

    Returns a dict mapping plan id -> explanation. Ranking is never changed.
    Returns empty dict on any failure (timeout, bad JSON, API error).
    """
    if not config.enabled or not config.api_key:
        return {}

    if not results:
        return {}

    known_ids = {r.plan.plan_id for r in results}
    try:
        client = Groq(api_key=config.api_key, timeout=config.timeout)
        response = client.chat.completions.create(
            model=config.model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {
                    "role": "user",
                    "content": _build_user_message(preferences.answered(), results),
                },
            ],
            max_tokens=config.max_tokens,
            temperature=0.2,
            response_format={"type": "json_object"},
        )

        content = response.choices[0].message.content or ""
        parsed = json.loads(content)

        explanations: dict[str, str] = {}
        for item in parsed.get("explanations", []):
            pid = str(item.get("plan_id", ""))
            reason = item.get("reason", "")
            if pid in known_ids and reason:
                explanations[pid] = reason

        return explanations

    except Exception:
        logger.warning("Groq LLM call failed, falling back to rule-based reasons", exc_info=True)
        return {}
