from __future__ import annotations

import time
from typing import Any

# Anonymous quiz telemetry. Events carry question keys and counts only,
# never answer values or anything that identifies the user.
EVENT_TYPES = (
    "session_started",
    "question_shown",
    "question_answered",
    "question_dropped",
    "session_completed",
    "recommendations",
)

_FORBIDDEN_KEYS = {"answer", "answer_value", "answers", "preferences"}

_events: list[dict[str, Any]] = []


def record_event(event_type: str, data: dict[str, Any] | None = None) -> None:
    if event_type not in EVENT_TYPES:
        raise ValueError(f"Unknown event type {event_type!r}")
    payload = {k: v for k, v in (data or {}).items() if k not in _FORBIDDEN_KEYS}
    _events.append({
        "type": event_type,
        "timestamp": time.time(),
        **payload,
    })


def get_events() -> list[dict[str, Any]]:
    return _events


def clear_events() -> None:
    _events.clear()
