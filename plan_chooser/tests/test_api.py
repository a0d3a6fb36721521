from __future__ import annotations

from fastapi.testclient import TestClient

from plan_chooser.app import app

client = TestClient(app)


def _consent(c):
    c.post("/consent", json={"personalisation": True, "analytics": False})


# ── Public endpoints ─────────────────────────────────────────────────────


def test_health():
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_metadata():
    body = client.get("/metadata").json()
    assert body["total_plans"] == 12
    assert "VHI" in body["insurers"]
    assert "canonical" in body["weight_versions"]


def test_plans_can_be_filtered():
    resp = client.get("/plans", params={"insurer": "vhi", "tier": "basic"})
    assert resp.status_code == 200
    assert [p["plan_id"] for p in resp.json()] == ["vhi-public-plus"]


def test_plans_expose_completeness():
    plans = client.get("/plans").json()
    assert len(plans) == 12
    assert all(0.0 <= p["completeness_score"] <= 1.0 for p in plans)


def test_plan_statistics():
    body = client.get("/plans/statistics").json()
    assert body["total_plans"] == 12
    assert sum(body["by_insurer"].values()) == 12


# ── Consent gating ───────────────────────────────────────────────────────


def test_recommendations_require_consent():
    c = TestClient(app)
    resp = c.post("/recommendations", json={"preferences": {}})
    assert resp.status_code == 403


def test_quiz_requires_consent():
    c = TestClient(app)
    assert c.post("/quiz/start").status_code == 403


def test_withdrawn_consent_blocks_again():
    c = TestClient(app)
    _consent(c)
    c.delete("/consent")
    assert c.post("/quiz/start").status_code == 403


# ── Recommendations ──────────────────────────────────────────────────────


def test_recommendations_returns_results():
    _consent(client)
    resp = client.post("/recommendations", json={"preferences": {"maternityNeeded": True}, "top_n": 20})
    assert resp.status_code == 200
    body = resp.json()
    assert body["total_plans"] == 12
    assert body["eliminated"] == 2
    assert len(body["results"]) == 10
    assert body["results"][0]["rank"] == 1
    assert body["results"][0]["relative_score"] == 100


def test_recommendations_respects_top_n():
    _consent(client)
    resp = client.post("/recommendations", json={"preferences": {"hospitalLevel": "PRIVATE"}, "top_n": 3})
    assert len(resp.json()["results"]) == 3


def test_recommendations_malformed_preferences():
    _consent(client)
    resp = client.post("/recommendations", json={"preferences": {"maternityNeeded": "yes"}})
    assert resp.status_code == 422


def test_recommendations_unknown_weight_version():
    _consent(client)
    resp = client.post("/recommendations", json={"preferences": {}, "weight_version": "v2"})
    assert resp.status_code == 400


# ── Adaptive quiz ────────────────────────────────────────────────────────


def test_quiz_flow_to_recommendations():
    c = TestClient(app)
    _consent(c)

    start = c.post("/quiz/start").json()
    assert start["state"] == "IN_PROGRESS"
    first = start["next_question"]
    assert first["position"] == 1
    assert first["remaining"] == 12

    answer = c.post("/quiz/answer", json={
        "session_id": start["session_id"],
        "question_key": "maternityNeeded",
        "answer_value": "YES",
    })
    assert answer.status_code == 200
    body = answer.json()
    assert body["questions_answered"] == 1
    assert body["plans_remaining"] == 10
    assert body["next_question"]["question_key"] != "maternityNeeded"
    assert body["next_question"]["position"] == 2

    done = c.post("/quiz/complete", json={"session_id": start["session_id"], "top_n": 3})
    assert done.status_code == 200
    body = done.json()
    assert body["state"] == "COMPLETE"
    assert len(body["recommendations"]["results"]) == 3


def test_quiz_answer_unknown_session():
    c = TestClient(app)
    _consent(c)
    c.post("/quiz/start")
    resp = c.post("/quiz/answer", json={"session_id": "nope", "question_key": "gpVisits", "answer_value": "YES"})
    assert resp.status_code == 404


def test_quiz_answer_invalid_value():
    c = TestClient(app)
    _consent(c)
    session_id = c.post("/quiz/start").json()["session_id"]
    resp = c.post("/quiz/answer", json={"session_id": session_id, "question_key": "gpVisits", "answer_value": "MAYBE"})
    assert resp.status_code == 400


def test_quiz_abandon_records_dropoff():
    c = TestClient(app)
    _consent(c)
    start = c.post("/quiz/start").json()
    shown = start["next_question"]["question_key"]

    c.post("/quiz/complete", json={"session_id": start["session_id"], "abandoned": True})

    after = next(q for q in c.get("/questions/ranking").json() if q["question_key"] == shown)
    assert after["dropoff_rate"] > 0


# ── Question statistics ──────────────────────────────────────────────────


def test_questions_ranking_lists_all_questions():
    body = client.get("/questions/ranking").json()
    assert len(body) == 12
    assert sorted(q["rank"] for q in body) == list(range(1, 13))


def test_questions_refresh():
    body = client.post("/questions/refresh").json()
    assert body["questions_refreshed"] == 12


def test_post_session_statistics():
    c = TestClient(app)
    _consent(c)
    c.post("/quiz/start")
    body = c.get("/statistics/post-session").json()
    assert body["total_plans"] == 12
    assert len(body["top_questions"]) == 3
    assert all(q["rank_change"] is not None for q in body["questions"])
