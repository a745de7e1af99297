from __future__ import annotations

from fit_roadmap.config import get_config
from fit_roadmap.webapp import create_app


def _client(monkeypatch, tmp_path):
    monkeypatch.setenv("FIT_ROADMAP_DATA_DIR", str(tmp_path))
    monkeypatch.delenv("FIT_ROADMAP_CONFIG", raising=False)
    monkeypatch.delenv("FIT_CONFIG", raising=False)
    monkeypatch.delenv("OPENROUTER_API_KEY", raising=False)
    get_config.cache_clear()
    app = create_app()
    app.config.update(TESTING=True)
    return app.test_client()


def test_health(monkeypatch, tmp_path):
    client = _client(monkeypatch, tmp_path)
    response = client.get("/health")
    assert response.status_code == 200
    assert response.get_json() == {"status": "ok"}


def test_profile_menu_and_today(monkeypatch, tmp_path):
    client = _client(monkeypatch, tmp_path)

    saved = client.put("/api/profile", json={"goals": ["二の腕をすっきりさせたい"], "bodyWeightKg": 60})
    assert saved.status_code == 200
    assert saved.get_json()["profile"]["goal_areas"] == {"arms": 3}

    profile = client.get("/api/profile").get_json()["profile"]
    assert profile["body_weight_kg"] == 60.0

    menu = client.get("/api/menu").get_json()["items"]
    assert [item["exercise_key"] for item in menu] == ["dbcurl", "pushdown", "kneepushup"]

    today = client.get("/api/today?date=2024-05-08").get_json()["session"]
    assert today["key"] == "PULL"
    assert today["targets"]["dead"]["source"] == "estimate"

    assert client.put("/api/profile", json=["not", "an", "object"]).status_code == 400
    assert client.get("/api/today?date=tomorrow").status_code == 400


def test_week_plan_updates(monkeypatch, tmp_path):
    client = _client(monkeypatch, tmp_path)

    plan = client.get("/api/week-plan?date=2024-05-08").get_json()["week_plan"]
    assert plan["week_start"] == "2024-05-06"
    assert plan["days"] == [True, False, True, False, True, False, False]

    updated = client.put("/api/week-plan", json={"date": "2024-05-08", "toggle": [1, 4], "sessions_per_week": 2})
    assert updated.status_code == 200
    assert updated.get_json()["week_plan"]["days"] == [True, True, True, False, False, False, False]
    assert updated.get_json()["week_plan"]["sessions_per_week"] == 2

    assert client.put("/api/week-plan", json={"date": "2024-05-08", "toggle": 9}).status_code == 400
    assert client.put("/api/week-plan", json={"date": "2024-05-08", "sessions_per_week": 6}).status_code == 400


def test_logs_roadmap_and_rewards(monkeypatch, tmp_path):
    client = _client(monkeypatch, tmp_path)
    client.put(
        "/api/profile",
        json={"body_weight_kg": 60, "goal_weight_kg": 56, "started_at": "2024-01-01", "weeks_to_goal": 4},
    )

    created = client.post(
        "/api/logs",
        json={
            "date": "2024-01-08",
            "body_weight_kg": 59.2,
            "lifts": {name: {"weight": 40, "reps": 5, "success": True} for name in ("bench", "squat", "dead")},
        },
    )
    assert created.status_code == 200
    body = created.get_json()
    assert body["xp_gained"] == 10
    assert body["bonus_xp"] == 5
    assert body["rewards"]["streak"] == 1

    assert client.post("/api/logs", json={"date": "2024-01-09", "body_weight_kg": -1}).status_code == 400

    logs = client.get("/api/logs").get_json()["logs"]
    assert [log["date"] for log in logs] == ["2024-01-08"]

    points = client.get("/api/roadmap").get_json()["points"]
    assert len(points) == 5
    assert points[1]["date"] == "2024-01-08"
    assert points[1]["actual_weight_kg"] == 59.2
    assert points[0]["actual_weight_kg"] is None

    rewards = client.get("/api/rewards?date=2024-01-08").get_json()
    assert rewards["xp"] == 15
    assert rewards["training_streak"] == 1
    assert "triple-clear" in rewards["achievements"]


def test_plan_endpoint_falls_back(monkeypatch, tmp_path):
    client = _client(monkeypatch, tmp_path)

    response = client.post("/api/plan", json={"goalText": "腹筋を割りたい"})
    assert response.status_code == 200
    body = response.get_json()
    assert body["source"] == "fallback"
    assert body["plan"]["day_key"] == "CORE"
    assert body["error"]["status"] == 500

    assert client.post("/api/plan", json={"goal_text": ""}).status_code == 400


def test_corrupt_store_is_server_error(monkeypatch, tmp_path):
    client = _client(monkeypatch, tmp_path)
    (tmp_path / "daily_logs.json").write_text("{", encoding="utf-8")
    response = client.get("/api/logs")
    assert response.status_code == 500
    assert "error" in response.get_json()


def test_non_object_bodies_are_rejected(monkeypatch, tmp_path):
    client = _client(monkeypatch, tmp_path)

    for method, url in (("post", "/api/logs"), ("put", "/api/week-plan"), ("post", "/api/plan")):
        response = getattr(client, method)(url, json=[1, 2])
        assert response.status_code == 400, url
        assert response.get_json()["error"] == "request body must be a JSON object"

    assert client.get("/api/logs").get_json()["logs"] == []
