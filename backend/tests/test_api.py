import pytest
from fastapi.testclient import TestClient

from backend.app import api
from backend.app.config import Settings
from backend.app.db import ensure_db
from backend.scripts.export_sessions import export_sessions, load_sessions

API_KEY = "secret"


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "sessions.db"


@pytest.fixture
def client(db_path, monkeypatch):
    monkeypatch.setattr(api, "settings", Settings(api_key=API_KEY, db_path=db_path))
    ensure_db(db_path)
    return TestClient(api.app)


def session_body(**overrides):
    session = {
        "kind": "nback",
        "user_id": "u1",
        "group": "G4",
        "submitted_at": "2026-01-01T10:00:00Z",
        "accuracy": 0.8,
        "level": 2,
        "hits": 4,
    }
    session.update(overrides)
    return {"api_key": API_KEY, "client_version": "test", "session": session}


class TestHealth:
    def test_health(self, client):
        assert client.get("/health").json() == {"ok": True}


class TestIngestSession:
    def test_stores_session(self, client):
        response = client.post("/v1/sessions", json=session_body())
        assert response.status_code == 200
        assert response.json()["ok"] is True

        rows = client.get("/v1/users/u1/sessions").json()["rows"]
        assert len(rows) == 1
        assert rows[0]["hits"] == 4

    def test_wrong_api_key(self, client):
        body = session_body()
        body["api_key"] = "nope"
        response = client.post("/v1/sessions", json=body)
        assert response.status_code == 401
        assert response.json()["detail"] == "invalid_api_key"

    def test_missing_fields(self, client):
        body = session_body()
        del body["session"]["accuracy"]
        response = client.post("/v1/sessions", json=body)
        assert response.status_code == 400
        assert response.json()["detail"] == "session_missing_fields:accuracy"

    def test_unknown_kind(self, client):
        response = client.post("/v1/sessions", json=session_body(kind="mixed"))
        assert response.status_code == 400
        assert response.json()["detail"] == "unknown_session_kind"

    def test_accuracy_out_of_range(self, client):
        response = client.post("/v1/sessions", json=session_body(accuracy=1.5))
        assert response.status_code == 400
        assert response.json()["detail"] == "accuracy_out_of_range"

    def test_session_must_be_object(self, client):
        response = client.post("/v1/sessions", json={"api_key": API_KEY, "session": [1]})
        assert response.status_code == 400


class TestUserSessions:
    def test_newest_first_and_kind_filter(self, client):
        client.post("/v1/sessions", json=session_body(submitted_at="2026-01-01T10:00:00Z", accuracy=0.1))
        client.post("/v1/sessions", json=session_body(submitted_at="2026-01-02T10:00:00Z", accuracy=0.2))
        client.post(
            "/v1/sessions",
            json=session_body(kind="attention", group="G2", submitted_at="2026-01-03T10:00:00Z", accuracy=0.3),
        )

        rows = client.get("/v1/users/u1/sessions").json()["rows"]
        assert [r["accuracy"] for r in rows] == [0.3, 0.2, 0.1]

        nback = client.get("/v1/users/u1/sessions", params={"kind": "nback"}).json()
        assert nback["count"] == 2

    def test_unknown_user(self, client):
        assert client.get("/v1/users/ghost/sessions").json()["rows"] == []


class TestSightingsAndProgress:
    def test_incomplete_report_rejected(self, client):
        response = client.post(
            "/v1/sightings",
            json={"api_key": API_KEY, "user_id": "u1", "has_sighted": True, "count": 1, "confidence": 0},
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "incomplete_sighting_report"

    def test_progress_summary(self, client):
        client.post("/v1/sessions", json=session_body(submitted_at="2026-01-01T10:00:00Z", accuracy=0.5, level=1))
        client.post(
            "/v1/sessions",
            json=session_body(submitted_at="2026-01-02T10:00:00Z", accuracy=0.9, level=1, new_level=2),
        )
        for count in (2, 3):
            client.post(
                "/v1/sightings",
                json={"api_key": API_KEY, "user_id": "u1", "has_sighted": True, "count": count, "confidence": 5},
            )
        client.post("/v1/sightings", json={"api_key": API_KEY, "user_id": "u1", "has_sighted": False})

        progress = client.get("/v1/users/u1/progress").json()
        assert progress["total_sessions"] == 2
        assert progress["avg_accuracy"] == pytest.approx(0.7)
        assert progress["current_level"] == 2
        assert progress["accuracy_history"] == [0.5, 0.9]
        assert progress["sightings_count"] == 5

    def test_unsaved_promotion_keeps_level(self, client):
        client.post(
            "/v1/sessions",
            json=session_body(accuracy=0.9, level=1, promoted=True, new_level=2, level_saved=False),
        )
        progress = client.get("/v1/users/u1/progress").json()
        assert progress["current_level"] == 1


class TestExport:
    def test_export_per_kind(self, client, db_path, tmp_path):
        client.post("/v1/sessions", json=session_body())
        client.post("/v1/sessions", json=session_body(kind="attention", group="G2"))
        counts = export_sessions(db_path, tmp_path / "out")
        assert counts == {"nback": 1, "attention": 1}
        assert (tmp_path / "out" / "nback.jsonl").read_text(encoding="utf-8").count("\n") == 1
        assert load_sessions(tmp_path / "missing.db") == []
