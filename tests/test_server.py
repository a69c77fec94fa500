"""REST API tests using FastAPI's TestClient.

The client is entered as a context manager so the lifespan handler runs
and loads the real rulesets.  The reaper is disabled; its sweep helper is
tested directly.
"""

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from priorauth_rulesets.errors import DrugNotFound, SessionClosed
from priorauth_server.app import create_app
from priorauth_server.cleanup import sweep_once
from priorauth_server.config import ServerSettings, load_settings
from priorauth_server.errors import classify_value_error

API = "/api/v1"
ADMIN_KEY = "test-admin-key"


@pytest.fixture
def client():
    settings = ServerSettings(session_max_idle_hours=0, admin_api_key=ADMIN_KEY)
    with TestClient(create_app(settings)) as c:
        yield c


def _new_session(client):
    resp = client.post(f"{API}/sessions")
    assert resp.status_code == 201
    return resp.json()["session_id"]


# =====================================================================
# Health & reference data
# =====================================================================


class TestHealth:
    def test_ok(self, client):
        body = client.get("/health").json()
        assert body["status"] == "ok"
        assert body["drugs"] == 15
        assert body["question_sets"] == 8


class TestReference:
    def test_list_drugs(self, client):
        drugs = client.get(f"{API}/reference/drugs").json()
        assert drugs[0]["id"] == "ozempic"
        assert drugs[0]["question_set"] == "glp1_diabetes"

    def test_resolve_drug(self, client):
        body = client.post(f"{API}/reference/drugs/resolve", json={"name": "manjaro"}).json()
        assert body["drug"]["id"] == "mounjaro"
        assert body["corrected_query"] == "mounjaro"

    def test_resolve_unknown_drug(self, client):
        body = client.post(f"{API}/reference/drugs/resolve", json={"name": "entivo"}).json()
        assert body["drug"] is None
        assert body["alternatives"][0]["name"] == "Entyvio"

    def test_list_question_sets(self, client):
        sets = client.get(f"{API}/reference/question-sets").json()
        assert {s["id"] for s in sets} >= {"glp1_diabetes", "jak_ibd"}

    def test_get_question_set(self, client):
        body = client.get(f"{API}/reference/question-sets/tnf_inhibitor").json()
        assert body["start"] == "diagnosis"
        assert body["questions"][0]["question_type"] == "multiple_choice"

    def test_unknown_question_set(self, client):
        resp = client.get(f"{API}/reference/question-sets/nope")
        assert resp.status_code == 404
        assert resp.json()["detail"] == "Resource not found"
        assert resp.json()["code"] == "question_set_not_found"


# =====================================================================
# Sessions & steps
# =====================================================================


class TestSessions:
    def test_create_and_get(self, client):
        sid = _new_session(client)
        body = client.get(f"{API}/sessions/{sid}").json()
        assert body["phase"] == "intake"
        assert body["status"] == "active"

    def test_unknown_session(self, client):
        resp = client.get(f"{API}/sessions/nope")
        assert resp.status_code == 404
        assert resp.json()["code"] == "session_not_found"

    def test_list(self, client):
        sid = _new_session(client)
        ids = [s["session_id"] for s in client.get(f"{API}/sessions").json()]
        assert sid in ids

    def test_end_twice(self, client):
        sid = _new_session(client)
        assert client.post(f"{API}/sessions/{sid}/end").json()["status"] == "completed"
        resp = client.post(f"{API}/sessions/{sid}/end")
        assert resp.status_code == 409
        assert resp.json()["detail"] == "Session is closed"
        assert resp.json()["code"] == "session_closed"


class TestSteps:
    def test_intake_then_answers(self, client):
        sid = _new_session(client)
        assert client.get(f"{API}/sessions/{sid}/question").json() == {"question": None}

        step = client.post(
            f"{API}/sessions/{sid}/intake", json={"field": "drug_name", "value": "humira"}
        ).json()
        assert step["type"] == "next_question"
        assert step["question"]["qid"] == "diagnosis"

        step = client.post(f"{API}/sessions/{sid}/answer", json={"answer": "RA"}).json()
        assert step["type"] == "next_question"
        assert step["question"]["qid"] == "disease_duration"

        step = client.post(
            f"{API}/sessions/{sid}/answer", json={"answer": "Less than 6 months"}
        ).json()
        assert step["type"] == "complete"
        assert step["decision"]["outcome"] == "deny"

        resp = client.post(f"{API}/sessions/{sid}/answer", json={"answer": "yes"})
        assert resp.status_code == 409

    def test_intake_text(self, client):
        sid = _new_session(client)
        step = client.post(
            f"{API}/sessions/{sid}/intake/text",
            json={"text": "Member name is Jane Doe, requesting Dupixent"},
        ).json()
        assert step["type"] == "next_question"
        summary = client.get(f"{API}/sessions/{sid}").json()
        assert summary["member_name"] == "Jane Doe"
        assert summary["drug_id"] == "dupixent"

    def test_clarification(self, client):
        sid = _new_session(client)
        client.post(f"{API}/sessions/{sid}/intake", json={"field": "drug_name", "value": "ozempic"})
        step = client.post(f"{API}/sessions/{sid}/answer", json={"answer": "diabetes"}).json()
        assert step["type"] == "clarification"
        assert step["reason"] == "ambiguous"
        assert len(step["candidates"]) == 2

    def test_invalid_intake_field(self, client):
        sid = _new_session(client)
        resp = client.post(f"{API}/sessions/{sid}/intake", json={"field": "ssn", "value": "1"})
        assert resp.status_code == 422

    def test_answer_unknown_session(self, client):
        resp = client.post(f"{API}/sessions/nope/answer", json={"answer": "yes"})
        assert resp.status_code == 404


# =====================================================================
# Admin
# =====================================================================


class TestAdmin:
    def test_missing_key(self, client):
        assert client.post(f"{API}/admin/sweep").status_code == 401

    def test_wrong_key(self, client):
        resp = client.post(f"{API}/admin/sweep", headers={"X-Admin-Key": "nope"})
        assert resp.status_code == 403

    def test_disabled_without_key(self):
        with TestClient(create_app(ServerSettings(session_max_idle_hours=0))) as c:
            resp = c.post(f"{API}/admin/sweep", headers={"X-Admin-Key": "anything"})
            assert resp.status_code == 403

    def test_sweep_all(self, client):
        sid = _new_session(client)
        resp = client.post(
            f"{API}/admin/sweep",
            params={"max_idle_hours": 0},
            headers={"X-Admin-Key": ADMIN_KEY},
        )
        assert resp.status_code == 200
        assert sid in resp.json()["session_ids"]
        assert client.get(f"{API}/sessions/{sid}").status_code == 404

    def test_sweep_defaults_to_configured_idle_age(self, client):
        # The fixture configures an idle age of 0, so everything goes.
        sid = _new_session(client)
        body = client.post(f"{API}/admin/sweep", headers={"X-Admin-Key": ADMIN_KEY}).json()
        assert sid in body["session_ids"]


# =====================================================================
# Config & reaper
# =====================================================================


class TestConfig:
    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("SERVER_PORT", "9000")
        monkeypatch.setenv("SERVER_CORS_ORIGINS", "http://a.test, http://b.test")
        monkeypatch.setenv("CLASSIFIER", "LLM")
        monkeypatch.setenv("ADMIN_API_KEY", "k")
        settings = load_settings()
        assert settings.port == 9000
        assert settings.cors_origins == ["http://a.test", "http://b.test"]
        assert settings.classifier == "llm"
        assert settings.admin_api_key == "k"

    def test_session_lifetime_env(self, monkeypatch):
        monkeypatch.setenv("SESSION_MAX_IDLE_HOURS", "0.5")
        monkeypatch.setenv("REAPER_INTERVAL_SECONDS", "30")
        settings = load_settings()
        assert settings.session_max_idle_hours == 0.5
        assert settings.reaper_interval_seconds == 30.0

    def test_defaults(self, monkeypatch):
        for var in ("SERVER_PORT", "ADMIN_API_KEY", "CLASSIFIER", "SERVER_RULESET_DIR"):
            monkeypatch.delenv(var, raising=False)
        settings = load_settings()
        assert settings.port == 8080
        assert settings.admin_api_key is None
        assert settings.classifier == "rule_based"
        assert settings.ruleset_dir is None


class TestReaper:
    @pytest.mark.asyncio
    async def test_sweep_once(self, engine):
        await engine.create_session()
        assert await sweep_once(engine, timedelta(hours=1)) == 0
        assert await sweep_once(engine, timedelta(seconds=-1)) == 1


class TestErrorMapping:
    @pytest.mark.parametrize(
        "exc, expected",
        [
            (DrugNotFound("x"), (404, "drug_not_found")),
            (SessionClosed("s1", "complete"), (409, "session_closed")),
            (ValueError("thing not found"), (404, "not_found")),
            (ValueError("window closed"), (409, "session_closed")),
            (ValueError("bad input"), (400, "invalid_request")),
        ],
    )
    def test_classify(self, exc, expected):
        assert classify_value_error(exc) == expected
