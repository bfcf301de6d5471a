"""Tests for api/app.py."""

from __future__ import annotations

import base64

import pytest
from fastapi.testclient import TestClient

from cerebral.api.app import create_app
from cerebral.core.errors import PersistenceError
from cerebral.core.orchestrator import AgentOrchestrator
from cerebral.models.agent import ALL_AGENT_ROLES
from cerebral.models.provider import CompletionResult

from fakes import SAMPLE_RESULTS, FakeProvider, FakeSearch, FakeSpeech, FakeStore


class BrokenStore(FakeStore):
    async def list_all(self):
        raise PersistenceError("database is locked")


@pytest.fixture
def client(base_config, orchestrator, store):
    app = create_app(base_config, orchestrator=orchestrator, store=store)
    with TestClient(app) as test_client:
        yield test_client


class TestDiscuss:
    def test_success(self, client):
        resp = client.post(
            "/agents/discuss",
            json={"transcript": "Build a todo app", "agentRole": "backend", "context": [], "demoMode": False},
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["message"] == "backend says hi"
        assert body["truncated"] is False
        assert body["researchData"] is None
        assert body["audioData"] == base64.b64encode(b"ID3fake").decode("ascii")
        assert body["tokenInfo"]["allocatedOutputTokens"] > 0

    def test_context_forwarded(self, client, provider):
        client.post(
            "/agents/discuss",
            json={
                "transcript": "Build a todo app",
                "agentRole": "qa",
                "context": [{"role": "Architect", "message": "Use SQLite."}],
            },
        )
        assert "- Architect: Use SQLite." in provider.calls[0]["prompt"]

    def test_research_only(self, client, provider):
        resp = client.post(
            "/agents/discuss",
            json={"transcript": "What is the best way to add auth?", "agentRole": "architect"},
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["researchData"]["results"][0]["title"] == "OAuth Guide"
        assert body["researchData"]["totalAvailable"] == len(SAMPLE_RESULTS)
        assert provider.calls == []

    def test_apply_previous_research(self, client, search_client):
        research = {
            "query": "auth",
            "results": [{"title": "OAuth Guide", "url": "https://example.com/oauth", "description": "d"}],
            "summary": "OAuth Guide\nd\nSource: https://example.com/oauth",
        }
        resp = client.post(
            "/agents/discuss",
            json={
                "transcript": "What is the best way to add auth?",
                "agentRole": "architect",
                "previousResearch": research,
            },
        )
        assert resp.status_code == 200
        assert resp.json()["researchData"] is None
        assert search_client.queries == []

    def test_missing_fields(self, client, provider):
        resp = client.post("/agents/discuss", json={"agentRole": "qa"})
        assert resp.status_code == 400
        assert resp.json() == {
            "error": "Missing required fields: transcript and agentRole",
            "acceptedRoles": ALL_AGENT_ROLES,
        }
        assert provider.calls == []

    def test_invalid_role(self, client):
        resp = client.post("/agents/discuss", json={"transcript": "x", "agentRole": "designer"})
        assert resp.status_code == 400
        assert resp.json()["acceptedRoles"] == ALL_AGENT_ROLES

    def test_malformed_body(self, client):
        resp = client.post(
            "/agents/discuss", content="not json", headers={"content-type": "application/json"}
        )
        assert resp.status_code == 400

    def test_model_failure(self, base_config, settings, store):
        provider = FakeProvider(CompletionResult(success=False, error="503 | overloaded"))
        orchestrator = AgentOrchestrator(provider, FakeSearch(), FakeSpeech(), store, settings)
        with TestClient(create_app(base_config, orchestrator=orchestrator, store=store)) as client:
            resp = client.post("/agents/discuss", json={"transcript": "x", "agentRole": "qa"})
        assert resp.status_code == 500
        assert resp.json() == {"error": "Failed to generate agent response", "details": "503 | overloaded"}


class TestHealth:
    def test_health(self, client, provider):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok", "modelConfigured": True}

    def test_health_without_credentials(self, client, provider):
        provider.configured = False
        assert client.get("/health").json()["modelConfigured"] is False


class TestCommands:
    def test_save_and_list(self, client):
        resp = client.post(
            "/commands",
            json={
                "transcript": "Build a login page",
                "agentResponses": [{"role": "architect", "message": "Use sessions."}],
                "timestamp": "2001-01-01T00:00:00Z",
            },
        )
        assert resp.status_code == 200
        saved = resp.json()
        assert saved["id"]
        assert not saved["timestamp"].startswith("2001")
        assert saved["agentResponses"] == [{"role": "architect", "message": "Use sessions."}]

        listed = client.get("/commands").json()
        assert [c["id"] for c in listed] == [saved["id"]]

    def test_save_requires_transcript(self, client):
        resp = client.post("/commands", json={"agentResponses": []})
        assert resp.status_code == 400
        assert resp.json()["error"] == "Invalid request body"

    def test_recent(self, client):
        for i in range(4):
            client.post("/commands", json={"transcript": f"command {i}"})
        recent = client.get("/commands/recent/2").json()
        assert [c["transcript"] for c in recent] == ["command 3", "command 2"]

    def test_recent_non_positive_limit(self, client):
        for i in range(12):
            client.post("/commands", json={"transcript": f"command {i}"})
        assert len(client.get("/commands/recent/0").json()) == 10

    def test_search(self, client):
        client.post("/commands", json={"transcript": "Build a login page"})
        client.post("/commands", json={"transcript": "Add a shopping cart"})
        resp = client.post("/commands/search", json={"query": "login", "limit": 5})
        assert resp.status_code == 200
        assert [c["transcript"] for c in resp.json()] == ["Build a login page"]

    def test_search_requires_query(self, client):
        assert client.post("/commands/search", json={"query": ""}).status_code == 400

    def test_store_failure(self, base_config, orchestrator):
        store = BrokenStore()
        with TestClient(create_app(base_config, orchestrator=orchestrator, store=store)) as client:
            resp = client.get("/commands")
        assert resp.status_code == 500
        assert resp.json()["details"] == "database is locked"


class TestStartup:
    def test_unusable_storage_path_still_serves(self, base_config, settings, tmp_path):
        from cerebral.storage.sqlite import SqliteCommandStore

        blocker = tmp_path / "blocker"
        blocker.write_text("", encoding="utf-8")
        store = SqliteCommandStore(blocker / "sub" / "commands.db")
        provider = FakeProvider()
        orchestrator = AgentOrchestrator(provider, None, None, store, settings)

        with TestClient(create_app(base_config, orchestrator=orchestrator, store=store)) as client:
            discuss = client.post("/agents/discuss", json={"transcript": "Build it", "agentRole": "qa"})
            listing = client.get("/commands")

        assert discuss.status_code == 200
        assert discuss.json()["message"] == "qa says hi"
        assert listing.status_code == 500
