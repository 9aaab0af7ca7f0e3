"""Tests for the reviews HTTP API."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient
from pymongo.errors import ServerSelectionTimeoutError

from codereview.api.deps import get_orchestrator, get_store
from codereview.main import create_app
from codereview.services.review.orchestrator import ReviewOrchestrator
from codereview.services.review.report import ReportGenerator

from fakes import FakeLLM, InMemoryReviewStore, RecordingPacer, StubAnalyzer, StubSampler

URL = "https://github.com/acme/widgets"


@pytest.fixture
def api_store():
    return InMemoryReviewStore()


@pytest.fixture
def api_llm():
    return FakeLLM()


@pytest.fixture
def client(api_store, api_llm):
    orch = ReviewOrchestrator(
        api_store, StubAnalyzer(), StubSampler(), ReportGenerator(api_llm), pacer=RecordingPacer()
    )
    app = create_app()
    app.dependency_overrides[get_store] = lambda: api_store
    app.dependency_overrides[get_orchestrator] = lambda: orch
    return TestClient(app)


class TestGenerate:
    def test_completed(self, client):
        resp = client.post("/api/v1/reviews/generate", json={"github_url": URL, "team_name": "  Blue  "})
        assert resp.status_code == 201
        body = resp.json()
        assert body["status"] == "completed"
        assert body["review"]["repository_name"] == "acme/widgets"
        assert body["review"]["team_name"] == "Blue"
        assert body["review"]["full_report"] == "FULL REPORT"
        assert body["review"]["repository_stats"]["languages"] == {"JavaScript": 1}

    def test_existing_review(self, client):
        first = client.post("/api/v1/reviews/generate", json={"github_url": URL}).json()
        resp = client.post("/api/v1/reviews/generate", json={"github_url": URL})
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "already_exists"
        assert body["existing_review"]["id"] == first["review"]["id"]
        assert "force=true" in body["hint"]

    def test_force(self, client, api_store):
        client.post("/api/v1/reviews/generate", json={"github_url": URL})
        resp = client.post("/api/v1/reviews/generate?force=true", json={"github_url": URL})
        assert resp.status_code == 201
        assert len(api_store.records) == 2

    def test_invalid_url_is_saved(self, client):
        resp = client.post("/api/v1/reviews/generate", json={"github_url": "https://github.com/octocat"})
        assert resp.status_code == 201
        body = resp.json()
        assert body["status"] == "saved_invalid"
        assert body["review"]["repository_name"] is None

    def test_generation_failure_is_server_error(self, client, api_llm):
        api_llm.fail_on = "widgets"
        resp = client.post("/api/v1/reviews/generate", json={"github_url": URL})
        assert resp.status_code == 500
        assert resp.json() == {"error": "backend exploded"}

    def test_validation(self, client):
        assert client.post("/api/v1/reviews/generate", json={}).status_code == 422
        assert client.post(
            "/api/v1/reviews/generate", json={"github_url": URL, "analysis_depth": "extreme"}
        ).status_code == 422
        assert client.post(
            "/api/v1/reviews/generate", json={"github_url": URL, "team_name": "x" * 101}
        ).status_code == 422


class TestBulk:
    def test_bulk(self, client):
        resp = client.post(
            "/api/v1/reviews/bulk",
            json={"repos": [{"github_url": URL, "team_name": "A"}, {"github_url": "https://github.com/octocat"}]},
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["total"] == 2
        assert body["success_count"] == 2 and body["failure_count"] == 0
        assert body["results"][0]["review_id"]
        assert body["results"][1]["note"]

    def test_duplicate_urls_rejected(self, client, api_store):
        resp = client.post(
            "/api/v1/reviews/bulk",
            json={"repos": [{"github_url": URL}, {"github_url": URL.upper()}]},
        )
        assert resp.status_code == 400
        assert "Duplicate" in resp.json()["error"]
        assert api_store.records == {}

    def test_cap(self, client, api_store):
        repos = [{"github_url": f"https://github.com/acme/r{i}"} for i in range(51)]
        resp = client.post("/api/v1/reviews/bulk", json={"repos": repos})
        assert resp.status_code == 400
        assert "Maximum 50" in resp.json()["error"]
        assert api_store.records == {}

    def test_configured_cap(self, client, api_store, api_llm):
        orch = ReviewOrchestrator(
            api_store, StubAnalyzer(), StubSampler(), ReportGenerator(api_llm), bulk_max_items=2
        )
        client.app.dependency_overrides[get_orchestrator] = lambda: orch
        repos = [{"github_url": f"https://github.com/acme/r{i}"} for i in range(3)]
        resp = client.post("/api/v1/reviews/bulk", json={"repos": repos})
        assert resp.status_code == 400
        assert "Maximum 2" in resp.json()["error"]

    def test_empty_list(self, client):
        assert client.post("/api/v1/reviews/bulk", json={"repos": []}).status_code == 422

    def test_sample_csv(self, client):
        resp = client.get("/api/v1/reviews/bulk/sample-csv")
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/csv")
        assert resp.text.splitlines()[0] == "github_url,team_name"


class TestReadAndDelete:
    def _seed(self, client):
        client.post("/api/v1/reviews/generate", json={"github_url": URL, "team_name": "Blue"})
        client.post("/api/v1/reviews/generate", json={"github_url": "https://github.com/acme/gadgets"})

    def test_list(self, client):
        self._seed(client)
        body = client.get("/api/v1/reviews?page=1&limit=1").json()
        assert body["pagination"] == {"current_page": 1, "total_pages": 2, "total_count": 2, "limit": 1}
        assert body["reviews"][0]["github_url"] == "https://github.com/acme/gadgets"
        assert body["reviews"][0]["full_report"] is None

    def test_list_by_team(self, client):
        self._seed(client)
        body = client.get("/api/v1/reviews/team/Blue").json()
        assert body["team_name"] == "Blue"
        assert [r["github_url"] for r in body["reviews"]] == [URL]

    def test_get_and_delete(self, client):
        review_id = client.post("/api/v1/reviews/generate", json={"github_url": URL}).json()["review"]["id"]

        got = client.get(f"/api/v1/reviews/{review_id}")
        assert got.status_code == 200
        assert got.json()["review"]["id"] == review_id

        assert client.delete(f"/api/v1/reviews/{review_id}").status_code == 200
        assert client.get(f"/api/v1/reviews/{review_id}").status_code == 404
        assert client.delete(f"/api/v1/reviews/{review_id}").status_code == 404

    def test_stats(self, client):
        self._seed(client)
        body = client.get("/api/v1/reviews/stats").json()
        assert body["statistics"]["total_reviews"] == 2
        assert body["statistics"]["language_statistics"] == {"JavaScript": 2}


def test_index_lists_endpoints(client):
    body = client.get("/").json()
    assert "POST /api/v1/reviews/generate" in body["endpoints"]


class TestHealth:
    def test_mongo_up(self, client):
        client.app.state.db = MagicMock(command=AsyncMock(return_value={"ok": 1}))
        body = client.get("/api/v1/health").json()
        assert body["status"] == "ok"
        assert body["mongo"] is True

    def test_mongo_down(self, client):
        client.app.state.db = MagicMock(command=AsyncMock(side_effect=ServerSelectionTimeoutError("down")))
        assert client.get("/api/v1/health").json()["mongo"] is False
