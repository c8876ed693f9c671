"""Tests for the HTTP interface (routes, DTOs, error handlers)."""

from __future__ import annotations

import asyncio
import json

import pytest
from fastapi.testclient import TestClient

from conftest import FakeLlmGateway, FakeRepoFetcher, GatedFetcher, blob

from codebase_guide.domain.exceptions import LlmError
from codebase_guide.interface.app import create_app
from codebase_guide.interface.dependencies import get_registry
from codebase_guide.interface.routes import create_analysis
from codebase_guide.interface.schemas import AnalyzeRequest
from codebase_guide.services.analysis_orchestrator import (
    ANALYSIS_FAILED_MESSAGE,
    INVALID_URL_MESSAGE,
    NO_FILES_MESSAGE,
    AnalysisOrchestrator,
)
from codebase_guide.services.chat_relay import CHAT_ERROR_MESSAGE
from codebase_guide.services.content_selector import ContentSelector
from codebase_guide.services.repo_analyzer import RepositoryAnalyzer
from codebase_guide.services.workspace_registry import WorkspaceRegistry

APP_URL = "https://github.com/acme/app"


@pytest.fixture
def registry(fetcher: FakeRepoFetcher, llm: FakeLlmGateway) -> WorkspaceRegistry:
    return WorkspaceRegistry(
        lambda: AnalysisOrchestrator(ContentSelector(fetcher), RepositoryAnalyzer(llm))
    )


@pytest.fixture
def client(registry: WorkspaceRegistry) -> TestClient:
    app = create_app()
    app.dependency_overrides[get_registry] = lambda: registry
    return TestClient(app)


def _events(text: str) -> list[dict]:
    return [json.loads(line) for line in text.splitlines() if line]


def _create(client: TestClient) -> str:
    resp = client.post("/analyses", json={"github_url": APP_URL})
    assert resp.status_code == 200, resp.text
    return resp.json()["analysis_id"]


class TestCreateAnalysis:
    def test_success(self, client, sample_files):
        resp = client.post("/analyses", json={"github_url": APP_URL})

        assert resp.status_code == 200
        body = resp.json()
        assert body["stage"] == "ready"
        assert body["error"] is None
        assert body["repository"] == {"owner": "acme", "repo": "app", "branch": "main"}
        assert body["files"] == [
            {"path": "README.md", "size": len(sample_files["README.md"])},
            {"path": "src/index.ts", "size": len(sample_files["src/index.ts"])},
        ]
        assert body["report"]["format"] == "blueprint"
        assert body["report"]["mission"] == "A tiny web app that greets people."

    def test_repository_reports_fallback_branch(self, client, fetcher):
        fetcher.trees["master"] = fetcher.trees.pop("main")

        resp = client.post("/analyses", json={"github_url": APP_URL})

        assert resp.status_code == 200
        assert resp.json()["repository"] == {"owner": "acme", "repo": "app", "branch": "master"}

    def test_invalid_url(self, client, registry, fetcher):
        resp = client.post("/analyses", json={"github_url": "https://example.com/x"})

        assert resp.status_code == 422
        assert resp.json() == {"status": "error", "message": INVALID_URL_MESSAGE}
        assert fetcher.tree_calls == []
        assert len(registry) == 0

    def test_repository_not_accessible(self, client, fetcher):
        fetcher.trees.clear()

        resp = client.post("/analyses", json={"github_url": APP_URL})

        assert resp.status_code == 404
        assert resp.json()["message"] == "GitHub API error: Not Found"

    def test_no_readable_files(self, client, fetcher):
        fetcher.trees["main"] = [blob("logo.png")]

        resp = client.post("/analyses", json={"github_url": APP_URL})

        assert resp.status_code == 422
        assert resp.json()["message"] == NO_FILES_MESSAGE

    def test_analysis_failure(self, client, llm):
        llm.completion = LlmError("upstream exploded")

        resp = client.post("/analyses", json={"github_url": APP_URL})

        assert resp.status_code == 502
        assert resp.json()["message"] == ANALYSIS_FAILED_MESSAGE

    def test_missing_body_field(self, client):
        resp = client.post("/analyses", json={})
        assert resp.status_code == 422
        assert resp.json()["status"] == "error"

    def test_blank_url(self, client):
        resp = client.post("/analyses", json={"github_url": "   "})
        assert resp.status_code == 422

    @pytest.mark.anyio
    async def test_abandoned_request_discards_workspace(self, sample_tree, sample_files, llm):
        fetcher = GatedFetcher(trees={"main": sample_tree}, files=sample_files)
        registry = WorkspaceRegistry(
            lambda: AnalysisOrchestrator(ContentSelector(fetcher), RepositoryAnalyzer(llm))
        )
        body = AnalyzeRequest(github_url="https://github.com/acme/slow")

        request = asyncio.create_task(create_analysis(body, registry))
        await fetcher.entered.wait()
        assert len(registry) == 1

        request.cancel()
        with pytest.raises(asyncio.CancelledError):
            await request

        assert len(registry) == 0
        assert llm.complete_calls == []


class TestWorkspace:
    def test_get_snapshot(self, client):
        analysis_id = _create(client)

        resp = client.get(f"/analyses/{analysis_id}")

        assert resp.status_code == 200
        assert resp.json()["stage"] == "ready"

    def test_unknown_id(self, client):
        resp = client.get("/analyses/nope")
        assert resp.status_code == 404
        assert resp.json() == {"status": "error", "message": "Analysis 'nope' not found."}

    def test_rerun_in_same_workspace(self, client):
        analysis_id = _create(client)

        resp = client.put(
            f"/analyses/{analysis_id}",
            json={"github_url": "https://github.com/acme/app/tree/main"},
        )

        assert resp.status_code == 200
        assert resp.json()["analysis_id"] == analysis_id

    def test_delete(self, client, registry):
        analysis_id = _create(client)

        assert client.delete(f"/analyses/{analysis_id}").status_code == 204
        assert client.get(f"/analyses/{analysis_id}").status_code == 404
        assert len(registry) == 0


class TestChat:
    def test_streams_fragments_then_done(self, client):
        analysis_id = _create(client)

        resp = client.post(f"/analyses/{analysis_id}/messages", json={"message": "Hi?"})

        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("application/x-ndjson")
        assert _events(resp.text) == [
            {"type": "fragment", "text": "Hel"},
            {"type": "fragment", "text": "lo"},
            {"type": "done", "content": "Hello", "error": False},
        ]

        transcript = client.get(f"/analyses/{analysis_id}/messages").json()
        assert transcript["messages"] == [
            {"role": "user", "content": "Hi?"},
            {"role": "assistant", "content": "Hello"},
        ]

    def test_stream_failure_reports_error(self, client, llm):
        analysis_id = _create(client)
        llm.stream_error = LlmError("reset")

        resp = client.post(f"/analyses/{analysis_id}/messages", json={"message": "Hi?"})

        events = _events(resp.text)
        assert events[-1] == {"type": "done", "content": CHAT_ERROR_MESSAGE, "error": True}

    def test_not_ready(self, client, registry):
        analysis_id, _ = registry.create()

        resp = client.post(f"/analyses/{analysis_id}/messages", json={"message": "Hi?"})

        assert resp.status_code == 409

    def test_empty_transcript_before_ready(self, client, registry):
        analysis_id, _ = registry.create()

        resp = client.get(f"/analyses/{analysis_id}/messages")

        assert resp.json() == {"analysis_id": analysis_id, "messages": []}


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_error_envelope_is_documented(client):
    schema = client.get("/openapi.json").json()

    assert "ErrorResponse" in schema["components"]["schemas"]
    not_ready = schema["paths"]["/analyses/{analysis_id}/messages"]["post"]["responses"]["409"]
    assert not_ready["content"]["application/json"]["schema"] == {
        "$ref": "#/components/schemas/ErrorResponse"
    }
