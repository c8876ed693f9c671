"""FastAPI dependency injection wiring."""

from __future__ import annotations

import httpx

from codebase_guide.infrastructure.config import Settings, get_settings
from codebase_guide.infrastructure.github_rest_adapter import GitHubRestAdapter
from codebase_guide.infrastructure.openai_adapter import OpenAIAdapter
from codebase_guide.services.analysis_orchestrator import AnalysisOrchestrator
from codebase_guide.services.content_selector import ContentSelector
from codebase_guide.services.repo_analyzer import RepositoryAnalyzer
from codebase_guide.services.workspace_registry import WorkspaceRegistry

_http_client: httpx.AsyncClient | None = None
_openai_adapter: OpenAIAdapter | None = None
_registry: WorkspaceRegistry | None = None


async def startup() -> None:
    """Initialise shared resources — called from the lifespan context manager."""
    global _http_client, _openai_adapter, _registry  # noqa: PLW0603

    settings = get_settings()
    _http_client = httpx.AsyncClient(timeout=httpx.Timeout(settings.http_timeout_seconds))
    _openai_adapter = OpenAIAdapter(
        api_key=settings.openai_api_key.get_secret_value(),
        model=settings.openai_model,
    )
    _registry = WorkspaceRegistry(lambda: build_orchestrator(settings))


async def shutdown() -> None:
    """Release shared resources."""
    global _http_client, _openai_adapter, _registry  # noqa: PLW0603

    if _registry:
        await _registry.close_all()
        _registry = None
    if _http_client:
        await _http_client.aclose()
        _http_client = None
    if _openai_adapter:
        await _openai_adapter.close()
        _openai_adapter = None


def build_orchestrator(settings: Settings) -> AnalysisOrchestrator:
    """Build a fresh orchestrator over the shared adapters."""
    assert _http_client is not None, "startup() was not called"
    assert _openai_adapter is not None, "startup() was not called"

    token = settings.github_token.get_secret_value() if settings.github_token else None
    selector = ContentSelector(
        repo_fetcher=GitHubRestAdapter(client=_http_client, token=token),
        max_files=settings.max_selected_files,
        max_file_chars=settings.max_file_chars,
        concurrency=settings.fetch_concurrency,
        primary_branch=settings.primary_branch,
        fallback_branch=settings.fallback_branch,
    )
    analyzer = RepositoryAnalyzer(
        llm_gateway=_openai_adapter,
        max_context_tokens=settings.max_context_tokens,
    )
    return AnalysisOrchestrator(selector=selector, analyzer=analyzer)


def get_registry() -> WorkspaceRegistry:
    """Return the process-wide workspace registry."""
    assert _registry is not None, "startup() was not called"
    return _registry
