"""Domain exception hierarchy.

Inner layers raise these; the orchestrator and the outermost error handlers
translate them into user-facing messages and HTTP status codes.
"""

from __future__ import annotations


class CodebaseGuideError(Exception):
    """Base exception for the entire application."""


# ── Input validation ────────────────────────────────────────────────────────


class InvalidRepositoryUrlError(CodebaseGuideError):
    """The supplied URL does not point to a GitHub repository."""


# ── GitHub API errors ───────────────────────────────────────────────────────


class RepositoryAccessError(CodebaseGuideError):
    """The repository tree could not be listed.

    ``status_code`` is ``None`` when the request never produced a response
    (network failure); ``status_text`` is the provider's status description.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        status_text: str = "",
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.status_text = status_text


class RepositoryNotFoundError(RepositoryAccessError):
    """The repository or branch does not exist or is not public (404)."""


class RepositoryAccessDeniedError(RepositoryAccessError):
    """Access to the repository was denied (403)."""


class GitHubRateLimitError(RepositoryAccessError):
    """GitHub API rate limit exceeded (429 / 403 with rate-limit header)."""


class EmptyRepositoryError(CodebaseGuideError):
    """The tree was listed but no readable code file survived selection."""


# ── Processing errors ───────────────────────────────────────────────────────


class ContentFetchError(CodebaseGuideError):
    """A single file's raw content could not be fetched."""


# ── LLM errors ──────────────────────────────────────────────────────────────


class LlmError(CodebaseGuideError):
    """Any error originating from the LLM provider."""


# ── Workspace errors ────────────────────────────────────────────────────────


class AnalysisNotFoundError(CodebaseGuideError):
    """No analysis workspace exists under the requested id."""


class SessionNotReadyError(CodebaseGuideError):
    """A chat message was sent before the analysis reached the ready stage."""
