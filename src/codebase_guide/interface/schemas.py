"""Pydantic request / response DTOs for the API boundary."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, field_validator

from codebase_guide.domain.entities import AnalysisSnapshot, ChatMessage


class AnalyzeRequest(BaseModel):
    """Request body for ``POST /analyses`` and ``PUT /analyses/{id}``."""

    github_url: str

    @field_validator("github_url")
    @classmethod
    def _must_not_be_empty(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            msg = "github_url must not be empty."
            raise ValueError(msg)
        return stripped


class ChatRequest(BaseModel):
    """Request body for ``POST /analyses/{id}/messages``."""

    message: str

    @field_validator("message")
    @classmethod
    def _must_not_be_blank(cls, v: str) -> str:
        if not v.strip():
            msg = "message must not be blank."
            raise ValueError(msg)
        return v


class RepositoryOut(BaseModel):
    owner: str
    repo: str
    branch: str


class FileOut(BaseModel):
    path: str
    size: int


class AnalysisResponse(BaseModel):
    """Snapshot of an analysis workspace."""

    analysis_id: str
    stage: str
    error: str | None = None
    repository: RepositoryOut | None = None
    files: list[FileOut] = []
    report: dict[str, Any] | None = None

    @classmethod
    def from_snapshot(cls, analysis_id: str, snapshot: AnalysisSnapshot) -> AnalysisResponse:
        repo = snapshot.repository
        return cls(
            analysis_id=analysis_id,
            stage=snapshot.stage.value,
            error=snapshot.error_message,
            repository=(
                RepositoryOut(owner=repo.owner, repo=repo.repo, branch=repo.branch)
                if repo
                else None
            ),
            files=[FileOut(path=f.path, size=f.size) for f in snapshot.files],
            report=snapshot.report.to_dict() if snapshot.report else None,
        )


class MessageOut(BaseModel):
    role: str
    content: str


class TranscriptResponse(BaseModel):
    analysis_id: str
    messages: list[MessageOut]

    @classmethod
    def from_messages(
        cls, analysis_id: str, messages: tuple[ChatMessage, ...]
    ) -> TranscriptResponse:
        return cls(
            analysis_id=analysis_id,
            messages=[MessageOut(role=m.role, content=m.content) for m in messages],
        )


class ErrorResponse(BaseModel):
    """Standard error envelope returned on all failure paths."""

    status: str = "error"
    message: str
