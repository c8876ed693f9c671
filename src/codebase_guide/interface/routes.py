"""API routes — thin controllers that delegate to the orchestrator and chat relay."""

from __future__ import annotations

import asyncio
import json
from typing import AsyncIterator

from fastapi import APIRouter, Depends, Response
from fastapi.responses import StreamingResponse

from codebase_guide.domain.entities import AnalysisSnapshot, AnalysisStage
from codebase_guide.domain.exceptions import SessionNotReadyError
from codebase_guide.interface.dependencies import get_registry
from codebase_guide.interface.error_handlers import ERROR_KIND_STATUS, error_json
from codebase_guide.interface.schemas import (
    AnalysisResponse,
    AnalyzeRequest,
    ChatRequest,
    ErrorResponse,
    TranscriptResponse,
)
from codebase_guide.services.chat_relay import CHAT_ERROR_MESSAGE
from codebase_guide.services.workspace_registry import WorkspaceRegistry

router = APIRouter()

_ANALYSIS_ERRORS = {
    422: {"model": ErrorResponse, "description": "Invalid GitHub URL or no readable code files"},
    404: {"model": ErrorResponse, "description": "Repository or branch not accessible"},
    502: {"model": ErrorResponse, "description": "LLM provider error"},
}


def _respond(analysis_id: str, snapshot: AnalysisSnapshot) -> Response:
    if snapshot.stage is AnalysisStage.ERROR and snapshot.error_kind is not None:
        return error_json(
            ERROR_KIND_STATUS[snapshot.error_kind],
            snapshot.error_message or "Analysis failed.",
        )
    return Response(
        content=AnalysisResponse.from_snapshot(analysis_id, snapshot).model_dump_json(),
        media_type="application/json",
    )


@router.post("/analyses", response_model=AnalysisResponse, responses=_ANALYSIS_ERRORS)
async def create_analysis(
    body: AnalyzeRequest,
    registry: WorkspaceRegistry = Depends(get_registry),
) -> Response:
    """Analyse a public GitHub repository in a new workspace."""
    analysis_id, orchestrator = registry.create()
    try:
        snapshot = await orchestrator.analyze(body.github_url)
    except asyncio.CancelledError:
        await registry.discard(analysis_id)
        raise
    if snapshot.stage is AnalysisStage.ERROR:
        await registry.discard(analysis_id)
    return _respond(analysis_id, snapshot)


@router.get("/analyses/{analysis_id}", response_model=AnalysisResponse)
async def get_analysis(
    analysis_id: str,
    registry: WorkspaceRegistry = Depends(get_registry),
) -> AnalysisResponse:
    """Return the current state of an analysis workspace."""
    orchestrator = registry.get(analysis_id)
    return AnalysisResponse.from_snapshot(analysis_id, orchestrator.snapshot())


@router.put("/analyses/{analysis_id}", response_model=AnalysisResponse, responses=_ANALYSIS_ERRORS)
async def rerun_analysis(
    analysis_id: str,
    body: AnalyzeRequest,
    registry: WorkspaceRegistry = Depends(get_registry),
) -> Response:
    """Analyse a (possibly different) repository in an existing workspace."""
    orchestrator = registry.get(analysis_id)
    snapshot = await orchestrator.analyze(body.github_url)
    return _respond(analysis_id, snapshot)


@router.delete("/analyses/{analysis_id}", status_code=204)
async def delete_analysis(
    analysis_id: str,
    registry: WorkspaceRegistry = Depends(get_registry),
) -> Response:
    """Cancel and discard an analysis workspace."""
    await registry.discard(analysis_id)
    return Response(status_code=204)


@router.get("/analyses/{analysis_id}/messages", response_model=TranscriptResponse)
async def get_transcript(
    analysis_id: str,
    registry: WorkspaceRegistry = Depends(get_registry),
) -> TranscriptResponse:
    """Return the chat transcript of a workspace."""
    session = registry.get(analysis_id).session
    messages = session.messages if session else ()
    return TranscriptResponse.from_messages(analysis_id, messages)


@router.post(
    "/analyses/{analysis_id}/messages",
    responses={409: {"model": ErrorResponse, "description": "Analysis is not ready for chat"}},
)
async def send_message(
    analysis_id: str,
    body: ChatRequest,
    registry: WorkspaceRegistry = Depends(get_registry),
) -> StreamingResponse:
    """Ask a follow-up question; the reply streams back as NDJSON events."""
    orchestrator = registry.get(analysis_id)
    session = orchestrator.session
    if orchestrator.stage is not AnalysisStage.READY or session is None:
        raise SessionNotReadyError("Analysis is not ready for chat yet.")

    async def _events() -> AsyncIterator[str]:
        reply = ""
        async for fragment in session.send(body.message):
            reply += fragment
            yield json.dumps({"type": "fragment", "text": fragment}) + "\n"
        failed = session.last_turn_failed
        yield json.dumps(
            {
                "type": "done",
                "content": CHAT_ERROR_MESSAGE if failed else reply,
                "error": failed,
            }
        ) + "\n"

    return StreamingResponse(_events(), media_type="application/x-ndjson")
