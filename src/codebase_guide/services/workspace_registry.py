"""In-memory registry of analysis workspaces, keyed by analysis id."""

from __future__ import annotations

import logging
import uuid
from typing import Callable

from codebase_guide.domain.exceptions import AnalysisNotFoundError
from codebase_guide.services.analysis_orchestrator import AnalysisOrchestrator

logger = logging.getLogger(__name__)


class WorkspaceRegistry:
    """Owns every live :class:`AnalysisOrchestrator` for the process lifetime."""

    def __init__(self, factory: Callable[[], AnalysisOrchestrator]) -> None:
        self._factory = factory
        self._workspaces: dict[str, AnalysisOrchestrator] = {}

    def __len__(self) -> int:
        return len(self._workspaces)

    def create(self) -> tuple[str, AnalysisOrchestrator]:
        analysis_id = uuid.uuid4().hex
        orchestrator = self._factory()
        self._workspaces[analysis_id] = orchestrator
        logger.debug("Created workspace %s", analysis_id)
        return analysis_id, orchestrator

    def get(self, analysis_id: str) -> AnalysisOrchestrator:
        try:
            return self._workspaces[analysis_id]
        except KeyError:
            raise AnalysisNotFoundError(f"Analysis '{analysis_id}' not found.") from None

    async def discard(self, analysis_id: str) -> None:
        """Reset and forget a workspace, cancelling any run it has in flight."""
        orchestrator = self.get(analysis_id)
        del self._workspaces[analysis_id]
        await orchestrator.close()
        orchestrator.reset()

    async def close_all(self) -> None:
        workspaces = list(self._workspaces.values())
        self._workspaces.clear()
        for orchestrator in workspaces:
            await orchestrator.close()
