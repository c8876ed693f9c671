"""Analysis orchestrator — the repository → report → chat pipeline.

One orchestrator owns one analysis workspace and walks it through
``idle → fetching → analyzing → ready``, or into ``error``.  Every failure
is caught here and turned into a user-facing message plus an
:class:`ErrorKind`; nothing raised by the selector or the LLM escapes.

Runs are asyncio tasks.  Starting a new run cancels the one in flight, and
cancelling the task that awaits a run cancels the run itself.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging

from codebase_guide.domain.entities import (
    AnalysisReport,
    AnalysisSnapshot,
    AnalysisStage,
    ErrorKind,
    FileRecord,
)
from codebase_guide.domain.exceptions import RepositoryAccessError
from codebase_guide.domain.value_objects import RepositoryIdentifier, parse_repository_url
from codebase_guide.services.chat_relay import ChatSession
from codebase_guide.services.content_selector import ContentSelector
from codebase_guide.services.repo_analyzer import RepositoryAnalyzer

logger = logging.getLogger(__name__)

INVALID_URL_MESSAGE = "Please enter a valid GitHub repository URL."
NO_FILES_MESSAGE = "No readable code files found."
FETCH_FAILED_MESSAGE = "Could not read the repository. Please try again."
ANALYSIS_FAILED_MESSAGE = "The repository could not be analysed. Please try again."


class AnalysisOrchestrator:
    """Drives one analysis workspace through its stages.

    Parameters
    ----------
    selector:
        Picks and fetches the repository's files.
    analyzer:
        Performs the analysis call and opens chat sessions.
    """

    def __init__(self, selector: ContentSelector, analyzer: RepositoryAnalyzer) -> None:
        self._selector = selector
        self._analyzer = analyzer
        self._task: asyncio.Task[AnalysisSnapshot] | None = None
        self._stage = AnalysisStage.IDLE
        self._error_message: str | None = None
        self._error_kind: ErrorKind | None = None
        self._identifier: RepositoryIdentifier | None = None
        self._files: list[FileRecord] = []
        self._report: AnalysisReport | None = None
        self._session: ChatSession | None = None

    # ── Read access ─────────────────────────────────────────────────────

    @property
    def stage(self) -> AnalysisStage:
        return self._stage

    @property
    def error_message(self) -> str | None:
        return self._error_message

    @property
    def session(self) -> ChatSession | None:
        return self._session

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def snapshot(self) -> AnalysisSnapshot:
        return AnalysisSnapshot(
            stage=self._stage,
            error_message=self._error_message,
            error_kind=self._error_kind,
            repository=self._identifier,
            files=tuple(self._files),
            report=self._report,
        )

    # ── Lifecycle ───────────────────────────────────────────────────────

    def start(self, raw_url: str) -> asyncio.Task[AnalysisSnapshot]:
        """Begin analysing *raw_url*, cancelling any run still in flight."""
        previous = self._task
        self._clear()
        self._task = asyncio.create_task(self._run(raw_url))
        if previous is not None and not previous.done():
            logger.info("Superseding in-flight analysis")
            previous.cancel()
        return self._task

    async def analyze(self, raw_url: str) -> AnalysisSnapshot:
        """Run a full analysis of *raw_url* and return the resulting snapshot.

        If another run supersedes this one before it finishes, the snapshot
        of the workspace at that moment is returned instead.
        """
        task = self.start(raw_url)
        try:
            return await task
        except asyncio.CancelledError:
            if self._task is task:
                raise
            return self.snapshot()

    def reset(self) -> None:
        """Cancel any run and return to ``idle`` with no data."""
        self._cancel_pending()
        self._clear()

    async def close(self) -> None:
        """Cancel any run in flight and wait for it to unwind."""
        task = self._task
        self._cancel_pending()
        if task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await task

    # ── Pipeline ────────────────────────────────────────────────────────

    async def _run(self, raw_url: str) -> AnalysisSnapshot:
        try:
            await self._pipeline(raw_url)
        except asyncio.CancelledError:
            if self._task is asyncio.current_task():
                logger.info("Analysis cancelled")
                self._clear()
            raise
        return self.snapshot()

    async def _pipeline(self, raw_url: str) -> None:
        identifier = parse_repository_url(raw_url)
        if identifier is None:
            self._fail(ErrorKind.INVALID_INPUT, INVALID_URL_MESSAGE)
            return
        self._identifier = identifier

        # 1. Fetch
        self._set_stage(AnalysisStage.FETCHING)
        try:
            resolved, files = await self._selector.select_files(identifier)
        except RepositoryAccessError as exc:
            logger.warning("Repository access failed for %s: %s", identifier.full_name, exc)
            self._fail(ErrorKind.REPOSITORY_ACCESS, str(exc))
            return
        except Exception:
            logger.exception("Unexpected error fetching %s", identifier.full_name)
            self._fail(ErrorKind.REPOSITORY_ACCESS, FETCH_FAILED_MESSAGE)
            return

        self._identifier = resolved

        if not files:
            self._fail(ErrorKind.EMPTY_RESULT, NO_FILES_MESSAGE)
            return

        # 2. Analyse, then seed the chat with files + report
        self._set_stage(AnalysisStage.ANALYZING)
        try:
            files = self._analyzer.fit(files)
            report = await self._analyzer.analyze(files)
            session = await self._analyzer.open_session(files, report)
        except Exception:
            logger.exception("Analysis failed for %s", identifier.full_name)
            self._fail(ErrorKind.ANALYSIS_FAILURE, ANALYSIS_FAILED_MESSAGE)
            return

        self._files = files
        self._report = report
        self._session = session
        self._set_stage(AnalysisStage.READY)

    # ── State helpers ───────────────────────────────────────────────────

    def _set_stage(self, stage: AnalysisStage) -> None:
        logger.info("Analysis stage: %s → %s", self._stage.value, stage.value)
        self._stage = stage

    def _fail(self, kind: ErrorKind, message: str) -> None:
        self._files = []
        self._report = None
        self._session = None
        self._error_kind = kind
        self._error_message = message
        self._set_stage(AnalysisStage.ERROR)

    def _clear(self) -> None:
        self._stage = AnalysisStage.IDLE
        self._error_message = None
        self._error_kind = None
        self._identifier = None
        self._files = []
        self._report = None
        self._session = None

    def _cancel_pending(self) -> None:
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
