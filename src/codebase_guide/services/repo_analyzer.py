"""Repository analyzer — the external analysis call and chat-session factory."""

from __future__ import annotations

import logging

from codebase_guide.domain.entities import AnalysisReport, FileRecord
from codebase_guide.domain.exceptions import LlmError
from codebase_guide.domain.ports.llm_gateway import LlmGateway
from codebase_guide.services.chat_relay import ChatSession
from codebase_guide.services.content_assembler import assemble, assemble_chat_context
from codebase_guide.services.report_adapter import parse_report
from codebase_guide.services.token_budget import fit_files

logger = logging.getLogger(__name__)

# ── Prompt templates ────────────────────────────────────────────────────────

ANALYSIS_SYSTEM_PROMPT = """\
You are a world-class software architect.  You are given the contents of a \
GitHub repository as a sequence of FILE / CONTENT blocks.  Explain the \
project to a developer who is about to start working on it.

Return **only** valid JSON with exactly these keys:

{
  "mission": "<2-4 sentences: what the project is and what problem it solves>",
  "architectureSimple": "<plain-language overview of the architecture>",
  "technicalDecisions": [{"decision": "<choice>", "rationale": "<why>"}],
  "importantFiles": [{"path": "<file path>", "role": "<what it does>"}],
  "fileOrganizationLogic": "<how the directories and files are organised>",
  "techStack": ["<language>", "<framework>", "<library>"],
  "suggestedQuestions": ["<5-7 questions a developer might ask next>"]
}

Guidelines:
- Only mention files, technologies and decisions you see evidence of.
- Paths in importantFiles must be paths that appear in the provided files.
"""

CHAT_SYSTEM_PROMPT = """\
You are an expert guide for one specific codebase.  The user wants to deep \
dive into it to understand how things work.  You have the analysis below and \
the full text of the provided files.  Be technical and specific, and \
reference file paths when explaining.  Keep your tone helpful, curious and \
professional.

{context}
"""


class RepositoryAnalyzer:
    """Sends a file sample to the LLM and opens chat sessions over it.

    Parameters
    ----------
    llm_gateway:
        Adapter that can complete prompts and stream chats.
    max_context_tokens:
        Token budget for the code context; ``None`` disables trimming.
    """

    def __init__(self, llm_gateway: LlmGateway, max_context_tokens: int | None = None) -> None:
        self._llm = llm_gateway
        self._max_tokens = max_context_tokens

    def fit(self, files: list[FileRecord]) -> list[FileRecord]:
        """Trim *files* to the context budget, keeping the highest-ranked ones."""
        if self._max_tokens is None:
            return files
        budgeted = fit_files(files, self._max_tokens)
        logger.info(
            "Token budget: %d / %d used by %d file(s)",
            budgeted.total_tokens,
            budgeted.budget_limit,
            len(budgeted.files),
        )
        return budgeted.files

    async def analyze(self, files: list[FileRecord]) -> AnalysisReport:
        """Run the analysis call and return the normalised report."""
        if not files:
            raise LlmError("Cannot analyse an empty file set.")
        raw = await self._llm.complete(ANALYSIS_SYSTEM_PROMPT, assemble(files))
        report = parse_report(raw)
        logger.info("Analysis produced a %s report", report.format.value)
        return report

    async def open_session(
        self, files: list[FileRecord], report: AnalysisReport
    ) -> ChatSession:
        """Create a chat session seeded with the files and the report."""
        system_prompt = CHAT_SYSTEM_PROMPT.format(context=assemble_chat_context(files, report))
        return ChatSession(self._llm, system_prompt)
