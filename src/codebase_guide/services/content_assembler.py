"""Content assembler — builds the code context block sent to the LLM.

This is the final transformation before file text enters a prompt template.
"""

from __future__ import annotations

import json
from typing import Sequence

from codebase_guide.domain.entities import AnalysisReport, FileRecord


def format_file(record: FileRecord) -> str:
    return f"FILE: {record.path}\nCONTENT:\n{record.content}\n---"


def assemble(files: Sequence[FileRecord]) -> str:
    """Join every file into one ``FILE: / CONTENT:`` delimited block."""
    return "\n".join(format_file(f) for f in files)


def assemble_chat_context(files: Sequence[FileRecord], report: AnalysisReport) -> str:
    """Combine the analysis and the code into the chat session's grounding text."""
    return (
        "## Codebase Analysis\n\n"
        f"{json.dumps(report.to_dict(), indent=2)}\n\n"
        "## Codebase Content\n\n"
        f"{assemble(files)}"
    )
