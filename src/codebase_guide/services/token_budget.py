"""Token budget — keep the code context inside the model's window.

Uses ``tiktoken`` for exact token counting.  Files arrive already ranked, so
trimming drops from the tail: the lowest-priority files go first.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import tiktoken

from codebase_guide.domain.entities import FileRecord
from codebase_guide.services.content_assembler import format_file

logger = logging.getLogger(__name__)

_ENCODING_NAME = "cl100k_base"  # GPT-4o family

_encoder: tiktoken.Encoding | None = None


def _get_encoder() -> tiktoken.Encoding:
    global _encoder  # noqa: PLW0603
    if _encoder is None:
        _encoder = tiktoken.get_encoding(_ENCODING_NAME)
    return _encoder


def count_tokens(text: str) -> int:
    """Return the exact token count for *text* under cl100k_base."""
    return len(_get_encoder().encode(text))


@dataclass
class BudgetedFiles:
    """Outcome of fitting a ranked file list into a token budget."""

    files: list[FileRecord] = field(default_factory=list)
    dropped: list[str] = field(default_factory=list)
    total_tokens: int = 0
    budget_limit: int = 0


def fit_files(files: list[FileRecord], max_tokens: int) -> BudgetedFiles:
    """Keep the longest prefix of *files* whose formatted context fits *max_tokens*.

    The first file is always kept, even when it alone exceeds the budget, so
    a non-empty input never yields an empty selection.
    """
    result = BudgetedFiles(budget_limit=max_tokens)

    for index, record in enumerate(files):
        tokens = count_tokens(format_file(record))
        if index > 0 and result.total_tokens + tokens > max_tokens:
            result.dropped = [f.path for f in files[index:]]
            break
        result.files.append(record)
        result.total_tokens += tokens

    if result.dropped:
        logger.warning(
            "Context budget of %d tokens reached; dropped %d lowest-ranked file(s)",
            max_tokens,
            len(result.dropped),
        )
    return result
