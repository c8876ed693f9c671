"""Content selector — turn a repository identifier into a sample of source files.

Lists the recursive tree (falling back once from the primary to the secondary
default branch), filters and ranks the entries, and fetches the survivors
concurrently.  Per-file failures shrink the sample instead of aborting it.
"""

from __future__ import annotations

import asyncio
import logging

from codebase_guide.domain.entities import FileRecord, TreeEntry
from codebase_guide.domain.exceptions import ContentFetchError, RepositoryAccessError
from codebase_guide.domain.ports.repo_fetcher import RepoFetcher
from codebase_guide.domain.value_objects import (
    FALLBACK_BRANCH,
    PRIMARY_BRANCH,
    RepositoryIdentifier,
)
from codebase_guide.services.file_filter import filter_and_rank

logger = logging.getLogger(__name__)

TRUNCATION_MARKER = "... [truncated]"


def truncate_content(text: str, max_chars: int) -> str:
    """Cut *text* to *max_chars* and append :data:`TRUNCATION_MARKER` if longer."""
    if len(text) <= max_chars:
        return text
    return text[:max_chars] + TRUNCATION_MARKER


class ContentSelector:
    """Selects and fetches the files that represent a repository.

    Parameters
    ----------
    repo_fetcher:
        Adapter that lists trees and fetches raw file content.
    max_files:
        Upper bound on the number of files fetched.
    max_file_chars:
        Longer files are truncated to this many characters.
    concurrency:
        Maximum number of raw-content requests in flight at once.
    """

    def __init__(
        self,
        repo_fetcher: RepoFetcher,
        max_files: int = 100,
        max_file_chars: int = 50_000,
        concurrency: int = 10,
        primary_branch: str = PRIMARY_BRANCH,
        fallback_branch: str = FALLBACK_BRANCH,
    ) -> None:
        self._fetcher = repo_fetcher
        self._max_files = max_files
        self._max_chars = max_file_chars
        self._concurrency = concurrency
        self._primary = primary_branch
        self._fallback = fallback_branch

    # ── Public entry point ──────────────────────────────────────────────

    async def select_files(
        self, identifier: RepositoryIdentifier
    ) -> tuple[RepositoryIdentifier, list[FileRecord]]:
        """Return the fetched, non-empty sample of files for *identifier*.

        The identifier returned names the branch that actually served the tree.
        """
        resolved, tree = await self.resolve_tree(identifier)

        selected = filter_and_rank(tree, self._max_files)
        logger.info(
            "Selected %d of %d tree entries from %s@%s",
            len(selected),
            len(tree),
            resolved.full_name,
            resolved.branch,
        )

        records = await self._fetch_all(resolved, selected)
        return resolved, [r for r in records if r.content]

    async def resolve_tree(
        self, identifier: RepositoryIdentifier
    ) -> tuple[RepositoryIdentifier, list[TreeEntry]]:
        """List the tree, retrying once on the fallback branch.

        Returns the identifier whose branch actually served the listing.
        """
        try:
            return identifier, await self._fetcher.fetch_tree(identifier)
        except RepositoryAccessError as exc:
            if identifier.branch != self._primary:
                raise
            logger.warning(
                "Tree fetch for %s@%s failed (%s); retrying on %s",
                identifier.full_name,
                identifier.branch,
                exc.status_text or exc,
                self._fallback,
            )

        fallback = identifier.with_branch(self._fallback)
        return fallback, await self._fetcher.fetch_tree(fallback)

    # ── Concurrent fetch ────────────────────────────────────────────────

    async def _fetch_all(
        self, identifier: RepositoryIdentifier, entries: list[TreeEntry]
    ) -> list[FileRecord]:
        """Fetch every entry; each one settles to a record, possibly empty."""
        sem = asyncio.Semaphore(self._concurrency)

        async def _fetch_one(entry: TreeEntry) -> FileRecord:
            async with sem:
                try:
                    text = await self._fetcher.fetch_file_content(identifier, entry.path)
                except ContentFetchError:
                    logger.debug("Failed to fetch %s — skipping", entry.path, exc_info=True)
                    return FileRecord(path=entry.path, content="", size=0)
            return FileRecord(
                path=entry.path,
                content=truncate_content(text, self._max_chars),
                size=len(text),
            )

        return list(await asyncio.gather(*(_fetch_one(e) for e in entries)))
