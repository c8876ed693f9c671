"""Port: repository fetcher — defined by the domain, implemented by infrastructure."""

from __future__ import annotations

from typing import Protocol

from codebase_guide.domain.entities import TreeEntry
from codebase_guide.domain.value_objects import RepositoryIdentifier


class RepoFetcher(Protocol):
    """Abstract contract for reading a hosted repository."""

    async def fetch_tree(self, identifier: RepositoryIdentifier) -> list[TreeEntry]:
        """Return the recursive file tree for ``identifier.branch``.

        Raises :class:`RepositoryAccessError` when the listing does not succeed.
        """
        ...

    async def fetch_file_content(self, identifier: RepositoryIdentifier, path: str) -> str:
        """Return the raw text of a single file.

        Raises :class:`ContentFetchError` on a network error or non-success status.
        """
        ...
