"""GitHub REST API adapter — implements the RepoFetcher port."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

import httpx

from codebase_guide.domain.entities import TreeEntry
from codebase_guide.domain.exceptions import (
    ContentFetchError,
    GitHubRateLimitError,
    RepositoryAccessDeniedError,
    RepositoryAccessError,
    RepositoryNotFoundError,
)
from codebase_guide.domain.value_objects import RepositoryIdentifier

logger = logging.getLogger(__name__)

_GITHUB_API = "https://api.github.com"
_RAW_BASE = "https://raw.githubusercontent.com"
_USER_AGENT = "codebase-guide/1.0"

NETWORK_FAILURE_MESSAGE = "GitHub API error: network failure"


class GitHubRestAdapter:
    """Concrete RepoFetcher backed by the GitHub v3 REST API."""

    def __init__(self, client: httpx.AsyncClient, token: str | None = None) -> None:
        self._client = client
        self._api_headers: dict[str, str] = {
            "Accept": "application/vnd.github.v3+json",
            "User-Agent": _USER_AGENT,
        }
        if token:
            self._api_headers["Authorization"] = f"Bearer {token}"

    async def fetch_tree(self, identifier: RepositoryIdentifier) -> list[TreeEntry]:
        """GET /repos/{owner}/{repo}/git/trees/{branch}?recursive=1 → [TreeEntry]."""
        endpoint = (
            f"{_GITHUB_API}/repos/{identifier.owner}/{identifier.repo}"
            f"/git/trees/{identifier.branch}"
        )
        try:
            resp = await self._client.get(
                endpoint, headers=self._api_headers, params={"recursive": "1"}
            )
        except httpx.HTTPError as exc:
            logger.warning("Tree request for %s failed: %s", identifier.full_name, exc)
            raise RepositoryAccessError(
                NETWORK_FAILURE_MESSAGE, status_text=str(exc)
            ) from exc

        if resp.status_code != 200:
            raise _tree_error(resp)

        data = resp.json()
        if data.get("truncated"):
            logger.warning(
                "Tree listing for %s@%s was truncated by GitHub",
                identifier.full_name,
                identifier.branch,
            )

        return [
            TreeEntry(
                path=item["path"],
                type=item.get("type", "blob"),
                size=item.get("size", 0),
            )
            for item in data.get("tree", [])
        ]

    async def fetch_file_content(self, identifier: RepositoryIdentifier, path: str) -> str:
        """Fetch raw file content via raw.githubusercontent.com (no rate limit)."""
        raw_url = (
            f"{_RAW_BASE}/{identifier.owner}/{identifier.repo}/{identifier.branch}/{path}"
        )
        try:
            resp = await self._client.get(raw_url, headers={"User-Agent": _USER_AGENT})
        except httpx.HTTPError as exc:
            raise ContentFetchError(f"Network error fetching {raw_url}: {exc}") from exc

        if resp.status_code == 200:
            return resp.text

        raise ContentFetchError(
            f"raw.githubusercontent.com returned HTTP {resp.status_code} for {path}"
        )


def _tree_error(resp: httpx.Response) -> RepositoryAccessError:
    """Translate a failed tree response into the matching domain error."""
    status_text = resp.reason_phrase or f"HTTP {resp.status_code}"
    message = f"GitHub API error: {status_text}"
    kwargs: dict[str, Any] = {"status_code": resp.status_code, "status_text": status_text}

    if resp.status_code == 404:
        return RepositoryNotFoundError(message, **kwargs)

    if resp.status_code == 403:
        if resp.headers.get("x-ratelimit-remaining", "") == "0":
            reset_raw = resp.headers.get("x-ratelimit-reset", "")
            try:
                reset_str = datetime.fromtimestamp(int(reset_raw), tz=timezone.utc).strftime(
                    "%Y-%m-%d %H:%M:%S UTC"
                )
            except (ValueError, OSError):
                reset_str = reset_raw or "unknown"
            return GitHubRateLimitError(
                f"GitHub API rate limit exceeded. Resets at {reset_str}. "
                "Set the GITHUB_TOKEN environment variable to increase the limit.",
                **kwargs,
            )
        return RepositoryAccessDeniedError(message, **kwargs)

    if resp.status_code == 429:
        return GitHubRateLimitError("GitHub API rate limit exceeded (HTTP 429).", **kwargs)

    return RepositoryAccessError(message, **kwargs)
