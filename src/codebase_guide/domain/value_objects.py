"""Value objects — self-validating domain primitives."""

from __future__ import annotations

import re
from dataclasses import dataclass, replace

PRIMARY_BRANCH = "main"
FALLBACK_BRANCH = "master"

_GITHUB_URL_RE = re.compile(
    r"github\.com/(?P<owner>[^/]+)/(?P<repo>[^/]+)(?:/tree/(?P<branch>[^/]+))?"
)


@dataclass(frozen=True, slots=True)
class RepositoryIdentifier:
    """Owner / repository / branch triple naming one repository snapshot.

    The branch starts out as a guess (``main`` unless the URL names one) and
    is only trusted once a tree listing against it has succeeded.
    """

    owner: str
    repo: str
    branch: str = PRIMARY_BRANCH

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"

    def with_branch(self, branch: str) -> RepositoryIdentifier:
        return replace(self, branch=branch)


def parse_repository_url(raw_url: str) -> RepositoryIdentifier | None:
    """Extract a :class:`RepositoryIdentifier` from a GitHub URL.

    Accepts ``github.com/<owner>/<repo>`` with an optional ``/tree/<branch>``
    suffix and one trailing slash.  Returns ``None`` for anything else.
    """
    url = raw_url.strip()
    if url.endswith("/"):
        url = url[:-1]

    match = _GITHUB_URL_RE.search(url)
    if not match:
        return None

    repo = match["repo"]
    if repo.endswith(".git"):
        repo = repo[: -len(".git")]
    if not repo:
        return None

    return RepositoryIdentifier(
        owner=match["owner"],
        repo=repo,
        branch=match["branch"] or PRIMARY_BRANCH,
    )
