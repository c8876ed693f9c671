"""Shared test fixtures for codebase_guide."""

from __future__ import annotations

import asyncio
from typing import AsyncIterator, Sequence

import pytest

from codebase_guide.domain.entities import ChatMessage, FileRecord, TreeEntry
from codebase_guide.domain.exceptions import (
    ContentFetchError,
    RepositoryNotFoundError,
)
from codebase_guide.domain.value_objects import RepositoryIdentifier
from codebase_guide.services.analysis_orchestrator import AnalysisOrchestrator
from codebase_guide.services.content_selector import ContentSelector
from codebase_guide.services.repo_analyzer import RepositoryAnalyzer

BLUEPRINT_JSON = """{
  "mission": "A tiny web app that greets people.",
  "architectureSimple": "A single entry module serving one route.",
  "technicalDecisions": [{"decision": "TypeScript", "rationale": "Type safety."}],
  "importantFiles": [{"path": "src/index.ts", "role": "Entry point"}],
  "fileOrganizationLogic": "Sources live under src/.",
  "techStack": ["TypeScript", "Node.js"],
  "suggestedQuestions": ["How is the greeting built?"]
}"""


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


class FakeRepoFetcher:
    """In-memory RepoFetcher.

    ``trees`` maps branch name → tree entries; a missing branch behaves like
    a 404 from the tree endpoint.  ``files`` maps path → text; a missing
    path raises :class:`ContentFetchError`.
    """

    def __init__(
        self,
        trees: dict[str, list[TreeEntry]] | None = None,
        files: dict[str, str] | None = None,
    ) -> None:
        self.trees = trees or {}
        self.files = files or {}
        self.tree_calls: list[str] = []
        self.content_calls: list[tuple[str, str]] = []

    async def fetch_tree(self, identifier: RepositoryIdentifier) -> list[TreeEntry]:
        self.tree_calls.append(identifier.branch)
        if identifier.branch not in self.trees:
            raise RepositoryNotFoundError(
                "GitHub API error: Not Found", status_code=404, status_text="Not Found"
            )
        return self.trees[identifier.branch]

    async def fetch_file_content(self, identifier: RepositoryIdentifier, path: str) -> str:
        self.content_calls.append((identifier.branch, path))
        if path not in self.files:
            raise ContentFetchError(f"File not found: {path}")
        return self.files[path]


class GatedFetcher(FakeRepoFetcher):
    """Blocks tree listings for the ``slow`` repo until released."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.entered = asyncio.Event()
        self.release = asyncio.Event()

    async def fetch_tree(self, identifier: RepositoryIdentifier) -> list[TreeEntry]:
        if identifier.repo == "slow":
            self.entered.set()
            await self.release.wait()
        return await super().fetch_tree(identifier)


class FakeLlmGateway:
    """In-memory LlmGateway with a canned completion and scripted streams."""

    def __init__(
        self,
        completion: str | Exception = BLUEPRINT_JSON,
        fragments: Sequence[str] = (),
        stream_error: Exception | None = None,
    ) -> None:
        self.completion = completion
        self.fragments = list(fragments)
        self.stream_error = stream_error
        self.complete_calls: list[tuple[str, str]] = []
        self.stream_calls: list[tuple[str, tuple[ChatMessage, ...]]] = []
        self.on_stream_start = None

    async def complete(
        self, system_prompt: str, user_prompt: str, *, json_mode: bool = True
    ) -> str:
        self.complete_calls.append((system_prompt, user_prompt))
        if isinstance(self.completion, Exception):
            raise self.completion
        return self.completion

    async def stream_chat(
        self, system_prompt: str, messages: Sequence[ChatMessage]
    ) -> AsyncIterator[str]:
        self.stream_calls.append((system_prompt, tuple(messages)))
        if self.on_stream_start is not None:
            self.on_stream_start()
        for fragment in self.fragments:
            yield fragment
        if self.stream_error is not None:
            raise self.stream_error


def blob(path: str, size: int = 10) -> TreeEntry:
    return TreeEntry(path=path, type="blob", size=size)


@pytest.fixture
def sample_tree() -> list[TreeEntry]:
    return [
        TreeEntry(path="src", type="tree"),
        blob("src/index.ts"),
        blob("node_modules/pkg/index.js"),
        blob("README.md"),
        blob("logo.png"),
    ]


@pytest.fixture
def sample_files() -> dict[str, str]:
    return {
        "src/index.ts": "export const greet = (n: string) => `hi ${n}`;\n",
        "node_modules/pkg/index.js": "module.exports = {};\n",
        "README.md": "# Greeter\n",
        "logo.png": "binary",
    }


@pytest.fixture
def fetcher(sample_tree: list[TreeEntry], sample_files: dict[str, str]) -> FakeRepoFetcher:
    return FakeRepoFetcher(trees={"main": sample_tree}, files=sample_files)


@pytest.fixture
def llm() -> FakeLlmGateway:
    return FakeLlmGateway(fragments=["Hel", "lo"])


@pytest.fixture
def orchestrator(fetcher: FakeRepoFetcher, llm: FakeLlmGateway) -> AnalysisOrchestrator:
    return AnalysisOrchestrator(
        selector=ContentSelector(fetcher),
        analyzer=RepositoryAnalyzer(llm),
    )


@pytest.fixture
def records() -> list[FileRecord]:
    return [
        FileRecord(path="README.md", content="# Greeter\n", size=10),
        FileRecord(path="src/index.ts", content="export {};\n", size=11),
    ]
