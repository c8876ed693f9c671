"""Domain entities — pure data structures with no external dependencies."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from codebase_guide.domain.value_objects import RepositoryIdentifier


class AnalysisStage(str, Enum):
    """Where an analysis workspace is in its pipeline."""

    IDLE = "idle"
    FETCHING = "fetching"
    ANALYZING = "analyzing"
    READY = "ready"
    ERROR = "error"


class ErrorKind(str, Enum):
    """User-facing failure categories."""

    INVALID_INPUT = "invalid_input"
    REPOSITORY_ACCESS = "repository_access"
    EMPTY_RESULT = "empty_result"
    ANALYSIS_FAILURE = "analysis_failure"


class ReportFormat(str, Enum):
    """Which response shape the model produced for an analysis."""

    OVERVIEW = "overview"  # summary / architecture / tech stack
    BLUEPRINT = "blueprint"  # mission / blueprint / file map / decisions


@dataclass(frozen=True, slots=True)
class TreeEntry:
    """A single entry from the GitHub recursive tree API."""

    path: str
    type: str  # "blob", "tree", "commit", ...
    size: int = 0


@dataclass(frozen=True, slots=True)
class FileRecord:
    """A fetched file.

    ``content`` may end with a truncation marker; ``size`` is always the
    length of the text as fetched.  Empty content means the fetch failed.
    """

    path: str
    content: str
    size: int


@dataclass(frozen=True, slots=True)
class TechnicalDecision:
    decision: str
    rationale: str


@dataclass(frozen=True, slots=True)
class ImportantFile:
    path: str
    role: str


@dataclass(frozen=True, slots=True)
class AnalysisReport:
    """Stable internal form of the model's repository analysis."""

    format: ReportFormat
    mission: str
    architecture: str
    tech_stack: tuple[str, ...] = ()
    key_features: tuple[str, ...] = ()
    technical_decisions: tuple[TechnicalDecision, ...] = ()
    important_files: tuple[ImportantFile, ...] = ()
    file_organization: str = ""
    suggested_questions: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "format": self.format.value,
            "mission": self.mission,
            "architecture": self.architecture,
            "tech_stack": list(self.tech_stack),
            "key_features": list(self.key_features),
            "technical_decisions": [
                {"decision": d.decision, "rationale": d.rationale}
                for d in self.technical_decisions
            ],
            "important_files": [
                {"path": f.path, "role": f.role} for f in self.important_files
            ],
            "file_organization": self.file_organization,
            "suggested_questions": list(self.suggested_questions),
        }


@dataclass(frozen=True, slots=True)
class ChatMessage:
    """One transcript entry."""

    role: str  # "user" or "assistant"
    content: str


@dataclass(frozen=True, slots=True)
class AnalysisSnapshot:
    """Read-only view of an analysis workspace at one point in time."""

    stage: AnalysisStage
    error_message: str | None = None
    error_kind: ErrorKind | None = None
    repository: RepositoryIdentifier | None = None
    files: tuple[FileRecord, ...] = field(default_factory=tuple)
    report: AnalysisReport | None = None
