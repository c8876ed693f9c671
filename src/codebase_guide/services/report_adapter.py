"""Report adapter — normalise the model's JSON into an :class:`AnalysisReport`.

Two response shapes are understood:

* **overview** — ``summary``, ``architecture``, ``techStack``,
  ``keyFeatures``, ``suggestedQuestions``.
* **blueprint** — ``mission``, ``architectureSimple``,
  ``technicalDecisions``, ``importantFiles``, ``fileOrganizationLogic``,
  ``techStack``, ``suggestedQuestions``.

Keys are accepted in camelCase or snake_case.  Whatever the shape, callers
only ever see the one internal representation.
"""

from __future__ import annotations

import json
from typing import Any

from codebase_guide.domain.entities import (
    AnalysisReport,
    ImportantFile,
    ReportFormat,
    TechnicalDecision,
)
from codebase_guide.domain.exceptions import LlmError


def parse_json_payload(raw: str) -> dict[str, Any]:
    """Parse the LLM's JSON output, tolerating markdown code fences."""
    text = raw.strip()

    if text.startswith("```"):
        first_nl = text.index("\n") if "\n" in text else 3
        text = text[first_nl + 1 :]
        if text.endswith("```"):
            text = text[:-3]
        text = text.strip()

    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise LlmError(f"LLM returned invalid JSON: {exc}") from exc

    if not isinstance(data, dict):
        raise LlmError("LLM returned JSON that is not an object.")
    return data


def _get(data: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in data:
            return data[key]
    return None


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def _strings(value: Any) -> tuple[str, ...]:
    if not isinstance(value, list):
        return ()
    return tuple(str(v) for v in value if v)


def _decisions(value: Any) -> tuple[TechnicalDecision, ...]:
    if not isinstance(value, list):
        return ()
    return tuple(
        TechnicalDecision(
            decision=_text(item.get("decision")),
            rationale=_text(item.get("rationale")),
        )
        for item in value
        if isinstance(item, dict) and item.get("decision")
    )


def _important_files(value: Any) -> tuple[ImportantFile, ...]:
    if not isinstance(value, list):
        return ()
    return tuple(
        ImportantFile(path=_text(item.get("path")), role=_text(item.get("role")))
        for item in value
        if isinstance(item, dict) and item.get("path")
    )


def detect_format(data: dict[str, Any]) -> ReportFormat:
    if "mission" in data:
        return ReportFormat.BLUEPRINT
    return ReportFormat.OVERVIEW


def adapt_report(data: dict[str, Any]) -> AnalysisReport:
    """Build an :class:`AnalysisReport` from either supported payload shape."""
    fmt = detect_format(data)

    if fmt is ReportFormat.BLUEPRINT:
        mission = _text(data.get("mission"))
        architecture = _text(
            _get(data, "architectureSimple", "architecture_simple", "architecture")
        )
    else:
        mission = _text(data.get("summary"))
        architecture = _text(data.get("architecture"))

    if not mission:
        raise LlmError("LLM response missing 'mission' / 'summary' field.")

    return AnalysisReport(
        format=fmt,
        mission=mission,
        architecture=architecture,
        tech_stack=_strings(_get(data, "techStack", "tech_stack")),
        key_features=_strings(_get(data, "keyFeatures", "key_features")),
        technical_decisions=_decisions(
            _get(data, "technicalDecisions", "technical_decisions")
        ),
        important_files=_important_files(_get(data, "importantFiles", "important_files")),
        file_organization=_text(
            _get(data, "fileOrganizationLogic", "file_organization_logic", "file_organization")
        ),
        suggested_questions=_strings(_get(data, "suggestedQuestions", "suggested_questions")),
    )


def parse_report(raw: str) -> AnalysisReport:
    return adapt_report(parse_json_payload(raw))
