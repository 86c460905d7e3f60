"""Combined view over issues, executions and evaluations."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from evoloop.evaluation_report_repository import EvaluationReportRepository
from evoloop.execution_history_repository import ExecutionHistoryRepository
from evoloop.issue_repository import ImplementationIssueRepository
from evoloop.models import EvaluationReport, ExecutionRecord, ImplementationIssue


def _plain(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {key: _plain(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_plain(item) for item in value]
    return value


@dataclass
class HistorySummary:
    """All recorded history, ready for display."""

    issues: list[ImplementationIssue] = field(default_factory=list)
    executions: list[ExecutionRecord] = field(default_factory=list)
    evaluations: list[EvaluationReport] = field(default_factory=list)

    def to_dict(self) -> dict[str, list[dict[str, Any]]]:
        """Return a JSON-serialisable mapping of the summary."""
        return {
            "issues": [_plain(dataclasses.asdict(i)) for i in self.issues],
            "executions": [_plain(dataclasses.asdict(e)) for e in self.executions],
            "evaluations": [_plain(dataclasses.asdict(r)) for r in self.evaluations],
        }


class ExecutionHistoryQueryService:
    """Reads history from the three repositories."""

    def __init__(
        self,
        issue_repo: ImplementationIssueRepository,
        execution_repo: ExecutionHistoryRepository,
        evaluation_repo: EvaluationReportRepository,
    ):
        self._issue_repo = issue_repo
        self._execution_repo = execution_repo
        self._evaluation_repo = evaluation_repo

    def query_all(self) -> HistorySummary:
        """Return every issue, execution and evaluation."""
        return HistorySummary(
            issues=self._issue_repo.find_all(),
            executions=self._execution_repo.find_all(),
            evaluations=self._evaluation_repo.find_all(),
        )