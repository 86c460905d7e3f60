"""Turning quality metrics into implementation issues."""

from __future__ import annotations

import sqlite3
from datetime import datetime

from evoloop.database import RecordNotFoundError
from evoloop.improvement_memory_repository import ImprovementMemoryRepository
from evoloop.models import (
    ImplementationIssue,
    IssueCategory,
    IssueStatus,
    QualityMetricSnapshot,
    new_id,
)

_MAX_OUTPUT_LENGTH = 2000
_HIGH_FAILURE_RATE = 0.7
_LOW_FAILURE_RATE = 0.3


def truncate_output(output: str) -> str:
    """Cut output to at most 2000 characters, marking it when cut."""
    if len(output) > _MAX_OUTPUT_LENGTH:
        return output[:_MAX_OUTPUT_LENGTH] + "\n... (truncated)"
    return output


def _environment_issue(title: str, output: str) -> ImplementationIssue:
    return ImplementationIssue(
        issue_id=new_id(),
        issue_title=title,
        issue_description=output,
        issue_category=IssueCategory.ENVIRONMENT.value,
        issue_priority=0,
        issue_status=IssueStatus.OPEN.value,
        acceptance_criteria=["Install the required tool"],
        created_at=datetime.now(),
    )


def _quality_issue(
    title: str,
    label: str,
    output: str,
    category: IssueCategory,
    priority: int,
    criteria: list[str],
) -> ImplementationIssue:
    return ImplementationIssue(
        issue_id=new_id(),
        issue_title=title,
        issue_description=f"{label} command failed.\n\nOutput:\n{truncate_output(output)}",
        issue_category=category.value,
        issue_priority=priority,
        issue_status=IssueStatus.OPEN.value,
        acceptance_criteria=criteria,
        created_at=datetime.now(),
    )


class SelfImprovementAnalysisService:
    """Generates implementation issues from a quality metric snapshot."""

    def __init__(self, memory_repo: ImprovementMemoryRepository | None = None):
        self._memory_repo = memory_repo

    def analyze(self, snapshot: QualityMetricSnapshot) -> list[ImplementationIssue]:
        """Return one issue per failed or unavailable check, priorities adjusted by memory."""
        issues: list[ImplementationIssue] = []

        if snapshot.test_tool_missing:
            issues.append(_environment_issue("Test tool not found", snapshot.test_output))
        elif not snapshot.test_succeeded:
            issues.append(
                _quality_issue(
                    "Fix test failures",
                    "Test",
                    snapshot.test_output,
                    IssueCategory.TEST_FAILURE,
                    1,
                    ["All tests pass", "No new test failures introduced"],
                )
            )

        if snapshot.lint_tool_missing:
            issues.append(_environment_issue("Lint tool not found", snapshot.lint_output))
        elif not snapshot.lint_succeeded:
            issues.append(
                _quality_issue(
                    "Fix lint violations",
                    "Lint",
                    snapshot.lint_output,
                    IssueCategory.LINT_VIOLATION,
                    2,
                    ["All lint checks pass", "No new lint violations introduced"],
                )
            )

        if snapshot.type_check_tool_missing:
            issues.append(
                _environment_issue("TypeCheck tool not found", snapshot.type_check_output)
            )
        elif not snapshot.type_check_succeeded:
            issues.append(
                _quality_issue(
                    "Fix type check errors",
                    "Type check",
                    snapshot.type_check_output,
                    IssueCategory.TYPE_CHECK_FAILURE,
                    1,
                    ["Type check passes", "No new type errors introduced"],
                )
            )

        self._adjust_priorities(issues)
        return issues

    def _adjust_priorities(self, issues: list[ImplementationIssue]) -> None:
        """Demote patterns that mostly fail; promote patterns that mostly succeed."""
        if self._memory_repo is None:
            return

        for issue in issues:
            try:
                entry = self._memory_repo.find_by_pattern_key(issue.issue_category)
            except (RecordNotFoundError, sqlite3.Error):
                continue

            total = entry.success_count + entry.failure_count
            if total == 0:
                continue

            failure_rate = entry.failure_count / total
            if failure_rate > _HIGH_FAILURE_RATE:
                issue.issue_priority += 2
            elif failure_rate < _LOW_FAILURE_RATE and issue.issue_priority > 1:
                issue.issue_priority -= 1