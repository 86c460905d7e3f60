"""Persistence for implementation issues."""

from __future__ import annotations

import sqlite3
from collections.abc import Iterable

from evoloop.database import RecordNotFoundError
from evoloop.models import ImplementationIssue, IssueCategory, IssueStatus

_COLUMNS = (
    "issue_id, issue_title, issue_description, issue_category, remediation_type, "
    "issue_priority, issue_status, target_paths, acceptance_criteria, source, "
    "source_ref, dedup_key, attempt_count, last_attempted_at, created_at"
)


def _split(value: str | None) -> list[str]:
    return value.split(",") if value else []


def _row_to_issue(row: tuple) -> ImplementationIssue:
    (
        issue_id,
        title,
        description,
        category,
        remediation_type,
        priority,
        status,
        target_paths,
        acceptance_criteria,
        source,
        source_ref,
        dedup_key,
        attempt_count,
        last_attempted_at,
        created_at,
    ) = row
    return ImplementationIssue(
        issue_id=issue_id,
        issue_title=title,
        issue_description=description,
        issue_category=category,
        remediation_type=remediation_type,
        issue_priority=priority,
        issue_status=status,
        target_paths=_split(target_paths),
        acceptance_criteria=_split(acceptance_criteria),
        source=source,
        source_ref=source_ref or "",
        dedup_key=dedup_key or "",
        attempt_count=attempt_count,
        last_attempted_at=last_attempted_at,
        created_at=created_at,
    )


def _rows_to_issues(rows: Iterable[tuple]) -> list[ImplementationIssue]:
    return [_row_to_issue(row) for row in rows]


class ImplementationIssueRepository:
    """Stores and retrieves implementation issues."""

    def __init__(self, db: sqlite3.Connection):
        self._db = db

    def save(self, issue: ImplementationIssue) -> None:
        """Insert the issue, replacing any with the same id."""
        self._db.execute(
            f"INSERT OR REPLACE INTO implementation_issues ({_COLUMNS}) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                issue.issue_id,
                issue.issue_title,
                issue.issue_description,
                issue.issue_category,
                issue.remediation_type,
                issue.issue_priority,
                issue.issue_status,
                ",".join(issue.target_paths),
                ",".join(issue.acceptance_criteria),
                issue.source,
                issue.source_ref,
                issue.dedup_key,
                issue.attempt_count,
                issue.last_attempted_at,
                issue.created_at,
            ),
        )

    def find_by_id(self, issue_id: str) -> ImplementationIssue:
        """Return the issue with this id or raise RecordNotFoundError."""
        row = self._db.execute(
            f"SELECT {_COLUMNS} FROM implementation_issues WHERE issue_id = ?",
            (issue_id,),
        ).fetchone()
        if row is None:
            raise RecordNotFoundError(f"issue {issue_id!r} not found")
        return _row_to_issue(row)

    def find_all(self) -> list[ImplementationIssue]:
        """Return every issue, newest first."""
        rows = self._db.execute(
            f"SELECT {_COLUMNS} FROM implementation_issues ORDER BY created_at DESC"
        )
        return _rows_to_issues(rows)

    def find_open_proposable(self) -> list[ImplementationIssue]:
        """Return open, non-environment issues by priority then attempt count."""
        rows = self._db.execute(
            f"SELECT {_COLUMNS} FROM implementation_issues "
            "WHERE issue_status = ? AND issue_category != ? "
            "ORDER BY issue_priority ASC, attempt_count ASC",
            (IssueStatus.OPEN.value, IssueCategory.ENVIRONMENT.value),
        )
        return _rows_to_issues(rows)

    def find_by_dedup_key(self, key: str) -> ImplementationIssue | None:
        """Return the open issue carrying this dedup key, or None."""
        row = self._db.execute(
            f"SELECT {_COLUMNS} FROM implementation_issues "
            "WHERE dedup_key = ? AND issue_status = ?",
            (key, IssueStatus.OPEN.value),
        ).fetchone()
        return None if row is None else _row_to_issue(row)