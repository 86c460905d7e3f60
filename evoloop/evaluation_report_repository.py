"""Persistence for evaluation reports."""

from __future__ import annotations

import sqlite3

from evoloop.models import EvaluationReport

_COLUMNS = (
    "evaluation_id, execution_id, evaluation_mode, test_status, lint_status, "
    "typecheck_status, validate_status, changed_file_count, changed_line_count, "
    "evaluation_decision, failure_reasons, generated_at"
)

_SEPARATOR = "|"


def _row_to_report(row: tuple) -> EvaluationReport:
    (
        evaluation_id,
        execution_id,
        mode,
        test_status,
        lint_status,
        type_check_status,
        validate_status,
        file_count,
        line_count,
        decision,
        failure_reasons,
        generated_at,
    ) = row
    return EvaluationReport(
        evaluation_id=evaluation_id,
        execution_id=execution_id,
        evaluation_mode=mode,
        test_status=test_status,
        lint_status=lint_status,
        type_check_status=type_check_status,
        validate_status=validate_status,
        changed_file_count=file_count,
        changed_line_count=line_count,
        evaluation_decision=decision,
        failure_reasons=failure_reasons.split(_SEPARATOR) if failure_reasons else [],
        generated_at=generated_at,
    )


class EvaluationReportRepository:
    """Stores and retrieves evaluation reports."""

    def __init__(self, db: sqlite3.Connection):
        self._db = db

    def save(self, report: EvaluationReport) -> None:
        """Insert the report, replacing any with the same id."""
        self._db.execute(
            f"INSERT OR REPLACE INTO evaluation_reports ({_COLUMNS}) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                report.evaluation_id,
                report.execution_id,
                report.evaluation_mode,
                report.test_status,
                report.lint_status,
                report.type_check_status,
                report.validate_status,
                report.changed_file_count,
                report.changed_line_count,
                report.evaluation_decision,
                _SEPARATOR.join(report.failure_reasons),
                report.generated_at,
            ),
        )

    def find_all(self) -> list[EvaluationReport]:
        """Return every report, most recently generated first."""
        rows = self._db.execute(
            f"SELECT {_COLUMNS} FROM evaluation_reports ORDER BY generated_at DESC"
        )
        return [_row_to_report(row) for row in rows]