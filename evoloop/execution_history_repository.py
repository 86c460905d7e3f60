"""Persistence for execution records."""

from __future__ import annotations

import sqlite3

from evoloop.database import RecordNotFoundError
from evoloop.models import ExecutionRecord

_COLUMNS = (
    "execution_id, issue_id, execution_status, model_provider, model_name, "
    "prompt_path, patch_path, started_at, finished_at"
)


def _row_to_record(row: tuple) -> ExecutionRecord:
    (
        execution_id,
        issue_id,
        status,
        provider,
        model,
        prompt_path,
        patch_path,
        started_at,
        finished_at,
    ) = row
    return ExecutionRecord(
        execution_id=execution_id,
        issue_id=issue_id,
        execution_status=status,
        model_provider=provider or "",
        model_name=model or "",
        prompt_path=prompt_path or "",
        patch_path=patch_path or "",
        started_at=started_at,
        finished_at=finished_at,
    )


class ExecutionHistoryRepository:
    """Stores and retrieves execution records."""

    def __init__(self, db: sqlite3.Connection):
        self._db = db

    def save(self, record: ExecutionRecord) -> None:
        """Insert the record, replacing any with the same id."""
        self._db.execute(
            f"INSERT OR REPLACE INTO execution_records ({_COLUMNS}) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                record.execution_id,
                record.issue_id,
                record.execution_status,
                record.model_provider,
                record.model_name,
                record.prompt_path,
                record.patch_path,
                record.started_at,
                record.finished_at,
            ),
        )

    def find_by_id(self, execution_id: str) -> ExecutionRecord:
        """Return the record with this id or raise RecordNotFoundError."""
        row = self._db.execute(
            f"SELECT {_COLUMNS} FROM execution_records WHERE execution_id = ?",
            (execution_id,),
        ).fetchone()
        if row is None:
            raise RecordNotFoundError(f"execution {execution_id!r} not found")
        return _row_to_record(row)

    def find_all(self) -> list[ExecutionRecord]:
        """Return every record, most recently started first."""
        rows = self._db.execute(
            f"SELECT {_COLUMNS} FROM execution_records ORDER BY started_at DESC"
        )
        return [_row_to_record(row) for row in rows]