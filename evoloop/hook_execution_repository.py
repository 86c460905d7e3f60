"""Persistence for post-apply hook executions."""

from __future__ import annotations

import sqlite3

from evoloop.models import HookExecutionRecord

_COLUMNS = (
    "hook_id, execution_id, hook_type, command, args, exit_code, stdout, "
    "stderr, duration_ms, timed_out, executed_at"
)


def _row_to_record(row: tuple) -> HookExecutionRecord:
    (
        hook_id,
        execution_id,
        hook_type,
        command,
        args,
        exit_code,
        stdout,
        stderr,
        duration_ms,
        timed_out,
        executed_at,
    ) = row
    return HookExecutionRecord(
        hook_id=hook_id,
        execution_id=execution_id,
        hook_type=hook_type,
        command=command,
        args=args.split(",") if args else [],
        exit_code=exit_code if exit_code is not None else 0,
        stdout=stdout or "",
        stderr=stderr or "",
        duration_ms=duration_ms if duration_ms is not None else 0,
        timed_out=bool(timed_out),
        executed_at=executed_at,
    )


class HookExecutionRepository:
    """Stores and retrieves hook execution records."""

    def __init__(self, db: sqlite3.Connection):
        self._db = db

    def save(self, record: HookExecutionRecord) -> None:
        """Insert the record; an existing hook id is an integrity error."""
        self._db.execute(
            f"INSERT INTO hook_execution_records ({_COLUMNS}) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                record.hook_id,
                record.execution_id,
                record.hook_type,
                record.command,
                ",".join(record.args),
                record.exit_code,
                record.stdout,
                record.stderr,
                record.duration_ms,
                record.timed_out,
                record.executed_at,
            ),
        )

    def find_by_execution_id(self, execution_id: str) -> list[HookExecutionRecord]:
        """Return the hook records of one execution, oldest first."""
        rows = self._db.execute(
            f"SELECT {_COLUMNS} FROM hook_execution_records "
            "WHERE execution_id = ? ORDER BY executed_at",
            (execution_id,),
        )
        return [_row_to_record(row) for row in rows]