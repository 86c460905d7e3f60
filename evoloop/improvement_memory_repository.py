"""Persistence for improvement memory: per-pattern success and failure counts."""

from __future__ import annotations

import sqlite3
from datetime import datetime

from evoloop.database import RecordNotFoundError
from evoloop.models import ImprovementMemoryEntry

_COLUMNS = (
    "memory_id, pattern_key, pattern_description, success_count, "
    "failure_count, last_observed_at"
)


def _row_to_entry(row: tuple) -> ImprovementMemoryEntry:
    memory_id, key, description, successes, failures, observed = row
    return ImprovementMemoryEntry(
        memory_id=memory_id,
        pattern_key=key,
        pattern_description=description,
        success_count=successes,
        failure_count=failures,
        last_observed_at=observed,
    )


class ImprovementMemoryRepository:
    """Stores and retrieves improvement memory entries."""

    def __init__(self, db: sqlite3.Connection):
        self._db = db

    def save(self, entry: ImprovementMemoryEntry) -> None:
        """Insert the entry, replacing any with the same id or pattern key."""
        self._db.execute(
            f"INSERT OR REPLACE INTO improvement_memory ({_COLUMNS}) "
            "VALUES (?, ?, ?, ?, ?, ?)",
            (
                entry.memory_id,
                entry.pattern_key,
                entry.pattern_description,
                entry.success_count,
                entry.failure_count,
                entry.last_observed_at,
            ),
        )

    def find_by_pattern_key(self, key: str) -> ImprovementMemoryEntry:
        """Return the entry for this pattern key or raise RecordNotFoundError."""
        row = self._db.execute(
            f"SELECT {_COLUMNS} FROM improvement_memory WHERE pattern_key = ?",
            (key,),
        ).fetchone()
        if row is None:
            raise RecordNotFoundError(f"memory for pattern {key!r} not found")
        return _row_to_entry(row)

    def find_all(self) -> list[ImprovementMemoryEntry]:
        """Return every entry, most recently observed first."""
        rows = self._db.execute(
            f"SELECT {_COLUMNS} FROM improvement_memory ORDER BY last_observed_at DESC"
        )
        return [_row_to_entry(row) for row in rows]

    def record_success(self, pattern_key: str) -> None:
        """Count one more success for the pattern."""
        self._increment("success_count", pattern_key)

    def record_failure(self, pattern_key: str) -> None:
        """Count one more failure for the pattern."""
        self._increment("failure_count", pattern_key)

    def _increment(self, column: str, pattern_key: str) -> None:
        self._db.execute(
            f"UPDATE improvement_memory SET {column} = {column} + 1, "
            "last_observed_at = ? WHERE pattern_key = ?",
            (datetime.now(), pattern_key),
        )