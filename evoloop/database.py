"""SQLite storage setup: opening the database and creating its schema."""

from __future__ import annotations

import os
import sqlite3
from datetime import datetime


class RecordNotFoundError(LookupError):
    """Raised when a record looked up by key does not exist."""


def _adapt_datetime(value: datetime) -> str:
    return value.isoformat()


def _convert_datetime(raw: bytes) -> datetime:
    return datetime.fromisoformat(raw.decode())


def _convert_boolean(raw: bytes) -> bool:
    text = raw.decode().strip().lower()
    if text in ("true", "false"):
        return text == "true"
    return int(text) != 0


sqlite3.register_adapter(datetime, _adapt_datetime)
sqlite3.register_converter("DATETIME", _convert_datetime)
sqlite3.register_converter("BOOLEAN", _convert_boolean)

_REQUIRED_TEXT = "TEXT NOT NULL"
_REQUIRED_INT = "INTEGER NOT NULL"
_REQUIRED_TIME = "DATETIME NOT NULL"
_KEY = "TEXT PRIMARY KEY"

# table -> ((column, declaration), ...), optional (column, parent table, parent column)
_TABLES: dict[str, tuple[tuple[tuple[str, str], ...], tuple[str, str, str] | None]] = {
    "implementation_issues": (
        (
            ("issue_id", _KEY),
            ("issue_title", _REQUIRED_TEXT),
            ("issue_description", _REQUIRED_TEXT),
            ("issue_category", _REQUIRED_TEXT),
            ("remediation_type", f"{_REQUIRED_TEXT} DEFAULT 'code_patch'"),
            ("issue_priority", _REQUIRED_INT),
            ("issue_status", _REQUIRED_TEXT),
            ("target_paths", "TEXT"),
            ("acceptance_criteria", "TEXT"),
            ("source", f"{_REQUIRED_TEXT} DEFAULT 'analyze'"),
            ("source_ref", "TEXT DEFAULT ''"),
            ("dedup_key", "TEXT"),
            ("attempt_count", f"{_REQUIRED_INT} DEFAULT 0"),
            ("last_attempted_at", "DATETIME"),
            ("created_at", _REQUIRED_TIME),
        ),
        None,
    ),
    "execution_records": (
        (
            ("execution_id", _KEY),
            ("issue_id", _REQUIRED_TEXT),
            ("execution_status", _REQUIRED_TEXT),
            ("model_provider", "TEXT"),
            ("model_name", "TEXT"),
            ("prompt_path", "TEXT"),
            ("patch_path", "TEXT"),
            ("started_at", _REQUIRED_TIME),
            ("finished_at", "DATETIME"),
        ),
        ("issue_id", "implementation_issues", "issue_id"),
    ),
    "evaluation_reports": (
        (
            ("evaluation_id", _KEY),
            ("execution_id", _REQUIRED_TEXT),
            ("evaluation_mode", f"{_REQUIRED_TEXT} DEFAULT 'sandbox'"),
            ("test_status", f"{_REQUIRED_TEXT} DEFAULT 'skipped'"),
            ("lint_status", f"{_REQUIRED_TEXT} DEFAULT 'skipped'"),
            ("typecheck_status", f"{_REQUIRED_TEXT} DEFAULT 'skipped'"),
            ("validate_status", f"{_REQUIRED_TEXT} DEFAULT 'skipped'"),
            ("changed_file_count", _REQUIRED_INT),
            ("changed_line_count", _REQUIRED_INT),
            ("evaluation_decision", _REQUIRED_TEXT),
            ("failure_reasons", "TEXT"),
            ("generated_at", _REQUIRED_TIME),
        ),
        ("execution_id", "execution_records", "execution_id"),
    ),
    "hook_execution_records": (
        (
            ("hook_id", _KEY),
            ("execution_id", _REQUIRED_TEXT),
            ("hook_type", _REQUIRED_TEXT),
            ("command", _REQUIRED_TEXT),
            ("args", "TEXT"),
            ("exit_code", "INTEGER"),
            ("stdout", "TEXT"),
            ("stderr", "TEXT"),
            ("duration_ms", "INTEGER"),
            ("timed_out", "BOOLEAN DEFAULT FALSE"),
            ("executed_at", _REQUIRED_TIME),
        ),
        ("execution_id", "execution_records", "execution_id"),
    ),
    "improvement_memory": (
        (
            ("memory_id", _KEY),
            ("pattern_key", f"{_REQUIRED_TEXT} UNIQUE"),
            ("pattern_description", _REQUIRED_TEXT),
            ("success_count", f"{_REQUIRED_INT} DEFAULT 0"),
            ("failure_count", f"{_REQUIRED_INT} DEFAULT 0"),
            ("last_observed_at", _REQUIRED_TIME),
        ),
        None,
    ),
}


def _create_statement(
    table: str,
    columns: tuple[tuple[str, str], ...],
    reference: tuple[str, str, str] | None,
) -> str:
    parts = [f"{name} {declaration}" for name, declaration in columns]
    if reference is not None:
        column, parent, parent_column = reference
        parts.append(f"FOREIGN KEY ({column}) REFERENCES {parent}({parent_column})")
    return f"CREATE TABLE IF NOT EXISTS {table} ({', '.join(parts)})"


def open_database(db_path: str) -> sqlite3.Connection:
    """Open or create the database at db_path and bring its schema up to date."""
    directory = os.path.dirname(db_path)
    if directory and directory != ".":
        os.makedirs(directory, exist_ok=True)

    connection = sqlite3.connect(
        db_path,
        detect_types=sqlite3.PARSE_DECLTYPES,
        isolation_level=None,
    )
    try:
        migrate(connection)
    except sqlite3.Error:
        connection.close()
        raise
    return connection


def migrate(connection: sqlite3.Connection) -> None:
    """Create any missing tables."""
    for table, (columns, reference) in _TABLES.items():
        connection.execute(_create_statement(table, columns, reference))