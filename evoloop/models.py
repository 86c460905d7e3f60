"""Domain records shared by the repositories and services."""

from __future__ import annotations

import os
import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

_CROCKFORD = "0123456789ABCDEFGHJKMNPQRSTVWXYZ"


def new_id() -> str:
    """Return a new ULID: 48 bits of milliseconds followed by 80 random bits."""
    millis = time.time_ns() // 1_000_000
    value = (millis << 80) | int.from_bytes(os.urandom(10), "big")
    chars = []
    for _ in range(26):
        chars.append(_CROCKFORD[value & 31])
        value >>= 5
    return "".join(reversed(chars))


class IssueStatus(str, Enum):
    OPEN = "Open"
    COMPLETED = "Completed"
    REJECTED = "Rejected"


class IssueCategory(str, Enum):
    TEST_FAILURE = "test_failure"
    LINT_VIOLATION = "lint_violation"
    TYPE_CHECK_FAILURE = "typecheck_failure"
    ENVIRONMENT = "environment"
    KPI_DEGRADATION = "kpi_degradation"


class ExecutionStatus(str, Enum):
    PENDING = "Pending"
    COMPLETED = "Completed"
    FAILED = "Failed"


class EvaluationDecision(str, Enum):
    ACCEPTED = "Accepted"
    REJECTED = "Rejected"


class CheckStatus(str, Enum):
    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class ImplementationIssue:
    """A unit of work that a patch proposal can address."""

    issue_id: str = ""
    issue_title: str = ""
    issue_description: str = ""
    issue_category: str = ""
    remediation_type: str = ""
    issue_priority: int = 0
    issue_status: str = ""
    target_paths: list[str] = field(default_factory=list)
    acceptance_criteria: list[str] = field(default_factory=list)
    source: str = ""
    source_ref: str = ""
    dedup_key: str = ""
    attempt_count: int = 0
    last_attempted_at: datetime | None = None
    created_at: datetime = field(default_factory=datetime.now)

    def is_proposable(self) -> bool:
        """Environment issues need a human, not a patch."""
        return self.issue_category != IssueCategory.ENVIRONMENT


@dataclass
class ExecutionRecord:
    """One attempt at generating a patch for an issue."""

    execution_id: str = ""
    issue_id: str = ""
    execution_status: str = ""
    model_provider: str = ""
    model_name: str = ""
    prompt_path: str = ""
    patch_path: str = ""
    started_at: datetime = field(default_factory=datetime.now)
    finished_at: datetime | None = None


@dataclass
class EvaluationReport:
    """Outcome of evaluating a patch proposal."""

    evaluation_id: str = ""
    execution_id: str = ""
    evaluation_mode: str = ""
    test_status: str = ""
    lint_status: str = ""
    type_check_status: str = ""
    validate_status: str = ""
    changed_file_count: int = 0
    changed_line_count: int = 0
    evaluation_decision: str = ""
    failure_reasons: list[str] = field(default_factory=list)
    generated_at: datetime = field(default_factory=datetime.now)


@dataclass
class HookExecutionRecord:
    """Captured result of running a post-apply hook."""

    hook_id: str = ""
    execution_id: str = ""
    hook_type: str = ""
    command: str = ""
    args: list[str] = field(default_factory=list)
    exit_code: int = 0
    stdout: str = ""
    stderr: str = ""
    duration_ms: int = 0
    timed_out: bool = False
    executed_at: datetime = field(default_factory=datetime.now)


@dataclass
class ImprovementMemoryEntry:
    """Historical success and failure counts for an issue pattern."""

    memory_id: str = ""
    pattern_key: str = ""
    pattern_description: str = ""
    success_count: int = 0
    failure_count: int = 0
    last_observed_at: datetime = field(default_factory=datetime.now)


@dataclass
class ProjectContext:
    """What is known about the project under improvement."""

    project_root_path: str = ""
    is_git_repository: bool = False
    current_branch: str = ""
    is_dirty: bool = False
    test_command: str = ""
    lint_command: str = ""
    type_check_command: str = ""


@dataclass
class QualityMetricSnapshot:
    """Results of running the project's quality commands."""

    test_succeeded: bool = False
    test_output: str = ""
    test_tool_missing: bool = False
    lint_succeeded: bool = False
    lint_output: str = ""
    lint_tool_missing: bool = False
    type_check_succeeded: bool = False
    type_check_output: str = ""
    type_check_tool_missing: bool = False


@dataclass
class PromptContext:
    """Everything a patch generator is told about an issue."""

    project_root_path: str = ""
    issue_id: str = ""
    issue_title: str = ""
    issue_description: str = ""
    acceptance_criteria: list[str] = field(default_factory=list)
    target_paths: list[str] = field(default_factory=list)
    relevant_file_contents: dict[str, str] = field(default_factory=dict)


@dataclass
class PatchResult:
    """A patch produced by a patch generator."""

    patch_content: str = ""
    raw_output: str = ""