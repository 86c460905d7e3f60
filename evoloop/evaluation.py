"""Evaluating a patch proposal in a throwaway copy of the project."""

from __future__ import annotations

import os
import shutil
import subprocess
import tempfile
from datetime import datetime

from evoloop.models import (
    CheckStatus,
    EvaluationDecision,
    EvaluationReport,
    ExecutionRecord,
    ProjectContext,
    new_id,
)
from evoloop.quality_metrics import is_tool_available, run_command

COPY_EXCLUDE_PATTERNS = (".git", "node_modules", "vendor", ".evoloop")
"""Path prefixes, relative to the project root, left out when copying a project."""

_PATCH_FILE_NAME = ".evoloop-patch.tmp"


class EvaluationError(RuntimeError):
    """Raised when an evaluation cannot be carried out at all."""


class PatchApplyError(RuntimeError):
    """Raised when a patch cannot be applied."""


def _excluded(relative: str) -> bool:
    return any(relative.startswith(pattern) for pattern in COPY_EXCLUDE_PATTERNS)


def copy_project(src: str, dst: str) -> None:
    """Copy the tree at src into dst, leaving out paths under the excluded prefixes."""
    for current, dirnames, filenames in os.walk(src):
        relative_dir = os.path.relpath(current, src)
        kept = []
        for name in dirnames:
            relative = os.path.normpath(os.path.join(relative_dir, name))
            if _excluded(relative):
                continue
            source_dir = os.path.join(current, name)
            target_dir = os.path.join(dst, relative)
            os.makedirs(target_dir, exist_ok=True)
            shutil.copymode(source_dir, target_dir)
            kept.append(name)
        dirnames[:] = kept

        for name in filenames:
            relative = os.path.normpath(os.path.join(relative_dir, name))
            if _excluded(relative):
                continue
            target = os.path.join(dst, relative)
            shutil.copyfile(os.path.join(current, name), target)
            shutil.copymode(os.path.join(current, name), target)


def apply_patch(directory: str, patch_content: str) -> None:
    """Apply a unified diff with `patch -p1` inside directory; raise PatchApplyError on failure."""
    patch_file = os.path.join(directory, _PATCH_FILE_NAME)
    try:
        with open(patch_file, "w", encoding="utf-8", newline="") as handle:
            handle.write(patch_content)
    except OSError as exc:
        raise PatchApplyError(str(exc)) from exc

    try:
        completed = subprocess.run(
            ["patch", "-p1", "-i", patch_file],
            cwd=directory,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
        )
    except OSError as exc:
        raise PatchApplyError(str(exc)) from exc
    finally:
        try:
            os.remove(patch_file)
        except OSError:
            pass

    if completed.returncode != 0:
        output = completed.stdout.decode("utf-8", errors="replace")
        raise PatchApplyError(f"exit status {completed.returncode}: {output}")


def count_changes(patch_content: str) -> tuple[int, int]:
    """Return (changed file count, changed line count) for a unified diff."""
    files: set[str] = set()
    lines = 0
    for line in patch_content.split("\n"):
        if line.startswith("diff ") or line.startswith("--- a/"):
            parts = line.split()
            if len(parts) >= 2:
                files.add(parts[-1])
        if line.startswith("+") and not line.startswith("+++"):
            lines += 1
        if line.startswith("-") and not line.startswith("---"):
            lines += 1
    return len(files), lines


def _run_check(directory: str, command: str, failure: str, failures: list[str]) -> str:
    if not command or not is_tool_available(command):
        return CheckStatus.SKIPPED.value
    succeeded, _ = run_command(directory, command)
    if succeeded:
        return CheckStatus.PASSED.value
    failures.append(failure)
    return CheckStatus.FAILED.value


class SelfImprovementEvaluationService:
    """Evaluates patch proposals against quality checks and size limits."""

    def __init__(
        self,
        max_files: int = 5,
        max_lines: int = 200,
        evaluation_mode: str = "sandbox",
    ):
        self.max_files = max_files
        self.max_lines = max_lines
        self.evaluation_mode = evaluation_mode

    def evaluate(
        self,
        record: ExecutionRecord,
        project_context: ProjectContext,
        validate_commands: list[str] | None = None,
    ) -> EvaluationReport:
        """Apply the record's patch to a copy of the project and judge the result.

        validate_commands are used only in validate_only mode. Raises
        EvaluationError if the patch cannot be read or the project copied.
        """
        report = EvaluationReport(
            evaluation_id=new_id(),
            execution_id=record.execution_id,
            generated_at=datetime.now(),
        )

        try:
            with open(record.patch_path, encoding="utf-8", newline="") as handle:
                patch_content = handle.read()
        except OSError as exc:
            raise EvaluationError(f"failed to read patch file: {exc}") from exc

        try:
            workspace = tempfile.TemporaryDirectory(prefix="evoloop-eval-")
        except OSError as exc:
            raise EvaluationError(f"failed to create temp directory: {exc}") from exc

        with workspace as tmp_dir:
            try:
                copy_project(project_context.project_root_path, tmp_dir)
            except OSError as exc:
                raise EvaluationError(f"failed to copy project: {exc}") from exc

            try:
                apply_patch(tmp_dir, patch_content)
            except PatchApplyError as exc:
                report.evaluation_decision = EvaluationDecision.REJECTED.value
                report.failure_reasons.append(f"patch apply failed: {exc}")
                return report

            file_count, line_count = count_changes(patch_content)
            report.changed_file_count = file_count
            report.changed_line_count = line_count

            if self.evaluation_mode == "validate_only":
                failures = self._evaluate_validate_only(tmp_dir, validate_commands, report)
            else:
                failures = self._evaluate_sandbox(tmp_dir, project_context, report)

        if file_count > self.max_files:
            failures.append(f"changed files {file_count} exceeds limit {self.max_files}")
        if line_count > self.max_lines:
            failures.append(f"changed lines {line_count} exceeds limit {self.max_lines}")

        if failures:
            report.evaluation_decision = EvaluationDecision.REJECTED.value
            report.failure_reasons = failures
        else:
            report.evaluation_decision = EvaluationDecision.ACCEPTED.value
        return report

    @staticmethod
    def _evaluate_sandbox(
        tmp_dir: str, context: ProjectContext, report: EvaluationReport
    ) -> list[str]:
        report.evaluation_mode = "sandbox"
        failures: list[str] = []
        report.test_status = _run_check(tmp_dir, context.test_command, "tests failed", failures)
        report.lint_status = _run_check(tmp_dir, context.lint_command, "lint failed", failures)
        report.type_check_status = _run_check(
            tmp_dir, context.type_check_command, "typecheck failed", failures
        )
        report.validate_status = CheckStatus.SKIPPED.value
        return failures

    @staticmethod
    def _evaluate_validate_only(
        tmp_dir: str, commands: list[str] | None, report: EvaluationReport
    ) -> list[str]:
        report.evaluation_mode = "validate_only"
        report.test_status = CheckStatus.SKIPPED.value
        report.lint_status = CheckStatus.SKIPPED.value
        report.type_check_status = CheckStatus.SKIPPED.value

        failures: list[str] = []
        if not commands:
            report.validate_status = CheckStatus.SKIPPED.value
            return failures

        for command in commands:
            if not command or not is_tool_available(command):
                continue
            succeeded, _ = run_command(tmp_dir, command)
            if not succeeded:
                failures.append(f"validate command failed: {command}")

        report.validate_status = (
            CheckStatus.FAILED.value if failures else CheckStatus.PASSED.value
        )
        return failures