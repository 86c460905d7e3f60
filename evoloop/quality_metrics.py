"""Running a project's quality commands and collecting their results."""

from __future__ import annotations

import shutil
import subprocess

from evoloop.models import ProjectContext, QualityMetricSnapshot


def is_tool_available(command: str) -> bool:
    """Return True if the program that starts command can be found."""
    parts = command.split()
    if not parts:
        return False
    return shutil.which(parts[0]) is not None


def run_command(directory: str, command: str) -> tuple[bool, str]:
    """Run command in directory; return whether it succeeded and its combined output."""
    parts = command.split()
    if not parts:
        return True, ""
    try:
        completed = subprocess.run(
            parts,
            cwd=directory,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
        )
    except OSError:
        return False, ""
    output = completed.stdout.decode("utf-8", errors="replace")
    return completed.returncode == 0, output


def _check(directory: str, command: str) -> tuple[bool, str, bool]:
    """Return (succeeded, output, tool_missing) for one configured command."""
    if not command:
        return True, "", False
    if not is_tool_available(command):
        parts = command.split()
        tool = parts[0] if parts else ""
        return False, f"tool not found: {tool}", True
    succeeded, output = run_command(directory, command)
    return succeeded, output, False


class QualityMetricCollector:
    """Runs the configured quality commands and collects their results."""

    def collect(self, context: ProjectContext) -> QualityMetricSnapshot:
        """Run test, lint and type-check commands; an unset command counts as passing."""
        root = context.project_root_path
        test_ok, test_out, test_missing = _check(root, context.test_command)
        lint_ok, lint_out, lint_missing = _check(root, context.lint_command)
        type_ok, type_out, type_missing = _check(root, context.type_check_command)
        return QualityMetricSnapshot(
            test_succeeded=test_ok,
            test_output=test_out,
            test_tool_missing=test_missing,
            lint_succeeded=lint_ok,
            lint_output=lint_out,
            lint_tool_missing=lint_missing,
            type_check_succeeded=type_ok,
            type_check_output=type_out,
            type_check_tool_missing=type_missing,
        )