import os

from evoloop.models import ProjectContext
from evoloop.quality_metrics import (
    QualityMetricCollector,
    is_tool_available,
    run_command,
)


def _failing_script(directory) -> str:
    script = directory / "fail.sh"
    script.write_text("#!/bin/sh\necho 'FAIL: TestSomething'\nexit 1\n")
    os.chmod(script, 0o755)
    return str(script)


def test_collect_all_commands_succeed(tmp_path):
    context = ProjectContext(
        project_root_path=str(tmp_path),
        test_command="true",
        lint_command="true",
        type_check_command="true",
    )
    snapshot = QualityMetricCollector().collect(context)
    assert snapshot.test_succeeded is True
    assert snapshot.lint_succeeded is True
    assert snapshot.type_check_succeeded is True


def test_collect_test_command_fails(tmp_path):
    context = ProjectContext(
        project_root_path=str(tmp_path),
        test_command=_failing_script(tmp_path),
        lint_command="true",
        type_check_command="true",
    )
    snapshot = QualityMetricCollector().collect(context)
    assert snapshot.test_succeeded is False
    assert "FAIL: TestSomething" in snapshot.test_output


def test_collect_no_commands_configured(tmp_path):
    snapshot = QualityMetricCollector().collect(
        ProjectContext(project_root_path=str(tmp_path))
    )
    assert snapshot.test_succeeded is True
    assert snapshot.lint_succeeded is True
    assert snapshot.type_check_succeeded is True


def test_collect_tool_not_found(tmp_path):
    context = ProjectContext(
        project_root_path=str(tmp_path),
        test_command="true",
        lint_command="nonexistent-tool-xyz run",
        type_check_command="true",
    )
    snapshot = QualityMetricCollector().collect(context)
    assert snapshot.lint_tool_missing is True
    assert snapshot.lint_succeeded is False
    assert snapshot.lint_output == "tool not found: nonexistent-tool-xyz"
    assert snapshot.test_succeeded is True
    assert snapshot.test_tool_missing is False


def test_is_tool_available():
    assert is_tool_available("true --flag") is True
    assert is_tool_available("nonexistent-tool-xyz") is False
    assert is_tool_available("   ") is False


def test_run_command_captures_output_and_status(tmp_path):
    ok, output = run_command(str(tmp_path), "echo hello world")
    assert ok is True
    assert output == "hello world\n"

    ok, _ = run_command(str(tmp_path), "false")
    assert ok is False


def test_run_command_empty_command_succeeds(tmp_path):
    assert run_command(str(tmp_path), "") == (True, "")


def test_run_command_runs_in_directory(tmp_path):
    (tmp_path / "marker.txt").write_text("x")
    ok, output = run_command(str(tmp_path), "ls")
    assert ok is True
    assert "marker.txt" in output