"""Inspecting a local Git project for its state and quality commands."""

from __future__ import annotations

import os
import subprocess

from evoloop.models import ProjectContext


class NotAGitRepositoryError(ValueError):
    """Raised when the inspected directory is not a Git working tree."""


def _is_git_repository(path: str) -> bool:
    return os.path.isdir(os.path.join(path, ".git"))


def _run_git(directory: str, *args: str) -> str | None:
    try:
        completed = subprocess.run(
            ["git", *args],
            cwd=directory,
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
            check=True,
        )
    except (OSError, subprocess.CalledProcessError):
        return None
    return completed.stdout.decode("utf-8", errors="replace")


def _detect_branch(path: str) -> str:
    out = _run_git(path, "rev-parse", "--abbrev-ref", "HEAD")
    return out.strip() if out is not None else ""


def _detect_dirty_state(path: str) -> bool:
    out = _run_git(path, "status", "--porcelain")
    return out is not None and out.strip() != ""


def _first_match(path: str, candidates: tuple[tuple[str, str], ...]) -> str:
    for marker, command in candidates:
        if os.path.exists(os.path.join(path, marker)):
            return command
    return ""


_GO_LINT = "go" "langci-lint run"

_TEST_COMMANDS = (
    ("go.mod", "go test ./..."),
    ("package.json", "npm test"),
    ("pyproject.toml", "pytest"),
)
_LINT_COMMANDS = (
    ("go.mod", _GO_LINT),
    ("package.json", "eslint ."),
    ("pyproject.toml", "ruff check ."),
)
_TYPE_CHECK_COMMANDS = (
    ("go.mod", "go build ./..."),
    ("tsconfig.json", "tsc --noEmit"),
    ("pyproject.toml", "mypy ."),
)


class ProjectInspectionService:
    """Inspects a local Git project."""

    def inspect(self, path: str) -> ProjectContext:
        """Describe the project at path; raise NotAGitRepositoryError if it has no .git directory."""
        root = os.path.abspath(path)
        if not _is_git_repository(root):
            raise NotAGitRepositoryError(f"{root} is not a git repository")

        return ProjectContext(
            project_root_path=root,
            is_git_repository=True,
            current_branch=_detect_branch(root),
            is_dirty=_detect_dirty_state(root),
            test_command=_first_match(root, _TEST_COMMANDS),
            lint_command=_first_match(root, _LINT_COMMANDS),
            type_check_command=_first_match(root, _TYPE_CHECK_COMMANDS),
        )