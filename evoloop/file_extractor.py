"""Find source files referenced in tool output and read them for prompt context."""

from __future__ import annotations

import os
import re

MAX_RELEVANT_FILE_SIZE = 10_000
"""Largest single file, in bytes, that is included in the prompt context."""

MAX_TOTAL_FILE_SIZE = 50_000
"""Largest combined size, in bytes, of all files included in the prompt context."""

_PATTERNS = (
    # Test output: "    file_test.go:10: message"
    re.compile(r"\s+(\S+\.go):(\d+)", re.ASCII),
    # Build or vet output: "./path/file.go:10:5: message"
    re.compile(r"\.?/?(\S+\.go):(\d+)", re.ASCII),
    # Generic: "path/to/file.ext:line"
    re.compile(r"(\S+\.\w+):(\d+)", re.ASCII),
)


def _resolve(file_path: str, project_root: str) -> str:
    if os.path.isabs(file_path):
        return file_path
    return os.path.normpath(os.path.join(project_root, file_path))


def extract_file_paths(output: str, project_root: str) -> list[str]:
    """Return the existing files that the output refers to, as absolute paths, in order of first mention."""
    seen: dict[str, None] = {}
    for line in output.split("\n"):
        for pattern in _PATTERNS:
            for match in pattern.finditer(line):
                absolute = _resolve(match.group(1), project_root)
                if absolute not in seen and os.path.exists(absolute):
                    seen[absolute] = None
    return list(seen)


def read_relevant_files(paths: list[str], project_root: str) -> dict[str, str]:
    """Read files within the size limits; keys are paths relative to project_root."""
    contents: dict[str, str] = {}
    total_size = 0

    for absolute in paths:
        if total_size >= MAX_TOTAL_FILE_SIZE:
            break
        try:
            if os.stat(absolute).st_size > MAX_RELEVANT_FILE_SIZE:
                continue
            with open(absolute, "rb") as handle:
                data = handle.read()
        except OSError:
            continue

        if total_size + len(data) > MAX_TOTAL_FILE_SIZE:
            break

        try:
            relative = os.path.relpath(absolute, project_root)
        except ValueError:
            relative = absolute

        contents[relative] = data.decode("utf-8", errors="replace")
        total_size += len(data)

    return contents