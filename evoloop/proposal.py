"""Producing patch proposals for issues through a patch-generating client."""

from __future__ import annotations

import os
from datetime import datetime
from typing import Protocol

from evoloop.file_extractor import extract_file_paths, read_relevant_files
from evoloop.models import (
    ExecutionRecord,
    ExecutionStatus,
    ImplementationIssue,
    PatchResult,
    PromptContext,
    new_id,
)


class LanguageModelClient(Protocol):
    """Something that turns a prompt context into a patch."""

    def generate_patch(self, context: PromptContext) -> PatchResult:
        """Return a patch for the issue described by context."""


class ProposalError(RuntimeError):
    """Raised when a proposal fails; carries the failed execution record."""

    def __init__(self, message: str, record: ExecutionRecord):
        super().__init__(message)
        self.record = record


def _build_prompt_text(context: PromptContext) -> str:
    return f"Issue: {context.issue_title}\nDescription: {context.issue_description}\n"


class ImplementationProposalService:
    """Generates patch proposals and stores their prompt and patch artifacts."""

    def __init__(self, client: LanguageModelClient, artifacts_path: str):
        self._client = client
        self._artifacts_path = artifacts_path

    def propose(self, issue: ImplementationIssue, project_root: str) -> ExecutionRecord:
        """Ask the client for a patch; raise ProposalError, holding the failed record, on failure."""
        execution_id = new_id()
        record = ExecutionRecord(
            execution_id=execution_id,
            issue_id=issue.issue_id,
            execution_status=ExecutionStatus.PENDING.value,
            model_provider="claude",
            model_name="sonnet",
            started_at=datetime.now(),
        )

        context = PromptContext(
            project_root_path=project_root,
            issue_id=issue.issue_id,
            issue_title=issue.issue_title,
            issue_description=issue.issue_description,
            acceptance_criteria=list(issue.acceptance_criteria),
            target_paths=list(issue.target_paths),
        )
        file_paths = extract_file_paths(issue.issue_description, project_root)
        if file_paths:
            context.relevant_file_contents = read_relevant_files(file_paths, project_root)

        try:
            record.prompt_path = self._save_artifact(
                "prompts", f"{execution_id}.txt", _build_prompt_text(context)
            )
        except OSError as exc:
            self._fail(record)
            raise ProposalError(f"failed to save prompt: {exc}", record) from exc

        try:
            result = self._client.generate_patch(context)
        except Exception as exc:
            self._fail(record)
            raise ProposalError(f"LLM call failed: {exc}", record) from exc

        try:
            record.patch_path = self._save_artifact(
                "patches", f"{execution_id}.patch", result.patch_content
            )
        except OSError as exc:
            self._fail(record)
            raise ProposalError(f"failed to save patch: {exc}", record) from exc

        record.execution_status = ExecutionStatus.COMPLETED.value
        record.finished_at = datetime.now()
        return record

    @staticmethod
    def _fail(record: ExecutionRecord) -> None:
        record.execution_status = ExecutionStatus.FAILED.value
        record.finished_at = datetime.now()

    def _save_artifact(self, subdir: str, filename: str, content: str) -> str:
        directory = os.path.join(self._artifacts_path, subdir)
        os.makedirs(directory, exist_ok=True)
        path = os.path.join(directory, filename)
        with open(path, "w", encoding="utf-8", newline="") as handle:
            handle.write(content)
        return path