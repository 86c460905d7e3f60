import os
from datetime import datetime

import pytest

from evoloop.models import (
    ExecutionStatus,
    ImplementationIssue,
    PatchResult,
    PromptContext,
)
from evoloop.proposal import ImplementationProposalService, ProposalError

PATCH = "diff --git a/main.go b/main.go\n--- a/main.go\n+++ b/main.go\n"


class FakeClient:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.contexts: list[PromptContext] = []

    def generate_patch(self, context):
        self.contexts.append(context)
        if self.error is not None:
            raise self.error
        return self.result


def test_propose_success(tmp_path):
    artifacts = tmp_path / "runtime"
    client = FakeClient(PatchResult(patch_content=PATCH, raw_output="some raw output"))
    service = ImplementationProposalService(client, str(artifacts))
    issue = ImplementationIssue(
        issue_id="TEST001",
        issue_title="Fix test failure",
        issue_description="Tests are failing",
        acceptance_criteria=["Tests pass"],
    )

    record = service.propose(issue, str(tmp_path))

    assert record.execution_status == ExecutionStatus.COMPLETED.value
    assert record.issue_id == "TEST001"
    assert len(record.execution_id) == 26
    assert record.model_provider == "claude"
    assert record.model_name == "sonnet"
    assert os.path.isfile(record.prompt_path)
    assert os.path.isfile(record.patch_path)
    with open(record.patch_path, encoding="utf-8") as handle:
        assert handle.read() == PATCH
    with open(record.prompt_path, encoding="utf-8") as handle:
        assert handle.read() == "Issue: Fix test failure\nDescription: Tests are failing\n"
    assert record.patch_path == str(
        artifacts / "patches" / f"{record.execution_id}.patch"
    )


def test_propose_llm_failure(tmp_path):
    client = FakeClient(error=RuntimeError("LLM unavailable"))
    service = ImplementationProposalService(client, str(tmp_path / "runtime"))
    issue = ImplementationIssue(issue_id="TEST002", issue_title="Fix something")

    with pytest.raises(ProposalError, match="LLM unavailable") as info:
        service.propose(issue, str(tmp_path))

    record = info.value.record
    assert record.execution_status == ExecutionStatus.FAILED.value
    assert record.patch_path == ""
    assert record.finished_at is not None


def test_propose_record_timestamps(tmp_path):
    client = FakeClient(PatchResult(patch_content="patch", raw_output="output"))
    service = ImplementationProposalService(client, str(tmp_path / "runtime"))
    issue = ImplementationIssue(issue_id="TEST003", issue_title="Test timestamps")

    before = datetime.now()
    record = service.propose(issue, str(tmp_path))
    after = datetime.now()

    assert before <= record.started_at <= after
    assert record.finished_at >= record.started_at


def test_propose_passes_issue_and_relevant_files_to_client(tmp_path):
    (tmp_path / "demo_test.go").write_text("package main\n")
    client = FakeClient(PatchResult(patch_content="patch"))
    service = ImplementationProposalService(client, str(tmp_path / "runtime"))
    issue = ImplementationIssue(
        issue_id="TEST004",
        issue_title="Fix test failures",
        issue_description="    demo_test.go:10: got 2, want 3",
        target_paths=["internal"],
        acceptance_criteria=["All tests pass"],
    )

    service.propose(issue, str(tmp_path))

    assert len(client.contexts) == 1
    context = client.contexts[0]
    assert context.issue_id == "TEST004"
    assert context.project_root_path == str(tmp_path)
    assert context.target_paths == ["internal"]
    assert context.acceptance_criteria == ["All tests pass"]
    assert context.relevant_file_contents == {"demo_test.go": "package main\n"}


def test_propose_prompt_save_failure(tmp_path):
    blocker = tmp_path / "runtime"
    blocker.write_text("not a directory")
    client = FakeClient(PatchResult(patch_content="patch"))
    service = ImplementationProposalService(client, str(blocker))

    with pytest.raises(ProposalError, match="failed to save prompt") as info:
        service.propose(ImplementationIssue(issue_id="TEST005"), str(tmp_path))

    assert info.value.record.execution_status == ExecutionStatus.FAILED.value
    assert info.value.record.prompt_path == ""
    assert client.contexts == []