import time

from evoloop.models import (
    ExecutionRecord,
    ImplementationIssue,
    IssueCategory,
    PromptContext,
    new_id,
)

ALPHABET = set("0123456789ABCDEFGHJKMNPQRSTVWXYZ")


def test_new_id_has_ulid_shape():
    value = new_id()
    assert len(value) == 26
    assert set(value) <= ALPHABET


def test_new_id_is_unique():
    ids = {new_id() for _ in range(200)}
    assert len(ids) == 200


def test_new_id_sorts_by_time():
    first = new_id()
    time.sleep(0.005)
    second = new_id()
    assert first[:10] < second[:10]


def test_environment_issue_not_proposable():
    issue = ImplementationIssue(issue_category=IssueCategory.ENVIRONMENT)
    assert issue.is_proposable() is False


def test_quality_issue_is_proposable():
    issue = ImplementationIssue(issue_category=IssueCategory.TEST_FAILURE)
    assert issue.is_proposable() is True


def test_plain_string_category_is_compared_by_value():
    issue = ImplementationIssue(issue_category="environment")
    assert issue.is_proposable() is False


def test_list_defaults_are_independent():
    first = ImplementationIssue()
    second = ImplementationIssue()
    first.target_paths.append("a")
    assert second.target_paths == []


def test_execution_record_defaults():
    record = ExecutionRecord()
    assert record.finished_at is None
    assert record.patch_path == ""


def test_prompt_context_files_default_empty():
    ctx = PromptContext(issue_title="x")
    assert ctx.relevant_file_contents == {}