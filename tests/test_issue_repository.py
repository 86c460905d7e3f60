from datetime import datetime, timedelta

import pytest

from evoloop.database import RecordNotFoundError, open_database
from evoloop.issue_repository import ImplementationIssueRepository
from evoloop.models import ImplementationIssue, IssueCategory, IssueStatus


@pytest.fixture
def repo():
    db = open_database(":memory:")
    yield ImplementationIssueRepository(db)
    db.close()


def _now():
    return datetime.now().replace(microsecond=0)


def test_save_and_find_by_id(repo):
    issue = ImplementationIssue(
        issue_id="ISSUE001",
        issue_title="Fix test failure",
        issue_description="Tests are failing",
        issue_category=IssueCategory.TEST_FAILURE,
        issue_priority=1,
        issue_status=IssueStatus.OPEN,
        target_paths=["internal/service"],
        acceptance_criteria=["Tests pass"],
        created_at=_now(),
    )
    repo.save(issue)

    found = repo.find_by_id("ISSUE001")
    assert found.issue_title == "Fix test failure"
    assert found.issue_status == IssueStatus.OPEN
    assert found.target_paths == ["internal/service"]
    assert found.acceptance_criteria == ["Tests pass"]
    assert found.created_at == issue.created_at


def test_find_by_id_missing_raises(repo):
    with pytest.raises(RecordNotFoundError):
        repo.find_by_id("NONEXISTENT")


def test_find_all(repo):
    for i, title in enumerate(["Issue A", "Issue B"]):
        repo.save(
            ImplementationIssue(
                issue_id=f"ISSUE{i:03d}",
                issue_title=title,
                issue_description="desc",
                issue_category=IssueCategory.LINT_VIOLATION,
                issue_priority=2,
                issue_status=IssueStatus.OPEN,
                created_at=_now(),
            )
        )
    assert len(repo.find_all()) == 2


def test_find_all_newest_first(repo):
    base = _now()
    repo.save(ImplementationIssue(issue_id="OLD", issue_title="t", issue_status="Open", created_at=base))
    repo.save(
        ImplementationIssue(
            issue_id="NEW", issue_title="t", issue_status="Open", created_at=base + timedelta(hours=1)
        )
    )
    assert [issue.issue_id for issue in repo.find_all()] == ["NEW", "OLD"]


def test_find_all_empty(repo):
    assert repo.find_all() == []


def test_save_replaces_existing(repo):
    issue = ImplementationIssue(issue_id="ISSUE001", issue_title="first", issue_status="Open")
    repo.save(issue)
    issue.issue_title = "second"
    issue.attempt_count = 2
    repo.save(issue)
    found = repo.find_by_id("ISSUE001")
    assert found.issue_title == "second"
    assert found.attempt_count == 2
    assert len(repo.find_all()) == 1


def test_empty_lists_round_trip(repo):
    repo.save(ImplementationIssue(issue_id="ISSUE001", issue_title="t", issue_status="Open"))
    found = repo.find_by_id("ISSUE001")
    assert found.target_paths == []
    assert found.acceptance_criteria == []
    assert found.last_attempted_at is None


def test_last_attempted_at_round_trip(repo):
    moment = _now() - timedelta(minutes=30)
    repo.save(
        ImplementationIssue(
            issue_id="ISSUE001", issue_title="t", issue_status="Open", attempt_count=1, last_attempted_at=moment
        )
    )
    assert repo.find_by_id("ISSUE001").last_attempted_at == moment


def test_find_open_proposable(repo):
    issues = [
        ImplementationIssue(issue_id="I1", issue_title="t1", issue_description="d",
                            issue_category=IssueCategory.TEST_FAILURE, issue_priority=2,
                            issue_status=IssueStatus.OPEN, source="analyze", remediation_type="code_patch"),
        ImplementationIssue(issue_id="I2", issue_title="t2", issue_description="d",
                            issue_category=IssueCategory.ENVIRONMENT, issue_priority=0,
                            issue_status=IssueStatus.OPEN, source="analyze", remediation_type="code_patch"),
        ImplementationIssue(issue_id="I3", issue_title="t3", issue_description="d",
                            issue_category=IssueCategory.KPI_DEGRADATION, issue_priority=1,
                            issue_status=IssueStatus.OPEN, source="external", remediation_type="config_patch"),
        ImplementationIssue(issue_id="I4", issue_title="t4", issue_description="d",
                            issue_category=IssueCategory.LINT_VIOLATION, issue_priority=1,
                            issue_status=IssueStatus.REJECTED, source="analyze", remediation_type="code_patch"),
    ]
    for issue in issues:
        repo.save(issue)

    found = repo.find_open_proposable()
    assert [issue.issue_id for issue in found] == ["I3", "I1"]


def test_find_open_proposable_orders_by_attempts(repo):
    repo.save(ImplementationIssue(issue_id="A", issue_title="t", issue_category="test_failure",
                                  issue_priority=1, issue_status="Open", attempt_count=3))
    repo.save(ImplementationIssue(issue_id="B", issue_title="t", issue_category="test_failure",
                                  issue_priority=1, issue_status="Open", attempt_count=1))
    assert [issue.issue_id for issue in repo.find_open_proposable()] == ["B", "A"]


def test_find_by_dedup_key(repo):
    repo.save(
        ImplementationIssue(
            issue_id="DEDUP1", issue_title="slippage", issue_description="d",
            issue_category=IssueCategory.KPI_DEGRADATION, issue_priority=1,
            issue_status=IssueStatus.OPEN, dedup_key="kpi:slippage:arb",
            source="external", remediation_type="config_patch",
        )
    )
    found = repo.find_by_dedup_key("kpi:slippage:arb")
    assert found is not None
    assert found.issue_id == "DEDUP1"
    assert found.dedup_key == "kpi:slippage:arb"


def test_find_by_dedup_key_not_found(repo):
    assert repo.find_by_dedup_key("nonexistent") is None


def test_find_by_dedup_key_ignores_non_open(repo):
    repo.save(
        ImplementationIssue(
            issue_id="DEDUP2", issue_title="closed", issue_description="d",
            issue_category=IssueCategory.KPI_DEGRADATION, issue_priority=1,
            issue_status=IssueStatus.COMPLETED, dedup_key="kpi:closed",
            source="external", remediation_type="config_patch",
        )
    )
    assert repo.find_by_dedup_key("kpi:closed") is None