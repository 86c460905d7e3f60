"""Choosing the next issue to propose a patch for."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timedelta

from evoloop.models import ImplementationIssue


class IssueSelector:
    """Picks the next issue, respecting the retry limit and cooldown."""

    def __init__(self, max_attempts: int, cooldown_minutes: int = 0):
        self.max_attempts = max_attempts
        self.cooldown_minutes = cooldown_minutes

    def _in_cooldown(self, issue: ImplementationIssue, now: datetime) -> bool:
        if issue.attempt_count <= 0 or self.cooldown_minutes <= 0:
            return False
        if issue.last_attempted_at is None:
            return False
        cooldown_end = issue.last_attempted_at + timedelta(minutes=self.cooldown_minutes)
        return now < cooldown_end

    def select_next(
        self, issues: Iterable[ImplementationIssue] | None
    ) -> ImplementationIssue | None:
        """Return the eligible issue with the lowest priority, then fewest attempts, or None."""
        now = datetime.now()
        candidates = [
            issue
            for issue in issues or ()
            if issue.is_proposable()
            and issue.attempt_count < self.max_attempts
            and not self._in_cooldown(issue, now)
        ]
        if not candidates:
            return None
        return min(candidates, key=lambda i: (i.issue_priority, i.attempt_count))