"""Cross-repository reduction of collected activity."""

import math
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List

from .models import ActivityRecord, ChangeRequest, Commit, ContributorSummary, Issue, ProjectResult


@dataclass
class Totals:
    commits: int = 0
    mrs_opened: int = 0
    mrs_merged: int = 0
    issues_opened: int = 0
    issues_closed: int = 0
    month_issues_opened: int = 0
    month_issues_closed: int = 0


@dataclass
class ReportData:
    """Aggregated view of every repository collected in one run."""
    results: List[ProjectResult]
    active: List[ProjectResult] = field(default_factory=list)
    inactive: List[ProjectResult] = field(default_factory=list)
    internal_active: List[ProjectResult] = field(default_factory=list)
    client_active: List[ProjectResult] = field(default_factory=list)
    totals: Totals = field(default_factory=Totals)
    commits: List[Commit] = field(default_factory=list)
    mrs_opened: List[ChangeRequest] = field(default_factory=list)
    mrs_merged: List[ChangeRequest] = field(default_factory=list)
    issues_opened: List[Issue] = field(default_factory=list)
    issues_closed: List[Issue] = field(default_factory=list)
    members: List[ContributorSummary] = field(default_factory=list)
    contributor_count: int = 0

    @property
    def has_multi_org(self) -> bool:
        return bool(self.internal_active) and bool(self.client_active)


def percent(part: int, whole: int) -> int:
    """Integer percentage, rounding halves up; 0 when whole is 0."""
    if not whole:
        return 0
    return math.floor(part / whole * 100 + 0.5)


def build_member_summaries(commits: Iterable[Commit], mrs_merged: Iterable[ChangeRequest],
                           mrs_opened: Iterable[ChangeRequest], issues_opened: Iterable[Issue],
                           issues_closed: Iterable[Issue]) -> List[ContributorSummary]:
    """Group activity by author and rank the contributors.

    Returns:
        Summaries sorted by merged requests, commits and closed issues (all
        descending), then by name
    """
    members: Dict[str, ContributorSummary] = {}

    def ensure(record: ActivityRecord) -> ContributorSummary:
        if record.author not in members:
            members[record.author] = ContributorSummary(name=record.author)
        return members[record.author]

    commits = list(commits)
    for commit in commits:
        ensure(commit).commits += 1
    for mr in mrs_merged:
        ensure(mr).merged_requests += 1
    for mr in mrs_opened:
        ensure(mr).opened_requests += 1
    for issue in issues_opened:
        ensure(issue).issues_opened += 1
    for issue in issues_closed:
        ensure(issue).issues_closed += 1

    total_commits = len(commits)
    for member in members.values():
        member.commit_pct = percent(member.commits, total_commits)

    return sorted(members.values(), key=lambda m: m.sort_key)


def _flatten(results: Iterable[ProjectResult], attr: str) -> List:
    return [record for result in results for record in getattr(result, attr)]


def aggregate(results: List[ProjectResult], is_client: Callable[[str], bool]) -> ReportData:
    """Reduce per-repository results into team-wide metrics.

    Args:
        results: Every collected ProjectResult, from both platforms
        is_client: Predicate on a repository id for the client organization

    Returns:
        ReportData
    """
    report = ReportData(results=list(results))
    report.active = [r for r in results if r.has_activity]
    report.inactive = [r for r in results if not r.has_activity]
    report.internal_active = [r for r in report.active if not is_client(r.repository.id)]
    report.client_active = [r for r in report.active if is_client(r.repository.id)]

    report.commits = _flatten(report.active, 'commits')
    report.mrs_opened = _flatten(report.active, 'mrs_opened')
    report.mrs_merged = _flatten(report.active, 'mrs_merged')
    report.issues_opened = _flatten(report.active, 'issues_opened')
    report.issues_closed = _flatten(report.active, 'issues_closed')

    report.totals = Totals(
        commits=len(report.commits),
        mrs_opened=len(report.mrs_opened),
        mrs_merged=len(report.mrs_merged),
        issues_opened=len(report.issues_opened),
        issues_closed=len(report.issues_closed),
        # Month-to-date counts include inactive repositories
        month_issues_opened=sum(len(r.month_issues_opened) for r in results),
        month_issues_closed=sum(len(r.month_issues_closed) for r in results),
    )

    report.members = build_member_summaries(
        report.commits, report.mrs_merged, report.mrs_opened,
        report.issues_opened, report.issues_closed
    )
    # Only commit authors count as contributors
    report.contributor_count = len({commit.author for commit in report.commits})
    return report
