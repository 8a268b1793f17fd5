"""Report sections.

Each function renders one independent block of the chat report and returns
None when there is nothing to show, so empty sections never appear.
"""

from datetime import datetime, timezone
from statistics import median
from typing import List, Optional, Sequence

from ..aggregator import Totals, percent
from ..models import ChangeRequest, ContributorSummary, Issue, ProjectResult
from .formatting import counted, format_count, format_table, plural

NO_ACTIVITY_LINE = 'No activity recorded in the selected window.'
NO_MEMBER_ACTIVITY_LINE = '_No member activity captured in this window._'

GITLAB_ICON = '🦊'
GITHUB_ICON = '🐙'

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _hours_between(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds() / 3600


def format_header(title: str, label: str) -> str:
    return f"📊 **{title} – {label}**"


def format_summary_line(totals: Totals, active_count: int) -> str:
    if not active_count:
        return NO_ACTIVITY_LINE
    return ' | '.join([
        f"{counted(totals.mrs_merged, 'PR')} merged",
        counted(totals.commits, 'commit'),
        f"{counted(totals.issues_closed, 'issue')} closed",
    ])


def organization_summary(labels: Sequence[str]) -> str:
    if not labels:
        return '0 (no active orgs)'
    return f"{len(labels)} ({' + '.join(labels)})"


def format_team_metrics(organizations: str, totals: Totals, active_repos: int, contributors: int) -> str:
    rows = [
        ['Organizations', organizations],
        ['PRs Merged', format_count(totals.mrs_merged)],
        ['PRs Opened', format_count(totals.mrs_opened)],
        ['Commits', format_count(totals.commits)],
        ['Issues Opened (day)', format_count(totals.issues_opened)],
        ['Issues Closed (day)', format_count(totals.issues_closed)],
        ['Issues Opened (month)', format_count(totals.month_issues_opened)],
        ['Issues Closed (month)', format_count(totals.month_issues_closed)],
        ['Active Repos', format_count(active_repos)],
        ['Contributors', format_count(contributors)],
    ]
    return '\n'.join([
        '**⚙️ Team Metrics**',
        '_Totals combine GitLab + GitHub repositories_',
        format_table(rows),
    ])


def median_merge_hours(mrs: Sequence[ChangeRequest]) -> Optional[float]:
    """Median of |merged_at - created_at| in hours, or None without timestamps."""
    durations = [
        abs(_hours_between(mr.created_at, mr.merged_at))
        for mr in mrs
        if mr.merged_at and mr.created_at
    ]
    if not durations:
        return None
    return median(durations)


def format_velocity_highlights(totals: Totals, mrs_merged: Sequence[ChangeRequest],
                               has_multi_org: bool) -> Optional[str]:
    if not totals.mrs_merged and not totals.commits and not totals.issues_closed:
        return None
    lines = ['**🚀 Velocity Highlights**']
    denominator = max(totals.mrs_opened, totals.mrs_merged, 1)
    lines.append(f"• Merge rate: {percent(totals.mrs_merged, denominator)}%")
    if totals.commits:
        lines.append(f"• Commits: {format_count(totals.commits)}")
    if totals.issues_closed:
        lines.append(f"• Issues closed: {format_count(totals.issues_closed)}")
    if has_multi_org:
        lines.append('• Multi-org delivery 💼')

    hours = median_merge_hours(mrs_merged)
    if hours is not None:
        label = 'Fast turnaround' if hours <= 24 else 'Median merge time'
        lines.append(f"• {label}: {hours:.1f}h")
    return '\n'.join(lines)


def count_same_day_fixes(issues_closed: Sequence[Issue]) -> int:
    """Issues closed within 24 hours of being opened."""
    return sum(
        1 for issue in issues_closed
        if issue.closed_at and issue.created_at
        and _hours_between(issue.created_at, issue.closed_at) <= 24
    )


def format_bug_activity(issues_opened: Sequence[Issue], issues_closed: Sequence[Issue]) -> Optional[str]:
    if not issues_opened and not issues_closed:
        return None
    fixed = len(issues_closed)
    same_day = count_same_day_fixes(issues_closed)
    rows = [
        ['Fixed', counted(fixed, 'issue')],
        ['Same-day fixes', f"{format_count(same_day)}/{format_count(fixed)}" if fixed else '0'],
        ['Opened', counted(len(issues_opened), 'issue')],
    ]
    lines = ['**🐛 Bug Activity**', format_table(rows)]
    highlights = list(issues_closed)[:3]
    if highlights:
        lines.append('**Highlights**')
        for issue in highlights:
            title = issue.title or f"Issue #{issue.iid or issue.id or '?'}"
            lines.append(f"• {title}")
    return '\n'.join(lines)


def rank_projects(projects: Sequence[ProjectResult]) -> List[ProjectResult]:
    return sorted(projects, key=lambda p: p.sort_key)


def format_org_summary(label: str, projects: Sequence[ProjectResult]) -> Optional[str]:
    if not projects:
        return None
    lines = [f"**📂 {label}**"]
    ranked = rank_projects(projects)
    shown = ranked[:3]
    for project in shown:
        merged = len(project.mrs_merged)
        commits = len(project.commits)
        opened_issues = len(project.issues_opened)
        closed_issues = len(project.issues_closed)
        parts = []
        if merged:
            parts.append(f"PRs: {format_count(merged)}")
        if commits:
            parts.append(f"Commits: {format_count(commits)}")
        if opened_issues or closed_issues:
            parts.append(f"Issues: +{format_count(opened_issues)}/-{format_count(closed_issues)}")
        summary = ' • '.join(parts) if parts else 'No activity recorded'
        icon = GITHUB_ICON if project.repository.is_github else GITLAB_ICON
        lines.append(f"{icon} {project.repository.display_name} — {summary}")
    remaining = len(ranked) - len(shown)
    if remaining > 0:
        lines.append(f"…and {remaining} more active {plural(remaining, 'repo')}.")
    return '\n'.join(lines)


def _latest_activity(mr: ChangeRequest) -> datetime:
    return mr.merged_at or mr.updated_at or mr.created_at or _EPOCH


def format_major_features(mrs_merged: Sequence[ChangeRequest]) -> Optional[str]:
    if not mrs_merged:
        return None
    lines = ['**✨ Major Features Shipped**']
    for mr in sorted(mrs_merged, key=_latest_activity, reverse=True)[:5]:
        title = mr.title or f"Merge Request #{mr.iid or mr.id or '?'}"
        link = f"[{title}]({mr.web_url})" if mr.web_url else title
        project = f" ({mr.project_name})" if mr.project_name else ''
        lines.append(f"• {link}{project}")
    return '\n'.join(lines)


def format_repo_table(projects: Sequence[ProjectResult], totals: Totals) -> Optional[str]:
    if not projects:
        return None
    rows = [
        ['Repo', 'PRs', 'Commits'],
        ['----', '---', '-------'],
    ]
    for project in rank_projects(projects)[:10]:
        rows.append([
            project.repository.display_name,
            format_count(len(project.mrs_merged)),
            format_count(len(project.commits)),
        ])
    rows.append(['TOTAL', format_count(totals.mrs_merged), format_count(totals.commits)])
    return '\n'.join(['**📊 By Repository (Top 10)**', format_table(rows)])


def format_inactive_summary(projects: Sequence[ProjectResult]) -> Optional[str]:
    if not projects:
        return None
    count = len(projects)
    return f"_ℹ️ No tracked activity in {counted(count, 'repo')} this window._"


def _member_parts(member: ContributorSummary) -> List[str]:
    parts = []
    if member.commits:
        pct = f" ({member.commit_pct}%)" if member.commit_pct else ''
        parts.append(f"🧾 {counted(member.commits, 'commit')}{pct}")
    if member.opened_requests:
        parts.append(f"📝 {counted(member.opened_requests, 'PR')} opened")
    if member.merged_requests:
        parts.append(f"✅ {counted(member.merged_requests, 'PR')} merged")
    if member.issues_opened:
        parts.append(f"➕ {counted(member.issues_opened, 'issue')} opened")
    if member.issues_closed:
        parts.append(f"✔️ {counted(member.issues_closed, 'issue')} closed")
    return parts


def format_team_members(members: Sequence[ContributorSummary],
                        heading: Optional[str] = '**Team Members**') -> str:
    lines = [heading] if heading else []
    if not members:
        lines.append(NO_MEMBER_ACTIVITY_LINE)
        return '\n'.join(lines)
    lines.append('*Active Today*')
    top = list(members)[:5]
    for member in top:
        parts = _member_parts(member) or ['MR participation']
        lines.append(f"• **{member.name}** — {' | '.join(parts)}")
    remaining = len(members) - len(top)
    if remaining > 0:
        lines.append(f"• ...and {remaining} more active {plural(remaining, 'contributor')}")
    return '\n'.join(lines)


def format_commit_breakdown(members: Sequence[ContributorSummary], total_commits: int) -> Optional[str]:
    if not total_commits:
        return None
    rows = [
        ['Contributor', 'Commits', '%'],
        ['-----------', '-------', '--'],
    ]
    for member in [m for m in members if m.commits][:8]:
        rows.append([member.name, format_count(member.commits), f"{member.commit_pct}%"])
    rows.append(['TOTAL', format_count(total_commits), '100%'])
    return '\n'.join(['**Commit Breakdown**', format_table(rows)])
