"""Data models for the velocity report pipeline."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

GITLAB = 'gitlab'
GITHUB = 'github'

UNKNOWN_AUTHOR = 'Unknown'


def resolve_author_name(entry: Optional[Dict]) -> str:
    """Resolve a display name for the author of a raw API record.

    Tries the structured author's name, then its username, then the flat
    ``author_name`` and ``author_email`` fields, then the structured email.
    """
    if not entry:
        return UNKNOWN_AUTHOR
    author = entry.get('author') or {}
    return (
        author.get('name')
        or author.get('username')
        or entry.get('author_name')
        or entry.get('author_email')
        or author.get('email')
        or UNKNOWN_AUTHOR
    )


@dataclass(frozen=True)
class TimeWindow:
    """Reporting time range; both bounds are timezone-aware."""
    since: datetime
    until: datetime
    label: str


@dataclass(frozen=True)
class RepositoryRef:
    """A repository on one hosting platform plus its display attributes."""
    id: str
    name: str
    path: str
    web_url: Optional[str] = None
    platform: str = GITLAB

    @property
    def is_github(self) -> bool:
        return self.platform == GITHUB

    @property
    def display_name(self) -> str:
        return self.name or self.path or self.id


@dataclass(frozen=True)
class ActivityRecord:
    """Platform-agnostic base for commits, change requests and issues."""
    id: str
    title: str
    author: str
    created_at: Optional[datetime]
    web_url: Optional[str]
    repository: RepositoryRef

    @property
    def project_id(self) -> str:
        return self.repository.id

    @property
    def project_name(self) -> str:
        return self.repository.name


@dataclass(frozen=True)
class Commit(ActivityRecord):
    short_id: str = ''


@dataclass(frozen=True)
class ChangeRequest(ActivityRecord):
    """A GitLab merge request or a GitHub pull request."""
    iid: Optional[int] = None
    state: str = ''
    updated_at: Optional[datetime] = None
    merged_at: Optional[datetime] = None


@dataclass(frozen=True)
class Issue(ActivityRecord):
    iid: Optional[int] = None
    closed_at: Optional[datetime] = None


@dataclass
class ProjectResult:
    """Everything collected for one repository during one run."""
    repository: RepositoryRef
    commits: List[Commit] = field(default_factory=list)
    mrs_opened: List[ChangeRequest] = field(default_factory=list)
    mrs_merged: List[ChangeRequest] = field(default_factory=list)
    issues_opened: List[Issue] = field(default_factory=list)
    issues_closed: List[Issue] = field(default_factory=list)
    month_issues_opened: List[Issue] = field(default_factory=list)
    month_issues_closed: List[Issue] = field(default_factory=list)

    @property
    def has_activity(self) -> bool:
        return bool(
            self.commits
            or self.mrs_opened
            or self.mrs_merged
            or self.issues_opened
            or self.issues_closed
        )

    @property
    def sort_key(self):
        # Merged count desc, commit count desc, name asc
        return (-len(self.mrs_merged), -len(self.commits), self.repository.name.casefold())


@dataclass
class ContributorSummary:
    """Per-author activity counts across every repository in the run."""
    name: str
    commits: int = 0
    commit_pct: int = 0
    merged_requests: int = 0
    opened_requests: int = 0
    issues_opened: int = 0
    issues_closed: int = 0

    @property
    def sort_key(self):
        """Rank descending by merged requests, commits and closed issues; names tie-break case-insensitively."""
        return (
            -self.merged_requests,
            -self.commits,
            -self.issues_closed,
            self.name.casefold(),
            self.name,
        )
