"""GitLab project collector."""

import logging
from datetime import datetime
from typing import Dict, Optional

import requests

from ..api_client import GitLabAPIClient, describe_error, encode_id
from ..cache import RepositoryCache
from ..models import GITLAB, ChangeRequest, Commit, Issue, ProjectResult, RepositoryRef, resolve_author_name
from .base import BaseCollector, in_month_to_date, in_window, iso, parse_timestamp


class GitLabCollector(BaseCollector):
    """Collects commits, merge requests and issues for one GitLab project."""

    platform = 'GitLab'
    source = GITLAB

    def __init__(self, client: GitLabAPIClient, cache: RepositoryCache):
        self.client = client
        self.cache = cache

    def get_project_info(self, project_id: str) -> Optional[Dict]:
        """Project metadata, fetched once per run; failures are cached as not found."""
        if project_id in self.cache:
            return self.cache.get(project_id)
        try:
            data = self.client.get(f"projects/{encode_id(project_id)}")
        except requests.RequestException as e:
            logging.warning(f"Unable to fetch GitLab project {project_id}: {describe_error(e)}")
            self.cache.mark_not_found(project_id)
            return None
        self.cache.put(project_id, data)
        return data

    def resolve_repository(self, project_id: str) -> RepositoryRef:
        info = self.get_project_info(project_id) or {}
        name = info.get('name') or str(project_id)
        return RepositoryRef(
            id=str(project_id),
            name=name,
            path=info.get('path_with_namespace') or name,
            web_url=info.get('web_url'),
            platform=GITLAB,
        )

    def collect(self, repository_id: str, since: datetime, until: datetime,
                month_start: datetime) -> ProjectResult:
        """Collect one project's activity for the window and the month to date.

        Args:
            repository_id: Numeric project id or namespaced path
            since: Window start
            until: Window end
            month_start: First instant of the current month

        Returns:
            ProjectResult for the project
        """
        logging.info(f"Collecting GitLab project: {repository_id}")
        base = f"projects/{encode_id(repository_id)}"

        commits_raw = self._fetch_or_empty('commits', repository_id, lambda: self.client.get_paginated(
            f"{base}/repository/commits",
            {'since': iso(since), 'until': iso(until), 'all': True}
        ))
        mrs_raw = self._fetch_or_empty('merge requests', repository_id, lambda: self.client.get_paginated(
            f"{base}/merge_requests",
            {'updated_after': iso(since), 'scope': 'all'}
        ))
        issues_raw = self._fetch_or_empty('issues', repository_id, lambda: self.client.get_paginated(
            f"{base}/issues",
            {'updated_after': iso(month_start), 'scope': 'all'}
        ))

        repository = self.resolve_repository(repository_id)

        result = ProjectResult(repository=repository)
        # Commits are already bounded by the server's since/until filter
        result.commits = [self._commit(raw, repository) for raw in commits_raw]

        for raw in mrs_raw:
            mr = self._merge_request(raw, repository)
            if in_window(mr.created_at, since, until):
                result.mrs_opened.append(mr)
            if mr.state == 'merged' and in_window(mr.merged_at, since, until):
                result.mrs_merged.append(mr)

        for raw in issues_raw:
            issue = self._issue(raw, repository)
            if in_window(issue.created_at, since, until):
                result.issues_opened.append(issue)
            if in_window(issue.closed_at, since, until):
                result.issues_closed.append(issue)
            if in_month_to_date(issue.created_at, month_start, until):
                result.month_issues_opened.append(issue)
            if in_month_to_date(issue.closed_at, month_start, until):
                result.month_issues_closed.append(issue)

        return result

    @staticmethod
    def _commit(raw: Dict, repository: RepositoryRef) -> Commit:
        return Commit(
            id=str(raw.get('id') or ''),
            short_id=raw.get('short_id') or '',
            title=raw.get('title') or '',
            author=resolve_author_name(raw),
            created_at=parse_timestamp(raw.get('created_at')),
            web_url=raw.get('web_url'),
            repository=repository,
        )

    @staticmethod
    def _merge_request(raw: Dict, repository: RepositoryRef) -> ChangeRequest:
        return ChangeRequest(
            id=str(raw.get('id') or ''),
            iid=raw.get('iid'),
            title=raw.get('title') or '',
            author=resolve_author_name(raw),
            state=raw.get('state') or '',
            created_at=parse_timestamp(raw.get('created_at')),
            updated_at=parse_timestamp(raw.get('updated_at')),
            merged_at=parse_timestamp(raw.get('merged_at')),
            web_url=raw.get('web_url'),
            repository=repository,
        )

    @staticmethod
    def _issue(raw: Dict, repository: RepositoryRef) -> Issue:
        return Issue(
            id=str(raw.get('id') or ''),
            iid=raw.get('iid'),
            title=raw.get('title') or '',
            author=resolve_author_name(raw),
            created_at=parse_timestamp(raw.get('created_at')),
            closed_at=parse_timestamp(raw.get('closed_at')),
            web_url=raw.get('web_url'),
            repository=repository,
        )
