"""GitHub repository collector."""

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Dict, List, Optional

import requests

from ..api_client import GitHubAPIClient, describe_error, encode_id
from ..cache import RepositoryCache
from ..models import GITHUB, ChangeRequest, Commit, Issue, ProjectResult, RepositoryRef, resolve_author_name
from .base import BaseCollector, in_month_to_date, in_window, iso, parse_timestamp


def _repo_path(full_name: str) -> str:
    owner, _, name = full_name.partition('/')
    return f"repos/{encode_id(owner)}/{encode_id(name)}"


class GitHubCollector(BaseCollector):
    """Collects commits, pull requests and issues for one GitHub repository."""

    platform = 'GitHub'
    source = GITHUB

    def __init__(self, client: GitHubAPIClient, cache: RepositoryCache):
        self.client = client
        self.cache = cache

    def get_repo_info(self, full_name: str) -> Optional[Dict]:
        """Repository metadata, read through the run cache; failures are cached as not found."""
        if full_name in self.cache:
            return self.cache.get(full_name)
        try:
            data = self.client.get(_repo_path(full_name))
        except requests.RequestException as e:
            logging.warning(f"Unable to fetch GitHub repo {full_name}: {describe_error(e)}")
            self.cache.mark_not_found(full_name)
            return None
        self.cache.put(full_name, data)
        return data

    def resolve_repository(self, full_name: str) -> RepositoryRef:
        info = self.get_repo_info(full_name) or {}
        short_name = full_name.partition('/')[2] or full_name
        path = info.get('full_name') or full_name
        return RepositoryRef(
            id=path,
            name=info.get('name') or short_name,
            path=path,
            web_url=info.get('html_url') or f"https://github.com/{full_name}",
            platform=GITHUB,
        )

    def fetch_commits(self, full_name: str, since: datetime, until: datetime) -> List[Dict]:
        return self.client.get_paginated(
            f"{_repo_path(full_name)}/commits",
            {'since': iso(since), 'until': iso(until)}
        )

    def fetch_pulls(self, full_name: str, since: datetime) -> List[Dict]:
        """Pull requests updated since the cutoff.

        The pulls endpoint has no server-side update filter, so pages are read
        newest-updated first and paging stops once a page ends before the cutoff.
        """
        def should_continue(page: List[Dict]) -> bool:
            last_updated = parse_timestamp(page[-1].get('updated_at'))
            return last_updated is None or last_updated >= since

        return self.client.get_paginated(
            f"{_repo_path(full_name)}/pulls",
            {'state': 'all', 'sort': 'updated', 'direction': 'desc'},
            should_continue=should_continue
        )

    def fetch_issues(self, full_name: str, since: datetime) -> List[Dict]:
        items = self.client.get_paginated(
            f"{_repo_path(full_name)}/issues",
            {'state': 'all', 'since': iso(since)}
        )
        # The issues endpoint also returns pull requests
        return [item for item in items if not item.get('pull_request')]

    def collect(self, repository_id: str, since: datetime, until: datetime,
                month_start: datetime) -> ProjectResult:
        """Collect one repository's activity for the window and the month to date.

        Args:
            repository_id: Repository in 'owner/name' form
            since: Window start
            until: Window end
            month_start: First instant of the current month

        Returns:
            ProjectResult for the repository
        """
        logging.info(f"Collecting GitHub repository: {repository_id}")
        repository = self.resolve_repository(repository_id)

        with ThreadPoolExecutor(max_workers=3) as executor:
            future_commits = executor.submit(
                self._fetch_or_empty, 'commits', repository_id,
                lambda: self.fetch_commits(repository_id, since, until))
            future_pulls = executor.submit(
                self._fetch_or_empty, 'pull requests', repository_id,
                lambda: self.fetch_pulls(repository_id, since))
            future_issues = executor.submit(
                self._fetch_or_empty, 'issues', repository_id,
                lambda: self.fetch_issues(repository_id, month_start))

            commits_raw = future_commits.result()
            pulls_raw = future_pulls.result()
            issues_raw = future_issues.result()

        result = ProjectResult(repository=repository)

        for raw in commits_raw:
            commit = self._commit(raw, repository)
            if in_window(commit.created_at, since, until):
                result.commits.append(commit)

        for raw in pulls_raw:
            pull = self._pull(raw, repository)
            if in_window(pull.created_at, since, until):
                result.mrs_opened.append(pull)
            if in_window(pull.merged_at, since, until):
                result.mrs_merged.append(pull)

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
    def _user_author(raw: Dict) -> str:
        login = (raw.get('user') or {}).get('login')
        return resolve_author_name({'author': {'name': login, 'username': login}} if login else None)

    @staticmethod
    def _commit(raw: Dict, repository: RepositoryRef) -> Commit:
        details = raw.get('commit') or {}
        git_author = details.get('author') or {}
        git_committer = details.get('committer') or {}
        login = (raw.get('author') or {}).get('login')
        author_name = git_author.get('name') or login or git_committer.get('name')
        author_email = git_author.get('email') or git_committer.get('email')

        sha = raw.get('sha') or raw.get('id') or ''
        message = details.get('message') or ''
        return Commit(
            id=sha,
            short_id=sha[:8],
            title=message.split('\n')[0],
            author=resolve_author_name({
                'author': {'name': login or author_name},
                'author_name': author_name,
                'author_email': author_email,
            }),
            created_at=parse_timestamp(git_author.get('date') or git_committer.get('date')),
            web_url=raw.get('html_url'),
            repository=repository,
        )

    @classmethod
    def _pull(cls, raw: Dict, repository: RepositoryRef) -> ChangeRequest:
        merged_at = parse_timestamp(raw.get('merged_at'))
        return ChangeRequest(
            id=str(raw.get('id') or ''),
            iid=raw.get('number'),
            title=raw.get('title') or '',
            author=cls._user_author(raw),
            state='merged' if merged_at else (raw.get('state') or ''),
            created_at=parse_timestamp(raw.get('created_at')),
            updated_at=parse_timestamp(raw.get('updated_at')),
            merged_at=merged_at,
            web_url=raw.get('html_url'),
            repository=repository,
        )

    @classmethod
    def _issue(cls, raw: Dict, repository: RepositoryRef) -> Issue:
        return Issue(
            id=str(raw.get('id') or ''),
            iid=raw.get('number'),
            title=raw.get('title') or '',
            author=cls._user_author(raw),
            created_at=parse_timestamp(raw.get('created_at')),
            closed_at=parse_timestamp(raw.get('closed_at')),
            web_url=raw.get('html_url'),
            repository=repository,
        )
