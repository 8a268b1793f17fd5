"""Repository discovery for GitLab and GitHub."""

import logging
from typing import Dict, Iterable, List, Optional

import requests

from .api_client import GitHubAPIClient, GitLabAPIClient, describe_error, encode_id
from .cache import RepositoryCache, normalize_key
from .config import DiscoverySettings


class RepositoryFilter:
    """Archived, visibility and name/path pattern filtering for listed repositories."""

    def __init__(self, settings: DiscoverySettings):
        self.archived = settings.archived
        self.visibility = settings.visibility
        self.include_pattern = settings.include_pattern
        self.exclude_pattern = settings.exclude_pattern

    def matches(self, name: str, path: str, archived: Optional[bool] = None,
                visibility: Optional[str] = None) -> bool:
        """Check whether a repository passes every configured filter.

        Args:
            name: Full display name
            path: Namespaced path
            archived: Archived flag, when the listing reports one
            visibility: Visibility level, when the listing reports one

        Returns:
            True if the repository should be kept
        """
        if archived is not None and bool(archived) != self.archived:
            return False
        if self.visibility and visibility and visibility.lower() != self.visibility:
            return False
        if self.include_pattern and not (
            self.include_pattern.search(name) or self.include_pattern.search(path)
        ):
            return False
        if self.exclude_pattern and (
            self.exclude_pattern.search(name) or self.exclude_pattern.search(path)
        ):
            return False
        return True


def apply_overrides(selected: Dict[str, str], extra_ids: Iterable[str],
                    exclude_ids: Iterable[str]) -> List[str]:
    """Apply force-include then force-exclude lists; exclusion always wins.

    Args:
        selected: Normalized key -> identifier, in discovery order

    Returns:
        Ordered list of unique identifiers
    """
    excludes = {normalize_key(i) for i in exclude_ids}
    for extra in extra_ids:
        key = normalize_key(extra)
        if key and key not in excludes:
            selected.setdefault(key, extra.strip())
    for key in excludes:
        selected.pop(key, None)
    return list(selected.values())


class GitLabDiscoverer:
    """Resolves which GitLab projects to report on."""

    def __init__(self, client: GitLabAPIClient, settings: DiscoverySettings, cache: RepositoryCache):
        self.client = client
        self.settings = settings
        self.cache = cache
        self.repo_filter = RepositoryFilter(settings)

    def _list_params(self) -> Dict:
        params = {'archived': self.settings.archived, 'simple': True}
        if self.settings.visibility:
            params['visibility'] = self.settings.visibility
        return params

    def _fetch_source(self, path: str, params: Dict, description: str) -> List[Dict]:
        try:
            return self.client.get_paginated(path, params)
        except requests.RequestException as e:
            logging.warning(f"Unable to fetch GitLab projects for {description}: {describe_error(e)}")
            return []

    def discover(self) -> List[str]:
        """Return project ids to collect, in discovery order."""
        if self.settings.static_ids:
            logging.info(f"Using GitLab projects from environment: {', '.join(self.settings.static_ids)}")
            return list(self.settings.static_ids)

        mode = self.settings.mode
        projects: List[Dict] = []

        if mode in ('group', 'mixed'):
            for group_id in self.settings.sources:
                params = self._list_params()
                params['include_subgroups'] = self.settings.include_subgroups
                projects.extend(self._fetch_source(
                    f"groups/{encode_id(group_id)}/projects", params, f"group {group_id}"))

        if mode in ('user', 'mixed') and self.settings.user:
            params = self._list_params()
            params['membership'] = True
            projects.extend(self._fetch_source(
                f"users/{encode_id(self.settings.user)}/projects", params, f"user {self.settings.user}"))

        unique: Dict[str, Dict] = {}
        for project in projects:
            if project.get('id') is None:
                continue
            unique.setdefault(normalize_key(project['id']), project)

        selected: Dict[str, str] = {}
        for key, project in unique.items():
            path = project.get('path_with_namespace') or ''
            name = project.get('name_with_namespace') or path
            if not self.repo_filter.matches(name, path, project.get('archived'), project.get('visibility')):
                logging.debug(f"Skipping GitLab project {path or key} (filtered)")
                continue
            selected[key] = str(project['id'])
            self.cache.put(key, project)

        ids = apply_overrides(selected, self.settings.extra_ids, self.settings.exclude_ids)
        logging.info(f"Discovered {len(ids)} GitLab project(s)")
        return ids


class GitHubDiscoverer:
    """Resolves which GitHub repositories to report on."""

    def __init__(self, client: GitHubAPIClient, settings: DiscoverySettings, cache: RepositoryCache):
        self.client = client
        self.settings = settings
        self.cache = cache
        self.repo_filter = RepositoryFilter(settings)

    def _fetch_source(self, path: str, params: Dict, description: str) -> List[Dict]:
        try:
            return self.client.get_paginated(path, params)
        except requests.RequestException as e:
            logging.warning(f"Unable to fetch GitHub repos for {description}: {describe_error(e)}")
            return []

    def discover(self) -> List[str]:
        """Return owner/name identifiers to collect, in discovery order."""
        if self.settings.static_ids:
            logging.info(f"Using GitHub repositories from environment: {', '.join(self.settings.static_ids)}")
            return list(self.settings.static_ids)

        mode = self.settings.mode
        repos: List[Dict] = []

        if mode in ('org', 'mixed'):
            for org in self.settings.sources:
                repos.extend(self._fetch_source(
                    f"orgs/{encode_id(org)}/repos", {'type': 'all', 'sort': 'updated'}, f"org {org}"))

        if mode in ('user', 'mixed'):
            if self.settings.user:
                repos.extend(self._fetch_source(
                    f"users/{encode_id(self.settings.user)}/repos",
                    {'type': 'all', 'sort': 'updated'},
                    f"user {self.settings.user}"))
            else:
                repos.extend(self._fetch_source("user/repos", {
                    'affiliation': 'owner,collaborator,organization_member',
                    'sort': 'updated',
                    'direction': 'desc'
                }, "the authenticated user"))

        selected: Dict[str, str] = {}
        for repo in repos:
            full_name = repo.get('full_name')
            if not full_name:
                continue
            key = normalize_key(full_name)
            if key in selected:
                continue
            visibility = repo.get('visibility')
            if visibility is None and 'private' in repo:
                visibility = 'private' if repo['private'] else 'public'
            if not self.repo_filter.matches(full_name, repo.get('name') or '', repo.get('archived'), visibility):
                logging.debug(f"Skipping GitHub repository {full_name} (filtered)")
                continue
            selected[key] = full_name
            self.cache.put(key, repo)

        for excluded in self.settings.exclude_ids:
            self.cache.discard(excluded)

        ids = apply_overrides(selected, self.settings.extra_ids, self.settings.exclude_ids)
        logging.info(f"Discovered {len(ids)} GitHub repositories")
        return ids
