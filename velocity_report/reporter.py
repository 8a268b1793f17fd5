"""Run orchestration: discovery, parallel collection and aggregation."""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from .aggregator import ReportData, aggregate
from .api_client import GitHubAPIClient, GitLabAPIClient
from .cache import RepositoryCache
from .collectors import BaseCollector, GitHubCollector, GitLabCollector
from .config import ReportConfig
from .discovery import GitHubDiscoverer, GitLabDiscoverer
from .models import ProjectResult, RepositoryRef, TimeWindow

MAX_WORKERS = 10


class NoRepositoriesError(Exception):
    """Raised when discovery finds nothing to report on for either platform."""


def empty_result(repository_id: str, source: str) -> ProjectResult:
    """Stand-in for a repository whose collection failed; it counts as inactive."""
    repo_id = str(repository_id)
    return ProjectResult(repository=RepositoryRef(id=repo_id, name=repo_id, path=repo_id, platform=source))


class VelocityReporter:
    """Collects and aggregates activity for one report run."""

    def __init__(self, config: ReportConfig, gitlab_client: GitLabAPIClient,
                 github_client: Optional[GitHubAPIClient] = None):
        """Initialize the reporter.

        Args:
            config: Report settings
            gitlab_client: Authenticated GitLab client
            github_client: Authenticated GitHub client, or None to skip GitHub
        """
        self.config = config
        self.gitlab_client = gitlab_client
        self.github_client = github_client

        # Metadata caches live only as long as this reporter
        self.gitlab_cache = RepositoryCache('GitLab project')
        self.github_cache = RepositoryCache('GitHub repository')

        self.gitlab_discoverer = GitLabDiscoverer(gitlab_client, config.gitlab, self.gitlab_cache)
        self.gitlab_collector = GitLabCollector(gitlab_client, self.gitlab_cache)

        self.github_discoverer = None
        self.github_collector = None
        if github_client is not None:
            self.github_discoverer = GitHubDiscoverer(github_client, config.github, self.github_cache)
            self.github_collector = GitHubCollector(github_client, self.github_cache)

    @classmethod
    def from_config(cls, config: ReportConfig) -> 'VelocityReporter':
        gitlab_client = GitLabAPIClient(
            config.gitlab_token, config.gitlab_base_url, config.http_timeout, config.http_retries)
        github_client = None
        if config.github_token:
            github_client = GitHubAPIClient(
                config.github_token, config.github_base_url, config.http_timeout, config.http_retries)
        else:
            logging.info("No GITHUB_TOKEN configured, skipping GitHub")
        return cls(config, gitlab_client, github_client)

    def discover(self) -> Tuple[List[str], List[str]]:
        """Resolve GitLab project ids and GitHub repository names."""
        gitlab_ids = self.gitlab_discoverer.discover()
        github_ids = self.github_discoverer.discover() if self.github_discoverer else []
        return gitlab_ids, github_ids

    def _collect_parallel(self, collector: BaseCollector, repository_ids: Sequence[str],
                          window: TimeWindow, month_start: datetime) -> List[ProjectResult]:
        """Collect every repository concurrently, keeping discovery order in the output."""
        if not repository_ids:
            return []

        results: List[Optional[ProjectResult]] = [None] * len(repository_ids)
        completed = 0
        max_workers = min(MAX_WORKERS, len(repository_ids))

        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            future_to_index = {
                executor.submit(collector.collect, repo_id, window.since, window.until, month_start): index
                for index, repo_id in enumerate(repository_ids)
            }

            for future in as_completed(future_to_index):
                index = future_to_index[future]
                try:
                    results[index] = future.result()
                except Exception as e:
                    logging.error(f"Error collecting {collector.platform} repository {repository_ids[index]}: {e}",
                                  exc_info=True)
                    results[index] = empty_result(repository_ids[index], collector.source)
                completed += 1
                if completed % 10 == 0 or completed == len(repository_ids):
                    logging.info(f"Progress: {completed}/{len(repository_ids)} {collector.platform} repositories collected")

        return results

    def collect(self, window: TimeWindow, month_start: datetime) -> List[ProjectResult]:
        """Discover and collect every repository on both platforms.

        Raises:
            NoRepositoriesError: If neither platform yields a repository
        """
        gitlab_ids, github_ids = self.discover()
        if not gitlab_ids and not github_ids:
            raise NoRepositoriesError(
                "No projects discovered. Configure GitLab (GROUP_IDS/USER_ID or GITLAB_PROJECT_IDS) "
                "or GitHub (GITHUB_TOKEN with repositories)."
            )

        results = self._collect_parallel(self.gitlab_collector, gitlab_ids, window, month_start)
        if self.github_collector is not None:
            results.extend(self._collect_parallel(self.github_collector, github_ids, window, month_start))
        return results

    def run(self, window: TimeWindow, month_start: datetime) -> ReportData:
        results = self.collect(window, month_start)
        report = aggregate(results, self.config.is_client_project)
        logging.info(f"Aggregated {len(report.results)} repositories ({len(report.active)} active)")
        return report
