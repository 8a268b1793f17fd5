"""Velocity Report - GitLab and GitHub team activity summaries for chat."""

from .models import (
    ChangeRequest,
    Commit,
    ContributorSummary,
    Issue,
    ProjectResult,
    RepositoryRef,
    TimeWindow,
)
from .api_client import GitHubAPIClient, GitLabAPIClient
from .cache import RepositoryCache
from .config import ConfigError, ReportConfig
from .aggregator import ReportData, aggregate
from .delivery import WebhookDispatcher, chunk_message
from .output import ReportFormatter
from .reporter import NoRepositoriesError, VelocityReporter

__all__ = [
    'ChangeRequest',
    'Commit',
    'ContributorSummary',
    'Issue',
    'ProjectResult',
    'RepositoryRef',
    'TimeWindow',
    'GitHubAPIClient',
    'GitLabAPIClient',
    'RepositoryCache',
    'ConfigError',
    'ReportConfig',
    'ReportData',
    'aggregate',
    'WebhookDispatcher',
    'chunk_message',
    'ReportFormatter',
    'NoRepositoriesError',
    'VelocityReporter',
]
