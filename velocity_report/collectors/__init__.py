"""Per-platform activity collectors."""

from .base import BaseCollector, parse_timestamp
from .github import GitHubCollector
from .gitlab import GitLabCollector

__all__ = [
    'BaseCollector',
    'GitHubCollector',
    'GitLabCollector',
    'parse_timestamp',
]
