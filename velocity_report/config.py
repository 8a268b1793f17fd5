"""Environment-driven configuration for the velocity report."""

import os
import re
import logging
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Mapping, Optional, Pattern, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .delivery import DEFAULT_CHUNK_LIMIT
from .window import DAILY

DEFAULT_TIMEZONE = 'Asia/Kolkata'
DEFAULT_TITLE = 'GitLab Engineering Team Velocity'
DEFAULT_FOOTER = '_Posted automatically by Velocity Bot_'
DEFAULT_GITLAB_BASE_URL = 'https://gitlab.com/api/v4'
DEFAULT_GITHUB_BASE_URL = 'https://api.github.com'

GITLAB_DISCOVER_MODES = ('group', 'user', 'mixed')
GITHUB_DISCOVER_MODES = ('org', 'user', 'mixed')

TRUE_VALUES = ('true', '1', 'yes')


class ConfigError(Exception):
    """Raised when the environment does not describe a runnable report."""


def parse_csv(value: Optional[str]) -> List[str]:
    """Split a comma-separated setting into trimmed, non-empty items."""
    return [item.strip() for item in (value or '').split(',') if item.strip()]


def parse_bool(value: Optional[str], default: bool) -> bool:
    if value is None or not value.strip():
        return default
    return value.strip().lower() in TRUE_VALUES


def clean_token(value: Optional[str]) -> str:
    """Strip whitespace and one pair of surrounding double quotes."""
    value = (value or '').strip()
    if len(value) >= 2 and value.startswith('"') and value.endswith('"'):
        value = value[1:-1]
    return value.strip()


def _compile(name: str, pattern: Optional[str]) -> Optional[Pattern]:
    if not pattern:
        return None
    try:
        return re.compile(pattern)
    except re.error as e:
        raise ConfigError(f"Invalid regular expression in {name}: {e}") from e


def _parse_int(name: str, value: Optional[str], default: int) -> int:
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got '{value}'")


def _parse_mode(name: str, value: Optional[str], allowed: Tuple[str, ...]) -> str:
    default = allowed[0]
    mode = (value or default).strip().lower()
    if mode not in allowed:
        logging.warning(f"Invalid {name} value '{mode}', using default: {default}")
        logging.warning(f"Valid options: {', '.join(allowed)}")
        return default
    return mode


@dataclass(frozen=True)
class DiscoverySettings:
    """How one hosting platform's repositories are selected."""
    mode: str
    static_ids: Tuple[str, ...] = ()
    sources: Tuple[str, ...] = ()  # GitLab group ids or GitHub orgs
    user: Optional[str] = None
    include_subgroups: bool = True
    archived: bool = False
    visibility: Optional[str] = None
    include_pattern: Optional[Pattern] = None
    exclude_pattern: Optional[Pattern] = None
    extra_ids: Tuple[str, ...] = ()
    exclude_ids: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ReportConfig:
    """Settings for one report run."""
    gitlab_token: str
    webhook_url: Optional[str] = None
    github_token: Optional[str] = None
    gitlab_base_url: str = DEFAULT_GITLAB_BASE_URL
    github_base_url: str = DEFAULT_GITHUB_BASE_URL
    timezone: ZoneInfo = field(default_factory=lambda: ZoneInfo(DEFAULT_TIMEZONE))
    window_mode: str = DAILY
    report_title: str = DEFAULT_TITLE
    org_label_internal: str = 'Internal'
    org_label_client: str = 'Client'
    client_project_ids: FrozenSet[str] = frozenset()
    footer: str = DEFAULT_FOOTER
    chunk_limit: int = DEFAULT_CHUNK_LIMIT
    http_timeout: int = 30
    http_retries: int = 0
    dry_run: bool = False
    gitlab: DiscoverySettings = field(default_factory=lambda: DiscoverySettings(mode='group'))
    github: DiscoverySettings = field(default_factory=lambda: DiscoverySettings(mode='org'))

    def is_client_project(self, project_id: str) -> bool:
        return str(project_id).lower() in self.client_project_ids

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None,
                 dry_run: Optional[bool] = None) -> 'ReportConfig':
        """Build a config from environment variables.

        Args:
            environ: Mapping to read from (defaults to os.environ)
            dry_run: Overrides VELOCITY_DRY_RUN when not None

        Raises:
            ConfigError: On missing credentials or invalid values
        """
        env: Mapping[str, str] = os.environ if environ is None else environ

        if dry_run is None:
            dry_run = parse_bool(env.get('VELOCITY_DRY_RUN'), False)

        gitlab_token = clean_token(env.get('GITLAB_TOKEN'))
        webhook_url = (env.get('DISCORD_WEBHOOK_URL') or '').strip() or None
        if not gitlab_token:
            raise ConfigError("Missing GITLAB_TOKEN.")
        if not webhook_url and not dry_run:
            raise ConfigError("Missing DISCORD_WEBHOOK_URL.")

        tz_name = (env.get('REPORT_TZ') or DEFAULT_TIMEZONE).strip()
        try:
            timezone = ZoneInfo(tz_name)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ConfigError(f"Unknown REPORT_TZ '{tz_name}'") from e

        chunk_limit = _parse_int('MESSAGE_CHUNK_LIMIT', env.get('MESSAGE_CHUNK_LIMIT'), DEFAULT_CHUNK_LIMIT)
        if chunk_limit <= 0:
            raise ConfigError("MESSAGE_CHUNK_LIMIT must be positive")

        visibility = (env.get('VISIBILITY') or '').strip().lower() or None
        gitlab = DiscoverySettings(
            mode=_parse_mode('DISCOVER_MODE', env.get('DISCOVER_MODE'), GITLAB_DISCOVER_MODES),
            static_ids=tuple(parse_csv(env.get('GITLAB_PROJECT_IDS'))),
            sources=tuple(parse_csv(env.get('GROUP_IDS'))),
            user=(env.get('USER_ID') or '').strip() or None,
            include_subgroups=parse_bool(env.get('INCLUDE_SUBGROUPS'), True),
            archived=parse_bool(env.get('ARCHIVED'), False),
            visibility=visibility,
            include_pattern=_compile('NAME_INCLUDE_REGEX', env.get('NAME_INCLUDE_REGEX')),
            exclude_pattern=_compile('NAME_EXCLUDE_REGEX', env.get('NAME_EXCLUDE_REGEX')),
            extra_ids=tuple(parse_csv(env.get('EXTRA_PROJECT_IDS'))),
            exclude_ids=tuple(parse_csv(env.get('EXCLUDE_PROJECT_IDS'))),
        )

        github_visibility = (env.get('GITHUB_VISIBILITY') or '').strip().lower() or None
        github = DiscoverySettings(
            mode=_parse_mode('GITHUB_DISCOVER_MODE', env.get('GITHUB_DISCOVER_MODE'), GITHUB_DISCOVER_MODES),
            static_ids=tuple(parse_csv(env.get('GITHUB_REPOS'))),
            sources=tuple(parse_csv(env.get('GITHUB_ORGS'))),
            user=(env.get('GITHUB_USER') or '').strip() or None,
            archived=parse_bool(env.get('GITHUB_ARCHIVED'), False),
            visibility=github_visibility,
            include_pattern=_compile('GITHUB_REPO_INCLUDE_REGEX', env.get('GITHUB_REPO_INCLUDE_REGEX')),
            exclude_pattern=_compile('GITHUB_REPO_EXCLUDE_REGEX', env.get('GITHUB_REPO_EXCLUDE_REGEX')),
            extra_ids=tuple(parse_csv(env.get('GITHUB_EXTRA_REPOS'))),
            exclude_ids=tuple(parse_csv(env.get('GITHUB_EXCLUDE_REPOS'))),
        )

        return cls(
            gitlab_token=gitlab_token,
            webhook_url=webhook_url,
            github_token=clean_token(env.get('GITHUB_TOKEN')) or None,
            gitlab_base_url=(env.get('GITLAB_BASE_URL') or DEFAULT_GITLAB_BASE_URL).rstrip('/'),
            github_base_url=(env.get('GITHUB_BASE_URL') or DEFAULT_GITHUB_BASE_URL).rstrip('/'),
            timezone=timezone,
            window_mode=(env.get('WINDOW_MODE') or DAILY).strip().upper(),
            report_title=env.get('REPORT_TITLE') or DEFAULT_TITLE,
            org_label_internal=env.get('ORG_LABEL_INTERNAL') or 'Internal',
            org_label_client=env.get('ORG_LABEL_CLIENT') or 'Client',
            client_project_ids=frozenset(i.lower() for i in parse_csv(env.get('CLIENT_PROJECT_IDS'))),
            footer=env.get('REPORT_FOOTER', DEFAULT_FOOTER),
            chunk_limit=chunk_limit,
            http_timeout=_parse_int('HTTP_TIMEOUT', env.get('HTTP_TIMEOUT'), 30),
            http_retries=_parse_int('HTTP_RETRIES', env.get('HTTP_RETRIES'), 0),
            dry_run=dry_run,
            gitlab=gitlab,
            github=github,
        )

    def describe(self) -> Dict[str, object]:
        """Non-secret settings, for logging."""
        return {
            'window_mode': self.window_mode,
            'timezone': str(self.timezone),
            'gitlab_mode': self.gitlab.mode,
            'github_enabled': bool(self.github_token),
            'github_mode': self.github.mode,
            'dry_run': self.dry_run,
        }
