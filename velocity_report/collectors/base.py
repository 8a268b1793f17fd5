"""Shared helpers for the platform collectors."""

import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional

import requests

from ..api_client import describe_error
from ..models import ProjectResult


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO 8601 API timestamp into an aware datetime."""
    if not value:
        return None
    text = value.strip()
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def in_window(moment: Optional[datetime], since: datetime, until: datetime) -> bool:
    """Strictly inside (since, until)."""
    return moment is not None and since < moment < until


def in_month_to_date(moment: Optional[datetime], month_start: datetime, until: datetime) -> bool:
    """Inside [month_start, until)."""
    return moment is not None and month_start <= moment < until


def iso(moment: datetime) -> str:
    return moment.astimezone(timezone.utc).isoformat()


class BaseCollector:
    """Common contract: collect(repository_id, since, until, month_start) -> ProjectResult."""

    platform = ''
    source = ''  # GITLAB or GITHUB

    def collect(self, repository_id: str, since: datetime, until: datetime,
                month_start: datetime) -> ProjectResult:
        raise NotImplementedError

    def _fetch_or_empty(self, description: str, repository_id: str,
                        fetch: Callable[[], List]) -> List:
        """Run one fetch, logging HTTP failures and substituting an empty list."""
        try:
            return fetch()
        except requests.RequestException as e:
            logging.warning(f"Unable to fetch {self.platform} {description} for {repository_id}: {describe_error(e)}")
            return []
