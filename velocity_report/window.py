"""Reporting window calculation."""

import logging
from datetime import datetime, time, timedelta, timezone, tzinfo
from typing import Optional

from .models import TimeWindow

DAILY = 'DAILY'
TODAY = 'TODAY'
LAST24H = 'LAST24H'
WINDOW_MODES = (DAILY, TODAY, LAST24H)


def format_day_label(day) -> str:
    """Format a date like 'March 5, 2024'."""
    return f"{day:%B} {day.day}, {day.year}"


def _day_bounds(day, tz: tzinfo):
    start = datetime.combine(day, time.min, tzinfo=tz)
    end = datetime.combine(day, time.max, tzinfo=tz)
    return start, end


def compute_window(mode: str, tz: tzinfo, now: Optional[datetime] = None) -> TimeWindow:
    """Compute the reporting window for the given mode.

    Args:
        mode: One of DAILY, TODAY or LAST24H; anything else behaves like DAILY
        tz: Reporting timezone
        now: Current instant (defaults to the wall clock)

    Returns:
        TimeWindow with timezone-aware bounds
    """
    now = (now or datetime.now(tz)).astimezone(tz)
    mode = (mode or DAILY).upper()

    if mode == LAST24H:
        # Subtract in UTC so the span is 24 elapsed hours across DST changes
        since = (now.astimezone(timezone.utc) - timedelta(hours=24)).astimezone(tz)
        return TimeWindow(since=since, until=now, label='Last 24h')

    if mode == TODAY:
        since, until = _day_bounds(now.date(), tz)
        return TimeWindow(since=since, until=until, label=format_day_label(since))

    if mode != DAILY:
        logging.warning(f"Unknown WINDOW_MODE '{mode}', falling back to {DAILY}")

    yesterday = now.date() - timedelta(days=1)
    since, until = _day_bounds(yesterday, tz)
    return TimeWindow(since=since, until=until, label=format_day_label(since))


def compute_month_start(tz: tzinfo, now: Optional[datetime] = None) -> datetime:
    """First instant of the current calendar month in the reporting timezone."""
    now = (now or datetime.now(tz)).astimezone(tz)
    return datetime.combine(now.date().replace(day=1), time.min, tzinfo=tz)
