"""Command-line entry point for the velocity report."""

import os
import sys
import json
import logging
import argparse
from datetime import datetime
from typing import List, Optional

from dotenv import load_dotenv

from .api_client import GitLabAPIClient
from .config import DEFAULT_GITLAB_BASE_URL, ConfigError, ReportConfig, clean_token
from .delivery import WebhookDispatcher
from .lookup import find_groups, find_users, list_member_projects, show_project
from .output import ReportFormatter, dry_run_summary
from .reporter import NoRepositoriesError, VelocityReporter
from .window import compute_month_start, compute_window

DEFAULT_GROUP_QUERY = 'Aquarious Technology'


def configure_logging():
    """Configure logging (can be overridden by LOG_LEVEL environment variable)."""
    log_level = os.environ.get('LOG_LEVEL', 'INFO').upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format='%(asctime)s %(levelname)s: %(message)s',
        datefmt='%m/%d/%Y %I:%M:%S %p'
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='velocity-report',
        description='Post a GitLab/GitHub team velocity report to a chat webhook.'
    )
    subparsers = parser.add_subparsers(dest='command')

    report = subparsers.add_parser('report', help='Collect activity and post the report (default)')
    report.add_argument('--dry-run', action='store_true',
                        help='Print a JSON summary instead of posting (same as VELOCITY_DRY_RUN=1)')

    groups = subparsers.add_parser('find-groups', help='Search GitLab groups')
    groups.add_argument('query', nargs='?', default=DEFAULT_GROUP_QUERY)

    users = subparsers.add_parser('find-user', help='Search GitLab users')
    users.add_argument('query')

    subparsers.add_parser('list-projects', help='List GitLab projects you are a member of')

    project = subparsers.add_parser('show-project', help='Show one GitLab project')
    project.add_argument('project_id')

    return parser


def run_report(dry_run: bool = False):
    """Collect, aggregate and deliver (or print) the report.

    Raises:
        ConfigError: On missing or invalid configuration
        NoRepositoriesError: If nothing was discovered
        requests.RequestException: If delivery fails
    """
    config = ReportConfig.from_env(dry_run=True if dry_run else None)
    logging.info(f"Configuration: {config.describe()}")

    now = datetime.now(config.timezone)
    window = compute_window(config.window_mode, config.timezone, now)
    month_start = compute_month_start(config.timezone, now)
    logging.info(f"Reporting window: {window.label} ({window.since.isoformat()} to {window.until.isoformat()})")

    reporter = VelocityReporter.from_config(config)
    report = reporter.run(window, month_start)

    if config.dry_run:
        print(json.dumps(dry_run_summary(report, window.label), indent=2, ensure_ascii=False))
        return

    messages = ReportFormatter(config).build_messages(report, window.label)
    dispatcher = WebhookDispatcher(config.webhook_url, timeout=config.http_timeout, limit=config.chunk_limit)
    for blocks in messages:
        dispatcher.post_blocks(blocks)

    logging.info(f"Report posted in {len(messages)} message{'' if len(messages) == 1 else 's'}.")


def _lookup_client() -> GitLabAPIClient:
    token = clean_token(os.environ.get('GITLAB_TOKEN'))
    if not token:
        raise ConfigError("Missing GITLAB_TOKEN in environment.")
    base_url = (os.environ.get('GITLAB_BASE_URL') or DEFAULT_GITLAB_BASE_URL).rstrip('/')
    return GitLabAPIClient(token, base_url)


def run_lookup(args: argparse.Namespace):
    """Run one of the GitLab inspection commands and print the result."""
    client = _lookup_client()

    if args.command == 'show-project':
        print(json.dumps(show_project(client, args.project_id), indent=2, ensure_ascii=False))
        return

    if args.command == 'find-groups':
        lines = find_groups(client, args.query)
        empty_message = f"No groups found for search: {args.query}"
    elif args.command == 'find-user':
        lines = find_users(client, args.query)
        empty_message = f"No users found for search: {args.query}"
    else:
        lines = list_member_projects(client)
        empty_message = "No projects found."

    if not lines:
        print(empty_message)
        return
    for line in lines:
        print(line)


def main(argv: Optional[List[str]] = None):
    """Main entry point for the script."""
    # Load environment variables from .env file if it exists
    load_dotenv()
    configure_logging()

    args = build_parser().parse_args(argv)
    command = args.command or 'report'

    try:
        if command == 'report':
            run_report(getattr(args, 'dry_run', False))
        else:
            run_lookup(args)
    except (ConfigError, NoRepositoriesError) as e:
        logging.error(str(e))
        sys.exit(1)
    except Exception as e:
        logging.error(f"Failed: {e}", exc_info=True)
        sys.exit(1)


if __name__ == '__main__':
    main()
