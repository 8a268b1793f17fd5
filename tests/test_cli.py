"""
Unit tests for the command-line entry point
"""

import json
import pytest
from unittest.mock import Mock, patch

from velocity_report import cli
from velocity_report.aggregator import aggregate
from velocity_report.reporter import NoRepositoriesError

from factories import make_commit, make_result


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep the developer's environment and .env file out of the tests."""
    for name in ('GITLAB_TOKEN', 'DISCORD_WEBHOOK_URL', 'VELOCITY_DRY_RUN', 'GITHUB_TOKEN',
                 'GITLAB_PROJECT_IDS', 'GROUP_IDS', 'WINDOW_MODE', 'REPORT_TZ'):
        monkeypatch.delenv(name, raising=False)
    with patch('velocity_report.cli.load_dotenv'):
        yield


@pytest.fixture
def env(monkeypatch):
    monkeypatch.setenv('GITLAB_TOKEN', 'glpat-test')
    monkeypatch.setenv('DISCORD_WEBHOOK_URL', 'https://chat.example/hook')


@pytest.fixture
def reporter():
    report = aggregate([make_result(commits=[make_commit('Alice')])], lambda _: False)
    reporter = Mock()
    reporter.run.return_value = report
    with patch('velocity_report.cli.VelocityReporter.from_config', return_value=reporter):
        yield reporter


class TestParser:
    """Test cases for argument parsing."""

    def test_default_group_query(self):
        args = cli.build_parser().parse_args(['find-groups'])
        assert args.query == 'Aquarious Technology'

    def test_dry_run_flag(self):
        args = cli.build_parser().parse_args(['report', '--dry-run'])
        assert args.dry_run is True


class TestReportCommand:
    """Test cases for the report command."""

    def test_missing_token_exits_non_zero(self, caplog):
        with pytest.raises(SystemExit) as excinfo:
            cli.main([])

        assert excinfo.value.code == 1
        assert 'GITLAB_TOKEN' in caplog.text

    def test_nothing_discovered_exits_non_zero(self, env, reporter):
        reporter.run.side_effect = NoRepositoriesError('No projects discovered.')

        with pytest.raises(SystemExit) as excinfo:
            cli.main(['report'])

        assert excinfo.value.code == 1

    def test_dry_run_prints_json(self, monkeypatch, reporter, capsys):
        monkeypatch.setenv('GITLAB_TOKEN', 'glpat-test')

        with patch('velocity_report.cli.WebhookDispatcher') as dispatcher:
            cli.main(['report', '--dry-run'])

        summary = json.loads(capsys.readouterr().out)
        assert summary['totalProjects'] == 1
        assert summary['projects'][0]['commits'] == 1
        dispatcher.assert_not_called()

    def test_dry_run_from_environment(self, monkeypatch, reporter, capsys):
        monkeypatch.setenv('GITLAB_TOKEN', 'glpat-test')
        monkeypatch.setenv('VELOCITY_DRY_RUN', 'true')

        cli.main([])

        assert json.loads(capsys.readouterr().out)['totalProjects'] == 1

    def test_posts_three_message_groups(self, env, reporter):
        with patch('velocity_report.cli.WebhookDispatcher') as dispatcher:
            cli.main(['report'])

        dispatcher.assert_called_once_with('https://chat.example/hook', timeout=30, limit=1800)
        assert dispatcher.return_value.post_blocks.call_count == 3

    def test_delivery_failure_exits_non_zero(self, env, reporter):
        with patch('velocity_report.cli.WebhookDispatcher') as dispatcher:
            dispatcher.return_value.post_blocks.side_effect = RuntimeError('webhook down')
            with pytest.raises(SystemExit) as excinfo:
                cli.main(['report'])

        assert excinfo.value.code == 1


class TestLookupCommands:
    """Test cases for the GitLab lookup commands."""

    @pytest.fixture
    def client(self, env):
        client = Mock()
        with patch('velocity_report.cli.GitLabAPIClient', return_value=client):
            yield client

    def test_find_groups(self, client, capsys):
        client.get.return_value = [{'id': 7, 'full_path': 'aquarious', 'name': 'Aquarious Technology'}]

        cli.main(['find-groups'])

        assert capsys.readouterr().out == '7\taquarious\tAquarious Technology\n'
        client.get.assert_called_once_with('groups', {'search': 'Aquarious Technology', 'per_page': 100})

    def test_find_user_without_match(self, client, capsys):
        client.get.return_value = []

        cli.main(['find-user', 'nobody'])

        assert capsys.readouterr().out == 'No users found for search: nobody\n'

    def test_list_projects(self, client, capsys):
        client.get_paginated.return_value = [{'id': 1, 'name_with_namespace': 'Team / Api'}]

        cli.main(['list-projects'])

        assert capsys.readouterr().out == '1\tTeam / Api\n'

    def test_show_project(self, client, capsys):
        client.get.return_value = {'id': 1, 'name': 'api', 'path_with_namespace': 'team/api', 'extra': 'x'}

        cli.main(['show-project', 'team/api'])

        shown = json.loads(capsys.readouterr().out)
        assert shown['path_with_namespace'] == 'team/api'
        assert 'extra' not in shown
        client.get.assert_called_once_with('projects/team%2Fapi')

    def test_lookup_requires_token(self, caplog):
        with pytest.raises(SystemExit) as excinfo:
            cli.main(['list-projects'])

        assert excinfo.value.code == 1
        assert 'GITLAB_TOKEN' in caplog.text
