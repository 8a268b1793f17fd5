"""
Unit tests for cross-repository aggregation
"""

import pytest

from velocity_report.aggregator import aggregate, build_member_summaries, percent
from velocity_report.models import GITHUB

from factories import NOON, make_commit, make_issue, make_mr, make_repo, make_result


def never_client(_):
    return False


class TestPercent:
    """Test cases for percent rounding."""

    @pytest.mark.parametrize('part, whole, expected', [
        (3, 5, 60),
        (1, 3, 33),
        (2, 3, 67),
        (1, 8, 13),  # 12.5 rounds up
        (0, 0, 0),
        (4, 4, 100),
    ])
    def test_percent(self, part, whole, expected):
        assert percent(part, whole) == expected


class TestMemberSummaries:
    """Test cases for build_member_summaries."""

    def test_alice_and_bob(self):
        commits = [make_commit('Alice')] * 3 + [make_commit('Bob')] * 2
        merged = [make_mr('Alice', merged_at=NOON)]

        members = build_member_summaries(commits, merged, merged, [], [])

        assert [m.name for m in members] == ['Alice', 'Bob']
        alice, bob = members
        assert (alice.commits, alice.commit_pct, alice.merged_requests, alice.opened_requests) == (3, 60, 1, 1)
        assert (bob.commits, bob.commit_pct) == (2, 40)

    def test_ranking_by_merged_then_commits_then_closed(self):
        members = build_member_summaries(
            [make_commit('Carol')] * 5 + [make_commit('Dave')] * 2,
            [make_mr('Dave', merged_at=NOON)],
            [],
            [],
            [make_issue('Erin', closed_at=NOON)],
        )

        assert [m.name for m in members] == ['Dave', 'Carol', 'Erin']

    def test_ties_break_on_name(self):
        members = build_member_summaries([make_commit('bob'), make_commit('Alice')], [], [], [], [])
        assert [m.name for m in members] == ['Alice', 'bob']

    def test_issue_only_author_is_a_member(self):
        members = build_member_summaries([], [], [], [make_issue('Zed')], [])
        assert members[0].name == 'Zed'
        assert members[0].commit_pct == 0

    def test_percentages_sum_close_to_100(self):
        """Test that rounded shares of three equal authors stay within rounding error of 100."""
        commits = [make_commit(name) for name in ['A', 'B', 'C']]
        members = build_member_summaries(commits, [], [], [], [])
        assert abs(sum(m.commit_pct for m in members) - 100) <= len(members)


class TestAggregate:
    """Test cases for aggregate."""

    def test_single_repo_totals(self):
        repo = make_repo()
        result = make_result(
            repo,
            commits=[make_commit('Alice', repo)] * 3 + [make_commit('Bob', repo)] * 2,
            mrs_opened=[make_mr('Alice', repo, merged_at=NOON)],
            mrs_merged=[make_mr('Alice', repo, merged_at=NOON)],
        )

        report = aggregate([result], never_client)

        assert report.totals.commits == 5
        assert report.totals.mrs_merged == 1
        assert report.totals.mrs_opened == 1
        assert report.contributor_count == 2
        assert [m.name for m in report.members] == ['Alice', 'Bob']
        assert report.active == [result]
        assert report.inactive == []

    def test_active_and_inactive_split(self):
        busy = make_result(make_repo('1', 'busy'), commits=[make_commit()])
        idle = make_result(make_repo('2', 'idle'))

        report = aggregate([busy, idle], never_client)

        assert report.active == [busy]
        assert report.inactive == [idle]
        assert report.results == [busy, idle]

    def test_month_totals_include_inactive_repos(self):
        idle = make_result(
            make_repo('2', 'idle'),
            month_issues_opened=[make_issue()],
            month_issues_closed=[make_issue(), make_issue()],
        )

        report = aggregate([idle], never_client)

        assert report.totals.month_issues_opened == 1
        assert report.totals.month_issues_closed == 2
        assert report.totals.issues_closed == 0

    def test_contributors_are_commit_authors(self):
        result = make_result(
            commits=[make_commit('Alice')],
            issues_opened=[make_issue('Reporter')],
        )

        report = aggregate([result], never_client)

        assert report.contributor_count == 1
        assert len(report.members) == 2

    def test_client_split(self):
        internal = make_result(make_repo('1', 'core'), commits=[make_commit()])
        client = make_result(make_repo('acme/web', 'web', GITHUB), commits=[make_commit()])

        report = aggregate([internal, client], lambda repo_id: repo_id == 'acme/web')

        assert report.internal_active == [internal]
        assert report.client_active == [client]
        assert report.has_multi_org

    def test_empty_run(self):
        report = aggregate([], never_client)

        assert report.totals.commits == 0
        assert report.members == []
        assert report.contributor_count == 0
        assert not report.has_multi_org
