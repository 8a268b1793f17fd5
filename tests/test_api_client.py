"""
Unit tests for API client functionality
"""

import pytest
import requests
from unittest.mock import Mock

from velocity_report.api_client import GitHubAPIClient, GitLabAPIClient, describe_error, encode_id


def make_response(data, headers=None, links=None, status_code=200):
    response = Mock()
    response.status_code = status_code
    response.json.return_value = data
    response.headers = headers or {}
    response.links = links or {}
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.exceptions.HTTPError(
            f"{status_code} Error", response=response)
    return response


class TestGitLabPagination:
    """Test cases for X-Next-Page pagination."""

    @pytest.fixture
    def client(self):
        client = GitLabAPIClient('test_token', 'https://gitlab.example/api/v4')
        client.session = Mock()
        return client

    def test_token_header(self):
        client = GitLabAPIClient('secret')
        assert client.session.headers['PRIVATE-TOKEN'] == 'secret'

    def test_follows_next_page_header(self, client):
        client.session.get.side_effect = [
            make_response([{'id': 1}], {'X-Next-Page': '2'}),
            make_response([{'id': 2}], {'X-Next-Page': '3'}),
            make_response([{'id': 3}], {'X-Next-Page': ''}),
        ]

        items = client.get_paginated('projects/1/issues', {'scope': 'all'})

        assert [i['id'] for i in items] == [1, 2, 3]
        assert client.session.get.call_count == 3

    def test_zero_next_page_ends(self, client):
        client.session.get.return_value = make_response([{'id': 1}], {'X-Next-Page': '0'})

        assert client.get_paginated('projects') == [{'id': 1}]
        assert client.session.get.call_count == 1

    def test_missing_header_ends(self, client):
        client.session.get.return_value = make_response([{'id': 1}])

        assert client.get_paginated('projects') == [{'id': 1}]

    def test_builds_url_and_params(self, client):
        client.session.get.return_value = make_response([])

        client.get_paginated('/groups/7/projects', {'simple': True})

        args, kwargs = client.session.get.call_args
        assert args[0] == 'https://gitlab.example/api/v4/groups/7/projects'
        assert kwargs['params'] == {'simple': True, 'per_page': 100, 'page': 1}
        assert kwargs['timeout'] == 30

    def test_caller_params_not_mutated(self, client):
        client.session.get.return_value = make_response([])
        params = {'scope': 'all'}

        client.get_paginated('issues', params)

        assert params == {'scope': 'all'}

    def test_http_error_propagates(self, client):
        client.session.get.return_value = make_response({}, status_code=404)

        with pytest.raises(requests.exceptions.HTTPError):
            client.get_paginated('projects/404/issues')

    def test_network_error_propagates(self, client):
        client.session.get.side_effect = requests.exceptions.ConnectionError("Network error")

        with pytest.raises(requests.exceptions.ConnectionError):
            client.get('projects/1')


class TestGitHubPagination:
    """Test cases for Link-header pagination."""

    @pytest.fixture
    def client(self):
        client = GitHubAPIClient('test_token')
        client.session = Mock()
        return client

    def test_auth_headers(self):
        client = GitHubAPIClient('secret')
        assert client.session.headers['Authorization'] == 'token secret'
        assert client.session.headers['Accept'] == 'application/vnd.github+json'
        assert client.session.headers['User-Agent']

    def test_follows_next_link(self, client):
        client.session.get.side_effect = [
            make_response([{'id': 1}], links={'next': {'url': 'x'}}),
            make_response([{'id': 2}]),
        ]

        items = client.get_paginated('repos/a/b/commits')

        assert [i['id'] for i in items] == [1, 2]
        assert client.session.get.call_count == 2

    def test_empty_page_ends(self, client):
        client.session.get.return_value = make_response([], links={'next': {'url': 'x'}})

        assert client.get_paginated('repos/a/b/commits') == []
        assert client.session.get.call_count == 1

    def test_should_continue_stops_early(self, client):
        client.session.get.side_effect = [
            make_response([{'id': 1}], links={'next': {'url': 'x'}}),
            make_response([{'id': 2}], links={'next': {'url': 'y'}}),
            make_response([{'id': 3}], links={'next': {'url': 'z'}}),
        ]
        seen_pages = []

        def should_continue(page):
            seen_pages.append(page)
            return len(seen_pages) < 2

        items = client.get_paginated('repos/a/b/pulls', should_continue=should_continue)

        assert [i['id'] for i in items] == [1, 2]
        assert client.session.get.call_count == 2


class TestHelpers:
    """Test cases for module helpers."""

    def test_encode_id(self):
        assert encode_id('group/sub/project') == 'group%2Fsub%2Fproject'
        assert encode_id(42) == '42'

    def test_describe_error_with_response(self):
        response = Mock(status_code=403)
        assert describe_error(requests.exceptions.HTTPError('x', response=response)) == 403

    def test_describe_error_without_response(self):
        assert describe_error(requests.exceptions.ConnectionError('boom')) == 'boom'
