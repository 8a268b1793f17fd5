"""
Unit tests for message chunking and webhook delivery
"""

import math
import pytest
import requests
from unittest.mock import Mock

from velocity_report.delivery import DEFAULT_CHUNK_LIMIT, WebhookDispatcher, chunk_message, join_blocks


class TestChunkMessage:
    """Test cases for chunk_message."""

    def test_long_single_line(self):
        text = 'x' * 5000

        chunks = chunk_message(text, 1800)

        assert len(chunks) == math.ceil(5000 / 1800) == 3
        assert all(len(chunk) <= 1800 for chunk in chunks)
        assert ''.join(chunks) == text

    def test_empty_input(self):
        assert chunk_message('') == []

    def test_short_text_is_one_chunk(self):
        assert chunk_message('hello\nworld') == ['hello\nworld']

    def test_lines_are_packed_greedily(self):
        lines = [f"line {i:03d} " + 'y' * 40 for i in range(100)]
        text = '\n'.join(lines)

        chunks = chunk_message(text, 500)

        assert len(chunks) > 1
        assert all(len(chunk) <= 500 for chunk in chunks)
        assert '\n'.join(chunks) == text

    def test_blank_lines_survive_boundaries(self):
        text = 'a' * 10 + '\n\n' + 'b' * 10

        chunks = chunk_message(text, 10)

        assert chunks == ['a' * 10, '', 'b' * 10]
        assert '\n'.join(chunks) == text

    def test_default_limit(self):
        assert DEFAULT_CHUNK_LIMIT == 1800
        assert len(chunk_message('z' * 1800)) == 1
        assert len(chunk_message('z' * 1801)) == 2


class TestJoinBlocks:
    """Test cases for join_blocks."""

    def test_skips_missing_blocks(self):
        assert join_blocks(['a', None, '', 'b']) == 'a\n\nb'

    def test_all_missing(self):
        assert join_blocks([None, None]) == ''


class TestWebhookDispatcher:
    """Test cases for WebhookDispatcher."""

    @pytest.fixture
    def session(self):
        session = Mock()
        session.post.return_value = Mock(status_code=204)
        return session

    def test_skips_whitespace_only_chunks(self, session):
        dispatcher = WebhookDispatcher('https://chat.example/hook', session=session, limit=8)

        sent = dispatcher.post_blocks(['a' * 8, 'b' * 8])

        assert sent == 2
        contents = [c.kwargs['json']['content'] for c in session.post.call_args_list]
        assert contents == ['a' * 8, 'b' * 8]

    def test_empty_group_posts_nothing(self, session):
        dispatcher = WebhookDispatcher('https://chat.example/hook', session=session)

        assert dispatcher.post_blocks([None, '']) == 0
        session.post.assert_not_called()

    def test_http_error_propagates(self, session):
        response = Mock(status_code=400)
        response.raise_for_status.side_effect = requests.exceptions.HTTPError('400', response=response)
        session.post.return_value = response
        dispatcher = WebhookDispatcher('https://chat.example/hook', session=session)

        with pytest.raises(requests.exceptions.HTTPError):
            dispatcher.post_blocks(['report'])
