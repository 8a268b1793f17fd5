"""
Unit tests for the run-scoped repository cache
"""

import pytest
from concurrent.futures import ThreadPoolExecutor

from velocity_report.cache import RepositoryCache


class TestRepositoryCache:
    """Test cases for RepositoryCache."""

    @pytest.fixture
    def cache(self):
        return RepositoryCache()

    def test_put_and_get(self, cache):
        cache.put('101', {'name': 'api'})
        assert cache.get('101') == {'name': 'api'}
        assert '101' in cache

    def test_keys_are_normalized(self, cache):
        cache.put(' Acme/Web ', {'name': 'web'})
        assert cache.get('acme/web') == {'name': 'web'}
        assert 'ACME/WEB' in cache

    def test_missing_key(self, cache):
        assert cache.get('nope') is None
        assert 'nope' not in cache

    def test_not_found_marker(self, cache):
        cache.mark_not_found('404')
        assert '404' in cache
        assert cache.get('404') is None

    def test_discard(self, cache):
        cache.put('acme/web', {})
        cache.discard('ACME/web')
        assert 'acme/web' not in cache
        cache.discard('never-added')

    def test_instances_do_not_share_state(self):
        first = RepositoryCache()
        second = RepositoryCache()
        first.put('1', {'name': 'a'})
        assert '1' not in second
        assert len(first) == 1
        assert len(second) == 0

    def test_concurrent_population(self, cache):
        def populate(i):
            cache.put(str(i % 5), {'id': i % 5})

        with ThreadPoolExecutor(max_workers=8) as executor:
            list(executor.map(populate, range(100)))

        assert len(cache) == 5
        assert cache.get('3') == {'id': 3}
