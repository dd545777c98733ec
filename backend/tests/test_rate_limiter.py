"""
Test SearchRateLimiter (finestra scorrevole per client) su InMemoryStore.
"""
import asyncio

import pytest
from fastapi import Request

from flightsearch.api.deps import get_rate_limiter
from flightsearch.utils.rate_limiter import SearchRateLimiter


@pytest.fixture
def limiter(store, clock):
    return SearchRateLimiter(store, max_searches=3, window_seconds=60, clock=clock)


class TestSearchRateLimiter:

    async def test_fresh_state_allows(self, limiter):
        assert await limiter.can_search() is True
        assert await limiter.remaining_searches() == 3
        assert await limiter.seconds_until_reset() == 0

    async def test_blocks_after_max_searches(self, limiter, clock):
        await limiter.reset()
        for _ in range(3):
            assert await limiter.can_search() is True
            await limiter.record_search()
            clock.advance(5)

        assert await limiter.can_search() is False
        assert await limiter.remaining_searches() == 0
        # la più vecchia è di 15s fa → esce dalla finestra tra 45s
        assert await limiter.seconds_until_reset() == 45

    async def test_old_searches_leave_the_window(self, limiter, clock):
        await limiter.reset()
        for _ in range(3):
            await limiter.record_search()
        clock.advance(30)
        assert await limiter.can_search() is False

        clock.advance(31)
        assert await limiter.can_search() is True

    async def test_reset(self, limiter):
        for _ in range(3):
            await limiter.record_search()
        await limiter.reset()
        assert await limiter.remaining_searches() == 3

    async def test_clients_have_separate_budgets(self, store, clock):
        alice = SearchRateLimiter(store, client_id="10.0.0.1", max_searches=3, clock=clock)
        bob = SearchRateLimiter(store, client_id="10.0.0.2", max_searches=3, clock=clock)
        for _ in range(3):
            await alice.record_search()

        assert await alice.can_search() is False
        assert await bob.can_search() is True
        assert await bob.remaining_searches() == 3

    async def test_concurrent_records_are_all_counted(self, limiter):
        await asyncio.gather(*(limiter.record_search() for _ in range(3)))
        assert await limiter.remaining_searches() == 0

    async def test_key_expires_after_window(self, limiter, store, clock):
        await limiter.record_search()
        clock.advance(60)
        assert await store.zcard(limiter.key) == 0


class TestRateLimiterDependency:

    def _request(self, client):
        return Request({"type": "http", "client": client, "headers": []})

    def test_keyed_by_client_host(self, store):
        limiter = get_rate_limiter(store, self._request(("203.0.113.7", 51000)))
        assert limiter.key == "rate_limit:203.0.113.7"

    def test_missing_client_is_anonymous(self, store):
        limiter = get_rate_limiter(store, self._request(None))
        assert limiter.client_id == "anonymous"
