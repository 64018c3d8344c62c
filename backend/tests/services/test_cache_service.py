from unittest.mock import MagicMock

import pytest
from redis.exceptions import RedisError

from lessonhub.services.cache_service import (
    CircuitBreaker,
    CircuitState,
    InMemoryCacheBackend,
    PersonalizedPathCache,
    RedisCacheBackend,
)


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return PersonalizedPathCache(InMemoryCacheBackend(clock=clock), ttl_seconds=24 * 60 * 60)


ORDER = {"modules": ["intro", "algebra"], "is_personalized": True, "reason": "quiz results"}


class TestPersonalizedPathCache:
    def test_round_trip(self, cache):
        cache.cache_path("u1", "c1", ORDER)
        cached = cache.get_cached_path("u1", "c1")
        assert cached["modules"] == ["intro", "algebra"]
        assert cached["is_personalized"] is True

    def test_entry_expires_after_a_day(self, cache, clock):
        cache.cache_path("u1", "c1", ORDER)
        clock.advance(24 * 60 * 60 - 1)
        assert cache.get_cached_path("u1", "c1") is not None
        clock.advance(1)
        assert cache.get_cached_path("u1", "c1") is None

    def test_key_format(self):
        assert PersonalizedPathCache.build_key("u1", "c1") == "personalized_path:u1:c1"

    def test_clear_path(self, cache):
        cache.cache_path("u1", "c1", ORDER)
        cache.clear_path("u1", "c1")
        assert cache.get_cached_path("u1", "c1") is None

    def test_clear_all_for_user_leaves_other_users(self, cache):
        cache.cache_path("u1", "c1", ORDER)
        cache.cache_path("u1", "c2", ORDER)
        cache.cache_path("u10", "c1", ORDER)

        assert cache.clear_all_for_user("u1") == 2

        assert cache.get_cached_path("u1", "c1") is None
        assert cache.get_cached_path("u1", "c2") is None
        assert cache.get_cached_path("u10", "c1") is not None

    def test_backend_errors_never_reach_callers(self):
        backend = MagicMock()
        backend.get.side_effect = RuntimeError("boom")
        backend.put.side_effect = RuntimeError("boom")
        backend.delete.side_effect = RuntimeError("boom")
        backend.keys.side_effect = RuntimeError("boom")
        cache = PersonalizedPathCache(backend, ttl_seconds=60)

        cache.cache_path("u1", "c1", ORDER)
        assert cache.get_cached_path("u1", "c1") is None
        cache.clear_path("u1", "c1")
        assert cache.clear_all_for_user("u1") == 0


class TestRedisBackend:
    def test_stores_json_with_setex(self):
        client = MagicMock()
        backend = RedisCacheBackend(client)

        backend.put("personalized_path:u1:c1", ORDER, 86400)

        key, ttl, payload = client.setex.call_args.args
        assert (key, ttl) == ("personalized_path:u1:c1", 86400)
        assert '"modules": ["intro", "algebra"]' in payload

    def test_get_decodes_json(self):
        client = MagicMock()
        client.get.return_value = '{"modules": ["intro"]}'
        assert RedisCacheBackend(client).get("k") == {"modules": ["intro"]}

    def test_redis_error_degrades_to_miss(self):
        client = MagicMock()
        client.get.side_effect = RedisError("connection refused")
        assert RedisCacheBackend(client).get("k") is None

    def test_keys_uses_scan(self):
        client = MagicMock()
        client.scan_iter.return_value = iter(["personalized_path:u1:c1"])
        assert RedisCacheBackend(client).keys("personalized_path:u1:") == [
            "personalized_path:u1:c1"
        ]
        client.scan_iter.assert_called_once_with(match="personalized_path:u1:*")


class TestCircuitBreaker:
    def test_opens_after_threshold_and_recovers(self, clock):
        breaker = CircuitBreaker(failure_threshold=2, recovery_timeout=60, clock=clock)

        def failing():
            raise RedisError("down")

        with pytest.raises(RedisError):
            breaker.call(failing)
        assert breaker.call(failing) is None
        assert breaker.state == CircuitState.OPEN

        calls = []
        assert breaker.call(lambda: calls.append(1)) is None
        assert calls == []

        clock.advance(60)
        assert breaker.state == CircuitState.HALF_OPEN
        assert breaker.call(lambda: "ok") == "ok"
        assert breaker.state == CircuitState.CLOSED
