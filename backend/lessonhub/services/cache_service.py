# backend/lessonhub/services/cache_service.py
"""
Cache layer for LessonHub

Holds the personalised module ordering computed for a learner so it does not
have to be rebuilt on every page view.

- CacheBackend is the small capability the cache needs (get/put/delete/keys)
- InMemoryCacheBackend keeps entries in-process with lazy expiry
- RedisCacheBackend stores JSON values with SETEX behind a circuit breaker
- PersonalizedPathCache is the typed front; it never raises to its callers
"""

from abc import ABC, abstractmethod
from enum import Enum
import json
import logging
import threading
import time
from typing import Any, Callable, Dict, List, Optional, Tuple, TypeVar

import redis
from redis import Redis
from redis.exceptions import RedisError

from ..core.config import Settings, settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

Clock = Callable[[], float]

PATH_KEY_PREFIX = "personalized_path"


class CircuitState(Enum):
    """Circuit breaker states."""

    CLOSED = "closed"  # Normal operation
    OPEN = "open"  # Failing, reject calls
    HALF_OPEN = "half_open"  # Testing if service recovered


class CircuitBreaker:
    """
    Circuit breaker for the Redis backend.

    After ``failure_threshold`` consecutive failures calls are skipped for
    ``recovery_timeout`` seconds, then a single trial call decides whether the
    circuit closes again.
    """

    def __init__(
        self,
        failure_threshold: int = 5,
        recovery_timeout: int = 60,
        expected_exception: type[BaseException] = RedisError,
        clock: Clock = time.monotonic,
    ) -> None:
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.expected_exception = expected_exception
        self._clock = clock

        self._failure_count: int = 0
        self._last_failure_time: Optional[float] = None
        self._state: CircuitState = CircuitState.CLOSED
        self._lock = threading.Lock()

    @property
    def state(self) -> CircuitState:
        """Get current circuit state."""
        with self._lock:
            if self._state == CircuitState.OPEN and self._last_failure_time is not None:
                if self._clock() - self._last_failure_time >= self.recovery_timeout:
                    self._state = CircuitState.HALF_OPEN
            return self._state

    def call(self, func: Callable[..., T], *args: Any, **kwargs: Any) -> Optional[T]:
        """
        Execute ``func`` with circuit breaker protection.

        Returns:
            Function result, or None if the circuit is open

        Raises:
            ``expected_exception`` while the circuit is still closed
        """
        if self.state == CircuitState.OPEN:
            logger.warning(f"Circuit breaker is OPEN, skipping {func.__name__}")
            return None

        try:
            result = func(*args, **kwargs)
            self._on_success()
            return result
        except self.expected_exception:
            self._on_failure()
            if self.state == CircuitState.CLOSED:
                raise
            return None

    def _on_success(self) -> None:
        with self._lock:
            self._failure_count = 0
            if self._state == CircuitState.HALF_OPEN:
                self._state = CircuitState.CLOSED
                logger.info("Circuit breaker recovered, closing circuit")

    def _on_failure(self) -> None:
        with self._lock:
            self._failure_count += 1
            self._last_failure_time = self._clock()

            if self._failure_count >= self.failure_threshold:
                self._state = CircuitState.OPEN
                logger.warning(f"Circuit breaker opened after {self._failure_count} failures")


class CacheBackend(ABC):
    """Key/value store with per-entry TTL."""

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        """Value for ``key`` or None if missing or expired."""

    @abstractmethod
    def put(self, key: str, value: Any, ttl_seconds: int) -> None:
        pass

    @abstractmethod
    def delete(self, key: str) -> bool:
        pass

    @abstractmethod
    def keys(self, prefix: str) -> List[str]:
        """Live keys starting with ``prefix``."""


class InMemoryCacheBackend(CacheBackend):
    """Process-local backend. Expired entries are dropped when next read."""

    def __init__(self, clock: Clock = time.monotonic):
        self._clock = clock
        self._entries: Dict[str, Tuple[Any, float]] = {}
        self._lock = threading.Lock()

    def _live(self, key: str) -> Optional[Tuple[Any, float]]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() >= entry[1]:
            del self._entries[key]
            return None
        return entry

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._live(key)
            return entry[0] if entry else None

    def put(self, key: str, value: Any, ttl_seconds: int) -> None:
        with self._lock:
            self._entries[key] = (value, self._clock() + ttl_seconds)

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def keys(self, prefix: str) -> List[str]:
        with self._lock:
            candidates = [key for key in self._entries if key.startswith(prefix)]
            return [key for key in candidates if self._live(key) is not None]


class RedisCacheBackend(CacheBackend):
    """Redis backend storing JSON strings. Redis errors degrade to a miss."""

    def __init__(self, client: Redis, circuit_breaker: Optional[CircuitBreaker] = None):
        self.redis = client
        self.circuit_breaker = circuit_breaker or CircuitBreaker(
            failure_threshold=5, recovery_timeout=60, expected_exception=RedisError
        )

    @classmethod
    def from_url(cls, redis_url: str) -> "RedisCacheBackend":
        client = redis.from_url(
            redis_url,
            decode_responses=True,
            socket_keepalive=True,
            socket_connect_timeout=5,
            retry_on_timeout=True,
            health_check_interval=30,
        )
        return cls(client)

    def _guarded(self, func: Callable[[], T], operation: str) -> Optional[T]:
        try:
            return self.circuit_breaker.call(func)
        except RedisError as e:
            logger.warning(f"Redis {operation} failed: {e}")
            return None

    def get(self, key: str) -> Optional[Any]:
        def _get() -> Optional[Any]:
            value = self.redis.get(key)
            return json.loads(value) if value is not None else None

        return self._guarded(_get, "get")

    def put(self, key: str, value: Any, ttl_seconds: int) -> None:
        serialized = json.dumps(value, default=str)

        def _set() -> bool:
            self.redis.setex(key, ttl_seconds, serialized)
            return True

        self._guarded(_set, "setex")

    def delete(self, key: str) -> bool:
        def _delete() -> bool:
            return bool(self.redis.delete(key))

        return bool(self._guarded(_delete, "delete"))

    def keys(self, prefix: str) -> List[str]:
        def _scan() -> List[str]:
            return [str(key) for key in self.redis.scan_iter(match=f"{prefix}*")]

        return self._guarded(_scan, "scan") or []


def build_cache_backend(config: Optional[Settings] = None) -> CacheBackend:
    """Redis when a URL is configured, otherwise an in-process backend."""
    config = config or settings
    if config.redis_url:
        return RedisCacheBackend.from_url(config.redis_url)
    logger.info("No redis_url configured, using in-memory cache backend")
    return InMemoryCacheBackend()


class PersonalizedPathCache:
    """
    Cached personalised module order per (user, course).

    Entries expire after ``ttl_seconds`` (24 hours by default). A cache problem
    only ever costs a recomputation: every method logs and swallows errors.
    """

    def __init__(self, backend: Optional[CacheBackend] = None, ttl_seconds: Optional[int] = None):
        self.backend = backend or build_cache_backend()
        self.ttl_seconds = ttl_seconds or settings.personalized_path_ttl_seconds
        self.logger = logging.getLogger(__name__)

    @staticmethod
    def build_key(user_id: str, course_id: str) -> str:
        return f"{PATH_KEY_PREFIX}:{user_id}:{course_id}"

    def cache_path(self, user_id: str, course_id: str, order: Dict[str, Any]) -> None:
        """
        Store ``order`` for the learner.

        ``order`` is the personalised ordering payload, typically
        ``{"modules": [...], "is_personalized": bool, "reason": str}``.
        """
        payload = dict(order)
        payload["cached_at"] = time.time()
        try:
            self.backend.put(self.build_key(user_id, course_id), payload, self.ttl_seconds)
        except Exception as e:
            self.logger.error(f"Error caching personalized path for {user_id}/{course_id}: {e}")

    def get_cached_path(self, user_id: str, course_id: str) -> Optional[Dict[str, Any]]:
        try:
            cached = self.backend.get(self.build_key(user_id, course_id))
        except Exception as e:
            self.logger.error(f"Error reading personalized path for {user_id}/{course_id}: {e}")
            return None
        if not isinstance(cached, dict):
            return None
        return cached

    def clear_path(self, user_id: str, course_id: str) -> None:
        try:
            self.backend.delete(self.build_key(user_id, course_id))
        except Exception as e:
            self.logger.error(f"Error clearing personalized path for {user_id}/{course_id}: {e}")

    def clear_all_for_user(self, user_id: str) -> int:
        """Drop every cached path of ``user_id``; returns how many were removed."""
        removed = 0
        try:
            for key in self.backend.keys(f"{PATH_KEY_PREFIX}:{user_id}:"):
                if self.backend.delete(key):
                    removed += 1
        except Exception as e:
            self.logger.error(f"Error clearing personalized paths for user {user_id}: {e}")
        return removed
