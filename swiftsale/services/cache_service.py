"""
Redis cache for read-heavy aggregates (dashboard statistics).

Keys are namespaced as {prefix}:{module}:{key} so that a writer can drop a
whole module (e.g. every cached dashboard day) after a commit. When Redis is
disabled or unreachable every read is a miss and every write a no-op, so the
POS keeps working without it.
"""

import logging
import json
from typing import Any, Optional, Callable, Dict
from datetime import datetime, date
from decimal import Decimal

import redis
from redis.exceptions import RedisError, ConnectionError, TimeoutError
from flask import Flask

logger = logging.getLogger(__name__)

DECIMAL_TAG = "__decimal__"


def _encode(obj: Any) -> Any:
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, Decimal):
        return {DECIMAL_TAG: str(obj)}
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def _decode(dct: Dict[str, Any]) -> Any:
    if DECIMAL_TAG in dct:
        return Decimal(dct[DECIMAL_TAG])
    return dct


class CacheService:
    """
    Module-scoped Redis cache with graceful degradation.

    A client can be injected directly (tests); otherwise init_app builds one
    from REDIS_URL and disables the cache if the first ping fails.
    """

    def __init__(self, app: Optional[Flask] = None, client: Optional[redis.Redis] = None):
        self.client: Optional[redis.Redis] = client
        self._enabled: bool = client is not None
        self._prefix: str = "swiftsale"
        self._default_ttl: int = 60

        if app:
            self.init_app(app)

    def init_app(self, app: Flask) -> None:
        """Read CACHE_* settings and connect to Redis."""
        self._enabled = app.config.get('CACHE_ENABLED', True)
        self._prefix = app.config.get('CACHE_KEY_PREFIX', self._prefix)
        self._default_ttl = app.config.get('CACHE_DEFAULT_TTL', self._default_ttl)

        if not self._enabled:
            logger.info("[CACHE] Cache is DISABLED via config")
            self.client = None
            return

        redis_url = app.config.get('REDIS_URL', 'redis://localhost:6379/0')
        try:
            client = redis.from_url(
                redis_url,
                decode_responses=True,
                socket_connect_timeout=3,
                socket_timeout=3,
                retry_on_timeout=True,
                health_check_interval=30
            )
            client.ping()
        except (ConnectionError, TimeoutError, RedisError) as e:
            logger.warning(f"[CACHE] Redis unavailable at {redis_url}: {e}. Cache DISABLED.")
            self._enabled = False
            self.client = None
            return

        self.client = client
        logger.info(f"[CACHE] Redis connected: {redis_url}")

    def is_available(self) -> bool:
        if not self._enabled or self.client is None:
            return False
        try:
            return bool(self.client.ping())
        except RedisError:
            return False

    def _key(self, module: str, key: str) -> str:
        return f"{self._prefix}:{module}:{key}"

    def get(self, module: str, key: str) -> Optional[Any]:
        """Cached value, or None on a miss or any Redis/JSON failure."""
        if not self.is_available():
            return None
        try:
            raw = self.client.get(self._key(module, key))
            return None if raw is None else json.loads(raw, object_hook=_decode)
        except (RedisError, ValueError) as e:
            logger.warning(f"[CACHE] get {module}:{key} failed: {e}")
            return None

    def set(self, module: str, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        if not self.is_available():
            return False
        try:
            payload = json.dumps(value, default=_encode)
            self.client.setex(self._key(module, key), ttl or self._default_ttl, payload)
        except (RedisError, TypeError) as e:
            logger.warning(f"[CACHE] set {module}:{key} failed: {e}")
            return False
        return True

    def delete_pattern(self, module: str, pattern: str = "*") -> int:
        """SCAN for matching keys in a module and delete them in batches."""
        if not self.is_available():
            return 0
        match = self._key(module, pattern)
        deleted = 0
        cursor = 0
        try:
            while True:
                cursor, keys = self.client.scan(cursor, match=match, count=100)
                if keys:
                    pipe = self.client.pipeline()
                    for key in keys:
                        pipe.delete(key)
                    pipe.execute()
                    deleted += len(keys)
                if cursor == 0:
                    break
        except RedisError as e:
            logger.warning(f"[CACHE] invalidate {match} failed: {e}")
            return deleted
        if deleted:
            logger.info(f"[CACHE] INVALIDATE: {match} ({deleted} keys)")
        return deleted

    def memoize(self, module: str, key: str, loader_fn: Callable[[], Any], ttl: Optional[int] = None) -> Any:
        """Cache-aside: return the cached value or load, store and return it."""
        cached = self.get(module, key)
        if cached is not None:
            return cached
        value = loader_fn()
        self.set(module, key, value, ttl)
        return value

    def invalidate_module(self, module: str) -> int:
        return self.delete_pattern(module, "*")


def init_cache(app: Flask) -> CacheService:
    """Create the cache service and register it on the app."""
    cache = CacheService(app)
    app.extensions['cache'] = cache
    return cache
