"""
Best-effort Redis cache used in front of the order store.

The cache is advisory. Connection or protocol failures are logged and turned
into a miss or a no-op here, so callers never fail because of the cache.
Callers check `isAvailable()` before relying on cached results and fall back
to the store when it reports False.
"""

import json
import time
from logging import getLogger
from typing import Any, Optional

from redis import Redis
from redis.exceptions import RedisError

from app.src.constants import (
    CACHE_RETRY_INTERVAL,
    CACHE_SCAN_BATCH,
    CACHE_SOCKET_TIMEOUT,
    REDIS_DB,
    REDIS_HOST,
    REDIS_PASSWORD,
    REDIS_PORT,
)

logger = getLogger(__name__)

# Failures treated as "cache unavailable"
CACHE_ERRORS = (RedisError, OSError)


# ---------------------------------------------------------------------------
# Key builders
# ---------------------------------------------------------------------------
ORDER_LIST_PATTERN = "orders:list:*"
ORDER_COUNTS_KEY = "orders:counts"


def orderKey(orderId: int) -> str:
    return f"order:{orderId}"


def orderListKey(query: Optional[str], page: int, limit: int, sort: str) -> str:
    return f"orders:list:{query or ''}:{page}:{limit}:{sort}"


def customerKey(customerId: int) -> str:
    return f"customer:{customerId}"


# ---------------------------------------------------------------------------
# Cache implementations
# ---------------------------------------------------------------------------
class RedisCache:
    """
    JSON value cache backed by a single Redis connection pool.

    Args:
        client (Redis): A configured redis-py client. Use `connect()` to
            build one from the environment configuration.
        retryInterval (float): Minimum delay in seconds between health
            probes while the cache is marked unavailable.
    """

    def __init__(self, client: Redis, retryInterval: float = CACHE_RETRY_INTERVAL):
        self.client = client
        self.retryInterval = retryInterval
        self._available = False
        self._lastProbe = 0.0
        self._probe()

    @classmethod
    def connect(cls) -> "RedisCache":
        client = Redis(
            host=REDIS_HOST,
            port=REDIS_PORT,
            password=REDIS_PASSWORD,
            db=REDIS_DB,
            decode_responses=True,
            socket_timeout=CACHE_SOCKET_TIMEOUT,
            socket_connect_timeout=CACHE_SOCKET_TIMEOUT,
        )
        cache = cls(client)
        if not cache.isAvailable():
            logger.warning("Redis cache at %s:%s is unreachable, serving from the store", REDIS_HOST, REDIS_PORT)
        return cache

    def _probe(self) -> bool:
        self._lastProbe = time.monotonic()
        try:
            self.client.ping()
            if not self._available:
                logger.info("Redis cache is available")
            self._available = True
        except CACHE_ERRORS as e:
            self._markUnavailable("ping", e)
        return self._available

    def _markUnavailable(self, operation: str, e: Exception) -> None:
        if self._available:
            logger.warning("Redis cache %s failed, degrading to store reads: %s", operation, e)
        self._available = False
        self._lastProbe = time.monotonic()

    def isAvailable(self) -> bool:
        """Return the last observed connection health, re-probing when due."""
        if self._available:
            return True
        if time.monotonic() - self._lastProbe >= self.retryInterval:
            return self._probe()
        return False

    def get(self, key: str) -> Optional[Any]:
        try:
            data = self.client.get(key)
        except CACHE_ERRORS as e:
            self._markUnavailable("get", e)
            return None
        if data is None:
            return None
        try:
            return json.loads(data)
        except ValueError:
            logger.warning("Discarding undecodable cache entry %s", key)
            return None

    def set(self, key: str, value: Any, ttlSeconds: int) -> None:
        try:
            self.client.setex(key, ttlSeconds, json.dumps(value, default=str))
        except CACHE_ERRORS as e:
            self._markUnavailable("set", e)

    def delete(self, key: str) -> None:
        try:
            self.client.delete(key)
        except CACHE_ERRORS as e:
            self._markUnavailable("delete", e)

    def deleteByPrefix(self, pattern: str) -> None:
        """
        Delete every key matching a glob pattern such as `orders:list:*`.

        Keys are walked with SCAN in batches so the server is never blocked
        by a full keyspace listing.
        """
        try:
            batch = []
            for key in self.client.scan_iter(match=pattern, count=CACHE_SCAN_BATCH):
                batch.append(key)
                if len(batch) >= CACHE_SCAN_BATCH:
                    self.client.delete(*batch)
                    batch = []
            if batch:
                self.client.delete(*batch)
        except CACHE_ERRORS as e:
            self._markUnavailable("deleteByPrefix", e)

    def close(self) -> None:
        try:
            self.client.close()
        except CACHE_ERRORS as e:
            logger.warning("Error while closing the Redis connection: %s", e)
        self._available = False


class NullCache:
    """Cache stand-in that stores nothing and is never available."""

    def isAvailable(self) -> bool:
        return False

    def get(self, key: str) -> Optional[Any]:
        return None

    def set(self, key: str, value: Any, ttlSeconds: int) -> None:
        return None

    def delete(self, key: str) -> None:
        return None

    def deleteByPrefix(self, pattern: str) -> None:
        return None

    def close(self) -> None:
        return None


# ---------------------------------------------------------------------------
# Invalidation helpers
# ---------------------------------------------------------------------------
def invalidateOrderList(cache) -> None:
    """Drop every cached order-list page, whatever its query or sort."""
    cache.deleteByPrefix(ORDER_LIST_PATTERN)


def invalidateOrderCounts(cache) -> None:
    cache.delete(ORDER_COUNTS_KEY)


def invalidateOrder(cache, orderId: int) -> None:
    """Drop the order detail projection and all list pages."""
    cache.delete(orderKey(orderId))
    invalidateOrderList(cache)


def invalidateCustomer(cache, customerId: int) -> None:
    """Drop the customer projection and all list pages, which embed customer fields."""
    cache.delete(customerKey(customerId))
    invalidateOrderList(cache)
