"""Storage for the set of alerts that have already been notified.

Keys are ``"{vehicle_id}:{rule_name}"``. The in-memory store is the default
and is lost on restart, so a restart re-sends every alert that is still
urgent or high. Setting ``REDIS_URL`` moves the set into Redis, which
survives restarts and is shared between instances.
"""
import logging
import threading
from typing import Iterable, Optional, Set

import redis
from redis.exceptions import ConnectionError, TimeoutError

from app.core.config import settings

logger = logging.getLogger(__name__)

# Redis client singleton
_redis_client: Optional[redis.Redis] = None


def get_redis() -> redis.Redis:
    """Get Redis client singleton."""
    global _redis_client
    if _redis_client is None:
        _redis_client = redis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            socket_timeout=5,
            socket_connect_timeout=5,
            retry_on_timeout=True,
        )
    return _redis_client


def check_redis_health() -> dict:
    """Check Redis connectivity and return health status."""
    if not settings.REDIS_URL:
        return {"status": "disabled", "connected": False}
    try:
        client = get_redis()
        client.ping()
        return {"status": "healthy", "connected": True}
    except (ConnectionError, TimeoutError) as e:
        logger.error(f"Redis health check failed: {e}")
        return {
            "status": "unhealthy",
            "connected": False,
            "error": str(e),
        }


def alert_key(vehicle_id: int, rule_name: str) -> str:
    return f"{vehicle_id}:{rule_name}"


class MemoryNotifiedStore:
    """Process-local notified set."""

    def __init__(self):
        self._keys: Set[str] = set()
        self._lock = threading.Lock()

    def contains(self, key: str) -> bool:
        with self._lock:
            return key in self._keys

    def add_many(self, keys: Iterable[str]) -> None:
        with self._lock:
            self._keys.update(keys)

    def clear_vehicle(self, vehicle_id: int, rule_name: Optional[str] = None) -> int:
        """Forget notified keys for a vehicle (one rule, or all of them)."""
        prefix = f"{vehicle_id}:"
        with self._lock:
            if rule_name is not None:
                matched = {alert_key(vehicle_id, rule_name)} & self._keys
            else:
                matched = {key for key in self._keys if key.startswith(prefix)}
            self._keys -= matched
        return len(matched)

    def clear(self) -> None:
        with self._lock:
            self._keys.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._keys)


class RedisNotifiedStore:
    """Notified set kept in a Redis set, shared by every instance."""

    def __init__(self, client: redis.Redis, name: str = "fleet:notified_alerts"):
        self.client = client
        self.name = name

    def contains(self, key: str) -> bool:
        return bool(self.client.sismember(self.name, key))

    def add_many(self, keys: Iterable[str]) -> None:
        keys = list(keys)
        if keys:
            self.client.sadd(self.name, *keys)

    def clear_vehicle(self, vehicle_id: int, rule_name: Optional[str] = None) -> int:
        if rule_name is not None:
            return int(self.client.srem(self.name, alert_key(vehicle_id, rule_name)))
        matched = list(self.client.sscan_iter(self.name, match=f"{vehicle_id}:*"))
        if not matched:
            return 0
        return int(self.client.srem(self.name, *matched))

    def clear(self) -> None:
        self.client.delete(self.name)

    def __len__(self) -> int:
        return int(self.client.scard(self.name))


_notified_store = None


def get_notified_store():
    """Notified-alert store singleton, backed by Redis when configured."""
    global _notified_store
    if _notified_store is None:
        if settings.REDIS_URL:
            logger.info("Alert dedup keys stored in Redis")
            _notified_store = RedisNotifiedStore(get_redis())
        else:
            _notified_store = MemoryNotifiedStore()
    return _notified_store
