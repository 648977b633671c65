"""
Redis-backed store for the Visibility service.
"""

import json
from typing import Any, Dict, List, Optional

import redis
from redis.exceptions import LockError
from redis.lock import Lock

from shared.errors import PersistenceError
from shared.logging import get_logger
from .store import PersistStore


class RedisStore(PersistStore):
    """Options and content trees kept in Redis as JSON strings.

    Key layout (``ns`` defaults to "visibility"):
    - ``ns:option:<key>``  option values
    - ``ns:item:<id>``     content trees
    - ``ns:items``         set of item ids
    - ``ns:migration_lock`` advisory migration lock (redis-py Lock)
    """

    backend = "redis"

    def __init__(self, redis_url: str = "redis://localhost:6379/0", namespace: str = "visibility",
                 client: Optional[redis.Redis] = None):
        self.redis_url = redis_url
        self.namespace = namespace
        self.logger = get_logger("visibility.persistence.redis")
        self.redis = client if client is not None else redis.Redis.from_url(
            redis_url,
            encoding="utf-8",
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
            retry_on_timeout=True
        )
        self._lock: Optional[Lock] = None

        self.OPTION_PREFIX = f"{namespace}:option:"
        self.ITEM_PREFIX = f"{namespace}:item:"
        self.ITEMS_KEY = f"{namespace}:items"
        self.LOCK_KEY = f"{namespace}:migration_lock"

    def get(self, key: str, default: Any = None) -> Any:
        try:
            raw = self.redis.get(self.OPTION_PREFIX + key)
        except redis.RedisError as e:
            raise PersistenceError(self.backend, f"Cannot read option '{key}': {e}")
        if raw is None:
            return default
        try:
            return json.loads(raw)
        except ValueError as e:
            raise PersistenceError(self.backend, f"Option '{key}' is not valid JSON: {e}")

    def set(self, key: str, value: Any) -> None:
        try:
            self.redis.set(self.OPTION_PREFIX + key, json.dumps(value))
        except (redis.RedisError, TypeError) as e:
            raise PersistenceError(self.backend, f"Cannot write option '{key}': {e}")

    def list_items(self) -> List[str]:
        try:
            return sorted(self.redis.smembers(self.ITEMS_KEY))
        except redis.RedisError as e:
            raise PersistenceError(self.backend, f"Cannot list items: {e}")

    def read_item(self, item_id: str) -> Any:
        try:
            raw = self.redis.get(self.ITEM_PREFIX + item_id)
        except redis.RedisError as e:
            raise PersistenceError(self.backend, f"Cannot read item '{item_id}': {e}")
        if raw is None:
            raise PersistenceError(self.backend, f"Item '{item_id}' not found")
        # Decoding is left to the caller; stored trees may be malformed
        return raw

    def write_item(self, item_id: str, tree: List[Dict[str, Any]]) -> None:
        try:
            pipe = self.redis.pipeline()
            pipe.set(self.ITEM_PREFIX + item_id, json.dumps(tree))
            pipe.sadd(self.ITEMS_KEY, item_id)
            pipe.execute()
        except (redis.RedisError, TypeError) as e:
            raise PersistenceError(self.backend, f"Cannot write item '{item_id}': {e}")

    def acquire_lock(self, ttl_seconds: int) -> bool:
        lock = self.redis.lock(self.LOCK_KEY, timeout=ttl_seconds, blocking=False)
        try:
            acquired = lock.acquire()
        except redis.RedisError as e:
            raise PersistenceError(self.backend, f"Cannot acquire migration lock: {e}")
        if acquired:
            self._lock = lock
            return True
        return False

    def release_lock(self) -> None:
        lock, self._lock = self._lock, None
        if lock is None:
            return
        try:
            lock.release()
        except LockError:
            # Token mismatch: the lock expired and may belong to another run
            self.logger.warning("Migration lock expired before release", key=self.LOCK_KEY)
        except redis.RedisError as e:
            raise PersistenceError(self.backend, f"Cannot release migration lock: {e}")
