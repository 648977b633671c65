"""
Persistence backends for the Visibility service.
"""

from typing import Optional

from shared.config import BaseConfig
from .store import InMemoryStore, JsonFileStore, PersistStore
from .redis_store import RedisStore


def create_store(config: BaseConfig, path: Optional[str] = None) -> PersistStore:
    """Build the store selected by configuration."""
    backend = config.store_backend.lower()
    if backend == "memory":
        return InMemoryStore()
    if backend == "file":
        return JsonFileStore(path or config.store_path)
    if backend == "redis":
        return RedisStore(config.redis_url, namespace=config.redis_namespace)
    raise ValueError(f"Unknown store backend: {config.store_backend}")


__all__ = ["InMemoryStore", "JsonFileStore", "PersistStore", "RedisStore", "create_store"]
