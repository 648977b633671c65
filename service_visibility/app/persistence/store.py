"""
Persistence contract and local stores for the Visibility service.

The migration runner only talks to a PersistStore: options (the applied
version map among them) through get/set, content item trees through
list_items/read_item/write_item, and the advisory migration lock.
"""

import copy
import fcntl
import json
import os
import tempfile
import threading
import time
import uuid
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

from shared.errors import PersistenceError
from shared.logging import get_logger


class PersistStore(ABC):
    """Key-value persistence consumed by the migration runner."""

    backend = "abstract"

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        """Return the stored option value, or default when absent."""

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        """Store an option value."""

    @abstractmethod
    def list_items(self) -> List[str]:
        """Return the ids of every stored content item."""

    @abstractmethod
    def read_item(self, item_id: str) -> Any:
        """Return the stored content tree (decoded or as a JSON string)."""

    @abstractmethod
    def write_item(self, item_id: str, tree: List[Dict[str, Any]]) -> None:
        """Replace the stored content tree."""

    @abstractmethod
    def acquire_lock(self, ttl_seconds: int) -> bool:
        """Take the migration lock. Returns False when another holder has it."""

    @abstractmethod
    def release_lock(self) -> None:
        """Release the migration lock."""


class InMemoryStore(PersistStore):
    """Process-local store. Values are copied in and out."""

    backend = "memory"

    def __init__(self, options: Optional[Dict[str, Any]] = None, items: Optional[Dict[str, Any]] = None):
        self.options: Dict[str, Any] = copy.deepcopy(options or {})
        self.items: Dict[str, Any] = copy.deepcopy(items or {})
        self._lock_expires_at: Optional[float] = None
        self._mutex = threading.Lock()

    def get(self, key: str, default: Any = None) -> Any:
        if key not in self.options:
            return default
        return copy.deepcopy(self.options[key])

    def set(self, key: str, value: Any) -> None:
        self.options[key] = copy.deepcopy(value)

    def list_items(self) -> List[str]:
        return list(self.items.keys())

    def read_item(self, item_id: str) -> Any:
        if item_id not in self.items:
            raise PersistenceError(self.backend, f"Item '{item_id}' not found")
        return copy.deepcopy(self.items[item_id])

    def write_item(self, item_id: str, tree: List[Dict[str, Any]]) -> None:
        self.items[item_id] = copy.deepcopy(tree)

    def acquire_lock(self, ttl_seconds: int) -> bool:
        with self._mutex:
            now = time.time()
            if self._lock_expires_at is not None and self._lock_expires_at > now:
                return False
            self._lock_expires_at = now + ttl_seconds
            return True

    def release_lock(self) -> None:
        with self._mutex:
            self._lock_expires_at = None

    @property
    def locked(self) -> bool:
        return self._lock_expires_at is not None and self._lock_expires_at > time.time()


class JsonFileStore(PersistStore):
    """Single JSON document on disk: {"options": {...}, "items": {...}}.

    Writes replace the whole file atomically. The migration lock is a
    sidecar JSON record holding the owner token and expiry. Checking and
    changing it happens under an flock on a second guard file, and a
    release only removes a record carrying this instance's token.
    """

    backend = "file"

    def __init__(self, path: str):
        self.path = path
        self.lock_path = f"{path}.lock"
        self.guard_path = f"{path}.lock.guard"
        self._lock_token: Optional[str] = None
        self.logger = get_logger("visibility.persistence.file")

    def _load(self) -> Dict[str, Any]:
        if not os.path.exists(self.path):
            return {"options": {}, "items": {}}
        try:
            with open(self.path, "r", encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, ValueError) as e:
            raise PersistenceError(self.backend, f"Cannot read {self.path}: {e}")

        if not isinstance(data, dict):
            raise PersistenceError(self.backend, f"{self.path} does not hold a JSON object")
        data.setdefault("options", {})
        data.setdefault("items", {})
        return data

    def _save(self, data: Dict[str, Any]) -> None:
        self._write_json(self.path, data)

    def _write_json(self, path: str, data: Dict[str, Any]) -> None:
        directory = os.path.dirname(os.path.abspath(path))
        try:
            fd, tmp_path = tempfile.mkstemp(prefix=".visibility-", suffix=".json", dir=directory)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    json.dump(data, fh, indent=2, sort_keys=True)
                os.replace(tmp_path, path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except (OSError, TypeError, ValueError) as e:
            raise PersistenceError(self.backend, f"Cannot write {path}: {e}")

    def get(self, key: str, default: Any = None) -> Any:
        return self._load()["options"].get(key, default)

    def set(self, key: str, value: Any) -> None:
        data = self._load()
        data["options"][key] = value
        self._save(data)

    def list_items(self) -> List[str]:
        return list(self._load()["items"].keys())

    def read_item(self, item_id: str) -> Any:
        items = self._load()["items"]
        if item_id not in items:
            raise PersistenceError(self.backend, f"Item '{item_id}' not found")
        return items[item_id]

    def write_item(self, item_id: str, tree: List[Dict[str, Any]]) -> None:
        data = self._load()
        data["items"][item_id] = tree
        self._save(data)

    def acquire_lock(self, ttl_seconds: int) -> bool:
        token = uuid.uuid4().hex
        with self._lock_guard():
            holder = self._read_lock()
            if holder is not None:
                if holder.get("expires_at", 0) > time.time():
                    return False
                self.logger.warning("Replacing stale migration lock", path=self.lock_path)
            self._write_json(self.lock_path, {"token": token, "expires_at": time.time() + ttl_seconds})

        self._lock_token = token
        return True

    def release_lock(self) -> None:
        token, self._lock_token = self._lock_token, None
        if token is None:
            return

        with self._lock_guard():
            holder = self._read_lock()
            if holder is None or holder.get("token") != token:
                self.logger.warning("Migration lock expired before release", path=self.lock_path)
                return
            try:
                os.unlink(self.lock_path)
            except OSError as e:
                raise PersistenceError(self.backend, f"Cannot remove lock {self.lock_path}: {e}")

    @contextmanager
    def _lock_guard(self) -> Iterator[None]:
        """Hold an exclusive flock on the guard file while the lock record is checked or changed."""
        try:
            fh = open(self.guard_path, "a", encoding="utf-8")
        except OSError as e:
            raise PersistenceError(self.backend, f"Cannot open {self.guard_path}: {e}")

        with fh:
            fcntl.flock(fh.fileno(), fcntl.LOCK_EX)
            try:
                yield
            finally:
                fcntl.flock(fh.fileno(), fcntl.LOCK_UN)

    def _read_lock(self) -> Optional[Dict[str, Any]]:
        try:
            with open(self.lock_path, "r", encoding="utf-8") as fh:
                holder = json.load(fh)
        except FileNotFoundError:
            return None
        except (OSError, ValueError):
            # Unreadable lock content counts as expired
            return {}
        if not isinstance(holder, dict) or not isinstance(holder.get("expires_at"), (int, float)):
            return {}
        return holder
