"""String key-value stores and a JSON cache on top of them."""
import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional


class KeyValueStore(ABC):
    """Persistent string-to-string store with synchronous get/set."""

    @abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        pass

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        pass


class MemoryStore(KeyValueStore):
    """Process-local store, used in tests and when no cache file is configured."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._items: Dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value


class JsonFileStore(KeyValueStore):
    """
    Store backed by a single JSON object on disk.

    The whole file is re-read on every get and rewritten on every set, so
    several processes sharing the file see each other's writes (last writer
    wins, no locking). Writes go to a temp file first and are moved into
    place with os.replace.
    """

    def __init__(self, path: str):
        self.path = os.path.abspath(os.path.expanduser(path))

    def _load(self) -> Dict[str, str]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logging.warning(f"Cache file {self.path} unreadable, starting empty: {e}")
            return {}
        if not isinstance(data, dict):
            logging.warning(f"Cache file {self.path} does not hold an object, starting empty")
            return {}
        return {k: v for k, v in data.items() if isinstance(v, str)}

    def get_item(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def set_item(self, key: str, value: str) -> None:
        items = self._load()
        items[key] = value
        directory = os.path.dirname(self.path)
        os.makedirs(directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".cache-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(items, f, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise


class KeyValueCache:
    """
    JSON-serializing wrapper around a KeyValueStore.

    Holds no TTL logic: callers store their own timestamps inside the value.
    Reads fail soft (malformed text reads as absent) and writes are
    best-effort (a failing store is logged and ignored).
    """

    def __init__(self, store: KeyValueStore):
        self.store = store

    def get(self, key: str) -> Optional[Any]:
        try:
            raw = self.store.get_item(key)
        except OSError as e:
            logging.warning(f"Cache read failed for {key}: {e}")
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logging.debug(f"Ignoring malformed cache value for {key}")
            return None

    def set(self, key: str, value: Any) -> None:
        try:
            raw = json.dumps(value, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            logging.error(f"Cannot serialize cache value for {key}: {e}")
            return
        try:
            self.store.set_item(key, raw)
        except OSError as e:
            # Quota or disk full: the cache is best-effort
            logging.warning(f"Cache write failed for {key}: {e}")
