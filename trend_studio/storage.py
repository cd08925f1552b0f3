"""Local key/value persistence for drafts and publish settings.

Provides a small key/value port with an in-memory backend for tests and a
JSON-file backend for the CLI, plus ``StudioStore`` with typed accessors for
the keys the studio uses. Writes are last-write-wins.
"""

import json
import logging
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import ValidationError

from .config import DEFAULT_STORE_PATH, STORAGE_KEYS
from .models import GeneratedBlog

logger = logging.getLogger(__name__)


class KeyValueStore(ABC):
    """Abstract string key/value store."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        pass


class InMemoryKeyValueStore(KeyValueStore):
    """Dictionary-backed store."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileKeyValueStore(KeyValueStore):
    """Store persisted as a single JSON object on disk.

    Attributes:
        path: Location of the JSON file.
    """

    def __init__(self, path: str = DEFAULT_STORE_PATH):
        self.path = Path(path)
        self._lock = threading.RLock()

    def _load(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.error(f"Error loading store from {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.error(f"Ignoring store {self.path}: expected a JSON object")
            return {}
        return data

    def _save(self, data: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=str(self.path.parent), suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_path, self.path)
        except OSError as e:
            logger.error(f"Error saving store to {self.path}: {e}")
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            data = self._load()
            data[key] = value
            self._save(data)

    def delete(self, key: str) -> None:
        with self._lock:
            data = self._load()
            if key in data:
                del data[key]
                self._save(data)


class StudioStore:
    """Typed accessors over a KeyValueStore."""

    def __init__(self, store: Optional[KeyValueStore] = None):
        self.store = store or InMemoryKeyValueStore()

    def _get_text(self, name: str) -> str:
        return self.store.get(STORAGE_KEYS[name]) or ""

    def _set_text(self, name: str, value: Any) -> None:
        self.store.set(STORAGE_KEYS[name], str(value or ""))

    @property
    def blog_id(self) -> str:
        return self._get_text("blog_id")

    @blog_id.setter
    def blog_id(self, value: str) -> None:
        self._set_text("blog_id", value)

    @property
    def client_id(self) -> str:
        return self._get_text("client_id")

    @client_id.setter
    def client_id(self, value: str) -> None:
        self._set_text("client_id", value)

    @property
    def last_topic(self) -> str:
        return self._get_text("last_topic")

    @last_topic.setter
    def last_topic(self, value: str) -> None:
        self._set_text("last_topic", value)

    def save_draft(self, blog: GeneratedBlog) -> None:
        """Persist a snapshot of a draft."""
        self.store.set(STORAGE_KEYS["draft"], blog.model_dump_json(by_alias=True))

    def load_draft(self) -> Optional[GeneratedBlog]:
        """Load the saved draft snapshot, if any."""
        raw = self.store.get(STORAGE_KEYS["draft"])
        if not raw:
            return None
        try:
            return GeneratedBlog.model_validate_json(raw)
        except ValidationError as e:
            logger.warning(f"Discarding unreadable draft snapshot: {e.error_count()} validation errors")
            return None

    def clear_draft(self) -> None:
        self.store.delete(STORAGE_KEYS["draft"])
