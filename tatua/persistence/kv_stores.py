"""Key-value slots backing the durable ticket repositories.

A slot maps string keys to string values, the way browser session and local
storage do. Two scopes are provided:

- MemoryKeyValueStore: lives as long as the object (one session).
- FileKeyValueStore: one file per key under a directory, survives restarts.
"""

import logging
import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional, Union

logger = logging.getLogger(__name__)

_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


class KeyValueStore(ABC):
    """Abstract string key-value slot."""

    @abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        """Return the value stored under ``key``, or None."""
        pass

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""
        pass

    @abstractmethod
    def remove_item(self, key: str) -> None:
        """Remove ``key`` if present."""
        pass


class MemoryKeyValueStore(KeyValueStore):
    """Session-scoped slot held in process memory."""

    def __init__(self):
        self._items: Dict[str, str] = {}

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)


class FileKeyValueStore(KeyValueStore):
    """Indefinite slot storing each key in its own file."""

    def __init__(self, storage_path: Union[str, Path] = "./data"):
        """Initialize file-based storage.

        Args:
            storage_path: Directory holding one ``<key>.dat`` file per key
        """
        self.storage_path = Path(storage_path)
        self.storage_path.mkdir(parents=True, exist_ok=True)
        logger.info(f"FileKeyValueStore initialized with storage_path={storage_path}")

    def _get_item_path(self, key: str) -> Path:
        return self.storage_path / f"{_UNSAFE_KEY_CHARS.sub('_', key)}.dat"

    def get_item(self, key: str) -> Optional[str]:
        path = self._get_item_path(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Failed to read storage item '{key}': {e}")
            return None

    def set_item(self, key: str, value: str) -> None:
        path = self._get_item_path(key)
        try:
            path.write_text(value, encoding="utf-8")
        except OSError as e:
            logger.error(f"Failed to write storage item '{key}': {e}")
            raise

    def remove_item(self, key: str) -> None:
        path = self._get_item_path(key)
        try:
            path.unlink()
        except FileNotFoundError:
            pass
