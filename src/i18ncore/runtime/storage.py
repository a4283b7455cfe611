"""Key/value storage backends for the storage-backed cache.

Components:
    StorageBackend - Protocol for string key/value persistence (structural typing)
    MemoryStorage - Process-local backend, optionally quota-limited
    JsonFileStorage - Single JSON document on disk with atomic replace

Backends store strings only; serialization is the caller's concern.

Python 3.13+. Zero external dependencies.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Protocol

from i18ncore.diagnostics import StorageBackendError

# ruff: noqa: RUF022 - __all__ organized by category for readability
__all__ = [
    # Protocol
    "StorageBackend",
    # Concrete backends
    "MemoryStorage",
    "JsonFileStorage",
]

logger = logging.getLogger(__name__)


class StorageBackend(Protocol):
    """Protocol for string key/value persistence.

    This is a Protocol (structural typing) rather than ABC so that thin
    wrappers around existing stores (shelve, a Redis client, a browser-style
    storage shim) satisfy it without inheriting anything.

    Implementations signal failure by raising StorageBackendError or OSError;
    callers are expected to degrade rather than crash.

    Example:
        >>> class DictStorage:
        ...     def __init__(self) -> None:
        ...         self.data: dict[str, str] = {}
        ...     def read(self, key: str) -> str | None:
        ...         return self.data.get(key)
        ...     def write(self, key: str, value: str) -> None:
        ...         self.data[key] = value
        ...     def remove(self, key: str) -> None:
        ...         self.data.pop(key, None)
    """

    def read(self, key: str) -> str | None:
        """Return the stored string, or None if absent."""

    def write(self, key: str, value: str) -> None:
        """Store a string under key, replacing any previous value.

        Raises:
            StorageBackendError: If the value cannot be stored (quota, I/O)
        """

    def remove(self, key: str) -> None:
        """Remove key. Removing an absent key is not an error."""


class MemoryStorage:
    """Process-local storage backend.

    Args:
        max_items: Optional quota; writing a new key beyond it raises
            StorageBackendError (mirrors a full browser storage area)

    Example:
        >>> storage = MemoryStorage()
        >>> storage.write("greeting", "hello")
        >>> storage.read("greeting")
        'hello'
    """

    __slots__ = ("_data", "_lock", "max_items")

    def __init__(self, max_items: int | None = None) -> None:
        self.max_items = max_items
        self._data: dict[str, str] = {}
        self._lock = threading.Lock()

    def read(self, key: str) -> str | None:
        with self._lock:
            return self._data.get(key)

    def write(self, key: str, value: str) -> None:
        with self._lock:
            if (
                self.max_items is not None
                and key not in self._data
                and len(self._data) >= self.max_items
            ):
                msg = f"Storage quota of {self.max_items} items exceeded"
                raise StorageBackendError(msg, key=key, operation="write")
            self._data[key] = value

    def remove(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def keys(self) -> list[str]:
        """Return a snapshot of stored keys."""
        with self._lock:
            return list(self._data)

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)


class JsonFileStorage:
    """Storage backend persisting every key in one JSON object on disk.

    The document is loaded lazily on first access and rewritten in full on
    every write/remove via a temporary file and ``os.replace``, so readers
    never observe a partially written document.

    Example:
        >>> storage = JsonFileStorage("cache/i18n.json")
        >>> storage.write("greeting", "hello")
        # cache/i18n.json now contains {"greeting": "hello"}

    Attributes:
        path: Location of the JSON document
    """

    __slots__ = ("_data", "_lock", "path")

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self.path = Path(path)
        self._data: dict[str, str] | None = None
        self._lock = threading.Lock()

    def _load(self) -> dict[str, str]:
        if self._data is not None:
            return self._data
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            self._data = {}
            return self._data
        except OSError as e:
            msg = f"Cannot read storage file {self.path}: {e}"
            raise StorageBackendError(msg, operation="read") from e

        try:
            document = json.loads(raw) if raw.strip() else {}
        except json.JSONDecodeError as e:
            msg = f"Storage file {self.path} is not valid JSON: {e}"
            raise StorageBackendError(msg, operation="read") from e
        if not isinstance(document, dict):
            msg = f"Storage file {self.path} must contain a JSON object"
            raise StorageBackendError(msg, operation="read")

        self._data = {str(k): v for k, v in document.items() if isinstance(v, str)}
        return self._data

    def _persist(self, data: dict[str, str], key: str, operation: str) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    json.dump(data, handle, ensure_ascii=False, sort_keys=True)
                os.replace(tmp_name, self.path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            msg = f"Cannot write storage file {self.path}: {e}"
            raise StorageBackendError(msg, key=key, operation=operation) from e

    def read(self, key: str) -> str | None:
        with self._lock:
            return self._load().get(key)

    def write(self, key: str, value: str) -> None:
        with self._lock:
            data = dict(self._load())
            data[key] = value
            self._persist(data, key, "write")
            self._data = data

    def remove(self, key: str) -> None:
        with self._lock:
            current = self._load()
            if key not in current:
                return
            data = {k: v for k, v in current.items() if k != key}
            self._persist(data, key, "remove")
            self._data = data
