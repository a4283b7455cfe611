"""Storage-backed cache with a bounded in-memory mirror and debounced writes.

Reads hit the mirror first, then pending writes, then entries held only in
memory, then the backend. Writes update the mirror immediately and schedule
a debounced flush; a burst of writes inside the debounce window is
persisted in one pass.

Persisted layout (all under ``prefix``):
    prefix + key        -> {"value": <json>, "expires": <epoch seconds | null>}
    prefix + __index__  -> ["key", ...]   (every persisted key)

The index lets clear() remove every persisted entry and lets a new instance
hydrate its mirror without enumerating the backend.

Failure Semantics:
    Any backend failure (StorageBackendError, OSError) is logged once and
    the cache continues memory-only. Entries that could not be persisted
    (backend failure, or a value that is not JSON-serializable) are kept in
    memory outside the mirror bound, so mirror eviction never loses them.
    A write or remove failure leaves reads enabled: entries persisted
    earlier stay readable, and keys deleted afterwards are remembered so
    their stale persisted copy is not read back. A read failure makes the
    backend unreachable; the persisted index is dropped so size() counts
    only what the cache can still return.

Thread Safety:
    Mirror and pending-write state are guarded by an RLock. Flushes are
    serialized by a second lock and take a copy-then-clear snapshot of
    pending writes, so a write arriving mid-flush is neither lost nor
    flushed twice.

Python 3.13+. Zero external dependencies.
"""

from __future__ import annotations

import json
import logging
import threading
import time
from collections import OrderedDict
from collections.abc import Callable, Mapping
from dataclasses import dataclass

from i18ncore.constants import (
    DEFAULT_DEBOUNCE_DELAY,
    DEFAULT_STORAGE_MIRROR_SIZE,
    DEFAULT_STORAGE_PREFIX,
    STORAGE_INDEX_KEY,
)
from i18ncore.diagnostics import StorageBackendError
from i18ncore.runtime.scheduling import Debouncer
from i18ncore.runtime.storage import StorageBackend

__all__ = ["StorageCache"]

logger = logging.getLogger(__name__)

# Failures that switch the cache to memory-only operation
_BACKEND_ERRORS = (StorageBackendError, OSError)


@dataclass(frozen=True, slots=True)
class _StoredEntry:
    value: object
    expires: float | None

    def expired(self, now: float) -> bool:
        return self.expires is not None and now >= self.expires


class StorageCache:
    """String-keyed cache persisted through a StorageBackend.

    Example:
        >>> from i18ncore.runtime.storage import MemoryStorage
        >>> backend = MemoryStorage()
        >>> cache = StorageCache(backend, debounce=0.5)
        >>> cache.set("en:greeting", "Hello")
        >>> cache.get("en:greeting")
        'Hello'
        >>> cache.pending_writes
        1
        >>> cache.flush()
        >>> backend.read("i18n_cache_en:greeting")
        '{"value": "Hello", "expires": null}'
        >>> cache.destroy()
    """

    __slots__ = (
        "_backend",
        "_clock",
        "_debouncer",
        "_degraded",
        "_destroyed",
        "_dropped_in_flush",
        "_flush_lock",
        "_in_flight",
        "_index",
        "_lock",
        "_max_size",
        "_mirror",
        "_pending",
        "_prefix",
        "_readable",
        "_removed",
        "_unpersisted",
    )

    def __init__(
        self,
        backend: StorageBackend | None = None,
        *,
        prefix: str = DEFAULT_STORAGE_PREFIX,
        max_size: int = DEFAULT_STORAGE_MIRROR_SIZE,
        debounce: float = DEFAULT_DEBOUNCE_DELAY,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the cache and hydrate the mirror from the backend.

        Args:
            backend: Persistent store; None runs memory-only
            prefix: Namespace prepended to every persisted key
            max_size: Mirror bound (non-positive values fall back to the default)
            debounce: Seconds of quiet before pending writes are flushed
            clock: Wall-clock time source; expiries are persisted as epoch seconds

        Raises:
            ValueError: If debounce is not positive
        """
        self._backend = backend
        self._prefix = prefix
        self._max_size = max_size if max_size > 0 else DEFAULT_STORAGE_MIRROR_SIZE
        self._clock = clock
        self._lock = threading.RLock()
        self._flush_lock = threading.Lock()
        self._mirror: OrderedDict[str, _StoredEntry] = OrderedDict()
        self._pending: dict[str, _StoredEntry] = {}
        # Entries that exist only in memory; never evicted
        self._unpersisted: dict[str, _StoredEntry] = {}
        # Keys deleted while removes cannot reach the backend
        self._removed: set[str] = set()
        self._index: set[str] = set()
        self._in_flight: dict[str, _StoredEntry] | None = None
        self._dropped_in_flush: set[str] | None = None
        self._degraded = backend is None
        self._readable = backend is not None
        self._destroyed = False
        self._debouncer = Debouncer(debounce, self.flush)
        self._hydrate()

    # ------------------------------------------------------------------
    # Backend plumbing
    # ------------------------------------------------------------------

    def _degrade(self, error: Exception, operation: str) -> None:
        if not self._degraded:
            logger.warning(
                "Storage backend %s failed (%s); continuing memory-only", operation, error
            )
        self._degraded = True
        if operation == "read" and self._readable:
            self._readable = False
            # Persisted entries outside the mirror are unreachable from now on
            for key, entry in self._mirror.items():
                if key not in self._pending:
                    self._unpersisted[key] = entry
            self._index.clear()
            self._removed.clear()

    def _keep_in_memory(self, entries: Mapping[str, _StoredEntry]) -> None:
        for key, entry in entries.items():
            # A newer write for the same key is already pending
            if key not in self._pending:
                self._unpersisted[key] = entry

    def _decode(self, raw: str) -> _StoredEntry | None:
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError:
            return None
        if not isinstance(payload, dict) or "value" not in payload:
            return None
        expires = payload.get("expires")
        if expires is not None and not isinstance(expires, int | float):
            return None
        return _StoredEntry(payload["value"], expires)

    def _read_backend(self, key: str) -> _StoredEntry | None:
        if not self._readable or self._backend is None or key in self._removed:
            return None
        try:
            raw = self._backend.read(self._prefix + key)
        except _BACKEND_ERRORS as e:
            self._degrade(e, "read")
            return None
        if raw is None:
            return None
        entry = self._decode(raw)
        if entry is None:
            logger.debug("Ignoring undecodable storage entry for key %r", key)
        return entry

    def _write_index(self) -> None:
        if self._degraded or self._backend is None:
            return
        try:
            self._backend.write(
                self._prefix + STORAGE_INDEX_KEY, json.dumps(sorted(self._index))
            )
        except _BACKEND_ERRORS as e:
            self._degrade(e, "write")

    def _remove_persisted(self, key: str) -> None:
        if self._degraded or self._backend is None:
            return
        try:
            self._backend.remove(self._prefix + key)
        except _BACKEND_ERRORS as e:
            self._degrade(e, "remove")

    def _hydrate(self) -> None:
        if not self._readable or self._backend is None:
            return
        try:
            raw_index = self._backend.read(self._prefix + STORAGE_INDEX_KEY)
        except _BACKEND_ERRORS as e:
            self._degrade(e, "read")
            return
        if raw_index is None:
            return

        try:
            keys = json.loads(raw_index)
        except json.JSONDecodeError:
            logger.warning("Storage index is corrupt; starting with an empty index")
            return
        if not isinstance(keys, list):
            return

        now = self._clock()
        expired: list[str] = []
        for key in keys:
            if not isinstance(key, str):
                continue
            entry = self._read_backend(key)
            if entry is None:
                if not self._readable:
                    return
                continue
            if entry.expired(now):
                expired.append(key)
                continue
            self._index.add(key)
            self._remember(key, entry)

        for key in expired:
            self._remove_persisted(key)
        if expired:
            self._write_index()
        logger.debug("Hydrated %d storage cache entries", len(self._mirror))

    def _remember(self, key: str, entry: _StoredEntry) -> None:
        self._mirror[key] = entry
        self._mirror.move_to_end(key)
        while len(self._mirror) > self._max_size:
            # Evicted entries stay pending, in memory or persisted
            self._mirror.popitem(last=False)

    def _drop(self, key: str) -> bool:
        existed = (
            key in self._mirror
            or key in self._pending
            or key in self._unpersisted
            or key in self._index
        )
        self._mirror.pop(key, None)
        self._pending.pop(key, None)
        self._unpersisted.pop(key, None)
        if self._dropped_in_flush is not None:
            self._dropped_in_flush.add(key)
        if key in self._index:
            self._index.discard(key)
            self._remove_persisted(key)
            self._write_index()
        if self._degraded and self._readable:
            self._removed.add(key)
        return existed

    def _lookup(self, key: str) -> _StoredEntry | None:
        now = self._clock()
        entry = (
            self._mirror.get(key) or self._pending.get(key) or self._unpersisted.get(key)
        )
        if entry is None:
            entry = self._read_backend(key)
            if entry is None:
                return None
            if not entry.expired(now):
                self._index.add(key)
        if entry.expired(now):
            self._drop(key)
            return None
        self._remember(key, entry)
        return entry

    # ------------------------------------------------------------------
    # Cache contract
    # ------------------------------------------------------------------

    def get(self, key: str, default: object = None) -> object:
        """Return the cached value, reading through to the backend on a mirror miss."""
        with self._lock:
            entry = self._lookup(key)
            return default if entry is None else entry.value

    def set(self, key: str, value: object, ttl: float | None = None) -> None:
        """Store a value. Persistence is deferred to the next flush.

        Args:
            key: Cache key
            value: JSON-serializable value
            ttl: Lifetime in seconds; None or 0 means no expiry
        """
        with self._lock:
            if self._destroyed:
                return
            entry = _StoredEntry(value, self._clock() + ttl if ttl else None)
            self._remember(key, entry)
            self._removed.discard(key)
            if self._degraded:
                self._unpersisted[key] = entry
                return
            self._unpersisted.pop(key, None)
            self._pending[key] = entry
        self._debouncer.schedule()

    def has(self, key: str) -> bool:
        """True if a non-expired value exists for key."""
        with self._lock:
            return self._lookup(key) is not None

    def delete(self, key: str) -> bool:
        """Remove key from memory and the backend."""
        with self._lock:
            return self._drop(key)

    def clear(self) -> None:
        """Remove every entry, including every persisted one."""
        self._debouncer.cancel()
        with self._lock:
            if self._dropped_in_flush is not None and self._in_flight is not None:
                self._dropped_in_flush.update(self._in_flight)
            self._mirror.clear()
            self._pending.clear()
            self._unpersisted.clear()
            self._removed.clear()
            for key in sorted(self._index):
                self._remove_persisted(key)
            self._index.clear()
            if not self._degraded and self._backend is not None:
                try:
                    self._backend.remove(self._prefix + STORAGE_INDEX_KEY)
                except _BACKEND_ERRORS as e:
                    self._degrade(e, "remove")
            if self._degraded:
                # Stale persisted entries cannot be removed; stop reading them
                self._readable = False

    @property
    def size(self) -> int:
        """Number of distinct keys held in memory, pending, or persisted."""
        with self._lock:
            return len(
                self._mirror.keys()
                | self._pending.keys()
                | self._unpersisted.keys()
                | self._index
            )

    def __len__(self) -> int:
        return self.size

    def flush(self) -> None:
        """Persist every pending write now.

        Pending writes are snapshotted and cleared before any backend call;
        writes issued during the flush land in the next batch. Entries that
        cannot be persisted stay readable from memory.
        """
        with self._flush_lock:
            with self._lock:
                snapshot = self._pending
                self._pending = {}
                if not snapshot:
                    return
                if self._degraded or self._backend is None:
                    self._keep_in_memory(snapshot)
                    return
                backend = self._backend
                self._in_flight = snapshot
                self._dropped_in_flush = set()

            written: list[str] = []
            unwritten: dict[str, _StoredEntry] = {}
            items = iter(snapshot.items())
            for key, entry in items:
                try:
                    payload = json.dumps({"value": entry.value, "expires": entry.expires})
                except (TypeError, ValueError) as e:
                    logger.warning("Skipping non-serializable cache value for %r: %s", key, e)
                    unwritten[key] = entry
                    continue
                try:
                    backend.write(self._prefix + key, payload)
                except _BACKEND_ERRORS as e:
                    with self._lock:
                        self._degrade(e, "write")
                    unwritten[key] = entry
                    unwritten.update(items)
                    break
                written.append(key)

            with self._lock:
                dropped = self._dropped_in_flush or set()
                self._dropped_in_flush = None
                self._in_flight = None
                for key in written:
                    if key in dropped:
                        # Deleted while its write was in flight
                        self._remove_persisted(key)
                        if self._degraded and self._readable:
                            self._removed.add(key)
                    else:
                        self._index.add(key)
                if written:
                    self._write_index()
                self._keep_in_memory(
                    {key: entry for key, entry in unwritten.items() if key not in dropped}
                )
        logger.debug("Flushed %d storage cache entries", len(written))

    @property
    def pending_writes(self) -> int:
        """Number of writes awaiting the next flush."""
        with self._lock:
            return len(self._pending)

    @property
    def degraded(self) -> bool:
        """True when the cache operates memory-only."""
        with self._lock:
            return self._degraded

    @property
    def max_size(self) -> int:
        """Bound of the in-memory mirror."""
        return self._max_size

    def destroy(self) -> None:
        """Flush pending writes synchronously and release the timer. Idempotent."""
        with self._lock:
            if self._destroyed:
                return
            self._destroyed = True
        self._debouncer.close()
        self.flush()
        with self._lock:
            self._mirror.clear()
            self._unpersisted.clear()
            self._index.clear()
            self._readable = False
        logger.debug("Storage cache destroyed")
