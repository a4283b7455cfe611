"""Thread-safe LRU cache for rendered messages.

Provides the hot-path cache behind Translator.translate(): O(1) get/set with
optional per-entry TTL and a background sweep of expired entries.

Architecture:
    - Hash map from key to slot index plus a doubly linked list of slots
      ordered from most- to least-recently-used
    - Slots live in an arena of parallel lists (key, value, expiry, prev,
      next) addressed by index; freed slots go to a free list and are
      reused, so steady-state writes allocate nothing
    - Capacity is never exceeded: inserting a new key into a full cache
      evicts exactly the tail (least-recently-used) entry
    - Thread-safe using threading.RLock (the sweep runs on a timer thread)
    - Sweep timer starts lazily on the first entry that can expire and
      holds only a weak reference to the cache

Capacity <= 0 disables the cache: set() is a no-op and get() always misses.
A TTL of zero or None means "never expires".

Python 3.13+.
"""

from __future__ import annotations

import functools
import logging
import time
import weakref
from collections.abc import Callable, Iterator, Mapping
from datetime import date, datetime
from decimal import Decimal
from threading import RLock
from typing import TYPE_CHECKING, Protocol, cast

from i18ncore.constants import DEFAULT_CACHE_SIZE, DEFAULT_SWEEP_INTERVAL
from i18ncore.runtime.scheduling import RepeatingTimer

if TYPE_CHECKING:
    from i18ncore.runtime.cache_config import CacheConfig

__all__ = ["Cache", "HashableValue", "LRUCache", "freeze_params", "make_hashable"]

logger = logging.getLogger(__name__)

# Type alias for hashable values produced by make_hashable().
# Recursive definition: primitives plus tuple/frozenset of self.
# Scalars are wrapped as (type name, value) pairs.
type HashableValue = (
    str
    | int
    | float
    | bool
    | Decimal
    | datetime
    | date
    | None
    | tuple["HashableValue", ...]
    | frozenset["HashableValue"]
)

_NIL = -1


class Cache[K, V](Protocol):
    """Common contract of every cache policy."""

    def get(self, key: K, default: V | None = None) -> V | None:
        """Return the cached value, or default on miss/expiry."""

    def set(self, key: K, value: V, ttl: float | None = None) -> None:
        """Store a value; ttl overrides the default lifetime (seconds)."""

    def has(self, key: K) -> bool:
        """True if a non-expired entry exists."""

    def delete(self, key: K) -> bool:
        """Remove an entry; True if it existed."""

    def clear(self) -> None:
        """Remove every entry."""

    @property
    def size(self) -> int:
        """Number of stored entries."""

    def destroy(self) -> None:
        """Release background resources. Idempotent."""


def _sweep_referent(ref: weakref.ReferenceType[LRUCache[object, object]]) -> bool | None:
    """Timer callback: sweep if the cache is still alive, else stop the timer."""
    cache = ref()
    if cache is None:
        return False
    cache.sweep()
    return None


class LRUCache[K, V]:
    """Thread-safe LRU cache with optional TTL and background expiry sweep.

    Example:
        >>> cache = LRUCache(max_size=2)
        >>> cache.set("a", 1)
        >>> cache.set("b", 2)
        >>> cache.set("c", 3)
        >>> cache.has("a"), cache.has("b"), cache.has("c")
        (False, True, True)
        >>> cache.destroy()

    Attributes:
        max_size: Maximum number of entries (<= 0 means disabled)
        ttl: Default entry lifetime in seconds (0 = never expires)
    """

    __slots__ = (
        "__weakref__",
        "_clock",
        "_destroyed",
        "_evictions",
        "_expirations",
        "_expires",
        "_finalizer",
        "_free",
        "_head",
        "_hits",
        "_index",
        "_keys",
        "_lock",
        "_max_size",
        "_misses",
        "_next",
        "_prev",
        "_sweep_interval",
        "_sweeper",
        "_tail",
        "_ttl",
        "_values",
    )

    def __init__(
        self,
        max_size: int = DEFAULT_CACHE_SIZE,
        ttl: float | None = None,
        *,
        sweep_interval: float = DEFAULT_SWEEP_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize LRU cache.

        Args:
            max_size: Maximum number of entries (<= 0 disables the cache)
            ttl: Default entry lifetime in seconds (None or 0 = never expires)
            sweep_interval: Seconds between background expiry sweeps
            clock: Monotonic time source (injectable for tests)

        Raises:
            ValueError: If ttl is negative or sweep_interval is not positive
        """
        if ttl is not None and ttl < 0:
            msg = "ttl must be non-negative"
            raise ValueError(msg)
        if sweep_interval <= 0:
            msg = "sweep_interval must be positive"
            raise ValueError(msg)

        self._max_size = max_size
        self._ttl = ttl or 0.0
        self._sweep_interval = sweep_interval
        self._clock = clock
        self._lock = RLock()

        self._index: dict[K, int] = {}
        self._keys: list[K | None] = []
        self._values: list[V | None] = []
        self._expires: list[float | None] = []
        self._prev: list[int] = []
        self._next: list[int] = []
        self._free: list[int] = []
        self._head = _NIL
        self._tail = _NIL

        self._hits = 0
        self._misses = 0
        self._evictions = 0
        self._expirations = 0

        self._sweeper: RepeatingTimer | None = None
        self._finalizer: weakref.finalize | None = None
        self._destroyed = False

    @classmethod
    def from_config(
        cls, config: CacheConfig, *, clock: Callable[[], float] = time.monotonic
    ) -> LRUCache[K, V]:
        """Create a cache from a CacheConfig."""
        return cls(
            config.size,
            config.ttl,
            sweep_interval=config.sweep_interval,
            clock=clock,
        )

    # ------------------------------------------------------------------
    # Linked-list primitives (caller holds the lock)
    # ------------------------------------------------------------------

    def _unlink(self, slot: int) -> None:
        prev_slot = self._prev[slot]
        next_slot = self._next[slot]
        if prev_slot != _NIL:
            self._next[prev_slot] = next_slot
        else:
            self._head = next_slot
        if next_slot != _NIL:
            self._prev[next_slot] = prev_slot
        else:
            self._tail = prev_slot
        self._prev[slot] = _NIL
        self._next[slot] = _NIL

    def _link_head(self, slot: int) -> None:
        self._prev[slot] = _NIL
        self._next[slot] = self._head
        if self._head != _NIL:
            self._prev[self._head] = slot
        self._head = slot
        if self._tail == _NIL:
            self._tail = slot

    def _move_to_head(self, slot: int) -> None:
        if self._head != slot:
            self._unlink(slot)
            self._link_head(slot)

    def _allocate(self, key: K, value: V, expires: float | None) -> int:
        if self._free:
            slot = self._free.pop()
            self._keys[slot] = key
            self._values[slot] = value
            self._expires[slot] = expires
            return slot
        self._keys.append(key)
        self._values.append(value)
        self._expires.append(expires)
        self._prev.append(_NIL)
        self._next.append(_NIL)
        return len(self._keys) - 1

    def _remove_slot(self, slot: int) -> None:
        key = cast("K", self._keys[slot])
        self._unlink(slot)
        del self._index[key]
        # Drop references so evicted values can be collected
        self._keys[slot] = None
        self._values[slot] = None
        self._expires[slot] = None
        self._free.append(slot)

    def _expired(self, slot: int, now: float) -> bool:
        expires = self._expires[slot]
        return expires is not None and now >= expires

    def _ensure_sweeper(self) -> None:
        if self._sweeper is not None or self._destroyed:
            return
        sweeper = RepeatingTimer(
            self._sweep_interval, functools.partial(_sweep_referent, weakref.ref(self))
        )
        self._sweeper = sweeper
        # Stop the timer if the cache is collected without destroy()
        self._finalizer = weakref.finalize(self, sweeper.cancel)
        sweeper.start()
        logger.debug("LRU sweep timer started (interval=%ss)", self._sweep_interval)

    # ------------------------------------------------------------------
    # Cache contract
    # ------------------------------------------------------------------

    @property
    def enabled(self) -> bool:
        """False when capacity <= 0 or after destroy()."""
        return self._max_size > 0 and not self._destroyed

    def get(self, key: K, default: V | None = None) -> V | None:
        """Get cached value and mark it most-recently-used.

        Thread-safe. An expired entry is removed and reported as a miss.

        Args:
            key: Cache key
            default: Value returned on miss

        Returns:
            Cached value or default
        """
        with self._lock:
            slot = self._index.get(key) if self.enabled else None
            if slot is None:
                self._misses += 1
                return default

            if self._expired(slot, self._clock()):
                self._remove_slot(slot)
                self._expirations += 1
                self._misses += 1
                return default

            self._move_to_head(slot)
            self._hits += 1
            return self._values[slot]

    def set(self, key: K, value: V, ttl: float | None = None) -> None:
        """Store value as most-recently-used.

        Thread-safe. Inserting a new key into a full cache evicts the
        least-recently-used entry first.

        Args:
            key: Cache key (hashable)
            value: Value to store
            ttl: Lifetime in seconds; None uses the default, 0 never expires
        """
        if not self.enabled:
            return

        effective_ttl = self._ttl if ttl is None else ttl
        with self._lock:
            expires = self._clock() + effective_ttl if effective_ttl > 0 else None

            slot = self._index.get(key)
            if slot is not None:
                self._values[slot] = value
                self._expires[slot] = expires
                self._move_to_head(slot)
            else:
                if len(self._index) >= self._max_size and self._tail != _NIL:
                    self._remove_slot(self._tail)
                    self._evictions += 1
                slot = self._allocate(key, value, expires)
                self._index[key] = slot
                self._link_head(slot)

            if expires is not None:
                self._ensure_sweeper()

    def has(self, key: K) -> bool:
        """Check for a non-expired entry without changing recency."""
        with self._lock:
            slot = self._index.get(key)
            if slot is None:
                return False
            if self._expired(slot, self._clock()):
                self._remove_slot(slot)
                self._expirations += 1
                return False
            return True

    def delete(self, key: K) -> bool:
        """Remove an entry. Returns True if it existed."""
        with self._lock:
            slot = self._index.get(key)
            if slot is None:
                return False
            self._remove_slot(slot)
            return True

    def clear(self) -> None:
        """Clear all cached entries and reset metrics.

        Thread-safe. The arena is released, not recycled.
        """
        with self._lock:
            self._index.clear()
            self._keys = []
            self._values = []
            self._expires = []
            self._prev = []
            self._next = []
            self._free = []
            self._head = _NIL
            self._tail = _NIL
            self._hits = 0
            self._misses = 0
            self._evictions = 0
            self._expirations = 0

    @property
    def size(self) -> int:
        """Number of stored entries (expired entries count until removed)."""
        with self._lock:
            return len(self._index)

    def __len__(self) -> int:
        return self.size

    def __contains__(self, key: object) -> bool:
        return self.has(cast("K", key))

    def destroy(self) -> None:
        """Stop the sweep timer and drop all entries.

        Idempotent. The cache stays usable as a disabled cache afterwards.
        """
        with self._lock:
            if self._destroyed:
                return
            self._destroyed = True
            sweeper, self._sweeper = self._sweeper, None
            finalizer, self._finalizer = self._finalizer, None
        if sweeper is not None:
            sweeper.cancel()
        if finalizer is not None:
            finalizer.detach()
        self.clear()
        logger.debug("LRU cache destroyed")

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    def sweep(self) -> int:
        """Remove every expired entry.

        Runs periodically on the sweep timer; may also be called directly.

        Returns:
            Number of entries removed
        """
        with self._lock:
            now = self._clock()
            expired = [slot for slot in self._index.values() if self._expired(slot, now)]
            for slot in expired:
                self._remove_slot(slot)
            self._expirations += len(expired)
        if expired:
            logger.debug("LRU sweep removed %d expired entries", len(expired))
        return len(expired)

    def invalidate(self, predicate: Callable[[K], bool]) -> int:
        """Remove every entry whose key satisfies predicate.

        Returns:
            Number of entries removed
        """
        with self._lock:
            doomed = [slot for key, slot in self._index.items() if predicate(key)]
            for slot in doomed:
                self._remove_slot(slot)
        return len(doomed)

    def _iter_slots(self) -> Iterator[int]:
        slot = self._head
        while slot != _NIL:
            yield slot
            slot = self._next[slot]

    def keys(self) -> list[K]:
        """Return live keys from most- to least-recently-used."""
        with self._lock:
            now = self._clock()
            return [
                cast("K", self._keys[slot])
                for slot in self._iter_slots()
                if not self._expired(slot, now)
            ]

    def get_stats(self) -> dict[str, int | float]:
        """Get cache statistics.

        Thread-safe. Returns current metrics.

        Returns:
            Dict with keys:
            - size (int): Current number of cached entries
            - max_size (int): Maximum cache capacity
            - hits (int): Number of cache hits
            - misses (int): Number of cache misses
            - hit_rate (float): Hit rate as percentage (0.0-100.0)
            - evictions (int): Entries evicted for capacity
            - expirations (int): Entries removed after their TTL
        """
        with self._lock:
            total = self._hits + self._misses
            hit_rate = (self._hits / total * 100) if total > 0 else 0.0

            return {
                "size": len(self._index),
                "max_size": self._max_size,
                "hits": self._hits,
                "misses": self._misses,
                "hit_rate": round(hit_rate, 2),
                "evictions": self._evictions,
                "expirations": self._expirations,
            }

    @property
    def max_size(self) -> int:
        """Maximum cache size."""
        return self._max_size

    @property
    def ttl(self) -> float:
        """Default entry lifetime in seconds (0 = never expires)."""
        return self._ttl

    @property
    def hits(self) -> int:
        """Number of cache hits.

        Thread-safe.
        """
        with self._lock:
            return self._hits

    @property
    def misses(self) -> int:
        """Number of cache misses.

        Thread-safe.
        """
        with self._lock:
            return self._misses

    @property
    def sweeper_active(self) -> bool:
        """True while the background sweep timer is scheduled."""
        with self._lock:
            return self._sweeper is not None and self._sweeper.active


def make_hashable(value: object) -> HashableValue:
    """Convert potentially unhashable value to hashable equivalent.

    Converts:
        - list/tuple -> tuple (recursively)
        - Mapping -> tuple of sorted key-value tuples (recursively)
        - set/frozenset -> frozenset (recursively)
        - Other values -> (type name, value)

    The type tag keeps True, 1 and 1.0 apart: they compare equal but render
    differently.

    Args:
        value: Value to convert (typically a parameter or nested collection)

    Returns:
        Hashable equivalent of the value
    """
    match value:
        case list() | tuple():
            return tuple(make_hashable(v) for v in value)
        case Mapping():
            return tuple(
                sorted(((str(k), make_hashable(v)) for k, v in value.items()), key=repr)
            )
        case set() | frozenset():
            return frozenset(make_hashable(v) for v in value)
        case _:
            return (type(value).__qualname__, cast(HashableValue, value))


def freeze_params(
    params: Mapping[str, object] | None,
) -> tuple[tuple[str, HashableValue], ...] | None:
    """Create an immutable, order-independent form of interpolation params.

    Sorting is REQUIRED for correctness: without it, {"a": 1, "b": 2} and
    {"b": 2, "a": 1} would produce different cache keys despite being
    semantically equivalent.

    Robustness:
        Catches RecursionError for deeply nested structures and TypeError
        for unhashable values or non-string names. Returns None in both cases
        so the caller can bypass caching without failing the resolution.

    Returns:
        Sorted tuple of (name, hashable value) pairs, or None if conversion fails
    """
    if params is None:
        return ()
    try:
        items = tuple(
            sorted(
                ((name, make_hashable(value)) for name, value in params.items()),
                key=lambda item: item[0],
            )
        )
        hash(items)
    except (TypeError, RecursionError, AttributeError):
        return None
    return items
