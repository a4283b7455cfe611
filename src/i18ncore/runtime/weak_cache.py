"""Weak-identity cache: entries vanish when their key object is collected.

Keys are compared by identity and held only through weak references. When
a key becomes unreachable elsewhere, its weakref callback removes the entry;
no explicit cache-side cleanup is needed.

Per-entry TTL is optional. When set, expiry is enforced lazily on read and
eagerly by a per-entry deadline on the cache's DeadlineQueue (one worker
thread per cache, however many entries). The number of scheduled deadlines is
capped (``max_timers``): once the cap is reached new timers are not
scheduled, and such entries still expire lazily on read but otherwise live
until their key is collected or deleted. Bounded timer count wins over strict
TTL enforcement.

Python 3.13+. Zero external dependencies.
"""

from __future__ import annotations

import functools
import logging
import threading
import time
import weakref
from collections.abc import Callable
from dataclasses import dataclass, field

from i18ncore.constants import DEFAULT_MAX_TIMERS
from i18ncore.runtime.scheduling import DeadlineQueue, ScheduledCall

__all__ = ["WeakIdentityCache"]

logger = logging.getLogger(__name__)


@dataclass(slots=True, eq=False)
class _WeakEntry:
    ref: weakref.ReferenceType[object]
    value: object
    expires: float | None = None
    timer: ScheduledCall | None = field(default=None, repr=False)


def _on_key_collected(
    cache_ref: weakref.ReferenceType[WeakIdentityCache[object, object]],
    ident: int,
    dead_ref: weakref.ReferenceType[object],
) -> None:
    cache = cache_ref()
    if cache is not None:
        cache._discard(ident, dead_ref)


def _on_timer_expired(
    cache_ref: weakref.ReferenceType[WeakIdentityCache[object, object]],
    ident: int,
    entry: _WeakEntry,
) -> None:
    cache = cache_ref()
    if cache is not None:
        cache._expire(ident, entry)


class WeakIdentityCache[K, V]:
    """Identity-keyed cache holding keys weakly.

    Keys must support weak references (instances of ordinary classes);
    ``int``, ``str``, ``tuple`` and ``dict`` instances do not.

    Example:
        >>> class Widget:
        ...     pass
        >>> cache = WeakIdentityCache()
        >>> widget = Widget()
        >>> cache.set(widget, "rendered")
        >>> cache.get(widget)
        'rendered'
        >>> del widget
        >>> cache.size
        0
    """

    __slots__ = (
        "__weakref__",
        "_active_timers",
        "_clock",
        "_destroyed",
        "_entries",
        "_lock",
        "_max_timers",
        "_timers",
    )

    def __init__(
        self,
        *,
        max_timers: int = DEFAULT_MAX_TIMERS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the cache.

        Args:
            max_timers: Maximum concurrently scheduled TTL timers (0 disables timers)
            clock: Monotonic time source (injectable for tests)

        Raises:
            ValueError: If max_timers is negative
        """
        if max_timers < 0:
            msg = "max_timers must be non-negative"
            raise ValueError(msg)
        self._max_timers = max_timers
        self._clock = clock
        self._lock = threading.RLock()
        self._entries: dict[int, _WeakEntry] = {}
        self._active_timers = 0
        self._timers = DeadlineQueue()
        self._destroyed = False

    # ------------------------------------------------------------------
    # Internal removal paths
    # ------------------------------------------------------------------

    def _cancel_timer(self, entry: _WeakEntry) -> None:
        if entry.timer is not None:
            self._timers.cancel(entry.timer)
            entry.timer = None
            self._active_timers -= 1

    def _discard(self, ident: int, dead_ref: weakref.ReferenceType[object]) -> None:
        with self._lock:
            entry = self._entries.get(ident)
            # id() values are reused after collection; match the exact weakref
            if entry is not None and entry.ref is dead_ref:
                self._cancel_timer(entry)
                del self._entries[ident]

    def _expire(self, ident: int, entry: _WeakEntry) -> None:
        with self._lock:
            if entry.timer is not None:
                entry.timer = None
                self._active_timers -= 1
            if self._entries.get(ident) is entry:
                del self._entries[ident]

    def _live_entry(self, key: K) -> _WeakEntry | None:
        ident = id(key)
        entry = self._entries.get(ident)
        if entry is None or entry.ref() is not key:
            return None
        if entry.expires is not None and self._clock() >= entry.expires:
            self._cancel_timer(entry)
            del self._entries[ident]
            return None
        return entry

    # ------------------------------------------------------------------
    # Cache contract
    # ------------------------------------------------------------------

    def get(self, key: K, default: V | None = None) -> V | None:
        """Return the value cached for this exact key object."""
        with self._lock:
            entry = self._live_entry(key)
            return default if entry is None else entry.value  # type: ignore[return-value]

    def set(self, key: K, value: V, ttl: float | None = None) -> None:
        """Cache a value for a key object.

        Args:
            key: Key object (must support weak references)
            value: Value to cache
            ttl: Lifetime in seconds; None or 0 means no expiry

        Raises:
            TypeError: If key cannot be weakly referenced
        """
        if self._destroyed:
            return

        ident = id(key)
        callback = functools.partial(_on_key_collected, weakref.ref(self), ident)
        try:
            ref = weakref.ref(key, callback)
        except TypeError:
            msg = f"{type(key).__name__} keys cannot be weakly referenced"
            raise TypeError(msg) from None

        expires = self._clock() + ttl if ttl else None
        entry = _WeakEntry(ref=ref, value=value, expires=expires)

        with self._lock:
            existing = self._entries.get(ident)
            if existing is not None:
                self._cancel_timer(existing)

            if ttl and ttl > 0:
                if self._active_timers < self._max_timers:
                    entry.timer = self._timers.submit(
                        ttl,
                        functools.partial(_on_timer_expired, weakref.ref(self), ident, entry),
                    )
                    self._active_timers += 1
                else:
                    logger.debug(
                        "Timer cap (%d) reached; entry expires lazily", self._max_timers
                    )

            self._entries[ident] = entry

    def has(self, key: K) -> bool:
        """True if a non-expired entry exists for this exact key object."""
        with self._lock:
            return self._live_entry(key) is not None

    def delete(self, key: K) -> bool:
        """Remove the entry for a key object. Returns True if it existed."""
        with self._lock:
            ident = id(key)
            entry = self._entries.get(ident)
            if entry is None or entry.ref() is not key:
                return False
            self._cancel_timer(entry)
            del self._entries[ident]
            return True

    def clear(self) -> None:
        """Remove every entry and cancel every timer."""
        with self._lock:
            for entry in list(self._entries.values()):
                self._cancel_timer(entry)
            self._entries.clear()
            self._active_timers = 0

    @property
    def size(self) -> int:
        """Number of entries whose key is alive and not expired."""
        with self._lock:
            now = self._clock()
            return sum(
                1
                for entry in list(self._entries.values())
                if entry.ref() is not None and (entry.expires is None or now < entry.expires)
            )

    def __len__(self) -> int:
        return self.size

    @property
    def active_timers(self) -> int:
        """Number of TTL timers currently scheduled."""
        with self._lock:
            return self._active_timers

    @property
    def max_timers(self) -> int:
        """Cap on concurrently scheduled TTL timers."""
        return self._max_timers

    def destroy(self) -> None:
        """Cancel every timer and drop all entries. Idempotent."""
        with self._lock:
            if self._destroyed:
                return
            self._destroyed = True
        self.clear()
        self._timers.close()
        logger.debug("Weak-identity cache destroyed")
