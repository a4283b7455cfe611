"""Caching Example - Cache Policies Behind i18ncore.

Demonstrates:
1. Rendered-message cache statistics on a Translator
2. A TTL-bound LRU cache
3. Per-object caching that follows object lifetime (WeakIdentityCache)
4. Persisting renderings across runs (StorageCache + JsonFileStorage)

Python 3.13+.
"""

from __future__ import annotations

import gc
import tempfile
from pathlib import Path

from i18ncore import LRUCache, StorageCache, Translator, WeakIdentityCache
from i18ncore.runtime import JsonFileStorage


def example_1_translator_stats() -> None:
    """Example 1: Cache hits on repeated lookups."""
    print("=" * 50)
    print("Example 1: Translator Cache Statistics")
    print("=" * 50)

    with Translator("en", {"en": {"hello": "Hello, {{name}}!"}}) as translator:
        for _ in range(3):
            translator.t("hello", params={"name": "Ada"})
        stats = translator.get_cache_stats()
        print(f"hits={stats['hits']} misses={stats['misses']} size={stats['size']}")
        # Output: hits=2 misses=1 size=1


def example_2_ttl() -> None:
    """Example 2: Entries expiring after a lifetime."""
    print("\n" + "=" * 50)
    print("Example 2: TTL-bound LRU Cache")
    print("=" * 50)

    now = [0.0]
    cache: LRUCache[str, str] = LRUCache(max_size=2, ttl=30, clock=lambda: now[0])
    cache.set("session", "active")
    now[0] = 31.0
    print(cache.get("session", "expired"))
    # Output: expired
    cache.destroy()


def example_3_weak_identity() -> None:
    """Example 3: Entries vanish with their key objects."""
    print("\n" + "=" * 50)
    print("Example 3: WeakIdentityCache")
    print("=" * 50)

    class Component:
        pass

    cache: WeakIdentityCache[Component, str] = WeakIdentityCache()
    component = Component()
    cache.set(component, "rendered label")
    print(cache.size)
    # Output: 1
    del component
    gc.collect()
    print(cache.size)
    # Output: 0
    cache.destroy()


def example_4_persistent() -> None:
    """Example 4: A second cache instance sees the first one's writes."""
    print("\n" + "=" * 50)
    print("Example 4: StorageCache")
    print("=" * 50)

    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "i18n-cache.json"

        first = StorageCache(JsonFileStorage(path), debounce=0.2)
        first.set("en:hello", "Hello!")
        first.destroy()  # flushes pending writes

        second = StorageCache(JsonFileStorage(path))
        print(second.get("en:hello"))
        # Output: Hello!
        second.destroy()


if __name__ == "__main__":
    example_1_translator_stats()
    example_2_ttl()
    example_3_weak_identity()
    example_4_persistent()
