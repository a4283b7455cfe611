"""Tests for storage backends and the storage-backed cache.

Covers mirror reads, debounced flushing, hydration from a persisted index,
expiry, and degradation to memory-only operation on backend failure.

Python 3.13+.
"""

import json
import logging
import threading
from pathlib import Path

import pytest

from i18ncore.diagnostics import StorageBackendError
from i18ncore.runtime.storage import JsonFileStorage, MemoryStorage
from i18ncore.runtime.storage_cache import StorageCache

INDEX = "i18n_cache___index__"


class FailingStorage:
    """Backend whose every operation fails."""

    def read(self, key: str) -> str | None:
        raise StorageBackendError("unavailable", key=key, operation="read")

    def write(self, key: str, value: str) -> None:
        raise StorageBackendError("unavailable", key=key, operation="write")

    def remove(self, key: str) -> None:
        raise StorageBackendError("unavailable", key=key, operation="remove")


@pytest.fixture
def backend() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def cache(backend: MemoryStorage, clock):
    """StorageCache with a long debounce; tests flush explicitly."""
    storage_cache = StorageCache(backend, debounce=60, clock=clock)
    yield storage_cache
    storage_cache.destroy()


class TestMemoryStorage:
    """Process-local backend."""

    def test_read_write_remove(self) -> None:
        storage = MemoryStorage()
        assert storage.read("k") is None
        storage.write("k", "v")
        assert storage.read("k") == "v"
        storage.remove("k")
        storage.remove("k")
        assert storage.read("k") is None

    def test_quota(self) -> None:
        storage = MemoryStorage(max_items=1)
        storage.write("a", "1")
        storage.write("a", "2")
        with pytest.raises(StorageBackendError) as exc_info:
            storage.write("b", "1")
        assert exc_info.value.operation == "write"
        assert exc_info.value.key == "b"

    def test_keys_snapshot(self) -> None:
        storage = MemoryStorage()
        storage.write("a", "1")
        storage.write("b", "2")
        assert sorted(storage.keys()) == ["a", "b"]
        assert len(storage) == 2


class TestJsonFileStorage:
    """Single-document file backend."""

    def test_missing_file_is_empty(self, tmp_path: Path) -> None:
        assert JsonFileStorage(tmp_path / "cache.json").read("k") is None

    def test_write_persists_document(self, tmp_path: Path) -> None:
        path = tmp_path / "nested" / "cache.json"
        storage = JsonFileStorage(path)
        storage.write("greeting", "héllo")
        assert json.loads(path.read_text(encoding="utf-8")) == {"greeting": "héllo"}
        assert JsonFileStorage(path).read("greeting") == "héllo"

    def test_remove(self, tmp_path: Path) -> None:
        path = tmp_path / "cache.json"
        storage = JsonFileStorage(path)
        storage.write("a", "1")
        storage.write("b", "2")
        storage.remove("a")
        storage.remove("missing")
        assert json.loads(path.read_text(encoding="utf-8")) == {"b": "2"}

    def test_no_temp_files_left(self, tmp_path: Path) -> None:
        storage = JsonFileStorage(tmp_path / "cache.json")
        storage.write("a", "1")
        assert [p.name for p in tmp_path.iterdir()] == ["cache.json"]

    def test_corrupt_file_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "cache.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(StorageBackendError, match="not valid JSON"):
            JsonFileStorage(path).read("a")

    def test_non_object_document_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "cache.json"
        path.write_text("[1, 2]", encoding="utf-8")
        with pytest.raises(StorageBackendError, match="JSON object"):
            JsonFileStorage(path).read("a")


class TestReadsAndWrites:
    """Mirror and pending-write behavior."""

    def test_set_visible_before_flush(self, cache: StorageCache, backend: MemoryStorage) -> None:
        cache.set("k", "v")
        assert cache.get("k") == "v"
        assert cache.pending_writes == 1
        assert backend.read("i18n_cache_k") is None

    def test_flush_persists_entry_and_index(
        self, cache: StorageCache, backend: MemoryStorage
    ) -> None:
        cache.set("b", {"n": 1})
        cache.set("a", [1, 2])
        cache.flush()
        assert cache.pending_writes == 0
        assert json.loads(backend.read("i18n_cache_b") or "") == {
            "value": {"n": 1},
            "expires": None,
        }
        assert json.loads(backend.read(INDEX) or "") == ["a", "b"]

    def test_burst_collapses_into_one_entry(
        self, cache: StorageCache, backend: MemoryStorage
    ) -> None:
        for i in range(10):
            cache.set("k", i)
        assert cache.pending_writes == 1
        cache.flush()
        assert json.loads(backend.read("i18n_cache_k") or "")["value"] == 9

    def test_missing_key_default(self, cache: StorageCache) -> None:
        assert cache.get("absent") is None
        assert cache.get("absent", "fallback") == "fallback"
        assert not cache.has("absent")

    def test_read_through_to_backend(self, backend: MemoryStorage, clock) -> None:
        backend.write("i18n_cache_k", json.dumps({"value": "stored", "expires": None}))
        storage_cache = StorageCache(backend, debounce=60, clock=clock)
        assert storage_cache.get("k") == "stored"
        storage_cache.destroy()

    def test_undecodable_backend_entry_ignored(self, backend: MemoryStorage, clock) -> None:
        backend.write("i18n_cache_k", "garbage")
        storage_cache = StorageCache(backend, debounce=60, clock=clock)
        assert storage_cache.get("k") is None
        assert not storage_cache.degraded
        storage_cache.destroy()

    def test_custom_prefix(self, backend: MemoryStorage, clock) -> None:
        storage_cache = StorageCache(backend, prefix="app:", debounce=60, clock=clock)
        storage_cache.set("k", 1)
        storage_cache.flush()
        assert backend.read("app:k") is not None
        assert backend.read("app:__index__") == '["k"]'
        storage_cache.destroy()

    def test_mirror_bounded(self, backend: MemoryStorage, clock) -> None:
        storage_cache = StorageCache(backend, max_size=2, debounce=60, clock=clock)
        for key in "abc":
            storage_cache.set(key, key)
        assert len(storage_cache._mirror) == 2
        assert storage_cache.get("a") == "a"
        storage_cache.destroy()

    def test_non_positive_max_size_uses_default(self, backend: MemoryStorage) -> None:
        storage_cache = StorageCache(backend, max_size=0)
        assert storage_cache.max_size == 100
        storage_cache.destroy()


class TestDebounce:
    """Writes are flushed after the quiet period."""

    def test_flush_after_delay(self, backend: MemoryStorage) -> None:
        storage_cache = StorageCache(backend, debounce=0.05)
        storage_cache.set("k", "v")
        waiter = threading.Event()
        for _ in range(200):
            if backend.read("i18n_cache_k") is not None:
                break
            waiter.wait(0.01)
        assert backend.read("i18n_cache_k") is not None
        assert storage_cache.pending_writes == 0
        storage_cache.destroy()

    def test_invalid_debounce(self, backend: MemoryStorage) -> None:
        with pytest.raises(ValueError, match="delay"):
            StorageCache(backend, debounce=0)


class TestExpiry:
    """Per-entry TTL in wall-clock seconds."""

    def test_expired_entry_dropped(self, cache: StorageCache, backend: MemoryStorage, clock) -> None:
        cache.set("k", "v", ttl=10)
        cache.flush()
        clock.advance(10)
        assert cache.get("k") is None
        assert backend.read("i18n_cache_k") is None
        assert json.loads(backend.read(INDEX) or "") == []

    def test_expiry_persisted_as_epoch_seconds(
        self, cache: StorageCache, backend: MemoryStorage, clock
    ) -> None:
        cache.set("k", "v", ttl=10)
        cache.flush()
        assert json.loads(backend.read("i18n_cache_k") or "")["expires"] == clock.now + 10


class TestHydration:
    """A new instance restores entries from the persisted index."""

    def test_hydrates_live_entries(self, backend: MemoryStorage, clock) -> None:
        first = StorageCache(backend, debounce=60, clock=clock)
        first.set("a", 1)
        first.set("b", 2, ttl=5)
        first.destroy()

        second = StorageCache(backend, debounce=60, clock=clock)
        assert second.get("a") == 1
        assert second.get("b") == 2
        assert second.size == 2
        second.destroy()

    def test_expired_entries_removed_on_hydration(self, backend: MemoryStorage, clock) -> None:
        first = StorageCache(backend, debounce=60, clock=clock)
        first.set("a", 1)
        first.set("b", 2, ttl=5)
        first.destroy()

        clock.advance(6)
        second = StorageCache(backend, debounce=60, clock=clock)
        assert second.size == 1
        assert backend.read("i18n_cache_b") is None
        assert json.loads(backend.read(INDEX) or "") == ["a"]
        second.destroy()

    def test_corrupt_index_ignored(
        self, backend: MemoryStorage, clock, caplog: pytest.LogCaptureFixture
    ) -> None:
        backend.write(INDEX, "{broken")
        with caplog.at_level(logging.WARNING, logger="i18ncore.runtime.storage_cache"):
            storage_cache = StorageCache(backend, debounce=60, clock=clock)
        assert storage_cache.size == 0
        assert "index is corrupt" in caplog.text
        storage_cache.destroy()


class TestDeleteAndClear:
    """Removal reaches the backend."""

    def test_delete_pending(self, cache: StorageCache) -> None:
        cache.set("k", "v")
        assert cache.delete("k")
        assert cache.pending_writes == 0
        assert not cache.delete("k")

    def test_delete_persisted(self, cache: StorageCache, backend: MemoryStorage) -> None:
        cache.set("k", "v")
        cache.flush()
        assert cache.delete("k")
        assert backend.read("i18n_cache_k") is None
        assert json.loads(backend.read(INDEX) or "") == []

    def test_clear_removes_persisted_keys(
        self, cache: StorageCache, backend: MemoryStorage
    ) -> None:
        cache.set("a", 1)
        cache.set("b", 2)
        cache.flush()
        cache.set("c", 3)
        cache.clear()
        assert cache.size == 0
        assert cache.pending_writes == 0
        assert len(backend) == 0


class TestDegradation:
    """Backend failures switch the cache to memory-only."""

    def test_no_backend_is_memory_only(self) -> None:
        storage_cache = StorageCache()
        storage_cache.set("k", "v")
        assert storage_cache.degraded
        assert storage_cache.pending_writes == 0
        assert storage_cache.get("k") == "v"
        storage_cache.destroy()

    def test_failing_backend_at_startup(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="i18ncore.runtime.storage_cache"):
            storage_cache = StorageCache(FailingStorage(), debounce=60)
        assert storage_cache.degraded
        storage_cache.set("k", "v")
        assert storage_cache.get("k") == "v"
        assert caplog.text.count("continuing memory-only") == 1
        storage_cache.destroy()

    def test_quota_exceeded_mid_flush(self, clock) -> None:
        backend = MemoryStorage(max_items=1)
        storage_cache = StorageCache(backend, debounce=60, clock=clock)
        storage_cache.set("a", 1)
        storage_cache.set("b", 2)
        storage_cache.flush()
        assert storage_cache.degraded
        assert storage_cache.get("a") == 1
        assert storage_cache.get("b") == 2
        storage_cache.set("c", 3)
        assert storage_cache.pending_writes == 0
        storage_cache.destroy()

    def test_non_serializable_value_skipped(
        self, cache: StorageCache, backend: MemoryStorage, caplog: pytest.LogCaptureFixture
    ) -> None:
        sentinel = object()
        cache.set("bad", sentinel)
        cache.set("good", "ok")
        with caplog.at_level(logging.WARNING, logger="i18ncore.runtime.storage_cache"):
            cache.flush()
        assert "non-serializable" in caplog.text
        assert backend.read("i18n_cache_bad") is None
        assert backend.read("i18n_cache_good") is not None
        assert cache.get("bad") is sentinel
        assert not cache.degraded


class TestLifecycle:
    """destroy() flushes synchronously."""

    def test_destroy_flushes(self, backend: MemoryStorage, clock) -> None:
        storage_cache = StorageCache(backend, debounce=60, clock=clock)
        storage_cache.set("k", "v")
        storage_cache.destroy()
        assert backend.read("i18n_cache_k") is not None

    def test_destroy_idempotent_and_final(self, backend: MemoryStorage, clock) -> None:
        storage_cache = StorageCache(backend, debounce=60, clock=clock)
        storage_cache.destroy()
        storage_cache.destroy()
        storage_cache.set("k", "v")
        assert storage_cache.pending_writes == 0
        assert storage_cache.get("k") is None


class FlakyStorage(MemoryStorage):
    """MemoryStorage whose reads can be switched to fail."""

    def __init__(self) -> None:
        super().__init__()
        self.fail_reads = False

    def read(self, key: str) -> str | None:
        if self.fail_reads:
            raise StorageBackendError("unavailable", key=key, operation="read")
        return super().read(key)


class RecordingStorage(MemoryStorage):
    """MemoryStorage that records writes and can run a hook on the next one."""

    def __init__(self) -> None:
        super().__init__()
        self.writes: list[str] = []
        self.on_next_write = None

    def write(self, key: str, value: str) -> None:
        self.writes.append(key)
        super().write(key, value)
        hook, self.on_next_write = self.on_next_write, None
        if hook is not None:
            hook()


class TestDegradedReachability:
    """Nothing set and not deleted disappears after the backend degrades."""

    def test_persisted_entries_still_readable_after_write_failure(self, clock) -> None:
        storage_cache = StorageCache(
            MemoryStorage(max_items=1), max_size=1, debounce=60, clock=clock
        )
        storage_cache.set("a", 1)
        storage_cache.set("b", 2)
        storage_cache.flush()

        assert storage_cache.degraded
        assert storage_cache.size == 2
        assert storage_cache.get("a") == 1
        assert storage_cache.has("a")
        assert storage_cache.get("b") == 2
        storage_cache.destroy()

    def test_unwritten_entries_survive_mirror_eviction(self, clock) -> None:
        storage_cache = StorageCache(
            MemoryStorage(max_items=0), max_size=1, debounce=60, clock=clock
        )
        storage_cache.set("a", 1)
        storage_cache.set("b", 2)
        storage_cache.flush()
        storage_cache.set("c", 3)

        assert storage_cache.degraded
        assert storage_cache.pending_writes == 0
        assert [storage_cache.get(key) for key in "abc"] == [1, 2, 3]
        assert storage_cache.size == 3
        storage_cache.destroy()

    def test_delete_while_degraded_hides_persisted_copy(self, clock) -> None:
        backend = MemoryStorage(max_items=1)
        storage_cache = StorageCache(backend, max_size=1, debounce=60, clock=clock)
        storage_cache.set("a", 1)
        storage_cache.set("b", 2)
        storage_cache.flush()

        assert storage_cache.delete("a")
        assert backend.read("i18n_cache_a") is not None
        assert storage_cache.get("a") is None
        assert not storage_cache.has("a")
        assert storage_cache.size == 1

        storage_cache.set("a", 10)
        assert storage_cache.get("a") == 10
        storage_cache.destroy()

    def test_clear_while_degraded_hides_persisted_entries(self, clock) -> None:
        storage_cache = StorageCache(
            MemoryStorage(max_items=1), max_size=1, debounce=60, clock=clock
        )
        storage_cache.set("a", 1)
        storage_cache.set("b", 2)
        storage_cache.flush()
        storage_cache.clear()

        assert storage_cache.size == 0
        assert storage_cache.get("a") is None
        storage_cache.set("c", 3)
        assert storage_cache.get("c") == 3
        storage_cache.destroy()

    def test_read_failure_keeps_size_and_has_consistent(self, clock) -> None:
        backend = FlakyStorage()
        first = StorageCache(backend, debounce=60, clock=clock)
        for key in "abc":
            first.set(key, key)
        first.destroy()

        second = StorageCache(backend, max_size=2, debounce=60, clock=clock)
        assert second.size == 3
        backend.fail_reads = True

        assert second.get("a") is None
        assert second.degraded
        assert second.size == 2
        assert [second.has(key) for key in "abc"] == [False, True, True]
        second.destroy()

    def test_non_serializable_value_survives_mirror_eviction(
        self, backend: MemoryStorage, clock
    ) -> None:
        storage_cache = StorageCache(backend, max_size=1, debounce=60, clock=clock)
        sentinel = object()
        storage_cache.set("bad", sentinel)
        storage_cache.flush()
        storage_cache.set("other", 1)

        assert storage_cache.get("bad") is sentinel
        assert not storage_cache.degraded
        storage_cache.destroy()


class TestFlushSnapshot:
    """Writes issued during a flush land in the next batch, exactly once."""

    def test_write_during_flush_is_kept_for_next_flush(self, clock) -> None:
        backend = RecordingStorage()
        storage_cache = StorageCache(backend, debounce=60, clock=clock)
        storage_cache.set("a", 1)
        storage_cache.set("b", 2)
        backend.on_next_write = lambda: storage_cache.set("z", 26)

        storage_cache.flush()

        assert storage_cache.pending_writes == 1
        assert backend.read("i18n_cache_z") is None
        assert storage_cache.get("z") == 26
        assert backend.writes == ["i18n_cache_a", "i18n_cache_b", INDEX]

        backend.writes.clear()
        storage_cache.flush()

        assert backend.writes == ["i18n_cache_z", INDEX]
        assert storage_cache.pending_writes == 0
        assert json.loads(backend.read(INDEX) or "") == ["a", "b", "z"]

        backend.writes.clear()
        storage_cache.flush()
        assert backend.writes == []
        storage_cache.destroy()

    def test_delete_during_flush_is_not_resurrected(self, clock) -> None:
        backend = RecordingStorage()
        storage_cache = StorageCache(backend, debounce=60, clock=clock)
        storage_cache.set("a", 1)
        backend.on_next_write = lambda: storage_cache.delete("a")

        storage_cache.flush()

        assert backend.read("i18n_cache_a") is None
        assert storage_cache.get("a") is None
        assert storage_cache.size == 0
        storage_cache.destroy()

    def test_delete_during_failing_flush_hides_persisted_copy(self, clock) -> None:
        backend = RecordingStorage()
        backend.max_items = 1
        storage_cache = StorageCache(backend, debounce=60, clock=clock)
        storage_cache.set("a", 1)
        storage_cache.set("b", 2)
        backend.on_next_write = lambda: storage_cache.delete("a")

        storage_cache.flush()

        assert storage_cache.degraded
        assert backend.read("i18n_cache_a") is not None
        assert storage_cache.get("a") is None
        assert storage_cache.get("b") == 2
        assert storage_cache.size == 1
        storage_cache.destroy()
