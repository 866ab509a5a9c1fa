"""Tests for the in-memory and diskcache-backed stores."""

from __future__ import annotations

import time
from pathlib import Path

import pytest

from outputcache.cache import DiskCacheStore, MemoryCacheStore


class TestMemoryCacheStore:
    def test_set_get_contains(self, memory_store: MemoryCacheStore, clock) -> None:
        memory_store.set("k", "v", clock() + 10)
        assert memory_store.contains("k")
        assert memory_store.get("k") == "v"

    def test_miss(self, memory_store: MemoryCacheStore) -> None:
        assert memory_store.contains("missing") is False
        assert memory_store.get("missing") is None

    def test_expired_entry_behaves_like_miss(self, memory_store: MemoryCacheStore, clock) -> None:
        memory_store.set("k", "v", clock() + 10)
        clock.advance(10)
        assert memory_store.contains("k") is False
        assert memory_store.get("k") is None
        assert len(memory_store) == 0

    def test_sweep_removes_only_expired(self, memory_store: MemoryCacheStore, clock) -> None:
        memory_store.set("short", "v", clock() + 1)
        memory_store.set("long", "v", clock() + 100)
        clock.advance(5)
        assert memory_store.sweep() == 1
        assert len(memory_store) == 1
        assert memory_store.contains("long")

    def test_delete_and_clear(self, memory_store: MemoryCacheStore, clock) -> None:
        memory_store.set("a", 1, clock() + 10)
        memory_store.set("b", 2, clock() + 10)
        memory_store.delete("a")
        memory_store.delete("never-there")
        assert not memory_store.contains("a")
        memory_store.clear()
        assert len(memory_store) == 0

    def test_context_manager_clears_on_exit(self, clock) -> None:
        with MemoryCacheStore(clock=clock) as store:
            store.set("k", "v", clock() + 10)
        assert len(store) == 0

    def test_maxsize_evicts_least_recently_used(self, clock) -> None:
        store = MemoryCacheStore(clock=clock, maxsize=2)
        store.set("a", 1, clock() + 10)
        store.set("b", 2, clock() + 10)
        store.get("a")
        store.set("c", 3, clock() + 10)
        assert store.contains("a")
        assert not store.contains("b")
        assert store.contains("c")

    def test_per_entry_expiry(self, memory_store: MemoryCacheStore, clock) -> None:
        memory_store.set("short", "v", clock() + 1)
        memory_store.set("long", "v", clock() + 100)
        clock.advance(1)
        assert memory_store.get("short") is None
        assert memory_store.get("long") == "v"


class TestDiskCacheStore:
    @pytest.fixture()
    def disk_store(self, tmp_path: Path) -> DiskCacheStore:
        store = DiskCacheStore(tmp_path / "responses")
        store.open()
        yield store
        store.close()

    def test_set_get_contains(self, disk_store: DiskCacheStore) -> None:
        disk_store.set("k", "v", time.time() + 60)
        assert disk_store.contains("k")
        assert disk_store.get("k") == "v"
        assert len(disk_store) == 1

    def test_already_expired_write_is_dropped(self, disk_store: DiskCacheStore) -> None:
        disk_store.set("k", "v", time.time() - 1)
        assert disk_store.contains("k") is False

    def test_ttl_expiry(self, disk_store: DiskCacheStore) -> None:
        disk_store.set("k", "v", time.time() + 1)
        assert disk_store.contains("k")
        time.sleep(1.5)
        assert disk_store.contains("k") is False
        assert disk_store.get("k") is None

    def test_clear_on_open(self, tmp_path: Path) -> None:
        first = DiskCacheStore(tmp_path / "responses")
        first.set("k", "v", time.time() + 60)
        first.close()

        second = DiskCacheStore(tmp_path / "responses")
        second.open()
        try:
            assert second.contains("k") is False
        finally:
            second.close()

    def test_keep_on_open(self, tmp_path: Path) -> None:
        first = DiskCacheStore(tmp_path / "responses")
        first.set("k", "v", time.time() + 60)
        first.close()

        second = DiskCacheStore(tmp_path / "responses", clear_on_open=False)
        try:
            assert second.get("k") == "v"
        finally:
            second.close()

    def test_directory(self, disk_store: DiskCacheStore, tmp_path: Path) -> None:
        assert disk_store.directory == tmp_path / "responses"

    def test_temporary_directory(self) -> None:
        store = DiskCacheStore()
        try:
            store.open()
            assert store.directory is not None
        finally:
            store.close()

    def test_double_close(self, tmp_path: Path) -> None:
        store = DiskCacheStore(tmp_path)
        store.open()
        store.close()
        store.close()
