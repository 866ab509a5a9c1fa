"""Shared test fixtures for outputcache.

Provides a controllable clock, isolated caches and settings, and an
isolated config environment. Process-wide state (settings and the default
response cache) is reset after every test.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from outputcache.cache import MemoryCacheStore, ResponseCache
from outputcache.config import reset_settings
from outputcache.interceptor import reset_default_cache
from outputcache.models import CacheProfile, OutputCacheSettings


class FakeClock:
    """A manually advanced clock returning POSIX-style seconds."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# ---------------------------------------------------------------------------
# Auto-reset process-wide state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_global_state() -> None:
    """Forget loaded settings and the default cache after every test."""
    yield
    reset_settings()
    reset_default_cache()


# ---------------------------------------------------------------------------
# Cache fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def memory_store(clock: FakeClock) -> MemoryCacheStore:
    return MemoryCacheStore(clock=clock)


@pytest.fixture
def response_cache(memory_store: MemoryCacheStore, clock: FakeClock) -> ResponseCache:
    """A ResponseCache over an isolated in-memory store and fake clock."""
    cache = ResponseCache(memory_store, clock=clock)
    yield cache
    cache.close()


# ---------------------------------------------------------------------------
# Settings fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def profile_settings() -> OutputCacheSettings:
    """Settings with a small profile table."""
    return OutputCacheSettings(
        profiles=[
            CacheProfile(name="Short", duration=60, enabled=True),
            CacheProfile(name="Long", duration=3600, enabled=True),
            CacheProfile(name="Off", duration=120, enabled=False),
        ]
    )


@pytest.fixture
def debug_settings() -> OutputCacheSettings:
    return OutputCacheSettings(debug=True)


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate settings resolution to a temporary directory.

    Clears all OUTPUTCACHE_* environment variables and changes the working
    directory to tmp_path so project-local settings files are not picked up.
    """
    for var in ["OUTPUTCACHE_CONFIG", "OUTPUTCACHE_DEBUG"]:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path
