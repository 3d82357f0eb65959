"""Unit tests for the in-memory record cache.

Tests cover CacheEntry TTL expiration, read/write/invalidate, LRU eviction,
and key normalization between ObjectType members and plain strings.
"""

from __future__ import annotations

import pytest

from uqfree.models.enums import ObjectType
from uqfree.transport.cache import DEFAULT_MAX_SIZE, CacheEntry, MemoryCache


class MockMonotonic:
    """Mock time.monotonic() with a controllable current time."""

    def __init__(self, initial: float = 1000.0) -> None:
        self.current = initial

    def monotonic(self) -> float:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += seconds


@pytest.fixture
def clock(monkeypatch: pytest.MonkeyPatch) -> MockMonotonic:
    from uqfree.transport import cache as cache_module

    mock = MockMonotonic()
    monkeypatch.setattr(cache_module.time, "monotonic", mock.monotonic)
    return mock


def _record(uuid: str = "r-1", status: int = 1) -> dict[str, object]:
    return {"type": "sign", "uuid": uuid, "status_code": status}


class TestCacheEntry:
    def test_without_ttl_never_expires(self, clock: MockMonotonic) -> None:
        entry = CacheEntry(_record(), ttl=None)
        clock.advance(10**6)
        assert not entry.is_expired()

    def test_expires_after_ttl(self, clock: MockMonotonic) -> None:
        entry = CacheEntry(_record(), ttl=5.0)
        clock.advance(4.9)
        assert not entry.is_expired()
        clock.advance(0.1)
        assert entry.is_expired()


class TestMemoryCache:
    def test_defaults(self) -> None:
        cache = MemoryCache()
        assert cache._max_size == DEFAULT_MAX_SIZE
        assert cache.size() == 0

    def test_write_then_read(self) -> None:
        cache = MemoryCache()
        cache.write("sign", "r-1", _record())
        assert cache.read("sign", "r-1") == _record()

    def test_read_miss(self) -> None:
        assert MemoryCache().read("sign", "nope") is None

    def test_read_returns_copy(self) -> None:
        cache = MemoryCache()
        cache.write("sign", "r-1", _record())
        cache.read("sign", "r-1")["status_code"] = 99  # type: ignore[index]
        assert cache.read("sign", "r-1") == _record()

    def test_enum_and_string_keys_match(self) -> None:
        cache = MemoryCache()
        cache.write(ObjectType.SIGN, "r-1", _record())  # type: ignore[arg-type]
        assert cache.read("sign", "r-1") == _record()

    def test_overwrite(self) -> None:
        cache = MemoryCache()
        cache.write("sign", "r-1", _record(status=1))
        cache.write("sign", "r-1", _record(status=2))
        assert cache.read("sign", "r-1") == _record(status=2)
        assert cache.size() == 1

    def test_ttl_expiry_on_read(self, clock: MockMonotonic) -> None:
        cache = MemoryCache(default_ttl=1.0)
        cache.write("sign", "r-1", _record())
        clock.advance(2.0)
        assert cache.read("sign", "r-1") is None
        assert cache.size() == 0

    def test_lru_eviction(self) -> None:
        cache = MemoryCache(max_size=2)
        cache.write("sign", "a", _record("a"))
        cache.write("sign", "b", _record("b"))
        cache.read("sign", "a")
        cache.write("sign", "c", _record("c"))

        assert cache.read("sign", "b") is None
        assert cache.read("sign", "a") is not None
        assert cache.read("sign", "c") is not None

    def test_invalidate_and_clear(self) -> None:
        cache = MemoryCache()
        cache.write("sign", "a", _record("a"))
        cache.write("sign", "b", _record("b"))
        cache.invalidate("sign", "a")
        cache.invalidate("sign", "missing")
        assert cache.size() == 1
        cache.clear_all()
        assert cache.size() == 0
