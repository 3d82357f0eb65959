"""In-memory cache of remote records.

The cache uses an OrderedDict with optional TTL expiration and LRU eviction
when max_size is reached. Push handlers write into it, and the HTTP transport
reads through it on non-forced fetches, so an event delivered to a web
handler becomes visible to the next ``refresh()`` of the matching request.
"""

import time
from collections import OrderedDict
from threading import Lock
from typing import Any, Mapping, Optional

# Default max cache size (number of entries)
DEFAULT_MAX_SIZE = 1000


def _cache_key(kind: str, uuid: str) -> tuple[str, str]:
    # ObjectType members and plain strings must map to the same key
    return (getattr(kind, "value", kind), uuid)


class CacheEntry:
    """Cache entry with optional TTL expiration."""

    def __init__(self, data: dict[str, Any], ttl: Optional[float]) -> None:
        self.data = data
        self.expires_at = None if ttl is None else time.monotonic() + ttl

    def is_expired(self) -> bool:
        return self.expires_at is not None and time.monotonic() >= self.expires_at


class MemoryCache:
    """Thread-safe in-memory LRU cache of remote records.

    Entries never expire unless ``default_ttl`` is set.

    Example:
        >>> cache = MemoryCache()
        >>> cache.write("sign", "3f6c...", {"type": "sign", "uuid": "3f6c...", "status_code": 1})
        >>> cache.read("sign", "3f6c...")["status_code"]
        1
    """

    def __init__(
        self,
        default_ttl: Optional[float] = None,
        max_size: int = DEFAULT_MAX_SIZE,
    ) -> None:
        self._cache: OrderedDict[tuple[str, str], CacheEntry] = OrderedDict()
        self._lock = Lock()
        self._default_ttl = default_ttl
        self._max_size = max_size

    def read(self, kind: str, uuid: str) -> Optional[dict[str, Any]]:
        key = _cache_key(kind, uuid)
        with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                return None
            if entry.is_expired():
                del self._cache[key]
                return None
            self._cache.move_to_end(key)
            return dict(entry.data)

    def write(self, kind: str, uuid: str, data: Mapping[str, Any]) -> None:
        key = _cache_key(kind, uuid)
        with self._lock:
            if key in self._cache:
                del self._cache[key]
            elif self._max_size > 0:
                while len(self._cache) >= self._max_size:
                    self._cache.popitem(last=False)
            self._cache[key] = CacheEntry(dict(data), self._default_ttl)

    def invalidate(self, kind: str, uuid: str) -> None:
        with self._lock:
            self._cache.pop(_cache_key(kind, uuid), None)

    def clear_all(self) -> None:
        with self._lock:
            self._cache.clear()

    def size(self) -> int:
        with self._lock:
            return len(self._cache)
