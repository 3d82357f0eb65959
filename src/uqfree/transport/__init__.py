"""Transport layer for the remote custodian API.

- base: the Transport and ObjectCache interfaces
- client: HttpTransport (httpx, JSON over HTTP)
- cache: MemoryCache (read-through cache fed by fetches and push handlers)
"""

from uqfree.transport.base import ObjectCache, Transport
from uqfree.transport.cache import MemoryCache
from uqfree.transport.client import HttpTransport

__all__ = ["HttpTransport", "MemoryCache", "ObjectCache", "Transport"]
