"""Synchronous HTTP transport for the remote custodian API.

The API is JSON over HTTP:

- ``POST {base}/{kind}`` creates an object from the JSON body
- ``GET {base}/{kind}/{uuid}`` fetches an object

Successful responses wrap the object as ``{"result": {...}}``; failures carry
an ``errors`` member. Every returned record must have ``type`` and ``uuid``.

Calls are never retried: a failed create or fetch surfaces immediately as
``ProtocolError`` (or ``TransportError`` when the service is unreachable).

Example:
    >>> with HttpTransport(api_key="...") as transport:
    ...     record = transport.fetch(ObjectType.ASSET, "0b1c...")
"""

from __future__ import annotations

from types import TracebackType
from typing import Any, Mapping, Optional

import httpx

from uqfree.config import Settings, load_settings
from uqfree.errors import DecodeError, ProtocolError, TransportError
from uqfree.models.constants import API_MEDIA_TYPE
from uqfree.models.enums import ObjectType
from uqfree.observability import get_logger, sanitize_for_logging
from uqfree.transport.base import ObjectCache
from uqfree.transport.cache import MemoryCache

logger = get_logger(__name__)

API_KEY_HEADER = "X-Api-Key"


def _kind_path(kind: ObjectType | str) -> str:
    return kind.value if isinstance(kind, ObjectType) else str(kind)


def _require_identity(data: Any) -> dict[str, Any]:
    if not isinstance(data, dict):
        raise DecodeError("ObjectRecord", f"expected an object, got {type(data).__name__}")
    missing = [field for field in ("type", "uuid") if field not in data]
    if missing:
        raise DecodeError(
            "ObjectRecord",
            ", ".join(f"expected property '{m}' in response" for m in missing),
            missing=missing,
        )
    return data


class HttpTransport:
    """httpx-backed ``Transport`` with an optional read-through cache.

    Args:
        base_url: API base URL (defaults to settings / UQ_API_URL)
        api_key: Service provider API key (defaults to settings / UQ_API_KEY)
        timeout: Request timeout in seconds
        cache: ObjectCache used for non-forced fetches. Defaults to a
            MemoryCache; pass ``cache=None`` together with ``use_cache=False``
            to disable caching entirely.
        transport: Optional httpx transport (e.g. httpx.MockTransport in tests)
        settings: Pre-loaded settings; loaded from the environment if omitted
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        *,
        timeout: Optional[float] = None,
        cache: Optional[ObjectCache] = None,
        use_cache: bool = True,
        transport: Optional[httpx.BaseTransport] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        settings = settings or load_settings()
        self.base_url = (base_url or settings.api_url).rstrip("/")
        self._cache: Optional[ObjectCache] = None
        if use_cache:
            self._cache = cache if cache is not None else MemoryCache()
        headers = {
            "Accept": API_MEDIA_TYPE,
            "Content-Type": "application/json",
        }
        self._client = httpx.Client(
            base_url=self.base_url,
            headers=headers,
            timeout=timeout if timeout is not None else settings.timeout,
            transport=transport,
        )
        self.set_api_key(api_key if api_key is not None else settings.api_key)
        self.last_status: Optional[int] = None

    def __enter__(self) -> HttpTransport:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    @property
    def cache(self) -> Optional[ObjectCache]:
        return self._cache

    def set_api_key(self, api_key: Optional[str]) -> None:
        """Set the API key header, or clear it when ``api_key`` is falsy."""
        if api_key:
            self._client.headers[API_KEY_HEADER] = api_key
        else:
            self._client.headers.pop(API_KEY_HEADER, None)

    def create(self, kind: ObjectType, payload: Mapping[str, Any]) -> dict[str, Any]:
        record = _require_identity(self._request("POST", _kind_path(kind), dict(payload)))
        self._cache_write(record)
        return record

    def fetch(self, kind: ObjectType, uuid: str, *, force: bool = False) -> dict[str, Any]:
        path = _kind_path(kind)
        if not force and self._cache is not None:
            hit = self._cache.read(path, uuid)
            if hit is not None:
                logger.debug("transport.cache_hit", kind=path, uuid=uuid)
                return hit
        record = _require_identity(self._request("GET", f"{path}/{uuid}"))
        self._cache_write(record)
        return record

    def _cache_write(self, record: dict[str, Any]) -> None:
        if self._cache is not None:
            self._cache.write(record["type"], record["uuid"], record)

    def _request(
        self, method: str, path: str, payload: Optional[dict[str, Any]] = None
    ) -> Any:
        logger.debug(
            "transport.request",
            method=method,
            path=path,
            payload=sanitize_for_logging(payload or {}),
        )
        try:
            response = self._client.request(method, path, json=payload)
        except httpx.TimeoutException as e:
            raise TransportError(
                f"Request timed out: {method} {path}", url=f"{self.base_url}/{path}"
            ) from e
        except httpx.HTTPError as e:
            raise TransportError(
                f"Connection error: {e}", url=f"{self.base_url}/{path}"
            ) from e

        self.last_status = response.status_code
        try:
            data = response.json()
        except ValueError as e:
            raise ProtocolError(
                f"Cannot decode JSON response: {e}", status_code=response.status_code
            ) from e

        if isinstance(data, dict) and data.get("errors"):
            logger.warning(
                "transport.remote_error",
                method=method,
                path=path,
                status_code=response.status_code,
            )
            raise ProtocolError(
                f"UQ free API returned error(s): {data['errors']}",
                status_code=response.status_code,
                errors=data["errors"] if isinstance(data["errors"], list) else [data["errors"]],
            )
        if response.is_error:
            raise ProtocolError(
                f"UQ free API returned HTTP {response.status_code}",
                status_code=response.status_code,
            )
        if not isinstance(data, dict) or "result" not in data:
            raise ProtocolError("No result in response", status_code=response.status_code)

        result = data["result"]
        logger.debug(
            "transport.response",
            method=method,
            path=path,
            status_code=response.status_code,
            result=sanitize_for_logging(result) if isinstance(result, dict) else None,
        )
        return result
