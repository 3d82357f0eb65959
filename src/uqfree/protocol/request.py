"""Generic lifecycle of a request executed by the custodian device.

An asset request is prepared locally, submitted to the remote service
(PREPARED -> CREATED), and then waits for the device holder to approve or
deny it. That outcome is observed out of band, either by re-fetching the
request (``refresh``) or by applying a record delivered through a push event
(``apply``). Both paths end in the same idempotent update.

Example:
    >>> request = asset.sign(b"payload")      # submitted, state CREATED
    >>> ...                                   # device holder approves
    >>> request.refresh()
    <RequestState.ACCEPTED: 2>
    >>> request.verify()
    True
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from datetime import datetime
from typing import TYPE_CHECKING, Any, Callable, Mapping, Optional

from uqfree.errors import DecodeError, NotReadyError
from uqfree.models.base import decode_record
from uqfree.models.constants import DEBUG_POLL_INTERVAL
from uqfree.models.enums import ObjectType, RequestState
from uqfree.models.records import AssetRequestRecord
from uqfree.observability import get_logger
from uqfree.state.machine import check_transition
from uqfree.transport.base import Transport

if TYPE_CHECKING:
    from uqfree.asset import Asset

logger = get_logger(__name__)


class AssetRequest(ABC):
    """Base class for authenticate, sign and decrypt requests.

    Subclasses set ``kind`` and implement ``_payload``. A request built without
    ``uuid`` is new and starts in PREPARED; one built with ``uuid`` refers to an
    existing remote request (e.g. from a push event) and starts in CREATED
    until its record is applied.

    Attributes:
        uuid: Remote id, None until submitted
        asset_uuid: Id of the owning asset
        state: Current lifecycle state
        status_text: Remote human-readable status
        fingerprint: Hex SHA-256 digest sent to the remote service, if any
        nonce: Remote nonce (shown on the device), if any
        notify: Whether a push message was requested for the device
    """

    def __init__(
        self,
        transport: Transport,
        *,
        asset: Optional[Asset] = None,
        uuid: Optional[str] = None,
        asset_uuid: Optional[str] = None,
        notify: bool = True,
    ) -> None:
        self._transport = transport
        self._asset = asset
        self.uuid = uuid
        self.asset_uuid = asset.uuid if asset is not None else asset_uuid
        self.state = RequestState.PREPARED if uuid is None else RequestState.CREATED
        self.status_text: Optional[str] = None
        self.fingerprint: Optional[str] = None
        self.nonce: Optional[str] = None
        self.nonce_formatted: Optional[str] = None
        self.notify = notify
        self.created_at: Optional[datetime] = None
        self.updated_at: Optional[datetime] = None
        self._result: Optional[bytes] = None

    def __repr__(self) -> str:
        return f"{type(self).__name__}(uuid={self.uuid!r}, state={self.state.name})"

    @property
    def asset(self) -> Asset:
        """The owning asset, built from ``asset_uuid`` if not supplied."""
        if self._asset is None:
            from uqfree.asset import Asset

            if self.asset_uuid is None:
                raise NotReadyError(self.uuid, self.state.name.lower(), {"reason": "asset unknown"})
            self._asset = Asset(self.asset_uuid, self._transport)
        return self._asset

    @property
    def result(self) -> Optional[bytes]:
        """Raw result bytes returned by the device. Untrusted until verified."""
        return self._result

    def is_accepted(self) -> bool:
        return self.state is RequestState.ACCEPTED

    def is_terminal(self) -> bool:
        return self.state.is_terminal()

    @property
    @abstractmethod
    def kind(self) -> ObjectType:
        """Remote object type of this request."""

    @abstractmethod
    def _payload(self) -> dict[str, Any]:
        """Fields sent to the remote service on submit."""

    def submit(self) -> AssetRequest:
        """Create the request remotely (PREPARED -> CREATED).

        Raises:
            InvalidTransitionError: If the request was already submitted
            ProtocolError: If the remote service rejects the request; the
                request then stays PREPARED
        """
        check_transition(self.state, RequestState.CREATED, self.uuid)
        payload = self._payload()
        data = self._transport.create(self.kind, payload)
        record = decode_record(AssetRequestRecord, data)
        self._check_identity(record, check_uuid=False)
        self.uuid = record.uuid
        self.state = RequestState.CREATED
        self._absorb(record)
        logger.info(
            "request.submitted",
            kind=self.kind.value,
            request_id=self.uuid,
            asset_uuid=self.asset_uuid,
        )
        if record.status_code is not RequestState.CREATED:
            self._transition(record)
        return self

    def refresh(self, force: bool = False) -> RequestState:
        """Re-fetch the request and apply the remote state.

        Args:
            force: Bypass the transport's read-through cache

        Raises:
            NotReadyError: If the request was never submitted
            ProtocolError: If the fetch fails
        """
        if self.uuid is None:
            raise NotReadyError(None, self.state.name.lower(), {"reason": "not submitted"})
        self.apply(self._transport.fetch(self.kind, self.uuid, force=force))
        return self.state

    def apply(self, record: AssetRequestRecord | Mapping[str, Any]) -> bool:
        """Apply a remote record to this request.

        Applying the same state twice is a no-op, and a record that would move
        the request out of a terminal state is ignored.

        Returns:
            True if the state changed

        Raises:
            NotReadyError: If the request was never submitted
            DecodeError: If the record is malformed or belongs to another request
            InvalidTransitionError: If the record would move the request backwards
        """
        if self.uuid is None:
            raise NotReadyError(None, self.state.name.lower(), {"reason": "not submitted"})
        if not isinstance(record, AssetRequestRecord):
            record = decode_record(AssetRequestRecord, record)
        self._check_identity(record, check_uuid=True)

        if record.status_code is self.state:
            if not self.state.is_terminal():
                self._absorb(record)
            return False
        if self.state.is_terminal():
            logger.warning(
                "request.terminal_state_conflict",
                kind=self.kind.value,
                request_id=self.uuid,
                state=self.state.name.lower(),
                remote_state=record.status_code.name.lower(),
            )
            return False
        return self._transition(record)

    def _transition(self, record: AssetRequestRecord) -> bool:
        check_transition(self.state, record.status_code, self.uuid)
        previous = self.state
        self.state = record.status_code
        self._absorb(record)
        logger.info(
            "request.state_changed",
            kind=self.kind.value,
            request_id=self.uuid,
            from_state=previous.name.lower(),
            to_state=self.state.name.lower(),
            status_text=self.status_text,
        )
        return True

    def _check_identity(self, record: AssetRequestRecord, check_uuid: bool) -> None:
        if record.type != self.kind.value:
            raise DecodeError(
                AssetRequestRecord.__name__,
                f"expected type '{self.kind.value}', got '{record.type}'",
            )
        if check_uuid and record.uuid != self.uuid:
            raise DecodeError(
                AssetRequestRecord.__name__,
                f"record {record.uuid} does not belong to request {self.uuid}",
            )

    def _absorb(self, record: AssetRequestRecord) -> None:
        self.status_text = record.status_text
        if record.asset_uuid is not None:
            self.asset_uuid = record.asset_uuid
        if record.fingerprint is not None:
            self.fingerprint = record.fingerprint
        if record.nonce is not None:
            self.nonce = record.nonce
        if record.nonce_formatted is not None:
            self.nonce_formatted = record.nonce_formatted
        if record.notify is not None:
            self.notify = record.notify
        self.created_at = record.created_at or self.created_at
        self.updated_at = record.updated_at or self.updated_at
        if record.signature is not None:
            self._result = record.signature

    def _require_accepted(self) -> None:
        if not self.is_accepted():
            raise NotReadyError(self.uuid, self.state.name.lower())

    def debug_poll_for_response(
        self,
        interval: float = DEBUG_POLL_INTERVAL,
        max_attempts: Optional[int] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> RequestState:
        """FOR DEBUGGING ONLY: poll the remote service until a terminal state.

        Useful while developing against a real device. Production integrations
        must use push notifications or callbacks instead. There is no backoff.

        Args:
            interval: Seconds between fetches
            max_attempts: Stop after this many fetches (None polls forever)
            sleep: Sleep function, replaceable in tests

        Returns:
            The state when polling stopped
        """
        attempts = 0
        while not self.state.is_terminal():
            if max_attempts is not None and attempts >= max_attempts:
                break
            logger.warning(
                "request.debug_poll",
                kind=self.kind.value,
                request_id=self.uuid,
                state=self.state.name.lower(),
                status_text=self.status_text,
            )
            sleep(interval)
            self.refresh(force=True)
            attempts += 1
        return self.state
