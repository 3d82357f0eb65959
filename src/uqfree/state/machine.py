"""Asset request state machine.

This module defines the valid lifecycle transitions of an asset request and
provides transition validation.

Example:
    >>> from uqfree.models.enums import RequestState
    >>> can_transition(RequestState.PREPARED, RequestState.CREATED)
    True
    >>> can_transition(RequestState.ACCEPTED, RequestState.REJECTED)
    False
"""

from uqfree.errors import InvalidTransitionError
from uqfree.models.enums import RequestState

__all__ = ["RequestState", "VALID_TRANSITIONS", "can_transition", "check_transition"]

VALID_TRANSITIONS: dict[RequestState, set[RequestState]] = {
    RequestState.PREPARED: {RequestState.CREATED},
    RequestState.CREATED: {
        RequestState.ACCEPTED,
        RequestState.REJECTED,
        RequestState.EXPIRED,
        RequestState.FAILED,
    },
    RequestState.ACCEPTED: set(),  # Terminal state
    RequestState.REJECTED: set(),  # Terminal state
    RequestState.EXPIRED: set(),  # Terminal state
    RequestState.FAILED: set(),  # Terminal state
}


def can_transition(from_state: RequestState, to_state: RequestState) -> bool:
    """Check if a transition from one state to another is valid.

    Args:
        from_state: Current request state
        to_state: Target request state

    Returns:
        True if the transition is valid, False otherwise
    """
    return to_state in VALID_TRANSITIONS.get(from_state, set())


def check_transition(
    from_state: RequestState, to_state: RequestState, request_id: str | None = None
) -> None:
    """Raise if ``from_state -> to_state`` is not a valid transition.

    Raises:
        InvalidTransitionError: If the transition is not valid
    """
    if not can_transition(from_state, to_state):
        raise InvalidTransitionError(
            from_state=from_state.name.lower(),
            to_state=to_state.name.lower(),
            details={"request_id": request_id},
        )
