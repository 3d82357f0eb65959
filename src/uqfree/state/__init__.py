"""Lifecycle state management for asset requests."""

from uqfree.state.machine import VALID_TRANSITIONS, can_transition, check_transition

__all__ = ["VALID_TRANSITIONS", "can_transition", "check_transition"]
