"""Observability module for uqfree.

Structured logging for the protocol and transport layers.

Example:
    >>> from uqfree.observability import get_logger
    >>>
    >>> logger = get_logger(__name__)
    >>> logger.info("request.submitted", kind="sign", request_id="3f6c...")
"""

from uqfree.observability.logging import (
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
    sanitize_for_logging,
)

__all__ = [
    "bind_context",
    "clear_context",
    "configure_logging",
    "get_logger",
    "sanitize_for_logging",
]
