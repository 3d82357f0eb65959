"""Structured logging for uqfree.

structlog is routed through the standard library so that applications embedding
the client keep control of handlers. Two renderers are available: colored
console output for development and JSON for production.

Every event passes through ``redact_processor`` before rendering. Key
material, one-time passwords, signatures and ciphertext are replaced by
``REDACTED_PLACEHOLDER`` and raw ``bytes`` values are reduced to their length,
wherever in the event they appear.

Environment Variables:
    UQ_LOG_FORMAT: "json" or "console" (default)
    UQ_LOG_LEVEL: DEBUG, INFO (default), WARNING, ERROR
    UQ_SERVICE_NAME: Value of the ``service`` field bound to every event

Example:
    >>> from uqfree.observability.logging import configure_logging, get_logger
    >>> configure_logging(log_format="json", log_level="DEBUG")
    >>> logger = get_logger("uqfree.transport.client")
    >>> logger.debug("transport.request", method="POST", payload={"cipher_key": "00ff"})
"""

import logging
import os
import sys
from typing import Any, Mapping, MutableMapping

import structlog
from structlog.typing import EventDict, Processor, WrappedLogger

ENV_LOG_FORMAT = "UQ_LOG_FORMAT"
ENV_LOG_LEVEL = "UQ_LOG_LEVEL"
ENV_SERVICE_NAME = "UQ_SERVICE_NAME"

_DEFAULTS: Mapping[str, str] = {
    ENV_LOG_FORMAT: "console",
    ENV_LOG_LEVEL: "INFO",
    ENV_SERVICE_NAME: "uqfree",
}

REDACTED_PLACEHOLDER = "***REDACTED***"

# Substrings of a field name that mark its value as secret
_SECRET_NAME_PARTS = ("key", "secret", "token", "password", "auth")

# Field names that are secret although no substring above matches
_SECRET_FIELDS = frozenset({"cipher_data", "otp", "signature", "nonce"})

# Event fields structlog itself adds; never redacted
_RESERVED_FIELDS = frozenset({"event", "level", "logger", "timestamp", "service"})

_configured = False


def _is_secret(name: str) -> bool:
    lowered = name.lower()
    return lowered in _SECRET_FIELDS or any(part in lowered for part in _SECRET_NAME_PARTS)


def _scrub(value: Any) -> Any:
    if isinstance(value, Mapping):
        return sanitize_for_logging(value)
    if isinstance(value, (list, tuple)):
        return [_scrub(item) for item in value]
    if isinstance(value, (bytes, bytearray)):
        return f"<{len(value)} bytes>"
    return value


def sanitize_for_logging(data: Mapping[str, Any]) -> dict[str, Any]:
    """Return a copy of ``data`` that is safe to log.

    Values of secret fields (names containing key, secret, token, password or
    auth, plus cipher_data, otp, signature and nonce, case-insensitive) are
    replaced with REDACTED_PLACEHOLDER. Nested mappings and lists are
    scrubbed recursively and bytes are reduced to their length.

    Example:
        >>> sanitize_for_logging({"asset_uuid": "a1", "cipher_key": "00ff"})
        {'asset_uuid': 'a1', 'cipher_key': '***REDACTED***'}
    """
    return {
        name: REDACTED_PLACEHOLDER if _is_secret(name) else _scrub(value)
        for name, value in data.items()
    }


def redact_processor(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """structlog processor applying ``sanitize_for_logging`` to each event."""
    for name, value in list(event_dict.items()):
        if name in _RESERVED_FIELDS:
            continue
        event_dict[name] = REDACTED_PLACEHOLDER if _is_secret(name) else _scrub(value)
    return event_dict


def _setting(name: str, override: str | None, environ: MutableMapping[str, str]) -> str:
    return override or environ.get(name) or _DEFAULTS[name]


def _renderer(log_format: str) -> Processor:
    if log_format.lower() == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(
        colors=True, exception_formatter=structlog.dev.plain_traceback
    )


def configure_logging(
    log_format: str | None = None,
    log_level: str | None = None,
    service_name: str | None = None,
    force: bool = False,
) -> None:
    """Configure structlog and the root stdlib handler.

    Arguments override the UQ_LOG_* environment variables, which override the
    defaults. Without ``force`` only the first call has an effect.
    """
    global _configured

    if _configured and not force:
        return

    level = _setting(ENV_LOG_LEVEL, log_level, os.environ).upper()
    pre_chain: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        redact_processor,
    ]

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(_setting(ENV_LOG_FORMAT, log_format, os.environ)),
            ],
        )
    )
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, level))

    structlog.contextvars.bind_contextvars(
        service=_setting(ENV_SERVICE_NAME, service_name, os.environ)
    )
    _configured = True


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger named ``name``, configuring defaults on first use."""
    if not _configured:
        configure_logging()
    return structlog.stdlib.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Bind fields to every subsequent event in this context (e.g. request_id)."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()
