"""Client configuration loaded from the environment.

Environment Variables:
    UQ_API_URL: Base URL of the remote API (default https://free.ubiqu.com/api)
    UQ_API_KEY: Service provider API key sent as X-Api-Key
    UQ_TIMEOUT: HTTP timeout in seconds (default 30)
    UQ_TRANSPORT_KEY_BITS: Default decrypt transport key length, 128 or 256
    UQ_OAEP_MGF_HASH: MGF1 hash used with RSA-OAEP, "sha1" (default) or "sha256"

Example:
    >>> settings = load_settings()
    >>> settings.api_url
    'https://free.ubiqu.com/api'
"""

import os
from typing import Literal, Mapping, Optional

from pydantic import Field, field_validator

from uqfree.models.base import UQBaseModel
from uqfree.models.constants import (
    AES_CBC_OIDS,
    DEFAULT_API_URL,
    DEFAULT_TIMEOUT_SECONDS,
    DEFAULT_TRANSPORT_KEY_BITS,
)

ENV_API_URL = "UQ_API_URL"
ENV_API_KEY = "UQ_API_KEY"
ENV_TIMEOUT = "UQ_TIMEOUT"
ENV_TRANSPORT_KEY_BITS = "UQ_TRANSPORT_KEY_BITS"
ENV_OAEP_MGF_HASH = "UQ_OAEP_MGF_HASH"


class Settings(UQBaseModel):
    """Resolved client settings."""

    api_url: str = DEFAULT_API_URL
    api_key: Optional[str] = Field(default=None, repr=False)
    timeout: float = Field(default=DEFAULT_TIMEOUT_SECONDS, gt=0)
    transport_key_bits: int = DEFAULT_TRANSPORT_KEY_BITS
    oaep_mgf_hash: Literal["sha1", "sha256"] = "sha1"

    @field_validator("api_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("transport_key_bits")
    @classmethod
    def _known_key_length(cls, value: int) -> int:
        if value not in AES_CBC_OIDS:
            raise ValueError(
                f"transport_key_bits must be one of {sorted(AES_CBC_OIDS)}, got {value}"
            )
        return value


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Build Settings from environment variables.

    Args:
        environ: Mapping to read from (defaults to os.environ)

    Raises:
        pydantic.ValidationError: If a variable holds an invalid value
    """
    env = os.environ if environ is None else environ
    values: dict[str, object] = {}
    if env.get(ENV_API_URL):
        values["api_url"] = env[ENV_API_URL]
    if env.get(ENV_API_KEY):
        values["api_key"] = env[ENV_API_KEY]
    if env.get(ENV_TIMEOUT):
        values["timeout"] = env[ENV_TIMEOUT]
    if env.get(ENV_TRANSPORT_KEY_BITS):
        values["transport_key_bits"] = env[ENV_TRANSPORT_KEY_BITS]
    if env.get(ENV_OAEP_MGF_HASH):
        values["oaep_mgf_hash"] = env[ENV_OAEP_MGF_HASH].strip().lower()
    return Settings.model_validate(values)
