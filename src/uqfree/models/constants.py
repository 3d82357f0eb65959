"""Constants for uqfree.

This module defines protocol-wide constants used across the codebase.
"""

DEFAULT_API_URL = "https://free.ubiqu.com/api"
API_MEDIA_TYPE = "application/vnd.free.v1+json"

DEFAULT_TIMEOUT_SECONDS = 30.0

# Size of the random value signed when the caller does not supply data
RANDOM_DATA_LENGTH = 32

# Transport key lengths (bits) and the AES-CBC OIDs the custodian understands
DEFAULT_TRANSPORT_KEY_BITS = 128
AES_CBC_OIDS: dict[int, str] = {
    128: "2.16.840.1.101.3.4.1.2",
    256: "2.16.840.1.101.3.4.1.42",
}
AES_BLOCK_BYTES = 16

# Placeholder signature carried by an unsigned CSR (a single zero byte)
EMPTY_CSR_SIGNATURE = b"\x00"

# Default polling interval for debug_poll_for_response (seconds)
DEBUG_POLL_INTERVAL = 1.0
