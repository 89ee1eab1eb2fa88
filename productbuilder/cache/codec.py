"""Cache entry codec.

Entries are stored as JSON text of the form
``{"data": ..., "timestamp": <ms>, "expiresAt": <ms>}``.
"""

import json
from typing import Any

from productbuilder.cache.types import CacheEnvelope
from productbuilder.domain.exceptions import CacheDecodeError


def encode_entry(data: Any, timestamp: int, expires_at: int) -> str:
    """Serialize a payload with its write time and expiry.

    Args:
        data: JSON-compatible payload.
        timestamp: Write time in epoch milliseconds.
        expires_at: Expiry in epoch milliseconds.

    Returns:
        JSON text for the ``data`` column.
    """
    return json.dumps(
        {"data": data, "timestamp": timestamp, "expiresAt": expires_at},
        separators=(",", ":"),
    )


def decode_entry(raw: str) -> CacheEnvelope:
    """Parse stored JSON text back into an envelope.

    Args:
        raw: Text from the ``data`` column.

    Returns:
        Decoded envelope.

    Raises:
        CacheDecodeError: If the text is not a well-formed envelope.
    """
    try:
        parsed = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise CacheDecodeError(f"not valid JSON ({e})") from e

    if not isinstance(parsed, dict):
        raise CacheDecodeError("envelope is not an object")

    missing = [key for key in ("data", "timestamp", "expiresAt") if key not in parsed]
    if missing:
        raise CacheDecodeError(f"missing fields {missing}")

    timestamp = parsed["timestamp"]
    expires_at = parsed["expiresAt"]
    if isinstance(timestamp, bool) or not isinstance(timestamp, (int, float)):
        raise CacheDecodeError("timestamp is not a number")
    if isinstance(expires_at, bool) or not isinstance(expires_at, (int, float)):
        raise CacheDecodeError("expiresAt is not a number")

    return CacheEnvelope(
        data=parsed["data"],
        timestamp=int(timestamp),
        expires_at=int(expires_at),
    )
