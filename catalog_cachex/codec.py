"""Conversion between cache entries and the storage string format."""

from typing import Any

import orjson

from catalog_cachex.exceptions import DecodeError
from catalog_cachex.exceptions import EncodeError
from catalog_cachex.types import CacheEntry

_ENVELOPE_FIELDS = ("data", "timestamp", "expiry")


def encode(entry: CacheEntry[Any]) -> str:
    """Serialize a cache entry to JSON text.

    Raises:
        EncodeError: If the payload holds values JSON cannot represent
    """
    try:
        raw = orjson.dumps(
            {
                "data": entry.data,
                "timestamp": entry.timestamp,
                "expiry": entry.expiry,
            }
        )
    except (TypeError, orjson.JSONEncodeError) as e:
        msg = f"Cache payload is not JSON serializable: {e}"
        raise EncodeError(msg) from e
    return raw.decode("utf-8")


def decode(raw: str | bytes) -> CacheEntry[Any]:
    """Parse JSON text produced by :func:`encode`.

    Raises:
        DecodeError: If the text is not JSON or is not a cache envelope
    """
    try:
        parsed = orjson.loads(raw)
    except orjson.JSONDecodeError as e:
        msg = f"Cache entry is not valid JSON: {e}"
        raise DecodeError(msg) from e

    if not isinstance(parsed, dict):
        msg = f"Cache entry must be a JSON object, got {type(parsed).__name__}"
        raise DecodeError(msg)

    missing = [name for name in _ENVELOPE_FIELDS if name not in parsed]
    if missing:
        msg = f"Cache entry is missing fields: {', '.join(missing)}"
        raise DecodeError(msg)

    timestamp = parsed["timestamp"]
    expiry = parsed["expiry"]
    # bool is an int subclass but never a valid epoch
    for name, value in (("timestamp", timestamp), ("expiry", expiry)):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            msg = f"Cache entry field {name!r} must be a number"
            raise DecodeError(msg)

    return CacheEntry(data=parsed["data"], timestamp=int(timestamp), expiry=int(expiry))
