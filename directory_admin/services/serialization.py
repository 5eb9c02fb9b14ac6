"""Convert Firestore values to JSON-safe values and back.

Timestamps, geopoints, blobs and document references are wrapped in a
two-key envelope::

    {"_type": "timestamp", "_value": "2024-05-01T12:30:45.123Z"}
    {"_type": "geopoint", "_value": {"latitude": 45.5, "longitude": -73.6}}
    {"_type": "bytes", "_value": "iVBORw=="}
    {"_type": "reference", "_value": "parents/A"}

Everything else maps to itself, recursing through lists and dicts.
"""
import base64
import binascii
from datetime import datetime, timezone
from typing import Any

from google.cloud.firestore import DocumentReference, GeoPoint

TYPE_KEY = "_type"
VALUE_KEY = "_value"
TIMESTAMP_TAG = "timestamp"
GEOPOINT_TAG = "geopoint"
BYTES_TAG = "bytes"
REFERENCE_TAG = "reference"


def format_timestamp(value: datetime) -> str:
    """UTC, millisecond precision, ``Z`` suffix."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(value: str) -> datetime | None:
    if not isinstance(value, str):
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _is_geopoint(value: Any) -> bool:
    return hasattr(value, "latitude") and hasattr(value, "longitude")


def serialize_value(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, datetime):
        return {TYPE_KEY: TIMESTAMP_TAG, VALUE_KEY: format_timestamp(value)}
    if _is_geopoint(value):
        return {
            TYPE_KEY: GEOPOINT_TAG,
            VALUE_KEY: {"latitude": value.latitude, "longitude": value.longitude},
        }
    if isinstance(value, (bytes, bytearray)):
        return {TYPE_KEY: BYTES_TAG, VALUE_KEY: base64.b64encode(value).decode("ascii")}
    if isinstance(value, DocumentReference):
        return {TYPE_KEY: REFERENCE_TAG, VALUE_KEY: value.path}
    if isinstance(value, (list, tuple)):
        return [serialize_value(v) for v in value]
    if isinstance(value, dict):
        return {k: serialize_value(v) for k, v in value.items()}
    return value


def serialize_document(data: dict | None) -> dict:
    if not data:
        return {}
    return {k: serialize_value(v) for k, v in data.items()}


def _decode_envelope(value: dict, db=None) -> Any:
    """Return the native value for a tagged envelope, or None if it isn't one.

    References come back as ``db.document(path)``, or as the bare path when
    no client is given.
    """
    if set(value) != {TYPE_KEY, VALUE_KEY}:
        return None
    tag, payload = value[TYPE_KEY], value[VALUE_KEY]
    if tag == TIMESTAMP_TAG:
        return parse_timestamp(payload)
    if tag == GEOPOINT_TAG and isinstance(payload, dict):
        lat, lng = payload.get("latitude"), payload.get("longitude")
        if isinstance(lat, (int, float)) and isinstance(lng, (int, float)):
            return GeoPoint(lat, lng)
    if tag == BYTES_TAG and isinstance(payload, str):
        try:
            return base64.b64decode(payload, validate=True)
        except binascii.Error:
            return None
    if tag == REFERENCE_TAG and isinstance(payload, str) and payload:
        if db is None:
            return payload
        try:
            return db.document(payload)
        except ValueError:
            return None
    return None


def deserialize_value(value: Any, db=None) -> Any:
    if isinstance(value, list):
        return [deserialize_value(v, db) for v in value]
    if isinstance(value, dict):
        decoded = _decode_envelope(value, db)
        if decoded is not None:
            return decoded
        return {k: deserialize_value(v, db) for k, v in value.items()}
    return value


def deserialize_document(data: dict | None, db=None) -> dict:
    if not data:
        return {}
    return {k: deserialize_value(v, db) for k, v in data.items()}
