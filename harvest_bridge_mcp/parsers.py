"""
Response normalization for Harvest API payloads.

Harvest wraps every entity under a single key whose name depends on the
entity type, e.g. {"client": {...}} or {"user_assignment": {...}}. The
functions here discover that key at runtime, unwrap the entity, narrow it to
the requested fields and coerce every value to a string.
"""

import json
from typing import Any, Dict, List, Optional, Sequence, Tuple

import structlog

from .errors import EmptyFieldDiscoveryError, MalformedEnvelopeError

logger = structlog.get_logger(__name__)


def stringify_value(value: Any) -> str:
    """
    Convert a decoded JSON value to its canonical text.

    Strings pass through; true/false/null and numbers use their JSON
    spelling; objects and arrays become compact JSON text.
    """
    if isinstance(value, str):
        return value
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return json.dumps(value)
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(",", ":"))
    raise TypeError(f"Unsupported JSON value type: {type(value).__name__}")


def get_wrapper_key(envelope: Any) -> str:
    """
    Discover the single top-level key of a Harvest envelope.

    Raises:
        MalformedEnvelopeError: if the envelope is not an object with exactly one key
    """
    if not isinstance(envelope, dict):
        raise MalformedEnvelopeError(
            f"Expected a JSON object envelope, got {type(envelope).__name__}"
        )
    if len(envelope) != 1:
        raise MalformedEnvelopeError(
            "Only one key is valid from response object.",
            details={"keys": list(envelope.keys())},
        )
    key = next(iter(envelope))
    logger.debug("envelope_wrapper_key", key=key)
    return key


def unwrap(envelope: Any) -> Tuple[str, Dict[str, Any]]:
    """Return (wrapper_key, inner_object) for an envelope."""
    key = get_wrapper_key(envelope)
    inner = envelope[key]
    if not isinstance(inner, dict):
        raise MalformedEnvelopeError(
            f"Wrapped value under '{key}' is not a JSON object",
            details={"wrapper_key": key},
        )
    return key, inner


def _project(inner: Dict[str, Any], fields: Sequence[str]) -> Dict[str, str]:
    return {field: stringify_value(inner[field]) for field in fields if field in inner}


def project_record(envelope: Any, fields: Optional[List[str]] = None) -> Dict[str, str]:
    """
    Normalize a single-entity response.

    Args:
        envelope: Decoded response body, e.g. {"client": {"id": 1, ...}}
        fields: Requested fields in order; empty or None means all fields in
            the entity's own order

    Returns:
        Mapping of field name to string value
    """
    key, inner = unwrap(envelope)
    if not fields:
        if not inner:
            raise EmptyFieldDiscoveryError(key)
        fields = list(inner.keys())
    return _project(inner, fields)


def project_records(
    envelopes: Any,
    fields: Optional[List[str]] = None
) -> Tuple[List[str], List[Dict[str, str]]]:
    """
    Normalize a list response.

    The field schema is discovered once, from the first element, when no
    fields were requested. An empty list yields no fields and no records.

    Args:
        envelopes: Decoded response body, a list of single-key objects
        fields: Requested fields in order; empty or None means discover

    Returns:
        Tuple of (field_names, records)
    """
    if not isinstance(envelopes, list):
        raise MalformedEnvelopeError(
            f"Expected a JSON array of records, got {type(envelopes).__name__}"
        )
    if not envelopes:
        return list(fields or []), []

    fields = list(fields or [])
    records: List[Dict[str, str]] = []
    for index, envelope in enumerate(envelopes):
        key, inner = unwrap(envelope)
        if index == 0 and not fields:
            if not inner:
                raise EmptyFieldDiscoveryError(key)
            fields = list(inner.keys())
        records.append(_project(inner, fields))

    return fields, records
