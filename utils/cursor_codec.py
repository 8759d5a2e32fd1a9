"""Opaque pagination tokens over DynamoDB `LastEvaluatedKey` mappings.

The key is marshalled into DynamoDB's typed wire format before JSON
encoding so numbers (`Decimal`), binary and strings all survive the round
trip, whichever table or index produced the key.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
from typing import Any, Dict, Optional

from boto3.dynamodb.types import TypeDeserializer, TypeSerializer

LOGGER = logging.getLogger(__name__)

_SERIALIZER = TypeSerializer()
_DESERIALIZER = TypeDeserializer()


def _to_wire(value: Any) -> Dict[str, Any]:
    wire = _SERIALIZER.serialize(value)
    if "B" in wire:
        # Key attributes are scalar, so only a top-level binary needs text form.
        wire = {"B": base64.b64encode(bytes(wire["B"])).decode("ascii")}
    return wire


def _from_wire(wire: Dict[str, Any]) -> Any:
    if isinstance(wire, dict) and "B" in wire:
        wire = {"B": base64.b64decode(wire["B"], validate=True)}
    return _DESERIALIZER.deserialize(wire)


def encode_cursor(last_key: Optional[Dict[str, Any]]) -> Optional[str]:
    """Return a URL-safe token for `last_key`, or None when there is no key."""
    if not last_key:
        return None
    wire = {name: _to_wire(value) for name, value in last_key.items()}
    raw = json.dumps(wire, separators=(",", ":"), sort_keys=True).encode("utf-8")
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def decode_cursor(token: Optional[str]) -> Optional[Dict[str, Any]]:
    """Return the `ExclusiveStartKey` wrapped by `token`.

    Missing, malformed or stale tokens yield None so pagination restarts
    from the beginning instead of failing the request.
    """
    if not token:
        return None
    try:
        padded = token + "=" * (-len(token) % 4)
        wire = json.loads(base64.urlsafe_b64decode(padded.encode("ascii")).decode("utf-8"))
        if not isinstance(wire, dict) or not wire:
            raise ValueError("cursor payload is not a key mapping")
        return {name: _from_wire(value) for name, value in wire.items()}
    except (binascii.Error, UnicodeError, ValueError, TypeError, AttributeError, ArithmeticError, RecursionError) as exc:
        LOGGER.debug("Ignoring unreadable cursor %r: %s", token, exc)
        return None
