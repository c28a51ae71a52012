#!/usr/bin/env python3
"""Shared constants, payload records and the envelope codec used by **both**
client & server.

Every datagram is a JSON *envelope*::

    {"type": "<connection|positionUpdate|spawn>", "data": "<JSON string>"}

Note that ``data`` is a *string* holding JSON, not a nested object.  Existing
clients depend on that double encoding, so it is kept here and nowhere else:
the rest of the package only ever handles the decoded records below.
"""

from __future__ import annotations       # Postponed annotation evaluation (PEP 563)
import json                              # JSON is the wire format
import math
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Type

from .packet_spec import (
    CONNECTION_REQUEST_FIELDS, CONNECTION_RESPONSE_FIELDS,
    POSITION_FIELDS, POSITION_MSG_FIELDS,
)

# --- Network configuration -------------------------------------------------
BUF_SIZE: int = 1024          # Max UDP datagram size we accept/read (bytes)
DEFAULT_PORT: int = 12345     # Well‑known port on which server listens
DEFAULT_HOST: str = "0.0.0.0" # Server binds every interface by default

# --- Envelope type tags ----------------------------------------------------
CONNECTION      = "connection"      # Host/join request, and its response
POSITION_UPDATE = "positionUpdate"  # A player's position, relayed to everyone
SPAWN           = "spawn"           # Server → client start position

KNOWN_TAGS = frozenset({CONNECTION, POSITION_UPDATE, SPAWN})


class ParseError(ValueError):
    """Datagram is not a well‑formed envelope of a recognised type."""


def _check_fields(obj: Any, spec: Mapping[str, type], what: str) -> None:
    """Raise :class:`ParseError` unless *obj* is a dict matching *spec*."""
    if not isinstance(obj, dict):
        raise ParseError(f"{what} must be a JSON object")
    for name, kind in spec.items():
        if name not in obj:
            raise ParseError(f"{what} is missing '{name}'")
        value = obj[name]
        if kind is float:
            # bool is an int subclass; true/false are not coordinates
            ok = isinstance(value, (int, float)) and not isinstance(value, bool)
        else:
            ok = isinstance(value, kind)
        if not ok:
            raise ParseError(f"{what} field '{name}' has the wrong type")


# --- Payload records -------------------------------------------------------

@dataclass(slots=True)
class Position:
    x: float
    y: float

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y}

    @classmethod
    def from_dict(cls, obj: Any) -> "Position":
        _check_fields(obj, POSITION_FIELDS, "position")
        try:
            x, y = float(obj["x"]), float(obj["y"])
        except OverflowError as exc:          # integer literal beyond float range
            raise ParseError(f"position out of range: {exc}") from exc
        if not (math.isfinite(x) and math.isfinite(y)):
            raise ParseError("position must be finite")
        return cls(x, y)


@dataclass(slots=True)
class ConnectionRequest:
    """Client asks to host (create) or join the room ``room_id``."""

    username: str
    hosting: bool
    room_id: str

    def to_dict(self) -> Dict[str, Any]:
        return {"username": self.username, "hosting": self.hosting, "roomId": self.room_id}

    @classmethod
    def from_dict(cls, obj: Any) -> "ConnectionRequest":
        _check_fields(obj, CONNECTION_REQUEST_FIELDS, "connection request")
        return cls(obj["username"], obj["hosting"], obj["roomId"])


@dataclass(slots=True)
class ConnectionResponse:
    username: str
    success: bool
    error_message: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "username": self.username,
            "success": self.success,
            "errorMessage": self.error_message,
        }

    @classmethod
    def from_dict(cls, obj: Any) -> "ConnectionResponse":
        _check_fields(obj, CONNECTION_RESPONSE_FIELDS, "connection response")
        return cls(obj["username"], obj["success"], obj["errorMessage"])


@dataclass(slots=True)
class PositionUpdate:
    username: str
    position: Position

    def to_dict(self) -> Dict[str, Any]:
        return {"username": self.username, "position": self.position.to_dict()}

    @classmethod
    def from_dict(cls, obj: Any) -> "PositionUpdate":
        _check_fields(obj, POSITION_MSG_FIELDS, "position message")
        return cls(obj["username"], Position.from_dict(obj["position"]))


@dataclass(slots=True)
class SpawnCommand(PositionUpdate):
    """Same wire shape as a position update, sent only by the server."""


@dataclass(slots=True)
class Envelope:
    type: str
    data: Any


# --- Decode tables: envelope type tag ➔ payload record ----------------------

# What the server accepts; any other tag is a parse error.
REQUEST_SCHEMAS: Dict[str, Type] = {
    CONNECTION: ConnectionRequest,
    POSITION_UPDATE: PositionUpdate,
}

# What a client can receive from the server.
MESSAGE_SCHEMAS: Dict[str, Type] = {
    CONNECTION: ConnectionResponse,
    POSITION_UPDATE: PositionUpdate,
    SPAWN: SpawnCommand,
}


# --- Codec -----------------------------------------------------------------

def encode(type_tag: str, payload: Any) -> bytes:
    """Serialize record ⟶ JSON string ⟶ envelope JSON ⟶ UTF‑8 bytes.

    Args:
        type_tag: one of the tag constants above.
        payload: a record from this module, or a plain JSON‑ready mapping.
    """
    if type_tag not in KNOWN_TAGS:
        raise ValueError(f"unknown envelope type {type_tag!r}")
    body = payload.to_dict() if hasattr(payload, "to_dict") else dict(payload)
    # NaN/Infinity are not JSON; strict peers reject them
    inner = json.dumps(body, allow_nan=False)
    return json.dumps({"type": type_tag, "data": inner}).encode()


def _reject_constant(name: str) -> Any:
    raise ParseError(f"non-standard JSON constant {name}")


def _loads(text: str) -> Any:
    """json.loads that refuses NaN / Infinity / -Infinity."""
    return json.loads(text, parse_constant=_reject_constant)


def decode(data: bytes, schemas: Mapping[str, Type] = REQUEST_SCHEMAS) -> Envelope:
    """Inverse of :func:`encode` – bytes ⟶ :class:`Envelope` with a typed record.

    Raises :class:`ParseError` if either JSON layer is malformed, the payload
    does not match its schema, or the tag is not in *schemas*.
    """
    try:
        outer = _loads(data.decode("utf-8"))
    except ParseError:
        raise
    except (ValueError, RecursionError) as exc:   # bad UTF-8, bad JSON, too deep
        raise ParseError(f"malformed envelope: {exc}") from exc
    if not isinstance(outer, dict):
        raise ParseError("envelope must be a JSON object")

    tag = outer.get("type")
    record_cls = schemas.get(tag) if isinstance(tag, str) else None
    if record_cls is None:
        raise ParseError(f"unrecognised envelope type {tag!r}")

    raw = outer.get("data")
    if not isinstance(raw, str):
        raise ParseError("envelope 'data' must be a JSON-encoded string")
    try:
        inner = _loads(raw)
    except ParseError:
        raise
    except (ValueError, RecursionError) as exc:
        raise ParseError(f"malformed {tag} payload: {exc}") from exc

    return Envelope(tag, record_cls.from_dict(inner))

