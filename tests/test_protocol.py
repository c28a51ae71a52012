"""
Tests for the envelope codec.
"""
import json

import pytest

from udpduel.protocol import (
    CONNECTION, MESSAGE_SCHEMAS, POSITION_UPDATE, REQUEST_SCHEMAS, SPAWN,
    ConnectionRequest, ConnectionResponse, Envelope, ParseError, Position,
    PositionUpdate, SpawnCommand, decode, encode,
)


def test_data_field_is_json_string():
    """The payload travels as a JSON string inside the envelope."""
    raw = encode(CONNECTION, ConnectionRequest("alice", True, "R"))
    outer = json.loads(raw)

    assert outer["type"] == "connection"
    assert isinstance(outer["data"], str)
    assert json.loads(outer["data"]) == {"username": "alice", "hosting": True, "roomId": "R"}


def test_decode_client_wire_format():
    """A datagram built by hand the way existing clients do."""
    inner = json.dumps({"username": "bob", "position": {"x": 3, "y": -0.5}})
    raw = json.dumps({"type": "positionUpdate", "data": inner}).encode()

    env = decode(raw)
    assert env == Envelope(POSITION_UPDATE, PositionUpdate("bob", Position(3.0, -0.5)))


def test_round_trip_every_payload():
    cases = [
        (CONNECTION, ConnectionRequest("a", False, "room"), REQUEST_SCHEMAS),
        (POSITION_UPDATE, PositionUpdate("a", Position(1.25, -7.0)), REQUEST_SCHEMAS),
        (CONNECTION, ConnectionResponse("a", False, "too many players connected"), MESSAGE_SCHEMAS),
        (POSITION_UPDATE, PositionUpdate("b", Position(0.0, 0.0)), MESSAGE_SCHEMAS),
        (SPAWN, SpawnCommand("b", Position(-1.0, 0.0)), MESSAGE_SCHEMAS),
    ]
    for tag, payload, schemas in cases:
        assert decode(encode(tag, payload), schemas) == Envelope(tag, payload)


def test_spawn_decodes_as_spawn_command():
    env = decode(encode(SPAWN, SpawnCommand("a", Position(1.0, 0.0))), MESSAGE_SCHEMAS)
    assert type(env.data) is SpawnCommand


def test_encode_accepts_plain_mapping():
    raw = encode(POSITION_UPDATE, {"username": "a", "position": {"x": 1.0, "y": 2.0}})
    assert decode(raw).data == PositionUpdate("a", Position(1.0, 2.0))


def test_encode_rejects_unknown_tag():
    with pytest.raises(ValueError):
        encode("chat", {"text": "hi"})


@pytest.mark.parametrize("raw", [
    b"",
    b"not json",
    b"\xff\xfe",
    b"[1, 2, 3]",
    b'{"data": "{}"}',
    b'{"type": "chat", "data": "{}"}',
    b'{"type": ["connection"], "data": "{}"}',
    b'{"type": "connection", "data": {"username": "a", "hosting": true, "roomId": "R"}}',
    b'{"type": "connection", "data": "{broken"}',
    b'{"type": "connection", "data": "{\\"username\\": \\"a\\", \\"roomId\\": \\"R\\"}"}',
    b'{"type": "connection", "data": "{\\"username\\": \\"a\\", \\"hosting\\": 1, \\"roomId\\": \\"R\\"}"}',
    b'{"type": "positionUpdate", "data": "{\\"username\\": \\"a\\", \\"position\\": [1, 2]}"}',
    b'{"type": "positionUpdate", "data": "{\\"username\\": \\"a\\", \\"position\\": {\\"x\\": true, \\"y\\": 0}}"}',
    b'{"type": "positionUpdate", "data": "{\\"username\\": 7, \\"position\\": {\\"x\\": 1, \\"y\\": 0}}"}',
    # coordinate beyond float range
    b'{"type": "positionUpdate", "data": "{\\"username\\": \\"a\\", \\"position\\": {\\"x\\": 1'
    + b"0" * 400 + b', \\"y\\": 0}}"}',
    # non-standard JSON constants, in the payload and in the envelope
    b'{"type": "positionUpdate", "data": "{\\"username\\": \\"a\\", \\"position\\": {\\"x\\": NaN, \\"y\\": 0}}"}',
    b'{"type": "positionUpdate", "data": "{\\"username\\": \\"a\\", \\"position\\": {\\"x\\": 0, \\"y\\": -Infinity}}"}',
    b'{"type": "connection", "data": "{}", "seq": Infinity}',
    # nesting deeper than the JSON parser can recurse
    b"[" * 100_000,
    json.dumps({"type": "connection", "data": "[" * 100_000}).encode(),
])
def test_malformed_datagrams_raise_parse_error(raw):
    with pytest.raises(ParseError):
        decode(raw)


def test_server_does_not_accept_spawn():
    """spawn is server → client only."""
    raw = encode(SPAWN, SpawnCommand("a", Position(1.0, 0.0)))
    with pytest.raises(ParseError):
        decode(raw, REQUEST_SCHEMAS)


def test_extra_fields_are_ignored():
    inner = json.dumps({"username": "a", "hosting": True, "roomId": "R", "colour": "red"})
    raw = json.dumps({"type": "connection", "data": inner, "seq": 4}).encode()
    assert decode(raw).data == ConnectionRequest("a", True, "R")


def test_encode_refuses_non_finite_coordinates():
    with pytest.raises(ValueError):
        encode(POSITION_UPDATE, PositionUpdate("a", Position(float("nan"), 0.0)))
    with pytest.raises(ValueError):
        encode(SPAWN, SpawnCommand("a", Position(0.0, float("inf"))))
