"""
Tests for the command‑line client helpers.
"""
import socket

from colorama import Fore

from udpduel.client import UDPDuelClient, format_message, parse_position
from udpduel.protocol import (
    CONNECTION, POSITION_UPDATE, SPAWN, ConnectionRequest, ConnectionResponse,
    Position, PositionUpdate, SpawnCommand, decode, encode,
)


def test_parse_position():
    assert parse_position("1.5 -2") == Position(1.5, -2.0)
    assert parse_position("  3,4 ") == Position(3.0, 4.0)
    assert parse_position("1") is None
    assert parse_position("a b") is None
    assert parse_position("1 2 3") is None


def test_format_connection_results():
    ok = format_message(encode(CONNECTION, ConnectionResponse("alice", True)))
    refused = format_message(encode(CONNECTION, ConnectionResponse("bob", False, "room X doesn't exist")))

    assert "[CONNECTED]" in ok and "alice" in ok
    assert "[REFUSED]" in refused and "room X doesn't exist" in refused


def test_format_spawn_and_position():
    spawn = format_message(encode(SPAWN, SpawnCommand("alice", Position(-1.0, 0.0))))
    move = format_message(encode(POSITION_UPDATE, PositionUpdate("bob", Position(2.5, 1.0))))

    assert "[SPAWN]" in spawn and "(-1, 0)" in spawn
    assert "<bob>" in move and "(2.5, 1)" in move


def test_format_unparseable_datagram_is_printed_raw():
    line = format_message(b"hello")
    assert line.startswith(Fore.RED)
    assert line.endswith("hello")


def test_client_sends_connection_and_position():
    server = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    server.bind(("127.0.0.1", 0))
    server.settimeout(2.0)
    client = UDPDuelClient("alice", "R", True, *server.getsockname())
    try:
        client.connect()
        client.send_position(Position(1.0, 2.0))

        first = decode(server.recvfrom(1024)[0])
        second = decode(server.recvfrom(1024)[0])
        assert first.data == ConnectionRequest("alice", True, "R")
        assert second.data == PositionUpdate("alice", Position(1.0, 2.0))
    finally:
        client.sock.close()
        server.close()


def test_parse_position_refuses_non_finite():
    assert parse_position("nan 1") is None
    assert parse_position("0 inf") is None
    assert parse_position("-Infinity 2") is None
