#!/usr/bin/env python3
"""UDP rendezvous‑and‑relay server for a two‑player game:

* First client hosts a named room, a second client joins it by id
* Once both slots are taken every player gets a ``spawn`` position
* ``positionUpdate`` datagrams are relayed to every connected player
* No persistence – everything lives in RAM until process exits.
"""

from __future__ import annotations

import argparse                       # CLI parsing
import logging
import sys
import threading                      # Shutdown flag
from typing import Optional, Tuple

from .protocol import (
    CONNECTION, DEFAULT_HOST, DEFAULT_PORT, POSITION_UPDATE, REQUEST_SCHEMAS, SPAWN,
    ConnectionRequest, ConnectionResponse, ParseError, Position, PositionUpdate,
    SpawnCommand, decode, encode,
)
from .session import DomainError, DuplicateUsernameError, MatchState, RoomTable
from .transport import TransportError, UDPTransport
from .util import LOG, configure_logging, get_local_ip

Address = Tuple[str, int]

# Start positions: slot 0 at x=-1, each following slot 2 units further right.
SPAWN_START_X = -1.0
SPAWN_STEP_X = 2.0
SPAWN_Y = 0.0


class UDPDuelServer:
    """Sequential matchmaking server / position relay.

    One datagram is fully handled (decode, dispatch, state change, replies)
    before the next is read, so the :class:`RoomTable` has a single writer.

    ``echo_to_sender`` decides whether a player's own position updates are
    relayed back to it (default ``True``: every session gets every update).
    """

    def __init__(self, transport: UDPTransport, echo_to_sender: bool = True) -> None:
        self.transport = transport
        self.table = RoomTable()
        self.echo_to_sender = echo_to_sender

        # Flag to shut the loop down cooperatively.
        self.running = threading.Event()
        self.running.set()

    # ================================================================= main ===
    def serve_forever(self) -> None:
        host, port = self.transport.address
        LOG.info("Server listening on %s:%d", host, port)
        if host == DEFAULT_HOST:
            LOG.info("LAN clients can reach it at %s:%d", get_local_ip(), port)
        try:
            self._process_loop()              # Forever until Ctrl‑C / stop()
        except KeyboardInterrupt:
            LOG.info("Shutdown requested")
        finally:
            self.running.clear()
            self.transport.close()

    def stop(self) -> None:
        self.running.clear()

    # ---------------------------------------------------------------- internals
    def _process_loop(self) -> None:
        """Receive one datagram, handle it, repeat.

        A datagram that fails to decode is dropped inside handle_datagram;
        anything else a single datagram raises is logged and the loop goes on,
        so no peer can stop the server.
        """
        while self.running.is_set():
            try:
                item = self.transport.recv()
            except OSError as exc:            # e.g. ICMP port‑unreachable echo
                LOG.warning("Receive failed: %s", exc)
                continue
            if item is None:                  # Poll interval elapsed
                continue
            try:
                self.handle_datagram(*item)
            except Exception:
                LOG.exception("Unhandled error for datagram from %s:%d", item[1][0], item[1][1])

    def _send(self, pkt: bytes, addr: Address) -> None:
        """Send helper – failures are logged, never retried."""
        try:
            self.transport.send(pkt, addr)
        except TransportError as exc:
            LOG.error("%s", exc)

    def _broadcast(self, pkt: bytes, exclude: Optional[Address] = None) -> None:
        """Send a packet to **all** sessions except the optional excluded one."""
        for addr in self.table.addresses():
            if addr != exclude:
                self._send(pkt, addr)

    def handle_datagram(self, data: bytes, addr: Address) -> None:
        """Decode one datagram and dispatch it by envelope type."""
        LOG.debug("Read %d bytes from %s:%d", len(data), addr[0], addr[1])
        try:
            envelope = decode(data, REQUEST_SCHEMAS)
        except ParseError as exc:             # Sender gets silence
            LOG.warning("Dropped malformed datagram from %s:%d: %s", addr[0], addr[1], exc)
            return

        if envelope.type == CONNECTION:
            self._handle_connection(envelope.data, addr)
        elif envelope.type == POSITION_UPDATE:
            self._handle_position_update(envelope.data, addr)

    # ---------------------------------------------------------------- handlers
    def _handle_connection(self, request: ConnectionRequest, addr: Address) -> None:
        try:
            if self.table.find_player(request.username) is not None:
                raise DuplicateUsernameError(request.username)
            session = self.table.connect(request, addr)
        except DomainError as exc:
            LOG.info("Refused %s from %s:%d: %s", request.username, addr[0], addr[1], exc)
            refusal = ConnectionResponse(request.username, False, str(exc))
            self._send(encode(CONNECTION, refusal), addr)
            return

        LOG.info("%s connected to room '%s' (slot %d)",
                 session.username, self.table.room_id, session.slot)
        self._send(encode(CONNECTION, ConnectionResponse(request.username, True)), addr)

        # Spawns go out only after the joining player has its response.
        if self.table.state is MatchState.FULL:
            LOG.info("Room '%s' is full, spawning players", self.table.room_id)
            self.spawn_players()
            self.spawn_coins()

    def _handle_position_update(self, update: PositionUpdate, addr: Address) -> None:
        LOG.debug("%s moved to (%s, %s)", update.username, update.position.x, update.position.y)
        exclude = None if self.echo_to_sender else addr
        self._broadcast(encode(POSITION_UPDATE, update), exclude=exclude)

    # ---------------------------------------------------------------- spawning
    def spawn_players(self) -> None:
        """Broadcast one ``spawn`` per session, spread along the x axis."""
        for session in self.table.sessions:
            x = SPAWN_START_X + SPAWN_STEP_X * session.slot
            command = SpawnCommand(session.username, Position(x, SPAWN_Y))
            self._broadcast(encode(SPAWN, command))

    def spawn_coins(self) -> None:
        """Hook run after :meth:`spawn_players`; sends nothing yet."""


# ======================================================================
#  Command‑line entry point
# ======================================================================

def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser("udpduel-server", description="UDP two-player rendezvous server")
    parser.add_argument("--host", default=DEFAULT_HOST, help="interface to bind")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    parser.add_argument("--log-file", default="udpduel_server.log",
                        help="rotating log file ('' disables)")
    parser.add_argument("--verbose", action="store_true", help="log every datagram")
    parser.add_argument("--no-echo", action="store_true",
                        help="do not relay position updates back to their sender")
    args = parser.parse_args(argv)

    configure_logging(logging.DEBUG if args.verbose else logging.INFO, args.log_file or None)
    try:
        transport = UDPTransport(args.host, args.port)
    except OSError as exc:
        LOG.critical("Cannot bind %s:%d: %s", args.host, args.port, exc)
        sys.exit(1)

    UDPDuelServer(transport, echo_to_sender=not args.no_echo).serve_forever()


if __name__ == "__main__":
    main()
