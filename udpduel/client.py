#!/usr/bin/env python3
"""Command‑line client for the UDP duel server:

* Hosts a room (``--hosting``) or joins one by id
* Prints every server datagram (connection result, spawns, positions)
* Typing ``x y`` sends a position update for this player
* ANSI‑coloured output via *colorama*.

Usage (after installing package locally):

    udpduel-client alice lobby1 --hosting
    udpduel-client bob lobby1 --server 203.0.113.22
"""

from __future__ import annotations

import argparse                                    # For CLI parsing
import math
import socket                                      # Low‑level UDP API
import sys                                         # Needed for prompt redraw
import threading                                   # Background listener thread
from typing import Optional, Tuple

from .protocol import (
    BUF_SIZE, CONNECTION, DEFAULT_PORT, MESSAGE_SCHEMAS, POSITION_UPDATE,
    ConnectionRequest, ConnectionResponse, ParseError, Position, PositionUpdate,
    SpawnCommand, decode, encode,
)
from .util import LOG, configure_logging

# 3rd‑party: coloured terminal output
from colorama import Fore, Style, init

PROMPT = "> "


def parse_position(line: str) -> Optional[Position]:
    """``"1.5 -2"`` ⟶ Position(1.5, -2.0); anything else ⟶ None."""
    parts = line.replace(",", " ").split()
    if len(parts) != 2:
        return None
    try:
        x, y = float(parts[0]), float(parts[1])
    except ValueError:
        return None
    if not (math.isfinite(x) and math.isfinite(y)):
        return None
    return Position(x, y)


def format_message(data: bytes) -> str:
    """Render one server datagram as a coloured line of text."""
    try:
        msg = decode(data, MESSAGE_SCHEMAS).data
    except ParseError:
        return f"{Fore.RED}[RAW]{Style.RESET_ALL} {data.decode('utf-8', 'replace')}"

    if isinstance(msg, ConnectionResponse):
        if msg.success:
            return f"{Fore.GREEN}[CONNECTED]{Style.RESET_ALL} {msg.username}"
        return f"{Fore.RED}[REFUSED]{Style.RESET_ALL} {msg.error_message}"
    pos = msg.position
    if isinstance(msg, SpawnCommand):
        return f"{Fore.MAGENTA}[SPAWN]{Style.RESET_ALL} {msg.username} at ({pos.x:g}, {pos.y:g})"
    return f"{Fore.CYAN}<{msg.username}>{Style.RESET_ALL} ({pos.x:g}, {pos.y:g})"


class UDPDuelClient:
    """Connects to a server, then relays typed positions and prints replies."""

    def __init__(self, username: str, room_id: str, hosting: bool,
                 server_ip: str, server_port: int = DEFAULT_PORT) -> None:
        self.server: Tuple[str, int] = (server_ip, server_port)
        self.username = username
        self.room_id = room_id
        self.hosting = hosting

        # Ephemeral local port; the server learns it from our first datagram.
        self.sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        self.sock.bind(("", 0))

        self.running = threading.Event()   # Cooperative shutdown across threads
        self.running.set()

    # ================================================================== main ===
    def start(self) -> None:
        """Blocking run‑loop: read stdin while a background thread prints
        server datagrams."""
        self.connect()
        threading.Thread(target=self._recv_loop, daemon=True).start()

        try:
            while self.running.is_set():
                try:
                    line = input(PROMPT)
                except EOFError:
                    break
                if line.strip().lower() == "/quit":
                    break
                if not line.strip():
                    continue
                pos = parse_position(line)
                if pos is None:
                    print("Usage: <x> <y>   or   /quit")
                    continue
                self.send_position(pos)
        except KeyboardInterrupt:
            pass
        finally:
            self.running.clear()
            self.sock.close()
            LOG.info("Disconnected")

    # ---------------------------------------------------------------- networking
    def connect(self) -> None:
        request = ConnectionRequest(self.username, self.hosting, self.room_id)
        self._send(encode(CONNECTION, request))

    def send_position(self, pos: Position) -> None:
        self._send(encode(POSITION_UPDATE, PositionUpdate(self.username, pos)))

    def _send(self, pkt: bytes) -> None:
        try:
            self.sock.sendto(pkt, self.server)
        except OSError as exc:
            LOG.error("Send failed: %s", exc)
            self.running.clear()

    def _recv_loop(self) -> None:
        """Background thread – prints inbound datagrams then redraws prompt."""
        while self.running.is_set():
            try:
                data, _ = self.sock.recvfrom(BUF_SIZE)
            except OSError:                               # Socket closed
                break
            print(f"\r{format_message(data)}")
            sys.stdout.write(PROMPT)
            sys.stdout.flush()


# ======================================================================
#  Command‑line entry point
# ======================================================================

def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser("udpduel-client", description="UDP duel client")
    parser.add_argument("username")
    parser.add_argument("room_id", help="room to host or join")
    parser.add_argument("--hosting", action="store_true", help="create the room instead of joining")
    parser.add_argument("--server", default="127.0.0.1", help="server IP address")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT, help="UDP port of server")
    args = parser.parse_args(argv)

    init(autoreset=True)                           # Reset colour after each print
    configure_logging()
    UDPDuelClient(args.username, args.room_id, args.hosting, args.server, args.port).start()


if __name__ == "__main__":
    main()
