#!/usr/bin/env python3
"""Blocking UDP socket wrapper: receive one datagram, send one datagram."""

from __future__ import annotations

import socket                         # UDP socket operations
from typing import Optional, Tuple

from .protocol import BUF_SIZE

Address = Tuple[str, int]


class TransportError(OSError):
    """Sending a datagram to one address failed."""


class UDPTransport:
    """UDP socket bound to a fixed ``(host, port)``.

    Binding happens in the constructor, so an ``OSError`` there means the
    server cannot start.
    """

    def __init__(self, host: str, port: int, poll_interval: Optional[float] = 0.5) -> None:
        self.sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        self.sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            self.sock.bind((host, port))
        except OSError:
            self.sock.close()
            raise
        # recv() wakes up every poll_interval seconds so callers can check
        # for shutdown; None blocks forever.
        self.sock.settimeout(poll_interval)

    @property
    def address(self) -> Address:
        """Actual bound address (useful when bound to port 0)."""
        return self.sock.getsockname()

    def recv(self) -> Optional[Tuple[bytes, Address]]:
        """Return ``(data, sender)`` or ``None`` if the poll interval elapsed."""
        try:
            return self.sock.recvfrom(BUF_SIZE)
        except socket.timeout:
            return None

    def send(self, data: bytes, addr: Address) -> None:
        try:
            self.sock.sendto(data, addr)
        except OSError as exc:
            raise TransportError(f"send to {addr[0]}:{addr[1]} failed: {exc}") from exc

    def close(self) -> None:
        self.sock.close()
