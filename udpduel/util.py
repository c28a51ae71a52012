#!/usr/bin/env python3
"""Logging setup **and** a helper that discovers our outward‑facing IP address."""

from __future__ import annotations
import logging                           # Python stdlib logging framework
import socket                            # Needed for IP detection
import sys                               # For stdout handle
from logging.handlers import RotatingFileHandler
from typing import Optional

__all__ = ["LOG", "configure_logging", "get_local_ip"]

# Shared logger – modules do `from .util import LOG`; handlers are attached
# later by the entry points through configure_logging().
LOG = logging.getLogger("udpduel")

_FORMAT = logging.Formatter("[%(asctime)s] %(levelname)-8s %(message)s", "%H:%M:%S")


def configure_logging(level: int = logging.INFO, log_file: Optional[str] = None) -> logging.Logger:
    """Attach console (+ optional rotating file) handlers to the "udpduel" logger.

    Calling it again only updates the level; handlers are registered once.
    """
    LOG.setLevel(level)
    if LOG.handlers:
        return LOG

    # ----- Console handler (stdout) -----
    sh = logging.StreamHandler(sys.stdout)
    sh.setFormatter(_FORMAT)
    LOG.addHandler(sh)

    # ----- Rotating file handler -----
    # Rotates once file hits 1 MiB, keeps 3 backups.
    if log_file:
        fh = RotatingFileHandler(
            log_file,
            maxBytes=1_048_576,
            backupCount=3,
            encoding="utf-8",
        )
        fh.setFormatter(_FORMAT)
        LOG.addHandler(fh)

    return LOG


def get_local_ip() -> str:
    """Return the host's primary IP, fallback to 127.0.0.1 on failure."""

    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        # UDP connect() sends nothing; it only makes the OS pick a source IP.
        sock.connect(("8.8.8.8", 80))
        return sock.getsockname()[0]
    except OSError:
        return "127.0.0.1"
    finally:
        sock.close()
