"""UDP Duel – rendezvous‑and‑relay server for two‑player real‑time games.

Importing this package gives access to :class:`udpduel.UDPDuelServer` and
:class:`udpduel.UDPDuelClient` so the whole stack can be embedded in another
application or started via the ``udpduel-server`` / ``udpduel-client``
console scripts.
"""

from .client import UDPDuelClient  # noqa: F401  (re‑export)
from .server import UDPDuelServer  # noqa: F401
from .transport import UDPTransport  # noqa: F401

__all__ = ["UDPDuelClient", "UDPDuelServer", "UDPTransport"]
