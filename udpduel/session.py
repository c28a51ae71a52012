#!/usr/bin/env python3
"""Room / session bookkeeping for a single two‑player room.

The table is owned by one server instance and touched only from its
processing loop, so it carries no locking of its own.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .protocol import ConnectionRequest

Address = Tuple[str, int]


# --- Matchmaking errors ----------------------------------------------------

class DomainError(Exception):
    """A connection request broke a matchmaking rule; ``str(exc)`` is sent
    back to the client as the ``errorMessage``."""


class DuplicateUsernameError(DomainError):
    def __init__(self, username: str) -> None:
        super().__init__(f"user {username} already connected")


class RoomFullError(DomainError):
    def __init__(self) -> None:
        super().__init__("too many players connected")


class RoomExistsError(DomainError):
    def __init__(self, room_id: str) -> None:
        super().__init__(f"room {room_id} already created")


class RoomNotFoundError(DomainError):
    def __init__(self, room_id: str) -> None:
        super().__init__(f"room {room_id} doesn't exist")


# --- Records ---------------------------------------------------------------

class MatchState(enum.Enum):
    EMPTY = "empty"     # no room, no players
    HOSTED = "hosted"   # room created, waiting for a guest
    FULL = "full"       # both slots taken; terminal


@dataclass(slots=True)
class PlayerSession:
    """Binds a username to the UDP address it connected from."""

    username: str
    address: Address
    slot: int


class RoomTable:
    """Holds the room id and up to :attr:`CAPACITY` player sessions.

    Slots are handed out in order and never freed; the room id is set once by
    the first hosting request and never changes afterwards.
    """

    CAPACITY = 2

    def __init__(self) -> None:
        self.room_id: Optional[str] = None
        self._sessions: List[PlayerSession] = []

    def __len__(self) -> int:
        return len(self._sessions)

    @property
    def sessions(self) -> List[PlayerSession]:
        """Sessions in slot order (copy)."""
        return list(self._sessions)

    @property
    def state(self) -> MatchState:
        if len(self._sessions) >= self.CAPACITY:
            return MatchState.FULL
        if self.room_id is None:
            return MatchState.EMPTY
        return MatchState.HOSTED

    def addresses(self) -> List[Address]:
        return [s.address for s in self._sessions]

    def find_player(self, username: str) -> Optional[PlayerSession]:
        return next((s for s in self._sessions if s.username == username), None)

    def connect(self, request: ConnectionRequest, address: Address) -> PlayerSession:
        """Apply the host/join policy; append and return the new session.

        Raises a :class:`DomainError` subclass and leaves the table untouched
        when the request is refused.
        """
        if self.find_player(request.username) is not None:
            raise DuplicateUsernameError(request.username)
        if len(self._sessions) >= self.CAPACITY:
            raise RoomFullError()
        if request.hosting and self.room_id is not None:
            raise RoomExistsError(request.room_id)
        if not request.hosting and self.room_id != request.room_id:
            # covers both "nobody hosted yet" and "wrong room id"
            raise RoomNotFoundError(request.room_id)

        if request.hosting:
            self.room_id = request.room_id
        session = PlayerSession(request.username, address, len(self._sessions))
        self._sessions.append(session)
        return session

    def try_host(self, room_id: str, username: str, address: Address) -> PlayerSession:
        return self.connect(ConnectionRequest(username, True, room_id), address)

    def try_join(self, room_id: str, username: str, address: Address) -> PlayerSession:
        return self.connect(ConnectionRequest(username, False, room_id), address)
