import random
import threading
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from constants import MAX_PARTICIPANTS, ROOM_CODE_ALPHABET, ROOM_CODE_GROUP_LENGTH
from logging_config import get_logger

logger = get_logger(__name__)

_random = random.SystemRandom()


class RoomFullError(Exception):
    def __init__(self, room_code: str):
        super().__init__(f"Room {room_code} is full")
        self.room_code = room_code


@dataclass(frozen=True)
class Participant:
    connection_id: str
    user_name: str


@dataclass
class Room:
    code: str
    created_at: float
    participants: List[Participant] = field(default_factory=list)

    @property
    def participant_count(self) -> int:
        return len(self.participants)

    @property
    def is_full(self) -> bool:
        return self.participant_count >= MAX_PARTICIPANTS

    def snapshot(self) -> "Room":
        return Room(code=self.code, created_at=self.created_at, participants=list(self.participants))


@dataclass(frozen=True)
class JoinResult:
    room_code: str
    participant_count: int
    is_initiator: bool
    peers: List[Participant]


def normalize_code(code: str) -> str:
    return code.strip().upper()


def generate_room_code() -> str:
    """Return a code shaped XXXX-XXXX drawn from [A-Z0-9]."""
    chars = "".join(_random.choice(ROOM_CODE_ALPHABET) for _ in range(ROOM_CODE_GROUP_LENGTH * 2))
    return f"{chars[:ROOM_CODE_GROUP_LENGTH]}-{chars[ROOM_CODE_GROUP_LENGTH:]}"


class RoomRegistry:
    """In-memory room store shared by the signaling handlers, the REST facade and the reaper.

    Every public method takes the registry lock for its whole read-modify-write,
    so concurrent joins on the same room are serialized and the append order
    decides who the initiator is. Rooms handed back to callers are copies.
    """

    def __init__(self, max_participants: int = MAX_PARTICIPANTS):
        self._rooms: Dict[str, Room] = {}
        self._lock = threading.Lock()
        self.max_participants = max_participants
        logger.info(f"Initializing RoomRegistry (max_participants={max_participants})")

    def _fresh_code(self) -> str:
        while True:
            code = generate_room_code()
            if code not in self._rooms:
                return code
            logger.debug(f"Room code collision on {code}, retrying")

    def _ensure_locked(self, code: str) -> Room:
        room = self._rooms.get(code)
        if room is None:
            room = Room(code=code, created_at=time.time())
            self._rooms[code] = room
            logger.info(f"Room {code} created")
        return room

    def create_room(self) -> str:
        with self._lock:
            code = self._fresh_code()
            self._rooms[code] = Room(code=code, created_at=time.time())
        logger.info(f"Room {code} created (empty)")
        return code

    def get_room(self, code: str) -> Optional[Room]:
        code = normalize_code(code)
        with self._lock:
            room = self._rooms.get(code)
            return room.snapshot() if room else None

    def ensure_room(self, code: str) -> Room:
        code = normalize_code(code)
        with self._lock:
            return self._ensure_locked(code).snapshot()

    def add_participant(self, code: str, connection_id: str, user_name: str) -> JoinResult:
        """Get-or-create the room and append the connection in one locked step.

        Raises RoomFullError, leaving the room untouched, when it already holds
        max_participants occupants.
        """
        code = normalize_code(code)
        with self._lock:
            room = self._ensure_locked(code)
            existing = [i for i, p in enumerate(room.participants) if p.connection_id == connection_id]
            if existing:
                position = existing[0] + 1
            else:
                if room.participant_count >= self.max_participants:
                    raise RoomFullError(code)
                room.participants.append(Participant(connection_id=connection_id, user_name=user_name))
                position = room.participant_count
            peers = [p for p in room.participants if p.connection_id != connection_id]
            return JoinResult(
                room_code=code,
                participant_count=room.participant_count,
                is_initiator=position == 1,
                peers=peers,
            )

    def remove_participant(self, code: str, connection_id: str) -> List[Participant]:
        """Remove a connection from a room and return who is still in it.

        A room left empty is deleted right away.
        """
        code = normalize_code(code)
        with self._lock:
            room = self._rooms.get(code)
            if room is None:
                logger.debug(f"remove_participant: room {code} no longer exists")
                return []
            room.participants = [p for p in room.participants if p.connection_id != connection_id]
            remaining = list(room.participants)
            if not remaining:
                del self._rooms[code]
                logger.info(f"Room {code} deleted - no participants")
        return remaining

    def delete_if_stale(self, now: float, threshold_seconds: float) -> List[str]:
        with self._lock:
            stale = [
                code for code, room in self._rooms.items()
                if room.participant_count == 0 and now - room.created_at > threshold_seconds
            ]
            for code in stale:
                del self._rooms[code]
        return stale

    def room_count(self) -> int:
        with self._lock:
            return len(self._rooms)
