"""Process-owned registry of live rooms.

The registry is an ordinary object rather than a module global so every
Flask app (and every test) gets its own isolated set of rooms. Time is read
through an injected ``clock`` callable, which lets the expiry rules run
against a fake clock.
"""

import logging
import secrets
import string
import time
from typing import Callable, Dict, List, Optional, Set, Tuple

from .errors import RoomNotFoundError
from .room import CHALLENGE_SET, COMPLETED, PlayerSlot, Room

logger = logging.getLogger(__name__)

CODE_ALPHABET = string.ascii_uppercase + string.digits


def normalize_code(code) -> str:
    if not isinstance(code, str):
        return ''
    return code.strip().upper()


class RoomRegistry:
    """In-memory mapping from room code to :class:`Room`."""

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        code_length: int = 6,
        token_bytes: int = 12,
        default_max_number: int = 10,
        retention_sec: float = 300,
        idle_expiry_sec: float = 3600,
    ):
        if code_length < 4:
            raise ValueError('code_length must be >= 4')
        self.clock = clock
        self.code_length = code_length
        self.token_bytes = token_bytes
        self.default_max_number = default_max_number
        self.retention_sec = retention_sec
        self.idle_expiry_sec = idle_expiry_sec
        self._rooms: Dict[str, Room] = {}
        # Codes of deleted rooms; deletion is final so they are never handed out again
        self._retired: Set[str] = set()

    @classmethod
    def from_config(cls, config, clock: Optional[Callable[[], float]] = None) -> 'RoomRegistry':
        return cls(
            clock=clock or time.monotonic,
            code_length=int(config.get('ROOM_CODE_LENGTH', 6)),
            token_bytes=int(config.get('SESSION_TOKEN_BYTES', 12)),
            default_max_number=int(config.get('DEFAULT_MAX_NUMBER', 10)),
            retention_sec=float(config.get('ROOM_RETENTION_SEC', 300)),
            idle_expiry_sec=float(config.get('ROOM_IDLE_EXPIRY_SEC', 3600)),
        )

    def __len__(self) -> int:
        return len(self._rooms)

    def __contains__(self, code) -> bool:
        return normalize_code(code) in self._rooms

    def _random_code(self) -> str:
        return ''.join(secrets.choice(CODE_ALPHABET) for _ in range(self.code_length))

    def _new_code(self) -> str:
        while True:
            code = self._random_code()
            if code not in self._rooms and code not in self._retired:
                return code

    def _new_token(self) -> str:
        return secrets.token_urlsafe(self.token_bytes)

    def create(self, connection_id: str) -> Tuple[str, str]:
        """Open a room owned by ``connection_id``; return ``(code, player1 token)``."""
        code = self._new_code()
        token = self._new_token()
        self._rooms[code] = Room(
            code=code,
            player1=PlayerSlot(connection_id=connection_id, session_token=token),
            created_at=self.clock(),
            opened_at=int(time.time() * 1000),
            max_number=self.default_max_number,
        )
        logger.info(f"[room-created] code={code}")
        return code, token

    def get(self, code) -> Optional[Room]:
        return self._rooms.get(normalize_code(code))

    def lookup(self, code) -> Room:
        room = self.get(code)
        if room is None:
            raise RoomNotFoundError('Room not found')
        return room

    def new_session_token(self, room: Room) -> str:
        """Return a token that no seat of ``room`` already holds."""
        taken = {room.player1.session_token}
        if room.player2 is not None:
            taken.add(room.player2.session_token)
        while True:
            token = self._new_token()
            if token not in taken:
                return token

    def list_joinable(self) -> List[dict]:
        """Rooms with a challenge but no guesser yet, newest first."""
        # reversed() first so rooms created on the same clock tick keep newest-first order
        candidates = [
            room for room in reversed(list(self._rooms.values()))
            if room.state == CHALLENGE_SET and room.player2 is None
        ]
        candidates.sort(key=lambda room: room.created_at, reverse=True)
        return [room.to_summary() for room in candidates]

    def expire(self, code) -> bool:
        code = normalize_code(code)
        room = self._rooms.pop(code, None)
        if room is None:
            return False
        self._retired.add(code)
        logger.info(f"[room-expired] code={code} state={room.state}")
        return True

    def schedule_cleanup(self, code) -> float:
        """Mark a room for deletion ``retention_sec`` from now and return the deadline."""
        room = self.lookup(code)
        room.cleanup_deadline = self.clock() + self.retention_sec
        logger.info(f"[cleanup-scheduled] code={room.code} deadline={room.cleanup_deadline}")
        return room.cleanup_deadline

    def expire_if_due(self, code, deadline: float) -> bool:
        """Fire a deferred cleanup. Ignored if the room no longer carries ``deadline``."""
        room = self.get(code)
        if room is None or room.cleanup_deadline != deadline:
            logger.info(f"[cleanup-stale] code={normalize_code(code)}")
            return False
        if self.clock() < deadline:
            return False
        return self.expire(room.code)

    def sweep(self) -> List[str]:
        """Expire completed rooms past their grace period and idle rooms past the ceiling."""
        now = self.clock()
        doomed = []
        # Snapshot: handlers may add rooms while a background sweep runs
        for code, room in list(self._rooms.items()):
            if room.state == COMPLETED:
                # Completed rooms only leave after their grace period
                if room.cleanup_deadline is not None and now >= room.cleanup_deadline:
                    doomed.append(code)
            elif now - room.created_at > self.idle_expiry_sec:
                doomed.append(code)
        for code in doomed:
            self.expire(code)
        if doomed:
            logger.info(f"[sweep] expired={len(doomed)} live={len(self._rooms)}")
        return doomed
