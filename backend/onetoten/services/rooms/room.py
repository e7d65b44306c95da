"""In-memory room entities."""

from dataclasses import dataclass, field
from typing import List, Optional

WAITING = 'waiting'
CHALLENGE_SET = 'challenge_set'
COMPLETED = 'completed'

PLAYER1 = 'player1'
PLAYER2 = 'player2'
SPECTATOR = 'spectator'

DEFAULT_PLAYER1_NAME = 'Player 1'
DEFAULT_PLAYER2_NAME = 'Player 2'


@dataclass
class PlayerSlot:
    """One seat in a room, bound to whichever connection last claimed it.

    ``number_hash`` and ``salt`` are only ever filled for player one.
    """

    connection_id: str
    session_token: str
    name: Optional[str] = None
    number: Optional[int] = None
    number_hash: Optional[str] = None
    salt: Optional[str] = None


@dataclass(frozen=True)
class GameResult:
    player1_number: int
    player2_number: int
    salt: str
    number_hash: str
    matched: bool
    challenge: str
    player1_name: str
    player2_name: str

    def to_dict(self):
        return {
            'player1Number': self.player1_number,
            'player2Number': self.player2_number,
            'salt': self.salt,
            'numberHash': self.number_hash,
            'matched': self.matched,
            'challenge': self.challenge,
            'player1Name': self.player1_name,
            'player2Name': self.player2_name,
        }


@dataclass
class Room:
    code: str
    player1: PlayerSlot
    created_at: float
    opened_at: int
    state: str = WAITING
    player2: Optional[PlayerSlot] = None
    spectators: List[str] = field(default_factory=list)
    challenge: Optional[str] = None
    max_number: int = 10
    result: Optional[GameResult] = None
    cleanup_deadline: Optional[float] = None

    @property
    def player1_name(self) -> str:
        return self.player1.name or DEFAULT_PLAYER1_NAME

    @property
    def player2_name(self) -> str:
        if self.player2 is None or not self.player2.name:
            return DEFAULT_PLAYER2_NAME
        return self.player2.name

    def slot_for(self, role: str) -> Optional[PlayerSlot]:
        if role == PLAYER1:
            return self.player1
        if role == PLAYER2:
            return self.player2
        return None

    def add_spectator(self, connection_id: str) -> None:
        if connection_id not in self.spectators:
            self.spectators.append(connection_id)

    def remove_spectator(self, connection_id: str) -> None:
        if connection_id in self.spectators:
            self.spectators.remove(connection_id)

    def to_summary(self):
        """Lobby listing entry for /api/rooms."""
        return {
            'roomCode': self.code,
            'player1Name': self.player1.name,
            'challenge': self.challenge,
            'maxNumber': self.max_number,
            'createdAt': self.opened_at,
        }
