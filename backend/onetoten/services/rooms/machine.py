"""Room protocol: who may do what, in which state, and who hears about it.

The state machine only knows connection ids. Outbound pushes go through the
injected ``emit(event, to, payload)`` callable and history writes through
``history.append``; the Socket.IO layer wires both to the real transport.
"""

import hmac
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from . import commitment
from .errors import ConflictError, InvalidInputError, InvalidRoleError, InvalidSessionError, RoomNotFoundError
from .registry import RoomRegistry
from .room import (
    CHALLENGE_SET,
    COMPLETED,
    PLAYER1,
    PLAYER2,
    SPECTATOR,
    WAITING,
    GameResult,
    PlayerSlot,
    Room,
)

logger = logging.getLogger(__name__)

HASH_HEX_LENGTH = 64

Emit = Callable[[str, str, Any], None]


@dataclass
class Session:
    """What a connection is to the game: a role in one room."""

    room_code: str
    role: str
    session_token: Optional[str] = None


def _run_now(fn, *args):
    fn(*args)


def _is_int(value) -> bool:
    # bool is an int subclass but never a valid number here
    return isinstance(value, int) and not isinstance(value, bool)


class RoomStateMachine:
    def __init__(
        self,
        registry: RoomRegistry,
        history=None,
        emit: Optional[Emit] = None,
        defer: Callable = _run_now,
        on_completed: Optional[Callable[[str, float], None]] = None,
        max_number_ceiling: int = 1000,
        challenge_max_length: int = 200,
        name_max_length: int = 40,
    ):
        self.registry = registry
        self.history = history
        self._emit = emit
        self._defer = defer
        self._on_completed = on_completed
        self.max_number_ceiling = max_number_ceiling
        self.challenge_max_length = challenge_max_length
        self.name_max_length = name_max_length
        self._sessions: Dict[str, Session] = {}

    # ---- helpers ----

    def session_for(self, connection_id: str) -> Optional[Session]:
        return self._sessions.get(connection_id)

    def _push(self, event: str, to: Optional[str], payload=None) -> None:
        if self._emit is None or not to:
            return
        self._emit(event, to, payload)

    def _bind(self, connection_id: str, session: Session) -> None:
        """Attach ``connection_id`` to a new role, leaving any spectator seat it held."""
        previous = self._sessions.get(connection_id)
        if previous is not None and previous.role == SPECTATOR:
            old_room = self.registry.get(previous.room_code)
            if old_room is not None:
                old_room.remove_spectator(connection_id)
        self._sessions[connection_id] = session

    def _resolve(self, connection_id: str, *roles: str):
        """Return ``(room, session)`` for the caller, enforcing role and liveness."""
        session = self._sessions.get(connection_id)
        if session is None:
            raise RoomNotFoundError('Room not found')
        room = self.registry.get(session.room_code)
        if room is None:
            raise RoomNotFoundError('Room not found')
        if roles and session.role not in roles:
            raise InvalidRoleError('Invalid operation')
        if room.state == COMPLETED:
            raise ConflictError('Game already completed')
        return room, session

    def _ensure_not_playing(self, connection_id: str, room_code: Optional[str] = None) -> None:
        """Refuse a second seat while the connection still plays an unfinished game."""
        current = self._sessions.get(connection_id)
        if current is None or current.role not in (PLAYER1, PLAYER2):
            return
        if current.room_code == room_code:
            raise ConflictError('Already playing in this room')
        room = self.registry.get(current.room_code)
        if room is not None and room.state != COMPLETED:
            raise ConflictError('Already playing in another room')

    @staticmethod
    def _challenge_info(room: Room) -> dict:
        if room.challenge is None:
            return {}
        return {'challenge': room.challenge, 'maxNumber': room.max_number}

    # ---- operations ----

    def create_room(self, connection_id: str) -> dict:
        self._ensure_not_playing(connection_id)
        code, token = self.registry.create(connection_id)
        self._bind(connection_id, Session(code, PLAYER1, token))
        return {'success': True, 'roomCode': code, 'sessionToken': token}

    def join(self, code, connection_id: str) -> dict:
        room = self.registry.lookup(code)
        self._ensure_not_playing(connection_id, room.code)

        if room.player2 is not None or room.state == COMPLETED:
            room.add_spectator(connection_id)
            self._bind(connection_id, Session(room.code, SPECTATOR))
            reply = {
                'success': True,
                'roomCode': room.code,
                'role': SPECTATOR,
                'state': room.state,
                'player1Name': room.player1.name,
                'player2Name': room.player2.name if room.player2 else None,
            }
            reply.update(self._challenge_info(room))
            if room.result is not None:
                reply['result'] = room.result.to_dict()
            logger.info(f"[join] code={room.code} role=spectator spectators={len(room.spectators)}")
            return reply

        token = self.registry.new_session_token(room)
        room.player2 = PlayerSlot(connection_id=connection_id, session_token=token)
        self._bind(connection_id, Session(room.code, PLAYER2, token))
        reply = {
            'success': True,
            'roomCode': room.code,
            'role': PLAYER2,
            'sessionToken': token,
            'state': room.state,
            'hasChallenge': room.state == CHALLENGE_SET,
            'player1Name': room.player1.name,
        }
        reply.update(self._challenge_info(room))
        self._push('player-joined', room.player1.connection_id)
        logger.info(f"[join] code={room.code} role=player2")
        return reply

    def rejoin(self, code, session_token, connection_id: str) -> dict:
        room = self.registry.get(code)
        if room is None or not isinstance(session_token, str) or not session_token:
            raise InvalidSessionError('Invalid session')

        role = None
        for candidate in (PLAYER1, PLAYER2):
            slot = room.slot_for(candidate)
            if slot is not None and hmac.compare_digest(slot.session_token.encode('utf-8'), session_token.encode('utf-8')):
                role = candidate
                break
        if role is None:
            raise InvalidSessionError('Invalid session')

        slot = room.slot_for(role)
        stale = self._sessions.get(slot.connection_id)
        if slot.connection_id != connection_id and stale is not None and stale.room_code == room.code and stale.role == role:
            del self._sessions[slot.connection_id]
        slot.connection_id = connection_id
        self._bind(connection_id, Session(room.code, role, slot.session_token))

        opponent = room.player2 if role == PLAYER1 else room.player1
        reply = {
            'success': True,
            'roomCode': room.code,
            'role': role,
            'state': room.state,
            'challenge': room.challenge,
            'maxNumber': room.max_number,
            'result': room.result.to_dict() if room.result is not None else None,
            'opponentName': opponent.name if opponent is not None else None,
            'player1Name': room.player1.name,
            'player2Name': room.player2.name if room.player2 else None,
            'guessSubmitted': room.player2 is not None and room.player2.number is not None,
        }
        logger.info(f"[rejoin] code={room.code} role={role}")
        return reply

    def set_name(self, connection_id: str, name) -> dict:
        room, session = self._resolve(connection_id, PLAYER1, PLAYER2)
        if not isinstance(name, str) or not name.strip():
            raise InvalidInputError('Name is required')
        name = name.strip()[:self.name_max_length]

        slot = room.slot_for(session.role)
        if slot is None:
            raise InvalidRoleError('Invalid operation')
        slot.name = name
        if session.role == PLAYER2:
            self._push('player2-named', room.player1.connection_id, name)
        return {'success': True}

    def submit_challenge(self, connection_id: str, challenge, max_number, number_hash) -> dict:
        room, _ = self._resolve(connection_id, PLAYER1)
        if room.state != WAITING:
            raise ConflictError('Challenge already set')

        if not isinstance(challenge, str) or not challenge.strip() or not isinstance(number_hash, str) or not number_hash:
            raise InvalidInputError('Challenge and number are required')
        challenge = challenge.strip()
        if len(challenge) > self.challenge_max_length:
            raise InvalidInputError(f'Challenge must be at most {self.challenge_max_length} characters')
        number_hash = number_hash.strip().lower()
        if len(number_hash) != HASH_HEX_LENGTH or any(c not in '0123456789abcdef' for c in number_hash):
            raise InvalidInputError('Commitment must be a SHA-256 hex digest')
        if max_number is None:
            max_number = self.registry.default_max_number
        if not _is_int(max_number) or not 1 <= max_number <= self.max_number_ceiling:
            raise InvalidInputError(f'Max number must be between 1 and {self.max_number_ceiling}')

        room.challenge = challenge
        room.max_number = max_number
        room.player1.number_hash = number_hash
        room.state = CHALLENGE_SET

        if room.player2 is not None:
            self._push('challenge-ready', room.player2.connection_id, {
                'challenge': room.challenge,
                'maxNumber': room.max_number,
                'player1Name': room.player1.name,
            })
        logger.info(f"[challenge] code={room.code} max_number={room.max_number}")
        return {'success': True}

    def submit_guess(self, connection_id: str, number) -> dict:
        room, _ = self._resolve(connection_id, PLAYER2)
        if room.player2 is None:
            raise InvalidRoleError('Invalid operation')
        if room.state != CHALLENGE_SET:
            raise ConflictError('Waiting for the challenge')
        if room.player2.number is not None:
            raise ConflictError('Guess already submitted')
        if not _is_int(number) or not 1 <= number <= room.max_number:
            raise InvalidInputError(f'Guess must be a whole number between 1 and {room.max_number}')

        room.player2.number = number
        self._push('guess-submitted', room.player1.connection_id, {'player2Name': room.player2.name})
        logger.info(f"[guess] code={room.code}")
        return {'success': True}

    def reveal(self, connection_id: str, number, salt) -> dict:
        room, _ = self._resolve(connection_id, PLAYER1)
        if room.player2 is None:
            raise InvalidRoleError('No opponent has joined yet')
        if room.player2.number is None:
            raise ConflictError('Opponent has not guessed yet')
        if not _is_int(number) or not isinstance(salt, str) or not salt:
            raise InvalidInputError('Number and salt are required')
        if not commitment.verify(number, salt, room.player1.number_hash):
            raise InvalidInputError('Revealed number does not match the commitment')

        player1, player2 = room.player1, room.player2
        player1.number = number
        player1.salt = salt
        matched = player1.number == player2.number
        room.state = COMPLETED
        room.result = GameResult(
            player1_number=player1.number,
            player2_number=player2.number,
            salt=salt,
            number_hash=player1.number_hash,
            matched=matched,
            challenge=room.challenge,
            player1_name=room.player1_name,
            player2_name=room.player2_name,
        )
        logger.info(f"[reveal] code={room.code} matched={matched}")

        payload = room.result.to_dict()
        self._push('game-result', player2.connection_id, payload)
        for spectator_id in list(room.spectators):
            self._push('game-result', spectator_id, payload)

        if self.history is not None:
            self._defer(self._record, self._history_record(room))
        deadline = self.registry.schedule_cleanup(room.code)
        if self._on_completed is not None:
            self._on_completed(room.code, deadline)
        return {'success': True, 'result': payload}

    def disconnect(self, connection_id: str) -> None:
        session = self._sessions.pop(connection_id, None)
        if session is None:
            return
        room = self.registry.get(session.room_code)
        if room is None:
            return
        if session.role == SPECTATOR:
            room.remove_spectator(connection_id)
            return

        slot = room.slot_for(session.role)
        # Only the connection currently bound to the seat speaks for it
        if slot is None or slot.connection_id != connection_id:
            return
        opponent = room.player2 if session.role == PLAYER1 else room.player1
        if opponent is not None:
            self._push('opponent-disconnected', opponent.connection_id)
        logger.info(f"[disconnect] code={room.code} role={session.role}")

    # ---- history ----

    @staticmethod
    def _history_record(room: Room) -> dict:
        result = room.result
        return {
            'room_code': room.code,
            'player1_name': result.player1_name,
            'player2_name': result.player2_name,
            'challenge': result.challenge,
            'max_number': room.max_number,
            'player1_number': result.player1_number,
            'player2_number': result.player2_number,
            'matched': result.matched,
        }

    def _record(self, record: dict) -> None:
        try:
            self.history.append(record)
        except Exception:
            # History is advisory; the in-memory result stays authoritative
            logger.exception(f"[history-failed] code={record.get('room_code')}")
