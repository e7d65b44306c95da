from .errors import (
    ConflictError,
    InvalidInputError,
    InvalidRoleError,
    InvalidSessionError,
    RoomError,
    RoomNotFoundError,
)
from .machine import RoomStateMachine, Session
from .registry import RoomRegistry
from .room import CHALLENGE_SET, COMPLETED, PLAYER1, PLAYER2, SPECTATOR, WAITING, GameResult, Room

__all__ = [
    'CHALLENGE_SET',
    'COMPLETED',
    'ConflictError',
    'GameResult',
    'InvalidInputError',
    'InvalidRoleError',
    'InvalidSessionError',
    'PLAYER1',
    'PLAYER2',
    'Room',
    'RoomError',
    'RoomNotFoundError',
    'RoomRegistry',
    'RoomStateMachine',
    'SPECTATOR',
    'Session',
    'WAITING',
]
