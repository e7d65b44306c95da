"""Room protocol errors.

Every error carries a client-facing message; the socket layer turns them
into ``{'success': False, 'error': message}`` acknowledgements.
"""


class RoomError(Exception):
    """Base class for room-domain errors."""

    kind = 'error'

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self):
        return {'success': False, 'error': self.message}


class RoomNotFoundError(RoomError):
    """Raised when a room code (or the caller's room) does not exist."""

    kind = 'not_found'


class InvalidSessionError(RoomNotFoundError):
    """Raised when a rejoin token matches no role in the room."""

    kind = 'invalid_session'


class InvalidRoleError(RoomError):
    """Raised when the caller's role may not perform the operation."""

    kind = 'invalid_role'


class InvalidInputError(RoomError):
    kind = 'invalid_input'


class ConflictError(RoomError):
    """Raised when the room is in the wrong state for the operation."""

    kind = 'conflict'
