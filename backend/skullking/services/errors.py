class RoomError(Exception):
    """Base class for lobby errors that map onto an HTTP response."""

    status_code = 400

    def __init__(self, message=None, status_code=None):
        super().__init__(message or self.__doc__)
        self.message = message or self.__doc__
        if status_code is not None:
            self.status_code = status_code


class InvalidRoomCode(RoomError):
    """Invalid room code"""


class RoomNotFound(RoomError):
    """Room not found"""
    status_code = 404


class RoomNotJoinable(RoomError):
    """This game has already started"""
    status_code = 409


class RoomFull(RoomError):
    """This game is full"""
    status_code = 409


class NotInRoom(RoomError):
    """You are not a player in this room"""
    status_code = 400


class NotRoomOwner(RoomError):
    """Only the room owner can do that"""
    status_code = 403


class NotEnoughPlayers(RoomError):
    """Not enough players to start"""
    status_code = 409


class InvalidStateTransition(RoomError):
    """Invalid room status transition"""
    status_code = 409


class SettingsError(RoomError):
    """Invalid room settings"""


class RoomCodeExhausted(RoomError):
    """Could not generate a unique room code"""
    status_code = 500
