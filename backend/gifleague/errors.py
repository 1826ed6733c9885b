"""Rejections raised by the room state machine.

Only errors with ``surface = True`` are reported back to the client that
sent the action. Everything else is dropped quietly so that duplicate or
late retries from flaky connections do no harm.
"""


class GameError(Exception):
    surface = False
    message = 'Action rejected'

    def __init__(self, message=None):
        super().__init__(message or self.message)
        self.message = message or self.message


class RoomNotFound(GameError):
    surface = True
    message = 'Room not found'


class GameAlreadyStarted(GameError):
    surface = True
    message = 'Game already started'


class InsufficientPlayers(GameError):
    surface = True
    message = 'Not enough players to start'


class RoomIdExhausted(GameError):
    surface = True
    message = 'No free room ids, try again later'


class NotAuthorized(GameError):
    message = 'Not allowed to perform this action'


class InvalidPhase(GameError):
    message = 'Action not valid in the current phase'


class InvalidPayload(GameError):
    message = 'Malformed action payload'
