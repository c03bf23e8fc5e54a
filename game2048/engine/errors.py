"""
Errors reported by the game engine.

None of them escapes a public engine operation: they are returned inside results and logged.
"""


class GameError(Exception):
    """Base class for game engine errors."""


class InvalidDirection(GameError, ValueError):
    """The requested direction is not one of up, down, left or right."""


class NoUndoAvailable(GameError):
    """An undo was requested but no snapshot is held."""


class CorruptPersistedState(GameError):
    """Loaded data does not have the shape of a game state or of settings."""
