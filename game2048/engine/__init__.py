# -*- coding: utf-8 -*-
"""
2048 game engine.

This module provides the `GameEngine` class, which owns a game and applies moves and undos,
together with the value types it exchanges with persistence and presentation layers.
"""

from .config import GameConfig
from .engine import GameEngine
from .errors import CorruptPersistedState, GameError, InvalidDirection, NoUndoAvailable
from .types import (
    Direction,
    EventKind,
    GameEvent,
    GameState,
    GameStatistics,
    MoveResult,
    Phase,
    UndoResult,
    UndoSnapshot,
)

__all__ = [
    'GameEngine',
    'GameConfig',
    'Direction',
    'Phase',
    'EventKind',
    'GameEvent',
    'GameState',
    'GameStatistics',
    'MoveResult',
    'UndoResult',
    'UndoSnapshot',
    'GameError',
    'InvalidDirection',
    'NoUndoAvailable',
    'CorruptPersistedState',
]
