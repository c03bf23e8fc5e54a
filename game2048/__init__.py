# -*- coding: utf-8 -*-
"""
Python implementation of the 2048 puzzle game engine.
"""

from .engine import Direction, GameConfig, GameEngine, GameState, Phase
from .storage import JsonFileStorage, MemoryStorage

__all__ = ['GameEngine', 'GameConfig', 'GameState', 'Direction', 'Phase', 'JsonFileStorage', 'MemoryStorage']
