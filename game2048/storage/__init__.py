# -*- coding: utf-8 -*-
"""
Persistence backends for the 2048 game engine.
"""

from .base import StorageBackend
from .jsonfile import JsonFileStorage
from .memory import MemoryStorage

__all__ = ['StorageBackend', 'MemoryStorage', 'JsonFileStorage']
