# -*- coding: utf-8 -*-
"""
Pure grid functions for the 2048 game.

It includes functions for sliding and merging lines, applying a move in any direction,
filling empty cells with random tiles, checking whether the game is stuck or won, and
telling whether a direction changes the board.
"""

from .gameboard import can_move, fill_cells, has_tile, latent_state, merge_line, slide_and_merge
from .gamemove import DOWN, LEFT, RIGHT, UP, changes_board

__all__ = [
    'LEFT',
    'UP',
    'RIGHT',
    'DOWN',
    'merge_line',
    'slide_and_merge',
    'latent_state',
    'fill_cells',
    'can_move',
    'has_tile',
    'changes_board',
]
