# -*- coding: utf-8 -*-
"""
Helpers for presenting game boards.
"""

from .render import render_grid

__all__ = ['render_grid']
