"""Plain-text rendering of a game board."""

from typing import Sequence


def render_grid(grid: Sequence[Sequence[int]], empty: str = '.') -> str:
    """
    Render a board as aligned text, one line per row.

    Parameters
    ----------
    grid : Sequence[Sequence[int]]
        Cell values, 0 for empty cells.
    empty : str, optional
        Symbol drawn in empty cells (default is ``.``).

    Returns
    -------
    str
        The board, columns right-aligned on the widest tile.
    """
    cells = [[str(int(value)) if value else empty for value in row] for row in grid]
    width = max((len(cell) for row in cells for cell in row), default=1)
    return '\n'.join(' '.join(cell.rjust(width) for cell in row) for row in cells)
