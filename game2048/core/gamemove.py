"""
Direction codes for the 2048 game and the check telling whether a move changes the board.
"""

from numpy import ndarray, rot90

# ##>: Quarter turns that bring each direction to a slide to the left, as used by ``latent_state``.
LEFT, UP, RIGHT, DOWN = 0, 1, 2, 3


def changes_board(board: ndarray, action: int) -> bool:
    """
    Check whether a move would change the board, without computing the move.

    Parameters
    ----------
    board : ndarray
        The current state of the game board.
    action : int
        The direction code (0: left, 1: up, 2: right, 3: down).

    Returns
    -------
    bool
        True if a tile can slide into an empty cell or merge with its neighbour.
    """
    rotated = rot90(board, k=action)
    leading, trailing = rotated[:, :-1], rotated[:, 1:]
    return bool(((trailing != 0) & ((leading == 0) | (leading == trailing))).any())
