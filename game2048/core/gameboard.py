"""
Grid transforms for the 2048 game: sliding, merging, random tile placement and terminal checks.
"""

from numpy import all as np_all
from numpy import any as np_any
from numpy import argwhere, array, ndarray, rot90, zeros, zeros_like
from numpy.random import PCG64DXSM, Generator, default_rng

# ##>: New tile values and their probabilities (90% for 2, 10% for 4).
_TILE_VALUES = [2, 4]
_TILE_PROBS = [0.9, 0.1]

# ##>: Module-level generator, used when no generator is injected.
_GENERATOR = default_rng(PCG64DXSM())


def merge_line(line: ndarray) -> tuple[int, ndarray, ndarray]:
    """
    Compact a line towards its start and merge adjacent equal values.

    Parameters
    ----------
    line : ndarray
        A 1D array read from the leading edge (where tiles move to) to the trailing edge.

    Returns
    -------
    score : int
        The sum of the values produced by merges.
    merged_line : ndarray
        The compacted and merged values, without padding.
    merged_mask : ndarray
        Boolean array, same length as ``merged_line``, True where a cell results from a merge.

    Notes
    -----
    - Zeros (empty cells) are removed before merging.
    - Merging occurs from the start of the line towards the end.
    - A merged value cannot merge again in the same call: ``[2, 2, 2, 2]`` gives ``[4, 4]``.
    """
    non_zero = line[line != 0]
    if len(non_zero) <= 1:
        return 0, non_zero, zeros(len(non_zero), dtype=bool)

    result = []
    merged = []
    score = 0

    # ##: Single pass over the compacted values.
    i = 0
    while i < len(non_zero) - 1:
        if non_zero[i] == non_zero[i + 1]:
            value = int(non_zero[i]) * 2
            result.append(value)
            merged.append(True)
            score += value
            i += 2
        else:
            result.append(non_zero[i])
            merged.append(False)
            i += 1

    if i == len(non_zero) - 1:
        result.append(non_zero[-1])
        merged.append(False)

    return score, array(result, dtype=line.dtype), array(merged, dtype=bool)


def slide_and_merge(board: ndarray) -> tuple[int, ndarray, ndarray]:
    """
    Slide every row of the board to the left and merge adjacent cells.

    Parameters
    ----------
    board : ndarray
        The game board represented as a 2D NumPy array.

    Returns
    -------
    score : int
        The total score obtained from all merges.
    updated_board : ndarray
        The board after sliding and merging, padded with zeros on the right.
    merged_mask : ndarray
        Boolean board, True at every cell produced by a merge.
    """
    result = zeros_like(board)
    merged_mask = zeros(board.shape, dtype=bool)
    score = 0

    for i, row in enumerate(board):
        score_row, merged_row, merged_flags = merge_line(row)
        score += score_row
        result[i, : len(merged_row)] = merged_row
        merged_mask[i, : len(merged_flags)] = merged_flags

    return score, result, merged_mask


def latent_state(board: ndarray, action: int) -> tuple[ndarray, int, ndarray]:
    """
    Compute the board after a move, without adding a new tile.

    Parameters
    ----------
    board : ndarray
        The current state of the game board.
    action : int
        The direction code (0: left, 1: up, 2: right, 3: down).

    Returns
    -------
    new_board : ndarray
        The board after applying the move.
    score : int
        The score obtained from this move.
    merged_mask : ndarray
        Boolean board in the original orientation, True where merges landed.

    Notes
    -----
    The board is rotated so that every direction becomes a slide to the left, then rotated back.
    """
    rotated_board = rot90(board, k=action)
    score, updated_board, merged_mask = slide_and_merge(rotated_board)
    return rot90(updated_board, k=-action).copy(), score, rot90(merged_mask, k=-action).copy()


def fill_cells(board: ndarray, number_tile: int, generator: Generator | None = None) -> ndarray:
    """
    Fill empty cells with new tiles (2 or 4).

    Parameters
    ----------
    board : ndarray
        The current state of the game board. **Modified in-place.**
    number_tile : int
        Number of new tiles to add.
    generator : Generator, optional
        Random source. The module-level generator is used when omitted.

    Returns
    -------
    ndarray
        The same array reference with new tiles added.

    Notes
    -----
    - New tiles have a 90% chance of being 2 and a 10% chance of being 4.
    - Cells are chosen uniformly among the empty ones, without replacement.
    - If there are fewer empty cells than requested, it fills all available cells.
    """
    rng = generator if generator is not None else _GENERATOR

    # ##: Only if there are still available places.
    available_cells = argwhere(board == 0)
    number_tile = min(number_tile, len(available_cells))
    if number_tile > 0:
        values = rng.choice(_TILE_VALUES, size=number_tile, p=_TILE_PROBS)

        # ##: Randomly choose cell positions in board.
        chosen_indices = rng.choice(len(available_cells), size=number_tile, replace=False)

        # ##: Fill empty cells.
        board[tuple(available_cells[chosen_indices].T)] = values
    return board


def can_move(board: ndarray) -> bool:
    """
    Check if any move is still possible on the board.

    Parameters
    ----------
    board : ndarray
        The game board to check.

    Returns
    -------
    bool
        True if an empty cell exists or two adjacent cells hold the same non-zero value.
    """
    if not np_all(board != 0):
        return True
    return bool(np_any(board[:-1] == board[1:]) or np_any(board[:, :-1] == board[:, 1:]))


def has_tile(board: ndarray, value: int) -> bool:
    """Check whether any tile has reached ``value``."""
    return bool(np_any(board >= value))
