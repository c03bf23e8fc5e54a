"""
Value types exchanged between the game engine, its persistence layer and the presentation layer.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from numpy import array, int64, ndarray

from game2048.core.gamemove import DOWN, LEFT, RIGHT, UP
from game2048.engine.errors import CorruptPersistedState, GameError, InvalidDirection

# ##>: Type aliases.
Grid = tuple[tuple[int, ...], ...]
Position = tuple[int, int]


class Direction(str, Enum):
    """
    Move direction.

    Each member knows the direction code used by the grid functions.
    """

    LEFT = 'left'
    UP = 'up'
    RIGHT = 'right'
    DOWN = 'down'

    @property
    def code(self) -> int:
        """Direction code understood by ``latent_state``."""
        return _DIRECTION_CODES[self]

    @classmethod
    def parse(cls, value: Any) -> 'Direction':
        """
        Convert user input into a direction.

        Parameters
        ----------
        value : Any
            A ``Direction`` or one of the strings up, down, left, right (any case).

        Returns
        -------
        Direction
            The matching direction.

        Raises
        ------
        InvalidDirection
            If the value is not one of the four directions.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        raise InvalidDirection(f'unknown direction: {value!r}')


_DIRECTION_CODES = {Direction.LEFT: LEFT, Direction.UP: UP, Direction.RIGHT: RIGHT, Direction.DOWN: DOWN}


class Phase(str, Enum):
    """Terminal-state classification of a game."""

    PLAYING = 'playing'
    WON = 'won'
    STUCK = 'stuck'


class EventKind(str, Enum):
    """Kind of change reported to listeners."""

    NEW_GAME = 'new_game'
    MOVE = 'move'
    UNDO = 'undo'


def grid_to_tuple(board: ndarray) -> Grid:
    """Freeze a board into nested tuples of plain integers."""
    return tuple(tuple(int(cell) for cell in row) for row in board.tolist())


def grid_to_array(grid: Grid) -> ndarray:
    """Build a writable board from nested sequences."""
    return array(grid, dtype=int64)


def _is_tile(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, int):
        return False
    return value == 0 or (value >= 2 and value & (value - 1) == 0)


def _validate_grid(grid: Any, size: Optional[int]) -> Grid:
    if not isinstance(grid, (list, tuple)) or not grid:
        raise CorruptPersistedState('grid must be a non-empty sequence of rows')
    size = len(grid) if size is None else size
    if len(grid) != size:
        raise CorruptPersistedState(f'grid must have {size} rows')
    for row in grid:
        if not isinstance(row, (list, tuple)) or len(row) != size:
            raise CorruptPersistedState(f'grid rows must have {size} cells')
        if not all(_is_tile(cell) for cell in row):
            raise CorruptPersistedState(f'invalid cell value in row {row!r}')
    return tuple(tuple(row) for row in grid)


def _validate_count(data: dict, key: str) -> int:
    value = data[key]
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise CorruptPersistedState(f'{key} must be a non-negative integer, got {value!r}')
    return value


@dataclass(frozen=True)
class GameState:
    """
    Externally observable snapshot of a game.

    Attributes
    ----------
    grid : Grid
        Cell values, 0 for empty cells.
    score : int
        Current score.
    best_score : int
        Highest score reached so far.
    phase : Phase
        Current phase of the game.
    undo_count : int
        Number of undos used in this game.
    won : bool
        Whether the win tile has been reached in this game.
    """

    grid: Grid
    score: int = 0
    best_score: int = 0
    phase: Phase = Phase.PLAYING
    undo_count: int = 0
    won: bool = False

    @property
    def size(self) -> int:
        """Side of the grid."""
        return len(self.grid)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to plain JSON types."""
        return {
            'grid': [list(row) for row in self.grid],
            'score': self.score,
            'bestScore': self.best_score,
            'phase': self.phase.value,
            'undoCount': self.undo_count,
            'won': self.won,
        }

    @classmethod
    def from_dict(cls, data: Any, size: Optional[int] = None) -> 'GameState':
        """
        Rebuild a state from its serialized form.

        Parameters
        ----------
        data : Any
            Output of ``to_dict``, usually loaded from storage.
        size : int, optional
            Expected side of the grid. Any square grid is accepted when omitted.

        Returns
        -------
        GameState
            The validated state.

        Raises
        ------
        CorruptPersistedState
            If the data does not describe a valid state for this grid size.
        """
        if not isinstance(data, dict):
            raise CorruptPersistedState(f'state must be a mapping, got {type(data).__name__}')

        missing = {'grid', 'score', 'phase'} - set(data)
        if missing:
            raise CorruptPersistedState(f'state is missing {sorted(missing)}')

        phase_value = data['phase']
        try:
            phase = Phase(phase_value)
        except ValueError as error:
            raise CorruptPersistedState(f'unknown phase {phase_value!r}') from error

        won = data.get('won', phase is Phase.WON)
        if not isinstance(won, bool):
            raise CorruptPersistedState(f'won must be a boolean, got {won!r}')

        return cls(
            grid=_validate_grid(data['grid'], size),
            score=_validate_count(data, 'score'),
            best_score=_validate_count(data, 'bestScore') if 'bestScore' in data else 0,
            phase=phase,
            undo_count=_validate_count(data, 'undoCount') if 'undoCount' in data else 0,
            won=won,
        )


@dataclass(frozen=True, eq=False)
class UndoSnapshot:
    """State retained just before the last applied move."""

    grid: ndarray
    score: int
    phase: Phase

    @classmethod
    def capture(cls, board: ndarray, score: int, phase: Phase) -> 'UndoSnapshot':
        """Copy the current board, score and phase."""
        return cls(grid=board.copy(), score=score, phase=phase)


@dataclass(frozen=True)
class UndoResult:
    """Outcome of an undo."""

    success: bool
    penalty: int
    new_state: GameState
    error: Optional[GameError] = None


@dataclass(frozen=True)
class MoveResult:
    """
    Outcome of a move.

    ``undo`` is set when a left move on a stuck board was handled as an undo.
    """

    success: bool
    score_delta: int
    merged_positions: list[Position]
    new_state: GameState
    phase_change: Optional[tuple[Phase, Phase]] = None
    undo: Optional[UndoResult] = None
    error: Optional[GameError] = None


@dataclass(frozen=True)
class GameEvent:
    """Change notification sent to listeners once the engine state is updated."""

    kind: EventKind
    grid: Grid
    merged_positions: list[Position] = field(default_factory=list)
    score_delta: int = 0
    penalty: int = 0
    phase_change: Optional[tuple[Phase, Phase]] = None


@dataclass
class GameStatistics:
    """Lifetime statistics kept by the persistence layer."""

    games_played: int = 0
    wins: int = 0
    highest_tile: int = 0
    moves_made: int = 0
    undo_count: int = 0

    def to_dict(self) -> dict[str, int]:
        """Serialize to plain JSON types."""
        return {
            'gamesPlayed': self.games_played,
            'wins': self.wins,
            'highestTile': self.highest_tile,
            'movesMade': self.moves_made,
            'undoCount': self.undo_count,
        }

    @classmethod
    def from_dict(cls, data: Any) -> 'GameStatistics':
        """Rebuild statistics, missing counters starting at zero."""
        if not isinstance(data, dict):
            raise CorruptPersistedState(f'statistics must be a mapping, got {type(data).__name__}')
        keys = {
            'games_played': 'gamesPlayed',
            'wins': 'wins',
            'highest_tile': 'highestTile',
            'moves_made': 'movesMade',
            'undo_count': 'undoCount',
        }
        return cls(**{name: _validate_count(data, key) for name, key in keys.items() if key in data})
