"""2048 game engine: grid state machine with scoring, terminal detection and single-level undo."""

import logging
import sys
from math import floor
from typing import TYPE_CHECKING, Any, Callable, Optional

from numpy import argwhere, array_equal, int64, ndarray, zeros
from numpy.random import Generator

from game2048.core.gameboard import can_move, fill_cells, has_tile, latent_state
from game2048.core.gamemove import changes_board
from game2048.engine.config import GameConfig
from game2048.engine.errors import CorruptPersistedState, InvalidDirection, NoUndoAvailable
from game2048.engine.types import (
    Direction,
    EventKind,
    GameEvent,
    GameState,
    GameStatistics,
    MoveResult,
    Phase,
    UndoResult,
    UndoSnapshot,
    grid_to_array,
    grid_to_tuple,
)
from game2048.utils.render import render_grid

if TYPE_CHECKING:
    from game2048.storage.base import StorageBackend

# ##>: Module logger.
_logger = logging.getLogger(__name__)

Listener = Callable[[GameEvent], Any]


class GameEngine:
    """
    2048 game engine.

    This class owns the board, the score and the game phase. It applies moves, keeps one undo
    snapshot, reports changes to listeners and, when a storage backend is attached, saves the
    game after every change.

    Parameters
    ----------
    config : GameConfig, optional
        Grid size, win tile and undo penalty settings.
    storage : StorageBackend, optional
        Persistence collaborator. Nothing is saved when omitted.
    generator : Generator, optional
        Random source for new tiles. A process-wide generator is used when omitted.

    Notes
    -----
    - The constructor starts a fresh game without reading storage; call ``resume`` to continue a
      saved game.
    - Game-level errors are never raised by ``move`` or ``undo``; they are returned in the result.
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        storage: Optional['StorageBackend'] = None,
        generator: Optional[Generator] = None,
    ):
        self.config = config or GameConfig()
        self._storage = storage
        self._generator = generator
        self._listeners: list[Listener] = []

        self._board: ndarray = zeros((self.config.size, self.config.size), dtype=int64)
        self._score = 0
        self._best_score = 0
        self._phase = Phase.PLAYING
        self._undo_count = 0
        self._won = False
        self._snapshot: Optional[UndoSnapshot] = None
        self._stats = GameStatistics()

        self._start()

    # ##: State queries.

    @property
    def state(self) -> GameState:
        """Read-only snapshot of the current game."""
        return GameState(
            grid=grid_to_tuple(self._board),
            score=self._score,
            best_score=self._best_score,
            phase=self._phase,
            undo_count=self._undo_count,
            won=self._won,
        )

    def get_state(self) -> GameState:
        """Return a read-only snapshot of the current game."""
        return self.state

    @property
    def board(self) -> ndarray:
        """Copy of the current board."""
        return self._board.copy()

    @property
    def phase(self) -> Phase:
        return self._phase

    @property
    def can_undo(self) -> bool:
        """Whether an undo snapshot is held."""
        return self._snapshot is not None

    @property
    def statistics(self) -> GameStatistics:
        return self._stats

    def can_move(self) -> bool:
        """
        Check if any move is still possible.

        Returns
        -------
        bool
            True if an empty cell exists or two adjacent cells hold equal values.
        """
        return can_move(self._board)

    def legal_directions(self) -> list[Direction]:
        """List the directions that would change the board."""
        if self._phase is Phase.STUCK:
            return []
        return [direction for direction in Direction if changes_board(self._board, direction.code)]

    def undo_penalty(self) -> int:
        """
        Compute the penalty the next undo would cost.

        Returns
        -------
        int
            ``floor(base * multiplier ** undo_count)``, capped at ``sys.maxsize`` once the float
            computation overflows. Any capped penalty takes the score down to zero.
        """
        try:
            return floor(self.config.undo_penalty_base * self.config.undo_penalty_multiplier**self._undo_count)
        except OverflowError:
            return sys.maxsize

    def render(self) -> str:
        """Render the board as text."""
        return render_grid(self._board)

    # ##: Listeners.

    def subscribe(self, listener: Listener) -> None:
        """Register a callable receiving a ``GameEvent`` after each change."""
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        """Remove a previously registered listener."""
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _emit(self, event: GameEvent) -> None:
        for listener in list(self._listeners):
            listener(event)

    # ##: Game lifecycle.

    def _start(self) -> None:
        self._board = zeros((self.config.size, self.config.size), dtype=int64)
        fill_cells(self._board, number_tile=2, generator=self._generator)
        self._score = 0
        self._phase = Phase.PLAYING
        self._undo_count = 0
        self._won = False
        self._snapshot = None

    def new_game(self) -> GameState:
        """
        Start a new game with two random tiles.

        Returns
        -------
        GameState
            The state of the new game.

        Notes
        -----
        The best score and lifetime statistics are kept; score, undo count and phase are reset.
        """
        self._start()
        self._stats.games_played += 1
        _logger.info('New %dx%d game started', self.config.size, self.config.size)

        self._persist()
        self._emit(GameEvent(kind=EventKind.NEW_GAME, grid=grid_to_tuple(self._board)))
        return self.state

    def restore(self, state: GameState) -> GameState:
        """
        Replace the current game with a saved one.

        Parameters
        ----------
        state : GameState
            The state to restore. Its grid must match the configured size.

        Returns
        -------
        GameState
            The restored state. The best score keeps the highest known value.

        Raises
        ------
        CorruptPersistedState
            If the state does not have the configured grid size.
        """
        if state.size != self.config.size:
            raise CorruptPersistedState(f'expected a {self.config.size}x{self.config.size} grid, got {state.size}')

        self._board = grid_to_array(state.grid)
        self._score = state.score
        self._best_score = max(self._best_score, state.best_score, state.score)
        self._phase = state.phase
        self._undo_count = state.undo_count
        self._won = state.won or state.phase is Phase.WON
        self._snapshot = None
        return self.state

    def resume(self) -> GameState:
        """
        Continue the game saved in storage, or start a new one.

        Settings and best score are loaded first. A missing, corrupt or wrong-size saved state is
        discarded and a new game is started.

        Returns
        -------
        GameState
            The resumed or new game state.
        """
        if self._storage is None:
            return self.state

        try:
            self.config = self.config.merge(self._storage.load_settings())
        except CorruptPersistedState as error:
            _logger.warning('Ignoring stored settings: %s', error)

        self._best_score = max(self._best_score, self._storage.load_best_score())
        self._stats = self._storage.load_stats()

        try:
            saved = self._storage.load_state(size=self.config.size)
        except CorruptPersistedState as error:
            _logger.warning('Discarding saved game: %s', error)
            saved = None

        if saved is None:
            return self.new_game()

        _logger.info('Saved game resumed (score %d, phase %s)', saved.score, saved.phase.value)
        return self.restore(saved)

    # ##: Moves.

    def move(self, direction: Any) -> MoveResult:
        """
        Apply a move in the given direction.

        Parameters
        ----------
        direction : Direction or str
            One of up, down, left, right.

        Returns
        -------
        MoveResult
            ``success`` is False when the direction is invalid, the game is stuck or nothing moved.

        Notes
        -----
        - A successful move saves an undo snapshot, adds one random tile, then checks for a win
          (first time a tile reaches the win tile) and otherwise for a stuck board.
        - A move that changes nothing clears the undo snapshot.
        - On a stuck board, moving left undoes the last move when a snapshot exists. This is a
          deliberate quirk kept for parity with the web version of the game.
        """
        try:
            direction = Direction.parse(direction)
        except InvalidDirection as error:
            _logger.debug('Rejected move: %s', error)
            return MoveResult(success=False, score_delta=0, merged_positions=[], new_state=self.state, error=error)

        if self._phase is Phase.STUCK:
            if direction is Direction.LEFT and self._snapshot is not None:
                undo_result = self.undo()
                return MoveResult(
                    success=undo_result.success,
                    score_delta=0,
                    merged_positions=[],
                    new_state=undo_result.new_state,
                    phase_change=(Phase.STUCK, self._phase),
                    undo=undo_result,
                )
            _logger.debug('Rejected move %s: game is stuck', direction.value)
            return MoveResult(success=False, score_delta=0, merged_positions=[], new_state=self.state)

        new_board, score_delta, merged_mask = latent_state(self._board, direction.code)
        if array_equal(new_board, self._board):
            self._snapshot = None
            _logger.debug('No move %s', direction.value)
            return MoveResult(success=False, score_delta=0, merged_positions=[], new_state=self.state)

        # ##: Keep the pre-move state for undo, then apply.
        self._snapshot = UndoSnapshot.capture(self._board, self._score, self._phase)
        previous_phase = self._phase
        previous_best = self._best_score

        self._board = new_board
        self._score += score_delta
        self._best_score = max(self._best_score, self._score)
        fill_cells(self._board, number_tile=1, generator=self._generator)

        # ##: Terminal conditions, win first.
        if not self._won and has_tile(self._board, self.config.win_tile):
            self._phase = Phase.WON
            self._won = True
            self._stats.wins += 1
        elif not can_move(self._board):
            self._phase = Phase.STUCK

        phase_change = (previous_phase, self._phase) if self._phase is not previous_phase else None
        if phase_change:
            _logger.info('Phase changed from %s to %s', previous_phase.value, self._phase.value)

        merged_positions = [(int(row), int(col)) for row, col in argwhere(merged_mask)]
        _logger.debug('Moved %s: +%d, %d merges', direction.value, score_delta, len(merged_positions))

        self._stats.moves_made += 1
        self._stats.highest_tile = max(self._stats.highest_tile, int(self._board.max()))
        self._persist(best_changed=self._best_score > previous_best)

        self._emit(
            GameEvent(
                kind=EventKind.MOVE,
                grid=grid_to_tuple(self._board),
                merged_positions=merged_positions,
                score_delta=score_delta,
                phase_change=phase_change,
            )
        )
        return MoveResult(
            success=True,
            score_delta=score_delta,
            merged_positions=merged_positions,
            new_state=self.state,
            phase_change=phase_change,
        )

    def undo(self) -> UndoResult:
        """
        Revert the last move at the cost of a score penalty.

        Returns
        -------
        UndoResult
            ``success`` is False with a ``NoUndoAvailable`` error when no snapshot is held.

        Notes
        -----
        - The penalty is computed from the undo count before this undo.
        - The score never goes below zero.
        - Only one move can be undone; the snapshot is consumed.
        - A restored stuck phase becomes playing.
        """
        if self._snapshot is None:
            error = NoUndoAvailable('no move to undo')
            _logger.debug('Rejected undo: %s', error)
            return UndoResult(success=False, penalty=0, new_state=self.state, error=error)

        penalty = self.undo_penalty()
        previous_phase = self._phase
        snapshot, self._snapshot = self._snapshot, None

        self._undo_count += 1
        self._board = snapshot.grid.copy()
        self._phase = Phase.PLAYING if snapshot.phase is Phase.STUCK else snapshot.phase
        self._score = max(0, snapshot.score - penalty)
        _logger.info('Move undone, penalty %d (undo #%d)', penalty, self._undo_count)

        self._stats.undo_count += 1
        self._persist()

        phase_change = (previous_phase, self._phase) if self._phase is not previous_phase else None
        self._emit(
            GameEvent(kind=EventKind.UNDO, grid=grid_to_tuple(self._board), penalty=penalty, phase_change=phase_change)
        )
        return UndoResult(success=True, penalty=penalty, new_state=self.state)

    # ##: Persistence.

    def save(self) -> bool:
        """
        Save the current game, best score and statistics.

        Returns
        -------
        bool
            False if no storage is attached or a write failed.
        """
        if self._storage is None:
            return False
        return self._persist(best_changed=True)

    def _persist(self, best_changed: bool = False) -> bool:
        if self._storage is None:
            return True

        saved = self._storage.save_state(self.state)
        if best_changed:
            saved = self._storage.save_best_score(self._best_score) and saved
        saved = self._storage.save_stats(self._stats) and saved
        if not saved:
            _logger.warning('Game could not be fully saved')
        return saved
