"""
Tests for the game engine state machine.

Tests cover new games, moves and their results, terminal phases, the win-once rule,
change events and the stuck-left undo behaviour.
"""

import numpy as np
import pytest

from game2048.engine import (
    Direction,
    EventKind,
    GameConfig,
    GameEngine,
    GameState,
    InvalidDirection,
    Phase,
)

# ##>: Checkerboard rows without any equal neighbours.
STUCK_ROWS = [[2, 4, 2, 4], [4, 2, 4, 2], [2, 4, 2, 4]]


class ScriptedGenerator:
    """
    Generator stub placing planned tiles.

    ``values`` feeds tile value draws and ``cells`` feeds cell index draws (indices into the
    row-major list of empty cells). A seeded numpy generator takes over once a queue is empty.
    """

    def __init__(self, values=(), cells=()):
        self.values = list(values)
        self.cells = list(cells)
        self._fallback = np.random.default_rng(0)

    def choice(self, a, size=None, replace=True, p=None):
        queue = self.values if p is not None else self.cells
        count = size or 1
        if len(queue) < count:
            return self._fallback.choice(a, size=size, replace=replace, p=p)
        return np.array([queue.pop(0) for _ in range(count)])


def make_engine(rows, score=0, phase=Phase.PLAYING, values=(), cells=(), **kwargs):
    """Engine restored on the given rows, with planned tiles for the next moves."""
    generator = ScriptedGenerator()
    engine = GameEngine(generator=generator, **kwargs)
    engine.restore(GameState(grid=tuple(tuple(row) for row in rows), score=score, phase=phase))
    generator.values.extend(values)
    generator.cells.extend(cells)
    return engine


def count_tiles(state: GameState) -> int:
    return sum(1 for row in state.grid for cell in row if cell)


class TestNewGame:
    """Tests for game creation and reset."""

    def test_two_tiles(self):
        """A new game starts playing with exactly two tiles of value 2 or 4."""
        engine = GameEngine(generator=np.random.default_rng(42))
        state = engine.new_game()

        assert count_tiles(state) == 2
        assert all(cell in (0, 2, 4) for row in state.grid for cell in row)
        assert state.score == 0
        assert state.phase is Phase.PLAYING
        assert state.undo_count == 0
        assert not state.won
        assert not engine.can_undo

    def test_seeded_placement(self):
        """Scripted draws place the initial tiles at (0, 0) and (1, 1)."""
        engine = GameEngine(generator=ScriptedGenerator(values=[2, 2], cells=[0, 5]))
        grid = engine.state.grid

        assert grid[0][0] == 2
        assert grid[1][1] == 2
        assert count_tiles(engine.state) == 2

    def test_reset_keeps_best_score(self):
        """New game resets score, undo count and phase but keeps the best score."""
        engine = make_engine([[2, 2, 0, 0], [0] * 4, [0] * 4, [0] * 4])
        engine.move('left')
        engine.undo()

        state = engine.new_game()
        assert state.score == 0
        assert state.best_score == 4
        assert state.undo_count == 0
        assert not engine.can_undo

    def test_grid_size(self):
        """The grid follows the configured size."""
        engine = GameEngine(config=GameConfig(size=5), generator=np.random.default_rng(1))
        assert engine.state.size == 5
        assert count_tiles(engine.state) == 2


class TestMove:
    """Tests for move results and scoring."""

    def test_end_to_end(self):
        """Left merge on the first row scores 4 and reports the merge at (0, 0)."""
        engine = GameEngine(generator=ScriptedGenerator(values=[2, 2, 2], cells=[0, 5]))
        engine.restore(GameState(grid=((2, 2, 0, 0), (0, 2, 0, 0), (0, 0, 0, 0), (0, 0, 0, 0))))
        engine._generator.cells.append(13)

        result = engine.move(Direction.LEFT)

        assert result.success
        assert result.new_state.grid[0] == (4, 0, 0, 0)
        assert result.new_state.grid[1] == (2, 0, 0, 0)
        assert result.new_state.grid[3][3] == 2
        assert result.score_delta == 4
        assert (0, 0) in result.merged_positions
        assert result.new_state.score == 4

    def test_score_delta_is_sum_of_merges(self):
        """[2, 2, 4, 4] moved left gives [4, 8, 0, 0] and a delta of 12."""
        engine = make_engine([[2, 2, 4, 4], [0] * 4, [0] * 4, [0] * 4], cells=[13])
        result = engine.move('left')

        assert result.new_state.grid[0] == (4, 8, 0, 0)
        assert result.score_delta == 12
        assert sorted(result.merged_positions) == [(0, 0), (0, 1)]

    def test_no_cascade(self):
        """[2, 2, 2, 2] moved left gives [4, 4, 0, 0]."""
        engine = make_engine([[2, 2, 2, 2], [0] * 4, [0] * 4, [0] * 4], cells=[13])
        result = engine.move('left')

        assert result.new_state.grid[0] == (4, 4, 0, 0)
        assert result.score_delta == 8

    def test_merged_positions_other_directions(self):
        """Merged positions are reported in board coordinates."""
        engine = make_engine([[0, 0, 0, 0], [0, 2, 0, 0], [0, 2, 0, 0], [0, 0, 0, 0]])
        result = engine.move('down')

        assert result.merged_positions == [(3, 1)]
        assert result.new_state.grid[3][1] == 4

    def test_exactly_one_new_tile(self):
        """A successful move adds exactly one tile."""
        engine = make_engine([[2, 0, 0, 0], [0] * 4, [0] * 4, [0, 0, 0, 4]])
        result = engine.move('right')

        assert result.success
        assert count_tiles(result.new_state) == 3

    def test_string_directions(self):
        """Directions are accepted as strings in any case."""
        engine = make_engine([[2, 0, 0, 0], [0] * 4, [0] * 4, [0] * 4])
        assert engine.move(' RIGHT ').success

    def test_invalid_direction(self):
        """An unknown direction is rejected without changing the game."""
        engine = make_engine([[2, 2, 0, 0], [0] * 4, [0] * 4, [0] * 4])
        before = engine.state

        result = engine.move('diagonal')

        assert not result.success
        assert isinstance(result.error, InvalidDirection)
        assert engine.state == before

    def test_no_move_leaves_state_unchanged(self):
        """A move that changes nothing adds no tile and reports no move."""
        engine = make_engine([[2, 4, 8, 16], [0] * 4, [0] * 4, [0] * 4])
        before = engine.state

        result = engine.move('left')

        assert not result.success
        assert result.score_delta == 0
        assert result.merged_positions == []
        assert engine.state == before

    def test_no_move_clears_undo(self):
        """A move that changes nothing drops the undo snapshot."""
        engine = make_engine([[0, 0, 0, 2], [0] * 4, [0] * 4, [0] * 4], cells=[3])
        assert engine.move('left').success
        assert engine.can_undo

        assert not engine.move('left').success
        assert not engine.can_undo

    def test_repeated_direction(self):
        """Repeating a direction that no longer changes the board reports no move."""
        engine = make_engine([[0, 0, 0, 2], [0] * 4, [0] * 4, [0] * 4], values=[2], cells=[3])
        assert engine.move('left').success
        before = engine.state

        result = engine.move('left')

        assert not result.success
        assert engine.state == before
        assert count_tiles(engine.state) == 2

    def test_best_score(self):
        """The best score follows the score upwards."""
        engine = make_engine([[8, 8, 0, 0], [0] * 4, [0] * 4, [0] * 4], score=10)
        result = engine.move('left')

        assert result.new_state.score == 26
        assert result.new_state.best_score == 26

    def test_can_move_and_legal_directions(self):
        """Queries reflect the current board."""
        engine = make_engine([[2, 0, 0, 0], [0] * 4, [0] * 4, [0] * 4])
        assert engine.can_move()
        assert set(engine.legal_directions()) == {Direction.RIGHT, Direction.DOWN}


class TestPhases:
    """Tests for the win and stuck transitions."""

    def stuck_engine(self, score=100):
        rows = STUCK_ROWS + [[4, 2, 8, 8]]
        return make_engine(rows, score=score, values=[2], cells=[0])

    def test_stuck(self):
        """The game is stuck when no move remains after the new tile."""
        engine = self.stuck_engine()
        result = engine.move('left')

        assert result.success
        assert result.new_state.grid[3] == (4, 2, 16, 2)
        assert result.new_state.phase is Phase.STUCK
        assert result.phase_change == (Phase.PLAYING, Phase.STUCK)
        assert not engine.can_move()
        assert engine.legal_directions() == []

    def test_not_stuck_with_empty_cell(self):
        """A board with an empty cell is never stuck."""
        engine = make_engine([[2, 4, 2, 4], [4, 2, 4, 2], [2, 4, 2, 4], [4, 2, 4, 0]])
        assert engine.state.phase is Phase.PLAYING
        assert engine.can_move()

    def test_stuck_rejects_moves(self):
        """Moves other than left are rejected while stuck."""
        engine = self.stuck_engine()
        engine.move('left')
        before = engine.state

        for direction in ('up', 'down', 'right'):
            result = engine.move(direction)
            assert not result.success
            assert result.undo is None
        assert engine.state == before
        assert engine.can_undo

    def test_stuck_left_undoes(self):
        """Left on a stuck board undoes the move that locked it."""
        engine = self.stuck_engine(score=100)
        engine.move('left')

        result = engine.move('left')

        assert result.success
        assert result.undo is not None
        assert result.undo.penalty == 10
        assert result.new_state.phase is Phase.PLAYING
        assert result.new_state.grid[3] == (4, 2, 8, 8)
        assert result.new_state.score == 90
        assert result.new_state.undo_count == 1
        assert not engine.can_undo

    def test_stuck_left_without_snapshot(self):
        """Left on a stuck board without snapshot is rejected."""
        rows = STUCK_ROWS + [[4, 2, 4, 2]]
        engine = make_engine(rows, phase=Phase.STUCK)

        result = engine.move('left')

        assert not result.success
        assert result.undo is None
        assert engine.state.phase is Phase.STUCK

    def test_win(self):
        """Reaching the win tile sets the won phase."""
        engine = make_engine([[1024, 1024, 0, 0], [0] * 4, [0] * 4, [0] * 4])
        result = engine.move('left')

        assert result.new_state.phase is Phase.WON
        assert result.new_state.won
        assert result.phase_change == (Phase.PLAYING, Phase.WON)

    def test_win_once(self):
        """Higher tiles after a win do not trigger the transition again."""
        engine = make_engine([[1024, 1024, 0, 0], [1024, 1024, 0, 0], [0] * 4, [0] * 4])
        engine.move('left')

        result = engine.move('up')

        assert result.success
        assert result.new_state.grid[0][0] == 4096
        assert result.new_state.phase is Phase.WON
        assert result.phase_change is None

    def test_win_once_after_undo(self):
        """Undoing the winning move and winning again keeps the game playing."""
        engine = make_engine([[1024, 1024, 0, 0], [0] * 4, [0] * 4, [0] * 4])
        engine.move('left')
        undone = engine.undo()
        assert undone.new_state.phase is Phase.PLAYING
        assert undone.new_state.won

        result = engine.move('left')
        assert result.success
        assert result.new_state.phase is Phase.PLAYING
        assert result.phase_change is None

    def test_won_then_stuck(self):
        """A won game can lock up later, and undo brings back the won phase."""
        rows = ((2048, 4, 2, 4), (4, 2, 4, 2), (2, 4, 2, 8), (4, 2, 16, 16))
        engine = make_engine(rows, score=20000, phase=Phase.WON)

        # ##>: The merge leaves one empty cell and any new tile keeps the board stuck.
        result = engine.move('left')
        assert result.success
        assert result.new_state.grid[3][:3] == (4, 2, 32)
        assert result.new_state.phase is Phase.STUCK
        assert result.phase_change == (Phase.WON, Phase.STUCK)

        undone = engine.undo()
        assert undone.success
        assert undone.new_state.phase is Phase.WON
        assert undone.new_state.won
        assert undone.new_state.grid == rows

    def test_win_threshold_config(self):
        """The win tile comes from the configuration."""
        engine = make_engine([[64, 64, 0, 0], [0] * 4, [0] * 4, [0] * 4], config=GameConfig(win_tile=128))
        assert engine.move('left').new_state.phase is Phase.WON

    def test_new_game_resets_win(self):
        """A new game can be won again."""
        engine = make_engine([[1024, 1024, 0, 0], [0] * 4, [0] * 4, [0] * 4])
        engine.move('left')

        state = engine.new_game()
        assert state.phase is Phase.PLAYING
        assert not state.won


class TestEvents:
    """Tests for change notifications."""

    def test_move_event(self):
        """A move notifies listeners with grid, merges and score delta."""
        events = []
        engine = make_engine([[2, 2, 0, 0], [0] * 4, [0] * 4, [0] * 4])
        engine.subscribe(events.append)

        engine.move('left')

        assert len(events) == 1
        event = events[0]
        assert event.kind is EventKind.MOVE
        assert event.grid == engine.state.grid
        assert event.merged_positions == [(0, 0)]
        assert event.score_delta == 4

    def test_no_event_without_change(self):
        """Rejected moves and undos notify nobody."""
        events = []
        engine = make_engine([[2, 0, 0, 0], [0] * 4, [0] * 4, [0] * 4])
        engine.subscribe(events.append)

        engine.move('left')
        engine.undo()

        assert events == []

    def test_undo_and_new_game_events(self):
        """Undo reports its penalty; new games are announced."""
        events = []
        engine = make_engine([[2, 2, 0, 0], [0] * 4, [0] * 4, [0] * 4], score=50)
        engine.subscribe(events.append)

        engine.move('left')
        engine.undo()
        engine.new_game()

        assert [event.kind for event in events] == [EventKind.MOVE, EventKind.UNDO, EventKind.NEW_GAME]
        assert events[1].penalty == 10

    def test_unsubscribe(self):
        """Removed listeners are no longer called."""
        events = []
        engine = make_engine([[2, 2, 0, 0], [0] * 4, [0] * 4, [0] * 4])
        engine.subscribe(events.append)
        engine.unsubscribe(events.append)

        engine.move('left')
        assert events == []


class TestRender:
    def test_render(self):
        """The text board shows empty cells as dots."""
        engine = make_engine([[2, 0], [0, 16]], config=GameConfig(size=2))
        assert engine.render() == ' 2  .\n . 16'


if __name__ == '__main__':
    pytest.main([__file__])
