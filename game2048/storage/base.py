"""
Persistence contract consumed by the game engine.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

from game2048.engine.config import GameConfig
from game2048.engine.errors import CorruptPersistedState
from game2048.engine.types import GameState, GameStatistics

# ##>: Module logger.
_logger = logging.getLogger(__name__)


class StorageBackend(ABC):
    """
    Key/value persistence for game data.

    Subclasses implement the raw ``_read``, ``_write`` and ``clear`` primitives on JSON-shaped
    values. The public methods convert to and from the engine types and report write failures
    as ``False`` instead of raising.
    """

    # ##: Keys for the different kinds of stored data.
    GAME_STATE_KEY = 'game_state'
    BEST_SCORE_KEY = 'best_score'
    SETTINGS_KEY = 'settings'
    STATS_KEY = 'statistics'

    @abstractmethod
    def _read(self, key: str) -> Optional[Any]:
        """Return the stored value for ``key``, or None if absent or unreadable."""

    @abstractmethod
    def _write(self, key: str, value: Any) -> bool:
        """Store ``value`` under ``key`` and report success."""

    @abstractmethod
    def clear(self) -> bool:
        """Remove every stored key."""

    def load_state(self, size: Optional[int] = None) -> Optional[GameState]:
        """
        Load the saved game state.

        Parameters
        ----------
        size : int, optional
            Grid side the state must have.

        Returns
        -------
        GameState or None
            The saved state, None if nothing is stored.

        Raises
        ------
        CorruptPersistedState
            If the stored data is not a valid state of the expected size.
        """
        data = self._read(self.GAME_STATE_KEY)
        if data is None:
            return None
        return GameState.from_dict(data, size=size)

    def save_state(self, state: GameState) -> bool:
        """Save the game state."""
        return self._write(self.GAME_STATE_KEY, state.to_dict())

    def load_best_score(self) -> int:
        """Load the best score, 0 if absent or invalid."""
        score = self._read(self.BEST_SCORE_KEY)
        if isinstance(score, bool) or not isinstance(score, int) or score < 0:
            return 0
        return score

    def save_best_score(self, score: int) -> bool:
        """Save the best score."""
        return self._write(self.BEST_SCORE_KEY, int(score))

    def load_settings(self) -> dict[str, Any]:
        """
        Load the stored settings.

        Returns
        -------
        dict
            Settings keyed as in ``GameConfig.to_dict`` (``undoPenaltyBase``,
            ``undoPenaltyMultiplier``, ...), empty when none are stored.
        """
        settings = self._read(self.SETTINGS_KEY)
        return settings if isinstance(settings, dict) else {}

    def save_settings(self, config: GameConfig) -> bool:
        """Save the game settings."""
        return self._write(self.SETTINGS_KEY, config.to_dict())

    def load_stats(self) -> GameStatistics:
        """Load the lifetime statistics, empty ones if absent or invalid."""
        data = self._read(self.STATS_KEY)
        if data is None:
            return GameStatistics()
        try:
            return GameStatistics.from_dict(data)
        except CorruptPersistedState as error:
            _logger.warning('Discarding stored statistics: %s', error)
            return GameStatistics()

    def save_stats(self, stats: GameStatistics) -> bool:
        """Save the lifetime statistics."""
        return self._write(self.STATS_KEY, stats.to_dict())
