"""
Configuration of the game engine.
"""

from dataclasses import asdict, dataclass, replace
from typing import Any

from game2048.engine.errors import CorruptPersistedState

# ##>: Settings keys, as stored by the persistence layer.
_SETTINGS_KEYS = {
    'size': 'gridSize',
    'win_tile': 'winTile',
    'undo_penalty_base': 'undoPenaltyBase',
    'undo_penalty_multiplier': 'undoPenaltyMultiplier',
}


@dataclass(frozen=True)
class GameConfig:
    """
    Game configuration.

    Attributes
    ----------
    size : int
        Side of the square grid.
    win_tile : int
        Tile value that wins the game.
    undo_penalty_base : float
        Penalty of the first undo.
    undo_penalty_multiplier : float
        Growth factor of the penalty for each further undo.
    """

    size: int = 4
    win_tile: int = 2048
    undo_penalty_base: float = 10
    undo_penalty_multiplier: float = 1.33

    def __post_init__(self):
        if self.size < 2:
            raise ValueError(f'size must be >= 2, got {self.size}')
        if self.win_tile < 4 or self.win_tile & (self.win_tile - 1):
            raise ValueError(f'win_tile must be a power of two >= 4, got {self.win_tile}')
        if self.undo_penalty_base < 0:
            raise ValueError(f'undo_penalty_base must be >= 0, got {self.undo_penalty_base}')
        if self.undo_penalty_multiplier < 1:
            raise ValueError(f'undo_penalty_multiplier must be >= 1, got {self.undo_penalty_multiplier}')

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the stored settings shape."""
        return {_SETTINGS_KEYS[key]: value for key, value in asdict(self).items()}

    def merge(self, data: dict[str, Any]) -> 'GameConfig':
        """
        Return a copy with the stored settings applied.

        Parameters
        ----------
        data : dict
            Stored settings; missing keys keep the current values.

        Returns
        -------
        GameConfig
            The updated configuration.

        Raises
        ------
        CorruptPersistedState
            If a value has the wrong type or is out of range.
        """
        if not isinstance(data, dict):
            raise CorruptPersistedState(f'settings must be a mapping, got {type(data).__name__}')

        changes = {}
        for field_name, key in _SETTINGS_KEYS.items():
            if data.get(key) is None:
                continue
            value = data[key]
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise CorruptPersistedState(f'setting {key} must be a number, got {value!r}')
            changes[field_name] = int(value) if field_name in ('size', 'win_tile') else value

        try:
            return replace(self, **changes)
        except ValueError as error:
            raise CorruptPersistedState(str(error)) from error

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> 'GameConfig':
        """Build a configuration from stored settings, defaults filling the gaps."""
        return cls().merge(data)
