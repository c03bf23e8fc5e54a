"""
JSON file storage backend.

Each key is stored in its own file, ``<directory>/<namespace>/<key>.json``.
"""

import json
import logging
from pathlib import Path
from typing import Any, Optional

from game2048.storage.base import StorageBackend

# ##>: Module logger.
_logger = logging.getLogger(__name__)


class JsonFileStorage(StorageBackend):
    """
    Storage backed by JSON files on disk.

    Parameters
    ----------
    directory : str or Path
        Root directory of the saved data.
    namespace : str, optional
        Sub-directory separating this game's data from other games (default is ``2048-game``).

    Notes
    -----
    - Missing files read as None.
    - Unreadable or undecodable files are logged and read as None.
    - Files are written to a temporary sibling first, then moved into place.
    """

    def __init__(self, directory: str | Path, namespace: str = '2048-game'):
        self.namespace = namespace
        self.root = Path(directory) / namespace

    def _path(self, key: str) -> Path:
        return self.root / f'{key}.json'

    def _read(self, key: str) -> Optional[Any]:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            with path.open('r', encoding='utf-8') as handler:
                return json.load(handler)
        except (OSError, ValueError) as error:
            _logger.warning('Could not read %s: %s', path, error)
            return None

    def _write(self, key: str, value: Any) -> bool:
        path = self._path(key)
        tmp_path = path.with_suffix('.json.tmp')
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            with tmp_path.open('w', encoding='utf-8') as handler:
                json.dump(value, handler)
            tmp_path.replace(path)
        except (OSError, TypeError, ValueError):
            _logger.exception('Could not save %s', path)
            return False
        return True

    def clear(self) -> bool:
        if not self.root.exists():
            return True
        try:
            for path in self.root.glob('*.json'):
                path.unlink()
        except OSError:
            _logger.exception('Could not clear %s', self.root)
            return False
        _logger.info('All game data cleared from %s', self.root)
        return True
