"""In-memory storage backend, mostly for tests and embedding."""

import json
from typing import Any, Optional

from game2048.storage.base import StorageBackend


class MemoryStorage(StorageBackend):
    """
    Dictionary-backed storage.

    Values are kept as JSON text so that what is loaded back went through the same
    serialization as the file backend.
    """

    def __init__(self):
        self._data: dict[str, str] = {}

    def _read(self, key: str) -> Optional[Any]:
        if key not in self._data:
            return None
        return json.loads(self._data[key])

    def _write(self, key: str, value: Any) -> bool:
        self._data[key] = json.dumps(value)
        return True

    def clear(self) -> bool:
        self._data.clear()
        return True
