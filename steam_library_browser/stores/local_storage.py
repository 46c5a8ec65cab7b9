from __future__ import annotations

import threading
from pathlib import Path

from ..utils.utilities import read_json_file, save_json_cache


class KeyValueStorage:
    """
    String key/value storage with `localStorage`-like semantics.

    `get_item()` returns None for missing keys. Implementations may raise on I/O failure.
    """

    def get_item(self, key: str) -> str | None:
        raise NotImplementedError

    def set_item(self, key: str, value: str) -> None:
        raise NotImplementedError

    def remove_item(self, key: str) -> None:
        raise NotImplementedError


class MemoryStorage(KeyValueStorage):
    def __init__(self, initial: dict[str, str] | None = None):
        self.data: dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> str | None:
        return self.data.get(key)

    def set_item(self, key: str, value: str) -> None:
        self.data[key] = str(value)

    def remove_item(self, key: str) -> None:
        self.data.pop(key, None)


class JSONFileStorage(KeyValueStorage):
    """All keys persisted together as one JSON object of strings."""

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self._lock = threading.Lock()

    def _read(self) -> dict[str, str]:
        return {str(k): str(v) for k, v in read_json_file(self.path).items() if v is not None}

    def get_item(self, key: str) -> str | None:
        with self._lock:
            return self._read().get(key)

    def set_item(self, key: str, value: str) -> None:
        with self._lock:
            data = self._read()
            data[key] = str(value)
            save_json_cache(data, self.path)

    def remove_item(self, key: str) -> None:
        with self._lock:
            data = self._read()
            if key not in data:
                return
            del data[key]
            save_json_cache(data, self.path)
