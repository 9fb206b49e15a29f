"""
Durable key/value storage for small pieces of UI state.

Mode and session state are not persisted; the only value kept across
runs is the last used primary mode.
"""

import json
from pathlib import Path
from typing import Any, Dict, Optional

from ...utils.logger import get_logger
from .settings import get_data_dir

logger = get_logger(__name__)

LAST_MODE_KEY = "lazyaudio:last-mode"


class StateStore:

    def __init__(self, path: Optional[Path] = None):
        self._path = path

    @property
    def path(self) -> Path:
        if self._path is None:
            self._path = get_data_dir() / "state.json"
        return self._path

    def get(self, key: str, default: Any = None) -> Any:
        return self._read().get(key, default)

    def set(self, key: str, value: Any) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def remove(self, key: str) -> None:
        data = self._read()
        if key in data:
            del data[key]
            self._write(data)

    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning(f"Could not read state from {self.path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: Dict[str, Any]) -> None:
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)


def get_last_mode(store: StateStore) -> Optional[str]:
    value = store.get(LAST_MODE_KEY)
    return value if isinstance(value, str) and value else None


def set_last_mode(store: StateStore, mode_id: Optional[str]) -> None:
    if mode_id is None:
        store.remove(LAST_MODE_KEY)
    else:
        store.set(LAST_MODE_KEY, mode_id)
