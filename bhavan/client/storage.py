"""
Local Storage

A small JSON key/value file standing in for browser local storage. Writes
go through a file lock; the last writer wins.
"""

import json
import logging
from pathlib import Path
from typing import Any, Optional

from filelock import FileLock

logger = logging.getLogger(__name__)


class LocalStorage:
    """JSON object file with per-key get/set."""

    LOCK_TIMEOUT = 10

    def __init__(self, path: str):
        self.path = Path(path)
        self.lock = FileLock(str(self.path) + ".lock", timeout=self.LOCK_TIMEOUT)

    def _read(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except ValueError as e:
            logger.warning(f"Ignoring unreadable storage file {self.path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def get(self, key: str, default: Optional[Any] = None) -> Any:
        with self.lock:
            return self._read().get(key, default)

    def set(self, key: str, value: Any) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.lock:
            data = self._read()
            data[key] = value
            self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")

    def delete(self, key: str) -> None:
        with self.lock:
            data = self._read()
            if key in data:
                del data[key]
                self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")
