"""
Key/value persistence for Content Agents.

Handles saving and loading JSON documents by key. Storage failures never
reach callers: reads of missing or corrupt data return None and failed
writes are logged and reported as False.
"""

import asyncio
import copy
import json
import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional

import aiofiles

from ..utils.logging import get_logger

logger = get_logger(__name__)

HISTORY_KEY = "mcc_agent_results"
LAST_RUNS_KEY = "mcc_agent_last_runs"

_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


class Storage(ABC):
    """Asynchronous key/value store holding JSON-compatible values."""

    @abstractmethod
    async def get(self, key: str) -> Optional[Any]:
        """Return the stored value or None when it is missing or unreadable."""

    @abstractmethod
    async def set(self, key: str, value: Any) -> bool:
        """Store ``value`` under ``key``; True on success."""

    @abstractmethod
    async def remove(self, key: str) -> bool:
        """Delete ``key``; True if something was removed."""


class InMemoryStorage(Storage):
    """
    Process-local storage used by tests and embedding hosts.

    Values are round-tripped through JSON so callers observe the same
    shapes a file-backed store would give them.
    """

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._data: Dict[str, str] = {}
        for key, value in (initial or {}).items():
            self._data[key] = json.dumps(value)

    async def get(self, key: str) -> Optional[Any]:
        raw = self._data.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError as e:
            logger.warning("Discarding unreadable stored value", key=key, error=str(e))
            return None

    async def set(self, key: str, value: Any) -> bool:
        try:
            self._data[key] = json.dumps(value)
            return True
        except (TypeError, ValueError) as e:
            logger.error("Failed to store value", key=key, error=str(e))
            return False

    async def remove(self, key: str) -> bool:
        return self._data.pop(key, None) is not None

    def set_raw(self, key: str, raw: str) -> None:
        """Store an unparsed string, for simulating corrupt data."""
        self._data[key] = raw

    def snapshot(self) -> Dict[str, Any]:
        return {key: copy.deepcopy(json.loads(raw)) for key, raw in self._data.items()}


class JsonFileStorage(Storage):
    """
    File-backed storage writing one ``{key}.json`` document per key.

    Writes go to a temporary file that is then atomically moved into place.
    """

    def __init__(self, storage_path: Optional[str] = None):
        """
        Initialize file storage.

        Args:
            storage_path: Path to storage directory. Defaults to ./data/agents
        """
        self.storage_path = Path(storage_path or "./data/agents")
        self._lock = asyncio.Lock()

    def _path_for(self, key: str) -> Path:
        return self.storage_path / f"{_UNSAFE_KEY_CHARS.sub('_', key)}.json"

    async def get(self, key: str) -> Optional[Any]:
        path = self._path_for(key)
        if not path.exists():
            return None

        try:
            async with self._lock:
                async with aiofiles.open(path, "r", encoding="utf-8") as f:
                    content = await f.read()
            return json.loads(content)
        except Exception as e:
            logger.error("Error reading stored value", key=key, path=str(path), error=str(e))
            return None

    async def set(self, key: str, value: Any) -> bool:
        path = self._path_for(key)
        try:
            async with self._lock:
                self.storage_path.mkdir(parents=True, exist_ok=True)
                temp_file = path.with_suffix(".tmp")
                async with aiofiles.open(temp_file, "w", encoding="utf-8") as f:
                    await f.write(json.dumps(value, indent=2, ensure_ascii=False))

                # Atomic rename
                temp_file.replace(path)

            logger.debug("Stored value", key=key, path=str(path))
            return True
        except Exception as e:
            logger.error("Error storing value", key=key, path=str(path), error=str(e))
            return False

    async def remove(self, key: str) -> bool:
        path = self._path_for(key)
        try:
            async with self._lock:
                if path.exists():
                    path.unlink()
                    return True
                return False
        except OSError as e:
            logger.error("Error removing stored value", key=key, path=str(path), error=str(e))
            return False
