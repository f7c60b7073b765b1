"""Conversation-scoped key/value storage."""

import asyncio
import json
from typing import Any, Dict, Iterable, Protocol


class StorageError(Exception):
    """Raised when a value cannot be stored."""


class Storage(Protocol):
    """Async key/value store holding JSON-serializable values."""

    async def read(self, keys: Iterable[str]) -> Dict[str, Any]:
        ...

    async def write(self, changes: Dict[str, Any]) -> None:
        ...

    async def delete(self, keys: Iterable[str]) -> None:
        ...


class MemoryStorage:
    """
    In-process storage for conversation state.

    Values are kept as JSON text, so every read returns an independent copy
    and non-serializable values are rejected at write time.
    """

    def __init__(self) -> None:
        """Initialize empty storage."""
        self._data: Dict[str, str] = {}
        self._lock = asyncio.Lock()

    async def read(self, keys: Iterable[str]) -> Dict[str, Any]:
        """Return the stored values for the keys that exist."""
        async with self._lock:
            return {
                key: json.loads(self._data[key])
                for key in keys
                if key in self._data
            }

    async def write(self, changes: Dict[str, Any]) -> None:
        """Store values, replacing existing ones."""
        try:
            encoded = {key: json.dumps(value) for key, value in changes.items()}
        except (TypeError, ValueError) as e:
            raise StorageError(f"Value is not JSON-serializable: {e}") from e

        async with self._lock:
            self._data.update(encoded)

    async def delete(self, keys: Iterable[str]) -> None:
        """Remove keys; missing keys are ignored."""
        async with self._lock:
            for key in keys:
                self._data.pop(key, None)
