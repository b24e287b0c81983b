"""In-memory implementation of the persistence store."""

from __future__ import annotations

import copy
from typing import Any, Dict

from .store import PersistenceStore


class InMemoryStore(PersistenceStore):
    """Store values in local memory.

    Useful for tests or when no store is configured. Data is not
    persisted across process restarts.
    """

    def __init__(self) -> None:
        self._data: Dict[str, Any] = {}

    async def get(self, key: str) -> Any | None:
        return copy.deepcopy(self._data.get(key))

    async def set(self, key: str, value: Any) -> None:
        self._data[key] = copy.deepcopy(value)

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    async def keys(self, prefix: str = "") -> list[str]:
        return sorted(k for k in self._data if k.startswith(prefix))
