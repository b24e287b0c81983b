"""In-memory registry of running executions."""

from __future__ import annotations

import asyncio
from typing import Dict, Generic, List, Optional, Protocol, TypeVar


class _Identified(Protocol):
    id: str


T = TypeVar("T", bound=_Identified)


class ExecutionRegistry(Generic[T]):
    """Map execution ids to live execution objects.

    Each orchestrator owns one registry. It is the only structure shared
    between concurrently running executions, so every access goes through
    ``_lock``. Data is not persisted across process restarts.
    """

    def __init__(self) -> None:
        self._items: Dict[str, T] = {}
        self._lock = asyncio.Lock()

    async def add(self, item: T) -> None:
        async with self._lock:
            if item.id in self._items:
                raise ValueError(f"Execution {item.id} already registered")
            self._items[item.id] = item

    async def get(self, item_id: str) -> Optional[T]:
        async with self._lock:
            return self._items.get(item_id)

    async def remove(self, item_id: str) -> Optional[T]:
        async with self._lock:
            return self._items.pop(item_id, None)

    async def list(self) -> List[T]:
        async with self._lock:
            return list(self._items.values())

    def __len__(self) -> int:
        return len(self._items)
