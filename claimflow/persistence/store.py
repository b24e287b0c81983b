"""Key-value store abstraction used by the application glue."""

from __future__ import annotations

from typing import Any, Protocol


class PersistenceStore(Protocol):
    """Protocol for key-value persistence backends.

    Values must be JSON serializable. The engines never talk to a store
    directly; callers snapshot executions into it.
    """

    async def get(self, key: str) -> Any | None:
        """Return the value stored under ``key`` or ``None``."""

    async def set(self, key: str, value: Any) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""

    async def delete(self, key: str) -> None:
        """Remove ``key`` if present."""

    async def keys(self, prefix: str = "") -> list[str]:
        """Return stored keys starting with ``prefix``."""
