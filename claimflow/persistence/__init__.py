"""Persistence helpers for claimflow executions."""

from __future__ import annotations

import os
from typing import Optional, Type, TypeVar

from pydantic import BaseModel

from ..config import ClaimflowConfig, load_config
from .inmemory import InMemoryStore
from .sqlite import SQLiteStore
from .store import PersistenceStore

M = TypeVar("M", bound=BaseModel)

_store_instance: PersistenceStore | None = None


def get_store(
    store_url: Optional[str] = None, config: Optional[ClaimflowConfig] = None
) -> PersistenceStore:
    """Factory function to obtain a persistence store.

    The backend is selected from ``store_url``, which can be provided
    explicitly, via the ``CLAIMFLOW_STORE_URL`` environment variable or from
    loaded configuration. When nothing is configured an in-memory store is
    returned.
    """

    global _store_instance
    if _store_instance is not None and store_url is None and config is None:
        return _store_instance

    config = config or load_config()
    store_url = store_url or os.getenv("CLAIMFLOW_STORE_URL") or config.store_url

    if not store_url or store_url == "memory://":
        _store_instance = InMemoryStore()
    elif store_url.startswith("sqlite://"):
        _store_instance = SQLiteStore(store_url.replace("sqlite://", "", 1))
    else:
        raise ValueError(f"Unsupported store backend: {store_url}")

    return _store_instance


async def save_snapshot(store: PersistenceStore, kind: str, model: BaseModel) -> str:
    """Store ``model`` (an execution or pipeline context) under ``kind:id``."""
    key = f"{kind}:{model.id}"
    await store.set(key, model.model_dump(mode="json"))
    return key


async def load_snapshot(
    store: PersistenceStore, kind: str, item_id: str, model_type: Type[M]
) -> M | None:
    data = await store.get(f"{kind}:{item_id}")
    if data is None:
        return None
    return model_type.model_validate(data)


__all__ = [
    "InMemoryStore",
    "PersistenceStore",
    "SQLiteStore",
    "get_store",
    "load_snapshot",
    "save_snapshot",
]
