"""Registries owned by the orchestrators."""

from __future__ import annotations

from .components import AgentRegistry, ProcessorRegistry
from .executions import ExecutionRegistry

__all__ = ["AgentRegistry", "ExecutionRegistry", "ProcessorRegistry"]
