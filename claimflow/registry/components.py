"""Typed registries for agent processors and pipeline processors."""

from __future__ import annotations

import logging
from typing import Dict, Generic, Iterable, Tuple, TypeVar

from ..collaborators import AgentProcessor, Processor
from ..errors import ProcessorNotFoundError

logger = logging.getLogger(__name__)

C = TypeVar("C")


class _ComponentRegistry(Generic[C]):
    kind = "Component"

    def __init__(self, components: Dict[str, C] | None = None) -> None:
        self._components: Dict[str, C] = dict(components or {})

    def register(self, name: str, component: C) -> None:
        """Add ``component`` under ``name``, replacing any previous entry."""
        if name in self._components:
            logger.warning(f"{self.kind} {name} re-registered; replacing previous entry")
        self._components[name] = component

    def get(self, name: str) -> C:
        try:
            return self._components[name]
        except KeyError:
            raise ProcessorNotFoundError(name, kind=self.kind) from None

    def names(self) -> list[str]:
        return sorted(self._components)

    def items(self) -> Iterable[Tuple[str, C]]:
        return self._components.items()

    def __contains__(self, name: object) -> bool:
        return name in self._components


class AgentRegistry(_ComponentRegistry[AgentProcessor]):
    """Agent ids available to ``agent`` workflow steps."""

    kind = "Agent"


class ProcessorRegistry(_ComponentRegistry[Processor]):
    """Processor names available to pipeline steps."""

    kind = "Processor"
