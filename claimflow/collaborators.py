"""Interfaces of the collaborators the engines depend on."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Protocol

from .contracts import AgentResult

if TYPE_CHECKING:
    from .decision.models import DecisionResult


class AgentProcessor(Protocol):
    """Runs an agent (LLM extraction, classification...) over an input map."""

    async def process(self, agent_id: str, input: Dict[str, Any]) -> AgentResult:
        """Return extracted data, confidence and citations."""


class ActionHandler(Protocol):
    """Performs the side effect of an ``action`` step."""

    async def execute(
        self, properties: Dict[str, Any], context: Dict[str, Any]
    ) -> Dict[str, Any]:
        """Run the action described by ``properties``."""


class ApiCaller(Protocol):
    """Performs the external call of an ``api_call`` step."""

    async def call(
        self, properties: Dict[str, Any], context: Dict[str, Any]
    ) -> Dict[str, Any]:
        """Call the endpoint described by ``properties``."""


class Processor(Protocol):
    """A named pipeline processing step."""

    async def execute(
        self, input: Dict[str, Any], config: Dict[str, Any] | None = None
    ) -> Any:
        """Process ``input`` and return the step result."""


class PaymentGateway(Protocol):
    async def transfer(self, amount: float, recipient: str, authorization: str) -> Any:
        """Transfer ``amount`` to ``recipient``; raise on failure."""


class NotificationService(Protocol):
    async def notify(self, claim_number: str, decision: "DecisionResult") -> Any:
        """Notify the insured about ``decision``; raise on failure."""


class DocumentRequestService(Protocol):
    async def request(self, claim_number: str, description: str) -> str:
        """Ask the insured for documents; return the request id."""
