"""Logging-only collaborators for guides, the CLI and local runs."""

from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING, Any, Dict

from ..contracts import utcnow

if TYPE_CHECKING:
    from ..decision.models import DecisionResult

logger = logging.getLogger(__name__)


class LoggingActionHandler:
    async def execute(
        self, properties: Dict[str, Any], context: Dict[str, Any]
    ) -> Dict[str, Any]:
        action_type = properties.get("action_type")
        logger.info(f"Action {action_type} executed")
        return {
            "action_type": action_type,
            "result": "success",
            "timestamp": utcnow().isoformat(),
        }


class LoggingPaymentGateway:
    async def transfer(self, amount: float, recipient: str, authorization: str) -> str:
        receipt = f"pay_{uuid.uuid4().hex[:10]}"
        logger.info(f"Transfer of {amount:,.2f} to {recipient} ({authorization}): {receipt}")
        return receipt


class LoggingNotificationService:
    async def notify(self, claim_number: str, decision: "DecisionResult") -> str:
        logger.info(f"Notified claim {claim_number} about {decision.decision}")
        return "ack"


class LoggingDocumentRequestService:
    async def request(self, claim_number: str, description: str) -> str:
        request_id = f"docreq_{uuid.uuid4().hex[:10]}"
        logger.info(f"Document request {request_id} for claim {claim_number}: {description}")
        return request_id
