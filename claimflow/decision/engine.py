"""Deterministic decision engine for APE / BAG claims."""

from __future__ import annotations

import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional, Sequence

from ..collaborators import DocumentRequestService, NotificationService, PaymentGateway
from ..config import DecisionRulesConfig
from ..constants import HIGH_VALUE_RISK_SCORE, SUSPICIOUS_TIMING_RISK_SCORE
from ..contracts import utcnow
from ..errors import ActionExecutionError
from .models import (
    ActionItem,
    AutomaticActionsResult,
    BusinessRuleOutcome,
    ClaimAnalysis,
    ClaimDocument,
    DecisionResult,
    DecisionType,
    DocumentCheck,
    DocumentValidation,
    PaymentInstruction,
    RiskAssessment,
    RiskIndicator,
    RiskLevel,
)

logger = logging.getLogger(__name__)

_TOKEN_SEPARATORS = re.compile(r"[\s_\-]+")

NEXT_STEPS = {
    "APPROVE": [
        "1. Execute automatic payment",
        "2. Notify the insured about the approval",
        "3. Update technical reserves",
        "4. Archive the claim",
    ],
    "DENY": [
        "1. Notify the insured about the denial",
        "2. Offer the appeal procedure",
        "3. Archive the claim",
    ],
    "INVESTIGATE": [
        "1. Forward to the investigation team",
        "2. Notify the insured about the additional analysis",
        "3. Set a deadline for completion",
    ],
    "ADDITIONAL_DOCS": [
        "1. Request the missing documents",
        "2. Set a delivery deadline",
        "3. Reschedule the analysis once received",
    ],
}


def normalize_document_token(value: str) -> str:
    """Lower-case ``value`` and drop separators: ``Death-Certificate`` -> ``deathcertificate``."""
    return _TOKEN_SEPARATORS.sub("", value.lower())


def risk_level_for(score: float) -> RiskLevel:
    if score >= 0.8:
        return "critical"
    if score >= 0.6:
        return "high"
    if score >= 0.3:
        return "medium"
    return "low"


def _money(value: float) -> str:
    return f"{value:,.2f}"


def _parse_date(value: str) -> Optional[datetime]:
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (TypeError, ValueError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class ClaimsDecisionEngine:
    """Turn a finalized claim analysis into a decision and follow-up actions.

    ``process_claim_decision`` is a pure function of its inputs, the rules
    and the clock (only used when the analysis carries no ``reported_at``).
    It never raises for business-rule outcomes: incomplete documents or low
    confidence degrade to conservative decisions instead.
    """

    def __init__(
        self,
        rules: DecisionRulesConfig | None = None,
        payment_gateway: PaymentGateway | None = None,
        notification_service: NotificationService | None = None,
        document_requests: DocumentRequestService | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.rules = rules or DecisionRulesConfig()
        self._payment_gateway = payment_gateway
        self._notification_service = notification_service
        self._document_requests = document_requests
        self._clock = clock

    def process_claim_decision(
        self, analysis: ClaimAnalysis, documents: Sequence[ClaimDocument]
    ) -> DecisionResult:
        logger.info(f"Evaluating claim {analysis.claim_number}")

        doc_check = self.validate_required_documents(analysis, documents)
        risk = self.assess_risk(analysis)
        rules = self.apply_business_rules(analysis, risk)
        result = self._make_decision(analysis, doc_check, risk, rules)

        logger.info(
            f"Decision {result.decision} for claim {analysis.claim_number} "
            f"(risk={risk.level}, escalation={result.escalation_level})"
        )
        return result

    # ------------------------------------------------------------------
    # Rule stages
    def validate_required_documents(
        self, analysis: ClaimAnalysis, documents: Sequence[ClaimDocument]
    ) -> DocumentCheck:
        required = self.rules.required_documents.get(analysis.claim_type, [])
        provided = [normalize_document_token(d.type) for d in documents]

        missing: List[str] = []
        for requirement in required:
            token = normalize_document_token(requirement)
            if not any(token in p or (p and p in token) for p in provided):
                missing.append(requirement)

        return DocumentCheck(
            is_complete=not missing,
            missing_documents=missing,
            validations=[self.validate_document(d) for d in documents],
        )

    @staticmethod
    def validate_document(document: ClaimDocument) -> DocumentValidation:
        data = document.extracted_data or {}

        if not document.content and not document.extracted_data:
            status = "missing"
        elif data.get("suspicious_patterns"):
            status = "suspicious"
        elif data.get("validation_errors"):
            status = "invalid"
        else:
            status = "valid"

        issues: List[str] = []
        confidence = 1.0
        if not document.content:
            issues.append("Content not extracted")
            confidence -= 0.3
        if data.get("low_quality"):
            issues.append("Low image quality")
            confidence -= 0.2
        if data.get("missing_signatures"):
            issues.append("Missing signatures")
            confidence -= 0.1
        if data.get("date_inconsistencies"):
            issues.append("Inconsistent dates")
            confidence -= 0.2

        return DocumentValidation(
            document=document.name,
            status=status,
            issues=issues,
            confidence=max(0.0, round(confidence, 4)),
        )

    def assess_risk(self, analysis: ClaimAnalysis) -> RiskAssessment:
        indicators = list(analysis.risk_indicators)
        total = sum(i.score for i in analysis.risk_indicators)

        if analysis.claim_value > self.rules.high_value_threshold:
            indicators.append(
                RiskIndicator(
                    type="high_value",
                    severity="high",
                    description=f"High claim value: {_money(analysis.claim_value)}",
                    score=HIGH_VALUE_RISK_SCORE,
                )
            )
            total += HIGH_VALUE_RISK_SCORE

        occurred = _parse_date(analysis.occurrence_date)
        reported = analysis.reported_at or self._clock()
        if reported.tzinfo is None:
            reported = reported.replace(tzinfo=timezone.utc)
        if occurred is not None and reported - occurred < timedelta(days=1):
            indicators.append(
                RiskIndicator(
                    type="suspicious_timing",
                    severity="medium",
                    description="Claim reported less than a day after the occurrence",
                    score=SUSPICIOUS_TIMING_RISK_SCORE,
                )
            )
            total += SUSPICIOUS_TIMING_RISK_SCORE

        return RiskAssessment(
            total_score=total, level=risk_level_for(total), indicators=indicators
        )

    def apply_business_rules(
        self, analysis: ClaimAnalysis, risk: RiskAssessment
    ) -> BusinessRuleOutcome:
        outcome = BusinessRuleOutcome()

        if analysis.claim_value > self.rules.auto_approval_limit:
            outcome.auto_approvable = False
            outcome.exceeds_authorization = True
            outcome.reasoning.append(
                f"Value {_money(analysis.claim_value)} exceeds the automatic approval "
                f"limit ({_money(self.rules.auto_approval_limit)})"
            )

        if risk.total_score > self.rules.fraud_score_threshold:
            outcome.auto_approvable = False
            outcome.requires_investigation = True
            outcome.reasoning.append(
                f"Risk score {risk.total_score * 100:.1f}% requires investigation"
            )

        if analysis.confidence < self.rules.minimum_confidence:
            outcome.auto_approvable = False
            outcome.reasoning.append(
                f"Analysis confidence {analysis.confidence * 100:.1f}% is below the required minimum"
            )

        if analysis.claim_type == "APE+BAG":
            outcome.requires_investigation = True
            outcome.reasoning.append(
                "Combined APE+BAG claims require specialist review"
            )

        return outcome

    def _make_decision(
        self,
        analysis: ClaimAnalysis,
        docs: DocumentCheck,
        risk: RiskAssessment,
        rules: BusinessRuleOutcome,
    ) -> DecisionResult:
        decision: DecisionType
        escalation = "none"
        auto_executable = False
        payment: Optional[PaymentInstruction] = None
        actions: List[ActionItem] = []

        if not docs.is_complete:
            decision = "ADDITIONAL_DOCS"
            actions.append(
                ActionItem(
                    type="documentation",
                    description=f"Request missing documents: {', '.join(docs.missing_documents)}",
                    priority="high",
                    automated=True,
                )
            )
        elif rules.requires_investigation or risk.level == "critical":
            decision = "INVESTIGATE"
            escalation = "fraud_investigation"
            actions.append(
                ActionItem(
                    type="investigation",
                    description="Fraud investigation required",
                    priority="urgent",
                    automated=False,
                )
            )
        elif rules.exceeds_authorization:
            decision = "INVESTIGATE"
            escalation = "supervisor"
            actions.append(
                ActionItem(
                    type="review",
                    description="Supervisor approval required for high value",
                    priority="high",
                    automated=False,
                )
            )
        elif rules.auto_approvable and risk.level == "low":
            decision = "APPROVE"
            auto_executable = True
            payment = PaymentInstruction(
                amount=analysis.claim_value,
                recipient=analysis.insured_name,
                method="automatic_transfer",
                authorization="pre_approved",
            )
            actions.append(
                ActionItem(
                    type="payment",
                    description=f"Automatic payment of {_money(analysis.claim_value)}",
                    priority="medium",
                    automated=True,
                )
            )
            actions.append(
                ActionItem(
                    type="communication",
                    description="Notify the insured about the approval",
                    priority="medium",
                    automated=True,
                )
            )
        else:
            decision = "DENY"
            actions.append(
                ActionItem(
                    type="communication",
                    description="Notify the insured about the denial",
                    priority="medium",
                    automated=True,
                )
            )

        reasoning = [
            *rules.reasoning,
            f"Risk level: {risk.level}",
            f"Analysis confidence: {analysis.confidence * 100:.1f}%",
            f"Documents: {'complete' if docs.is_complete else 'incomplete'}",
        ]

        return DecisionResult(
            decision=decision,
            reasoning=reasoning,
            confidence=analysis.confidence,
            auto_executable=auto_executable,
            required_actions=actions,
            escalation_level=escalation,
            estimated_reserve=analysis.claim_value if decision == "APPROVE" else None,
            payment_instruction=payment,
            next_steps=list(NEXT_STEPS[decision]),
            risk_score=risk.total_score,
            risk_level=risk.level,
            missing_documents=docs.missing_documents,
            document_validation=docs.validations,
        )

    # ------------------------------------------------------------------
    # Automatic actions
    async def execute_automatic_actions(
        self, decision: DecisionResult, claim_number: str
    ) -> AutomaticActionsResult:
        """Run every automated action of ``decision``, collecting failures.

        One action failing never prevents the others from running.
        """
        executed: List[str] = []
        errors: List[str] = []

        for action in decision.required_actions:
            if not action.automated:
                continue
            try:
                executed.append(await self._dispatch(action, decision, claim_number))
            except Exception as e:
                logger.error(f"Automatic {action.type} for claim {claim_number} failed: {e}")
                errors.append(f"Failed to execute {action.type}: {e}")

        return AutomaticActionsResult(
            success=not errors, executed_actions=executed, errors=errors
        )

    async def _dispatch(
        self, action: ActionItem, decision: DecisionResult, claim_number: str
    ) -> str:
        if action.type == "payment":
            instruction = decision.payment_instruction
            if not decision.auto_executable or instruction is None:
                raise ActionExecutionError(
                    "payment", "decision is not auto-executable"
                )
            if self._payment_gateway is None:
                raise ActionExecutionError("payment", "no payment gateway configured")
            await self._payment_gateway.transfer(
                instruction.amount, instruction.recipient, instruction.authorization
            )
            logger.info(f"Payment of {_money(instruction.amount)} sent for claim {claim_number}")
            return f"Payment executed: {action.description}"

        if action.type == "communication":
            if self._notification_service is None:
                raise ActionExecutionError(
                    "communication", "no notification service configured"
                )
            await self._notification_service.notify(claim_number, decision)
            return f"Notification sent: {action.description}"

        if action.type == "documentation":
            if self._document_requests is None:
                raise ActionExecutionError(
                    "documentation", "no document request service configured"
                )
            request_id = await self._document_requests.request(
                claim_number, action.description
            )
            return f"Documents requested ({request_id}): {action.description}"

        raise ActionExecutionError(action.type, "no automatic handler for this action type")
