"""Claim decision rules and automatic follow-up actions."""

from __future__ import annotations

from .engine import ClaimsDecisionEngine, normalize_document_token, risk_level_for
from .models import (
    ActionItem,
    AutomaticActionsResult,
    BusinessRuleOutcome,
    ClaimAnalysis,
    ClaimDocument,
    DecisionResult,
    DocumentCheck,
    DocumentValidation,
    PaymentInstruction,
    RiskAssessment,
    RiskIndicator,
)

__all__ = [
    "ActionItem",
    "AutomaticActionsResult",
    "BusinessRuleOutcome",
    "ClaimAnalysis",
    "ClaimDocument",
    "ClaimsDecisionEngine",
    "DecisionResult",
    "DocumentCheck",
    "DocumentValidation",
    "PaymentInstruction",
    "RiskAssessment",
    "RiskIndicator",
    "normalize_document_token",
    "risk_level_for",
]
