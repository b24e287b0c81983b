"""Claim analysis inputs and decision outputs."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

ClaimType = Literal["APE", "BAG", "APE+BAG"]
DecisionType = Literal["APPROVE", "DENY", "INVESTIGATE", "ADDITIONAL_DOCS"]
EscalationLevel = Literal["none", "supervisor", "fraud_investigation", "manual_review"]
RiskLevel = Literal["low", "medium", "high", "critical"]
ActionType = Literal["payment", "investigation", "documentation", "communication", "review"]
Priority = Literal["low", "medium", "high", "urgent"]


class ClaimDocument(BaseModel):
    id: str
    name: str
    type: str
    content: Optional[str] = None
    extracted_data: Optional[Dict[str, Any]] = None


class RiskIndicator(BaseModel):
    type: Literal["fraud", "inconsistency", "missing_doc", "high_value", "suspicious_timing"]
    severity: RiskLevel
    description: str = ""
    score: float


class DocumentValidation(BaseModel):
    document: str
    status: Literal["valid", "invalid", "suspicious", "missing"]
    issues: List[str] = Field(default_factory=list)
    confidence: float


class ClaimAnalysis(BaseModel):
    """Finalized analysis of a claim, as produced by the upstream agents."""

    claim_number: str
    claim_type: ClaimType
    claim_value: float
    occurrence_date: str
    reported_at: Optional[datetime] = None
    insured_name: str = ""
    policy_number: str = ""
    extracted_data: Dict[str, Any] = Field(default_factory=dict)
    confidence: float = Field(ge=0, le=1)
    risk_indicators: List[RiskIndicator] = Field(default_factory=list)
    document_validation: List[DocumentValidation] = Field(default_factory=list)


class ActionItem(BaseModel):
    type: ActionType
    description: str
    priority: Priority
    assigned_to: Optional[str] = None
    due_date: Optional[str] = None
    automated: bool = False


class PaymentInstruction(BaseModel):
    amount: float
    recipient: str
    method: Literal["automatic_transfer", "manual_check", "hold_pending"]
    authorization: Literal["pre_approved", "requires_approval", "denied"]
    bank_details: Optional[Dict[str, Any]] = None


class DecisionResult(BaseModel):
    decision: DecisionType
    reasoning: List[str] = Field(default_factory=list)
    confidence: float
    auto_executable: bool = False
    required_actions: List[ActionItem] = Field(default_factory=list)
    escalation_level: EscalationLevel = "none"
    estimated_reserve: Optional[float] = None
    payment_instruction: Optional[PaymentInstruction] = None
    next_steps: List[str] = Field(default_factory=list)
    risk_score: float = 0.0
    risk_level: RiskLevel = "low"
    missing_documents: List[str] = Field(default_factory=list)
    document_validation: List[DocumentValidation] = Field(default_factory=list)


class AutomaticActionsResult(BaseModel):
    success: bool
    executed_actions: List[str] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)


class DocumentCheck(BaseModel):
    is_complete: bool
    missing_documents: List[str] = Field(default_factory=list)
    validations: List[DocumentValidation] = Field(default_factory=list)


class RiskAssessment(BaseModel):
    total_score: float
    level: RiskLevel
    indicators: List[RiskIndicator] = Field(default_factory=list)


class BusinessRuleOutcome(BaseModel):
    auto_approvable: bool = True
    requires_investigation: bool = False
    exceeds_authorization: bool = False
    reasoning: List[str] = Field(default_factory=list)
