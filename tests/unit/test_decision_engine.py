from datetime import datetime, timezone

import pytest

from claimflow.config import DecisionRulesConfig
from claimflow.decision import (
    ClaimAnalysis,
    ClaimDocument,
    ClaimsDecisionEngine,
    RiskIndicator,
    normalize_document_token,
    risk_level_for,
)

REPORTED = datetime(2024, 1, 10, 12, 0, tzinfo=timezone.utc)

APE_DOCS = ["medical_report", "death_certificate", "identity_document"]
BAG_DOCS = ["police_report", "receipts", "identity_document"]


def documents(*types):
    return [
        ClaimDocument(id=f"d{i}", name=f"{t}.pdf", type=t, content="scanned text")
        for i, t in enumerate(types)
    ]


def analysis(claim_type="APE", value=15000, score=0.1, confidence=0.95, **kwargs):
    kwargs.setdefault("occurrence_date", "2024-01-01")
    kwargs.setdefault("reported_at", REPORTED)
    return ClaimAnalysis(
        claim_number="CLM-001",
        claim_type=claim_type,
        claim_value=value,
        insured_name="Maria Silva",
        confidence=confidence,
        risk_indicators=[
            RiskIndicator(type="inconsistency", severity="low", score=score)
        ],
        **kwargs,
    )


@pytest.fixture
def engine():
    return ClaimsDecisionEngine()


def test_clean_ape_claim_under_limit_is_approved(engine):
    result = engine.process_claim_decision(analysis(), documents(*APE_DOCS))

    assert result.decision == "APPROVE"
    assert result.auto_executable is True
    assert result.escalation_level == "none"
    assert result.payment_instruction.amount == 15000
    assert result.payment_instruction.recipient == "Maria Silva"
    assert result.payment_instruction.authorization == "pre_approved"
    assert result.estimated_reserve == 15000
    assert result.risk_level == "low"
    assert {a.type for a in result.required_actions} == {"payment", "communication"}
    assert all(a.automated for a in result.required_actions)


def test_combined_claim_is_always_investigated(engine):
    result = engine.process_claim_decision(
        analysis(claim_type="APE+BAG", value=5000),
        documents(*APE_DOCS, "police_report", "receipts"),
    )

    assert result.decision == "INVESTIGATE"
    assert result.escalation_level == "fraud_investigation"
    assert result.auto_executable is False
    assert result.payment_instruction is None


def test_value_above_auto_approval_limit_goes_to_supervisor(engine):
    result = engine.process_claim_decision(analysis(value=25000), documents(*APE_DOCS))

    assert result.decision == "INVESTIGATE"
    assert result.escalation_level == "supervisor"
    assert result.auto_executable is False
    assert any("exceeds the automatic approval limit" in r for r in result.reasoning)


def test_missing_document_requests_more_regardless_of_risk(engine):
    result = engine.process_claim_decision(
        analysis(claim_type="BAG", score=0.95), documents("police_report", "identity_document")
    )

    assert result.decision == "ADDITIONAL_DOCS"
    assert result.missing_documents == ["receipts"]
    (action,) = result.required_actions
    assert action.type == "documentation"
    assert action.automated is True
    assert "receipts" in action.description


def test_high_fraud_score_is_investigated(engine):
    result = engine.process_claim_decision(
        analysis(value=1000, score=0.75), documents(*APE_DOCS)
    )

    assert result.decision == "INVESTIGATE"
    assert result.escalation_level == "fraud_investigation"
    assert result.risk_level == "high"


def test_low_confidence_is_denied(engine):
    result = engine.process_claim_decision(
        analysis(value=1000, confidence=0.5), documents(*APE_DOCS)
    )

    assert result.decision == "DENY"
    assert result.auto_executable is False
    assert [a.type for a in result.required_actions] == ["communication"]


def test_medium_risk_is_not_approved(engine):
    result = engine.process_claim_decision(
        analysis(value=1000, score=0.4), documents(*APE_DOCS)
    )

    assert result.risk_level == "medium"
    assert result.decision == "DENY"


def test_document_types_match_on_normalized_tokens(engine):
    docs = documents("Medical Report", "Death-Certificate", "identity document scan")

    check = engine.validate_required_documents(analysis(), docs)

    assert check.is_complete is True
    assert check.missing_documents == []


def test_high_value_and_quick_report_raise_risk(engine):
    risk = engine.assess_risk(
        analysis(
            value=60000,
            score=0.0,
            occurrence_date="2024-01-10T08:00:00",
            reported_at=REPORTED,
        )
    )

    assert risk.total_score == pytest.approx(0.5)
    assert risk.level == "medium"
    assert [i.type for i in risk.indicators][-2:] == ["high_value", "suspicious_timing"]


def test_unparseable_occurrence_date_is_ignored(engine):
    risk = engine.assess_risk(analysis(score=0.0, occurrence_date="last tuesday"))

    assert risk.total_score == 0.0


def test_clock_is_used_without_reported_at():
    engine = ClaimsDecisionEngine(clock=lambda: datetime(2024, 1, 1, 18, tzinfo=timezone.utc))

    risk = engine.assess_risk(analysis(score=0.0, reported_at=None))

    assert risk.total_score == pytest.approx(0.2)


def test_rules_come_from_configuration():
    engine = ClaimsDecisionEngine(rules=DecisionRulesConfig(auto_approval_limit=30000))

    result = engine.process_claim_decision(analysis(value=25000), documents(*APE_DOCS))

    assert result.decision == "APPROVE"


def test_decision_is_deterministic(engine):
    first = engine.process_claim_decision(analysis(), documents(*APE_DOCS))
    second = engine.process_claim_decision(analysis(), documents(*APE_DOCS))

    assert first == second


def test_document_validation_flags_issues(engine):
    doc = ClaimDocument(
        id="d1",
        name="receipt.jpg",
        type="receipts",
        extracted_data={"low_quality": True, "suspicious_patterns": ["edited"]},
    )

    validation = engine.validate_document(doc)

    assert validation.status == "suspicious"
    assert validation.issues == ["Content not extracted", "Low image quality"]
    assert validation.confidence == pytest.approx(0.5)


@pytest.mark.parametrize(
    "score,level",
    [(0.0, "low"), (0.29, "low"), (0.3, "medium"), (0.6, "high"), (0.8, "critical")],
)
def test_risk_level_boundaries(score, level):
    assert risk_level_for(score) == level


def test_normalize_document_token():
    assert normalize_document_token(" Death-Certificate_PDF ") == "deathcertificatepdf"
