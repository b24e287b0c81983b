"""Example evaluating a claim and executing the automated follow-up actions."""

import asyncio
import logging

from claimflow import ClaimsDecisionEngine
from claimflow.decision import ClaimAnalysis, ClaimDocument, RiskIndicator
from claimflow.integrations import (
    LoggingDocumentRequestService,
    LoggingNotificationService,
    LoggingPaymentGateway,
)


async def main():
    engine = ClaimsDecisionEngine(
        payment_gateway=LoggingPaymentGateway(),
        notification_service=LoggingNotificationService(),
        document_requests=LoggingDocumentRequestService(),
    )
    analysis = ClaimAnalysis(
        claim_number="CLM-2024-001",
        claim_type="APE",
        claim_value=15000,
        occurrence_date="2024-03-01",
        insured_name="Maria Silva",
        confidence=0.95,
        risk_indicators=[RiskIndicator(type="inconsistency", severity="low", score=0.1)],
    )
    documents = [
        ClaimDocument(id="1", name="report.pdf", type="medical_report", content="..."),
        ClaimDocument(id="2", name="certificate.pdf", type="death_certificate", content="..."),
        ClaimDocument(id="3", name="id.pdf", type="identity_document", content="..."),
    ]

    decision = engine.process_claim_decision(analysis, documents)
    print(decision.model_dump_json(indent=2))

    outcome = await engine.execute_automatic_actions(decision, analysis.claim_number)
    print(outcome.model_dump_json(indent=2))


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(main())
