"""Built-in workflow graphs."""

from __future__ import annotations

from typing import List

from ..contracts import ConditionRule, WorkflowDefinition, WorkflowStepDefinition


def claims_processing_workflow() -> WorkflowDefinition:
    return WorkflowDefinition(
        id="claims_processing",
        name="Claims Processing",
        description="Document intake, analysis, fraud check and routing by claim amount",
        steps=[
            WorkflowStepDefinition(
                id="document_upload",
                name="Document Upload",
                type="action",
                properties={"action_type": "upload_documents"},
                next_steps=["document_analysis"],
            ),
            WorkflowStepDefinition(
                id="document_analysis",
                name="Document Analysis",
                type="agent",
                agent_id="claims-processor",
                next_steps=["fraud_check"],
            ),
            WorkflowStepDefinition(
                id="fraud_check",
                name="Fraud Detection",
                type="agent",
                agent_id="fraud-detector",
                next_steps=["risk_assessment"],
            ),
            WorkflowStepDefinition(
                id="risk_assessment",
                name="Risk Assessment",
                type="condition",
                conditions=[
                    ConditionRule(
                        property="claim_amount", operator="greater_than", value=50000
                    )
                ],
                next_steps=["human_review"],
                failure_steps=["auto_approval"],
            ),
            WorkflowStepDefinition(
                id="human_review",
                name="Human Review Required",
                type="human_review",
                properties={"instructions": "High-value claim requires manual review"},
                next_steps=["final_decision"],
            ),
            WorkflowStepDefinition(
                id="auto_approval",
                name="Auto Approval",
                type="action",
                properties={"action_type": "approve_claim"},
                next_steps=["notification"],
            ),
            WorkflowStepDefinition(
                id="final_decision",
                name="Final Decision",
                type="action",
                properties={"action_type": "finalize_decision"},
                next_steps=["notification"],
            ),
            WorkflowStepDefinition(
                id="notification",
                name="Send Notification",
                type="action",
                properties={"action_type": "send_notification"},
            ),
        ],
    )


def coverage_verification_workflow() -> WorkflowDefinition:
    return WorkflowDefinition(
        id="coverage_verification",
        name="Coverage Verification",
        description="Policy extraction, compliance check and coverage gap analysis",
        steps=[
            WorkflowStepDefinition(
                id="policy_extraction",
                name="Extract Policy Data",
                type="agent",
                agent_id="coverage-verification",
                next_steps=["compliance_check"],
            ),
            WorkflowStepDefinition(
                id="compliance_check",
                name="Compliance Verification",
                type="agent",
                agent_id="legal-analyst",
                next_steps=["gap_analysis"],
            ),
            WorkflowStepDefinition(
                id="gap_analysis",
                name="Coverage Gap Analysis",
                type="agent",
                agent_id="coverage-verification",
                properties={"analysis_type": "gap_detection"},
                next_steps=["generate_report"],
            ),
            WorkflowStepDefinition(
                id="generate_report",
                name="Generate Coverage Report",
                type="action",
                properties={"action_type": "generate_coverage_report"},
            ),
        ],
    )


def default_workflows() -> List[WorkflowDefinition]:
    return [claims_processing_workflow(), coverage_verification_workflow()]
