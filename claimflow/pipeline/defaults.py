"""Built-in pipeline definitions."""

from __future__ import annotations

from typing import List

from .models import PipelineDefinition, PipelineStepDefinition, RetryPolicy


def claim_processing_pipeline() -> PipelineDefinition:
    return PipelineDefinition(
        id="claim_processing",
        name="Claim Processing",
        description="End-to-end analysis of an incoming claim",
        steps=[
            PipelineStepDefinition(
                id="document_classification",
                name="Document Classification",
                description="Classify the received documents",
                processor="classify_documents",
                retry=RetryPolicy(max_attempts=3, backoff_ms=1000),
                timeout=30000,
            ),
            PipelineStepDefinition(
                id="field_extraction",
                name="Field Extraction",
                description="Extract structured fields from the documents",
                processor="extract_fields",
                dependencies=["document_classification"],
                parallel=True,
                retry=RetryPolicy(max_attempts=2, backoff_ms=2000),
            ),
            PipelineStepDefinition(
                id="fraud_analysis",
                name="Fraud Analysis",
                description="Apply fraud detection models",
                processor="fraud_detection",
                dependencies=["field_extraction"],
                timeout=45000,
            ),
            PipelineStepDefinition(
                id="damage_assessment",
                name="Damage Assessment",
                description="Analyze images and estimate damages",
                processor="damage_analysis",
                dependencies=["field_extraction"],
                parallel=True,
            ),
            PipelineStepDefinition(
                id="risk_calculation",
                name="Risk Calculation",
                description="Compute risk score and reserves",
                processor="risk_assessment",
                dependencies=["fraud_analysis", "damage_assessment"],
            ),
            PipelineStepDefinition(
                id="decision_generation",
                name="Decision Generation",
                description="Produce the final recommendation and next steps",
                processor="decision_maker",
                dependencies=["risk_calculation"],
            ),
        ],
    )


def underwriting_pipeline() -> PipelineDefinition:
    return PipelineDefinition(
        id="underwriting",
        name="Underwriting Analysis",
        description="Assessment of an insurance application",
        steps=[
            PipelineStepDefinition(
                id="application_validation",
                name="Application Validation",
                description="Check completeness and consistency of the application",
                processor="validate_application",
            ),
            PipelineStepDefinition(
                id="risk_profiling",
                name="Risk Profiling",
                description="Profile the applicant's risk",
                processor="risk_profiling",
                dependencies=["application_validation"],
            ),
            PipelineStepDefinition(
                id="premium_calculation",
                name="Premium Calculation",
                description="Price the premium from the risk profile",
                processor="premium_calculator",
                dependencies=["risk_profiling"],
            ),
            PipelineStepDefinition(
                id="compliance_check",
                name="Compliance Check",
                description="Verify regulatory compliance",
                processor="compliance_validator",
                dependencies=["risk_profiling"],
                parallel=True,
            ),
            PipelineStepDefinition(
                id="underwriting_decision",
                name="Underwriting Decision",
                description="Accept or decline the application",
                processor="underwriting_decision",
                dependencies=["premium_calculation", "compliance_check"],
            ),
        ],
    )


def default_pipelines() -> List[PipelineDefinition]:
    return [claim_processing_pipeline(), underwriting_pipeline()]
