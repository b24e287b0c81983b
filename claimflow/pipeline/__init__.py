"""Dependency-DAG pipelines and their orchestrator."""

from __future__ import annotations

from .defaults import claim_processing_pipeline, default_pipelines, underwriting_pipeline
from .models import (
    PipelineContext,
    PipelineDefinition,
    PipelineStepDefinition,
    PipelineStepState,
    RetryPolicy,
    execution_waves,
    ready_steps,
    validate_pipeline,
)
from .orchestrator import PipelineOrchestrator

__all__ = [
    "PipelineContext",
    "PipelineDefinition",
    "PipelineOrchestrator",
    "PipelineStepDefinition",
    "PipelineStepState",
    "RetryPolicy",
    "claim_processing_pipeline",
    "default_pipelines",
    "execution_waves",
    "ready_steps",
    "underwriting_pipeline",
    "validate_pipeline",
]
