"""Branching workflow graphs and their executor."""

from __future__ import annotations

from .conditions import evaluate_conditions, evaluate_rule
from .defaults import (
    claims_processing_workflow,
    coverage_verification_workflow,
    default_workflows,
)
from .executor import WorkflowExecutor
from .graph import validate_workflow, workflow_problems

__all__ = [
    "WorkflowExecutor",
    "claims_processing_workflow",
    "coverage_verification_workflow",
    "default_workflows",
    "evaluate_conditions",
    "evaluate_rule",
    "validate_workflow",
    "workflow_problems",
]
