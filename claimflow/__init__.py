"""claimflow: workflow orchestration and decision engine for insurance claims."""

from .config import ClaimflowConfig, DecisionRulesConfig, load_config
from .contracts import (
    AgentResult,
    Citation,
    ConditionRule,
    StepExecution,
    WorkflowDefinition,
    WorkflowExecution,
    WorkflowStepDefinition,
)
from .decision import ClaimAnalysis, ClaimDocument, ClaimsDecisionEngine, DecisionResult
from .pipeline import PipelineContext, PipelineDefinition, PipelineOrchestrator
from .pipeline import PipelineStepDefinition, RetryPolicy
from .registry import AgentRegistry, ExecutionRegistry, ProcessorRegistry
from .workflow import WorkflowExecutor

__version__ = "0.1.0"
__all__ = [
    "AgentRegistry",
    "AgentResult",
    "Citation",
    "ClaimAnalysis",
    "ClaimDocument",
    "ClaimflowConfig",
    "ClaimsDecisionEngine",
    "ConditionRule",
    "DecisionResult",
    "DecisionRulesConfig",
    "ExecutionRegistry",
    "PipelineContext",
    "PipelineDefinition",
    "PipelineOrchestrator",
    "PipelineStepDefinition",
    "ProcessorRegistry",
    "RetryPolicy",
    "StepExecution",
    "WorkflowDefinition",
    "WorkflowExecution",
    "WorkflowExecutor",
    "WorkflowStepDefinition",
    "load_config",
]
