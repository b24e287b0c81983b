"""Exception hierarchy for claimflow engines."""

from __future__ import annotations

from typing import Optional


class ClaimflowError(Exception):
    """Base class for all claimflow errors."""


class WorkflowNotFoundError(ClaimflowError):
    def __init__(self, workflow_id: str) -> None:
        super().__init__(f"Workflow {workflow_id} not found")
        self.workflow_id = workflow_id


class PipelineNotFoundError(ClaimflowError):
    def __init__(self, pipeline_id: str) -> None:
        super().__init__(f"Pipeline {pipeline_id} not found")
        self.pipeline_id = pipeline_id


class InvalidDefinitionError(ClaimflowError):
    """A workflow or pipeline definition is structurally invalid."""


class StepNotFoundError(ClaimflowError):
    def __init__(self, step_id: str, workflow_id: Optional[str] = None) -> None:
        where = f" in workflow {workflow_id}" if workflow_id else ""
        super().__init__(f"Step {step_id} not found{where}")
        self.step_id = step_id
        self.workflow_id = workflow_id


class ProcessorNotFoundError(ClaimflowError):
    """Raised when an agent or processor id has no registered implementation."""

    def __init__(self, name: str, kind: str = "Processor") -> None:
        super().__init__(f"{kind} {name} not found")
        self.name = name
        self.kind = kind


class DeadlockError(ClaimflowError):
    """No pipeline step is ready although some remain unexecuted."""

    def __init__(self, pending: list[str]) -> None:
        super().__init__(
            f"Pipeline deadlock: no step can be executed (pending: {', '.join(pending)})"
        )
        self.pending = pending


class ConditionEvaluationError(ClaimflowError):
    def __init__(self, property: str, operator: str, reason: str) -> None:
        super().__init__(f"Cannot evaluate {property} {operator}: {reason}")
        self.property = property
        self.operator = operator


class ActionExecutionError(ClaimflowError):
    def __init__(self, action: str, reason: str) -> None:
        super().__init__(f"Action {action} failed: {reason}")
        self.action = action


class StepTimeoutError(ClaimflowError):
    def __init__(self, step_id: str, timeout: float) -> None:
        super().__init__(f"Step {step_id} timed out after {timeout:g}s")
        self.step_id = step_id
        self.timeout = timeout


class DocumentValidationError(ClaimflowError):
    """A claim document payload could not be parsed."""
