"""Core contracts for claimflow workflows."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

StepType = Literal["agent", "condition", "action", "human_review", "api_call"]
ConditionOperator = Literal[
    "equals", "not_equals", "greater_than", "less_than", "contains", "exists", "regex"
]
ExecutionStatus = Literal["running", "paused", "completed", "failed", "cancelled"]
StepStatus = Literal["pending", "running", "completed", "failed"]

TERMINAL_STATUSES = ("completed", "failed", "cancelled")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BoundingBox(BaseModel):
    x: float
    y: float
    width: float
    height: float


class Citation(BaseModel):
    """Traceable excerpt from a source document backing an extracted value."""

    text: str
    source_document: str
    page: Optional[int] = None
    confidence: float = Field(ge=0, le=1)
    bounding_box: Optional[BoundingBox] = None
    extracted_data: Dict[str, Any] = Field(default_factory=dict)


class ValidationIssue(BaseModel):
    property: str
    message: str
    severity: Literal["error", "warning", "info"] = "error"


class AgentResult(BaseModel):
    """What an agent processor returns for one invocation."""

    extracted_data: Dict[str, Any] = Field(default_factory=dict)
    confidence: float = Field(default=0.0, ge=0, le=1)
    citations: List[Citation] = Field(default_factory=list)
    validation_errors: List[ValidationIssue] = Field(default_factory=list)


class ConditionRule(BaseModel):
    model_config = ConfigDict(frozen=True)

    property: str
    operator: ConditionOperator
    value: Any = None


class WorkflowStepDefinition(BaseModel):
    """Defines one step in a workflow graph."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    type: StepType
    agent_id: Optional[str] = None
    properties: Dict[str, Any] = Field(default_factory=dict)
    conditions: Optional[List[ConditionRule]] = None
    next_steps: List[str] = Field(default_factory=list)
    failure_steps: List[str] = Field(default_factory=list)
    timeout: Optional[float] = Field(default=None, description="Seconds")


class WorkflowDefinition(BaseModel):
    """Branching graph of steps; the first step is the entry point."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str = ""
    description: str = ""
    steps: List[WorkflowStepDefinition] = Field(default_factory=list)

    @property
    def first_step(self) -> Optional[WorkflowStepDefinition]:
        return self.steps[0] if self.steps else None

    def get_step(self, step_id: str) -> Optional[WorkflowStepDefinition]:
        return next((s for s in self.steps if s.id == step_id), None)


class StepExecution(BaseModel):
    """Record of a single step run inside a workflow execution."""

    step_id: str
    status: StepStatus = "pending"
    input: Dict[str, Any] = Field(default_factory=dict)
    output: Optional[Any] = None
    citations: List[Citation] = Field(default_factory=list)
    confidence: Optional[float] = None
    error: Optional[str] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    duration_ms: Optional[float] = None

    def finish(self, status: StepStatus, error: Optional[str] = None) -> None:
        """Move the record to a terminal status, stamping its timing."""
        self.status = status
        self.error = error
        self.completed_at = utcnow()
        if self.started_at is not None:
            delta = self.completed_at - self.started_at
            self.duration_ms = delta.total_seconds() * 1000


class WorkflowExecution(BaseModel):
    """Mutable state of one workflow run for a single case."""

    id: str = Field(default_factory=lambda: f"exec_{uuid.uuid4().hex[:12]}")
    workflow_id: str
    status: ExecutionStatus = "running"
    current_step: Optional[str] = None
    context: Dict[str, Any] = Field(default_factory=dict)
    citations: List[Citation] = Field(default_factory=list)
    results: Dict[str, Any] = Field(default_factory=dict)
    steps: List[StepExecution] = Field(default_factory=list)
    visited: List[str] = Field(default_factory=list)
    started_at: datetime = Field(default_factory=utcnow)
    completed_at: Optional[datetime] = None
    error: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def merge_context(self, values: Dict[str, Any]) -> None:
        """Merge ``values`` into the context; later keys overwrite earlier ones."""
        self.context.update(values)

    def add_citations(self, citations: List[Citation]) -> None:
        self.citations.extend(citations)

    def finish(self, status: ExecutionStatus, error: Optional[str] = None) -> None:
        self.status = status
        self.error = error
        self.completed_at = utcnow()
        if status in ("completed", "failed"):
            self.current_step = None
        logger.info(f"Workflow execution {self.id} finished with status={status}")

    def to_json(self) -> str:
        return self.model_dump_json()

    @classmethod
    def from_json(cls, data: str) -> "WorkflowExecution":
        return cls.model_validate_json(data)
