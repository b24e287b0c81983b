"""Pipeline definitions and runtime context."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..contracts import utcnow
from ..errors import DeadlockError, InvalidDefinitionError

PipelineStatus = Literal["running", "paused", "completed", "failed"]
PipelineStepStatus = Literal["pending", "processing", "completed", "error"]


class RetryPolicy(BaseModel):
    model_config = ConfigDict(frozen=True)

    max_attempts: int = Field(default=1, ge=1)
    backoff_ms: float = Field(default=0, ge=0)
    strategy: Literal["linear", "exponential"] = "linear"


class PipelineStepDefinition(BaseModel):
    """One named processing step of a pipeline."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str = ""
    description: str = ""
    processor: str
    config: Dict[str, Any] = Field(default_factory=dict)
    dependencies: List[str] = Field(default_factory=list)
    parallel: bool = False
    retry: Optional[RetryPolicy] = None
    timeout: Optional[float] = Field(default=None, description="Milliseconds")


class PipelineDefinition(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str = ""
    description: str = ""
    steps: List[PipelineStepDefinition] = Field(default_factory=list)


class PipelineStepState(BaseModel):
    id: str
    name: str = ""
    description: str = ""
    status: PipelineStepStatus = "pending"
    dependencies: List[str] = Field(default_factory=list)
    result: Any = None
    error: Optional[str] = None
    attempts: int = 0
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


class PipelineContext(BaseModel):
    """Runtime state of one pipeline run.

    ``executed`` lists step ids in the order their results resolved and
    ``results`` keeps every completed step's result, including after a
    failure of the run as a whole.
    """

    id: str = Field(default_factory=lambda: f"pipe_{uuid.uuid4().hex[:12]}")
    pipeline_id: str
    input: Dict[str, Any] = Field(default_factory=dict)
    steps: List[PipelineStepState] = Field(default_factory=list)
    executed: List[str] = Field(default_factory=list)
    results: Dict[str, Any] = Field(default_factory=dict)
    current_step: int = 0
    metadata: Dict[str, Any] = Field(default_factory=dict)
    status: PipelineStatus = "running"
    started_at: datetime = Field(default_factory=utcnow)
    ended_at: Optional[datetime] = None
    error: Optional[str] = None
    error_type: Optional[str] = None

    @classmethod
    def for_pipeline(
        cls, definition: PipelineDefinition, input: Dict[str, Any]
    ) -> "PipelineContext":
        return cls(
            id=f"{definition.id}_{uuid.uuid4().hex[:12]}",
            pipeline_id=definition.id,
            input=dict(input),
            steps=[
                PipelineStepState(
                    id=s.id,
                    name=s.name,
                    description=s.description,
                    dependencies=list(s.dependencies),
                )
                for s in definition.steps
            ],
        )

    def get_step(self, step_id: str) -> PipelineStepState:
        return next(s for s in self.steps if s.id == step_id)

    def step_index(self, step_id: str) -> int:
        return next(i for i, s in enumerate(self.steps) if s.id == step_id)

    def mark_executed(self, step_id: str, result: Any) -> None:
        if step_id in self.executed:
            raise RuntimeError(f"Step {step_id} already executed")
        self.executed.append(step_id)
        self.results[step_id] = result

    def step_input(self) -> Dict[str, Any]:
        """Pipeline input overlaid with prior results, last write wins.

        Mapping results are flattened into the top level in completion
        order; any other result is exposed under its step id.
        """
        merged = dict(self.input)
        for step_id in self.executed:
            result = self.results[step_id]
            if isinstance(result, dict):
                merged.update(result)
            else:
                merged[step_id] = result
        return merged

    @property
    def is_terminal(self) -> bool:
        return self.status in ("completed", "failed")


def validate_pipeline(definition: PipelineDefinition) -> PipelineDefinition:
    """Reject empty pipelines and duplicate step ids.

    Unsatisfiable dependencies are left for the run loop, which reports them
    as a deadlock.
    """
    if not definition.steps:
        raise InvalidDefinitionError(f"Pipeline {definition.id} has no steps")
    seen: set[str] = set()
    for step in definition.steps:
        if step.id in seen:
            raise InvalidDefinitionError(f"Duplicate step id {step.id}")
        seen.add(step.id)
    return definition


def ready_steps(
    definition: PipelineDefinition, executed: set[str] | List[str]
) -> List[PipelineStepDefinition]:
    done = set(executed)
    return [
        s
        for s in definition.steps
        if s.id not in done and all(dep in done for dep in s.dependencies)
    ]


def execution_waves(definition: PipelineDefinition) -> List[List[str]]:
    """Return the waves of step ids the orchestrator would run.

    Within a wave parallel steps come first, followed by sequential ones.
    """
    executed: List[str] = []
    waves: List[List[str]] = []
    while len(executed) < len(definition.steps):
        ready = ready_steps(definition, executed)
        if not ready:
            raise DeadlockError([s.id for s in definition.steps if s.id not in executed])
        wave = [s.id for s in ready if s.parallel] + [s.id for s in ready if not s.parallel]
        waves.append(wave)
        executed.extend(wave)
    return waves
