"""Structural validation of workflow graphs."""

from __future__ import annotations

from typing import List

from ..contracts import WorkflowDefinition
from ..errors import InvalidDefinitionError


def workflow_problems(definition: WorkflowDefinition) -> List[str]:
    """Return human readable problems found in ``definition``."""
    problems: List[str] = []
    if not definition.steps:
        return [f"Workflow {definition.id} has no steps"]

    seen: set[str] = set()
    for step in definition.steps:
        if step.id in seen:
            problems.append(f"Duplicate step id {step.id}")
        seen.add(step.id)

    for step in definition.steps:
        for successor in (*step.next_steps, *step.failure_steps):
            if successor not in seen:
                problems.append(f"Step {step.id} references unknown step {successor}")
        if step.type == "agent" and not step.agent_id:
            problems.append(f"Agent step {step.id} has no agent_id")
        if step.type == "condition" and not step.conditions:
            problems.append(f"Condition step {step.id} has no conditions")
    return problems


def validate_workflow(definition: WorkflowDefinition) -> WorkflowDefinition:
    """Raise ``InvalidDefinitionError`` if ``definition`` cannot be executed."""
    problems = workflow_problems(definition)
    if problems:
        raise InvalidDefinitionError("; ".join(problems))
    return definition
