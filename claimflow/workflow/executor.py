"""Sequential executor for branching workflow graphs."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Dict, Iterable, List, Optional, Sequence, TypeVar

from ..collaborators import ActionHandler, ApiCaller
from ..config import ClaimflowConfig
from ..constants import DEFAULT_REVIEW_INSTRUCTIONS
from ..contracts import (
    StepExecution,
    WorkflowDefinition,
    WorkflowExecution,
    WorkflowStepDefinition,
    utcnow,
)
from ..errors import (
    ActionExecutionError,
    ClaimflowError,
    ConditionEvaluationError,
    StepNotFoundError,
    StepTimeoutError,
    WorkflowNotFoundError,
)
from ..registry import AgentRegistry, ExecutionRegistry
from .conditions import evaluate_conditions
from .graph import validate_workflow

logger = logging.getLogger(__name__)

T = TypeVar("T")


class WorkflowExecutor:
    """Drive a single case through a workflow graph, one step at a time.

    The walk keeps a visited-step guard: entering a step id that already ran
    ends the walk without error. Only the first successor of each branch is
    followed.
    """

    def __init__(
        self,
        agents: AgentRegistry | None = None,
        action_handler: ActionHandler | None = None,
        api_caller: ApiCaller | None = None,
        executions: ExecutionRegistry[WorkflowExecution] | None = None,
        workflows: Iterable[WorkflowDefinition] = (),
        default_step_timeout: float | None = None,
    ) -> None:
        self._agents = agents or AgentRegistry()
        self._action_handler = action_handler
        self._api_caller = api_caller
        self._executions: ExecutionRegistry[WorkflowExecution] = (
            executions or ExecutionRegistry()
        )
        self._workflows: Dict[str, WorkflowDefinition] = {}
        self._default_step_timeout = default_step_timeout
        self._runs: Dict[str, asyncio.Task] = {}
        for definition in workflows:
            self.register_workflow(definition)

    @classmethod
    def from_config(cls, config: ClaimflowConfig, **kwargs: Any) -> "WorkflowExecutor":
        """Build an executor using the configured default step deadline."""
        kwargs.setdefault("default_step_timeout", config.execution.default_step_timeout)
        return cls(**kwargs)

    # ------------------------------------------------------------------
    # Definitions
    def register_workflow(
        self, definition: WorkflowDefinition, validate: bool = True
    ) -> None:
        if validate:
            validate_workflow(definition)
        self._workflows[definition.id] = definition

    def get_workflow(self, workflow_id: str) -> WorkflowDefinition:
        try:
            return self._workflows[workflow_id]
        except KeyError:
            raise WorkflowNotFoundError(workflow_id) from None

    @property
    def workflow_ids(self) -> List[str]:
        return sorted(self._workflows)

    # ------------------------------------------------------------------
    # Execution API
    async def execute_workflow(
        self,
        workflow_id: str,
        initial_context: Dict[str, Any],
        documents: Optional[Sequence[Any]] = None,
    ) -> WorkflowExecution:
        """Run ``workflow_id`` for one case until it completes, fails or pauses."""
        workflow = self.get_workflow(workflow_id)
        if workflow.first_step is None:
            raise StepNotFoundError("<entry>", workflow_id)

        execution = WorkflowExecution(
            workflow_id=workflow_id,
            current_step=workflow.first_step.id,
            context=dict(initial_context),
        )
        if documents is not None:
            execution.context["documents"] = list(documents)

        await self._executions.add(execution)
        logger.info(f"Started workflow {workflow_id} as execution {execution.id}")
        await self._run(execution, workflow)
        return execution

    async def get_execution(self, execution_id: str) -> Optional[WorkflowExecution]:
        return await self._executions.get(execution_id)

    async def list_executions(self) -> List[WorkflowExecution]:
        return await self._executions.list()

    async def pause(self, execution_id: str) -> bool:
        """Stop a running execution before its next step."""
        execution = await self._executions.get(execution_id)
        if execution and execution.status == "running":
            execution.status = "paused"
            logger.info(f"Paused execution {execution_id} at step {execution.current_step}")
            return True
        return False

    async def resume(
        self, execution_id: str, review_data: Optional[Dict[str, Any]] = None
    ) -> bool:
        """Re-enter the step loop of a paused execution at its saved position.

        ``review_data`` (for instance the outcome of a human review) is merged
        into the context before the walk continues.
        """
        execution = await self._executions.get(execution_id)
        if not execution or execution.status != "paused":
            return False

        # A pause only takes effect once the in-flight step settles.
        previous = self._runs.get(execution_id)
        if previous is not None and not previous.done():
            await previous
            if execution.status != "paused":
                return False

        workflow = self.get_workflow(execution.workflow_id)
        if review_data:
            execution.merge_context(review_data)

        current = (
            workflow.get_step(execution.current_step) if execution.current_step else None
        )
        if (
            current is not None
            and current.type == "human_review"
            and current.id in execution.visited
        ):
            execution.current_step = current.next_steps[0] if current.next_steps else None

        execution.status = "running"
        logger.info(f"Resuming execution {execution_id} at step {execution.current_step}")
        await self._run(execution, workflow)
        return True

    async def cancel(self, execution_id: str) -> bool:
        """Mark an execution cancelled; an in-flight step is allowed to finish."""
        execution = await self._executions.get(execution_id)
        if execution and execution.status in ("running", "paused"):
            execution.finish("cancelled")
            return True
        return False

    # ------------------------------------------------------------------
    # Step loop
    async def _run(self, execution: WorkflowExecution, workflow: WorkflowDefinition) -> None:
        task = asyncio.create_task(self._drive(execution, workflow))
        self._runs[execution.id] = task
        task.add_done_callback(lambda t: self._forget_run(execution.id, t))
        await task

    def _forget_run(self, execution_id: str, task: asyncio.Task) -> None:
        if self._runs.get(execution_id) is task:
            del self._runs[execution_id]

    async def _drive(
        self, execution: WorkflowExecution, workflow: WorkflowDefinition
    ) -> None:
        try:
            await self._process_steps(execution, workflow)
        except Exception as e:
            if execution.status == "cancelled":
                logger.warning(f"Execution {execution.id} step failed after cancellation: {e}")
                return
            logger.error(f"Execution {execution.id} of workflow {workflow.id} failed: {e}")
            execution.finish("failed", error=str(e))
            return

        if execution.status == "running":
            execution.finish("completed")

    async def _process_steps(
        self, execution: WorkflowExecution, workflow: WorkflowDefinition
    ) -> None:
        while execution.current_step is not None and execution.status == "running":
            step_id = execution.current_step
            if step_id in execution.visited:
                logger.info(
                    f"Execution {execution.id} revisited step {step_id}; ending walk"
                )
                return

            step = workflow.get_step(step_id)
            if step is None:
                raise StepNotFoundError(step_id, workflow.id)
            execution.visited.append(step_id)

            record, error = await self._execute_step(step, execution)
            execution.steps.append(record)
            execution.add_citations(record.citations)

            if error is not None and not step.failure_steps:
                raise error

            if step.type == "human_review" and error is None:
                execution.status = "paused"
                logger.info(f"Execution {execution.id} waiting for human review at {step_id}")
                return

            execution.current_step = self._next_step(step, record)

    def _next_step(
        self, step: WorkflowStepDefinition, record: StepExecution
    ) -> Optional[str]:
        """First successor wins: failure route, false condition route, else next."""
        if record.status == "failed" and step.failure_steps:
            return step.failure_steps[0]
        if step.type == "condition" and (record.output or {}).get("condition_result") is False:
            return step.failure_steps[0] if step.failure_steps else None
        return step.next_steps[0] if step.next_steps else None

    async def _execute_step(
        self, step: WorkflowStepDefinition, execution: WorkflowExecution
    ) -> tuple[StepExecution, Optional[Exception]]:
        record = StepExecution(
            step_id=step.id,
            status="running",
            started_at=utcnow(),
            input={**execution.context, **step.properties},
        )
        logger.debug(f"Execution {execution.id} running {step.type} step {step.id}")

        try:
            if step.type == "agent":
                await self._run_agent_step(step, record, execution)
            elif step.type == "condition":
                self._run_condition_step(step, record, execution)
            elif step.type == "action":
                await self._run_action_step(step, record, execution)
            elif step.type == "api_call":
                await self._run_api_call_step(step, record, execution)
            elif step.type == "human_review":
                self._run_human_review_step(step, record, execution)
            else:
                raise ActionExecutionError(step.id, f"unknown step type {step.type}")
        except Exception as e:
            record.finish("failed", error=str(e))
            logger.error(f"Step {step.id} of execution {execution.id} failed: {e}")
            return record, e

        record.finish("completed")
        return record, None

    async def _run_agent_step(
        self,
        step: WorkflowStepDefinition,
        record: StepExecution,
        execution: WorkflowExecution,
    ) -> None:
        if not step.agent_id:
            raise ActionExecutionError(step.id, "agent_id is required for agent steps")
        processor = self._agents.get(step.agent_id)
        result = await self._with_deadline(
            processor.process(step.agent_id, dict(record.input)), step
        )

        record.output = dict(result.extracted_data)
        record.citations = list(result.citations)
        record.confidence = result.confidence

        dumped = result.model_dump()
        execution.merge_context(result.extracted_data)
        execution.context[f"{step.id}_result"] = dumped
        execution.results[step.id] = dumped

    def _run_condition_step(
        self,
        step: WorkflowStepDefinition,
        record: StepExecution,
        execution: WorkflowExecution,
    ) -> None:
        if not step.conditions:
            raise ConditionEvaluationError(step.id, "-", "no conditions defined")
        outcome = evaluate_conditions(step.conditions, execution.context)
        record.output = {"condition_result": outcome}
        execution.context[f"{step.id}_result"] = outcome
        execution.results[step.id] = outcome

    async def _run_action_step(
        self,
        step: WorkflowStepDefinition,
        record: StepExecution,
        execution: WorkflowExecution,
    ) -> None:
        action = step.properties.get("action_type", step.id)
        if self._action_handler is None:
            raise ActionExecutionError(action, "no action handler configured")
        result = await self._call_collaborator(
            action,
            step,
            self._action_handler.execute(dict(step.properties), dict(execution.context)),
        )
        self._store_side_effect(step, record, execution, result)

    async def _run_api_call_step(
        self,
        step: WorkflowStepDefinition,
        record: StepExecution,
        execution: WorkflowExecution,
    ) -> None:
        endpoint = step.properties.get("endpoint", step.id)
        if self._api_caller is None:
            raise ActionExecutionError(endpoint, "no API caller configured")
        result = await self._call_collaborator(
            endpoint,
            step,
            self._api_caller.call(dict(step.properties), dict(execution.context)),
        )
        self._store_side_effect(step, record, execution, result)

    def _run_human_review_step(
        self,
        step: WorkflowStepDefinition,
        record: StepExecution,
        execution: WorkflowExecution,
    ) -> None:
        record.output = {
            "requires_human_review": True,
            "review_data": dict(execution.context),
            "review_instructions": step.properties.get(
                "instructions", DEFAULT_REVIEW_INSTRUCTIONS
            ),
        }
        execution.results[step.id] = record.output

    @staticmethod
    def _store_side_effect(
        step: WorkflowStepDefinition,
        record: StepExecution,
        execution: WorkflowExecution,
        result: Any,
    ) -> None:
        record.output = result
        execution.context[f"{step.id}_result"] = result
        execution.results[step.id] = result

    async def _call_collaborator(
        self, name: str, step: WorkflowStepDefinition, call: Awaitable[T]
    ) -> T:
        try:
            return await self._with_deadline(call, step)
        except ClaimflowError:
            raise
        except Exception as e:
            raise ActionExecutionError(name, str(e)) from e

    async def _with_deadline(self, call: Awaitable[T], step: WorkflowStepDefinition) -> T:
        timeout = step.timeout if step.timeout is not None else self._default_step_timeout
        if timeout is None:
            return await call
        try:
            return await asyncio.wait_for(call, timeout)
        except asyncio.TimeoutError:
            raise StepTimeoutError(step.id, timeout) from None
