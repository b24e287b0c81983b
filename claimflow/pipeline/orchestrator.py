"""Dependency-DAG pipeline runner."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Iterable, List, Optional

from ..collaborators import Processor
from ..config import ClaimflowConfig
from ..contracts import utcnow
from ..errors import DeadlockError, PipelineNotFoundError, StepTimeoutError
from ..registry import ExecutionRegistry, ProcessorRegistry
from ..utils.retry import schedule_retry
from .models import (
    PipelineContext,
    PipelineDefinition,
    PipelineStepDefinition,
    PipelineStepState,
    RetryPolicy,
    ready_steps,
    validate_pipeline,
)

logger = logging.getLogger(__name__)

_SINGLE_ATTEMPT = RetryPolicy()


class PipelineOrchestrator:
    """Run pipelines wave by wave in dependency order.

    Every wave is the set of not yet executed steps whose dependencies have
    all completed. Steps flagged ``parallel`` run concurrently and are joined
    before the wave's sequential steps run one at a time.
    """

    def __init__(
        self,
        processors: ProcessorRegistry | None = None,
        contexts: ExecutionRegistry[PipelineContext] | None = None,
        pipelines: Iterable[PipelineDefinition] = (),
        default_step_timeout: float | None = None,
    ) -> None:
        self._processors = processors or ProcessorRegistry()
        self._contexts: ExecutionRegistry[PipelineContext] = contexts or ExecutionRegistry()
        self._pipelines: Dict[str, PipelineDefinition] = {}
        self._tasks: Dict[str, asyncio.Task] = {}
        self._default_step_timeout = default_step_timeout
        for definition in pipelines:
            self.register_pipeline(definition)

    @classmethod
    def from_config(cls, config: ClaimflowConfig, **kwargs: Any) -> "PipelineOrchestrator":
        kwargs.setdefault("default_step_timeout", config.execution.default_step_timeout)
        return cls(**kwargs)

    # ------------------------------------------------------------------
    # Definitions
    def register_pipeline(self, definition: PipelineDefinition) -> None:
        self._pipelines[definition.id] = validate_pipeline(definition)

    def get_pipeline(self, pipeline_id: str) -> PipelineDefinition:
        try:
            return self._pipelines[pipeline_id]
        except KeyError:
            raise PipelineNotFoundError(pipeline_id) from None

    @property
    def pipeline_ids(self) -> List[str]:
        return sorted(self._pipelines)

    # ------------------------------------------------------------------
    # Execution API
    async def start_pipeline(self, pipeline_id: str, input: Dict[str, Any]) -> str:
        """Start ``pipeline_id`` in the background and return the context id."""
        context = await self._create_context(pipeline_id, input)
        self._spawn(context)
        return context.id

    async def run_pipeline(self, pipeline_id: str, input: Dict[str, Any]) -> PipelineContext:
        """Run ``pipeline_id`` in the current task until it finishes or pauses."""
        context = await self._create_context(pipeline_id, input)
        await self._execute(context)
        return context

    async def wait(self, context_id: str) -> Optional[PipelineContext]:
        """Wait for the background run of ``context_id`` to settle."""
        task = self._tasks.get(context_id)
        if task is not None:
            await task
        return await self._contexts.get(context_id)

    async def get_context(self, context_id: str) -> Optional[PipelineContext]:
        return await self._contexts.get(context_id)

    async def list_contexts(self) -> List[PipelineContext]:
        return await self._contexts.list()

    async def pause_pipeline(self, context_id: str) -> bool:
        """Stop scheduling new steps; in-flight steps finish normally."""
        context = await self._contexts.get(context_id)
        if context and context.status == "running":
            context.status = "paused"
            logger.info(f"Paused pipeline context {context_id}")
            return True
        return False

    async def resume_pipeline(self, context_id: str) -> bool:
        """Continue a paused run from its first unexecuted step."""
        context = await self._contexts.get(context_id)
        if not context or context.status != "paused":
            return False
        previous = self._tasks.get(context_id)
        if previous is not None and not previous.done():
            await previous
            if context.status != "paused":
                return False
        context.status = "running"
        logger.info(
            f"Resuming pipeline context {context_id} with {len(context.executed)} step(s) done"
        )
        self._spawn(context)
        return True

    # ------------------------------------------------------------------
    # Run loop
    async def _create_context(
        self, pipeline_id: str, input: Dict[str, Any]
    ) -> PipelineContext:
        definition = self.get_pipeline(pipeline_id)
        context = PipelineContext.for_pipeline(definition, input)
        await self._contexts.add(context)
        logger.info(f"Started pipeline {pipeline_id} as context {context.id}")
        return context

    def _spawn(self, context: PipelineContext) -> None:
        task = asyncio.create_task(self._execute(context))
        self._tasks[context.id] = task
        task.add_done_callback(lambda t: self._forget_task(context.id, t))

    def _forget_task(self, context_id: str, task: asyncio.Task) -> None:
        if self._tasks.get(context_id) is task:
            del self._tasks[context_id]

    async def _execute(self, context: PipelineContext) -> None:
        definition = self.get_pipeline(context.pipeline_id)
        try:
            await self._execute_steps(context, definition)
        except Exception as e:
            context.status = "failed"
            context.error = str(e)
            context.error_type = type(e).__name__
            context.ended_at = utcnow()
            logger.error(f"Pipeline context {context.id} failed: {e}")
            return

        if context.status == "running":
            context.status = "completed"
            context.ended_at = utcnow()
            context.metadata["results"] = dict(context.results)
            logger.info(f"Pipeline context {context.id} completed")

    async def _execute_steps(
        self, context: PipelineContext, definition: PipelineDefinition
    ) -> None:
        while len(context.executed) < len(definition.steps):
            if context.status != "running":
                return

            ready = ready_steps(definition, context.executed)
            if not ready:
                raise DeadlockError(
                    [s.id for s in definition.steps if s.id not in context.executed]
                )

            parallel = [s for s in ready if s.parallel]
            sequential = [s for s in ready if not s.parallel]
            logger.debug(
                f"Context {context.id} wave: parallel={[s.id for s in parallel]} "
                f"sequential={[s.id for s in sequential]}"
            )

            if parallel:
                # Snapshot the input so siblings in a wave do not see each other.
                wave_input = context.step_input()
                outcomes = await asyncio.gather(
                    *(self._run_and_record(context, s, wave_input) for s in parallel),
                    return_exceptions=True,
                )
                for outcome in outcomes:
                    if isinstance(outcome, BaseException):
                        raise outcome

            for step in sequential:
                if context.status != "running":
                    return
                await self._run_and_record(context, step, context.step_input())

    async def _run_and_record(
        self,
        context: PipelineContext,
        step: PipelineStepDefinition,
        step_input: Dict[str, Any],
    ) -> None:
        result = await self._execute_step(context, step, step_input)
        context.mark_executed(step.id, result)

    async def _execute_step(
        self,
        context: PipelineContext,
        step: PipelineStepDefinition,
        step_input: Dict[str, Any],
    ) -> Any:
        state = context.get_step(step.id)
        state.status = "processing"
        state.started_at = utcnow()
        context.current_step = context.step_index(step.id) + 1

        try:
            processor = self._processors.get(step.processor)
            result = await self._attempt(step, processor, step_input, state)
        except Exception as e:
            state.status = "error"
            state.error = str(e)
            state.completed_at = utcnow()
            logger.error(f"Step {step.id} of context {context.id} failed: {e}")
            raise

        state.status = "completed"
        state.result = result
        state.completed_at = utcnow()
        logger.debug(f"Step {step.id} of context {context.id} completed")
        return result

    async def _attempt(
        self,
        step: PipelineStepDefinition,
        processor: Processor,
        step_input: Dict[str, Any],
        state: PipelineStepState,
    ) -> Any:
        policy = step.retry or _SINGLE_ATTEMPT
        for attempt in range(1, policy.max_attempts + 1):
            state.attempts = attempt
            try:
                return await self._with_deadline(
                    processor.execute(dict(step_input), dict(step.config)), step
                )
            except Exception as e:
                if attempt >= policy.max_attempts:
                    raise
                logger.warning(
                    f"Step {step.id} attempt {attempt}/{policy.max_attempts} failed: {e}; retrying"
                )
                await schedule_retry(attempt, policy.backoff_ms, policy.strategy)

    async def _with_deadline(self, call, step: PipelineStepDefinition) -> Any:
        if step.timeout is not None:
            timeout = step.timeout / 1000
        else:
            timeout = self._default_step_timeout
        if timeout is None:
            return await call
        try:
            return await asyncio.wait_for(call, timeout)
        except asyncio.TimeoutError:
            raise StepTimeoutError(step.id, timeout) from None
