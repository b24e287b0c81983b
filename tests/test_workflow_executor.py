import asyncio

import pytest

from claimflow.contracts import ConditionRule, WorkflowDefinition, WorkflowStepDefinition
from claimflow.errors import InvalidDefinitionError, WorkflowNotFoundError
from claimflow.registry import AgentRegistry
from claimflow.workflow import WorkflowExecutor, claims_processing_workflow
from doubles import FakeAgentProcessor, RecordingActionHandler


def step(step_id, type="action", **kwargs):
    if type == "action":
        kwargs.setdefault("properties", {"action_type": step_id})
    return WorkflowStepDefinition(id=step_id, name=step_id.title(), type=type, **kwargs)


def make_executor(definition, agent=None, handler=None, **kwargs):
    agents = AgentRegistry()
    agent = agent or FakeAgentProcessor()
    for s in definition.steps:
        if s.agent_id:
            agents.register(s.agent_id, agent)
    return WorkflowExecutor(
        agents=agents,
        action_handler=handler or RecordingActionHandler(),
        workflows=[definition],
        **kwargs,
    )


@pytest.mark.asyncio
async def test_linear_workflow_completes_and_merges_agent_data():
    definition = WorkflowDefinition(
        id="linear",
        steps=[
            step("extract", type="agent", agent_id="reader", next_steps=["a"]),
            step("a", next_steps=["b"]),
            step("b"),
        ],
    )
    agent = FakeAgentProcessor(results={"reader": {"claim_amount": 1200}})
    executor = make_executor(definition, agent=agent)

    execution = await executor.execute_workflow("linear", {"claim_number": "C-1"})

    assert execution.status == "completed"
    assert execution.current_step is None
    assert [s.step_id for s in execution.steps] == ["extract", "a", "b"]
    assert execution.context["claim_amount"] == 1200
    assert execution.context["extract_result"]["confidence"] == 0.9
    assert execution.steps[0].confidence == 0.9
    assert len(execution.citations) == 1
    agent_id, agent_input = agent.calls[0]
    assert agent_id == "reader"
    assert agent_input["claim_number"] == "C-1"


@pytest.mark.asyncio
async def test_agent_input_includes_step_properties():
    definition = WorkflowDefinition(
        id="props",
        steps=[
            step(
                "gap",
                type="agent",
                agent_id="coverage",
                properties={"analysis_type": "gap_detection"},
            )
        ],
    )
    agent = FakeAgentProcessor()
    executor = make_executor(definition, agent=agent)

    await executor.execute_workflow("props", {"policy": "P-9"})

    _, agent_input = agent.calls[0]
    assert agent_input == {"policy": "P-9", "analysis_type": "gap_detection"}


@pytest.mark.asyncio
async def test_later_agent_output_overwrites_context_keys():
    definition = WorkflowDefinition(
        id="overwrite",
        steps=[
            step("first", type="agent", agent_id="one", next_steps=["second"]),
            step("second", type="agent", agent_id="two"),
        ],
    )
    agent = FakeAgentProcessor(results={"one": {"score": 1}, "two": {"score": 2}})
    executor = WorkflowExecutor(
        agents=AgentRegistry({"one": agent, "two": agent}), workflows=[definition]
    )

    execution = await executor.execute_workflow("overwrite", {"score": 0})

    assert execution.context["score"] == 2


@pytest.mark.asyncio
async def test_revisiting_a_step_ends_the_walk_without_error():
    definition = WorkflowDefinition(
        id="loop",
        steps=[
            step("a", next_steps=["b"]),
            step("b", next_steps=["c"]),
            step("c", next_steps=["a"]),
        ],
    )
    handler = RecordingActionHandler()
    executor = make_executor(definition, handler=handler)

    execution = await executor.execute_workflow("loop", {})

    assert execution.status == "completed"
    assert execution.error is None
    assert [s.step_id for s in execution.steps] == ["a", "b", "c"]
    assert len(handler.calls) == 3


@pytest.mark.asyncio
async def test_self_loop_runs_step_once():
    definition = WorkflowDefinition(id="self", steps=[step("a", next_steps=["a"])])
    executor = make_executor(definition)

    execution = await executor.execute_workflow("self", {})

    assert execution.status == "completed"
    assert len(execution.steps) == 1


@pytest.mark.asyncio
async def test_condition_routes_true_to_next_and_false_to_failure_branch():
    definition = WorkflowDefinition(
        id="routing",
        steps=[
            step(
                "check",
                type="condition",
                conditions=[
                    ConditionRule(property="claim_amount", operator="greater_than", value=50000)
                ],
                next_steps=["review"],
                failure_steps=["approve"],
            ),
            step("review"),
            step("approve"),
        ],
    )
    executor = make_executor(definition)

    high = await executor.execute_workflow("routing", {"claim_amount": 80000})
    low = await executor.execute_workflow("routing", {"claim_amount": 100})

    assert [s.step_id for s in high.steps] == ["check", "review"]
    assert high.context["check_result"] is True
    assert [s.step_id for s in low.steps] == ["check", "approve"]
    assert low.context["check_result"] is False


@pytest.mark.asyncio
async def test_false_condition_without_failure_branch_completes():
    definition = WorkflowDefinition(
        id="dead_end",
        steps=[
            step(
                "check",
                type="condition",
                conditions=[ConditionRule(property="flag", operator="exists")],
                next_steps=["after"],
            ),
            step("after"),
        ],
    )
    executor = make_executor(definition)

    execution = await executor.execute_workflow("dead_end", {})

    assert execution.status == "completed"
    assert [s.step_id for s in execution.steps] == ["check"]


@pytest.mark.asyncio
async def test_only_first_successor_is_followed():
    definition = WorkflowDefinition(
        id="fanout",
        steps=[step("a", next_steps=["b", "c"]), step("b"), step("c")],
    )
    executor = make_executor(definition)

    execution = await executor.execute_workflow("fanout", {})

    assert [s.step_id for s in execution.steps] == ["a", "b"]


@pytest.mark.asyncio
async def test_step_failure_fails_execution():
    definition = WorkflowDefinition(
        id="failing",
        steps=[step("a", next_steps=["b"]), step("b", next_steps=["c"]), step("c")],
    )
    handler = RecordingActionHandler(fail_on="b")
    executor = make_executor(definition, handler=handler)

    execution = await executor.execute_workflow("failing", {})

    assert execution.status == "failed"
    assert "b unavailable" in execution.error
    assert [s.status for s in execution.steps] == ["completed", "failed"]
    assert execution.steps[1].error is not None
    assert len(handler.calls) == 2


@pytest.mark.asyncio
async def test_step_failure_follows_failure_branch():
    definition = WorkflowDefinition(
        id="recover",
        steps=[
            step("a", next_steps=["b"], failure_steps=["fallback"]),
            step("b"),
            step("fallback"),
        ],
    )
    handler = RecordingActionHandler(fail_on="a")
    executor = make_executor(definition, handler=handler)

    execution = await executor.execute_workflow("recover", {})

    assert execution.status == "completed"
    assert [(s.step_id, s.status) for s in execution.steps] == [
        ("a", "failed"),
        ("fallback", "completed"),
    ]


@pytest.mark.asyncio
async def test_unknown_agent_fails_execution():
    definition = WorkflowDefinition(
        id="no_agent", steps=[step("a", type="agent", agent_id="ghost")]
    )
    executor = WorkflowExecutor(workflows=[definition])

    execution = await executor.execute_workflow("no_agent", {})

    assert execution.status == "failed"
    assert execution.error == "Agent ghost not found"


@pytest.mark.asyncio
async def test_unknown_successor_fails_execution_when_not_validated():
    definition = WorkflowDefinition(id="broken", steps=[step("a", next_steps=["missing"])])
    executor = WorkflowExecutor(action_handler=RecordingActionHandler())
    executor.register_workflow(definition, validate=False)

    execution = await executor.execute_workflow("broken", {})

    assert execution.status == "failed"
    assert "Step missing not found" in execution.error


def test_register_rejects_unknown_successor():
    definition = WorkflowDefinition(id="broken", steps=[step("a", next_steps=["missing"])])
    executor = WorkflowExecutor()

    with pytest.raises(InvalidDefinitionError):
        executor.register_workflow(definition)


@pytest.mark.asyncio
async def test_unknown_workflow_raises():
    executor = WorkflowExecutor()
    with pytest.raises(WorkflowNotFoundError):
        await executor.execute_workflow("nope", {})


@pytest.mark.asyncio
async def test_agent_timeout_fails_step():
    definition = WorkflowDefinition(
        id="slow", steps=[step("a", type="agent", agent_id="slow", timeout=0.01)]
    )
    executor = make_executor(definition, agent=FakeAgentProcessor(delay=0.5))

    execution = await executor.execute_workflow("slow", {})

    assert execution.status == "failed"
    assert execution.error == "Step a timed out after 0.01s"


@pytest.mark.asyncio
async def test_human_review_pauses_and_resume_continues():
    definition = WorkflowDefinition(
        id="review",
        steps=[
            step("intake", next_steps=["review"]),
            step(
                "review",
                type="human_review",
                properties={"instructions": "Check the invoice"},
                next_steps=["finalize"],
            ),
            step("finalize"),
        ],
    )
    handler = RecordingActionHandler()
    executor = make_executor(definition, handler=handler)

    execution = await executor.execute_workflow("review", {"claim_number": "C-2"})

    assert execution.status == "paused"
    assert execution.current_step == "review"
    review = execution.results["review"]
    assert review["requires_human_review"] is True
    assert review["review_instructions"] == "Check the invoice"
    assert len(handler.calls) == 1

    resumed = await executor.resume(execution.id, {"reviewer_decision": "approve"})

    assert resumed is True
    assert execution.status == "completed"
    assert execution.context["reviewer_decision"] == "approve"
    assert [s.step_id for s in execution.steps] == ["intake", "review", "finalize"]
    assert len(handler.calls) == 2


@pytest.mark.asyncio
async def test_resume_requires_paused_execution():
    definition = WorkflowDefinition(id="one", steps=[step("a")])
    executor = make_executor(definition)
    execution = await executor.execute_workflow("one", {})

    assert await executor.resume(execution.id) is False
    assert await executor.resume("exec_unknown") is False


@pytest.mark.asyncio
async def test_cancel_paused_execution():
    definition = WorkflowDefinition(
        id="review", steps=[step("review", type="human_review", next_steps=["b"]), step("b")]
    )
    executor = make_executor(definition)
    execution = await executor.execute_workflow("review", {})

    assert await executor.cancel(execution.id) is True
    assert execution.status == "cancelled"
    assert await executor.resume(execution.id) is False
    assert await executor.cancel(execution.id) is False


@pytest.mark.asyncio
async def test_pause_stops_before_next_step():
    definition = WorkflowDefinition(
        id="pausable",
        steps=[
            step("slow", type="agent", agent_id="slow", next_steps=["after"]),
            step("after"),
        ],
    )
    handler = RecordingActionHandler()
    executor = make_executor(
        definition, agent=FakeAgentProcessor(delay=0.05), handler=handler
    )

    task = asyncio.create_task(executor.execute_workflow("pausable", {}))
    await asyncio.sleep(0.01)
    (running,) = await executor.list_executions()
    assert await executor.pause(running.id) is True
    execution = await task

    assert execution.status == "paused"
    assert execution.current_step == "after"
    assert handler.calls == []

    await executor.resume(execution.id)
    assert execution.status == "completed"
    assert len(handler.calls) == 1


@pytest.mark.asyncio
async def test_documents_are_exposed_in_context():
    definition = WorkflowDefinition(id="docs", steps=[step("a")])
    executor = make_executor(definition)

    execution = await executor.execute_workflow("docs", {}, documents=[{"id": "d1"}])

    assert execution.context["documents"] == [{"id": "d1"}]
    assert await executor.get_execution(execution.id) is execution


@pytest.mark.asyncio
async def test_claims_processing_workflow_high_value_goes_to_review():
    definition = claims_processing_workflow()
    agent = FakeAgentProcessor(
        results={
            "claims-processor": {"claim_amount": 75000},
            "fraud-detector": {"fraud_score": 0.1},
        }
    )
    executor = make_executor(definition, agent=agent)

    execution = await executor.execute_workflow("claims_processing", {})
    assert execution.status == "paused"
    assert execution.current_step == "human_review"

    await executor.resume(execution.id, {"approved": True})
    assert execution.status == "completed"
    assert [s.step_id for s in execution.steps][-2:] == ["final_decision", "notification"]


@pytest.mark.asyncio
async def test_claims_processing_workflow_low_value_is_auto_approved():
    definition = claims_processing_workflow()
    agent = FakeAgentProcessor(results={"claims-processor": {"claim_amount": 3000}})
    handler = RecordingActionHandler()
    executor = make_executor(definition, agent=agent, handler=handler)

    execution = await executor.execute_workflow("claims_processing", {})

    assert execution.status == "completed"
    assert [c["action_type"] for c in handler.calls] == [
        "upload_documents",
        "approve_claim",
        "send_notification",
    ]


def test_execution_json_round_trip():
    from claimflow.contracts import WorkflowExecution

    execution = WorkflowExecution(workflow_id="w", current_step="a", context={"x": 1})
    restored = WorkflowExecution.from_json(execution.to_json())
    assert restored == execution


def slow_then_action(step_id="slow_then_action"):
    return WorkflowDefinition(
        id=step_id,
        steps=[
            step("slow", type="agent", agent_id="slow", next_steps=["after"]),
            step("after"),
        ],
    )


@pytest.mark.asyncio
async def test_resume_while_step_in_flight_waits_and_continues():
    definition = slow_then_action()
    handler = RecordingActionHandler()
    executor = make_executor(
        definition, agent=FakeAgentProcessor(delay=0.05), handler=handler
    )

    task = asyncio.create_task(executor.execute_workflow(definition.id, {}))
    await asyncio.sleep(0.01)
    (running,) = await executor.list_executions()
    assert await executor.pause(running.id) is True

    assert await executor.resume(running.id) is True
    execution = await task

    assert execution.status == "completed"
    assert execution.current_step is None
    assert [s.step_id for s in execution.steps] == ["slow", "after"]
    assert len(handler.calls) == 1


@pytest.mark.asyncio
async def test_cancel_while_step_in_flight_lets_step_finish():
    definition = slow_then_action()
    handler = RecordingActionHandler()
    executor = make_executor(
        definition, agent=FakeAgentProcessor(delay=0.05), handler=handler
    )

    task = asyncio.create_task(executor.execute_workflow(definition.id, {}))
    await asyncio.sleep(0.01)
    (running,) = await executor.list_executions()
    assert await executor.cancel(running.id) is True
    execution = await task

    assert execution.status == "cancelled"
    assert [(s.step_id, s.status) for s in execution.steps] == [("slow", "completed")]
    assert handler.calls == []
    assert await executor.resume(execution.id) is False


@pytest.mark.asyncio
async def test_from_config_applies_default_step_timeout():
    from claimflow.config import ClaimflowConfig, ExecutionConfig

    definition = WorkflowDefinition(
        id="slow", steps=[step("a", type="agent", agent_id="slow")]
    )
    config = ClaimflowConfig(execution=ExecutionConfig(default_step_timeout=0.01))
    executor = WorkflowExecutor.from_config(
        config,
        agents=AgentRegistry({"slow": FakeAgentProcessor(delay=0.5)}),
        workflows=[definition],
    )

    execution = await executor.execute_workflow("slow", {})

    assert execution.status == "failed"
    assert execution.error == "Step a timed out after 0.01s"
