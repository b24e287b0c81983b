"""Example running the claims processing workflow with a human review pause."""

import asyncio
import logging

from claimflow import AgentRegistry, WorkflowExecutor
from claimflow.contracts import AgentResult, Citation
from claimflow.integrations import LoggingActionHandler
from claimflow.workflow import claims_processing_workflow


class KeywordAgent:
    """Stand-in agent that reads the claim amount from the context."""

    async def process(self, agent_id, input):
        if agent_id == "claims-processor":
            data = {"claim_amount": float(input.get("declared_amount", 0))}
        else:
            data = {"fraud_score": 0.1}
        return AgentResult(
            extracted_data=data,
            confidence=0.9,
            citations=[
                Citation(text="Declared amount", source_document="claim_form.pdf", confidence=0.9)
            ],
        )


async def main():
    agent = KeywordAgent()
    executor = WorkflowExecutor(
        agents=AgentRegistry({"claims-processor": agent, "fraud-detector": agent}),
        action_handler=LoggingActionHandler(),
        workflows=[claims_processing_workflow()],
    )

    execution = await executor.execute_workflow(
        "claims_processing", {"declared_amount": 72000}
    )
    print(f"{execution.id}: {execution.status} at {execution.current_step}")

    await executor.resume(execution.id, {"reviewer": "j.doe", "approved": True})
    print(f"{execution.id}: {execution.status}")
    for record in execution.steps:
        print(f"  {record.step_id:<20} {record.status}")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(main())
