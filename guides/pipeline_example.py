"""Example running the claim processing pipeline with stub processors."""

import asyncio
import logging
import random

from claimflow import PipelineOrchestrator, ProcessorRegistry
from claimflow.pipeline import claim_processing_pipeline, execution_waves


class StubProcessor:
    def __init__(self, name, failure_rate=0.0):
        self.name = name
        self.failure_rate = failure_rate

    async def execute(self, input, config=None):
        await asyncio.sleep(0.1)
        if random.random() < self.failure_rate:
            raise RuntimeError(f"{self.name} hiccup")
        return {f"{self.name}_done": True}


async def main():
    definition = claim_processing_pipeline()
    for index, wave in enumerate(execution_waves(definition), start=1):
        print(f"Wave {index}: {', '.join(wave)}")

    processors = ProcessorRegistry(
        {s.processor: StubProcessor(s.processor) for s in definition.steps}
    )
    # Field extraction retries twice per its policy.
    processors.register("extract_fields", StubProcessor("extract_fields", failure_rate=0.3))

    orchestrator = PipelineOrchestrator(processors=processors, pipelines=[definition])
    context_id = await orchestrator.start_pipeline("claim_processing", {"claim": "CLM-1"})
    context = await orchestrator.wait(context_id)

    print(f"{context.id}: {context.status} {context.error or ''}")
    for state in context.steps:
        print(f"  {state.id:<24} {state.status} attempts={state.attempts}")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(main())
