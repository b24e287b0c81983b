"""Command line interface for claimflow."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Optional

import typer

from claimflow.cli_utils.definitions import (
    load_claim_file,
    load_pipeline_file,
    load_workflow_file,
)
from claimflow.config import load_config
from claimflow.decision import ClaimsDecisionEngine
from claimflow.errors import ClaimflowError, DeadlockError
from claimflow.integrations import (
    LoggingDocumentRequestService,
    LoggingNotificationService,
    LoggingPaymentGateway,
)
from claimflow.persistence import get_store
from claimflow.pipeline import default_pipelines, execution_waves, validate_pipeline
from claimflow.workflow import default_workflows, workflow_problems

logger = logging.getLogger(__name__)

app = typer.Typer(help="CLI for claimflow workflows, pipelines and claim decisions")

workflow_app = typer.Typer(help="Commands for workflow graphs")
pipeline_app = typer.Typer(help="Commands for pipeline definitions")

app.add_typer(workflow_app, name="workflow")
app.add_typer(pipeline_app, name="pipeline")


@app.callback()
def main(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(None, help="Path to a claimflow YAML config"),
) -> None:
    """claimflow CLI entry point."""
    cfg = load_config(str(config) if config else None)
    logging.basicConfig(level=cfg.log_level.upper())
    ctx.obj = cfg


@app.command("decide")
def decide(
    ctx: typer.Context,
    analysis_file: Path,
    documents: Optional[Path] = typer.Option(
        None, help="YAML/JSON list of claim documents"
    ),
    execute: bool = typer.Option(
        False, help="Run the automated follow-up actions through logging collaborators"
    ),
    save: bool = typer.Option(
        False, help="Store the decision under decision:<claim_number> in the configured store"
    ),
) -> None:
    """Evaluate a claim analysis and print the decision as JSON.

    Example:
        claimflow decide claim.yaml --documents docs.yaml --execute --save
    """
    try:
        analysis, docs = load_claim_file(analysis_file, documents)
    except (ClaimflowError, ValueError, OSError) as e:
        typer.echo(f"Cannot load claim: {e}")
        raise typer.Exit(code=1)

    cfg = ctx.obj or load_config()
    engine = ClaimsDecisionEngine(
        rules=cfg.decision_rules,
        payment_gateway=LoggingPaymentGateway(),
        notification_service=LoggingNotificationService(),
        document_requests=LoggingDocumentRequestService(),
    )
    result = engine.process_claim_decision(analysis, docs)
    output = {"decision": result.model_dump(mode="json")}

    async def follow_up() -> None:
        if execute:
            actions = await engine.execute_automatic_actions(
                result, analysis.claim_number
            )
            output["automatic_actions"] = actions.model_dump(mode="json")
        if save:
            key = f"decision:{analysis.claim_number}"
            await get_store(config=cfg).set(key, output)
            logger.info(f"Stored decision for claim {analysis.claim_number} as {key}")

    if execute or save:
        asyncio.run(follow_up())

    typer.echo(json.dumps(output, indent=2))


@workflow_app.command("list")
def workflow_list() -> None:
    """List the built-in workflow graphs."""
    for definition in default_workflows():
        typer.echo(f"{definition.id}\t{len(definition.steps)} steps\t{definition.name}")


@workflow_app.command("validate")
def workflow_validate(path: Path) -> None:
    """Check a workflow graph file for structural problems."""
    try:
        definition = load_workflow_file(path)
    except (ClaimflowError, OSError) as e:
        typer.echo(f"Invalid workflow: {e}")
        raise typer.Exit(code=1)

    problems = workflow_problems(definition)
    if problems:
        for problem in problems:
            typer.echo(f"- {problem}")
        raise typer.Exit(code=1)
    typer.echo(f"Workflow {definition.id} is valid ({len(definition.steps)} steps)")


@pipeline_app.command("list")
def pipeline_list() -> None:
    """List the built-in pipeline definitions."""
    for definition in default_pipelines():
        typer.echo(f"{definition.id}\t{len(definition.steps)} steps\t{definition.name}")


@pipeline_app.command("validate")
def pipeline_validate(path: Path) -> None:
    """Check a pipeline file for duplicate ids and unsatisfiable dependencies."""
    try:
        definition = validate_pipeline(load_pipeline_file(path))
        execution_waves(definition)
    except (ClaimflowError, OSError) as e:
        typer.echo(f"Invalid pipeline: {e}")
        raise typer.Exit(code=1)
    typer.echo(f"Pipeline {definition.id} is valid ({len(definition.steps)} steps)")


@pipeline_app.command("plan")
def pipeline_plan(path: Path) -> None:
    """Print the execution waves of a pipeline file."""
    try:
        definition = validate_pipeline(load_pipeline_file(path))
        waves = execution_waves(definition)
    except DeadlockError as e:
        typer.echo(str(e))
        raise typer.Exit(code=1)
    except (ClaimflowError, OSError) as e:
        typer.echo(f"Invalid pipeline: {e}")
        raise typer.Exit(code=1)

    parallel = {s.id for s in definition.steps if s.parallel}
    for index, wave in enumerate(waves, start=1):
        labels = [f"{sid}{' (parallel)' if sid in parallel else ''}" for sid in wave]
        typer.echo(f"Wave {index}: {', '.join(labels)}")


if __name__ == "__main__":
    app()
