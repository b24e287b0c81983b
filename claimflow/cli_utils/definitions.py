"""Load workflow, pipeline and claim files for the CLI."""

from __future__ import annotations

from pathlib import Path
from typing import Any, List, Tuple

import yaml
from pydantic import ValidationError

from ..contracts import WorkflowDefinition
from ..decision.models import ClaimAnalysis, ClaimDocument
from ..errors import DocumentValidationError, InvalidDefinitionError
from ..pipeline.models import PipelineDefinition


def _read(path: Path) -> Any:
    """Parse a YAML or JSON file (JSON is a subset of YAML)."""
    with open(path) as f:
        return yaml.safe_load(f)


def load_workflow_file(path: Path) -> WorkflowDefinition:
    try:
        return WorkflowDefinition.model_validate(_read(path))
    except ValidationError as e:
        raise InvalidDefinitionError(f"{path}: {e}") from e


def load_pipeline_file(path: Path) -> PipelineDefinition:
    try:
        return PipelineDefinition.model_validate(_read(path))
    except ValidationError as e:
        raise InvalidDefinitionError(f"{path}: {e}") from e


def parse_documents(raw: Any) -> List[ClaimDocument]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise DocumentValidationError("documents must be a list")
    try:
        return [ClaimDocument.model_validate(item) for item in raw]
    except ValidationError as e:
        raise DocumentValidationError(str(e)) from e


def load_claim_file(
    path: Path, documents_path: Path | None = None
) -> Tuple[ClaimAnalysis, List[ClaimDocument]]:
    """Load a claim analysis and its documents.

    The file either holds the analysis fields at the top level or under an
    ``analysis`` key next to a ``documents`` list. A separate documents file
    takes precedence over embedded documents.
    """
    data = _read(path) or {}
    if not isinstance(data, dict):
        raise DocumentValidationError(f"{path}: expected a mapping of claim fields")
    if "analysis" in data:
        if not isinstance(data["analysis"], dict):
            raise DocumentValidationError(f"{path}: analysis must be a mapping")
        analysis_data = data["analysis"]
        documents_raw = data.get("documents")
    else:
        analysis_data = {k: v for k, v in data.items() if k != "documents"}
        documents_raw = data.get("documents")

    if documents_path is not None:
        documents_raw = _read(documents_path)

    analysis = ClaimAnalysis.model_validate(analysis_data)
    return analysis, parse_documents(documents_raw)
