from __future__ import annotations

import os
from typing import Dict, List, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field

from .constants import (
    AUTO_APPROVAL_LIMIT,
    FRAUD_SCORE_THRESHOLD,
    HIGH_VALUE_THRESHOLD,
    MINIMUM_CONFIDENCE,
    REQUIRED_DOCUMENTS,
)


class DecisionRulesConfig(BaseModel):
    """Business rules applied by the claims decision engine."""

    model_config = ConfigDict(frozen=True)

    auto_approval_limit: float = AUTO_APPROVAL_LIMIT
    high_value_threshold: float = HIGH_VALUE_THRESHOLD
    fraud_score_threshold: float = FRAUD_SCORE_THRESHOLD
    minimum_confidence: float = MINIMUM_CONFIDENCE
    required_documents: Dict[str, List[str]] = Field(
        default_factory=lambda: {k: list(v) for k, v in REQUIRED_DOCUMENTS.items()}
    )


class ExecutionConfig(BaseModel):
    """Runtime settings shared by the workflow executor and pipeline orchestrator."""

    default_step_timeout: Optional[float] = Field(
        default=None, description="Seconds; None disables the default deadline"
    )


class ClaimflowConfig(BaseModel):
    """Top-level configuration model."""

    decision_rules: DecisionRulesConfig = DecisionRulesConfig()
    execution: ExecutionConfig = ExecutionConfig()
    store_url: Optional[str] = None
    log_level: str = "INFO"


def load_config(path: Optional[str] = None) -> ClaimflowConfig:
    """Load configuration from YAML file.

    Args:
        path: Optional path to config file. Falls back to CLAIMFLOW_CONFIG env
            variable or 'claimflow.yaml' in the current directory.
    """

    config_path = path or os.getenv("CLAIMFLOW_CONFIG", "claimflow.yaml")
    if os.path.exists(config_path):
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
        config = ClaimflowConfig(**data)
    else:
        config = ClaimflowConfig()

    env_store_url = os.getenv("CLAIMFLOW_STORE_URL")
    if env_store_url:
        config.store_url = env_store_url
    return config
