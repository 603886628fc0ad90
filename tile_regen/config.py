"""
Scheduler settings - defaults, optional YAML file, environment overrides
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, field_validator

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

ENV_PREFIX = "TILE_REGEN_"


class RegenSettings(BaseModel):
    """Tunables shared by the chunk scheduler and the selection regenerator.

    Attributes:
        chunk_size: Edge length of a dirty-tracking chunk, in tiles
        time_budget_ms: Per-pass wall-clock budget before yielding to the host
        debounce_ms: Quiet period for debounced dirty marks
        verify_tail: How many trailing chunks the verify pass revisits
        level_weight: Weight of the normalized Z-level in request priority
        dep_weight: Weight of unsatisfied dependencies in request priority
        max_tile_index: Largest tile index accepted from the oracle
        layer_name: Tile layer the oracle is asked to fill
        temperature: Sampling temperature for oracle completions
        max_tokens: Completion length limit for oracle completions
    """

    chunk_size: int = 8
    time_budget_ms: float = 8.0
    debounce_ms: float = 120.0
    verify_tail: int = 3
    level_weight: float = 0.4
    dep_weight: float = 0.6
    max_tile_index: int = 255
    layer_name: str = "Ground_Layer"
    temperature: float = 0.3
    max_tokens: int = 2048

    @field_validator("chunk_size", "max_tokens")
    @classmethod
    def check_positive_int(cls, value: int) -> int:
        """Chunk size and token limits must be at least 1."""
        if value < 1:
            raise ValueError("must be >= 1")
        return value

    @field_validator("time_budget_ms", "debounce_ms")
    @classmethod
    def check_non_negative(cls, value: float) -> float:
        """Budgets and quiet periods cannot be negative."""
        if value < 0:
            raise ValueError("must be >= 0")
        return value

    @field_validator("verify_tail")
    @classmethod
    def check_verify_tail(cls, value: int) -> int:
        if value < 0:
            raise ValueError("must be >= 0")
        return value


def _env_overrides() -> dict[str, str]:
    """Collect TILE_REGEN_* variables that name a settings field."""
    overrides: dict[str, str] = {}
    for field_name in RegenSettings.model_fields:
        value = os.getenv(f"{ENV_PREFIX}{field_name.upper()}")
        if value is not None:
            overrides[field_name] = value
    return overrides


def load_settings(path: str | Path | None = None) -> RegenSettings:
    """
    Build settings from defaults, an optional YAML file and the environment.

    Environment variables win over the file, the file wins over defaults.

    Args:
        path: Optional YAML file with a mapping of settings fields

    Returns:
        Validated RegenSettings

    Raises:
        FileNotFoundError: If path is given but does not exist
        pydantic.ValidationError: If a value fails validation
    """
    data: dict[str, Any] = {}

    if path is not None:
        settings_path = Path(path)
        if not settings_path.exists():
            raise FileNotFoundError(f"Settings file not found: {settings_path}")
        with open(settings_path) as f:
            loaded = yaml.safe_load(f) or {}
        if not isinstance(loaded, dict):
            raise ValueError(f"Settings file must contain a mapping: {settings_path}")
        data.update(loaded)
        logger.debug(f"Loaded {len(loaded)} setting(s) from {settings_path}")

    overrides = _env_overrides()
    if overrides:
        logger.debug(f"Environment overrides: {sorted(overrides)}")
    data.update(overrides)

    return RegenSettings(**data)
