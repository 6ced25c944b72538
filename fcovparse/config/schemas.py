"""Pydantic schemas for parser configuration."""

import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, model_validator


DEFAULT_PARALLEL_THRESHOLD = 10 * 1024 * 1024
DEFAULT_POOL_CHUNK_SIZE = 1024 * 1024


class ScoringWeights(BaseModel):
    """Per-collection weights of the overall coverage score."""

    groups: float = Field(default=0.4, ge=0.0, description="Weight of coverage groups")
    hierarchy: float = Field(default=0.2, ge=0.0, description="Weight of hierarchy instances")
    modules: float = Field(default=0.2, ge=0.0, description="Weight of module entries")
    asserts: float = Field(default=0.2, ge=0.0, description="Weight of assertions")

    @model_validator(mode="after")
    def validate_total(self) -> "ScoringWeights":
        """Validate that weights sum to ~1.0."""
        total = self.groups + self.hierarchy + self.modules + self.asserts
        if not (0.99 <= total <= 1.01):
            raise ValueError(f"Weights must sum to 1.0, got {total}")
        return self

    def as_dict(self) -> dict[str, float]:
        return self.model_dump()


class ParserSettings(BaseModel):
    """Tuning knobs shared by the sequential and chunked parsers."""

    num_threads: Optional[int] = Field(
        None, ge=1, description="Worker threads for chunked parsing (default: CPU count)"
    )
    parallel_threshold_bytes: int = Field(
        default=DEFAULT_PARALLEL_THRESHOLD,
        ge=0,
        description="Files smaller than this are parsed sequentially",
    )
    pool_chunk_size: int = Field(
        default=DEFAULT_POOL_CHUNK_SIZE, ge=64, description="Memory pool chunk size in bytes"
    )
    show_progress: bool = Field(default=False, description="Show a progress bar over chunks")
    weights: ScoringWeights = Field(default_factory=ScoringWeights)

    def resolved_threads(self) -> int:
        """Thread count to use: explicit setting, else CPU count, never below 1."""
        if self.num_threads:
            return max(1, self.num_threads)
        return max(1, os.cpu_count() or 1)

    @classmethod
    def from_yaml(cls, path: Path) -> "ParserSettings":
        """Load and validate settings from a YAML file.

        Args:
            path: Path to YAML settings file

        Returns:
            Validated ParserSettings instance

        Raises:
            ValidationError: If settings are invalid
            FileNotFoundError: If file doesn't exist
        """
        if not path.exists():
            raise FileNotFoundError(f"Settings not found: {path}")

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        return cls.model_validate(data)

    def to_yaml(self, path: Path) -> None:
        """Save settings to a YAML file.

        Args:
            path: Path to save YAML file
        """
        path.parent.mkdir(parents=True, exist_ok=True)

        data = self.model_dump(exclude_none=True)

        with open(path, "w") as f:
            yaml.dump(data, f, sort_keys=False, default_flow_style=False)
