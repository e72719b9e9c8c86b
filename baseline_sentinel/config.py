"""
Runtime configuration for scans, the CLI and the HTTP API.
"""

import os
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from .models import FeatureStatus


DEFAULT_EXTENSIONS = {
    ".css": "css",
    ".js": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".jsx": "javascriptreact",
    ".ts": "typescript",
    ".mts": "typescript",
    ".cts": "typescript",
    ".tsx": "typescriptreact",
    ".html": "html",
    ".htm": "html",
}

DEFAULT_EXCLUDE_DIRS = ["node_modules", ".git", "dist", "build", "coverage", ".next", "out"]


class SentinelConfig(BaseModel):
    target: FeatureStatus = FeatureStatus.WIDELY
    dataset_path: Optional[str] = None
    extensions: Dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_EXTENSIONS))
    exclude_dirs: List[str] = Field(default_factory=lambda: list(DEFAULT_EXCLUDE_DIRS))
    workers: int = 4
    results_file: str = "baseline-results.json"

    @field_validator("target")
    @classmethod
    def _check_target(cls, value: FeatureStatus) -> FeatureStatus:
        if value not in (FeatureStatus.WIDELY, FeatureStatus.NEWLY):
            raise ValueError("target must be 'widely' or 'newly'")
        return value

    @field_validator("workers")
    @classmethod
    def _check_workers(cls, value: int) -> int:
        return max(1, value)

    @classmethod
    def from_env(cls, **overrides) -> "SentinelConfig":
        """Build a config from BASELINE_SENTINEL_* variables, then apply overrides."""
        values = {}
        if os.environ.get("BASELINE_SENTINEL_TARGET"):
            values["target"] = os.environ["BASELINE_SENTINEL_TARGET"]
        if os.environ.get("BASELINE_SENTINEL_DATASET"):
            values["dataset_path"] = os.environ["BASELINE_SENTINEL_DATASET"]
        if os.environ.get("BASELINE_SENTINEL_WORKERS"):
            values["workers"] = int(os.environ["BASELINE_SENTINEL_WORKERS"])
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
