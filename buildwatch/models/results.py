"""Pipeline step and build result models."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class PipelineStep(str, Enum):
    """Steps of a pipeline run, in execution order."""

    BUNDLE = "bundle"
    MANIFEST = "manifest"
    EVAL = "eval"


class BuildStatus(str, Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class BuildResult(BaseModel):
    """Immutable record of one pipeline run.

    ``trigger_paths`` lists every path behind the run in arrival order; a
    coalesced re-run carries several.  ``trigger_path`` is the latest of them,
    or None for the initial build and for one-shot builds.
    """

    model_config = ConfigDict(frozen=True)

    trigger_path: str | None = None
    trigger_paths: list[str] = []
    status: BuildStatus
    completed_steps: list[PipelineStep] = []
    failed_step: PipelineStep | None = None
    error: str | None = None
    started_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    finished_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    @property
    def succeeded(self) -> bool:
        return self.status == BuildStatus.SUCCEEDED

    @property
    def duration_seconds(self) -> float:
        return (self.finished_at - self.started_at).total_seconds()
