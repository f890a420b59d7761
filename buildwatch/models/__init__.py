"""buildwatch data models: all Pydantic v2, all frozen (immutable)."""

from buildwatch.models.config import ProjectConfig, WatchConfig
from buildwatch.models.events import (
    VALID_WATCH_TRANSITIONS,
    WatchEvent,
    WatchEventKind,
    WatchState,
)
from buildwatch.models.results import BuildResult, BuildStatus, PipelineStep

__all__ = [
    # config
    "WatchConfig",
    "ProjectConfig",
    # events
    "WatchEvent",
    "WatchEventKind",
    "WatchState",
    "VALID_WATCH_TRANSITIONS",
    # results
    "BuildResult",
    "BuildStatus",
    "PipelineStep",
]
