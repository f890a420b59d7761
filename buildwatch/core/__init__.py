"""Core watch machinery: path validation, ignore rules, pipeline, session."""

from buildwatch.core.ignore import IgnoreRules
from buildwatch.core.paths import (
    InvalidOutputName,
    OutputDirInvalid,
    PathValidationError,
    SourceNotFound,
)
from buildwatch.core.pipeline import PipelineError, RebuildPipeline, SingleFlightRunner
from buildwatch.core.session import (
    ServeError,
    WatcherError,
    WatchError,
    WatchSession,
    prepare_watch,
    start_watching,
)

__all__ = [
    "IgnoreRules",
    "PathValidationError",
    "InvalidOutputName",
    "SourceNotFound",
    "OutputDirInvalid",
    "PipelineError",
    "RebuildPipeline",
    "SingleFlightRunner",
    "WatchError",
    "ServeError",
    "WatcherError",
    "WatchSession",
    "prepare_watch",
    "start_watching",
]
