"""Tests for all Pydantic data models: validation, immutability, defaults."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from pydantic import ValidationError

from buildwatch.models import (
    VALID_WATCH_TRANSITIONS,
    BuildResult,
    BuildStatus,
    PipelineStep,
    ProjectConfig,
    WatchConfig,
    WatchEvent,
    WatchEventKind,
    WatchState,
)


class TestWatchConfig:
    def test_defaults(self):
        config = WatchConfig(src="src/index.js", dist="dist")
        assert config.src == Path("src/index.js")
        assert config.outfile_name is None
        assert config.run_manifest_check is False
        assert config.run_eval is False
        assert config.run_serve is False
        assert config.build_options == {}

    def test_frozen(self):
        config = WatchConfig(src="a.js", dist="dist")
        with pytest.raises(ValidationError):
            config.run_serve = True

    def test_requires_src_and_dist(self):
        with pytest.raises(ValidationError):
            WatchConfig(src="a.js")


class TestProjectConfig:
    def test_empty(self):
        project = ProjectConfig()
        assert project.bundler_customizer is None
        assert project.options == {}

    def test_rejects_non_string_reference(self):
        with pytest.raises(ValidationError):
            ProjectConfig(bundler=3)


class TestWatchEvents:
    def test_constructors(self):
        assert WatchEvent.ready().kind == WatchEventKind.READY
        assert WatchEvent.added("a.js") == WatchEvent(kind="added", path="a.js")
        assert WatchEvent.changed("a.js").kind == WatchEventKind.CHANGED
        assert WatchEvent.removed("a.js").path == "a.js"

    def test_failure_stores_message(self):
        event = WatchEvent.failure(OSError("EMFILE"))
        assert event.kind == WatchEventKind.ERROR
        assert event.error == "EMFILE"
        assert event.path is None

    def test_frozen(self):
        with pytest.raises(ValidationError):
            WatchEvent.ready().path = "x"


class TestWatchStates:
    def test_stopped_is_terminal(self):
        assert VALID_WATCH_TRANSITIONS[WatchState.STOPPED] == set()

    def test_stopped_reachable_from_every_state(self):
        for state in WatchState:
            if state != WatchState.STOPPED:
                assert WatchState.STOPPED in VALID_WATCH_TRANSITIONS[state]

    def test_ready_pending_precedes_active(self):
        assert WatchState.ACTIVE not in VALID_WATCH_TRANSITIONS[WatchState.INITIALIZING]
        assert WatchState.ACTIVE in VALID_WATCH_TRANSITIONS[WatchState.READY_PENDING]

    def test_every_state_has_transitions(self):
        assert set(VALID_WATCH_TRANSITIONS) == set(WatchState)


class TestBuildResult:
    def test_succeeded(self):
        result = BuildResult(
            status=BuildStatus.SUCCEEDED,
            completed_steps=[PipelineStep.BUNDLE],
        )
        assert result.succeeded
        assert result.trigger_path is None
        assert result.failed_step is None

    def test_failed(self):
        result = BuildResult(
            trigger_path="src/a.js",
            status=BuildStatus.FAILED,
            failed_step=PipelineStep.MANIFEST,
            error="missing: version",
        )
        assert not result.succeeded

    def test_duration(self):
        start = datetime(2026, 1, 1, tzinfo=timezone.utc)
        result = BuildResult(
            status=BuildStatus.SUCCEEDED,
            started_at=start,
            finished_at=start + timedelta(milliseconds=1500),
        )
        assert result.duration_seconds == pytest.approx(1.5)

    def test_step_order(self):
        assert [s.value for s in PipelineStep] == ["bundle", "manifest", "eval"]
