"""Rebuild pipeline and single-flight runner.

A pipeline run executes its steps in a fixed order:

    bundle -> check_manifest (optional) -> evaluate (optional)

A failing step short-circuits the rest of the run.  The failure is logged
with the triggering path and the failing step, and returned as a failed
``BuildResult``; it never propagates to the caller.  A bundle written
before a later step failed stays on disk.

``SingleFlightRunner`` wraps a pipeline so that at most one run is in
flight.  Triggers that arrive during a run collapse into one pending
re-run.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from buildwatch.collaborators import BuildCollaborators, BundlerCustomizer
from buildwatch.models.config import WatchConfig
from buildwatch.models.results import BuildResult, BuildStatus, PipelineStep

logger = logging.getLogger(__name__)

CustomizerLoader = Callable[[], BundlerCustomizer | None]

# What triggered a run: nothing (initial build), one path, or the paths merged
# into a coalesced re-run.
Trigger = str | Sequence[str] | None


class PipelineError(RuntimeError):
    """A step of a pipeline run failed.

    Attributes
    ----------
    step:
        The step that failed.
    paths:
        Every path whose event triggered the run, in arrival order.  Empty
        for the initial build.
    path:
        The latest of ``paths``, or None for the initial build.
    cause:
        The underlying exception.
    """

    def __init__(self, step: PipelineStep, path: Trigger, cause: BaseException) -> None:
        self.step = step
        self.paths = trigger_paths(path)
        self.path = self.paths[-1] if self.paths else None
        self.cause = cause
        super().__init__(f"{describe_trigger(self.paths)} [{step.value}] {cause}")


def trigger_paths(trigger: Trigger) -> list[str]:
    """Normalize *trigger* to an ordered list of distinct paths."""
    if trigger is None:
        return []
    if isinstance(trigger, str):
        return [trigger]
    return list(dict.fromkeys(trigger))


def describe_trigger(trigger: Trigger) -> str:
    """Human-readable failure context naming every path behind a run."""
    paths = trigger_paths(trigger)
    if not paths:
        return "Error during initial build."
    quoted = ", ".join(f'"{path}"' for path in paths)
    return f"Error while processing {quoted}."


class RebuildPipeline:
    """One configured bundle -> manifest -> eval pipeline.

    Parameters
    ----------
    config:
        The invocation's ``WatchConfig``.
    outfile:
        Where the bundler writes its artifact.
    collaborators:
        Bundler, manifest checker and evaluator to call.
    customizer_loader:
        Called at the start of every run to fetch the current bundler
        customizer.  A failure here fails the bundle step.
    """

    def __init__(
        self,
        config: WatchConfig,
        outfile: Path,
        collaborators: BuildCollaborators,
        customizer_loader: CustomizerLoader | None = None,
    ) -> None:
        self.config = config
        self.outfile = outfile
        self.collaborators = collaborators
        self._customizer_loader = customizer_loader or (lambda: None)
        self._runs = 0

    @property
    def run_count(self) -> int:
        """Number of runs started so far."""
        return self._runs

    @property
    def steps(self) -> list[PipelineStep]:
        """Steps this pipeline executes, in order."""
        steps = [PipelineStep.BUNDLE]
        if self.config.run_manifest_check:
            steps.append(PipelineStep.MANIFEST)
        if self.config.run_eval:
            steps.append(PipelineStep.EVAL)
        return steps

    async def run(self, path: Trigger = None) -> BuildResult:
        """Execute one pipeline run.  Never raises for step failures.

        *path* is None for the initial build, a single path, or the paths
        merged into a coalesced re-run; failures name all of them.
        """
        self._runs += 1
        paths = trigger_paths(path)
        started_at = datetime.now(timezone.utc)
        completed: list[PipelineStep] = []

        try:
            for step in self.steps:
                await self._run_step(step, paths)
                completed.append(step)
        except PipelineError as exc:
            logger.error(
                "%s %s step failed: %s",
                describe_trigger(paths),
                exc.step.value.capitalize(),
                exc.cause,
                exc_info=logger.isEnabledFor(logging.DEBUG),
            )
            return BuildResult(
                trigger_path=exc.path,
                trigger_paths=paths,
                status=BuildStatus.FAILED,
                completed_steps=completed,
                failed_step=exc.step,
                error=str(exc.cause),
                started_at=started_at,
            )

        result = BuildResult(
            trigger_path=paths[-1] if paths else None,
            trigger_paths=paths,
            status=BuildStatus.SUCCEEDED,
            completed_steps=completed,
            started_at=started_at,
        )
        logger.info("Build succeeded in %.2fs: %s", result.duration_seconds, self.outfile)
        return result

    async def _run_step(self, step: PipelineStep, paths: list[str]) -> None:
        try:
            if step == PipelineStep.BUNDLE:
                customizer = self._customizer_loader()
                await self.collaborators.bundler.bundle(
                    self.config.src, self.outfile, self.config, customizer
                )
            elif step == PipelineStep.MANIFEST:
                await self.collaborators.manifest_checker.check_manifest(self.config)
            else:
                await self.collaborators.evaluator.evaluate(self.config, self.outfile)
        except Exception as exc:
            raise PipelineError(step, paths, exc) from exc


# ---------------------------------------------------------------------------
# Single-flight scheduling
# ---------------------------------------------------------------------------


class SingleFlightRunner:
    """Runs at most one pipeline run at a time.

    ``request(path)`` returns a future resolved with the ``BuildResult`` of
    the run that serves the request.  While a run is in flight, every new
    request joins a single pending re-run.  That re-run receives every
    distinct path merged into it, in arrival order, so its failures name
    each of them.

    Usage
    -----
    >>> runner = SingleFlightRunner(pipeline.run)
    >>> result = await runner.request("src/a.js")
    """

    def __init__(
        self,
        run: Callable[[list[str]], Awaitable[BuildResult]],
        on_result: Callable[[BuildResult], Any] | None = None,
    ) -> None:
        self._run = run
        self._on_result = on_result
        self._task: asyncio.Task[None] | None = None
        self._current: asyncio.Future[BuildResult] | None = None
        self._pending: asyncio.Future[BuildResult] | None = None
        self._pending_paths: list[str] = []

    @property
    def in_flight(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def has_pending(self) -> bool:
        return self._pending is not None

    @property
    def pending_paths(self) -> list[str]:
        """Paths merged into the pending re-run so far."""
        return list(self._pending_paths)

    def request(self, path: str | None = None) -> asyncio.Future[BuildResult]:
        """Schedule a run for *path*, coalescing with any pending re-run."""
        loop = asyncio.get_running_loop()

        if not self.in_flight:
            self._current = loop.create_future()
            self._task = loop.create_task(self._drain(trigger_paths(path), self._current))
            return self._current

        if self._pending is None:
            self._pending = loop.create_future()
        else:
            logger.debug("Coalescing rebuild request for %s", path)
        if path is not None and path not in self._pending_paths:
            self._pending_paths.append(path)
        return self._pending

    async def wait_idle(self) -> None:
        """Wait until the in-flight run and any pending re-run have finished."""
        while self._task is not None and not self._task.done():
            await asyncio.shield(self._task)

    async def _drain(self, paths: list[str], future: asyncio.Future[BuildResult]) -> None:
        while True:
            try:
                result = await self._run(paths)
            except Exception as exc:
                logger.exception("Pipeline run for %s crashed", paths or "initial build")
                if not future.done():
                    future.set_exception(exc)
                    # Already logged above; callers may still await it.
                    future.exception()
            else:
                if self._on_result is not None:
                    self._on_result(result)
                if not future.done():
                    future.set_result(result)

            if self._pending is None:
                return
            future, paths = self._pending, self._pending_paths
            self._pending, self._pending_paths = None, []
