"""Watch session: the long-lived handle for one watch-and-rebuild loop.

Lifecycle::

    INITIALIZING -> READY_PENDING -> ACTIVE -> STOPPED

``start()`` validates the invocation, derives the watch root and output
path, and subscribes to the event source.  Every notification lands on a
single ``asyncio.Queue`` consumed by one dispatch loop, so events are
handled in arrival order on the event loop thread.

Failures after startup (pipeline, dev server, watcher) are logged where
they occur and never end the session.  Only ``stop()`` does.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections import deque
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict

from buildwatch.collaborators import BuildCollaborators, default_collaborators
from buildwatch.config import WatchSettings
from buildwatch.core.event_source import EventSource, WatchdogEventSource
from buildwatch.core.ignore import IgnoreRules
from buildwatch.core.paths import (
    compute_root_dir,
    get_outfile_path,
    normalize_event_path,
    validate_dir_path,
    validate_file_path,
    validate_outfile_name,
)
from buildwatch.core.pipeline import CustomizerLoader, RebuildPipeline, SingleFlightRunner
from buildwatch.core.project_config import load_customizer, load_project_config
from buildwatch.models.config import WatchConfig
from buildwatch.models.events import (
    VALID_WATCH_TRANSITIONS,
    WatchEvent,
    WatchEventKind,
    WatchState,
)
from buildwatch.models.results import BuildResult

logger = logging.getLogger(__name__)


class WatchError(RuntimeError):
    """Base class for failures reported by a running session."""


class ServeError(WatchError):
    """The dev server could not be started after the initial build."""


class WatcherError(WatchError):
    """The filesystem watcher reported a failure."""


class InvalidWatchTransition(WatchError):
    """Raised when a session is driven into a state it cannot reach."""


# ---------------------------------------------------------------------------
# Setup
# ---------------------------------------------------------------------------


class WatchPlan(BaseModel):
    """Values derived once at startup and shared read-only afterwards."""

    model_config = ConfigDict(frozen=True)

    root_dir: str
    outfile_path: Path


def prepare_watch(config: WatchConfig, settings: WatchSettings | None = None) -> WatchPlan:
    """Validate *config* and derive the watch root and output path.

    Raises
    ------
    InvalidOutputName, SourceNotFound, OutputDirInvalid
        If the invocation cannot be watched.
    """
    settings = settings or WatchSettings()
    if config.outfile_name:
        validate_outfile_name(config.outfile_name)
    validate_file_path(config.src)
    validate_dir_path(config.dist, create=True)

    return WatchPlan(
        root_dir=compute_root_dir(config.src),
        outfile_path=get_outfile_path(
            config.dist, config.outfile_name, settings.default_outfile_name
        ),
    )


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------


class WatchSession:
    """One watch-and-rebuild loop.

    Parameters
    ----------
    config:
        The invocation to watch.
    collaborators:
        Bundler, manifest checker, evaluator and dev server.  Built from
        the project config and settings when omitted.
    settings:
        Process settings.  Defaults to ``WatchSettings()``.
    event_source:
        Where events come from.  Defaults to a watchdog observer on the
        watch root.
    project_root:
        Directory holding ``buildwatch.toml`` / ``pyproject.toml``.
    customizer_loader:
        Overrides how the bundler customizer is fetched before each run.
    """

    def __init__(
        self,
        config: WatchConfig,
        collaborators: BuildCollaborators | None = None,
        *,
        settings: WatchSettings | None = None,
        event_source: EventSource | None = None,
        project_root: Path | str = ".",
        customizer_loader: CustomizerLoader | None = None,
    ) -> None:
        self.config = config
        self.settings = settings or WatchSettings()
        self.project_root = Path(project_root)
        self._collaborators = collaborators
        self._event_source = event_source
        self._customizer_loader = customizer_loader

        self._state = WatchState.INITIALIZING
        self.plan: WatchPlan | None = None
        self.ignore_rules: IgnoreRules | None = None
        self.pipeline: RebuildPipeline | None = None
        self._runner: SingleFlightRunner | None = None

        self.history: deque[BuildResult] = deque(maxlen=self.settings.max_history)
        self.errors: deque[WatchError] = deque(maxlen=self.settings.max_history)
        self.server_started = False

        self._loop: asyncio.AbstractEventLoop | None = None
        self._queue: asyncio.Queue[WatchEvent] = asyncio.Queue()
        self._dispatcher: asyncio.Task[None] | None = None
        self._tasks: set[asyncio.Task[Any]] = set()
        self._stopped = asyncio.Event()

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> WatchState:
        return self._state

    @property
    def collaborators(self) -> BuildCollaborators | None:
        return self._collaborators

    @property
    def root_dir(self) -> str | None:
        return self.plan.root_dir if self.plan else None

    @property
    def outfile_path(self) -> Path | None:
        return self.plan.outfile_path if self.plan else None

    def _transition(self, to_state: WatchState) -> None:
        if to_state not in VALID_WATCH_TRANSITIONS[self._state]:
            raise InvalidWatchTransition(
                f"Cannot move watch session from {self._state.value} to {to_state.value}"
            )
        logger.debug("Watch session %s -> %s", self._state.value, to_state.value)
        self._state = to_state

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> WatchSession:
        """Validate inputs, subscribe to the event source and start dispatching.

        Raises
        ------
        PathValidationError
            If the source, output directory or output name is invalid.
        ProjectConfigError
            If a project-configured collaborator cannot be loaded.
        WatcherError
            If the event source cannot subscribe to the watch root.
        """
        if self._state != WatchState.INITIALIZING:
            raise InvalidWatchTransition(f"Watch session already {self._state.value}")

        self._loop = asyncio.get_running_loop()
        self.plan = prepare_watch(self.config, self.settings)
        self.ignore_rules = IgnoreRules.default(self.plan.root_dir, self.config.dist)

        if self._collaborators is None:
            project = load_project_config(self.project_root, self.settings.project_config_file)
            self._collaborators = default_collaborators(self.settings, project)
        if self._customizer_loader is None:
            self._customizer_loader = lambda: load_customizer(
                self.project_root, self.settings.project_config_file
            )
        if self._event_source is None:
            self._event_source = WatchdogEventSource(
                self.plan.root_dir, use_polling=self.settings.use_polling
            )

        self.pipeline = RebuildPipeline(
            self.config,
            self.plan.outfile_path,
            self._collaborators,
            customizer_loader=self._customizer_loader,
        )
        self._runner = SingleFlightRunner(self.pipeline.run, on_result=self.history.append)

        self._transition(WatchState.READY_PENDING)
        self._dispatcher = asyncio.create_task(self._dispatch_loop())

        try:
            self._event_source.start(self._emit_threadsafe)
        except Exception as exc:
            await self._shutdown()
            raise WatcherError(f"Cannot watch '{self.plan.root_dir}': {exc}") from exc

        logger.info("Watching '%s' for changes...", self.plan.root_dir)
        return self

    async def stop(self) -> None:
        """Stop watching, let in-flight builds finish, and close the dev server."""
        if self._state == WatchState.STOPPED:
            return
        await self._shutdown()
        logger.info("Stopped watching '%s'", self.root_dir)

    async def _shutdown(self) -> None:
        self._transition(WatchState.STOPPED)

        if self._event_source is not None:
            await asyncio.to_thread(self._event_source.stop)

        if self._dispatcher is not None:
            self._dispatcher.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._dispatcher
            self._dispatcher = None

        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        if self._runner is not None:
            await self._runner.wait_idle()

        if self.server_started and self._collaborators is not None:
            try:
                await self._collaborators.server.close()
            except Exception as exc:  # noqa: BLE001
                logger.error("Error stopping dev server: %s", exc)

        self._stopped.set()

    async def wait_stopped(self) -> None:
        """Block until ``stop()`` has completed."""
        await self._stopped.wait()

    async def drain(self) -> None:
        """Wait until every queued event and every build it caused has finished.

        Returns at once on a stopped session; nothing consumes its queue.
        """
        if self._state == WatchState.STOPPED:
            return
        # Let events handed over by call_soon_threadsafe reach the queue.
        await asyncio.sleep(0)
        await self._queue.join()
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
        if self._runner is not None:
            await self._runner.wait_idle()

    async def __aenter__(self) -> WatchSession:
        return await self.start()

    async def __aexit__(self, *args: object) -> None:
        await self.stop()

    # ------------------------------------------------------------------
    # Event intake
    # ------------------------------------------------------------------

    def post(self, event: WatchEvent) -> None:
        """Enqueue *event* from the event loop thread."""
        self._queue.put_nowait(event)

    def _emit_threadsafe(self, event: WatchEvent) -> None:
        loop = self._loop
        if loop is None or loop.is_closed():
            return
        # The loop may close between the check and the call during shutdown.
        with contextlib.suppress(RuntimeError):
            loop.call_soon_threadsafe(self._queue.put_nowait, event)

    async def _dispatch_loop(self) -> None:
        while True:
            event = await self._queue.get()
            try:
                self.dispatch(event)
            except Exception:
                logger.exception("Error dispatching %s event", event.kind.value)
            finally:
                self._queue.task_done()

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def dispatch(self, event: WatchEvent) -> None:
        """Handle one event according to the session's state."""
        if event.kind == WatchEventKind.ERROR:
            self._on_watcher_error(event.error or "unknown error")
            return

        if self._state == WatchState.STOPPED:
            return

        if event.kind == WatchEventKind.READY:
            if self._state != WatchState.READY_PENDING:
                logger.debug("Ignoring duplicate ready notification")
                return
            self._transition(WatchState.ACTIVE)
            # Requested here so the initial run is scheduled before any change.
            self._spawn(self._after_initial_build(self._request_build(None)))
            return

        if self._state != WatchState.ACTIVE:
            logger.debug("Ignoring %s %s before ready", event.kind.value, event.path)
            return

        if event.path is None:
            return
        path = normalize_event_path(event.path)
        reason = self.ignore_rules.match(path) if self.ignore_rules else None
        if reason is not None:
            logger.debug("Ignoring %s (%s)", path, reason)
            return

        if event.kind == WatchEventKind.ADDED:
            logger.info("File added: %s", path)
            self._request_build(path)
        elif event.kind == WatchEventKind.CHANGED:
            logger.info("File changed: %s", path)
            self._request_build(path)
        elif event.kind == WatchEventKind.REMOVED:
            logger.info("File removed: %s", path)

    def _request_build(self, path: str | None) -> asyncio.Future[BuildResult]:
        assert self._runner is not None
        return self._runner.request(path)

    def _spawn(self, coro: Any) -> asyncio.Task[Any]:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _after_initial_build(self, build: asyncio.Future[BuildResult]) -> None:
        # A crashed run is logged by the runner; the server still starts.
        with contextlib.suppress(Exception):
            await build

        if not self.config.run_serve or self.server_started:
            return
        if self._state == WatchState.STOPPED or self._collaborators is None:
            return

        self.server_started = True
        try:
            await self._collaborators.server.serve(self.config)
        except Exception as exc:
            self.server_started = False
            error = ServeError(f"Error starting dev server: {exc}")
            self.errors.append(error)
            logger.error("%s", error)

    def _on_watcher_error(self, message: str) -> None:
        error = WatcherError(message)
        self.errors.append(error)
        logger.error("Watcher error: %s", message)


async def start_watching(
    config: WatchConfig,
    collaborators: BuildCollaborators | None = None,
    **kwargs: Any,
) -> WatchSession:
    """Create and start a ``WatchSession``; see its constructor for *kwargs*."""
    session = WatchSession(config, collaborators, **kwargs)
    return await session.start()
