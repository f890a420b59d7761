"""Filesystem event sources.

An event source turns filesystem notifications into ``WatchEvent``s and
hands them to an ``emit`` callable.  The production source wraps a
watchdog ``Observer``; its callbacks run on the observer thread, so the
session supplies an ``emit`` that is safe to call from any thread.

watchdog performs no initial scan of existing files, so the source reports
READY as soon as ``observer.start()`` returns.  Each emitter sets up its
watch in ``on_thread_start`` on the calling thread (the inotify watches, or
the polling snapshot) before its own thread runs, so a change made after
READY is already queued for delivery.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable
from typing import Protocol, runtime_checkable

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer
from watchdog.observers.api import BaseObserver
from watchdog.observers.polling import PollingObserver

from buildwatch.models.events import WatchEvent

logger = logging.getLogger(__name__)

Emit = Callable[[WatchEvent], None]


@runtime_checkable
class EventSource(Protocol):
    """Anything that can feed ``WatchEvent``s into a session."""

    def start(self, emit: Emit) -> None: ...

    def stop(self) -> None: ...


class _ForwardingHandler(FileSystemEventHandler):
    """Translates watchdog file events into ``WatchEvent``s.

    Directory events are dropped.  A move is reported as a removal of the
    old path followed by an addition of the new one.
    """

    def __init__(self, emit: Emit) -> None:
        self._emit = emit

    def dispatch(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        try:
            super().dispatch(event)
        except Exception as exc:  # noqa: BLE001
            self._emit(WatchEvent.failure(exc))

    def on_created(self, event: FileSystemEvent) -> None:
        self._emit(WatchEvent.added(os.fsdecode(event.src_path)))

    def on_modified(self, event: FileSystemEvent) -> None:
        self._emit(WatchEvent.changed(os.fsdecode(event.src_path)))

    def on_deleted(self, event: FileSystemEvent) -> None:
        self._emit(WatchEvent.removed(os.fsdecode(event.src_path)))

    def on_moved(self, event: FileSystemEvent) -> None:
        self._emit(WatchEvent.removed(os.fsdecode(event.src_path)))
        self._emit(WatchEvent.added(os.fsdecode(event.dest_path)))


class WatchdogEventSource:
    """Recursive watchdog subscription rooted at *root*.

    Parameters
    ----------
    root:
        Directory tree to watch.
    use_polling:
        Use watchdog's ``PollingObserver`` instead of the native backend
        (network filesystems, containers with bind mounts).
    """

    def __init__(self, root: str, use_polling: bool = False) -> None:
        self.root = root
        self.use_polling = use_polling
        self._observer: BaseObserver | None = None

    def _create_observer(self) -> BaseObserver:
        return PollingObserver() if self.use_polling else Observer()

    @property
    def is_running(self) -> bool:
        return self._observer is not None

    def start(self, emit: Emit) -> None:
        """Schedule the recursive watch, start the observer and emit READY.

        Raises ``OSError`` if the backend cannot watch *root*.
        """
        if self._observer is not None:
            raise RuntimeError(f"Already watching {self.root}")

        observer = self._create_observer()
        observer.schedule(_ForwardingHandler(emit), self.root, recursive=True)
        observer.start()
        self._observer = observer
        logger.debug("Observer %s started on %s", type(observer).__name__, self.root)
        emit(WatchEvent.ready())

    def stop(self) -> None:
        """Stop the observer and wait for its thread to exit."""
        if self._observer is None:
            return
        observer, self._observer = self._observer, None
        observer.stop()
        observer.join(timeout=5)
        logger.debug("Observer on %s stopped", self.root)
