"""Watch event and session state models.

The filesystem watcher's callbacks are folded into one tagged event type so
that a single dispatch loop can consume them in arrival order.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


class WatchEventKind(str, Enum):
    """Kinds of notification the event source can emit."""

    READY = "ready"
    ADDED = "added"
    CHANGED = "changed"
    REMOVED = "removed"
    ERROR = "error"


class WatchState(str, Enum):
    """Lifecycle of a watch session.

    INITIALIZING -> READY_PENDING -> ACTIVE -> STOPPED
    """

    INITIALIZING = "initializing"
    READY_PENDING = "ready_pending"
    ACTIVE = "active"
    STOPPED = "stopped"


class WatchEvent(BaseModel):
    """A single notification from the event source.

    ``path`` is set for ADDED, CHANGED and REMOVED; ``error`` for ERROR.
    """

    model_config = ConfigDict(frozen=True)

    kind: WatchEventKind
    path: str | None = None
    error: str | None = None

    @classmethod
    def ready(cls) -> WatchEvent:
        return cls(kind=WatchEventKind.READY)

    @classmethod
    def added(cls, path: str) -> WatchEvent:
        return cls(kind=WatchEventKind.ADDED, path=path)

    @classmethod
    def changed(cls, path: str) -> WatchEvent:
        return cls(kind=WatchEventKind.CHANGED, path=path)

    @classmethod
    def removed(cls, path: str) -> WatchEvent:
        return cls(kind=WatchEventKind.REMOVED, path=path)

    @classmethod
    def failure(cls, error: BaseException | str) -> WatchEvent:
        return cls(kind=WatchEventKind.ERROR, error=str(error))


# Valid session transitions, enforced by WatchSession.
# STOPPED is terminal and reachable from every other state.
VALID_WATCH_TRANSITIONS: dict[WatchState, set[WatchState]] = {
    WatchState.INITIALIZING: {WatchState.READY_PENDING, WatchState.STOPPED},
    WatchState.READY_PENDING: {WatchState.ACTIVE, WatchState.STOPPED},
    WatchState.ACTIVE: {WatchState.STOPPED},
    WatchState.STOPPED: set(),  # terminal
}
