"""Animation-frame scheduling and the throttled commit.

Pointer events arrive far faster than the store should be written.  A
window therefore coalesces its geometry updates to at most one store
write per animation frame:

- ``FrameScheduler`` is the host's frame clock (``requestAnimationFrame``
  in a browser).  ``ManualFrameScheduler`` is the deterministic
  implementation used headless and in tests: callbacks run only when
  ``run_frame()`` is called.
- ``ThrottledCommit`` is a pending-value slot plus at most one in-flight
  frame request.  New values overwrite the slot; the frame callback
  commits whatever is in the slot and clears it.  ``flush()`` cancels
  the frame request and commits synchronously, for pointer release.
"""

from __future__ import annotations

from itertools import count
from typing import TYPE_CHECKING, Generic, Protocol, TypeVar

if TYPE_CHECKING:
    from collections.abc import Callable


class FrameScheduler(Protocol):
    """Something that runs callbacks on the next animation frame."""

    def request_frame(self, callback: Callable[[], None]) -> int:
        """Schedule *callback* for the next frame and return a handle."""
        ...

    def cancel_frame(self, handle: int) -> None:
        """Cancel a pending request; unknown handles are ignored."""
        ...


class ManualFrameScheduler:
    """A frame clock that advances only when told to.

    Callbacks requested while a frame is running are deferred to the
    following frame, as a browser would.
    """

    def __init__(self) -> None:
        """Create a scheduler with no pending frames."""
        self._pending: dict[int, Callable[[], None]] = {}
        self._handles = count(start=1)
        self._frames_run = 0

    @property
    def pending(self) -> int:
        """Return the number of callbacks waiting for the next frame."""
        return len(self._pending)

    @property
    def frames_run(self) -> int:
        """Return how many frames have been run."""
        return self._frames_run

    def request_frame(self, callback: Callable[[], None]) -> int:
        """Queue *callback* for the next ``run_frame()``."""
        handle = next(self._handles)
        self._pending[handle] = callback
        return handle

    def cancel_frame(self, handle: int) -> None:
        """Drop a queued callback."""
        self._pending.pop(handle, None)

    def run_frame(self) -> int:
        """Run every callback queued before this call.

        Returns:
            The number of callbacks run.

        """
        callbacks = list(self._pending.values())
        self._pending.clear()
        self._frames_run += 1
        for callback in callbacks:
            callback()
        return len(callbacks)


T = TypeVar("T")


class ThrottledCommit(Generic[T]):
    """Coalesce a stream of values into at most one commit per frame."""

    def __init__(self, frames: FrameScheduler, commit: Callable[[T], None]) -> None:
        """Bind the throttle to a frame clock and a commit function."""
        self._frames = frames
        self._commit = commit
        self._pending: T | None = None
        self._handle: int | None = None

    @property
    def scheduled(self) -> bool:
        """Return True while a frame request is in flight."""
        return self._handle is not None

    def push(self, value: T) -> None:
        """Replace the pending value and make sure a frame is requested."""
        self._pending = value
        if self._handle is None:
            self._handle = self._frames.request_frame(self._on_frame)

    def _on_frame(self) -> None:
        self._handle = None
        self._drain()

    def _drain(self) -> None:
        value, self._pending = self._pending, None
        if value is not None:
            self._commit(value)

    def flush(self) -> None:
        """Commit the pending value now and cancel the frame request."""
        if self._handle is not None:
            self._frames.cancel_frame(self._handle)
            self._handle = None
        self._drain()

    def cancel(self) -> None:
        """Drop the pending value without committing it."""
        if self._handle is not None:
            self._frames.cancel_frame(self._handle)
            self._handle = None
        self._pending = None
