"""Live window instance — pointer-driven drag and resize.

A ``Window`` is the live counterpart of one ``WindowRecord``.  The
Window Manager creates one per open record and calls ``update()`` with
each new version of it.  The instance owns its on-screen ``Bounds`` and
one small state machine per window::

    IDLE ──start_drag──▶ DRAGGING ──pointer_up──▶ IDLE
    IDLE ──start_resize(dir)──▶ RESIZING(dir) ──pointer_up──▶ IDLE

Neither interaction can start while the window is maximized, and
maximizing mid-interaction abandons it.

During an interaction each pointer move updates the bounds immediately
(what the user sees) and pushes the new geometry into a
``ThrottledCommit``, which writes it to the store at most once per
animation frame with ``persist=False``.  On pointer release any pending
frame is flushed synchronously and one final commit is made with
``persist=True``, so the last geometry reaches storage even if the
final animation frame never runs (a backgrounded tab, for example).
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import StrEnum
from typing import TYPE_CHECKING

from nexus_shell.windows.frames import FrameScheduler, ManualFrameScheduler, ThrottledCommit

if TYPE_CHECKING:
    from nexus_shell.state.records import WindowRecord
    from nexus_shell.windows.manager import WindowManager

DEFAULT_WIDTH = 600
DEFAULT_HEIGHT = 400
MIN_WIDTH = 300
MIN_HEIGHT = 200
TASKBAR_HEIGHT = 50
_CENTER_MARGIN = 20
_CENTER_LIFT = 50


class InteractionState(StrEnum):
    """What the pointer is currently doing to a window."""

    IDLE = "idle"
    DRAGGING = "dragging"
    RESIZING = "resizing"


class ResizeDirection(StrEnum):
    """The edge or corner a resize handle drags."""

    N = "n"
    S = "s"
    E = "e"
    W = "w"
    NE = "ne"
    NW = "nw"
    SE = "se"
    SW = "sw"

    @property
    def moves_top(self) -> bool:
        """Return True if this handle moves the top edge."""
        return "n" in self.value

    @property
    def moves_bottom(self) -> bool:
        """Return True if this handle moves the bottom edge."""
        return "s" in self.value

    @property
    def moves_left(self) -> bool:
        """Return True if this handle moves the left edge."""
        return "w" in self.value

    @property
    def moves_right(self) -> bool:
        """Return True if this handle moves the right edge."""
        return "e" in self.value


class WindowControl(StrEnum):
    """Titlebar buttons."""

    CLOSE = "close"
    MINIMIZE = "minimize"
    MAXIMIZE = "maximize"


@dataclass(frozen=True)
class Viewport:
    """The desktop area windows live in.

    The bottom ``taskbar_height`` pixels are reserved for the taskbar;
    windows are never dragged or resized into that band.
    """

    width: float = 1280
    height: float = 800
    taskbar_height: float = TASKBAR_HEIGHT

    @property
    def usable_height(self) -> float:
        """Return the height above the taskbar band."""
        return self.height - self.taskbar_height


@dataclass(frozen=True)
class Bounds:
    """A window's on-screen rectangle."""

    x: float
    y: float
    width: float
    height: float


def initial_bounds(record: WindowRecord, viewport: Viewport) -> Bounds:
    """Place a window, centring any axis the record leaves unset."""
    width = record.width or DEFAULT_WIDTH
    height = record.height or DEFAULT_HEIGHT
    x = record.x if record.x is not None else max(_CENTER_MARGIN, (viewport.width - width) / 2)
    y = (
        record.y
        if record.y is not None
        else max(_CENTER_MARGIN, (viewport.height - height) / 2 - _CENTER_LIFT)
    )
    return Bounds(x=x, y=y, width=width, height=height)


class Window:
    """Live instance of one open window."""

    def __init__(
        self,
        record: WindowRecord,
        manager: WindowManager,
        *,
        viewport: Viewport | None = None,
        frames: FrameScheduler | None = None,
        min_width: float = MIN_WIDTH,
        min_height: float = MIN_HEIGHT,
    ) -> None:
        """Create the instance for *record*.

        Args:
            record: The store's record for this window.
            manager: Where geometry and lifecycle changes are committed.
            viewport: The desktop area (default 1280x800).
            frames: The animation-frame clock for throttled commits.
            min_width: Resizing never shrinks the window below this.
            min_height: Resizing never shrinks the window below this.

        """
        self._record = record
        self._manager = manager
        self._viewport = viewport or Viewport()
        self._min_width = min_width
        self._min_height = min_height
        self._bounds = initial_bounds(record, self._viewport)
        self._state = InteractionState.IDLE
        self._direction: ResizeDirection | None = None
        self._drag_offset = (0.0, 0.0)
        self._pointer_origin = (0.0, 0.0)
        self._bounds_origin = self._bounds
        self._destroyed = False

        scheduler = frames if frames is not None else ManualFrameScheduler()
        self._position_commit: ThrottledCommit[tuple[float, float]] = ThrottledCommit(
            scheduler, self._commit_position
        )
        self._size_commit: ThrottledCommit[tuple[float, float]] = ThrottledCommit(
            scheduler, self._commit_size
        )

    @property
    def id(self) -> int:
        """Return the window id."""
        return self._record.id

    @property
    def record(self) -> WindowRecord:
        """Return the latest record this instance was given."""
        return self._record

    @property
    def bounds(self) -> Bounds:
        """Return the on-screen rectangle."""
        return self._bounds

    @property
    def state(self) -> InteractionState:
        """Return the current interaction state."""
        return self._state

    @property
    def direction(self) -> ResizeDirection | None:
        """Return the active resize direction, if resizing."""
        return self._direction

    @property
    def destroyed(self) -> bool:
        """Return True once the instance has been torn down."""
        return self._destroyed

    # -- Reconciliation hooks -------------------------------------------------

    def update(self, record: WindowRecord) -> None:
        """Adopt a newer version of the record.

        While idle, stored geometry replaces the on-screen bounds.  While
        an interaction is running the instance's own bounds win: the
        store is only echoing what this instance committed.
        """
        self._record = record
        if record.is_maximized and self._state is not InteractionState.IDLE:
            self._abandon()
        if self._state is InteractionState.IDLE:
            self._bounds = Bounds(
                x=record.x if record.x is not None else self._bounds.x,
                y=record.y if record.y is not None else self._bounds.y,
                width=record.width if record.width is not None else self._bounds.width,
                height=record.height if record.height is not None else self._bounds.height,
            )

    def destroy(self) -> None:
        """Tear the instance down; pending commits are dropped."""
        self._abandon()
        self._destroyed = True

    def _abandon(self) -> None:
        self._position_commit.cancel()
        self._size_commit.cancel()
        self._state = InteractionState.IDLE
        self._direction = None

    # -- Titlebar -------------------------------------------------------------

    def focus(self) -> None:
        """Bring this window to the front."""
        self._manager.focus_window(self.id)

    def handle_control_action(self, action: str) -> None:
        """Run a titlebar button action (close, minimize, maximize).

        Raises:
            ValueError: If *action* is not a known control.

        """
        match WindowControl(action):
            case WindowControl.CLOSE:
                self._manager.close_window(self.id)
            case WindowControl.MINIMIZE:
                self._manager.minimize_window(self.id)
            case WindowControl.MAXIMIZE:
                self._manager.toggle_maximize(self.id)

    # -- Pointer interaction --------------------------------------------------

    def _can_start(self) -> bool:
        return (
            not self._destroyed
            and not self._record.is_maximized
            and self._state is InteractionState.IDLE
        )

    def start_drag(self, pointer_x: float, pointer_y: float) -> bool:
        """Pointer pressed on the titlebar: begin dragging.

        Returns:
            False if the window is maximized, destroyed, or busy.

        """
        if not self._can_start():
            return False
        self._drag_offset = (pointer_x - self._bounds.x, pointer_y - self._bounds.y)
        self._state = InteractionState.DRAGGING
        return True

    def start_resize(self, direction: ResizeDirection | str, pointer_x: float, pointer_y: float) -> bool:
        """Pointer pressed on a resize handle: begin resizing.

        Returns:
            False if the window is maximized, destroyed, or busy.

        """
        if not self._can_start():
            return False
        self._direction = ResizeDirection(direction)
        self._pointer_origin = (pointer_x, pointer_y)
        self._bounds_origin = self._bounds
        self._state = InteractionState.RESIZING
        return True

    def pointer_move(self, pointer_x: float, pointer_y: float) -> None:
        """Pointer moved: update the bounds and schedule a commit."""
        match self._state:
            case InteractionState.DRAGGING:
                self._bounds = self._dragged(pointer_x, pointer_y)
                self._position_commit.push((self._bounds.x, self._bounds.y))
            case InteractionState.RESIZING:
                self._bounds = self._resized(
                    pointer_x - self._pointer_origin[0],
                    pointer_y - self._pointer_origin[1],
                )
                self._position_commit.push((self._bounds.x, self._bounds.y))
                self._size_commit.push((self._bounds.width, self._bounds.height))
            case InteractionState.IDLE:
                pass

    def pointer_up(self) -> bool:
        """Pointer released: flush pending commits and persist the result.

        Returns:
            False if no interaction was running.

        """
        state, direction = self._state, self._direction
        if state is InteractionState.IDLE:
            return False
        self._position_commit.flush()
        self._size_commit.flush()
        self._state = InteractionState.IDLE
        self._direction = None

        b = self._bounds
        if state is InteractionState.DRAGGING:
            self._manager.update_window_position(self.id, b.x, b.y, persist=True)
        else:
            if direction is not None and (direction.moves_left or direction.moves_top):
                self._manager.update_window_position(self.id, b.x, b.y)
            self._manager.update_window_size(self.id, b.width, b.height, persist=True)
        return True

    def _commit_position(self, position: tuple[float, float]) -> None:
        self._manager.update_window_position(self.id, *position)

    def _commit_size(self, size: tuple[float, float]) -> None:
        self._manager.update_window_size(self.id, *size)

    # -- Geometry -------------------------------------------------------------

    def _dragged(self, pointer_x: float, pointer_y: float) -> Bounds:
        """Follow the pointer, keeping the window inside the viewport."""
        max_x = self._viewport.width - self._bounds.width
        max_y = self._viewport.usable_height - self._bounds.height
        x = max(0, min(pointer_x - self._drag_offset[0], max_x))
        y = max(0, min(pointer_y - self._drag_offset[1], max_y))
        return replace(self._bounds, x=x, y=y)

    def _resized(self, dx: float, dy: float) -> Bounds:
        """Apply a pointer delta to the bounds captured at resize start."""
        start = self._bounds_origin
        direction = self._direction
        x, y, width, height = start.x, start.y, start.width, start.height
        if direction is None:
            return start

        right = start.x + start.width
        bottom = start.y + start.height
        if direction.moves_right:
            width = max(self._min_width, min(start.width + dx, self._viewport.width - start.x))
        if direction.moves_left:
            x = max(0, min(start.x + dx, right - self._min_width))
            width = right - x
        if direction.moves_bottom:
            height = max(
                self._min_height,
                min(start.height + dy, self._viewport.usable_height - start.y),
            )
        if direction.moves_top:
            y = max(0, min(start.y + dy, bottom - self._min_height))
            height = bottom - y
        return Bounds(x=x, y=y, width=width, height=height)
