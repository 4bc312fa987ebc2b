"""Time-axis drag controller: move and resize cues on a linear timeline.

WHY: Editors retime cues by dragging them along a timeline — the body
to shift a cue, the left/right edge handles to change its start or end.
The pixel-to-time ratio depends on the container width, which can change
mid-drag, and the result must always stay inside the media and keep
start < end.

HOW: begin() captures the cue's start/end and the pointer x (the anchor)
and subscribes to the global PointerBus. Every on_move() re-measures the
container, converts the total pixel delta since the anchor into seconds,
applies it to the captured values, clamps with clamp_timing(), and writes
the full cue to the store. end() unsubscribes and releases the drag lock.

RULES:
- States: idle, or dragging(mode, cue_id, anchor) — see TimelineDragState
- Deltas apply to values captured at begin(), never re-read mid-drag
- move shifts both edges; resize-start/resize-end shift one edge only
- Bounds are [0, total_duration]; a clipped move shifts both edges so
  the duration is preserved
- A resize never moves the fixed edge; the dragged edge stops
  MIN_CUE_SEPARATION_S short of it, unless that would leave the media,
  in which case the fixed edge gives way
- Every pointer frame updates the store (live editing)
- Listeners are removed on end(), on close(), and on a repeated end()
"""

from __future__ import annotations

import dataclasses
import enum
import logging
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from subtitle_editor.config import MIN_CUE_SEPARATION_S
from subtitle_editor.core.ir import Cue
from subtitle_editor.core.store import CueStore
from subtitle_editor.editing.pointer import (
    DEFAULT_DRAG_LOCK,
    DragLock,
    PointerBus,
    PointerEvent,
)

logger = logging.getLogger(__name__)

EDGE_HANDLE_PX = 8.0
"""Width of the grab zone at each end of a cue block."""


class TimelineDragMode(str, enum.Enum):
    MOVE = "move"
    RESIZE_START = "resize-start"
    RESIZE_END = "resize-end"


@dataclass(frozen=True)
class TimelineDragState:
    """Everything captured when a timeline drag begins."""

    mode: TimelineDragMode
    cue_id: int
    anchor_x: float
    initial_start: float
    initial_end: float


def px_to_time(px: float, width_px: float, duration: float) -> float:
    if width_px <= 0:
        return 0.0
    return px / width_px * duration


def time_to_px(time: float, width_px: float, duration: float) -> float:
    if duration <= 0:
        return 0.0
    return time / duration * width_px


def clamp_timing(
    mode: TimelineDragMode,
    start: float,
    end: float,
    duration: float,
    min_separation: float = MIN_CUE_SEPARATION_S,
) -> Tuple[float, float]:
    """Pin tentative cue edges into [0, duration] and restore start < end.

    Args:
        mode: The drag mode that produced the tentative values.
        start: Tentative start in seconds.
        end: Tentative end in seconds.
        duration: Total media duration in seconds.
        min_separation: Smallest allowed cue duration.

    Returns:
        (start, end) after clamping.
    """
    if mode == TimelineDragMode.MOVE:
        if start < 0:
            end -= start
            start = 0.0
        if end > duration:
            start -= end - duration
            end = duration
        # A cue longer than the whole timeline cannot keep its duration
        start = max(0.0, start)
    elif mode == TimelineDragMode.RESIZE_START:
        start = max(0.0, min(start, duration))
    else:
        end = max(0.0, min(end, duration))

    if end - start < min_separation:
        if mode == TimelineDragMode.RESIZE_START:
            start = end - min_separation
            if start < 0:
                start, end = 0.0, min(min_separation, duration)
        else:
            end = start + min_separation
            if end > duration:
                start, end = max(0.0, duration - min_separation), duration
    return start, end


def apply_timing_edit(
    cue: Cue,
    start: Optional[float],
    end: Optional[float],
    duration: float,
) -> Tuple[float, float]:
    """Normalise typed start/end values the way an edge drag would.

    Used by form edits (the selected-cue panel and the PATCH endpoint),
    where both edges can arrive at once and in any order.

    RULES:
    - None keeps the cue's current value for that edge
    - Only start given: treated as a start-edge drag
    - Only end given, or both: end-edge drag with start pinned into
      [0, duration - MIN_CUE_SEPARATION_S]
    - Result always satisfies 0 <= start < end <= duration
    """
    new_start = cue.start if start is None else start
    new_end = cue.end if end is None else end
    if start is not None and end is None:
        mode = TimelineDragMode.RESIZE_START
    else:
        mode = TimelineDragMode.RESIZE_END
        new_start = max(0.0, min(new_start, duration - MIN_CUE_SEPARATION_S))
    new_start, new_end = clamp_timing(mode, new_start, new_end, duration)
    return max(0.0, new_start), new_end


class TimelineDragController:
    """Pointer state machine for retiming one cue at a time.

    Usage from a host:
        controller.begin(event, cue_id, TimelineDragMode.MOVE)  # pointer-down
        bus.dispatch_move(event)   # global pointer-move → on_move()
        bus.dispatch_up(event)     # global pointer-up   → end()
    """

    def __init__(
        self,
        store: CueStore,
        bus: PointerBus,
        total_duration: float,
        measure_width: Callable[[], float],
        lock: Optional[DragLock] = None,
    ) -> None:
        self._store = store
        self._bus = bus
        self._duration = float(total_duration)
        self._measure_width = measure_width
        self._lock = lock if lock is not None else DEFAULT_DRAG_LOCK
        self._state: Optional[TimelineDragState] = None
        self._token: Optional[int] = None
        self.selected_cue_id: Optional[int] = None

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> Optional[TimelineDragState]:
        return self._state

    @property
    def is_dragging(self) -> bool:
        return self._state is not None

    @property
    def total_duration(self) -> float:
        return self._duration

    def set_total_duration(self, duration: float) -> None:
        """Update the media duration (known once metadata loads)."""
        self._duration = float(duration)

    # ------------------------------------------------------------------
    # Geometry helpers for hosts
    # ------------------------------------------------------------------

    def time_at(self, x: float) -> float:
        """Media time under a click at x pixels (click-to-seek)."""
        t = px_to_time(x, self._measure_width(), self._duration)
        return max(0.0, min(t, self._duration))

    def cue_span_px(self, cue: Cue) -> Tuple[float, float]:
        """(left, width) of a cue block in pixels at the current width."""
        width_px = self._measure_width()
        left = time_to_px(cue.start, width_px, self._duration)
        width = time_to_px(cue.end - cue.start, width_px, self._duration)
        return left, width

    def hit_test(self, x: float) -> Optional[Tuple[int, TimelineDragMode]]:
        """Find the cue and grab zone under x, topmost (last drawn) first."""
        for cue in reversed(self._store.cues):
            left, width = self.cue_span_px(cue)
            right = left + width
            if not left <= x <= right:
                continue
            handle = min(EDGE_HANDLE_PX, width / 3.0)
            if x - left <= handle:
                return cue.id, TimelineDragMode.RESIZE_START
            if right - x <= handle:
                return cue.id, TimelineDragMode.RESIZE_END
            return cue.id, TimelineDragMode.MOVE
        return None

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def begin(
        self,
        event: PointerEvent,
        cue_id: int,
        mode: TimelineDragMode = TimelineDragMode.MOVE,
    ) -> bool:
        """Pointer-down on a cue body or edge handle.

        Returns:
            False if the cue is unknown or another drag is in progress.
        """
        cue = self._store.get(cue_id)
        if cue is None:
            logger.warning("Cannot drag unknown cue id %s", cue_id)
            return False
        if self._state is not None:
            self.end()
        if not self._lock.acquire(self):
            return False

        self.selected_cue_id = cue_id
        self._state = TimelineDragState(
            mode=TimelineDragMode(mode),
            cue_id=cue_id,
            anchor_x=event.x,
            initial_start=cue.start,
            initial_end=cue.end,
        )
        self._token = self._bus.subscribe(self.on_move, self._on_up)
        return True

    def on_move(self, event: PointerEvent) -> Optional[Cue]:
        """Pointer-move while dragging: recompute, clamp, and store."""
        state = self._state
        if state is None:
            return None
        width_px = self._measure_width()
        if width_px <= 0 or self._duration <= 0:
            return None

        delta = px_to_time(event.x - state.anchor_x, width_px, self._duration)
        start, end = state.initial_start, state.initial_end
        if state.mode == TimelineDragMode.MOVE:
            start += delta
            end += delta
        elif state.mode == TimelineDragMode.RESIZE_START:
            start += delta
        else:
            end += delta
        start, end = clamp_timing(state.mode, start, end, self._duration)

        cue = self._store.get(state.cue_id)
        if cue is None:
            self.end()
            return None
        updated = dataclasses.replace(cue, start=start, end=end)
        self._store.update(updated)
        return updated

    def end(self) -> None:
        """Pointer-up (anywhere): back to idle. Safe to call repeatedly."""
        self._bus.unsubscribe(self._token)
        self._token = None
        self._state = None
        self._lock.release(self)

    def close(self) -> None:
        """Host teardown: drop any live drag and its listeners."""
        self.end()

    def _on_up(self, event: PointerEvent) -> None:
        self.end()
