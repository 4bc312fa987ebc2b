"""Spatial drag controller and inline text editing for the preview surface.

WHY: In editing mode the cue shown over the video can be dragged up and
down, widened or narrowed from its sides (text rewraps), or scaled from
its corners (text grows with the box). Double-clicking the text edits it
in place. All of this must stay inside sane ranges without ever
bothering the user with an error.

HOW: begin() captures the pointer position plus the cue's effective line
and width. Each on_move() re-measures the container, converts the pixel
delta to percent, and writes the recomputed line / width / font size to
the store. InlineTextEditor is a small sub-state: while it is active the
drag controller refuses to start drags.

RULES:
- Only active while editing is enabled
- position: line = initial_line + dy% of height, clamped to [0, 95];
  horizontal position is fixed (cue stays centred)
- resize-side-*: width changes by dx% of container width — growing with
  dx on the end handle, shrinking with dx on the start handle — clamped
  to [10, 100]; font size untouched
- resize-corner-*: same width rule, plus
  font_size = 2.5 * width / default_width, clamped to [1, 6]
- Every pointer frame updates the store (live editing)
- Text edit commits on blur or Enter without Shift, cancels on Escape;
  an empty or whitespace-only commit keeps the prior text
"""

from __future__ import annotations

import dataclasses
import enum
import logging
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from subtitle_editor.core.ir import AspectRatio, Cue
from subtitle_editor.core.layout import (
    clamp_line,
    clamp_width,
    effective_line,
    effective_width,
    font_size_for_width,
)
from subtitle_editor.core.store import CueStore
from subtitle_editor.editing.pointer import (
    DEFAULT_DRAG_LOCK,
    DragLock,
    PointerBus,
    PointerEvent,
)

logger = logging.getLogger(__name__)

HANDLE_RADIUS_PX = 6.0
"""Grab distance around the corner and side handles of the cue box."""


class SpatialDragMode(str, enum.Enum):
    POSITION = "position"
    RESIZE_SIDE_START = "resize-side-start"
    RESIZE_SIDE_END = "resize-side-end"
    RESIZE_CORNER_START = "resize-corner-start"
    RESIZE_CORNER_END = "resize-corner-end"

    @property
    def is_corner(self) -> bool:
        return self.value.startswith("resize-corner")

    @property
    def grows_from_end(self) -> bool:
        return self.value.endswith("-end")


@dataclass(frozen=True)
class SpatialDragState:
    """Pointer anchor and cue geometry captured at drag start."""

    mode: SpatialDragMode
    cue_id: int
    anchor_x: float
    anchor_y: float
    initial_line: float
    initial_width: float


def compute_line(initial_line: float, delta_y_px: float, container_height: float) -> float:
    """New vertical anchor after a position drag, clamped to [0, 95]."""
    return clamp_line(initial_line + delta_y_px / container_height * 100.0)


def compute_width(
    mode: SpatialDragMode,
    initial_width: float,
    delta_x_px: float,
    container_width: float,
) -> float:
    """New width after a side or corner drag, clamped to [10, 100]."""
    delta = delta_x_px / container_width * 100.0
    if SpatialDragMode(mode).grows_from_end:
        return clamp_width(initial_width + delta)
    return clamp_width(initial_width - delta)


def cue_box(
    cue: Cue,
    aspect: AspectRatio | str,
    container: Tuple[float, float],
    box_height_px: float,
) -> Tuple[float, float, float, float]:
    """Pixel rectangle (left, top, right, bottom) of a rendered cue.

    The box is horizontally centred and vertically centred on its line.
    """
    container_w, container_h = container
    width_px = effective_width(cue, aspect) / 100.0 * container_w
    center_y = effective_line(cue) / 100.0 * container_h
    left = (container_w - width_px) / 2.0
    top = center_y - box_height_px / 2.0
    return left, top, left + width_px, top + box_height_px


def hit_test_box(
    x: float,
    y: float,
    box: Tuple[float, float, float, float],
    radius: float = HANDLE_RADIUS_PX,
) -> Optional[SpatialDragMode]:
    """Map a pointer position to the handle or body of a cue box."""
    left, top, right, bottom = box
    near_left = abs(x - left) <= radius
    near_right = abs(x - right) <= radius
    near_top = abs(y - top) <= radius
    near_bottom = abs(y - bottom) <= radius

    if (near_top or near_bottom) and near_left:
        return SpatialDragMode.RESIZE_CORNER_START
    if (near_top or near_bottom) and near_right:
        return SpatialDragMode.RESIZE_CORNER_END
    if top <= y <= bottom:
        if near_left:
            return SpatialDragMode.RESIZE_SIDE_START
        if near_right:
            return SpatialDragMode.RESIZE_SIDE_END
        if left <= x <= right:
            return SpatialDragMode.POSITION
    return None


class InlineTextEditor:
    """Inline text-edit sub-state entered by double-clicking a cue."""

    def __init__(self, store: CueStore) -> None:
        self._store = store
        self._cue_id: Optional[int] = None
        self._original = ""
        self.draft = ""

    @property
    def active(self) -> bool:
        return self._cue_id is not None

    @property
    def cue_id(self) -> Optional[int]:
        return self._cue_id

    def begin(self, cue_id: int) -> bool:
        cue = self._store.get(cue_id)
        if cue is None:
            return False
        self._cue_id = cue_id
        self._original = cue.text
        self.draft = cue.text
        return True

    def handle_key(self, key: str, shift: bool = False) -> bool:
        """Process a key press; returns True if the key ended the edit."""
        if not self.active:
            return False
        if key in ("Return", "Enter") and not shift:
            self.commit()
            return True
        if key == "Escape":
            self.cancel()
            return True
        return False

    def commit(self) -> bool:
        """Apply the draft (blur or Enter). Returns True if the cue changed."""
        if not self.active:
            return False
        cue = self._store.get(self._cue_id)
        text = self.draft.strip()
        self._leave()
        if cue is None or not text or text == cue.text:
            return False
        self._store.update(dataclasses.replace(cue, text=text))
        return True

    def cancel(self) -> None:
        """Escape: drop the draft and keep the pre-edit text."""
        self.draft = self._original
        self._leave()

    def _leave(self) -> None:
        self._cue_id = None


class SpatialDragController:
    """Pointer state machine for placing and sizing a cue in the preview."""

    def __init__(
        self,
        store: CueStore,
        bus: PointerBus,
        measure_container: Callable[[], Tuple[float, float]],
        aspect: AspectRatio | str = AspectRatio.LANDSCAPE,
        lock: Optional[DragLock] = None,
    ) -> None:
        self._store = store
        self._bus = bus
        self._measure_container = measure_container
        self._lock = lock if lock is not None else DEFAULT_DRAG_LOCK
        self._state: Optional[SpatialDragState] = None
        self._token: Optional[int] = None
        self._editing = False
        self.aspect = AspectRatio.parse(aspect)
        self.text_editor = InlineTextEditor(store)

    @property
    def state(self) -> Optional[SpatialDragState]:
        return self._state

    @property
    def is_dragging(self) -> bool:
        return self._state is not None

    @property
    def editing_enabled(self) -> bool:
        return self._editing

    def set_editing(self, enabled: bool) -> None:
        """Enter or leave editing mode; leaving ends drags and text edits."""
        self._editing = enabled
        if not enabled:
            self.end()
            if self.text_editor.active:
                self.text_editor.cancel()

    def begin(
        self,
        event: PointerEvent,
        cue_id: int,
        mode: SpatialDragMode = SpatialDragMode.POSITION,
    ) -> bool:
        """Pointer-down on the cue body or one of its handles."""
        if not self._editing or self.text_editor.active:
            return False
        cue = self._store.get(cue_id)
        if cue is None:
            logger.warning("Cannot drag unknown cue id %s", cue_id)
            return False
        if self._state is not None:
            self.end()
        if not self._lock.acquire(self):
            return False

        self._state = SpatialDragState(
            mode=SpatialDragMode(mode),
            cue_id=cue_id,
            anchor_x=event.x,
            anchor_y=event.y,
            initial_line=effective_line(cue),
            initial_width=effective_width(cue, self.aspect),
        )
        self._token = self._bus.subscribe(self.on_move, self._on_up)
        return True

    def on_move(self, event: PointerEvent) -> Optional[Cue]:
        state = self._state
        if state is None:
            return None
        cue = self._store.get(state.cue_id)
        if cue is None:
            self.end()
            return None
        container_w, container_h = self._measure_container()

        if state.mode == SpatialDragMode.POSITION:
            if container_h <= 0:
                return None
            line = compute_line(state.initial_line, event.y - state.anchor_y, container_h)
            updated = dataclasses.replace(cue, line=line)
        else:
            if container_w <= 0:
                return None
            width = compute_width(state.mode, state.initial_width, event.x - state.anchor_x, container_w)
            if state.mode.is_corner:
                updated = dataclasses.replace(
                    cue, width=width, font_size=font_size_for_width(width, self.aspect)
                )
            else:
                updated = dataclasses.replace(cue, width=width)

        self._store.update(updated)
        return updated

    def end(self) -> None:
        self._bus.unsubscribe(self._token)
        self._token = None
        self._state = None
        self._lock.release(self)

    def close(self) -> None:
        self.end()

    def double_click(self, cue_id: int) -> bool:
        """Enter inline text editing (editing mode only)."""
        if not self._editing:
            return False
        self.end()
        return self.text_editor.begin(cue_id)

    def _on_up(self, event: PointerEvent) -> None:
        self.end()
