"""Pointer-driven cue editors for the timeline and the preview surface.

WHY: Retiming and repositioning cues is done by dragging — on a
horizontal timeline for time, inside the video frame for layout. Both
editors share the same plumbing: host-neutral pointer events, global
move/up listeners that exist only during a drag, and a lock that allows
one drag at a time across the whole application.

HOW: pointer.py defines PointerEvent, PointerBus and DragLock.
timeline.py holds the time-axis controller, spatial.py the preview
controller and the inline text editor. Each controller exposes
begin(event, ...), on_move(event) and end().

RULES:
- Controllers mutate cues only through CueStore.update()
- Every pointer frame applies a full update (live editing)
- Invalid geometry is clamped silently, never raised
"""

from subtitle_editor.editing.pointer import DragLock, PointerBus, PointerEvent
from subtitle_editor.editing.spatial import (
    InlineTextEditor,
    SpatialDragController,
    SpatialDragMode,
)
from subtitle_editor.editing.timeline import TimelineDragController, TimelineDragMode

__all__ = [
    "DragLock",
    "InlineTextEditor",
    "PointerBus",
    "PointerEvent",
    "SpatialDragController",
    "SpatialDragMode",
    "TimelineDragController",
    "TimelineDragMode",
]
