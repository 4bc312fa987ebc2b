"""Host-neutral pointer events, global listener bus, and the drag lock.

WHY: A drag must keep tracking the pointer after it leaves the cue it
started on, so controllers listen to *global* move/up events — but only
while dragging, or listeners leak from one drag into the next. And since
any editor may start a drag, something must guarantee that at most one
drag is live in the whole application.

HOW: The host forwards every global pointer-move and pointer-up to a
PointerBus. Controllers subscribe a (move, up) pair on begin() and
unsubscribe it on end(). DragLock is a single-owner token that a
controller must acquire before entering a drag state.

RULES:
- Coordinates are pixels in the host's window space
- unsubscribe() of an unknown token is a no-op (safe double end)
- Dispatch iterates over a copy, so handlers may unsubscribe themselves
- DragLock.acquire() fails while another owner holds it
- DEFAULT_DRAG_LOCK is shared by every controller unless one is injected
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PointerEvent:
    """One pointer sample.

    Attributes:
        x: Horizontal position in pixels.
        y: Vertical position in pixels.
        shift: True if Shift was held (used by text-edit key handling).
    """

    x: float
    y: float
    shift: bool = False


PointerHandler = Callable[[PointerEvent], None]


class PointerBus:
    """Global pointer-move / pointer-up fan-out.

    The host calls dispatch_move() and dispatch_up() from its window-level
    bindings; controllers subscribe only for the duration of a drag.
    """

    def __init__(self) -> None:
        self._handlers: Dict[int, Tuple[PointerHandler, PointerHandler]] = {}
        self._tokens = itertools.count(1)

    @property
    def listener_count(self) -> int:
        return len(self._handlers)

    def subscribe(self, on_move: PointerHandler, on_up: PointerHandler) -> int:
        token = next(self._tokens)
        self._handlers[token] = (on_move, on_up)
        return token

    def unsubscribe(self, token: Optional[int]) -> None:
        if token is not None:
            self._handlers.pop(token, None)

    def dispatch_move(self, event: PointerEvent) -> None:
        for on_move, _ in list(self._handlers.values()):
            on_move(event)

    def dispatch_up(self, event: PointerEvent) -> None:
        for _, on_up in list(self._handlers.values()):
            on_up(event)


class DragLock:
    """Single-owner token: at most one drag exists system-wide."""

    def __init__(self) -> None:
        self._owner: Any = None

    @property
    def owner(self) -> Any:
        return self._owner

    @property
    def held(self) -> bool:
        return self._owner is not None

    def acquire(self, owner: Any) -> bool:
        """Take the lock for owner. Re-acquiring by the same owner succeeds."""
        if self._owner is not None and self._owner is not owner:
            logger.debug("Drag refused: %r already dragging", self._owner)
            return False
        self._owner = owner
        return True

    def release(self, owner: Any) -> None:
        """Release the lock if owner holds it; otherwise do nothing."""
        if self._owner is owner:
            self._owner = None


DEFAULT_DRAG_LOCK = DragLock()
