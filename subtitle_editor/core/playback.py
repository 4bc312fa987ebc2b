"""Active-cue resolution, karaoke word states, and the playback tick.

WHY: While media plays, the preview must show the cue under the playhead
and colour its words as they are spoken. Resolution runs on every frame,
so subscribers must only hear about real changes, and the frame loop must
only run while media is actually playing.

HOW: resolve_active_cue() is a pure first-match scan over the
start-ordered list. word_states() classifies each word against the
current time. ActiveCueTracker remembers the last resolved id and calls
subscribers only when it changes. PlaybackTicker requests one frame at a
time from a host FrameScheduler between start() and stop().

RULES:
- Active when start <= time < end; first match in list order wins
- UPCOMING: time < word.start; CURRENT: start <= time < end; SPOKEN: time >= end
- Word states are derived on demand — nothing is stored
- tick() and seek() notify only when the active id changes
- seek() resolves synchronously, without waiting for a frame
- An edit to the active cue is re-published so the preview refreshes
- start() twice never schedules two frame loops
"""

from __future__ import annotations

import enum
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, List, Optional, Sequence, Tuple

from subtitle_editor.core.ir import Cue, Word
from subtitle_editor.core.store import CueStore

logger = logging.getLogger(__name__)

ActiveCueListener = Callable[[Optional[Cue]], None]


class WordState(str, enum.Enum):
    """Karaoke highlight state of a single word."""

    UPCOMING = "upcoming"
    CURRENT = "current"
    SPOKEN = "spoken"


def resolve_active_cue(cues: Sequence[Cue], time: float) -> Optional[Cue]:
    """Return the first cue whose range contains time, or None."""
    for cue in cues:
        if cue.start <= time < cue.end:
            return cue
    return None


def word_state(word: Word, time: float) -> WordState:
    if time < word.start:
        return WordState.UPCOMING
    if time < word.end:
        return WordState.CURRENT
    return WordState.SPOKEN


def word_states(words: Optional[Sequence[Word]], time: float) -> List[Tuple[Word, WordState]]:
    """Classify every word of a cue against the playback time.

    Cues without word-level detail (words is None or empty) yield [].
    """
    if not words:
        return []
    return [(w, word_state(w, time)) for w in words]


class ActiveCueTracker:
    """Tracks which cue is active and notifies on changes only.

    WHY: The frame loop calls tick() ~60 times per second; re-rendering
    the preview on every call would be wasteful when the same cue stays
    active for seconds.

    HOW: Stores the last resolved cue id. tick() and seek() resolve
    against the store's current list and call subscribers only when the
    id differs. A store listener re-publishes the active cue when its
    contents change (retimed, moved, text edited) or when it stops being
    active because of an edit.
    """

    def __init__(self, store: CueStore) -> None:
        self._store = store
        self._listeners: List[ActiveCueListener] = []
        self._active: Optional[Cue] = None
        self._time = 0.0
        store.subscribe(self._on_store_change)

    @property
    def active(self) -> Optional[Cue]:
        return self._active

    @property
    def time(self) -> float:
        return self._time

    def subscribe(self, listener: ActiveCueListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: ActiveCueListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def tick(self, time: float) -> Optional[Cue]:
        """Resolve on a frame tick; notify only if the active id changed."""
        self._time = time
        self._resolve(force=False)
        return self._active

    def seek(self, time: float) -> Optional[Cue]:
        """Resolve immediately after a seek (same change rule as tick)."""
        return self.tick(time)

    def close(self) -> None:
        """Detach from the store."""
        self._store.unsubscribe(self._on_store_change)
        self._listeners.clear()

    def _resolve(self, force: bool) -> None:
        current = resolve_active_cue(self._store.cues, self._time)
        previous_id = self._active.id if self._active is not None else None
        current_id = current.id if current is not None else None
        changed = previous_id != current_id
        self._active = current
        if changed or force:
            for listener in list(self._listeners):
                listener(current)

    def _on_store_change(self, store: CueStore) -> None:
        previous = self._active
        current = resolve_active_cue(store.cues, self._time)
        # Re-publish when the same cue changed contents
        force = previous is not None and current is not None and previous != current
        self._resolve(force=force)


class FrameScheduler(ABC):
    """Host animation primitive (e.g. Tk.after, requestAnimationFrame)."""

    @abstractmethod
    def request_frame(self, callback: Callable[[], None]) -> Any:
        """Schedule callback for the next frame and return a handle."""

    @abstractmethod
    def cancel_frame(self, handle: Any) -> None:
        """Cancel a previously requested frame."""


class PlaybackTicker:
    """Frame loop that samples the playback clock while media plays.

    WHY: Polling the clock while paused wastes cycles; the loop should
    exist exactly between play/resume and pause/end.

    HOW: start() requests a frame; each frame reads time_source(), calls
    on_tick(time) and requests the next frame. stop() cancels the pending
    frame. A stopped ticker ignores a frame that was already in flight.
    """

    def __init__(
        self,
        scheduler: FrameScheduler,
        time_source: Callable[[], float],
        on_tick: Callable[[float], Any],
    ) -> None:
        self._scheduler = scheduler
        self._time_source = time_source
        self._on_tick = on_tick
        self._handle: Any = None
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def start(self) -> None:
        if self._running:
            return
        self._running = True
        logger.debug("Playback ticker started")
        self._handle = self._scheduler.request_frame(self._frame)

    def stop(self) -> None:
        if not self._running:
            return
        self._running = False
        logger.debug("Playback ticker stopped")
        if self._handle is not None:
            self._scheduler.cancel_frame(self._handle)
            self._handle = None

    def _frame(self) -> None:
        self._handle = None
        if not self._running:
            return
        self._on_tick(self._time_source())
        if self._running:
            self._handle = self._scheduler.request_frame(self._frame)
