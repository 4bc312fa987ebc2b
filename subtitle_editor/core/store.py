"""Authoritative in-memory cue list with the edit-session snapshot.

WHY: Every component reads or mutates the same cue list — the assembler
replaces it wholesale, the drag controllers update one cue per pointer
frame, renderers and the active-cue tracker read it. A single owner keeps
the list ordered, resolves ids, and guarantees that cancelling an edit
session restores exactly what was there before.

HOW: CueStore keeps a start-ordered list plus an id index. update()
swaps in the new cue value and re-sorts with Python's stable sort.
begin_edit() takes a structural clone of the list; cancel_edit() swaps
the clone back in. Listeners registered with subscribe() are called after
every change so hosts can re-render.

RULES:
- The list is sorted by start ascending after every mutation
- Ties keep their prior relative order (stable sort)
- update() on an unknown id is a logged no-op — the list is untouched
- The store keeps its own copies: callers cannot alias stored cues
- cues returns a new list; consumers treat it as read-only
- replace_all() is refused while an edit session is open
- Single-threaded: called from the host's event loop only
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional, Sequence

from subtitle_editor.core.ir import Cue, clone_cue, clone_cues

logger = logging.getLogger(__name__)

StoreListener = Callable[["CueStore"], None]


class CueStore:
    """Ordered cue list for one editing session.

    Public surface:
      replace_all(cues)  — bulk replace (assembly result)
      get(id)            — lookup by id, None when absent
      update(cue)        — replace by id, then re-sort
      begin_edit / cancel_edit / commit_edit — single-snapshot rollback
      subscribe / unsubscribe — change notification
    """

    def __init__(self, cues: Optional[Sequence[Cue]] = None) -> None:
        self._cues: List[Cue] = []
        self._index: Dict[int, Cue] = {}
        self._snapshot: Optional[List[Cue]] = None
        self._listeners: List[StoreListener] = []
        if cues:
            self._set(clone_cues(cues))

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    @property
    def cues(self) -> List[Cue]:
        """The current start-ordered list (a new list on every access)."""
        return list(self._cues)

    def __len__(self) -> int:
        return len(self._cues)

    def get(self, cue_id: int) -> Optional[Cue]:
        """Return the stored cue with this id, or None."""
        return self._index.get(cue_id)

    @property
    def is_editing(self) -> bool:
        return self._snapshot is not None

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def replace_all(self, cues: Sequence[Cue]) -> None:
        """Replace the whole list, e.g. with a fresh assembly result.

        Raises:
            ValueError: If two cues share an id.
            RuntimeError: If an edit session is open.
        """
        if self.is_editing:
            raise RuntimeError("Cannot replace cues while an edit session is open")
        ids = [c.id for c in cues]
        if len(set(ids)) != len(ids):
            raise ValueError("Cue ids must be unique")
        self._set(clone_cues(cues))
        logger.debug("Replaced cue list (%d cues)", len(self._cues))
        self._notify()

    def update(self, cue: Cue) -> bool:
        """Replace the cue with the same id and re-sort the list.

        Returns:
            True if a cue was updated, False if the id is unknown (no-op).
        """
        if cue.id not in self._index:
            logger.warning("Ignoring update for unknown cue id %s", cue.id)
            return False
        stored = clone_cue(cue)
        self._cues = [stored if c.id == cue.id else c for c in self._cues]
        self._cues.sort(key=lambda c: c.start)
        self._index[cue.id] = stored
        self._notify()
        return True

    # ------------------------------------------------------------------
    # Edit session
    # ------------------------------------------------------------------

    def begin_edit(self) -> None:
        """Snapshot the list so the session can be cancelled.

        A second call while editing keeps the first snapshot.
        """
        if self.is_editing:
            return
        self._snapshot = clone_cues(self._cues)
        logger.debug("Edit session started (%d cues)", len(self._cues))

    def cancel_edit(self) -> None:
        """Restore the snapshot taken by begin_edit() and close the session."""
        if self._snapshot is None:
            return
        self._set(self._snapshot)
        self._snapshot = None
        logger.debug("Edit session cancelled")
        self._notify()

    def commit_edit(self) -> None:
        """Keep the live list and discard the snapshot."""
        self._snapshot = None

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def subscribe(self, listener: StoreListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: StoreListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _set(self, cues: List[Cue]) -> None:
        cues.sort(key=lambda c: c.start)
        self._cues = cues
        self._index = {c.id: c for c in cues}

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)
