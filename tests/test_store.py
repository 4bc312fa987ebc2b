"""Tests for the cue store and its edit-session lifecycle.

WHY: Every editor writes through the store. If ordering, id lookup, or
snapshot isolation break, the timeline shows cues in the wrong order and
Cancel fails to undo a drag.

HOW: Tests drive CueStore directly with small cue lists and record
listener calls to check notification rules.

RULES:
- The store must clone on the way in; tests mutate their inputs after
  handing them over to prove isolation.
"""

import dataclasses
import logging

import pytest

from subtitle_editor.core.ir import Cue, Word
from subtitle_editor.core.store import CueStore


def _ids(store):
    return [c.id for c in store.cues]


class TestReplaceAndLookup:

    def test_replace_all_sorts_by_start(self):
        store = CueStore()
        store.replace_all([Cue(0, 5.0, 6.0, "b"), Cue(1, 1.0, 2.0, "a")])
        assert _ids(store) == [1, 0]

    def test_get_by_id(self, store):
        assert store.get(1).text == "second cue"
        assert store.get(99) is None

    def test_cues_returns_new_list(self, store):
        listing = store.cues
        listing.clear()
        assert len(store) == 2

    def test_duplicate_ids_rejected(self):
        with pytest.raises(ValueError):
            CueStore().replace_all([Cue(0, 0.0, 1.0, "a"), Cue(0, 2.0, 3.0, "b")])

    def test_input_list_is_cloned(self, sample_cues):
        store = CueStore(sample_cues)
        sample_cues[0].text = "changed"
        sample_cues[0].words.append(Word("x", 9.0, 9.1))
        assert store.get(0).text == "first cue"
        assert len(store.get(0).words) == 2


class TestUpdate:

    def test_update_replaces_by_id(self, store):
        cue = store.get(0)
        assert store.update(dataclasses.replace(cue, text="new")) is True
        assert store.get(0).text == "new"

    def test_update_resorts(self, store):
        cue = store.get(0)
        store.update(dataclasses.replace(cue, start=5.0, end=6.0))
        starts = [c.start for c in store.cues]
        assert starts == sorted(starts)
        assert _ids(store) == [1, 0]

    def test_ties_keep_prior_order(self):
        store = CueStore([Cue(0, 1.0, 2.0, "a"), Cue(1, 2.0, 3.0, "b"), Cue(2, 3.0, 4.0, "c")])
        store.update(dataclasses.replace(store.get(2), start=1.0))
        assert _ids(store) == [0, 2, 1]

    def test_unknown_id_is_noop(self, store, caplog):
        before = [dataclasses.asdict(c) for c in store.cues]
        with caplog.at_level(logging.WARNING):
            assert store.update(Cue(42, 0.0, 1.0, "ghost")) is False
        assert [dataclasses.asdict(c) for c in store.cues] == before
        assert "unknown cue id 42" in caplog.text

    def test_update_clones_argument(self, store):
        edited = dataclasses.replace(store.get(1), text="edited")
        store.update(edited)
        edited.text = "mutated afterwards"
        assert store.get(1).text == "edited"


class TestEditSession:

    def test_cancel_restores_snapshot(self, store):
        store.begin_edit()
        store.update(dataclasses.replace(store.get(0), start=8.0, end=9.0, line=20.0))
        store.cancel_edit()

        assert not store.is_editing
        assert store.get(0).start == 1.0
        assert store.get(0).line is None
        assert _ids(store) == [0, 1]

    def test_snapshot_isolated_from_in_place_mutation(self, store):
        store.begin_edit()
        store.get(0).words.append(Word("leak", 2.0, 2.1))
        store.get(0).text = "leak"
        store.cancel_edit()
        assert store.get(0).text == "first cue"
        assert len(store.get(0).words) == 2

    def test_second_begin_keeps_first_snapshot(self, store):
        store.begin_edit()
        store.update(dataclasses.replace(store.get(0), text="one"))
        store.begin_edit()
        store.update(dataclasses.replace(store.get(0), text="two"))
        store.cancel_edit()
        assert store.get(0).text == "first cue"

    def test_commit_keeps_changes(self, store):
        store.begin_edit()
        store.update(dataclasses.replace(store.get(1), text="kept"))
        store.commit_edit()
        assert not store.is_editing
        assert store.get(1).text == "kept"

    def test_cancel_without_session_is_noop(self, store):
        calls = []
        store.subscribe(calls.append)
        store.cancel_edit()
        assert calls == []

    def test_replace_all_refused_while_editing(self, store):
        store.begin_edit()
        with pytest.raises(RuntimeError):
            store.replace_all([])
        assert len(store) == 2


class TestListeners:

    def test_notified_on_each_mutation(self, store):
        calls = []
        store.subscribe(calls.append)

        store.update(dataclasses.replace(store.get(0), text="x"))
        store.begin_edit()
        store.cancel_edit()
        store.replace_all([])

        assert len(calls) == 3
        assert all(arg is store for arg in calls)

    def test_not_notified_on_unknown_update(self, store):
        calls = []
        store.subscribe(calls.append)
        store.update(Cue(7, 0.0, 1.0, "ghost"))
        assert calls == []

    def test_unsubscribe(self, store):
        calls = []
        store.subscribe(calls.append)
        store.unsubscribe(calls.append)
        store.replace_all([])
        assert calls == []
