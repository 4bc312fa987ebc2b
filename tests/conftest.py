"""Shared test fixtures for the subtitle_editor test suite.

WHY: Most test modules need the same small word list, the landscape
policy, and a store pre-loaded with cues. Centralizing fixtures here avoids
duplication and keeps expected values consistent between modules.

HOW: Pytest fixtures provide the raw provider payload, parsed Word
objects, assembled cues, and fresh pointer plumbing (bus + drag lock) so
no test ever shares drag state with another.

RULES:
- SAMPLE_PAYLOAD timings are chosen so the landscape preset yields
  exactly two cues ("Hello world" and "again") with no timing offset.
- Every fixture returns fresh objects; tests may mutate them freely.
- Drag tests use their own DragLock, never the module-level default.
"""

from typing import Any, Dict, List

import pytest

from subtitle_editor.core.ir import AssemblyPolicy, Cue, Word
from subtitle_editor.core.store import CueStore
from subtitle_editor.editing.pointer import DragLock, PointerBus


# ---------------------------------------------------------------------------
# Sample provider payload
# ---------------------------------------------------------------------------

SAMPLE_PAYLOAD: List[Dict[str, Any]] = [
    {"word": "Hello", "start": 0.0,  "end": 0.4},
    {"word": "world", "start": 0.45, "end": 0.9},
    {"word": "again", "start": 2.0,  "end": 2.5},
]


@pytest.fixture
def sample_payload():
    """Provider JSON (decoded) for three words in two phrases."""
    return [dict(item) for item in SAMPLE_PAYLOAD]


@pytest.fixture
def sample_words():
    """SAMPLE_PAYLOAD as Word objects."""
    return [Word(text=p["word"], start=p["start"], end=p["end"]) for p in SAMPLE_PAYLOAD]


@pytest.fixture
def landscape_policy():
    return AssemblyPolicy(max_words_per_cue=7, max_cue_duration=4.0, pause_threshold=0.5)


@pytest.fixture
def sample_cues():
    """Two non-overlapping cues on a 10 s timeline, with word timings."""
    return [
        Cue(
            id=0, start=1.0, end=2.0, text="first cue",
            words=[Word("first", 1.0, 1.5), Word("cue", 1.5, 2.0)],
        ),
        Cue(id=1, start=3.0, end=4.0, text="second cue"),
    ]


@pytest.fixture
def store(sample_cues):
    return CueStore(sample_cues)


@pytest.fixture
def bus():
    return PointerBus()


@pytest.fixture
def drag_lock():
    return DragLock()
