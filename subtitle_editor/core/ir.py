"""Intermediate representation dataclasses for words and subtitle cues.

WHY: The provider returns a flat list of timestamped words, while every
downstream consumer — the assembler, the cue store, the drag editors, the
formatters — needs a shared, well-typed cue model. The IR decouples those
consumers from each other and from the provider's JSON shape.

HOW: Four types form the model:
  Word           — one transcribed token with its own timing (immutable)
  Cue            — one subtitle entry with timing, text and optional layout
  AssemblyPolicy — the limits that control how words are grouped into cues
  AspectRatio    — the preview orientation that selects layout defaults

RULES:
- All times are float seconds
- Word is frozen: downstream code never rewrites provider timing
- Cue.id is the only cross-reference key; it never changes after creation
- Optional layout fields (line, width, font_size) stay None until edited
- clone_cues() is the only way to snapshot a cue list (no shared references)
"""

from __future__ import annotations

import dataclasses
import enum
from dataclasses import dataclass
from typing import List, Optional, Sequence


class AspectRatio(str, enum.Enum):
    """Preview orientation. Selects assembly presets and default cue width."""

    LANDSCAPE = "landscape"
    PORTRAIT = "portrait"

    @classmethod
    def parse(cls, value: "AspectRatio | str") -> "AspectRatio":
        """Accept an AspectRatio or its string value (case-insensitive)."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(
                "Unknown aspect ratio '{}'. Available: {}".format(
                    value, ", ".join(a.value for a in cls)
                )
            )


@dataclass(frozen=True)
class Word:
    """A single transcribed token with its own timestamps.

    Attributes:
        text: The word as transcribed (never modified downstream).
        start: Start time in seconds (>= 0).
        end: End time in seconds (> start once sanitised).
    """

    text: str
    start: float
    end: float

    @property
    def duration(self) -> float:
        return self.end - self.start


@dataclass
class Cue:
    """One timed subtitle entry with text and optional display geometry.

    WHY: The cue is the unit every component agrees on: the assembler
    emits cues, the store orders them, the editors mutate their timing and
    geometry, and the formatters project them into subtitle files.

    RULES:
    - id: unique within a session, assigned at creation, never reused
    - start < end is a target invariant restored by the editors
    - line: vertical anchor, percent of container height (default 90)
    - width: horizontal extent, percent of container width
      (default depends on aspect ratio)
    - font_size: relative text size, 1-6 (default 2.5)
    - words: sub-word timing for karaoke highlighting; None when the cue
      carries no word-level detail. Drift after manual retiming is accepted.
    """

    id: int
    start: float
    end: float
    text: str
    line: Optional[float] = None
    width: Optional[float] = None
    font_size: Optional[float] = None
    words: Optional[List[Word]] = None

    @property
    def duration(self) -> float:
        return self.end - self.start


@dataclass(frozen=True)
class AssemblyPolicy:
    """Tunable limits controlling how words are grouped into cues.

    Supplied per assembly call; never persisted.

    Raises:
        ValueError: If any limit is not strictly positive.
    """

    max_words_per_cue: int
    max_cue_duration: float
    pause_threshold: float

    def __post_init__(self) -> None:
        if isinstance(self.max_words_per_cue, bool) or not isinstance(self.max_words_per_cue, int):
            raise ValueError("max_words_per_cue must be an integer")
        if self.max_words_per_cue <= 0:
            raise ValueError("max_words_per_cue must be > 0")
        if self.max_cue_duration <= 0:
            raise ValueError("max_cue_duration must be > 0")
        if self.pause_threshold <= 0:
            raise ValueError("pause_threshold must be > 0")


def clone_cue(cue: Cue) -> Cue:
    """Return a structural copy of a cue.

    Words are frozen, so copying the list is enough to make the clone
    fully independent of the original.
    """
    return dataclasses.replace(
        cue,
        words=list(cue.words) if cue.words is not None else None,
    )


def clone_cues(cues: Sequence[Cue]) -> List[Cue]:
    """Deep-copy a cue list for snapshots (edit start, cancel restore)."""
    return [clone_cue(c) for c in cues]
