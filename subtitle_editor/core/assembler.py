"""Greedy word-to-cue assembly.

WHY: A raw word stream is unreadable as subtitles. Viewers need short
cues that break at natural pauses and never stay on screen too long or
carry too many words. This module is the bridge between the provider's
flat word list and the cue list the editor works on.

HOW: A single left-to-right pass accumulates words into a buffer. After
each word is appended, the cue is closed if any break condition holds:
  1. the word is the last one overall
  2. the buffer has reached max_words_per_cue
  3. the cue spans at least max_cue_duration
  4. the pause before the next word is at least pause_threshold
Closing flushes the buffer into a new Cue with the next sequential id.

RULES:
- Pure and deterministic: same words + policy → same cues
- Empty input → empty output
- At most one flush per word; never flushes an empty buffer
- Duration is checked after inclusion — a long word is never split and
  becomes its own cue
- Cue ids start at first_id (0 by default) and increase by one
- Cue text joins word texts with a single space
- Cue.words is a fresh list (not the caller's buffer or input list)
- Degenerate words must be filtered by the caller (sanitize_words)
"""

from __future__ import annotations

import math
from typing import List, Sequence

from subtitle_editor.core.ir import AssemblyPolicy, Cue, Word


def _flush(buffer: List[Word], cue_id: int) -> Cue:
    """Build a Cue from the buffered words."""
    return Cue(
        id=cue_id,
        start=buffer[0].start,
        end=buffer[-1].end,
        text=" ".join(w.text for w in buffer),
        words=list(buffer),
    )


def assemble_cues(
    words: Sequence[Word],
    policy: AssemblyPolicy,
    first_id: int = 0,
) -> List[Cue]:
    """Segment a word stream into cues under the policy's limits.

    Args:
        words: Sanitised words in time order.
        policy: Word-count, duration and pause limits.
        first_id: Id assigned to the first emitted cue.

    Returns:
        Cues in time order with sequential ids.
    """
    cues: List[Cue] = []
    buffer: List[Word] = []
    next_id = first_id

    for i, word in enumerate(words):
        buffer.append(word)

        cue_duration = word.end - buffer[0].start
        if i + 1 < len(words):
            pause_after = words[i + 1].start - word.end
        else:
            pause_after = math.inf

        is_last = i == len(words) - 1
        if (
            is_last
            or len(buffer) >= policy.max_words_per_cue
            or cue_duration >= policy.max_cue_duration
            or pause_after >= policy.pause_threshold
        ):
            cues.append(_flush(buffer, next_id))
            next_id += 1
            buffer = []

    return cues
