"""Unit tests for the cue assembler and assembly policies.

WHY: The assembler decides where every subtitle breaks. A wrong break
rule produces cues that are too long to read, that straddle pauses, or
that silently lose words, and every later edit starts from that output.

HOW: Tests cover each break condition in isolation (word count, duration,
pause, end of input), the documented worked examples, the structural
properties (no word lost or duplicated, ids sequential, word lists
copied), and the preset / override helpers in config.

RULES:
- Floating-point comparisons use pytest.approx with default tolerance.
- Word timings are built so the condition under test is the only one
  that can fire.
"""

import pytest

from subtitle_editor.config import ASSEMBLY_PRESETS, policy_for
from subtitle_editor.core.assembler import assemble_cues
from subtitle_editor.core.ir import AspectRatio, AssemblyPolicy, Word


def _contiguous(count, length=0.1, start=0.0):
    """count words of equal length with no gaps between them."""
    return [
        Word(text="w{}".format(i), start=start + i * length, end=start + (i + 1) * length)
        for i in range(count)
    ]


class TestWorkedExamples:
    """The reference examples for the break rules."""

    def test_pause_splits_into_two_cues(self, landscape_policy):
        words = [Word("a", 0.0, 0.3), Word("b", 0.3, 0.6), Word("c", 1.4, 1.7)]
        cues = assemble_cues(words, landscape_policy)

        assert len(cues) == 2
        assert cues[0].start == pytest.approx(0.0)
        assert cues[0].end == pytest.approx(0.6)
        assert cues[0].text == "a b"
        assert cues[1].start == pytest.approx(1.4)
        assert cues[1].end == pytest.approx(1.7)
        assert cues[1].text == "c"

    def test_ten_words_split_seven_and_three(self, landscape_policy):
        cues = assemble_cues(_contiguous(10), landscape_policy)

        assert [len(c.words) for c in cues] == [7, 3]

    def test_empty_input(self, landscape_policy):
        assert assemble_cues([], landscape_policy) == []

    def test_sample_payload_gives_two_cues(self, sample_words, landscape_policy):
        cues = assemble_cues(sample_words, landscape_policy)
        assert [c.text for c in cues] == ["Hello world", "again"]


class TestBreakConditions:

    def test_duration_limit_closes_cue_after_inclusion(self):
        policy = AssemblyPolicy(max_words_per_cue=10, max_cue_duration=2.5, pause_threshold=5.0)
        cues = assemble_cues(_contiguous(6, length=1.0), policy)

        # 3 words span 3.0 s >= 2.5 s, so the third word is the last one in
        assert [len(c.words) for c in cues] == [3, 3]

    def test_long_word_becomes_its_own_cue(self, landscape_policy):
        words = [Word("short", 0.0, 0.2), Word("looooong", 0.2, 6.0), Word("tail", 6.0, 6.2)]
        cues = assemble_cues(words, landscape_policy)

        assert [c.text for c in cues] == ["short looooong", "tail"]
        lone = assemble_cues([Word("looooong", 0.0, 6.0)], landscape_policy)
        assert len(lone) == 1
        assert lone[0].end - lone[0].start == pytest.approx(6.0)

    def test_pause_exactly_at_threshold_breaks(self, landscape_policy):
        words = [Word("a", 0.0, 0.5), Word("b", 1.0, 1.5)]
        cues = assemble_cues(words, landscape_policy)
        assert len(cues) == 2

    def test_pause_below_threshold_keeps_together(self, landscape_policy):
        words = [Word("a", 0.0, 0.5), Word("b", 0.9, 1.4)]
        cues = assemble_cues(words, landscape_policy)
        assert len(cues) == 1

    def test_single_word_limit(self):
        policy = AssemblyPolicy(max_words_per_cue=1, max_cue_duration=4.0, pause_threshold=0.5)
        cues = assemble_cues(_contiguous(4), policy)
        assert [c.text for c in cues] == ["w0", "w1", "w2", "w3"]


class TestCueProperties:

    def test_limits_hold_for_long_stream(self):
        policy = policy_for(AspectRatio.PORTRAIT)
        words = _contiguous(50, length=0.35)
        cues = assemble_cues(words, policy)

        for cue in cues:
            assert len(cue.words) <= policy.max_words_per_cue
            if len(cue.words) > 1:
                # Only the word that crossed the limit may push past it
                assert cue.words[-2].end - cue.start < policy.max_cue_duration

    def test_concatenated_words_reproduce_input(self, landscape_policy):
        words = _contiguous(23, length=0.3) + _contiguous(5, length=0.2, start=20.0)
        cues = assemble_cues(words, landscape_policy)

        rebuilt = [w for cue in cues for w in cue.words]
        assert rebuilt == words

    def test_ids_are_sequential_from_zero(self, landscape_policy):
        cues = assemble_cues(_contiguous(20), landscape_policy)
        assert [c.id for c in cues] == list(range(len(cues)))

    def test_first_id_offsets_ids(self, landscape_policy):
        cues = assemble_cues(_contiguous(10), landscape_policy, first_id=5)
        assert [c.id for c in cues] == [5, 6]

    def test_cue_words_are_copied(self, landscape_policy):
        words = _contiguous(3)
        cues = assemble_cues(words, landscape_policy)

        cues[0].words.append(Word("extra", 9.0, 9.5))
        assert len(words) == 3
        assert cues[0].words is not words

    def test_layout_fields_start_unset(self, landscape_policy):
        cue = assemble_cues(_contiguous(2), landscape_policy)[0]
        assert cue.line is None
        assert cue.width is None
        assert cue.font_size is None

    def test_deterministic(self, sample_words, landscape_policy):
        assert assemble_cues(sample_words, landscape_policy) == assemble_cues(sample_words, landscape_policy)


class TestAssemblyPolicy:

    @pytest.mark.parametrize("kwargs", [
        {"max_words_per_cue": 0, "max_cue_duration": 4.0, "pause_threshold": 0.5},
        {"max_words_per_cue": 7, "max_cue_duration": 0.0, "pause_threshold": 0.5},
        {"max_words_per_cue": 7, "max_cue_duration": 4.0, "pause_threshold": -1.0},
        {"max_words_per_cue": 2.5, "max_cue_duration": 4.0, "pause_threshold": 0.5},
        {"max_words_per_cue": True, "max_cue_duration": 4.0, "pause_threshold": 0.5},
    ])
    def test_invalid_values_rejected(self, kwargs):
        with pytest.raises(ValueError):
            AssemblyPolicy(**kwargs)


class TestPresets:

    def test_landscape_preset(self):
        policy = policy_for("landscape")
        assert policy == AssemblyPolicy(7, 4.0, 0.5)

    def test_portrait_preset(self):
        policy = policy_for(AspectRatio.PORTRAIT)
        assert policy == AssemblyPolicy(3, 2.5, 0.4)

    def test_override_single_field(self):
        policy = policy_for("landscape", max_words_per_cue=4)
        assert policy.max_words_per_cue == 4
        assert policy.max_cue_duration == pytest.approx(4.0)

    def test_none_override_ignored(self):
        assert policy_for("portrait", pause_threshold=None) == policy_for("portrait")

    def test_unknown_override_rejected(self):
        with pytest.raises(ValueError, match="Unknown policy field"):
            policy_for("landscape", max_lines=2)

    def test_unknown_aspect_rejected(self):
        with pytest.raises(ValueError, match="Unknown aspect ratio"):
            policy_for("square")

    def test_presets_not_mutated_by_overrides(self):
        policy_for("landscape", max_words_per_cue=2)
        assert ASSEMBLY_PRESETS[AspectRatio.LANDSCAPE]["max_words_per_cue"] == 7
