"""Cue geometry defaults, effective values, and range clamps.

WHY: Cue layout fields are optional — an unedited cue sits at the default
line, width and font size for the current aspect ratio. Both the spatial
drag editor and the HTTP partial-update endpoint need the same defaults
and the same silent range correction, so they live in one place.

HOW: effective_*() resolve a cue's optional field against the defaults
from config. clamp_*() pin a tentative value into its allowed range.
font_size_for_width() implements the corner-resize text scaling rule.

RULES:
- line ∈ [0, 95], width ∈ [10, 100], font_size ∈ [1, 6]
- Out-of-range values are normalised, never rejected
- Default width: 80 landscape, 90 portrait
- Corner scaling: font = 2.5 * width / default_width, then clamped
"""

from __future__ import annotations

from subtitle_editor.config import (
    DEFAULT_FONT_SIZE,
    DEFAULT_LINE,
    DEFAULT_WIDTHS,
    FONT_SIZE_MAX,
    FONT_SIZE_MIN,
    LINE_MAX,
    LINE_MIN,
    WIDTH_MAX,
    WIDTH_MIN,
)
from subtitle_editor.core.ir import AspectRatio, Cue


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def clamp_line(value: float) -> float:
    return _clamp(value, LINE_MIN, LINE_MAX)


def clamp_width(value: float) -> float:
    return _clamp(value, WIDTH_MIN, WIDTH_MAX)


def clamp_font_size(value: float) -> float:
    return _clamp(value, FONT_SIZE_MIN, FONT_SIZE_MAX)


def default_width(aspect: AspectRatio | str) -> float:
    """Default cue width in percent for the given aspect ratio."""
    return DEFAULT_WIDTHS[AspectRatio.parse(aspect)]


def effective_line(cue: Cue) -> float:
    return cue.line if cue.line is not None else DEFAULT_LINE


def effective_width(cue: Cue, aspect: AspectRatio | str) -> float:
    return cue.width if cue.width is not None else default_width(aspect)


def effective_font_size(cue: Cue) -> float:
    return cue.font_size if cue.font_size is not None else DEFAULT_FONT_SIZE


def font_size_for_width(width: float, aspect: AspectRatio | str) -> float:
    """Scale the base font size with the box width (corner resize).

    The baseline is the aspect ratio's default width, so a cue resized
    back to the default width gets the default font size again.
    """
    return clamp_font_size(DEFAULT_FONT_SIZE * width / default_width(aspect))
