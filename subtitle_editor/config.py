"""Configuration constants, assembly presets, and .env loading.

WHY: Centralizes every tunable value — assembly presets per aspect ratio,
layout defaults and ranges, the latency-compensation offset, and session
limits — so they are easy to find and override without touching logic.

HOW: python-dotenv loads the .env file on import. Presets are plain dicts
keyed by aspect ratio; helpers turn them into AssemblyPolicy instances.
Numeric overrides are read from environment variables with a fallback.

RULES:
- Presets are frozen constants — policy_for() always builds a new object
- Layout percentages are relative to the preview container (0-100)
- TIMING_OFFSET_S applies to audio and video input alike
- All defaults can be overridden via environment variables
"""

from __future__ import annotations

import os
from typing import Any, Dict

from dotenv import load_dotenv

from subtitle_editor.core.ir import AspectRatio, AssemblyPolicy

# Load .env from the project root (where the script is run from)
load_dotenv()


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(
            "Environment variable {} must be a number, got '{}'".format(name, raw)
        )


# ---------------------------------------------------------------------------
# Assembly presets
# ---------------------------------------------------------------------------

ASSEMBLY_PRESETS: Dict[AspectRatio, Dict[str, Any]] = {
    AspectRatio.LANDSCAPE: {
        "max_words_per_cue": 7,
        "max_cue_duration": 4.0,
        "pause_threshold": 0.5,
    },
    AspectRatio.PORTRAIT: {
        "max_words_per_cue": 3,
        "max_cue_duration": 2.5,
        "pause_threshold": 0.4,
    },
}

DEFAULT_ASPECT = AspectRatio.parse(os.getenv("SUBTITLE_DEFAULT_ASPECT", "landscape"))


def policy_for(aspect: AspectRatio | str, **overrides: Any) -> AssemblyPolicy:
    """Build the assembly policy for an aspect ratio.

    WHY: Vertical video has less room per line, so portrait cues carry
    fewer words and shorter durations than landscape cues.

    HOW: Copies the preset dict, applies any non-None overrides, and
    constructs a validated AssemblyPolicy.

    RULES:
    - Unknown aspect names raise ValueError (via AspectRatio.parse)
    - Overrides with value None are ignored
    - Unknown override keys raise ValueError
    """
    aspect = AspectRatio.parse(aspect)
    fields = dict(ASSEMBLY_PRESETS[aspect])
    for key, value in overrides.items():
        if key not in fields:
            raise ValueError("Unknown policy field '{}'".format(key))
        if value is not None:
            fields[key] = value
    return AssemblyPolicy(**fields)


# ---------------------------------------------------------------------------
# Layout defaults (percent of container, relative font units)
# ---------------------------------------------------------------------------

DEFAULT_LINE = 90.0
LINE_MIN = 0.0
LINE_MAX = 95.0

DEFAULT_WIDTHS: Dict[AspectRatio, float] = {
    AspectRatio.LANDSCAPE: 80.0,
    AspectRatio.PORTRAIT: 90.0,
}
WIDTH_MIN = 10.0
WIDTH_MAX = 100.0

DEFAULT_FONT_SIZE = 2.5
FONT_SIZE_MIN = 1.0
FONT_SIZE_MAX = 6.0

# ---------------------------------------------------------------------------
# Timing
# ---------------------------------------------------------------------------

MIN_CUE_SEPARATION_S = 0.01
"""Smallest duration a cue may be squeezed to by a resize drag."""

TIMING_OFFSET_S = _env_float("SUBTITLE_TIMING_OFFSET_MS", 150.0) / 1000.0
"""Latency compensation: words are shown this much earlier than transcribed."""

# ---------------------------------------------------------------------------
# HTTP sessions
# ---------------------------------------------------------------------------

SESSION_TTL_SECONDS = int(_env_float("SUBTITLE_SESSION_TTL_SECONDS", 3600))
MAX_SESSIONS = int(_env_float("SUBTITLE_MAX_SESSIONS", 100))

LOG_LEVEL = os.getenv("LOG_LEVEL", "WARNING").upper()
