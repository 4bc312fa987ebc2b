"""Pydantic request/response models for the HTTP API.

WHY: The FastAPI endpoints need typed schemas for request validation,
response serialization, and automatic OpenAPI documentation.

HOW: Each endpoint pair (request + response) has its own model. All
models include Field descriptions for rich OpenAPI docs. The word list in
SessionCreateRequest is deliberately untyped: it is validated by
core.words.parse_words so malformed provider output yields the same
error message on every entry point.

RULES:
- All models use Field(description=...) for OpenAPI documentation
- Geometry fields are percentages, timing fields are seconds
- Python 3.9+ compatible (no PEP 604 unions, use Optional from typing)
"""

from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel, Field

from subtitle_editor.core.ir import AspectRatio
from subtitle_editor.core.playback import WordState


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class PolicyIn(BaseModel):
    """Per-field overrides of the aspect-ratio preset.

    RULES:
    - Omitted fields keep the preset value
    - All values must be positive
    """

    max_words_per_cue: Optional[int] = Field(
        default=None,
        gt=0,
        description="Maximum number of words in one cue.",
    )
    max_cue_duration: Optional[float] = Field(
        default=None,
        gt=0,
        description="Maximum cue duration in seconds.",
    )
    pause_threshold: Optional[float] = Field(
        default=None,
        gt=0,
        description="A silence at least this long (seconds) closes the cue.",
    )

    model_config = {"allow_inf_nan": False}


class SessionCreateRequest(BaseModel):
    """Body of POST /sessions.

    WHY: A session starts from the transcription collaborator's word list
    and the preview frame the cues will be edited in.
    """

    words: Any = Field(
        description="Provider word list: [{\"word\": str, \"start\": float, \"end\": float}, ...].",
    )
    aspect_ratio: AspectRatio = Field(
        default=AspectRatio.LANDSCAPE,
        description="Preview aspect ratio; selects the assembly preset and geometry defaults.",
    )
    policy: Optional[PolicyIn] = Field(
        default=None,
        description="Optional overrides of the preset's assembly policy.",
    )
    media_duration: Optional[float] = Field(
        default=None,
        gt=0,
        description="Media length in seconds. Defaults to the end of the last word.",
    )
    timing_offset_ms: Optional[float] = Field(
        default=None,
        description="Show words this many milliseconds earlier. Defaults to the server setting.",
    )

    model_config = {"allow_inf_nan": False, "json_schema_extra": {
        "examples": [
            {
                "words": [
                    {"word": "Hello", "start": 0.0, "end": 0.4},
                    {"word": "world", "start": 0.45, "end": 0.9},
                ],
                "aspect_ratio": "landscape",
            }
        ]
    }}


class AssembleRequest(BaseModel):
    """Body of POST /sessions/{id}/assemble.

    RULES:
    - Omitted aspect_ratio keeps the session's current one
    - Refused while an edit session is open
    """

    aspect_ratio: Optional[AspectRatio] = Field(
        default=None,
        description="New preview aspect ratio; selects the preset used for re-assembly.",
    )
    policy: Optional[PolicyIn] = Field(
        default=None,
        description="Optional overrides of the preset's assembly policy.",
    )
    timing_offset_ms: Optional[float] = Field(
        default=None,
        description="Show words this many milliseconds earlier. Defaults to the server setting.",
    )

    model_config = {"allow_inf_nan": False}


class CuePatch(BaseModel):
    """Partial update of one cue (PATCH /sessions/{id}/cues/{cue_id}).

    RULES:
    - Omitted fields are left unchanged
    - Timing is clamped to [0, media_duration] keeping start < end
    - line/width/font_size are clamped to the editor ranges
    - Blank text is ignored
    """

    text: Optional[str] = Field(default=None, description="Replacement cue text.")
    start: Optional[float] = Field(default=None, description="New start time in seconds.")
    end: Optional[float] = Field(default=None, description="New end time in seconds.")
    line: Optional[float] = Field(
        default=None,
        description="Vertical position, percent of frame height (0 = top).",
    )
    width: Optional[float] = Field(default=None, description="Box width, percent of frame width.")
    font_size: Optional[float] = Field(default=None, description="Font size in em.")

    model_config = {"allow_inf_nan": False}


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class WordOut(BaseModel):
    word: str = Field(description="Word text.")
    start: float = Field(description="Start time in seconds.")
    end: float = Field(description="End time in seconds.")


class CueOut(BaseModel):
    """One subtitle cue as stored in the session.

    RULES:
    - line/width/font_size are null until the cue has been placed
    - words is null for cues that carry no word timings
    """

    id: int = Field(description="Cue identifier, unique within the session.")
    start: float = Field(description="Start time in seconds.")
    end: float = Field(description="End time in seconds.")
    text: str = Field(description="Displayed text.")
    line: Optional[float] = Field(default=None, description="Vertical position, percent.")
    width: Optional[float] = Field(default=None, description="Box width, percent.")
    font_size: Optional[float] = Field(default=None, description="Font size in em.")
    words: Optional[List[WordOut]] = Field(default=None, description="Word timings, if any.")


class SessionResponse(BaseModel):
    """Session state with its ordered cue list."""

    id: str = Field(description="Unique session identifier.")
    aspect_ratio: AspectRatio = Field(description="Preview aspect ratio.")
    media_duration: float = Field(description="Timeline length in seconds.")
    editing: bool = Field(description="True while an edit session is open.")
    created_at: float = Field(description="Creation timestamp (Unix epoch seconds).")
    cues: List[CueOut] = Field(description="Cues ordered by start time.")


class WordStateOut(BaseModel):
    word: str = Field(description="Word text.")
    start: float = Field(description="Start time in seconds.")
    end: float = Field(description="End time in seconds.")
    state: WordState = Field(description="Karaoke state at the queried time.")


class ActiveCueResponse(BaseModel):
    """The cue visible at a playback time, with karaoke word states."""

    time: float = Field(description="Queried playback time in seconds.")
    cue: Optional[CueOut] = Field(default=None, description="Active cue, or null between cues.")
    words: List[WordStateOut] = Field(
        default_factory=list,
        description="Per-word state of the active cue (empty without word timings).",
    )


class FormatInfo(BaseModel):
    """Description of an available output format."""

    key: str = Field(description="Format identifier used in export URLs.")
    name: str = Field(description="Human-readable format name.")
    suffix: str = Field(description="File suffix produced (e.g. '.srt').")
    media_type: str = Field(description="MIME type of the exported file.")


class ErrorResponse(BaseModel):
    """Standard error response body.

    RULES:
    - detail is always a human-readable error message
    """

    detail: str = Field(description="Human-readable error description.")


class HealthResponse(BaseModel):
    status: str = Field(description="Service health status.", json_schema_extra={"example": "ok"})
    version: str = Field(description="API version string.", json_schema_extra={"example": "0.1.0"})
