"""FastAPI application exposing cue assembly and editing sessions.

WHY: External clients (a browser editor, curl, automation tools) need an
HTTP surface over the same pipeline the CLI and the desktop editor use:
turn a provider word list into cues, retime and reposition single cues
inside a cancellable edit session, query the active cue for a playback
time, and export the result.

HOW: A single FastAPI app exposes the endpoints grouped by tags. Each
session owns one CueStore held by the module-level SessionStore. Cue
patches are normalised with the same clamps the drag controllers use, so
a value the editor could never produce is never stored.

RULES:
- All endpoints have OpenAPI descriptions and ErrorResponse schemas
- Malformed word lists → 422 with the WordListError message, no session
- Unknown session or cue → 404
- Cancel/save without an open edit session, or re-assembly during one → 409
- The session store is a module-level singleton; cleanup runs in lifespan
- Python 3.9+ compatible (no match/case, no PEP 604 unions)
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from contextlib import asynccontextmanager
from typing import List, Optional, Sequence

from fastapi import FastAPI, HTTPException, Query
from fastapi.responses import Response

from subtitle_editor import __version__
from subtitle_editor.config import policy_for
from subtitle_editor.core.assembler import assemble_cues
from subtitle_editor.core.ir import AspectRatio, Cue, Word
from subtitle_editor.core.layout import clamp_font_size, clamp_line, clamp_width
from subtitle_editor.core.playback import resolve_active_cue, word_states
from subtitle_editor.core.words import WordListError, parse_words, sanitize_words
from subtitle_editor.editing.timeline import apply_timing_edit
from subtitle_editor.formatters import FORMATTERS
from subtitle_editor.server.models import (
    ActiveCueResponse,
    AssembleRequest,
    CueOut,
    CuePatch,
    ErrorResponse,
    FormatInfo,
    HealthResponse,
    PolicyIn,
    SessionCreateRequest,
    SessionResponse,
    WordOut,
    WordStateOut,
)
from subtitle_editor.server.sessions import Session, SessionStore

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# App and store setup
# ---------------------------------------------------------------------------

session_store = SessionStore()


async def _periodic_cleanup() -> None:
    """Run session cleanup every 5 minutes."""
    while True:
        await asyncio.sleep(300)
        session_store.cleanup_expired()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start periodic cleanup on startup, cancel on shutdown."""
    task = asyncio.create_task(_periodic_cleanup())
    yield
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass


app = FastAPI(
    lifespan=lifespan,
    title="Subtitle Editor API",
    description=(
        "REST API for assembling subtitle cues from timestamped words and "
        "editing them in cancellable sessions: retime, reposition, resize, "
        "rewrite, query the active cue for karaoke highlighting, and export "
        "SRT or WebVTT."
    ),
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _cue_to_out(cue: Cue) -> CueOut:
    words = None
    if cue.words is not None:
        words = [WordOut(word=w.text, start=w.start, end=w.end) for w in cue.words]
    return CueOut(
        id=cue.id,
        start=cue.start,
        end=cue.end,
        text=cue.text,
        line=cue.line,
        width=cue.width,
        font_size=cue.font_size,
        words=words,
    )


def _session_to_response(session: Session) -> SessionResponse:
    return SessionResponse(
        id=session.id,
        aspect_ratio=session.aspect,
        media_duration=session.media_duration,
        editing=session.store.is_editing,
        created_at=session.created_at,
        cues=[_cue_to_out(c) for c in session.store.cues],
    )


def _assemble(
    words: Sequence[Word],
    aspect: AspectRatio,
    policy: Optional[PolicyIn],
    timing_offset_ms: Optional[float],
) -> List[Cue]:
    """Sanitise and assemble, mapping an invalid policy to 422."""
    overrides = policy.model_dump() if policy is not None else {}
    try:
        assembly_policy = policy_for(aspect, **overrides)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc))

    offset_s = None
    if timing_offset_ms is not None:
        offset_s = timing_offset_ms / 1000.0
    return assemble_cues(sanitize_words(words, offset_s), assembly_policy)


def _get_session(session_id: str) -> Session:
    """Look up a session and bump its idle timer, or raise 404."""
    session = session_store.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found: {}".format(session_id))
    session.touch()
    return session


def _get_cue(session: Session, cue_id: int) -> Cue:
    cue = session.store.get(cue_id)
    if cue is None:
        raise HTTPException(status_code=404, detail="Cue not found: {}".format(cue_id))
    return cue


def _apply_patch(session: Session, cue: Cue, patch: CuePatch) -> Cue:
    changes = {}
    if patch.text is not None and patch.text.strip():
        changes["text"] = patch.text.strip()
    if patch.start is not None or patch.end is not None:
        changes["start"], changes["end"] = apply_timing_edit(
            cue, patch.start, patch.end, session.media_duration
        )
    if patch.line is not None:
        changes["line"] = clamp_line(patch.line)
    if patch.width is not None:
        changes["width"] = clamp_width(patch.width)
    if patch.font_size is not None:
        changes["font_size"] = clamp_font_size(patch.font_size)
    return dataclasses.replace(cue, **changes)


# ---------------------------------------------------------------------------
# Endpoints: Sessions
# ---------------------------------------------------------------------------


@app.post(
    "/sessions",
    response_model=SessionResponse,
    status_code=201,
    tags=["sessions"],
    summary="Assemble cues into a new session",
    description=(
        "Validate the provider word list, shift it by the timing offset, "
        "assemble cues with the aspect-ratio preset (plus any overrides), "
        "and store them in a new editing session."
    ),
    responses={
        422: {"model": ErrorResponse, "description": "Malformed word list or invalid policy"},
        429: {"model": ErrorResponse, "description": "Too many concurrent sessions"},
    },
)
async def create_session(request: SessionCreateRequest) -> SessionResponse:
    try:
        words = parse_words(request.words)
    except WordListError as exc:
        raise HTTPException(status_code=422, detail="Malformed word list: {}".format(exc))

    cues = _assemble(words, request.aspect_ratio, request.policy, request.timing_offset_ms)

    media_duration = request.media_duration
    if media_duration is None:
        media_duration = max((w.end for w in words), default=0.0)

    try:
        session = session_store.create(cues, request.aspect_ratio, media_duration, words)
    except ValueError as exc:
        raise HTTPException(status_code=429, detail=str(exc))

    return _session_to_response(session)


@app.get(
    "/sessions/{session_id}",
    response_model=SessionResponse,
    tags=["sessions"],
    summary="Get session state",
    description="Returns the session's settings, edit state, and cues ordered by start time.",
    responses={404: {"model": ErrorResponse, "description": "Session not found"}},
)
async def get_session(session_id: str) -> SessionResponse:
    return _session_to_response(_get_session(session_id))


@app.post(
    "/sessions/{session_id}/assemble",
    response_model=SessionResponse,
    tags=["sessions"],
    summary="Re-assemble the session's cues",
    description=(
        "Rebuild every cue from the session's word list, optionally with a "
        "different aspect ratio or policy. Manual edits are discarded."
    ),
    responses={
        404: {"model": ErrorResponse, "description": "Session not found"},
        409: {"model": ErrorResponse, "description": "An edit session is open"},
        422: {"model": ErrorResponse, "description": "Invalid policy"},
    },
)
async def reassemble_session(session_id: str, request: AssembleRequest) -> SessionResponse:
    session = _get_session(session_id)
    aspect = request.aspect_ratio or session.aspect
    cues = _assemble(session.words, aspect, request.policy, request.timing_offset_ms)
    try:
        session.store.replace_all(cues)
    except RuntimeError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    session.aspect = aspect
    logger.info("Re-assembled session %s (%d cues, %s)", session.id, len(cues), aspect.value)
    return _session_to_response(session)


@app.delete(
    "/sessions/{session_id}",
    status_code=204,
    tags=["sessions"],
    summary="Delete a session",
    description="Discard a session and its cues.",
    responses={404: {"model": ErrorResponse, "description": "Session not found"}},
)
async def delete_session(session_id: str) -> Response:
    if not session_store.delete(session_id):
        raise HTTPException(status_code=404, detail="Session not found: {}".format(session_id))
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Endpoints: Cues
# ---------------------------------------------------------------------------


@app.get(
    "/sessions/{session_id}/cues/{cue_id}",
    response_model=CueOut,
    tags=["cues"],
    summary="Get one cue",
    responses={404: {"model": ErrorResponse, "description": "Session or cue not found"}},
)
async def get_cue(session_id: str, cue_id: int) -> CueOut:
    session = _get_session(session_id)
    return _cue_to_out(_get_cue(session, cue_id))


@app.patch(
    "/sessions/{session_id}/cues/{cue_id}",
    response_model=CueOut,
    tags=["cues"],
    summary="Update one cue",
    description=(
        "Partially update a cue's text, timing, or geometry. Timing is kept "
        "inside [0, media_duration] with start < end; line, width and font "
        "size are clamped to the editor ranges. The list is re-sorted by "
        "start time afterwards."
    ),
    responses={404: {"model": ErrorResponse, "description": "Session or cue not found"}},
)
async def patch_cue(session_id: str, cue_id: int, patch: CuePatch) -> CueOut:
    session = _get_session(session_id)
    cue = _get_cue(session, cue_id)
    updated = _apply_patch(session, cue, patch)
    session.store.update(updated)
    return _cue_to_out(session.store.get(cue_id))


# ---------------------------------------------------------------------------
# Endpoints: Edit session
# ---------------------------------------------------------------------------


@app.post(
    "/sessions/{session_id}/edit",
    response_model=SessionResponse,
    tags=["editing"],
    summary="Open an edit session",
    description=(
        "Snapshot the current cues so later changes can be cancelled. "
        "Opening an already open edit session keeps the first snapshot."
    ),
    responses={404: {"model": ErrorResponse, "description": "Session not found"}},
)
async def begin_edit(session_id: str) -> SessionResponse:
    session = _get_session(session_id)
    session.store.begin_edit()
    return _session_to_response(session)


@app.post(
    "/sessions/{session_id}/edit/cancel",
    response_model=SessionResponse,
    tags=["editing"],
    summary="Cancel the edit session",
    description="Restore the cues captured when the edit session was opened.",
    responses={
        404: {"model": ErrorResponse, "description": "Session not found"},
        409: {"model": ErrorResponse, "description": "No edit session is open"},
    },
)
async def cancel_edit(session_id: str) -> SessionResponse:
    session = _get_session(session_id)
    if not session.store.is_editing:
        raise HTTPException(status_code=409, detail="No edit session is open.")
    session.store.cancel_edit()
    return _session_to_response(session)


@app.post(
    "/sessions/{session_id}/edit/save",
    response_model=SessionResponse,
    tags=["editing"],
    summary="Save the edit session",
    description="Keep the current cues and discard the snapshot.",
    responses={
        404: {"model": ErrorResponse, "description": "Session not found"},
        409: {"model": ErrorResponse, "description": "No edit session is open"},
    },
)
async def save_edit(session_id: str) -> SessionResponse:
    session = _get_session(session_id)
    if not session.store.is_editing:
        raise HTTPException(status_code=409, detail="No edit session is open.")
    session.store.commit_edit()
    return _session_to_response(session)


# ---------------------------------------------------------------------------
# Endpoints: Playback
# ---------------------------------------------------------------------------


@app.get(
    "/sessions/{session_id}/active",
    response_model=ActiveCueResponse,
    tags=["playback"],
    summary="Resolve the active cue",
    description=(
        "Return the cue visible at the given playback time (start inclusive, "
        "end exclusive) and the karaoke state of each of its words."
    ),
    responses={404: {"model": ErrorResponse, "description": "Session not found"}},
)
async def get_active_cue(
    session_id: str,
    time: float = Query(ge=0, description="Playback time in seconds."),
) -> ActiveCueResponse:
    session = _get_session(session_id)
    cue = resolve_active_cue(session.store.cues, time)
    if cue is None:
        return ActiveCueResponse(time=time, cue=None, words=[])
    states = [
        WordStateOut(word=w.text, start=w.start, end=w.end, state=state)
        for w, state in word_states(cue.words, time)
    ]
    return ActiveCueResponse(time=time, cue=_cue_to_out(cue), words=states)


# ---------------------------------------------------------------------------
# Endpoints: Export and formats
# ---------------------------------------------------------------------------


@app.get(
    "/sessions/{session_id}/export/{format_key}",
    tags=["formats"],
    summary="Export the cues",
    description="Render the session's cues with the given formatter and return the file.",
    responses={
        404: {"model": ErrorResponse, "description": "Session or format not found"},
        500: {"model": ErrorResponse, "description": "Formatter failed"},
    },
)
async def export_session(session_id: str, format_key: str) -> Response:
    session = _get_session(session_id)
    formatter_cls = FORMATTERS.get(format_key)
    if formatter_cls is None:
        raise HTTPException(
            status_code=404,
            detail="Unknown format '{}'. Available: {}".format(
                format_key, ", ".join(sorted(FORMATTERS.keys()))
            ),
        )
    try:
        output = formatter_cls().format(session.store.cues)[0]
    except Exception as exc:
        logger.exception("Export to %s failed for session %s", format_key, session.id)
        raise HTTPException(status_code=500, detail="Export failed: {}".format(exc))
    filename = "{}{}".format(session.id, output.suffix)
    return Response(
        content=output.content,
        media_type=output.media_type,
        headers={"Content-Disposition": 'attachment; filename="{}"'.format(filename)},
    )


@app.get(
    "/formats",
    response_model=List[FormatInfo],
    tags=["formats"],
    summary="List available output formats",
    description="Returns all export formats with their keys, names, suffixes, and MIME types.",
)
async def list_formats() -> List[FormatInfo]:
    result = []
    for key, formatter_cls in sorted(FORMATTERS.items()):
        formatter = formatter_cls()
        sample = formatter.format([])[0]
        result.append(FormatInfo(
            key=key,
            name=formatter.name,
            suffix=sample.suffix,
            media_type=sample.media_type,
        ))
    return result


# ---------------------------------------------------------------------------
# Endpoints: Health
# ---------------------------------------------------------------------------


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["health"],
    summary="Health check",
    description="Liveness and readiness check for load balancers and orchestrators.",
)
async def health_check() -> HealthResponse:
    return HealthResponse(status="ok", version=__version__)


def run_api(host: str = "0.0.0.0", port: int = 8000) -> None:
    """Entry point for the subtitle-api console script."""
    import uvicorn
    uvicorn.run(app, host=host, port=port)
