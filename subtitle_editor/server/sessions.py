"""In-memory editing sessions with TTL cleanup.

WHY: The HTTP API lets a client assemble cues once and then retime,
reposition and re-export them over several requests. Each client needs
its own Cue Store that survives between requests, and abandoned sessions
must not accumulate forever. An in-memory registry is sufficient for a
single-team tool with no persistence requirements.

HOW: Two components work together:
  Session       — dataclass holding one CueStore plus the aspect ratio and
                  media duration the cues are edited against
  SessionStore  — thread-safe dict-based registry with create/get/delete
                  and idle-TTL cleanup

RULES:
- All registry mutations are protected by threading.Lock
- Session IDs are uuid4().hex strings generated at creation time
- TTL is measured from updated_at (last activity), not created_at
- create() raises ValueError when max_sessions is reached
- get() returns None for unknown IDs (no exceptions)
"""

from __future__ import annotations

import logging
import threading
import time
import uuid
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from subtitle_editor.config import MAX_SESSIONS, SESSION_TTL_SECONDS
from subtitle_editor.core.ir import AspectRatio, Cue, Word
from subtitle_editor.core.store import CueStore

logger = logging.getLogger(__name__)


@dataclass
class Session:
    """One client's cue list and the frame it is edited in.

    RULES:
    - id: uuid4 hex string, immutable after creation
    - store: the session's CueStore (owns the edit snapshot too)
    - aspect: preview aspect ratio, picks geometry defaults
    - media_duration: timeline length in seconds, bounds all retiming
    - words: the validated provider words, kept for re-assembly
    - created_at / updated_at: epoch seconds; updated_at drives expiry
    """

    id: str
    store: CueStore
    aspect: AspectRatio
    media_duration: float
    created_at: float
    updated_at: float
    words: List[Word] = field(default_factory=list)

    def touch(self) -> None:
        self.updated_at = time.time()


class SessionStore:
    """Thread-safe in-memory registry of editing sessions."""

    def __init__(
        self,
        ttl_seconds: int = SESSION_TTL_SECONDS,
        max_sessions: int = MAX_SESSIONS,
    ) -> None:
        self._sessions: Dict[str, Session] = {}
        self._lock = threading.Lock()
        self._ttl_seconds = ttl_seconds
        self.max_sessions = max_sessions

    def create(
        self,
        cues: Sequence[Cue],
        aspect: AspectRatio | str,
        media_duration: float,
        words: Optional[Sequence[Word]] = None,
    ) -> Session:
        """Register a new session holding a copy of ``cues``.

        Raises:
            ValueError: If the registry already holds max_sessions sessions.
        """
        aspect = AspectRatio.parse(aspect)
        with self._lock:
            if len(self._sessions) >= self.max_sessions:
                raise ValueError(
                    "Maximum number of concurrent sessions ({}) reached".format(
                        self.max_sessions
                    )
                )

            session_id = uuid.uuid4().hex
            now = time.time()
            session = Session(
                id=session_id,
                store=CueStore(cues),
                aspect=aspect,
                media_duration=media_duration,
                created_at=now,
                updated_at=now,
                words=list(words or []),
            )
            self._sessions[session_id] = session

        logger.info("Created session %s (%d cues, %s)", session_id, len(cues), aspect.value)
        return session

    def get(self, session_id: str) -> Optional[Session]:
        """Return the live session, or None if unknown or already expired."""
        with self._lock:
            return self._sessions.get(session_id)

    def list_sessions(self) -> List[Session]:
        """Return all sessions, oldest first."""
        with self._lock:
            return sorted(self._sessions.values(), key=lambda s: s.created_at)

    def delete(self, session_id: str) -> bool:
        with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        logger.info("Deleted session %s", session_id)
        return True

    def cleanup_expired(self) -> int:
        """Remove every session idle for longer than the TTL.

        Returns:
            The number of sessions removed.
        """
        now = time.time()
        expired: List[Session] = []

        with self._lock:
            for session_id, session in list(self._sessions.items()):
                if now - session.updated_at > self._ttl_seconds:
                    expired.append(self._sessions.pop(session_id))

        for session in expired:
            logger.info("Expired session %s (idle %.0fs)", session.id, now - session.updated_at)

        return len(expired)
