"""Tests for the FastAPI session API.

WHY: Validates every endpoint: happy paths, the malformed-input path
that must not create a session, partial cue updates normalised by the
editor clamps, the cancellable edit session, karaoke queries, and export.

HOW: Each test creates a session through the API with the shared sample
payload (timing offset 0, so cue times equal word times) and inspects
response codes and bodies.

RULES:
- All tests use the FastAPI TestClient (synchronous)
- The session store is cleared before and after each test
- Tests cover: happy paths, 404 not found, 409 conflict, 422 invalid input
"""

from __future__ import annotations

import logging
import time

import pytest
from fastapi.testclient import TestClient

from subtitle_editor.formatters import FORMATTERS
from subtitle_editor.formatters.base import BaseFormatter
from subtitle_editor.server.app import app, session_store
from subtitle_editor.server.sessions import SessionStore


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_session_store():
    """Clear all sessions before each test to ensure isolation."""
    session_store._sessions.clear()
    yield
    session_store._sessions.clear()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def session(client, sample_payload):
    """A landscape session with cues 0 ("Hello world") and 1 ("again")."""
    response = client.post(
        "/sessions",
        json={"words": sample_payload, "aspect_ratio": "landscape", "timing_offset_ms": 0},
    )
    assert response.status_code == 201
    return response.json()


# ---------------------------------------------------------------------------
# POST /sessions
# ---------------------------------------------------------------------------


class TestCreateSession:

    def test_returns_cues(self, session):
        assert session["aspect_ratio"] == "landscape"
        assert session["editing"] is False
        assert session["media_duration"] == pytest.approx(2.5)
        assert [c["text"] for c in session["cues"]] == ["Hello world", "again"]
        assert [c["id"] for c in session["cues"]] == [0, 1]
        first = session["cues"][0]
        assert first["start"] == pytest.approx(0.0)
        assert first["end"] == pytest.approx(0.9)
        assert [w["word"] for w in first["words"]] == ["Hello", "world"]
        assert first["line"] is None

    def test_portrait_preset(self, client, sample_payload):
        response = client.post(
            "/sessions",
            json={"words": sample_payload, "aspect_ratio": "portrait", "timing_offset_ms": 0},
        )
        assert response.status_code == 201
        assert response.json()["aspect_ratio"] == "portrait"

    def test_policy_override(self, client, sample_payload):
        response = client.post(
            "/sessions",
            json={"words": sample_payload, "policy": {"max_words_per_cue": 1}, "timing_offset_ms": 0},
        )
        assert response.status_code == 201
        assert len(response.json()["cues"]) == 3

    def test_explicit_media_duration(self, client, sample_payload):
        response = client.post(
            "/sessions",
            json={"words": sample_payload, "media_duration": 30.0},
        )
        assert response.json()["media_duration"] == pytest.approx(30.0)

    def test_default_offset_applied(self, client, sample_payload):
        from subtitle_editor.config import TIMING_OFFSET_S
        response = client.post("/sessions", json={"words": sample_payload})
        assert response.json()["cues"][1]["start"] == pytest.approx(2.0 - TIMING_OFFSET_S)

    def test_malformed_words_create_nothing(self, client):
        response = client.post(
            "/sessions",
            json={"words": [{"word": "a", "start": 0.0}]},
        )
        assert response.status_code == 422
        assert "word 0" in response.json()["detail"]
        assert session_store._sessions == {}

    def test_infinite_word_time_creates_nothing(self, client):
        response = client.post(
            "/sessions",
            content='{"words": [{"word": "a", "start": 0, "end": Infinity}]}',
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 422
        assert "not a finite number" in response.json()["detail"]
        assert session_store._sessions == {}

    def test_words_not_a_list(self, client):
        response = client.post("/sessions", json={"words": {"word": "a"}})
        assert response.status_code == 422
        assert "JSON array" in response.json()["detail"]

    def test_unknown_aspect(self, client, sample_payload):
        response = client.post("/sessions", json={"words": sample_payload, "aspect_ratio": "square"})
        assert response.status_code == 422

    def test_invalid_policy(self, client, sample_payload):
        response = client.post(
            "/sessions",
            json={"words": sample_payload, "policy": {"pause_threshold": 0}},
        )
        assert response.status_code == 422

    def test_too_many_sessions(self, client, sample_payload, monkeypatch):
        monkeypatch.setattr(session_store, "max_sessions", 1)
        assert client.post("/sessions", json={"words": sample_payload}).status_code == 201
        response = client.post("/sessions", json={"words": sample_payload})
        assert response.status_code == 429


# ---------------------------------------------------------------------------
# GET / DELETE /sessions/{id}
# ---------------------------------------------------------------------------


class TestSessionLookup:

    def test_get(self, client, session):
        response = client.get("/sessions/{}".format(session["id"]))
        assert response.status_code == 200
        assert response.json()["cues"] == session["cues"]

    def test_unknown(self, client):
        assert client.get("/sessions/nope").status_code == 404

    def test_delete(self, client, session):
        url = "/sessions/{}".format(session["id"])
        assert client.delete(url).status_code == 204
        assert client.get(url).status_code == 404
        assert client.delete(url).status_code == 404


# ---------------------------------------------------------------------------
# Cues
# ---------------------------------------------------------------------------


class TestCues:

    def _url(self, session, cue_id):
        return "/sessions/{}/cues/{}".format(session["id"], cue_id)

    def test_get_cue(self, client, session):
        response = client.get(self._url(session, 1))
        assert response.status_code == 200
        assert response.json()["text"] == "again"

    def test_unknown_cue(self, client, session):
        assert client.get(self._url(session, 9)).status_code == 404
        assert client.patch(self._url(session, 9), json={"text": "x"}).status_code == 404

    def test_patch_text(self, client, session):
        response = client.patch(self._url(session, 0), json={"text": "  Hi there "})
        assert response.status_code == 200
        assert response.json()["text"] == "Hi there"

    def test_blank_text_ignored(self, client, session):
        response = client.patch(self._url(session, 0), json={"text": "   "})
        assert response.json()["text"] == "Hello world"

    def test_start_past_end_keeps_min_separation(self, client, session):
        cue = client.patch(self._url(session, 0), json={"start": 5.0}).json()
        assert cue["end"] == pytest.approx(0.9)
        assert cue["start"] == pytest.approx(0.89)

    def test_end_clamped_to_media(self, client, session):
        cue = client.patch(self._url(session, 1), json={"end": 10.0}).json()
        assert cue["start"] == pytest.approx(2.0)
        assert cue["end"] == pytest.approx(2.5)

    def test_both_edges_past_media_end(self, client, session):
        cue = client.patch(self._url(session, 1), json={"start": 9.0, "end": 10.0}).json()
        assert cue["end"] == pytest.approx(2.5)
        assert cue["start"] == pytest.approx(2.49)
        assert cue["end"] <= session["media_duration"]

    def test_non_finite_time_rejected(self, client, session):
        response = client.patch(
            self._url(session, 1),
            content='{"end": Infinity}',
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 422

    def test_negative_start_clamped(self, client, session):
        cue = client.patch(self._url(session, 1), json={"start": -3.0}).json()
        assert cue["start"] == 0.0

    def test_retime_resorts(self, client, session):
        client.patch(self._url(session, 0), json={"start": 2.2, "end": 2.4})
        cues = client.get("/sessions/{}".format(session["id"])).json()["cues"]
        assert [c["id"] for c in cues] == [1, 0]

    def test_geometry_clamped(self, client, session):
        cue = client.patch(
            self._url(session, 0),
            json={"line": 200.0, "width": 5.0, "font_size": 10.0},
        ).json()
        assert cue["line"] == pytest.approx(95.0)
        assert cue["width"] == pytest.approx(10.0)
        assert cue["font_size"] == pytest.approx(6.0)

    def test_empty_patch_is_noop(self, client, session):
        cue = client.patch(self._url(session, 0), json={}).json()
        assert cue == session["cues"][0]


# ---------------------------------------------------------------------------
# Edit session
# ---------------------------------------------------------------------------


class TestEditSession:

    def _post(self, client, session, path):
        return client.post("/sessions/{}/{}".format(session["id"], path))

    def test_cancel_restores(self, client, session):
        assert self._post(client, session, "edit").json()["editing"] is True
        client.patch("/sessions/{}/cues/0".format(session["id"]), json={"text": "draft", "line": 10})

        response = self._post(client, session, "edit/cancel")
        assert response.status_code == 200
        body = response.json()
        assert body["editing"] is False
        assert body["cues"] == session["cues"]

    def test_save_keeps_changes(self, client, session):
        self._post(client, session, "edit")
        client.patch("/sessions/{}/cues/0".format(session["id"]), json={"text": "kept"})
        body = self._post(client, session, "edit/save").json()
        assert body["editing"] is False
        assert body["cues"][0]["text"] == "kept"

    def test_cancel_without_edit(self, client, session):
        assert self._post(client, session, "edit/cancel").status_code == 409

    def test_save_without_edit(self, client, session):
        assert self._post(client, session, "edit/save").status_code == 409

    def test_unknown_session(self, client):
        assert client.post("/sessions/nope/edit").status_code == 404


# ---------------------------------------------------------------------------
# Re-assembly
# ---------------------------------------------------------------------------


class TestReassemble:

    def test_new_policy(self, client, session):
        response = client.post(
            "/sessions/{}/assemble".format(session["id"]),
            json={"policy": {"max_words_per_cue": 1}, "timing_offset_ms": 0},
        )
        assert response.status_code == 200
        assert [c["text"] for c in response.json()["cues"]] == ["Hello", "world", "again"]

    def test_switch_aspect(self, client, session):
        response = client.post(
            "/sessions/{}/assemble".format(session["id"]),
            json={"aspect_ratio": "portrait"},
        )
        assert response.json()["aspect_ratio"] == "portrait"

    def test_refused_while_editing(self, client, session):
        client.post("/sessions/{}/edit".format(session["id"]))
        response = client.post("/sessions/{}/assemble".format(session["id"]), json={})
        assert response.status_code == 409


# ---------------------------------------------------------------------------
# Active cue
# ---------------------------------------------------------------------------


class TestActiveCue:

    def _get(self, client, session, t):
        return client.get("/sessions/{}/active".format(session["id"]), params={"time": t})

    def test_karaoke_states(self, client, session):
        body = self._get(client, session, 0.5).json()
        assert body["cue"]["id"] == 0
        assert [w["state"] for w in body["words"]] == ["spoken", "current"]

    def test_between_cues(self, client, session):
        body = self._get(client, session, 1.5).json()
        assert body["cue"] is None
        assert body["words"] == []

    def test_end_is_exclusive(self, client, session):
        assert self._get(client, session, 0.9).json()["cue"] is None

    def test_time_required(self, client, session):
        response = client.get("/sessions/{}/active".format(session["id"]))
        assert response.status_code == 422


# ---------------------------------------------------------------------------
# Export, formats, health
# ---------------------------------------------------------------------------


class TestExport:

    def test_srt(self, client, session):
        response = client.get("/sessions/{}/export/srt".format(session["id"]))
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("application/x-subrip")
        assert "attachment" in response.headers["content-disposition"]
        assert response.text.startswith("1\n00:00:00,000 --> 00:00:00,900\nHello world\n")

    def test_vtt_carries_geometry(self, client, session):
        client.patch("/sessions/{}/cues/1".format(session["id"]), json={"line": 50, "width": 60})
        response = client.get("/sessions/{}/export/vtt".format(session["id"]))
        assert "line:50% size:60% position:50% align:middle" in response.text

    def test_formatter_failure_is_logged(self, client, session, monkeypatch, caplog):
        class BrokenFormatter(BaseFormatter):
            @property
            def name(self):
                return "Broken"

            def format(self, cues):
                raise RuntimeError("boom")

        monkeypatch.setitem(FORMATTERS, "broken", BrokenFormatter)
        with caplog.at_level(logging.ERROR, logger="subtitle_editor.server.app"):
            response = client.get("/sessions/{}/export/broken".format(session["id"]))
        assert response.status_code == 500
        assert "boom" in response.json()["detail"]
        assert any(r.exc_info for r in caplog.records)

    def test_unknown_format(self, client, session):
        response = client.get("/sessions/{}/export/ass".format(session["id"]))
        assert response.status_code == 404


class TestMeta:

    def test_formats(self, client):
        body = client.get("/formats").json()
        assert [f["key"] for f in body] == ["srt", "vtt"]
        assert body[1]["suffix"] == ".vtt"
        assert body[1]["media_type"] == "text/vtt"

    def test_health(self, client):
        body = client.get("/health").json()
        assert body["status"] == "ok"
        assert body["version"] == "0.1.0"


# ---------------------------------------------------------------------------
# SessionStore
# ---------------------------------------------------------------------------


class TestSessionStore:

    def test_cleanup_expired(self):
        store = SessionStore(ttl_seconds=60)
        old = store.create([], "landscape", 1.0)
        fresh = store.create([], "landscape", 1.0)
        old.updated_at = time.time() - 120

        assert store.cleanup_expired() == 1
        assert store.get(old.id) is None
        assert store.get(fresh.id) is fresh

    def test_limit(self):
        store = SessionStore(max_sessions=1)
        store.create([], "landscape", 1.0)
        with pytest.raises(ValueError):
            store.create([], "landscape", 1.0)
