"""Tests for pushing notes to AnkiConnect."""

import json

import httpx
import pytest

from modules.anki_connect import AnkiConnectClient
from modules.note_renderer import FlashcardNote
from modules.sync_coordinator import (
    PING_FAILED_FILE,
    REJECTED_FILE,
    TRANSPORT_FAILED_FILE,
    SyncConnectivityError,
    SyncCoordinator,
    SyncRejectedError,
    SyncTransportError,
)

ANKI_URL = "http://127.0.0.1:8765"


def make_notes(count=2):
    return [
        FlashcardNote(
            deck_name="az-900",
            model_name="Basic",
            front=f"<div>Front {i}</div>",
            back=f"<div>Back {i}</div>",
            tags=["az900"],
        )
        for i in range(count)
    ]


class RecordingAnki:
    """MockTransport handler that records request bodies and answers per action."""

    def __init__(self, responses):
        self.responses = responses
        self.requests = []

    def __call__(self, request):
        body = json.loads(request.content)
        self.requests.append(body)
        response = self.responses[body["action"]]
        if isinstance(response, Exception):
            raise response
        return response


def coordinator_for(handler, recovery_dir):
    transport = httpx.MockTransport(handler)
    return SyncCoordinator(
        recovery_dir=recovery_dir,
        client_factory=lambda url: AnkiConnectClient(url, transport=transport),
    )


class TestPush:
    """Tests for SyncCoordinator.push."""

    def test_success_sends_version_then_one_batch(self, tmp_path):
        notes = make_notes()
        anki = RecordingAnki({
            "version": httpx.Response(200, json={"result": 6, "error": None}),
            "addNotes": httpx.Response(200, json={"result": [1001, None], "error": None}),
        })

        results = coordinator_for(anki, tmp_path).push(notes, ANKI_URL)

        assert results == [1001, None]
        assert anki.requests == [
            {"action": "version", "version": 6},
            {
                "action": "addNotes",
                "version": 6,
                "params": {"notes": [note.to_anki() for note in notes]},
            },
        ]
        assert list(tmp_path.iterdir()) == []

    @pytest.mark.parametrize(
        "liveness",
        [httpx.ConnectError("connection refused"), httpx.Response(503, text="unavailable")],
    )
    def test_liveness_failure_saves_notes_and_sends_nothing(self, tmp_path, liveness):
        notes = make_notes(3)
        anki = RecordingAnki({"version": liveness})

        with pytest.raises(SyncConnectivityError) as exc_info:
            coordinator_for(anki, tmp_path).push(notes, ANKI_URL)

        assert [r["action"] for r in anki.requests] == ["version"]
        recovery = tmp_path / PING_FAILED_FILE
        assert exc_info.value.recovery_path == recovery
        assert json.loads(recovery.read_text(encoding="utf-8")) == [n.to_anki() for n in notes]

    def test_rejected_batch_saves_notes(self, tmp_path):
        notes = make_notes()
        anki = RecordingAnki({
            "version": httpx.Response(200, json={"result": 6, "error": None}),
            "addNotes": httpx.Response(200, json={"result": None, "error": "deck was not found"}),
        })

        with pytest.raises(SyncRejectedError, match="deck was not found") as exc_info:
            coordinator_for(anki, tmp_path).push(notes, ANKI_URL)

        recovery = tmp_path / REJECTED_FILE
        assert exc_info.value.recovery_path == recovery
        assert len(json.loads(recovery.read_text(encoding="utf-8"))) == 2

    @pytest.mark.parametrize(
        "add_notes",
        [
            httpx.ReadTimeout("timed out"),
            httpx.Response(200, text="<html>not json</html>"),
            httpx.Response(200, json={"unexpected": True}),
            httpx.Response(500, text="boom"),
        ],
    )
    def test_transport_failure_saves_notes(self, tmp_path, add_notes):
        anki = RecordingAnki({
            "version": httpx.Response(200, json={"result": 6, "error": None}),
            "addNotes": add_notes,
        })

        with pytest.raises(SyncTransportError) as exc_info:
            coordinator_for(anki, tmp_path).push(make_notes(), ANKI_URL)

        recovery = tmp_path / TRANSPORT_FAILED_FILE
        assert exc_info.value.recovery_path == recovery
        assert recovery.exists()

    def test_unwritable_recovery_dir_still_raises_push_error(self, tmp_path):
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("", encoding="utf-8")
        anki = RecordingAnki({"version": httpx.ConnectError("connection refused")})

        with pytest.raises(SyncConnectivityError) as exc_info:
            coordinator_for(anki, blocker).push(make_notes(), ANKI_URL)

        assert exc_info.value.recovery_path is None

    def test_empty_batch_makes_no_request(self, tmp_path):
        anki = RecordingAnki({})

        assert coordinator_for(anki, tmp_path).push([], ANKI_URL) == []
        assert anki.requests == []

    def test_target_url_is_used(self, tmp_path):
        seen = []

        def handler(request):
            seen.append((request.url.host, request.url.port))
            return httpx.Response(200, json={"result": 6, "error": None})

        transport = httpx.MockTransport(handler)
        coordinator = SyncCoordinator(
            recovery_dir=tmp_path,
            client_factory=lambda url: AnkiConnectClient(url, transport=transport),
        )

        with pytest.raises(SyncTransportError):
            # version answers 6 for addNotes too, which is not a list
            coordinator.push(make_notes(1), "http://anki.local:9999")

        assert seen == [("anki.local", 9999), ("anki.local", 9999)]


class TestExportOnly:
    """Tests for writing notes without contacting Anki."""

    def test_writes_anki_note_objects(self, tmp_path):
        notes = make_notes()
        path = tmp_path / "out" / "notes.json"

        written = SyncCoordinator(recovery_dir=tmp_path).export_only(notes, path)

        assert written == path
        data = json.loads(path.read_text(encoding="utf-8"))
        assert data == [note.to_anki() for note in notes]
        assert data[0]["fields"] == {"Front": "<div>Front 0</div>", "Back": "<div>Back 0</div>"}
