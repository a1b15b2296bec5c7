"""
Integration tests for the recording WebSocket.
"""
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from starlette.websockets import WebSocketDisconnect

from voice_journal.config import settings
from voice_journal.database import get_db
from voice_journal.main import app
from voice_journal.routes.recorder import MICROPHONE_ERROR_DESCRIPTION, MICROPHONE_ERROR_TITLE
from voice_journal.services.storage import storage_service


@pytest.fixture
def ws_client(override_db) -> TestClient:
    return TestClient(app)


class FailingCommitSession(AsyncSession):
    async def commit(self):
        raise OperationalError("COMMIT", {}, Exception("database is locked"))


@pytest.fixture
def failing_commit_client(session_factory) -> TestClient:
    """Client whose database sessions cannot commit."""
    factory = async_sessionmaker(
        bind=session_factory.kw["bind"],
        class_=FailingCommitSession,
        expire_on_commit=False
    )

    async def override_get_db():
        async with factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def receive_until(websocket, message_type: str) -> list[dict]:
    """Collect messages up to and including the first of `message_type`, ignoring ticks."""
    messages = []
    while True:
        message = websocket.receive_json()
        if message["type"] == "tick":
            continue
        messages.append(message)
        if message["type"] == message_type:
            return messages


def test_rejects_invalid_token(ws_client: TestClient):
    with pytest.raises(WebSocketDisconnect):
        with ws_client.websocket_connect("/ws/record?token=invalid") as websocket:
            websocket.receive_json()


def test_record_entry_over_websocket(ws_client: TestClient, access_token: str, user_id):
    with ws_client.websocket_connect(f"/ws/record?token={access_token}") as websocket:
        assert websocket.receive_json() == {"type": "connected"}

        websocket.send_json({"type": "start", "granted": True})
        assert websocket.receive_json() == {"type": "recording_started"}

        websocket.send_bytes(b"\x1a\x45\xdf\xa3")
        websocket.send_bytes(b"opus-frames")

        tick = websocket.receive_json()
        assert tick == {"type": "tick", "elapsed": 1, "display": "0:01"}

        websocket.send_json({"type": "stop"})
        messages = receive_until(websocket, "entry_created")

    assert [m["type"] for m in messages] == ["release_device", "processing", "entry_created"]
    assert messages[1]["size_bytes"] == 15

    entry = messages[-1]["entry"]
    assert entry["transcription"] == "[NoOp Transcription] 15 bytes of audio from recording.webm"
    assert entry["audio_path"].startswith(f"{user_id}/")
    assert "generate_insights" in entry["card"]["actions"]

    response = ws_client.get("/api/v1/entries", headers={"Authorization": f"Bearer {access_token}"})
    assert response.json()["total"] == 1


def test_denied_microphone_then_retry(ws_client: TestClient, access_token: str):
    with ws_client.websocket_connect(f"/ws/record?token={access_token}") as websocket:
        websocket.receive_json()

        websocket.send_json({"type": "start", "granted": False, "error": "NotAllowedError"})
        assert websocket.receive_json() == {
            "type": "notification",
            "title": MICROPHONE_ERROR_TITLE,
            "description": MICROPHONE_ERROR_DESCRIPTION,
        }

        websocket.send_json({"type": "start", "granted": True})
        assert websocket.receive_json() == {"type": "recording_started"}


def test_empty_recording_reports_error(ws_client: TestClient, access_token: str):
    with ws_client.websocket_connect(f"/ws/record?token={access_token}") as websocket:
        websocket.receive_json()
        websocket.send_json({"type": "start", "granted": True})
        websocket.receive_json()

        websocket.send_json({"type": "stop"})
        messages = receive_until(websocket, "error")

    assert [m["type"] for m in messages] == ["release_device", "processing", "error"]
    assert messages[-1]["detail"] == "No audio data provided"

    response = ws_client.get("/api/v1/entries", headers={"Authorization": f"Bearer {access_token}"})
    assert response.json()["total"] == 0


def test_stop_while_idle(ws_client: TestClient, access_token: str):
    with ws_client.websocket_connect(f"/ws/record?token={access_token}") as websocket:
        websocket.receive_json()

        websocket.send_json({"type": "stop"})

        assert websocket.receive_json() == {"type": "error", "detail": "Not recording"}


def test_start_twice(ws_client: TestClient, access_token: str):
    with ws_client.websocket_connect(f"/ws/record?token={access_token}") as websocket:
        websocket.receive_json()
        websocket.send_json({"type": "start", "granted": True})
        websocket.receive_json()

        websocket.send_json({"type": "start", "granted": True})

        assert receive_until(websocket, "error")[-1]["detail"] == "Recording already in progress"


def test_invalid_messages(ws_client: TestClient, access_token: str):
    with ws_client.websocket_connect(f"/ws/record?token={access_token}") as websocket:
        websocket.receive_json()

        websocket.send_text("not json")
        assert websocket.receive_json() == {"type": "error", "detail": "Invalid message"}

        websocket.send_json({"type": "pause"})
        assert websocket.receive_json() == {"type": "error", "detail": "Unknown message type: pause"}


def test_oversized_recording_is_aborted(ws_client: TestClient, access_token: str, monkeypatch):
    monkeypatch.setattr(settings, "MAX_FILE_SIZE_MB", 0)

    with ws_client.websocket_connect(f"/ws/record?token={access_token}") as websocket:
        websocket.receive_json()
        websocket.send_json({"type": "start", "granted": True})
        websocket.receive_json()

        websocket.send_bytes(b"\x00" * 4096)
        messages = receive_until(websocket, "error")

        websocket.send_json({"type": "stop"})
        after_stop = receive_until(websocket, "error")

    assert [m["type"] for m in messages] == ["release_device", "error"]
    assert messages[-1]["detail"] == "File too large. Maximum size is 0MB"
    assert after_stop == [{"type": "error", "detail": "Not recording"}]

    response = ws_client.get("/api/v1/entries", headers={"Authorization": f"Bearer {access_token}"})
    assert response.json()["total"] == 0


def test_failed_commit_reports_error_and_removes_upload(
    failing_commit_client: TestClient, access_token: str, user_id
):
    with failing_commit_client.websocket_connect(f"/ws/record?token={access_token}") as websocket:
        websocket.receive_json()
        websocket.send_json({"type": "start", "granted": True})
        websocket.receive_json()

        websocket.send_bytes(b"\x1a\x45\xdf\xa3")
        websocket.send_json({"type": "stop"})
        messages = receive_until(websocket, "error")

    assert [m["type"] for m in messages] == ["release_device", "processing", "error"]
    assert messages[-1]["detail"] == "Failed to create database record"

    user_dir = storage_service.base_path / str(user_id)
    assert not user_dir.exists() or list(user_dir.iterdir()) == []
