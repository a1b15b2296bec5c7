"""
WebSocket endpoint for in-browser recording.

The browser owns the microphone; this endpoint owns the recording session.

Protocol:
    client -> server
        {"type": "start", "granted": bool, "error"?: str}
        binary frames with encoded audio fragments
        {"type": "stop"}
    server -> client
        connected, recording_started, tick {elapsed, display},
        notification {title, description}, release_device,
        processing, entry_created {entry}, error {detail}

A finished recording runs the record pipeline on the same connection.
"""
import json
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, WebSocket, status
from sqlalchemy.ext.asyncio import AsyncSession

from voice_journal.config import settings
from voice_journal.database import get_db
from voice_journal.middleware.jwt import authenticate_token
from voice_journal.routes.entries import function_error_to_http, to_response
from voice_journal.schemas.auth import AuthenticatedUser
from voice_journal.services.functions_client import FunctionInvocationError
from voice_journal.services.journal_pipeline import JournalPipeline, get_journal_pipeline
from voice_journal.services.recording import (
    AudioDevice,
    MicrophoneAccessError,
    RecordingSession,
    RecordingStateError,
    RecordingTooLargeError,
    format_elapsed,
)
from voice_journal.utils.logger import get_logger
from voice_journal.utils.validators import file_too_large_detail

logger = get_logger("recorder")
router = APIRouter()

MICROPHONE_ERROR_TITLE = "Erro ao acessar microfone"
MICROPHONE_ERROR_DESCRIPTION = "Verifique as permissões do navegador"


class ClientMicrophone(AudioDevice):
    """The browser's microphone, as reported by the client's start message."""

    def __init__(self, websocket: WebSocket, granted: bool, error: Optional[str] = None):
        self.websocket = websocket
        self.granted = granted
        self.error = error

    async def open(self) -> None:
        if not self.granted:
            raise PermissionError(self.error or "Permission denied")

    async def close(self) -> None:
        # Tells the client to stop its media tracks
        await self.websocket.send_json({"type": "release_device"})


class RecorderConnection:
    """One client connection driving a recording session."""

    def __init__(
        self,
        websocket: WebSocket,
        user: AuthenticatedUser,
        db: AsyncSession,
        pipeline: JournalPipeline
    ):
        self.websocket = websocket
        self.user = user
        self.db = db
        self.pipeline = pipeline
        self.session = RecordingSession(
            on_tick=self.send_tick,
            tick_interval=settings.RECORDING_TICK_SECONDS,
            max_bytes=settings.max_file_size_bytes
        )

    async def send(self, message_type: str, **data: Any) -> None:
        await self.websocket.send_json({"type": message_type, **data})

    async def send_tick(self, elapsed: int) -> None:
        await self.send("tick", elapsed=elapsed, display=format_elapsed(elapsed))

    async def handle_control(self, message: dict) -> None:
        message_type = message.get("type")

        if message_type == "start":
            await self.start(bool(message.get("granted")), message.get("error"))
        elif message_type == "stop":
            await self.stop()
        else:
            await self.send("error", detail=f"Unknown message type: {message_type}")

    async def start(self, granted: bool, error: Optional[str]) -> None:
        try:
            await self.session.start(ClientMicrophone(self.websocket, granted, error))
        except MicrophoneAccessError:
            await self.send(
                "notification",
                title=MICROPHONE_ERROR_TITLE,
                description=MICROPHONE_ERROR_DESCRIPTION
            )
            return
        except RecordingStateError as e:
            await self.send("error", detail=str(e))
            return

        await self.send("recording_started")

    async def stop(self) -> None:
        try:
            blob = await self.session.stop()
        except RecordingStateError as e:
            await self.send("error", detail=str(e))
            return

        await self.send("processing", size_bytes=blob.size)

        try:
            entry = await self.pipeline.record_entry(self.db, self.user, blob)
        except FunctionInvocationError as e:
            await self.send("error", detail=function_error_to_http(e).detail)
            return
        except HTTPException as e:
            await self.send("error", detail=e.detail)
            return

        await self.send("entry_created", entry=to_response(entry).model_dump(mode="json"))

    async def add_audio(self, data: bytes) -> None:
        if not self.session.is_recording:
            logger.debug("Audio fragment received while idle, dropped", size_bytes=len(data))
            return

        try:
            self.session.add_chunk(data)
        except RecordingTooLargeError:
            await self.session.abort()
            await self.send("error", detail=file_too_large_detail())

    async def run(self) -> None:
        """Process client messages until the socket closes."""
        try:
            while True:
                message = await self.websocket.receive()
                if message["type"] == "websocket.disconnect":
                    break

                if message.get("bytes") is not None:
                    await self.add_audio(message["bytes"])
                    continue

                try:
                    control = json.loads(message.get("text") or "")
                except json.JSONDecodeError:
                    await self.send("error", detail="Invalid message")
                    continue
                if not isinstance(control, dict):
                    await self.send("error", detail="Invalid message")
                    continue

                await self.handle_control(control)
        finally:
            # Drops a recording left running by a closed tab
            await self.session.abort()


@router.websocket("/ws/record")
async def record_ws(
    websocket: WebSocket,
    token: str = Query(...),
    db: AsyncSession = Depends(get_db),
    pipeline: JournalPipeline = Depends(get_journal_pipeline)
) -> None:
    """
    Recording endpoint authenticated by an access token in the query string.
    """
    try:
        user = authenticate_token(token)
    except HTTPException:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    logger.info("Recorder connected", user_id=str(user.user_id))
    await websocket.send_json({"type": "connected"})

    connection = RecorderConnection(websocket, user, db, pipeline)
    await connection.run()

    logger.info("Recorder disconnected", user_id=str(user.user_id))
