"""
NoOp Transcription Service for testing.
Returns mock data without calling any actual transcription service.
"""
from typing import Dict, Any, Optional

from voice_journal.services.transcription import TranscriptionService
from voice_journal.utils.logger import get_logger


logger = get_logger("services.transcription_noop")


class NoOpTranscriptionService(TranscriptionService):
    """No-operation transcription service for testing."""

    def __init__(self, model_name: str = "noop-whisper-test"):
        self.model_name = model_name

    async def transcribe_audio(
        self,
        audio: bytes,
        filename: str = "recording.webm",
        language: Optional[str] = None
    ) -> Dict[str, Any]:
        if not audio:
            raise ValueError("No audio data provided")

        logger.info(f"NoOp transcription called for {len(audio)} bytes, language={language}")

        return {
            "text": f"[NoOp Transcription] {len(audio)} bytes of audio from {filename}",
            "language": language or "pt",
        }

    def get_model_name(self) -> str:
        return self.model_name
