"""
Groq API transcription service implementation.
"""
from typing import Dict, Any, Optional

from groq import AsyncGroq

from voice_journal.services.transcription import TranscriptionService
from voice_journal.utils.logger import get_logger

logger = get_logger("transcription.groq")


class GroqTranscriptionService(TranscriptionService):
    """
    Groq API implementation for transcription using Whisper models.
    Uses Groq's cloud-hosted Whisper API.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "whisper-large-v3"
    ):
        """
        Initialize Groq transcription service.

        Args:
            api_key: Groq API key
            model: Groq Whisper model name (default: whisper-large-v3)
        """
        self.model = model
        self.client = AsyncGroq(api_key=api_key)

        logger.info(f"GroqTranscriptionService initialized with model={model}")

    async def transcribe_audio(
        self,
        audio: bytes,
        filename: str = "recording.webm",
        language: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Transcribe audio using Groq's Whisper API.

        Args:
            audio: Encoded audio bytes
            filename: Filename passed to the API (extension selects the decoder)
            language: Language code or None/'auto' for automatic detection

        Returns:
            Dict with transcription result

        Raises:
            ValueError: If audio is empty
            RuntimeError: If transcription fails
        """
        if not audio:
            raise ValueError("No audio data provided")

        logger.info(
            f"Starting Groq transcription: size={len(audio)} bytes, "
            f"language={language}, model={self.model}"
        )

        transcription_params = {
            "file": (filename, audio),
            "model": self.model,
            "response_format": "verbose_json",
        }
        if language and language.lower() != "auto":
            transcription_params["language"] = language

        try:
            response = await self.client.audio.transcriptions.create(**transcription_params)
        except Exception as e:
            logger.error(f"Groq transcription failed: error={str(e)}", exc_info=True)
            raise RuntimeError(f"Groq transcription failed: {str(e)}") from e

        transcribed_text = response.text
        detected_language = getattr(response, "language", None) or language

        logger.info(
            f"Groq transcription completed: language={detected_language}, "
            f"length={len(transcribed_text)} chars"
        )

        return {
            "text": transcribed_text,
            "language": detected_language,
        }

    def get_model_name(self) -> str:
        """Return model name in format: groq-{model}"""
        return f"groq-{self.model}"
