"""
Transcription service for audio-to-text conversion.
Provides abstract base class and factory function.
"""
from abc import ABC, abstractmethod
from typing import Dict, Any, Optional
from voice_journal.utils.logger import get_logger

logger = get_logger("transcription")


class TranscriptionService(ABC):
    """
    Abstract base class for transcription services.
    Implementations receive the decoded audio bytes of one recording.
    """

    @abstractmethod
    async def transcribe_audio(
        self,
        audio: bytes,
        filename: str = "recording.webm",
        language: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Transcribe audio to text.

        Args:
            audio: Encoded audio bytes
            filename: Name sent to the provider; its extension tells the format
            language: Language code, or None/'auto' for detection

        Returns:
            Dict containing:
                - text: Transcribed text
                - language: Detected/used language

        Raises:
            ValueError: If audio is empty
            RuntimeError: If transcription fails
        """
        pass

    @abstractmethod
    def get_model_name(self) -> str:
        """
        Get the name/identifier of the model being used.

        Returns:
            Model name (e.g., 'groq-whisper-large-v3')
        """
        pass


def create_transcription_service(
    provider: str = "groq",
    model_name: Optional[str] = None,
    api_key: Optional[str] = None
) -> TranscriptionService:
    """
    Factory function to create transcription service based on provider.

    Args:
        provider: Provider name ("groq" or "noop")
        model_name: Name of the model (e.g., 'whisper-large-v3')
        api_key: API key for cloud providers

    Returns:
        TranscriptionService implementation

    Raises:
        ValueError: If provider is not supported or required params missing
    """
    provider = provider.lower()

    if provider == "groq":
        if api_key is None:
            raise ValueError("api_key is required for groq provider")
        if model_name is None:
            raise ValueError("model_name is required for groq provider")

        from voice_journal.services.transcription_groq import GroqTranscriptionService
        return GroqTranscriptionService(api_key=api_key, model=model_name)

    if provider == "noop":
        from voice_journal.services.transcription_noop import NoOpTranscriptionService
        return NoOpTranscriptionService()

    raise ValueError(
        f"Unsupported transcription provider: {provider}. "
        f"Supported providers: groq, noop"
    )
