"""
Speech synthesis service: text in, MP3 bytes out.
"""
from abc import ABC, abstractmethod
from typing import Optional

from voice_journal.config import settings
from voice_journal.utils.logger import get_logger

logger = get_logger("services.speech")


class SpeechSynthesisService(ABC):
    """Abstract base class for text-to-speech providers."""

    @abstractmethod
    async def synthesize(self, text: str) -> bytes:
        """
        Synthesize speech for a text.

        Args:
            text: Text to read aloud

        Returns:
            MP3-encoded audio

        Raises:
            ValueError: If text is empty
            RuntimeError: If the provider fails
        """
        pass


class NoOpSpeechSynthesisService(SpeechSynthesisService):
    """Returns a fixed byte payload instead of calling a provider."""

    async def synthesize(self, text: str) -> bytes:
        if not text:
            raise ValueError("No text provided")
        return b"ID3noop-speech:" + text[:64].encode("utf-8")


def create_speech_service(provider: Optional[str] = None) -> SpeechSynthesisService:
    """
    Factory function to create the speech synthesis service for a provider.

    Args:
        provider: "openai" or "noop". If None, uses settings.SPEECH_PROVIDER

    Raises:
        ValueError: If provider is not supported or not configured
    """
    provider = (provider or settings.SPEECH_PROVIDER).lower()

    if provider == "openai":
        if not settings.SPEECH_API_KEY:
            raise ValueError("SPEECH_API_KEY is required for the openai speech provider")

        from voice_journal.services.speech_openai import OpenAISpeechSynthesisService
        return OpenAISpeechSynthesisService(
            api_key=settings.SPEECH_API_KEY,
            url=settings.SPEECH_API_URL,
            model=settings.SPEECH_MODEL,
            voice=settings.SPEECH_VOICE
        )

    if provider == "noop":
        return NoOpSpeechSynthesisService()

    raise ValueError(
        f"Unsupported speech provider: {provider}. "
        f"Supported providers: openai, noop"
    )
