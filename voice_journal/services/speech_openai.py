"""
OpenAI-compatible /audio/speech implementation.
"""
import httpx

from voice_journal.services.speech import SpeechSynthesisService
from voice_journal.utils.logger import get_logger

logger = get_logger("services.speech_openai")


class OpenAISpeechSynthesisService(SpeechSynthesisService):
    """Calls an OpenAI-compatible text-to-speech endpoint and returns MP3 bytes."""

    def __init__(
        self,
        api_key: str,
        url: str,
        model: str = "tts-1",
        voice: str = "alloy",
        timeout: float = 60.0
    ):
        self.api_key = api_key
        self.url = url
        self.model = model
        self.voice = voice
        self.timeout = timeout

        logger.info(f"OpenAISpeechSynthesisService initialized with model={model}, voice={voice}")

    async def synthesize(self, text: str) -> bytes:
        if not text:
            raise ValueError("No text provided")

        payload = {
            "model": self.model,
            "input": text,
            "voice": self.voice,
            "response_format": "mp3",
        }

        logger.info("Requesting speech synthesis", text_length=len(text), model=self.model)

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    self.url,
                    headers={
                        "Authorization": f"Bearer {self.api_key}",
                        "Content-Type": "application/json",
                    },
                    json=payload
                )
        except httpx.HTTPError as e:
            logger.error("Speech synthesis request failed", error=str(e), exc_info=True)
            raise RuntimeError(f"Speech synthesis failed: {str(e)}") from e

        if not response.is_success:
            logger.error(
                "Speech synthesis error",
                status_code=response.status_code,
                body=response.text
            )
            raise RuntimeError(f"Speech synthesis failed: {response.status_code} - {response.text}")

        logger.info("Speech synthesis completed", size_bytes=len(response.content))
        return response.content
