"""
Unit tests for speech synthesis services.
"""
import httpx
import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from voice_journal.services.speech import NoOpSpeechSynthesisService, create_speech_service
from voice_journal.services.speech_openai import OpenAISpeechSynthesisService

SPEECH_URL = "https://speech.test/v1/audio/speech"


def mock_http(mock_client_class, status_code=200, content=b"", text=""):
    mock_response = MagicMock()
    mock_response.status_code = status_code
    mock_response.is_success = 200 <= status_code < 300
    mock_response.content = content
    mock_response.text = text

    mock_client = AsyncMock()
    mock_client.post = AsyncMock(return_value=mock_response)
    mock_client.__aenter__.return_value = mock_client
    mock_client.__aexit__.return_value = False
    mock_client_class.return_value = mock_client
    return mock_client


@pytest.mark.asyncio
async def test_openai_synthesize_success():
    service = OpenAISpeechSynthesisService(api_key="test-key", url=SPEECH_URL, voice="nova")

    with patch("httpx.AsyncClient") as mock_client_class:
        mock_client = mock_http(mock_client_class, content=b"ID3mp3-data")

        audio = await service.synthesize("Você parece em paz.")

    assert audio == b"ID3mp3-data"
    payload = mock_client.post.call_args.kwargs["json"]
    assert payload == {
        "model": "tts-1",
        "input": "Você parece em paz.",
        "voice": "nova",
        "response_format": "mp3",
    }


@pytest.mark.asyncio
async def test_openai_synthesize_error_status():
    service = OpenAISpeechSynthesisService(api_key="test-key", url=SPEECH_URL)

    with patch("httpx.AsyncClient") as mock_client_class:
        mock_http(mock_client_class, status_code=401, text="invalid api key")

        with pytest.raises(RuntimeError, match="401 - invalid api key"):
            await service.synthesize("texto")


@pytest.mark.asyncio
async def test_openai_synthesize_network_error():
    service = OpenAISpeechSynthesisService(api_key="test-key", url=SPEECH_URL)

    with patch("httpx.AsyncClient") as mock_client_class:
        mock_client = mock_http(mock_client_class)
        mock_client.post = AsyncMock(side_effect=httpx.ReadTimeout("timed out"))

        with pytest.raises(RuntimeError, match="Speech synthesis failed"):
            await service.synthesize("texto")


@pytest.mark.asyncio
async def test_synthesize_rejects_empty_text():
    with pytest.raises(ValueError):
        await OpenAISpeechSynthesisService(api_key="k", url=SPEECH_URL).synthesize("")
    with pytest.raises(ValueError):
        await NoOpSpeechSynthesisService().synthesize("")


@pytest.mark.asyncio
async def test_noop_synthesize_returns_bytes():
    audio = await NoOpSpeechSynthesisService().synthesize("olá")

    assert audio.startswith(b"ID3")


def test_factory_openai_requires_api_key():
    with patch("voice_journal.services.speech.settings") as mock_settings:
        mock_settings.SPEECH_API_KEY = None

        with pytest.raises(ValueError, match="SPEECH_API_KEY"):
            create_speech_service("openai")


def test_factory_noop_and_unknown():
    assert isinstance(create_speech_service("noop"), NoOpSpeechSynthesisService)

    with pytest.raises(ValueError, match="Unsupported speech provider"):
        create_speech_service("polly")
