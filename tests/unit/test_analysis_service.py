"""
Unit tests for the insights services.
Tests the gateway implementation with mocked HTTP responses.
"""
import httpx
import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from voice_journal.services.analysis import (
    AnalysisError,
    CREDITS_EXHAUSTED_MESSAGE,
    CreditsExhaustedError,
    RATE_LIMIT_MESSAGE,
    RateLimitExceededError,
    SYSTEM_PROMPT,
    build_messages,
    create_insights_service,
)
from voice_journal.services.analysis_gateway import GatewayInsightsService
from voice_journal.services.analysis_noop import NoOpInsightsService

GATEWAY_URL = "https://gateway.test/v1/chat/completions"


def make_service() -> GatewayInsightsService:
    return GatewayInsightsService(api_key="test-key", url=GATEWAY_URL, model="google/gemini-2.5-flash")


def mock_gateway(mock_client_class, status_code=200, json_data=None, text=""):
    mock_response = MagicMock()
    mock_response.status_code = status_code
    mock_response.is_success = 200 <= status_code < 300
    mock_response.json.return_value = json_data
    mock_response.text = text

    mock_client = AsyncMock()
    mock_client.post = AsyncMock(return_value=mock_response)
    mock_client.__aenter__.return_value = mock_client
    mock_client.__aexit__.return_value = False
    mock_client_class.return_value = mock_client
    return mock_client


def test_build_messages_with_timeframe():
    messages = build_messages("Fui ao parque.", "dia")

    assert [m["role"] for m in messages] == ["system", "user"]
    assert messages[0]["content"].startswith(SYSTEM_PROMPT)
    assert messages[0]["content"].endswith("Esta análise se refere ao período: dia")
    assert "Fui ao parque." in messages[1]["content"]
    assert "Sugestões para reflexão ou ação" in messages[1]["content"]


def test_build_messages_without_timeframe():
    messages = build_messages("Fui ao parque.")

    assert messages[0]["content"] == SYSTEM_PROMPT


@pytest.mark.asyncio
async def test_generate_insights_success():
    service = make_service()

    with patch("httpx.AsyncClient") as mock_client_class:
        mock_client = mock_gateway(
            mock_client_class,
            json_data={"choices": [{"message": {"content": "Você parece em paz."}}]}
        )

        insights = await service.generate_insights("Fui ao parque.", "dia")

    assert insights == "Você parece em paz."

    call = mock_client.post.call_args
    assert call.args[0] == GATEWAY_URL
    assert call.kwargs["headers"]["Authorization"] == "Bearer test-key"
    assert call.kwargs["json"]["model"] == "google/gemini-2.5-flash"
    assert call.kwargs["json"]["messages"] == build_messages("Fui ao parque.", "dia")


@pytest.mark.asyncio
async def test_generate_insights_accepts_any_2xx():
    service = make_service()

    with patch("httpx.AsyncClient") as mock_client_class:
        mock_gateway(
            mock_client_class,
            status_code=201,
            json_data={"choices": [{"message": {"content": "Dia produtivo."}}]}
        )

        insights = await service.generate_insights("Terminei o relatório.")

    assert insights == "Dia produtivo."


@pytest.mark.asyncio
async def test_generate_insights_rate_limited():
    service = make_service()

    with patch("httpx.AsyncClient") as mock_client_class:
        mock_gateway(mock_client_class, status_code=429, text="Too Many Requests")

        with pytest.raises(RateLimitExceededError) as exc_info:
            await service.generate_insights("texto")

    assert exc_info.value.status_code == 429
    assert exc_info.value.message == RATE_LIMIT_MESSAGE


@pytest.mark.asyncio
async def test_generate_insights_credits_exhausted():
    service = make_service()

    with patch("httpx.AsyncClient") as mock_client_class:
        mock_gateway(mock_client_class, status_code=402, text="Payment Required")

        with pytest.raises(CreditsExhaustedError) as exc_info:
            await service.generate_insights("texto")

    assert exc_info.value.status_code == 402
    assert exc_info.value.message == CREDITS_EXHAUSTED_MESSAGE


@pytest.mark.asyncio
async def test_generate_insights_upstream_error_keeps_raw_message():
    service = make_service()

    with patch("httpx.AsyncClient") as mock_client_class:
        mock_gateway(mock_client_class, status_code=500, text="model overloaded")

        with pytest.raises(AnalysisError) as exc_info:
            await service.generate_insights("texto")

    assert exc_info.value.status_code == 500
    assert "model overloaded" in exc_info.value.message
    assert exc_info.value.upstream_response == "model overloaded"


@pytest.mark.asyncio
async def test_generate_insights_network_error():
    service = make_service()

    with patch("httpx.AsyncClient") as mock_client_class:
        mock_client = mock_gateway(mock_client_class)
        mock_client.post = AsyncMock(side_effect=httpx.ConnectError("connection refused"))

        with pytest.raises(AnalysisError, match="connection refused"):
            await service.generate_insights("texto")


@pytest.mark.asyncio
async def test_generate_insights_unexpected_payload():
    service = make_service()

    with patch("httpx.AsyncClient") as mock_client_class:
        mock_gateway(mock_client_class, json_data={"choices": []}, text='{"choices": []}')

        with pytest.raises(AnalysisError, match="unexpected response"):
            await service.generate_insights("texto")


@pytest.mark.asyncio
async def test_noop_insights_mentions_timeframe():
    insights = await NoOpInsightsService().generate_insights("Fui ao parque.", "dia")

    assert insights == "[NoOp Insights (dia)] Fui ao parque."


def test_factory_gateway_requires_api_key():
    with patch("voice_journal.services.analysis.settings") as mock_settings:
        mock_settings.AI_GATEWAY_API_KEY = None

        with pytest.raises(ValueError, match="AI_GATEWAY_API_KEY"):
            create_insights_service("gateway")


def test_factory_gateway_uses_settings():
    with patch("voice_journal.services.analysis.settings") as mock_settings:
        mock_settings.AI_GATEWAY_API_KEY = "key"
        mock_settings.AI_GATEWAY_URL = GATEWAY_URL
        mock_settings.AI_GATEWAY_MODEL = "google/gemini-2.5-flash"
        mock_settings.LLM_TIMEOUT_SECONDS = 30

        service = create_insights_service("gateway")

    assert isinstance(service, GatewayInsightsService)
    assert service.get_model_name() == "google/gemini-2.5-flash"
    assert service.timeout == 30


def test_factory_rejects_unknown_provider():
    with pytest.raises(ValueError, match="Unsupported insights provider"):
        create_insights_service("ollama")
