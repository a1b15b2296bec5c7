"""
Insights service base class, errors and factory.

An insights service turns one journal transcription into a reflective
summary by forwarding a fixed prompt to a hosted chat model.
"""
from abc import ABC, abstractmethod
from typing import Optional

from voice_journal.config import settings
from voice_journal.utils.logger import get_logger

logger = get_logger("services.analysis")

RATE_LIMIT_MESSAGE = "Limite de requisições excedido. Tente novamente em alguns instantes."
CREDITS_EXHAUSTED_MESSAGE = "Créditos insuficientes. Adicione créditos ao seu workspace Lovable."


class AnalysisError(Exception):
    """
    Insight generation failed.

    Attributes:
        message: User-facing error message
        status_code: HTTP status the function answers with
        upstream_response: Raw upstream body, when there was one
    """

    status_code = 500

    def __init__(self, message: str, upstream_response: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.upstream_response = upstream_response


class RateLimitExceededError(AnalysisError):
    """Upstream answered 429."""

    status_code = 429

    def __init__(self, upstream_response: Optional[str] = None):
        super().__init__(RATE_LIMIT_MESSAGE, upstream_response)


class CreditsExhaustedError(AnalysisError):
    """Upstream answered 402."""

    status_code = 402

    def __init__(self, upstream_response: Optional[str] = None):
        super().__init__(CREDITS_EXHAUSTED_MESSAGE, upstream_response)


SYSTEM_PROMPT = """Você é um assistente especializado em análise de diários pessoais e journaling.
Sua função é analisar as entradas de diário do usuário e fornecer insights significativos e úteis sobre:
- Padrões emocionais e mentais
- Temas recorrentes
- Momentos de crescimento pessoal
- Sugestões de reflexão
- Observações sobre bem-estar

Seja empático, construtivo e encorajador. Mantenha um tom acolhedor e de apoio."""

TIMEFRAME_LINE = "Esta análise se refere ao período: {timeframe}"

USER_PROMPT = """Analise a seguinte entrada de diário e forneça insights profundos e úteis:

{transcription}

Forneça uma análise estruturada com:
1. Resumo do que foi compartilhado
2. Principais temas e emoções identificadas
3. Insights e observações construtivas
4. Sugestões para reflexão ou ação"""


def build_messages(transcription: str, timeframe: Optional[str] = None) -> list[dict]:
    """
    Build the chat messages for one analysis request.

    Args:
        transcription: Journal entry text
        timeframe: Optional period the analysis refers to

    Returns:
        System and user messages in chat-completion format
    """
    system_prompt = SYSTEM_PROMPT
    if timeframe:
        system_prompt += "\n" + TIMEFRAME_LINE.format(timeframe=timeframe)

    return [
        {"role": "system", "content": system_prompt},
        {"role": "user", "content": USER_PROMPT.format(transcription=transcription)},
    ]


class InsightsService(ABC):
    """Abstract base class for insight generation implementations."""

    @abstractmethod
    async def generate_insights(
        self,
        transcription: str,
        timeframe: Optional[str] = None
    ) -> str:
        """
        Produce insights for a transcription.

        Args:
            transcription: Journal entry text
            timeframe: Optional period the analysis refers to

        Returns:
            The model's raw answer

        Raises:
            RateLimitExceededError: Upstream rate limit hit
            CreditsExhaustedError: Upstream credits exhausted
            AnalysisError: Any other upstream failure
        """
        pass

    @abstractmethod
    def get_model_name(self) -> str:
        pass


def create_insights_service(provider: Optional[str] = None) -> InsightsService:
    """
    Factory function to create the insights service for a provider.

    Args:
        provider: "gateway" or "noop". If None, uses settings.ANALYSIS_PROVIDER

    Returns:
        InsightsService instance

    Raises:
        ValueError: If provider is not supported or not configured
    """
    provider = (provider or settings.ANALYSIS_PROVIDER).lower()

    if provider == "gateway":
        if not settings.AI_GATEWAY_API_KEY:
            raise ValueError("AI_GATEWAY_API_KEY is required for the gateway insights provider")

        from voice_journal.services.analysis_gateway import GatewayInsightsService
        logger.info(f"Creating gateway insights service with model: {settings.AI_GATEWAY_MODEL}")
        return GatewayInsightsService(
            api_key=settings.AI_GATEWAY_API_KEY,
            url=settings.AI_GATEWAY_URL,
            model=settings.AI_GATEWAY_MODEL,
            timeout=settings.LLM_TIMEOUT_SECONDS
        )

    if provider == "noop":
        from voice_journal.services.analysis_noop import NoOpInsightsService
        return NoOpInsightsService()

    raise ValueError(
        f"Unsupported insights provider: {provider}. "
        f"Supported providers: gateway, noop"
    )
