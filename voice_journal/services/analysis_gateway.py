"""
Chat-completion gateway implementation of the insights service.
"""
from typing import Optional

import httpx

from voice_journal.services.analysis import (
    AnalysisError,
    CreditsExhaustedError,
    InsightsService,
    RateLimitExceededError,
    build_messages,
)
from voice_journal.utils.logger import get_logger

logger = get_logger("services.analysis_gateway")


class GatewayInsightsService(InsightsService):
    """Sends the analysis prompt to an OpenAI-compatible chat completions endpoint."""

    def __init__(
        self,
        api_key: str,
        url: str,
        model: str,
        timeout: float = 120.0
    ):
        self.api_key = api_key
        self.url = url
        self.model = model
        self.timeout = timeout

        logger.info(f"GatewayInsightsService initialized with model={model}")

    def get_model_name(self) -> str:
        return self.model

    def _get_headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    async def generate_insights(
        self,
        transcription: str,
        timeframe: Optional[str] = None
    ) -> str:
        payload = {
            "model": self.model,
            "messages": build_messages(transcription, timeframe),
        }

        logger.info(
            "Sending journal analysis to gateway",
            model=self.model,
            transcription_length=len(transcription),
            timeframe=timeframe
        )

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(self.url, headers=self._get_headers(), json=payload)
        except httpx.HTTPError as e:
            logger.error("Gateway request failed", error=str(e), exc_info=True)
            raise AnalysisError(f"AI gateway error: {str(e)}") from e

        if not response.is_success:
            error_text = response.text
            logger.error("Gateway error", status_code=response.status_code, body=error_text)

            if response.status_code == 429:
                raise RateLimitExceededError(error_text)
            if response.status_code == 402:
                raise CreditsExhaustedError(error_text)
            raise AnalysisError(f"AI gateway error: {error_text}", error_text)

        try:
            insights = response.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise AnalysisError(f"AI gateway returned an unexpected response: {response.text}") from e

        logger.info("Analysis successful", insights_length=len(insights))
        return insights
