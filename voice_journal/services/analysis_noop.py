"""
NoOp insights service for testing.
"""
from typing import Optional

from voice_journal.services.analysis import InsightsService


class NoOpInsightsService(InsightsService):
    """Returns canned insights without calling any model."""

    def __init__(self, model_name: str = "noop-insights-test"):
        self.model_name = model_name

    async def generate_insights(
        self,
        transcription: str,
        timeframe: Optional[str] = None
    ) -> str:
        period = f" ({timeframe})" if timeframe else ""
        return f"[NoOp Insights{period}] {transcription[:200]}"

    def get_model_name(self) -> str:
        return self.model_name
