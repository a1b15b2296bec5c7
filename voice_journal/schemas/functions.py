"""
Pydantic schemas for the remote function request/response bodies.

Request fields are optional at the schema level so the handlers can answer
a missing field with their own descriptive error payload.
"""
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class TranscribeAudioRequest(BaseModel):
    """Body of the transcribe-audio function."""
    audio: Optional[str] = Field(None, description="Base64-encoded audio")


class TranscribeAudioResponse(BaseModel):
    text: str


class AnalyzeJournalRequest(BaseModel):
    """Body of the analyze-journal function."""
    transcription: Optional[str] = None
    timeframe: Optional[str] = Field(None, description="Period the analysis refers to, e.g. 'dia'")


class AnalyzeJournalResponse(BaseModel):
    insights: str


class GenerateAudioRequest(BaseModel):
    """Body of the generate-audio function."""
    text: Optional[str] = None


class GenerateAudioResponse(BaseModel):
    audio_content: str = Field(..., alias="audioContent", description="Base64-encoded MP3")

    model_config = ConfigDict(populate_by_name=True)


class FunctionErrorResponse(BaseModel):
    error: str
