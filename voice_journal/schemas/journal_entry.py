"""
Pydantic schemas for journal entry request/response validation.
"""
from datetime import datetime
from enum import Enum
from uuid import UUID
from typing import Optional
from pydantic import BaseModel, Field, ConfigDict


class JournalEntryCreate(BaseModel):
    """Schema for creating a new journal entry."""
    user_id: UUID
    audio_path: Optional[str] = None
    transcription: Optional[str] = None
    title: Optional[str] = None


class EntryAction(str, Enum):
    """Actions a client can offer on an entry card."""
    PLAY_RECORDING = "play_recording"
    PLAY_INSIGHTS = "play_insights"
    GENERATE_INSIGHTS = "generate_insights"
    DELETE = "delete"


class AudioKind(str, Enum):
    """Which stored audio object of an entry to address."""
    RECORDING = "recording"
    INSIGHTS = "insights"


class EntryCard(BaseModel):
    """Display data for one entry in a list view."""
    display_title: str = Field(..., description="Title, or the creation date when untitled")
    display_time: str = Field(..., description="Creation time as HH:MM")
    actions: list[EntryAction]


class JournalEntryResponse(BaseModel):
    """Schema for journal entry API responses."""
    id: UUID
    title: Optional[str] = None
    transcription: Optional[str] = None
    insights: Optional[str] = None
    audio_path: Optional[str] = None
    insights_audio_path: Optional[str] = None
    created_at: datetime
    card: Optional[EntryCard] = None

    model_config = ConfigDict(from_attributes=True)


class JournalEntryListResponse(BaseModel):
    """Paginated list response for journal entries, newest first."""
    entries: list[JournalEntryResponse]
    total: int
    limit: int
    offset: int


class SignedUrlResponse(BaseModel):
    """Time-limited link to a private storage object."""
    signed_url: str
    expires_in: int


class DeleteResponse(BaseModel):
    """Schema for delete operation responses."""
    message: str
    deleted_id: UUID
    removed_objects: list[str] = Field(default_factory=list)


class HealthResponse(BaseModel):
    """Schema for health check endpoint response."""
    status: str
    database: str
    timestamp: datetime
