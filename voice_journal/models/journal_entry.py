"""
SQLAlchemy model for the journal entries table.
"""
import uuid
from datetime import datetime, timezone
from typing import Optional
from sqlalchemy import String, Text, DateTime, Index, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from voice_journal.database import Base


class JournalEntry(Base):
    """
    One journaled recording and its derived artifacts.

    Attributes:
        id: Unique identifier (UUID4)
        user_id: Owner (subject of the access token)
        title: Optional user-facing title
        transcription: Text returned by the transcription function
        insights: AI-generated reflective summary of the transcription
        audio_path: Storage key of the original recording
        insights_audio_path: Storage key of the synthesized insights read-back
        created_at: Record creation time (UTC)
        updated_at: Last update time (UTC)
    """

    __tablename__ = "journal_entries"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        nullable=False
    )

    title: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True
    )

    transcription: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True
    )

    insights: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True
    )

    audio_path: Mapped[Optional[str]] = mapped_column(
        String(512),
        nullable=True
    )

    insights_audio_path: Mapped[Optional[str]] = mapped_column(
        String(512),
        nullable=True,
        doc="Only ever set in the same write as a non-empty insights value"
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc)
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc)
    )

    __table_args__ = (
        Index("idx_journal_entries_user_created", "user_id", "created_at"),
    )

    @property
    def storage_paths(self) -> list[str]:
        """Storage keys referenced by this entry, recording first."""
        return [path for path in (self.audio_path, self.insights_audio_path) if path]

    def __repr__(self) -> str:
        return f"<JournalEntry(id={self.id}, user_id={self.user_id}, has_insights={bool(self.insights)})>"
