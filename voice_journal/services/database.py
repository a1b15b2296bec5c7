"""
Database service for CRUD operations on journal entries.
"""
from uuid import UUID
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from fastapi import HTTPException, status

from voice_journal.models.journal_entry import JournalEntry
from voice_journal.schemas.journal_entry import JournalEntryCreate
from voice_journal.utils.logger import get_logger

logger = get_logger("database_service")


class DatabaseService:
    """Service for database operations on journal entries."""

    async def create_entry(
        self,
        db: AsyncSession,
        entry_data: JournalEntryCreate
    ) -> JournalEntry:
        """
        Create a new journal entry in the database.

        Args:
            db: Database session
            entry_data: Entry data to create

        Returns:
            Created JournalEntry instance

        Raises:
            HTTPException: If database operation fails
        """
        try:
            entry = JournalEntry(
                user_id=entry_data.user_id,
                title=entry_data.title,
                audio_path=entry_data.audio_path,
                transcription=entry_data.transcription
            )

            db.add(entry)
            await db.flush()  # Flush to get the ID without committing
            await db.refresh(entry)

            logger.info(
                "Database entry created",
                entry_id=str(entry.id),
                user_id=str(entry_data.user_id),
                audio_path=entry_data.audio_path
            )

            return entry

        except Exception as e:
            logger.error(
                "Failed to create database entry",
                error=str(e),
                exc_info=True
            )
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to create database record"
            )

    async def get_entry_by_id(
        self,
        db: AsyncSession,
        entry_id: UUID,
        user_id: Optional[UUID] = None
    ) -> Optional[JournalEntry]:
        """
        Retrieve a journal entry by ID, optionally filtered by owner.

        Args:
            db: Database session
            entry_id: UUID of the entry to retrieve
            user_id: Optional UUID to filter by user ownership

        Returns:
            JournalEntry if found, None otherwise
        """
        try:
            query = select(JournalEntry).where(JournalEntry.id == entry_id)

            if user_id is not None:
                query = query.where(JournalEntry.user_id == user_id)

            result = await db.execute(query)
            entry = result.scalar_one_or_none()

            if entry:
                logger.debug("Entry retrieved", entry_id=str(entry_id))
            else:
                logger.info("Entry not found", entry_id=str(entry_id))

            return entry

        except Exception as e:
            logger.error(
                "Failed to retrieve entry",
                entry_id=str(entry_id),
                error=str(e),
                exc_info=True
            )
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to retrieve entry from database"
            )

    async def get_entries_by_user(
        self,
        db: AsyncSession,
        user_id: UUID,
        limit: int = 20,
        offset: int = 0
    ) -> list[JournalEntry]:
        """
        Retrieve a user's entries ordered by creation time, newest first.

        Args:
            db: Database session
            user_id: Owner of the entries
            limit: Maximum entries to return
            offset: Number of entries to skip

        Returns:
            List of JournalEntry
        """
        try:
            query = (
                select(JournalEntry)
                .where(JournalEntry.user_id == user_id)
                .order_by(JournalEntry.created_at.desc())
                .limit(limit)
                .offset(offset)
            )
            result = await db.execute(query)
            entries = list(result.scalars().all())

            logger.info(
                "Entries retrieved for user",
                user_id=str(user_id),
                count=len(entries)
            )
            return entries

        except Exception as e:
            logger.error(
                "Failed to retrieve entries",
                user_id=str(user_id),
                error=str(e),
                exc_info=True
            )
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to retrieve entries from database"
            )

    async def count_entries_by_user(self, db: AsyncSession, user_id: UUID) -> int:
        """Count a user's entries."""
        try:
            query = select(func.count()).select_from(JournalEntry).where(JournalEntry.user_id == user_id)
            result = await db.execute(query)
            return result.scalar_one()
        except Exception as e:
            logger.error(
                "Failed to count entries",
                user_id=str(user_id),
                error=str(e),
                exc_info=True
            )
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to count entries"
            )

    async def update_entry_insights(
        self,
        db: AsyncSession,
        entry: JournalEntry,
        insights: str,
        insights_audio_path: str
    ) -> JournalEntry:
        """
        Store insights and their read-back audio key in a single write.

        Args:
            db: Database session
            entry: Entry to update
            insights: Non-empty insights text
            insights_audio_path: Storage key of the synthesized audio

        Returns:
            Updated JournalEntry

        Raises:
            ValueError: If insights is empty
            HTTPException: If database operation fails
        """
        if not insights or not insights.strip():
            raise ValueError("insights must be non-empty when setting insights_audio_path")

        try:
            entry.insights = insights
            entry.insights_audio_path = insights_audio_path
            await db.flush()
            await db.refresh(entry)

            logger.info(
                "Entry insights stored",
                entry_id=str(entry.id),
                insights_audio_path=insights_audio_path
            )
            return entry

        except Exception as e:
            logger.error(
                "Failed to store entry insights",
                entry_id=str(entry.id),
                error=str(e),
                exc_info=True
            )
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to update entry"
            )

    async def delete_entry(self, db: AsyncSession, entry: JournalEntry) -> None:
        """
        Delete a journal entry row.

        Raises:
            HTTPException: If database operation fails
        """
        try:
            await db.delete(entry)
            await db.flush()
            logger.info("Entry row deleted", entry_id=str(entry.id))
        except Exception as e:
            logger.error(
                "Failed to delete entry",
                entry_id=str(entry.id),
                error=str(e),
                exc_info=True
            )
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to delete entry"
            )


# Global database service instance
db_service = DatabaseService()
