"""
Journal pipelines.

Two sequential flows, one network call per step and no retries:

    record:   upload recording -> transcribe-audio -> insert entry
    insights: analyze-journal -> generate-audio -> upload read-back -> update entry

A failure aborts the remaining steps. Storage objects written by a flow
that later fails are removed again, so a failed flow leaves neither a
half-written entry nor an orphaned object behind.
"""
import base64
import binascii

from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from voice_journal.models.journal_entry import JournalEntry
from voice_journal.schemas.auth import AuthenticatedUser
from voice_journal.schemas.journal_entry import AudioKind, JournalEntryCreate
from voice_journal.services.database import DatabaseService, db_service
from voice_journal.services.functions_client import (
    FunctionInvocationError,
    FunctionsClient,
    get_functions_client,
)
from voice_journal.services.recording import AudioBlob
from voice_journal.services.storage import StorageService, storage_service
from voice_journal.utils.logger import get_logger

logger = get_logger("services.journal_pipeline")

TRANSCRIBE_FUNCTION = "transcribe-audio"
ANALYZE_FUNCTION = "analyze-journal"
SYNTHESIZE_FUNCTION = "generate-audio"

INSIGHTS_TIMEFRAME = "dia"


class JournalPipeline:
    """Sequences storage, function calls and persistence for journal entries."""

    def __init__(
        self,
        storage: StorageService,
        functions: FunctionsClient,
        database: DatabaseService = db_service
    ):
        self.storage = storage
        self.functions = functions
        self.database = database

    async def _commit(self, db: AsyncSession, detail: str) -> None:
        try:
            await db.commit()
        except SQLAlchemyError as e:
            logger.error("Database commit failed", error=str(e), exc_info=True)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=detail
            ) from e

    async def _compensate(self, db: AsyncSession, keys: list[str], flow: str) -> None:
        """Undo a failed flow: drop pending DB changes and the objects it uploaded."""
        await db.rollback()
        removed = await self.storage.remove(keys)
        logger.warning(
            "Flow failed, uploaded objects removed",
            flow=flow,
            keys=",".join(keys),
            removed=len(removed)
        )

    async def record_entry(
        self,
        db: AsyncSession,
        user: AuthenticatedUser,
        audio: AudioBlob
    ) -> JournalEntry:
        """
        Store a recording, transcribe it and create the entry.

        Args:
            db: Database session
            user: Request-scoped credentials of the owner
            audio: Finished recording

        Returns:
            The created JournalEntry

        Raises:
            HTTPException: On storage or database failure
            FunctionInvocationError: If transcription fails
        """
        key = self.storage.recording_key(user.user_id)
        await self.storage.upload(key, audio.data)

        try:
            result = await self.functions.invoke(
                TRANSCRIBE_FUNCTION,
                {"audio": base64.b64encode(audio.data).decode("ascii")},
                token=user.token
            )

            entry = await self.database.create_entry(
                db,
                JournalEntryCreate(
                    user_id=user.user_id,
                    audio_path=key,
                    transcription=result.get("text")
                )
            )
            await self._commit(db, "Failed to create database record")

        except Exception:
            await self._compensate(db, [key], "record_entry")
            raise

        logger.info(
            "Journal entry recorded",
            entry_id=str(entry.id),
            user_id=str(user.user_id),
            audio_path=key
        )
        return entry

    async def generate_insights(
        self,
        db: AsyncSession,
        user: AuthenticatedUser,
        entry: JournalEntry
    ) -> JournalEntry:
        """
        Generate insights for an entry and a spoken read-back of them.

        Insights and their audio key are written together in one update.

        Args:
            db: Database session
            user: Request-scoped credentials of the owner
            entry: Entry with a transcription and no insights yet

        Returns:
            The updated JournalEntry

        Raises:
            HTTPException: 400 without transcription, 409 if insights exist,
                500 on storage or database failure
            FunctionInvocationError: If analysis or synthesis fails
        """
        if not entry.transcription:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Entry has no transcription to analyze"
            )
        if entry.insights:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Insights already generated for this entry"
            )

        analysis = await self.functions.invoke(
            ANALYZE_FUNCTION,
            {"transcription": entry.transcription, "timeframe": INSIGHTS_TIMEFRAME},
            token=user.token
        )
        insights = analysis.get("insights")
        if not insights or not str(insights).strip():
            raise FunctionInvocationError(ANALYZE_FUNCTION, 502, "Empty insights returned")

        speech = await self.functions.invoke(
            SYNTHESIZE_FUNCTION,
            {"text": insights},
            token=user.token
        )
        try:
            audio = base64.b64decode(speech["audioContent"], validate=True)
        except (KeyError, TypeError, binascii.Error, ValueError) as e:
            raise FunctionInvocationError(SYNTHESIZE_FUNCTION, 502, "Invalid audio payload") from e

        key = self.storage.insights_audio_key(user.user_id)
        await self.storage.upload(key, audio)

        try:
            entry = await self.database.update_entry_insights(db, entry, insights, key)
            await self._commit(db, "Failed to update entry")
        except Exception:
            await self._compensate(db, [key], "generate_insights")
            raise

        logger.info(
            "Insights generated",
            entry_id=str(entry.id),
            user_id=str(user.user_id),
            insights_audio_path=key
        )
        return entry

    async def delete_entry(self, db: AsyncSession, entry: JournalEntry) -> list[str]:
        """
        Remove an entry's audio objects, then its row.

        Returns:
            Keys of the storage objects that were removed
        """
        removed = []
        if entry.storage_paths:
            removed = await self.storage.remove(entry.storage_paths)

        await self.database.delete_entry(db, entry)
        await self._commit(db, "Failed to delete entry")

        logger.info("Entry deleted", entry_id=str(entry.id), removed_objects=len(removed))
        return removed

    def signed_audio_url(self, entry: JournalEntry, kind: AudioKind) -> str:
        """
        Mint a signed playback URL for one of the entry's audio objects.

        Raises:
            HTTPException: 404 if the entry has no such audio
        """
        key = entry.audio_path if kind is AudioKind.RECORDING else entry.insights_audio_path
        if not key:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Audio file not available"
            )
        return self.storage.create_signed_url(key)


def get_journal_pipeline() -> JournalPipeline:
    """Dependency providing the pipeline with the configured storage and functions client."""
    return JournalPipeline(storage=storage_service, functions=get_functions_client())
