"""
Journal entry endpoints: list, read, record, generate insights, play, delete.
"""
from uuid import UUID
from typing import Annotated
from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from voice_journal.config import settings
from voice_journal.database import get_db
from voice_journal.middleware.jwt import get_current_user
from voice_journal.models.journal_entry import JournalEntry
from voice_journal.schemas.auth import AuthenticatedUser
from voice_journal.schemas.journal_entry import (
    AudioKind,
    DeleteResponse,
    JournalEntryListResponse,
    JournalEntryResponse,
    SignedUrlResponse,
)
from voice_journal.services.database import db_service
from voice_journal.services.functions_client import FunctionInvocationError
from voice_journal.services.journal_pipeline import JournalPipeline, get_journal_pipeline
from voice_journal.services.recording import AudioBlob
from voice_journal.utils.logger import get_logger
from voice_journal.utils.presentation import build_entry_card
from voice_journal.utils.validators import read_audio_upload

logger = get_logger("entries")
router = APIRouter()

# Upstream statuses a client is expected to react to; everything else is a bad gateway
PASSTHROUGH_STATUSES = {status.HTTP_402_PAYMENT_REQUIRED, status.HTTP_429_TOO_MANY_REQUESTS}


def function_error_to_http(error: FunctionInvocationError) -> HTTPException:
    """Map a failed function call to the HTTP error reported to the client."""
    status_code = error.status_code if error.status_code in PASSTHROUGH_STATUSES else status.HTTP_502_BAD_GATEWAY
    return HTTPException(status_code=status_code, detail=error.message)


def to_response(entry: JournalEntry) -> JournalEntryResponse:
    response = JournalEntryResponse.model_validate(entry)
    response.card = build_entry_card(entry)
    return response


async def get_owned_entry(
    entry_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user)
) -> JournalEntry:
    """
    Load an entry owned by the caller.

    Raises:
        HTTPException: 404 for both missing and foreign entries
    """
    entry = await db_service.get_entry_by_id(db, entry_id, current_user.user_id)
    if not entry:
        logger.warning("Entry not found or unauthorized", entry_id=str(entry_id), user_id=str(current_user.user_id))
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Entry with ID {entry_id} not found"
        )
    return entry


@router.get(
    "/entries",
    response_model=JournalEntryListResponse,
    summary="List journal entries",
    description="Entries of the authenticated user, newest first"
)
async def list_entries(
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
    offset: Annotated[int, Query(ge=0)] = 0,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user)
) -> JournalEntryListResponse:
    entries = await db_service.get_entries_by_user(db, current_user.user_id, limit=limit, offset=offset)
    total = await db_service.count_entries_by_user(db, current_user.user_id)

    return JournalEntryListResponse(
        entries=[to_response(entry) for entry in entries],
        total=total,
        limit=limit,
        offset=offset
    )


@router.get(
    "/entries/{entry_id}",
    response_model=JournalEntryResponse,
    summary="Get journal entry",
    responses={404: {"description": "Entry not found"}}
)
async def get_entry(entry: JournalEntry = Depends(get_owned_entry)) -> JournalEntryResponse:
    return to_response(entry)


@router.post(
    "/entries",
    response_model=JournalEntryResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record a journal entry",
    description="Store a recording, transcribe it and create the entry",
    responses={
        201: {"description": "Entry created from the transcription"},
        400: {"description": "Invalid or empty audio"},
        413: {"description": "Audio too large"},
        502: {"description": "Transcription failed"}
    }
)
async def create_entry(
    audio: UploadFile = File(..., description="Recorded audio (webm)"),
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user),
    pipeline: JournalPipeline = Depends(get_journal_pipeline)
) -> JournalEntryResponse:
    logger.info("Recording upload received", user_id=str(current_user.user_id), filename=audio.filename)

    data = await read_audio_upload(audio)
    blob = AudioBlob(data=data, content_type=audio.content_type or "audio/webm")

    try:
        entry = await pipeline.record_entry(db, current_user, blob)
    except FunctionInvocationError as e:
        raise function_error_to_http(e)

    return to_response(entry)


@router.post(
    "/entries/{entry_id}/insights",
    response_model=JournalEntryResponse,
    summary="Generate insights",
    description="Analyze the entry's transcription and synthesize a spoken read-back",
    responses={
        400: {"description": "Entry has no transcription"},
        402: {"description": "Model credits exhausted"},
        404: {"description": "Entry not found"},
        409: {"description": "Insights already generated"},
        429: {"description": "Model rate limit exceeded"},
        502: {"description": "Analysis or synthesis failed"}
    }
)
async def generate_insights(
    entry: JournalEntry = Depends(get_owned_entry),
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user),
    pipeline: JournalPipeline = Depends(get_journal_pipeline)
) -> JournalEntryResponse:
    try:
        entry = await pipeline.generate_insights(db, current_user, entry)
    except FunctionInvocationError as e:
        raise function_error_to_http(e)

    return to_response(entry)


@router.get(
    "/entries/{entry_id}/audio-url",
    response_model=SignedUrlResponse,
    summary="Signed playback URL",
    description="Time-limited URL for the entry's recording or insights read-back",
    responses={404: {"description": "Entry or audio not found"}}
)
async def get_audio_url(
    kind: AudioKind = AudioKind.RECORDING,
    entry: JournalEntry = Depends(get_owned_entry),
    pipeline: JournalPipeline = Depends(get_journal_pipeline)
) -> SignedUrlResponse:
    return SignedUrlResponse(
        signed_url=pipeline.signed_audio_url(entry, kind),
        expires_in=settings.SIGNED_URL_EXPIRE_SECONDS
    )


@router.delete(
    "/entries/{entry_id}",
    response_model=DeleteResponse,
    summary="Delete journal entry",
    description="Remove the entry's audio objects, then the entry",
    responses={404: {"description": "Entry not found or not authorized"}}
)
async def delete_entry(
    entry: JournalEntry = Depends(get_owned_entry),
    db: AsyncSession = Depends(get_db),
    pipeline: JournalPipeline = Depends(get_journal_pipeline)
) -> DeleteResponse:
    entry_id = entry.id
    removed = await pipeline.delete_entry(db, entry)

    return DeleteResponse(
        message="Entry deleted successfully",
        deleted_id=entry_id,
        removed_objects=removed
    )
