"""
Object storage service for journal audio.

Objects live in a single bucket directory on disk and are addressed by
per-user keys: `{user_id}/{timestamp}.webm` for recordings and
`{user_id}/insights-{timestamp}.mp3` for synthesized insights.
"""
import mimetypes
import os
import shutil
import threading
import time
import uuid
from pathlib import Path, PurePosixPath
from typing import Optional
from urllib.parse import quote
from fastapi import HTTPException, status
import aiofiles

from voice_journal.config import settings
from voice_journal.utils.jwt import create_storage_token
from voice_journal.utils.logger import get_logger

logger = get_logger("storage")

RECORDING_EXTENSION = ".webm"
INSIGHTS_AUDIO_EXTENSION = ".mp3"


_timestamp_lock = threading.Lock()
_last_timestamp_ms = 0


def _timestamp_ms() -> int:
    """Millisecond timestamp, strictly increasing across calls in this process."""
    global _last_timestamp_ms
    with _timestamp_lock:
        _last_timestamp_ms = max(time.time_ns() // 1_000_000, _last_timestamp_ms + 1)
        return _last_timestamp_ms


class StorageService:
    """Service for handling object storage operations."""

    def __init__(self, base_path: Optional[Path] = None):
        self.base_path = base_path or Path(settings.STORAGE_PATH) / settings.STORAGE_BUCKET

    def recording_key(self, user_id: uuid.UUID) -> str:
        """Key for a new raw recording: {user_id}/{timestamp}.webm"""
        return f"{user_id}/{_timestamp_ms()}{RECORDING_EXTENSION}"

    def insights_audio_key(self, user_id: uuid.UUID) -> str:
        """Key for a new insights read-back: {user_id}/insights-{timestamp}.mp3"""
        return f"{user_id}/insights-{_timestamp_ms()}{INSIGHTS_AUDIO_EXTENSION}"

    def object_path(self, key: str) -> Path:
        """
        Resolve a storage key to its path inside the bucket.

        Args:
            key: Object key such as "{user_id}/123.webm"

        Returns:
            Absolute path of the object

        Raises:
            ValueError: If the key is empty, absolute, or escapes the bucket
        """
        parts = PurePosixPath(key).parts
        if not key or key.startswith("/") or not parts or any(p in ("..", ".") for p in parts):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self.base_path.joinpath(*parts)

    @staticmethod
    def content_type_for(key: str) -> str:
        """Guess the media type of an object from its key."""
        if key.endswith(RECORDING_EXTENSION):
            return "audio/webm"
        if key.endswith(INSIGHTS_AUDIO_EXTENSION):
            return "audio/mpeg"
        return mimetypes.guess_type(key)[0] or "application/octet-stream"

    async def upload(self, key: str, data: bytes) -> str:
        """
        Store an object with an atomic write (temp file, then move).

        Args:
            key: Object key
            data: Object content

        Returns:
            The key that was written

        Raises:
            HTTPException: 409 if the key is taken, 500 if the write fails
        """
        target_path = self.object_path(key)
        if target_path.exists():
            logger.warning("Storage key already exists", key=key)
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Storage object already exists"
            )

        temp_path = target_path.with_name(f"{target_path.name}.{uuid.uuid4().hex}.tmp")

        try:
            target_path.parent.mkdir(parents=True, exist_ok=True)

            async with aiofiles.open(temp_path, "wb") as out_file:
                await out_file.write(data)

            shutil.move(str(temp_path), str(target_path))
            os.chmod(target_path, 0o644)

            logger.info("Object stored", key=key, size_bytes=len(data))
            return key

        except Exception as e:
            if temp_path.exists():
                temp_path.unlink(missing_ok=True)

            logger.error("Failed to store object", key=key, error=str(e), exc_info=True)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to save file to storage"
            )

    async def download(self, key: str) -> bytes:
        """
        Read an object's content.

        Raises:
            FileNotFoundError: If the object does not exist
        """
        async with aiofiles.open(self.object_path(key), "rb") as in_file:
            return await in_file.read()

    def exists(self, key: str) -> bool:
        return self.object_path(key).is_file()

    async def remove(self, keys: list[str]) -> list[str]:
        """
        Delete objects, best effort.

        Missing objects and failed deletions are logged and skipped.

        Args:
            keys: Object keys to delete

        Returns:
            Keys that were actually deleted
        """
        removed = []
        for key in keys:
            try:
                path = self.object_path(key)
                if path.exists():
                    path.unlink()
                    removed.append(key)
                    logger.info("Object deleted", key=key)
                else:
                    logger.warning("Object not found for deletion", key=key)
            except (OSError, ValueError) as e:
                logger.error("Failed to delete object", key=key, error=str(e), exc_info=True)
        return removed

    def create_signed_url(self, key: str, expires_in: Optional[int] = None) -> str:
        """
        Mint a time-limited URL for a private object.

        Args:
            key: Object key
            expires_in: Lifetime in seconds (default SIGNED_URL_EXPIRE_SECONDS)

        Returns:
            Absolute URL served by the storage route

        Raises:
            HTTPException: 404 if the object does not exist
        """
        if not self.exists(key):
            logger.warning("Signed URL requested for missing object", key=key)
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Audio file not available"
            )

        expires_in = expires_in or settings.SIGNED_URL_EXPIRE_SECONDS
        token = create_storage_token(key, expires_in)
        base_url = settings.PUBLIC_BASE_URL.rstrip("/")
        return f"{base_url}/storage/v1/object/sign/{quote(key)}?token={token}"


# Global storage service instance
storage_service = StorageService()
