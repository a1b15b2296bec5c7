"""
Upload validation utilities.
"""
from fastapi import UploadFile, HTTPException, status
from voice_journal.config import settings
from voice_journal.utils.logger import get_logger

logger = get_logger("validators")

ALLOWED_CONTENT_TYPES = [
    "audio/webm",
    "video/webm",  # Some browsers label MediaRecorder audio-only output as video/webm
    "audio/ogg",
    "audio/mpeg",
    "audio/mp4",
    "audio/wav",
    "audio/x-wav",
]
ALLOWED_EXTENSIONS = [".webm", ".ogg", ".mp3", ".m4a", ".mp4", ".wav"]


def file_too_large_detail() -> str:
    return f"File too large. Maximum size is {settings.MAX_FILE_SIZE_MB}MB"


async def read_audio_upload(file: UploadFile) -> bytes:
    """
    Validate an uploaded recording and return its content.

    Checks:
    - File is present and named
    - Extension and content type are audio formats a browser recorder produces
    - Size is within MAX_FILE_SIZE_MB and non-zero

    Args:
        file: Uploaded file from FastAPI

    Returns:
        The file's bytes

    Raises:
        HTTPException: If validation fails
    """
    if not file or not file.filename:
        logger.warning("Upload attempt with no file")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No file provided"
        )

    file_ext = "." + file.filename.rsplit(".", 1)[-1].lower() if "." in file.filename else ""
    if file_ext not in ALLOWED_EXTENSIONS:
        logger.warning("Invalid file type attempted", filename=file.filename, extension=file_ext)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid file type. Only {', '.join(ALLOWED_EXTENSIONS)} files are allowed"
        )

    content_type = (file.content_type or "").split(";")[0].strip()
    if content_type not in ALLOWED_CONTENT_TYPES:
        logger.warning("Invalid content type", filename=file.filename, content_type=file.content_type)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid content type. Expected one of: {', '.join(sorted(ALLOWED_CONTENT_TYPES))}"
        )

    contents = await file.read()

    if len(contents) > settings.max_file_size_bytes:
        logger.warning(
            "File too large",
            filename=file.filename,
            size_bytes=len(contents),
            max_bytes=settings.max_file_size_bytes
        )
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=file_too_large_detail()
        )

    if not contents:
        logger.warning("Empty file uploaded", filename=file.filename)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="File is empty"
        )

    return contents
