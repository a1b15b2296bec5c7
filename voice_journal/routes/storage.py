"""
Signed object download endpoint.

Serves private audio objects to holders of a URL minted by
StorageService.create_signed_url. No bearer token is needed; the
signature is bound to the object key and expires.
"""
from fastapi import APIRouter, HTTPException, Query, status
from fastapi.responses import FileResponse
from jose import JWTError

from voice_journal.services.storage import storage_service
from voice_journal.utils.jwt import verify_storage_token
from voice_journal.utils.logger import get_logger

logger = get_logger("storage_route")
router = APIRouter()


@router.get(
    "/storage/v1/object/sign/{key:path}",
    summary="Download a signed object",
    response_class=FileResponse,
    responses={
        400: {"description": "Invalid or expired signature"},
        404: {"description": "Object not found"}
    }
)
async def download_signed_object(key: str, token: str = Query(...)) -> FileResponse:
    try:
        verify_storage_token(token, key)
    except JWTError as e:
        logger.warning("Rejected signed URL", key=key, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid or expired signature"
        )

    try:
        path = storage_service.object_path(key)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Object not found")

    if not path.is_file():
        logger.warning("Signed object missing", key=key)
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Object not found")

    return FileResponse(path, media_type=storage_service.content_type_for(key))
