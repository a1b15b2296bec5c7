"""
Health check endpoint for monitoring.
"""
from datetime import datetime, timezone
from fastapi import APIRouter, HTTPException, status, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession
from voice_journal.schemas.journal_entry import HealthResponse
from voice_journal.database import get_db
from voice_journal.utils.logger import get_logger

logger = get_logger("health")
router = APIRouter()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Check application and database health status",
    responses={
        200: {"description": "Service is healthy"},
        503: {"description": "Database unreachable"}
    }
)
async def health_check(db: AsyncSession = Depends(get_db)) -> HealthResponse:
    """
    Report whether the service can reach its database.

    Returns:
        HealthResponse (200 if healthy, 503 if not)
    """
    try:
        await db.execute(text("SELECT 1"))
    except Exception as e:
        logger.warning("Health check: database connection failed", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={
                "status": "degraded",
                "database": "disconnected",
                "timestamp": datetime.now(timezone.utc).isoformat()
            }
        )

    logger.debug("Health check: all systems operational")
    return HealthResponse(
        status="healthy",
        database="connected",
        timestamp=datetime.now(timezone.utc)
    )
