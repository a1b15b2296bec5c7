"""
Main FastAPI application for the Voice Journal service.
"""
from contextlib import asynccontextmanager
from pathlib import Path
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from voice_journal import __version__
from voice_journal.config import settings
from voice_journal.database import check_db_connection, create_tables
from voice_journal.functions.app import functions_app
from voice_journal.routes import entries, health, recorder, storage
from voice_journal.middleware.logging import RequestLoggingMiddleware
from voice_journal.utils.logger import get_logger

logger = get_logger("main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Handles startup and shutdown events.
    """
    logger.info("Starting Voice Journal service", version=__version__)
    logger.info(f"Environment: {'DEBUG' if settings.DEBUG else 'PRODUCTION'}")
    logger.info(f"Log level: {settings.LOG_LEVEL}")

    db_connected = await check_db_connection()
    if db_connected:
        logger.info("Database connection established")
        if settings.DB_CREATE_TABLES:
            await create_tables()
    else:
        logger.error("Failed to connect to database")

    bucket_path = Path(settings.STORAGE_PATH) / settings.STORAGE_BUCKET
    bucket_path.mkdir(parents=True, exist_ok=True)
    logger.info(f"Storage bucket configured: {bucket_path}")

    if settings.FUNCTIONS_BASE_URL:
        logger.info(f"Functions served remotely: {settings.FUNCTIONS_BASE_URL}")
    else:
        logger.info(
            "Functions served in-process",
            transcription=settings.TRANSCRIPTION_PROVIDER,
            analysis=settings.ANALYSIS_PROVIDER,
            speech=settings.SPEECH_PROVIDER
        )

    yield

    logger.info("Shutting down Voice Journal service")


app = FastAPI(
    title="Voice Journal Service",
    description="Record spoken journal entries, transcribe them and generate spoken insights",
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(RequestLoggingMiddleware)

app.include_router(health.router, tags=["Health"])
app.include_router(
    entries.router,
    prefix="/api/v1",
    tags=["Entries"]
)
app.include_router(recorder.router, tags=["Recorder"])
app.include_router(storage.router, tags=["Storage"])

# Same paths as a hosted functions deployment
app.mount("/functions/v1", functions_app)


@app.get("/", include_in_schema=False)
async def root():
    """Root endpoint pointing at docs."""
    return {
        "message": "Voice Journal Service",
        "docs": "/docs",
        "health": "/health"
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "voice_journal.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.RELOAD,
        log_level=settings.LOG_LEVEL.lower()
    )
