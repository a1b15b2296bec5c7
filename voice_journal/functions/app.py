"""
Remote analysis functions.

Three stateless request handlers, served as their own ASGI application so
they can be deployed separately or mounted into the main service:

- transcribe-audio: {audio: base64} -> {text}
- analyze-journal:  {transcription, timeframe?} -> {insights}
- generate-audio:   {text} -> {audioContent: base64 mp3}

Every response, errors and pre-flight included, carries permissive CORS
headers. Errors are always shaped as {"error": message}.
"""
import base64
import binascii

from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

from voice_journal.config import settings
from voice_journal.middleware.jwt import get_current_user
from voice_journal.schemas.auth import AuthenticatedUser
from voice_journal.schemas.functions import (
    AnalyzeJournalRequest,
    AnalyzeJournalResponse,
    FunctionErrorResponse,
    GenerateAudioRequest,
    GenerateAudioResponse,
    TranscribeAudioRequest,
    TranscribeAudioResponse,
)
from voice_journal.services.analysis import AnalysisError, InsightsService, create_insights_service
from voice_journal.services.speech import SpeechSynthesisService, create_speech_service
from voice_journal.services.transcription import TranscriptionService, create_transcription_service
from voice_journal.utils.logger import get_logger

logger = get_logger("functions")

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}

functions_app = FastAPI(
    title="Voice Journal Functions",
    docs_url=None,
    redoc_url=None,
    openapi_url=None
)


def _error(message: str, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR) -> JSONResponse:
    return JSONResponse(FunctionErrorResponse(error=message).model_dump(), status_code=status_code, headers=CORS_HEADERS)


def _ok(payload: BaseModel) -> JSONResponse:
    return JSONResponse(payload.model_dump(by_alias=True), headers=CORS_HEADERS)


@functions_app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    response = _error(str(exc.detail), exc.status_code)
    if exc.headers:
        response.headers.update(exc.headers)
    return response


@functions_app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.warning("Function request body rejected", path=request.url.path, errors=str(exc.errors()))
    return _error("Invalid request body", status.HTTP_400_BAD_REQUEST)


def _provider_unavailable(kind: str, error: ValueError) -> HTTPException:
    logger.error(f"{kind} provider is not configured", error=str(error))
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"{kind} provider is not configured: {error}"
    )


def get_transcription_service() -> TranscriptionService:
    try:
        return create_transcription_service(
            provider=settings.TRANSCRIPTION_PROVIDER,
            model_name=settings.GROQ_TRANSCRIPTION_MODEL,
            api_key=settings.GROQ_API_KEY
        )
    except ValueError as e:
        raise _provider_unavailable("Transcription", e)


def get_insights_service() -> InsightsService:
    try:
        return create_insights_service()
    except ValueError as e:
        raise _provider_unavailable("Insights", e)


def get_speech_service() -> SpeechSynthesisService:
    try:
        return create_speech_service()
    except ValueError as e:
        raise _provider_unavailable("Speech", e)


@functions_app.options("/{function_name}")
async def preflight(function_name: str) -> PlainTextResponse:
    return PlainTextResponse("ok", headers=CORS_HEADERS)


@functions_app.post("/transcribe-audio")
async def transcribe_audio(
    body: TranscribeAudioRequest,
    current_user: AuthenticatedUser = Depends(get_current_user),
    service: TranscriptionService = Depends(get_transcription_service)
) -> JSONResponse:
    """Decode base64 audio and return its transcription."""
    try:
        if not body.audio:
            raise ValueError("No audio data provided")

        try:
            audio = base64.b64decode(body.audio, validate=True)
        except (binascii.Error, ValueError):
            raise ValueError("Invalid audio encoding")

        if not audio:
            raise ValueError("No audio data provided")

        logger.info("Starting transcription", user_id=str(current_user.user_id), size_bytes=len(audio))
        result = await service.transcribe_audio(audio, language=settings.TRANSCRIPTION_LANGUAGE)

        logger.info("Transcription successful", user_id=str(current_user.user_id))
        return _ok(TranscribeAudioResponse(text=result["text"]))

    except Exception as e:
        logger.error("Error in transcription", error=str(e), exc_info=True)
        return _error(str(e) or "Unknown error")


@functions_app.post("/analyze-journal")
async def analyze_journal(
    body: AnalyzeJournalRequest,
    current_user: AuthenticatedUser = Depends(get_current_user),
    service: InsightsService = Depends(get_insights_service)
) -> JSONResponse:
    """Forward a transcription to the chat model and return its insights verbatim."""
    try:
        if not body.transcription:
            raise ValueError("No transcription provided")

        logger.info("Starting journal analysis", user_id=str(current_user.user_id), timeframe=body.timeframe)
        insights = await service.generate_insights(body.transcription, body.timeframe)

        return _ok(AnalyzeJournalResponse(insights=insights))

    except AnalysisError as e:
        logger.error("Journal analysis failed upstream", status_code=e.status_code, error=e.message)
        return _error(e.message, e.status_code)
    except Exception as e:
        logger.error("Error in journal analysis", error=str(e), exc_info=True)
        return _error(str(e) or "Unknown error")


@functions_app.post("/generate-audio")
async def generate_audio(
    body: GenerateAudioRequest,
    current_user: AuthenticatedUser = Depends(get_current_user),
    service: SpeechSynthesisService = Depends(get_speech_service)
) -> JSONResponse:
    """Synthesize speech for a text and return it as base64 MP3."""
    try:
        if not body.text:
            raise ValueError("No text provided")

        logger.info("Starting speech synthesis", user_id=str(current_user.user_id), text_length=len(body.text))
        audio = await service.synthesize(body.text)

        return _ok(GenerateAudioResponse(audio_content=base64.b64encode(audio).decode("ascii")))

    except Exception as e:
        logger.error("Error in speech synthesis", error=str(e), exc_info=True)
        return _error(str(e) or "Unknown error")
