"""
Pytest configuration and fixtures for voice journal tests.
"""
import base64
import os
import tempfile
import uuid
from pathlib import Path
from typing import Any, AsyncGenerator, Dict, Optional

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import NullPool

# Set required environment variables before importing Settings to avoid validation error
TEST_ROOT = Path(tempfile.mkdtemp(prefix="voice-journal-tests-"))
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-for-testing-only-not-for-production")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{TEST_ROOT / 'startup.db'}"
os.environ["STORAGE_PATH"] = str(TEST_ROOT / "storage")
os.environ["TRANSCRIPTION_PROVIDER"] = "noop"
os.environ["ANALYSIS_PROVIDER"] = "noop"
os.environ["SPEECH_PROVIDER"] = "noop"
os.environ["FUNCTIONS_BASE_URL"] = ""
os.environ["RECORDING_TICK_SECONDS"] = "0.05"

from voice_journal.database import Base, get_db
from voice_journal.main import app
from voice_journal.models.journal_entry import JournalEntry
from voice_journal.schemas.auth import AuthenticatedUser
from voice_journal.services.storage import StorageService, storage_service
from voice_journal.utils.jwt import create_access_token

# Opaque bytes standing in for a MediaRecorder webm blob
SAMPLE_WEBM = b"\x1a\x45\xdf\xa3" + b"\x00" * 64


@pytest.fixture
def session_factory(tmp_path):
    """
    Session factory bound to a fresh SQLite database per test.

    NullPool keeps connections loop-independent so the same database can be
    used from async tests and from the sync WebSocket test client.
    """
    db_path = tmp_path / "journal.db"

    schema_engine = create_engine(f"sqlite:///{db_path}")
    Base.metadata.create_all(schema_engine)
    schema_engine.dispose()

    engine = create_async_engine(f"sqlite+aiosqlite:///{db_path}", poolclass=NullPool, echo=False)
    return async_sessionmaker(bind=engine, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def override_db(session_factory):
    """Route the app's get_db dependency to the per-test database."""
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def storage() -> StorageService:
    """
    The application's storage service.

    Its bucket lives under the temporary STORAGE_PATH; keys are per user and
    every test uses a fresh user id.
    """
    return storage_service


@pytest.fixture
def user_id() -> uuid.UUID:
    return uuid.uuid4()


@pytest.fixture
def access_token(user_id: uuid.UUID) -> str:
    return create_access_token(user_id, email="journaler@example.com")


@pytest.fixture
def auth_user(user_id: uuid.UUID, access_token: str) -> AuthenticatedUser:
    return AuthenticatedUser(user_id=user_id, email="journaler@example.com", token=access_token)


@pytest.fixture
async def client(override_db) -> AsyncGenerator[AsyncClient, None]:
    """
    Create an async test client for the FastAPI application.

    Functions run in-process with noop providers, so no external
    service is called.
    """
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as ac:
        yield ac


@pytest.fixture
async def authenticated_client(client: AsyncClient, access_token: str) -> AsyncGenerator[AsyncClient, None]:
    """Client sending a valid bearer token for `user_id`."""
    client.headers["Authorization"] = f"Bearer {access_token}"
    yield client
    client.headers.pop("Authorization", None)


@pytest.fixture
async def sample_entry(db_session: AsyncSession, storage: StorageService, user_id: uuid.UUID) -> JournalEntry:
    """Entry with a stored recording and a transcription, no insights yet."""
    key = storage.recording_key(user_id)
    await storage.upload(key, SAMPLE_WEBM)

    entry = JournalEntry(
        user_id=user_id,
        audio_path=key,
        transcription="Hoje acordei cedo e caminhei na praia."
    )
    db_session.add(entry)
    await db_session.commit()
    await db_session.refresh(entry)
    return entry


class FakeFunctionsClient:
    """
    Records function calls and answers from a canned table.

    A value that is an exception instance is raised instead of returned.
    """

    def __init__(self, responses: Optional[Dict[str, Any]] = None):
        self.responses = {
            "transcribe-audio": {"text": "Hoje foi um bom dia."},
            "analyze-journal": {"insights": "Você demonstra gratidão."},
            "generate-audio": {"audioContent": base64.b64encode(b"ID3fake-mp3").decode("ascii")},
        }
        self.responses.update(responses or {})
        self.calls: list[tuple[str, dict, str]] = []

    async def invoke(self, function_name: str, body: dict, token: str) -> dict:
        self.calls.append((function_name, body, token))
        response = self.responses[function_name]
        if isinstance(response, Exception):
            raise response
        return response

    def called(self) -> list[str]:
        return [name for name, _, _ in self.calls]


@pytest.fixture
def fake_functions() -> FakeFunctionsClient:
    return FakeFunctionsClient()
