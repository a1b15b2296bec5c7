"""
Configuration management using Pydantic Settings.
Loads configuration from environment variables and .env file.
"""
from typing import List, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database Configuration
    DATABASE_HOST: str = "localhost"
    DATABASE_PORT: int = 5432
    DATABASE_NAME: str = "postgres"
    DATABASE_USER: str = "journal_user"
    DATABASE_PASSWORD: str = ""
    DATABASE_URL: Optional[str] = None  # Overrides the DATABASE_* parts when set
    DB_CREATE_TABLES: bool = True  # Create missing tables on startup

    # Application Configuration
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    LOG_LEVEL: str = "INFO"
    PUBLIC_BASE_URL: str = "http://localhost:8000"  # Used to build signed URLs

    # Object Storage Configuration
    STORAGE_PATH: str = "/app/data/storage"
    STORAGE_BUCKET: str = "journal-audio"
    SIGNED_URL_EXPIRE_SECONDS: int = 3600
    MAX_FILE_SIZE_MB: int = 100

    # Remote functions
    FUNCTIONS_BASE_URL: Optional[str] = None  # None = invoke the mounted functions app in-process
    FUNCTIONS_TIMEOUT_SECONDS: float = 120.0

    # Transcription Configuration
    TRANSCRIPTION_PROVIDER: str = "groq"  # Options: groq, noop
    TRANSCRIPTION_LANGUAGE: str = "pt"
    GROQ_API_KEY: Optional[str] = None  # Required when using Groq provider
    GROQ_TRANSCRIPTION_MODEL: str = "whisper-large-v3"

    # Insights (chat completion gateway) Configuration
    ANALYSIS_PROVIDER: str = "gateway"  # Options: gateway, noop
    AI_GATEWAY_URL: str = "https://ai.gateway.lovable.dev/v1/chat/completions"
    AI_GATEWAY_API_KEY: Optional[str] = None
    AI_GATEWAY_MODEL: str = "google/gemini-2.5-flash"
    LLM_TIMEOUT_SECONDS: int = 120

    # Speech synthesis Configuration
    SPEECH_PROVIDER: str = "openai"  # Options: openai, noop
    SPEECH_API_URL: str = "https://api.openai.com/v1/audio/speech"
    SPEECH_API_KEY: Optional[str] = None
    SPEECH_MODEL: str = "tts-1"
    SPEECH_VOICE: str = "alloy"

    # Recording Configuration
    RECORDING_TICK_SECONDS: float = 1.0

    # CORS Configuration
    CORS_ORIGINS: str = "*"

    # Database Pool Configuration
    DB_POOL_SIZE: int = 5
    DB_MAX_OVERFLOW: int = 10

    # Development/Debug
    DEBUG: bool = False
    RELOAD: bool = False

    # Authentication (tokens are issued by the identity provider, verified here)
    JWT_SECRET_KEY: str  # Required - no default for security
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_DAYS: int = 30

    # Logging Configuration (Optional - per-module log levels)
    APP_LOG_LEVEL: Optional[str] = None
    SQLALCHEMY_LOG_LEVEL: Optional[str] = None
    UVICORN_LOG_LEVEL: Optional[str] = None
    HTTPX_LOG_LEVEL: Optional[str] = None
    ASYNCPG_LOG_LEVEL: Optional[str] = None

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True
    )

    @property
    def database_url(self) -> str:
        """Construct async database URL."""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+asyncpg://{self.DATABASE_USER}:{self.DATABASE_PASSWORD}"
            f"@{self.DATABASE_HOST}:{self.DATABASE_PORT}/{self.DATABASE_NAME}"
        )

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins from comma-separated string."""
        if self.CORS_ORIGINS == "*":
            return ["*"]
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]

    @property
    def max_file_size_bytes(self) -> int:
        """Convert max file size from MB to bytes."""
        return self.MAX_FILE_SIZE_MB * 1024 * 1024


# Global settings instance
settings = Settings()
