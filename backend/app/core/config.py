from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Literal, Optional
import os


class Settings(BaseSettings):
    ENVIRONMENT: Literal["development", "staging", "production", "test"] = (
        "development"
    )

    model_config = SettingsConfigDict(
        env_file="../.envs/.env.local", env_ignore_empty=True, extra="ignore"
    )

    # Basic settings
    API_V1_STR: str = "/api/v1"
    PROJECT_NAME: str = "Mockitt API"
    PROJECT_DESCRIPTION: str = (
        "Interview preparation platform: courses, quizzes and speech coaching"
    )
    SITE_NAME: str = "Mockitt"
    VERSION: str = "1.0.0"
    DEBUG: bool = True

    # CORS
    ALLOWED_HOSTS: List[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
        "https://localhost:5173",
    ]

    @property
    def get_allowed_hosts(self) -> List[str]:
        """Get allowed hosts from environment or use defaults"""
        env_hosts = os.getenv("ALLOWED_HOSTS")
        if env_hosts:
            return [host.strip() for host in env_hosts.split(",")]
        return self.ALLOWED_HOSTS

    # Postgres Configuration
    DATABASE_URL: str = "postgresql+asyncpg://postgres:postgres@db:5432/mockitt"
    DATABASE_ECHO: bool = False
    AUTO_CREATE_TABLES: bool = True

    # Google Speech-to-Text
    GOOGLE_CLOUD_API_KEY: Optional[str] = None
    GOOGLE_SPEECH_URL: str = "https://speech.googleapis.com/v1/speech:recognize"
    SPEECH_LANGUAGE_CODE: str = "en-US"
    SPEECH_SAMPLE_RATE_HERTZ: int = 16000
    SPEECH_TIMEOUT_SECONDS: int = 30

    # Generative providers: OpenRouter first, OpenAI as fallback
    OPENROUTER_API_KEY: Optional[str] = None
    OPENROUTER_BASE_URL: str = "https://openrouter.ai/api/v1"
    OPENROUTER_MODEL: str = "google/gemini-flash-1.5"
    OPENAI_API_KEY: Optional[str] = None
    OPENAI_MODEL: str = "gpt-4o-mini"
    FRONTEND_URL: str = "http://localhost:5173"

    # Resume uploads
    UPLOAD_DIR: str = "uploads"
    MAX_RESUME_SIZE: int = 10 * 1024 * 1024
    ALLOWED_RESUME_TYPES: List[str] = [
        "application/pdf",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "text/plain",
    ]
    RESUME_PREVIEW_CHARS: int = 500

    # Interview sessions
    INTERVIEW_PAGE_SIZE: int = 20

    # Course catalog pagination
    DEFAULT_PAGE_SIZE: int = 10
    MAX_PAGE_SIZE: int = 100

    # Quiz history shown alongside a quiz
    RECENT_ATTEMPTS_LIMIT: int = 3

    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_TOKEN_EXPIRATION_MINUTES: int = 30
    JWT_REFRESH_TOKEN_EXPIRATION_DAYS: int = 1
    SIGNING_KEY: str = "change-me-in-production-please-0123456789"

    COOKIE_SECURE: bool = False
    COOKIE_ACCESS_NAME: str = "access_token"
    COOKIE_REFRESH_NAME: str = "refresh_token"
    COOKIE_LOGGED_IN_NAME: str = "logged_in"
    COOKIE_HTTP_ONLY: bool = True
    COOKIE_SAMESITE: str = "lax"
    COOKIE_PATH: str = "/"


settings = Settings()
