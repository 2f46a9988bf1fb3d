from __future__ import annotations

from typing import Annotated, List, Any
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict
from pydantic import Field, AnyUrl, AliasChoices, field_validator


class Settings(BaseSettings):
    # Read from .env; unknown keys are rejected to catch typos
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="forbid",
    )

    # General
    APP_NAME: str = "Article Quiz Backend"
    API_V1_PREFIX: str = "/api/v1"
    APP_ENV: str = Field(
        "dev",
        validation_alias=AliasChoices("APP_ENV", "app_env"),
        description="Application environment: dev|staging|prod",
    )
    LOG_LEVEL: str = Field(
        "INFO",
        validation_alias=AliasChoices("LOG_LEVEL", "log_level"),
        description="Root log level",
    )

    # Supabase (document store and article store)
    SUPABASE_URL: AnyUrl | None = Field(
        None,
        validation_alias=AliasChoices("SUPABASE_URL", "supabase_url"),
        description="Your Supabase project URL",
    )
    SUPABASE_SERVICE_ROLE_KEY: str | None = Field(
        None,
        validation_alias=AliasChoices("SUPABASE_SERVICE_ROLE_KEY", "supabase_service_role_key"),
        description="Service role key (server-side)",
    )
    ARTICLES_TABLE: str = "articles"
    QUIZZES_TABLE: str = "quizzes"
    QUIZ_ATTEMPTS_TABLE: str = "quiz_attempts"
    QUIZ_STATISTICS_TABLE: str = "quiz_statistics"

    # Completion endpoint (OpenAI-compatible)
    OPENAI_API_KEY: str | None = Field(
        None,
        validation_alias=AliasChoices("OPENAI_API_KEY", "openai_api_key"),
        description="API key for the chat completion endpoint",
    )
    OPENAI_BASE_URL: str = Field(
        "https://api.openai.com/v1",
        validation_alias=AliasChoices("OPENAI_BASE_URL", "openai_base_url"),
    )
    QUIZ_MODEL: str = Field(
        "gpt-4o-mini",
        validation_alias=AliasChoices("QUIZ_MODEL", "quiz_model"),
    )
    QUIZ_TEMPERATURE: float = Field(0.3, ge=0.0, le=1.0)
    QUIZ_MAX_TOKENS: int = Field(1500, gt=0)
    GENERATION_TIMEOUT_SECONDS: float = Field(
        30.0,
        gt=0,
        le=30.0,
        description="Upper bound for a single generation call",
    )

    # Redis (live quiz sessions)
    REDIS_URL: str = Field(
        "redis://localhost:6379/0",
        validation_alias=AliasChoices("REDIS_URL", "redis_url"),
    )
    SESSION_TTL_SECONDS: int = 6 * 60 * 60
    # must outlast a generation call, which runs under the lock on load
    SESSION_LOCK_TIMEOUT_SECONDS: float = Field(60.0, gt=0)
    SESSION_LOCK_WAIT_SECONDS: float = Field(10.0, gt=0)
    REDIS_SOCKET_TIMEOUT_SECONDS: float = Field(3.0, gt=0)
    REDIS_MAX_CONNECTIONS: int = Field(50, gt=0)

    # CORS origins
    # NoDecode hands the raw env string to _parse_origins
    FRONTEND_ORIGINS: Annotated[List[str], NoDecode] = [
        "http://localhost:5173",
        "http://localhost:3000",
        "http://127.0.0.1:5173",
    ]

    @field_validator("FRONTEND_ORIGINS", mode="before")
    @classmethod
    def _parse_origins(cls, v: Any) -> Any:
        """
        Accepts FRONTEND_ORIGINS in .env as:
        - a JSON array: ["http://localhost:5173","http://localhost:3000"]
        - or a string: http://localhost:5173,http://localhost:3000
        - or with ; as the separator
        """
        if isinstance(v, str):
            s = v.strip()
            if s.startswith("[") and s.endswith("]"):
                import json
                try:
                    return json.loads(s)
                except ValueError:
                    # malformed JSON falls through to the split below
                    pass
            return [item.strip() for item in s.replace(";", ",").split(",") if item.strip()]
        return v


settings = Settings()
