import logging
from typing import List, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings

from app.scoring import ExplanationPolicy


class Settings(BaseSettings):
    """Application settings loaded from environment variables / .env file."""

    # ── Service ───────────────────────────────────────────────────────────────
    APP_NAME: str = "QuizMaster API"
    SERVICE_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"LOG_LEVEL must be a logging level name, got '{v}'")
        return level

    # ── AI Providers ──────────────────────────────────────────────────────────
    AI_PROVIDER: str = "hybrid"

    @field_validator("AI_PROVIDER")
    @classmethod
    def validate_ai_provider(cls, v: str) -> str:
        allowed = {"hybrid", "groq", "gemini"}
        if v.lower() not in allowed:
            raise ValueError(f"AI_PROVIDER must be one of {allowed}, got '{v}'")
        return v.lower()

    # Groq (Llama 3 - High Speed)
    GROQ_API_KEY: Optional[str] = None
    GROQ_MODEL: str = "llama-3.3-70b-versatile"

    # Google (Gemini)
    GOOGLE_API_KEY: Optional[str] = None
    GEMINI_MODEL: str = "gemini-2.0-flash"

    # ── Limits ────────────────────────────────────────────────────────────────
    AI_TIMEOUT_SECONDS: int = 90
    AI_MAX_RETRIES: int = 3

    # ── Review ────────────────────────────────────────────────────────────────
    EXPLANATION_POLICY: ExplanationPolicy = ExplanationPolicy.always

    @field_validator("EXPLANATION_POLICY", mode="before")
    @classmethod
    def lower_explanation_policy(cls, v):
        return v.lower() if isinstance(v, str) else v

    # ── Core ──────────────────────────────────────────────────────────────────
    CORS_ORIGINS: List[str] = ["*"]

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


settings = Settings()
