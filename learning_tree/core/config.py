from pydantic_settings import BaseSettings
from pydantic import AliasChoices, Field, field_validator
from typing import Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables / .env file."""

    # ── AI Providers ──────────────────────────────────────────────────────────
    AI_PROVIDER: str = "gemini"

    @field_validator("AI_PROVIDER")
    @classmethod
    def validate_ai_provider(cls, v: str) -> str:
        allowed = {"hybrid", "groq", "gemini"}
        if v.lower() not in allowed:
            raise ValueError(f"AI_PROVIDER must be one of {allowed}, got '{v}'")
        return v.lower()

    # Google (Gemini - primary)
    GOOGLE_API_KEY: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("GOOGLE_API_KEY", "GEMINI_API_KEY"),
    )
    GEMINI_MODEL: str = "gemini-2.0-flash"

    # Groq (Llama 3 - failover in hybrid mode)
    GROQ_API_KEY: Optional[str] = None
    GROQ_MODEL: str = "llama-3.3-70b-versatile"

    # ── Limits ────────────────────────────────────────────────────────────────
    MAX_FILE_SIZE_MB: int = 10
    CHUNK_SIZE: int = 4000  # chars per chunk sent to the model
    LLM_TIMEOUT_SECONDS: int = 120  # per outbound model call
    AI_TIMEOUT_SECONDS: int = 600  # whole upload analysis

    # ── Core ──────────────────────────────────────────────────────────────────
    FRONTEND_URL: str = "*"
    FRONTEND_DIR: str = "frontend"
    ENVIRONMENT: str = "production"
    HOST: str = "0.0.0.0"
    PORT: int = 3000

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT.lower() == "development"

    @property
    def cors_origins(self) -> list[str]:
        return [origin.strip() for origin in self.FRONTEND_URL.split(",") if origin.strip()]


settings = Settings()
