"""
Centralized configuration management with validation.

All environment variables are loaded and validated here.
This ensures consistent configuration across the application.
"""
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()


class Settings(BaseSettings):
    """Application settings with validation."""

    # Pydantic v2 configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore"
    )

    # Database Configuration
    # SQLite by default: the app keeps one user's plan and history locally.
    DATABASE_URL: str = Field(default="sqlite:///./fit14.db")
    DB_ECHO: bool = Field(default=False)

    # Stored data schema version - bump when the stored plan format breaks
    DATA_SCHEMA_VERSION: int = Field(default=2, ge=1)

    # Challenge Configuration (the 14-day length is fixed, see services.challenge.constants)
    RECENT_CHALLENGES_LIMIT: int = Field(default=3, ge=1)

    # Google Gemini Configuration
    GOOGLE_API_KEY: Optional[str] = Field(default=None)
    GEMINI_MODEL: str = Field(default="gemini-2.5-flash")
    GEMINI_TEMPERATURE: float = Field(default=0.7, ge=0.0, le=2.0)
    GEMINI_TOP_K: int = Field(default=40)
    GEMINI_TOP_P: float = Field(default=0.8)
    # Full 14-day plans need a large output budget
    GEMINI_MAX_OUTPUT_TOKENS: int = Field(default=8192)
    GEMINI_TIMEOUT_S: int = Field(default=45)

    # Use the deterministic offline generator instead of Gemini
    USE_MOCK_GENERATOR: bool = Field(default=False)

    # API Configuration
    API_HOST: str = Field(default="0.0.0.0")
    API_PORT: int = Field(default=8000)
    API_RELOAD: bool = Field(default=False)

    # Logging Configuration
    LOG_LEVEL: str = Field(default="INFO")
    # json or text; unset means json in production, text elsewhere
    LOG_FORMAT: Optional[str] = Field(default=None, pattern="^(json|text)$")

    # Environment
    ENVIRONMENT: str = Field(default="development")
    DEBUG: bool = Field(default=False)

    # CORS - comma-separated list of allowed origins for production
    CORS_ORIGINS: Optional[str] = Field(default=None)

    @property
    def log_format(self) -> str:
        if self.LOG_FORMAT:
            return self.LOG_FORMAT
        return "json" if self.ENVIRONMENT == "production" else "text"


# Global settings instance
settings = Settings()
