"""
Configuration module for SafeCommit.

Loads environment variables and provides centralized settings for the
review backend. All secrets are managed through environment variables
or a local .env file.
"""

from functools import lru_cache
from typing import Annotated, List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


DEFAULT_MODELS = {
    "gemini": "gemini-2.5-flash",
    "openai": "gpt-4o-mini",
    "anthropic": "claude-sonnet-4-20250514",
}


class Settings(BaseSettings):
    """
    Backend settings loaded from environment variables.

    The API key of the selected provider is required; it is checked when
    the LLM client is built at application startup, not at import time.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Application
    ENVIRONMENT: str = Field(default="development")
    HOST: str = Field(default="0.0.0.0")
    PORT: int = Field(default=8787)
    ALLOWED_ORIGINS: Annotated[List[str], NoDecode] = Field(default=["*"])

    # LLM Configuration
    LLM_PROVIDER: str = Field(default="gemini")
    GEMINI_API_KEY: str = Field(default="")
    OPENAI_API_KEY: str = Field(default="")
    ANTHROPIC_API_KEY: str = Field(default="")
    LLM_MODEL: str = Field(default="")
    LLM_MAX_TOKENS: int = Field(default=8192, ge=1)
    LLM_TEMPERATURE: float = Field(default=0.2, ge=0.0, le=2.0)

    # Review Configuration
    DEFAULT_MAX_DIFF_BYTES: int = Field(default=200_000, ge=1)
    LLM_TIMEOUT_MS: int = Field(default=60_000, ge=1)
    LLM_REPAIR_TIMEOUT_MS: Optional[int] = Field(default=None, ge=1)
    DEBUG_PROMPTS: bool = Field(default=False)

    # Observability
    LOG_LEVEL: str = Field(default="INFO")
    LOG_FORMAT: str = Field(default="text")

    @field_validator("ALLOWED_ORIGINS", mode="before")
    @classmethod
    def parse_allowed_origins(cls, v):
        """Parse comma-separated ALLOWED_ORIGINS into a list."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @field_validator("LLM_PROVIDER")
    @classmethod
    def normalize_provider(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator("LOG_FORMAT")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        allowed = ["json", "text"]
        if v.lower() not in allowed:
            raise ValueError(f"LOG_FORMAT must be one of {allowed}")
        return v.lower()

    @property
    def model_name(self) -> str:
        """Configured model, falling back to the provider default."""
        return self.LLM_MODEL or DEFAULT_MODELS.get(self.LLM_PROVIDER, "")

    @property
    def repair_timeout_ms(self) -> int:
        """Timeout for the repair call; conventionally equal to the first."""
        if self.LLM_REPAIR_TIMEOUT_MS is None:
            return self.LLM_TIMEOUT_MS
        return self.LLM_REPAIR_TIMEOUT_MS

    @property
    def provider_api_key(self) -> str:
        """API key for the selected provider, or an empty string."""
        keys = {
            "gemini": self.GEMINI_API_KEY,
            "openai": self.OPENAI_API_KEY,
            "anthropic": self.ANTHROPIC_API_KEY,
        }
        return keys.get(self.LLM_PROVIDER, "")

    @property
    def json_logs(self) -> bool:
        return self.ENVIRONMENT == "production" or self.LOG_FORMAT == "json"


@lru_cache()
def get_settings() -> Settings:
    """Process-wide settings instance."""
    return Settings()
