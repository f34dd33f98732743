"""Settings for the hook and command-line client."""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from safecommit.llm.schemas import Severity


class HookSettings(BaseSettings):
    """Client settings, read from ``SAFECOMMIT_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="SAFECOMMIT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    api_base_url: str = Field(default="http://localhost:8787")
    api_key: str = Field(default="")
    fail_on_severity: Severity = Field(default=Severity.CRITICAL)
    max_diff_bytes: int = Field(default=200_000, ge=1)
    timeout_seconds: float = Field(default=60.0, gt=0)

    @field_validator("api_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("fail_on_severity", mode="before")
    @classmethod
    def normalize_severity(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v
