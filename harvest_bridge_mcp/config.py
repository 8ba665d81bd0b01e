"""Bridge settings using Pydantic Settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


HARVEST_HOST = "harvestapp.com"


class HarvestSettings(BaseSettings):
    """
    Connection settings for one Harvest account.

    Read once at startup from `HARVEST_*` environment variables (or a `.env`
    file) and frozen afterwards, so engines can share a single instance.
    """
    model_config = SettingsConfigDict(
        env_prefix="HARVEST_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    username: str = Field(..., min_length=1, description="Harvest login (usually an email address).")
    password: SecretStr = Field(..., description="Harvest password.")
    account: str = Field(
        ...,
        min_length=1,
        description="Harvest account subdomain, e.g. 'acme' for https://acme.harvestapp.com",
    )

    request_timeout: float = Field(default=30.0, gt=0, description="Timeout per request (seconds).")

    log_level: str = "INFO"
    log_format: Literal["json", "text"] = "text"

    @field_validator("account")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v[:-1] if v.endswith("/") else v

    @property
    def base_url(self) -> str:
        return f"https://{self.account}.{HARVEST_HOST}"


@lru_cache
def get_settings() -> HarvestSettings:
    """Process-wide settings, built on first use."""
    return HarvestSettings()
