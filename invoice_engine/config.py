"""Environment-driven settings for the CLI and API."""
from __future__ import annotations

from decimal import Decimal
from functools import lru_cache
from typing import Annotated, List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

DEFAULT_CURRENCIES = ["NZD", "AUD", "USD", "EUR", "GBP", "INR"]


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    app_name: str = Field(default="Invoice Engine")
    default_currency: str = Field(default="NZD")
    allowed_currencies: Annotated[List[str], NoDecode] = Field(default_factory=lambda: list(DEFAULT_CURRENCIES))
    overpayment_tolerance: Decimal = Field(default=Decimal("0.10"), ge=0)
    cors_origins: Annotated[List[str], NoDecode] = Field(default_factory=lambda: ["*"])
    log_level: str = Field(default="INFO")

    model_config = SettingsConfigDict(env_prefix="INVOICE_ENGINE_", case_sensitive=False)

    @field_validator("allowed_currencies", "cors_origins", mode="before")
    def _split_csv(cls, value):
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        return value

    @field_validator("allowed_currencies", mode="after")
    def _upper(cls, value):
        return [code.upper() for code in value]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached application settings."""

    return Settings()
