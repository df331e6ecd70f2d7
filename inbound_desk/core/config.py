# inbound_desk/core/config.py
from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """
    Global settings for the receiving desk.

    The data API is the only backend this process talks to; the base URL
    must come from the environment or a .env file.
    """

    # runtime
    ENV: str = Field(default="dev")
    DEBUG: bool = Field(default=True)

    # data API
    DATA_API_BASE_URL: str = Field(
        default=...,
        description="Warehouse data API root, e.g. http://127.0.0.1:8080/api",
    )
    DATA_API_TOKEN: Optional[str] = Field(default=None)
    # None = no client-side timeout; a hanging call keeps its control busy
    DATA_API_TIMEOUT: Optional[float] = Field(default=None)

    # logging
    LOG_LEVEL: str = Field(default="INFO")
    JSON_LOG: bool = Field(default=False)

    # receiving rules
    ENFORCE_QTY_INVARIANT: bool = Field(default=True)

    # scanners
    AUDIO_FEEDBACK_DEFAULT: bool = Field(default=True)
    RECENT_PUTAWAYS_LIMIT: int = Field(default=10)
    SCANNER_ID: Optional[str] = Field(default=None)
    STATION_ID: Optional[str] = Field(default=None)

    # open put-away sessions and scanners
    SESSION_IDLE_TTL_S: float = Field(default=4 * 3600)
    SESSION_MAX: int = Field(default=500)

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


@lru_cache
def get_settings() -> AppSettings:
    """Process-wide settings entry point."""
    return AppSettings()
