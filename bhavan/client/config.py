"""
Client Configuration

Settings for the customer CLI, read from ``BHAVAN_*`` environment
variables.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ClientSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="BHAVAN_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    api_url: str = Field(
        default="http://localhost:8001",
        description="Base URL of the ordering API"
    )
    storage_path: str = Field(
        default=str(Path.home() / ".bhavan" / "local_storage.json"),
        description="Local storage file holding the cart and session"
    )
    request_timeout_seconds: float = Field(
        default=15.0,
        description="HTTP timeout for API calls"
    )


@lru_cache()
def get_client_settings() -> ClientSettings:
    return ClientSettings()
