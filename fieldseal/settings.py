"""
fieldseal client settings
=========================

Read from ``FIELDSEAL_*`` environment variables or a ``.env`` file.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ClientSettings(BaseSettings):
    api_base_url: str = "http://localhost:8080/api/v1"
    timeout: float = Field(default=30.0, gt=0)  # seconds

    # Key-fetch endpoint
    public_key_path: str = "/crypto/public-key"
    public_key_field: str = "public_key"

    encrypted_fields_header: str = "X-Encrypted-Fields"

    auth_token: Optional[str] = None

    model_config = SettingsConfigDict(
        env_prefix="FIELDSEAL_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache(maxsize=1)
def get_settings() -> ClientSettings:
    return ClientSettings()
