from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class GatewaySettings(BaseSettings):
    # Shared by storage tokens and signed blob URLs
    jwt_secret: SecretStr

    backend: Literal["local", "memory"] = "local"
    data_dir: Path = Path("./data")

    signed_url_ttl_seconds: int = Field(default=3600, gt=0)
    token_ttl_seconds: int = Field(default=3600, gt=0)

    # Malformed x-goog-if-generation-match: 400 when strict, generation 0 otherwise
    strict_generation_match: bool = False
    # Missing documents answer 404 instead of 500
    uniform_not_found: bool = True

    max_request_bytes: Optional[int] = Field(default=None, gt=0)

    model_config = SettingsConfigDict(env_prefix="STORAGE_", env_file=".env", extra="ignore")


@lru_cache
def get_gateway_settings(**kwargs) -> GatewaySettings:
    filtered_kwargs = {k: v for k, v in kwargs.items() if v is not None}
    return GatewaySettings(**filtered_kwargs)
