from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    mongodb_uri: str = Field(default="mongodb://localhost:27017", alias="MONGODB_URI")
    mongodb_db: str = Field(default="market_linker", alias="MONGODB_DB")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    kalshi_base_url: str = Field(default="https://api.elections.kalshi.com/trade-api/v2", alias="KALSHI_BASE_URL")
    http_timeout_seconds: int = Field(default=15, alias="HTTP_TIMEOUT_SECONDS")

    openai_api_key: str = Field(default="", alias="OPENAI_API_KEY")
    openai_model: str = Field(default="gpt-5-mini", alias="OPENAI_MODEL")
    openai_timeout_seconds: int = Field(default=20, alias="OPENAI_TIMEOUT_SECONDS")

    # unset: `link` falls back to the topic default
    linker_lookback_hours: Optional[int] = Field(default=None, alias="LINKER_LOOKBACK_HOURS")
    linker_workers: int = Field(default=4, alias="LINKER_WORKERS")

    validate_min_score: float = Field(default=0.75, alias="VALIDATE_MIN_SCORE")
    validate_limit: int = Field(default=100, alias="VALIDATE_LIMIT")
    validate_batch_size: int = Field(default=5, alias="VALIDATE_BATCH_SIZE")
    validate_batch_delay_seconds: float = Field(default=3.0, alias="VALIDATE_BATCH_DELAY_SECONDS")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
