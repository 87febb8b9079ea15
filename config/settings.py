"""Pydantic Settings for the earnings reconciliation service."""

from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    # Financial APIs
    finnhub_api_key: str = ""

    # Provider fan-out
    provider_timeout_seconds: float = Field(default=10.0, description="Per-provider fetch timeout")

    # History truncation for display
    eps_history_limit: int = 16
    revenue_history_limit: int = 12

    # Calendar window around today
    calendar_weeks_back: int = 12
    calendar_weeks_forward: int = 12

    # Batch quote backfill
    quote_chunk_size: int = Field(default=50, description="Symbols per quote request")
    quote_max_concurrency: int = Field(default=3, description="Quote chunks in flight")
    quote_max_chunks: int = Field(default=10, description="Max quote chunks per calendar build")

    # Operational
    log_level: str = "INFO"


settings = Settings()
