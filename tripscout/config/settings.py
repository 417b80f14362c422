"""
Settings - Application configuration using Pydantic Settings.

Loads from environment variables and .env files.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    # Paths
    db_path: Path = Path("data/tripscout.db")

    # Search index (Discovery Engine / Vertex AI Search)
    index_endpoint: str = "https://discoveryengine.googleapis.com"
    index_project_id: str = ""
    index_location: str = "global"
    index_data_store_id: str = ""
    index_serving_config: str = "default_config"
    index_access_token: str | None = None
    index_timeout_seconds: float = 5.0
    index_page_size: int = 20

    # Search policy
    search_min_index_results: int = 3
    search_min_results: int = 3
    search_index_retries: int = 1
    search_timeout_seconds: float = 10.0
    search_speculative_fallback: bool = False

    # Generation
    generation_default_trip_days: int = 3

    # Match-score breakdown weights
    score_location_weight: float = 35.0
    score_activity_weight: float = 30.0
    score_group_size_weight: float = 15.0
    score_lodging_weight: float = 5.0
    score_transportation_weight: float = 3.0
    score_trip_pace_weight: float = 12.0

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_debug: bool = False
    api_rate_limit_per_minute: int = 60

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
