"""Application settings loaded from environment variables.

Every field can be overridden with a ``HOTSPOT_PLANNER_`` prefixed variable
(e.g. ``HOTSPOT_PLANNER_EBIRD_API_KEY``) or from a ``.env`` file.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration for searches, pacing, and caching."""

    model_config = SettingsConfigDict(
        env_prefix="HOTSPOT_PLANNER_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = "hotspot-planner"
    app_env: str = "development"
    debug: bool = False

    # Default search origin (Portland, OR)
    lat: float = Field(default=45.5, ge=-90, le=90)
    lon: float = Field(default=-122.6, ge=-180, le=180)

    # Credentials
    ebird_api_key: SecretStr | None = None
    locationiq_api_key: SecretStr | None = None

    # Search defaults (eBird caps radius at 50 km and lookback at 30 days)
    search_radius_km: float = Field(default=50.0, gt=0, le=50)
    max_results: int = Field(default=20, ge=1)
    days_back: int = Field(default=30, ge=1, le=30)

    # Pacing: roughly 5 calls/second by default
    batch_size: int = Field(default=5, ge=1)
    call_interval_s: float = Field(default=0.2, ge=0)
    batch_delay_s: float = Field(default=0.0, ge=0)
    call_timeout_s: float = Field(default=15.0, gt=0)

    # Cache lifetimes
    reverse_geocode_ttl_s: float = 6 * 3600
    weather_ttl_s: float = 30 * 60
    route_ttl_s: float = 24 * 3600
    taxonomy_ttl_s: float = 7 * 24 * 3600

    # HTTP
    http_timeout_s: float = 10.0
    http_retries: int = Field(default=3, ge=1)

    data_dir: Path = Path("data")


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings()
