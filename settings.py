from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "Jovi Gig Search API"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 8000
    # CORS: "*" for dev; in production set to comma-separated origins, e.g. "https://app.example.com,https://admin.example.com"
    cors_origins: str = "*"
    gigs_db_path: str = "data/gigs.db"  # Path relative to repo root, or absolute (run scripts/load_gigs.py first)

    # Proximity search
    search_cell_timeout_seconds: float = 5.0  # Per geohash cell range query
    search_failure_policy: Literal["degrade", "fail_fast"] = "degrade"
    search_ensure_coverage: bool = False  # Coarsen precision until the 3x3 cell block covers the radius
    nearby_default_limit: int = 25


def get_settings() -> Settings:
    return Settings()
