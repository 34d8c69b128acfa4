"""Lightweight configuration for the civhex engine and API."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Minimal application settings."""

    model_config = SettingsConfigDict(
        env_prefix="CIVHEX_", env_file=".env", env_file_encoding="utf-8"
    )

    maps_dir: Path = Field(default=Path("resources"), description="Where map files live")
    default_max_movement: int = Field(
        default=2, ge=0, description="Movement points a new unit gets each turn"
    )
    default_strength: int = Field(default=10, gt=0, description="Base strength of a new unit")
    combat_variance_percent: int = Field(
        default=0,
        ge=0,
        le=50,
        description="Random strength swing per side in combat; 0 keeps combat deterministic",
    )
    log_level: str = Field(default="INFO", description="Log level handed to the server")
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:5173", "http://127.0.0.1:5173"],
        description="Origins allowed to call the HTTP API",
    )


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""

    return Settings()
