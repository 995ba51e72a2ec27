"""Lightweight configuration for the Dicekeep server."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings, overridable through ``DICEKEEP_*`` variables."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", env_prefix="DICEKEEP_"
    )

    win_points: int = Field(default=200, description="Points needed to win a room", gt=0)
    map_size: int = Field(default=10, description="Width and height of the square map", gt=0)
    starting_wood: int = Field(default=1000, ge=0)
    starting_stone: int = Field(default=1000, ge=0)
    starting_bricks: int = Field(default=1000, ge=0)
    resource_cap: int = Field(
        default=100,
        description="Ceiling applied to stone and bricks right after a roll",
        ge=0,
    )
    attack_resolution_delay_seconds: float = Field(
        default=2.0,
        description="Delay between a battle announcement and its resolution",
        ge=0.0,
    )
    room_idle_timeout_seconds: float = Field(
        default=3600.0,
        description="Rooms idle for longer than this with nobody connected are evicted",
        gt=0.0,
    )
    room_sweep_interval_seconds: float = Field(
        default=60.0,
        description="How often the registry looks for idle rooms",
        gt=0.0,
    )
    max_rooms: int = Field(default=1000, description="Upper bound on live rooms", gt=0)
    dice_seed: int | None = Field(
        default=None,
        description="Base seed for reproducible dice; unset means system randomness",
        ge=0,
    )
    cors_origins: list[str] = Field(
        default_factory=lambda: ["*"],
        description="Origins allowed to call the HTTP API",
    )


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""

    return Settings()
