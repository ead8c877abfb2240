"""Application configuration and settings management."""

from typing import Any, Literal, Optional

import json
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="EVROUTE_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "EV Route Builder API"
    api_prefix: str = "/api"
    directions_base_url: str = Field(
        default="https://api.mapbox.com",
        description="Base URL of the directions provider.",
    )
    directions_access_token: Optional[str] = Field(
        default=None,
        description="Access token sent with every directions request.",
    )
    directions_profile: Literal["driving", "driving-traffic", "walking", "cycling"] = Field(
        default="driving",
        description="Directions profile used when none is passed explicitly.",
    )
    directions_provider_limit: int = Field(
        default=25,
        ge=2,
        description="Maximum number of waypoints the provider accepts in one request.",
    )
    directions_window_size: int = Field(
        default=20,
        ge=2,
        description="Waypoints per request when a route has to be split into windows.",
    )
    directions_timeout_seconds: float = Field(default=10.0, gt=0.0)
    planner_base_url: Optional[str] = Field(
        default=None,
        description="Base URL of the route planner service (e.g., http://localhost:3000).",
    )
    planner_timeout_seconds: float = Field(default=15.0, gt=0.0)
    fallback_average_speed_kmh: float = Field(
        default=70.0,
        gt=0.0,
        description="Speed used to estimate duration of straight-line fallback routes.",
    )
    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:8081",
            "http://127.0.0.1:8081",
            "http://localhost:19006",
        ),
        description="Permitted web origins for browser clients (CORS).",
    )

    @model_validator(mode="after")
    def _check_window_size(self) -> "Settings":
        if self.directions_window_size > self.directions_provider_limit:
            raise ValueError(
                f"directions_window_size ({self.directions_window_size}) cannot exceed "
                f"directions_provider_limit ({self.directions_provider_limit})"
            )
        return self

    @field_validator("directions_base_url", mode="before")
    @classmethod
    def _strip_trailing_slash(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().rstrip("/")
        return value

    @field_validator("planner_base_url", mode="before")
    @classmethod
    def _optional_base_url(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().rstrip("/") or None
        return value

    @field_validator("frontend_allowed_origins", mode="before")
    @classmethod
    def _parse_str_tuple_from_env(cls, value: Any) -> tuple[str, ...]:
        """Parse string tuple from environment variable (comma-separated or JSON array)."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(str(item) for item in value)
        if isinstance(value, str):
            # Try JSON first
            try:
                parsed = json.loads(value)
                if isinstance(parsed, list):
                    return tuple(str(item) for item in parsed)
            except (json.JSONDecodeError, TypeError):
                pass
            # Try comma-separated
            if "," in value:
                return tuple(item.strip() for item in value.split(",") if item.strip())
            # Single value
            if value.strip():
                return (value.strip(),)
        return tuple()


settings = Settings()
