from functools import lru_cache
import os
from typing import List, Optional

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    debug: bool = False
    project_name: str = "LaneOps API"
    environment: str = "development"
    log_level: str = "INFO"

    # Raw CORS origins string - read from env
    cors_origins_raw: Optional[str] = Field(
        default=None,
        alias="CORS_ORIGINS"
    )

    @computed_field
    @property
    def backend_cors_origins(self) -> List[str]:
        """Parse CORS_ORIGINS from environment variable (comma-separated string)."""
        raw = self.cors_origins_raw
        if not raw:
            raw = os.environ.get("CORS_ORIGINS") or os.environ.get("BACKEND_CORS_ORIGINS") or ""

        if not raw or not raw.strip():
            return []

        origins = []
        for origin in raw.split(","):
            origin = origin.strip()
            if origin:
                # Normalize protocol to lowercase (Https -> https, Http -> http)
                if origin.lower().startswith("https://"):
                    origin = "https://" + origin[8:]
                elif origin.lower().startswith("http://"):
                    origin = "http://" + origin[7:]
                origins.append(origin)
        return origins

    # Lanes backend (persistence, TAT engine, route suggestions, flight validation)
    lanes_api_base_url: str = "http://localhost:8080"
    flight_validation_base_url: Optional[str] = None  # Defaults to lanes_api_base_url
    request_timeout_seconds: float = 30.0

    # Editing rules
    max_legs_per_lane: Optional[int] = None  # None = unlimited

    def get_flight_validation_base_url(self) -> str:
        """Get the flight validator base URL, defaulting to the lanes API."""
        if self.flight_validation_base_url:
            return self.flight_validation_base_url
        return self.lanes_api_base_url


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
