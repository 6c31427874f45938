"""Application settings.

Values come from environment variables (or a local ``.env`` file), e.g.
``PLANNER_STORAGE_BACKEND=redis``.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from planner.models import TransportMode


class Settings(BaseSettings):
    # Plan limits
    max_days: int = Field(30, ge=1)
    max_locations: int = Field(50, ge=1)
    default_transport_mode: TransportMode = TransportMode.DRIVING

    # Plan persistence: "memory" or "redis"
    storage_backend: str = "memory"
    redis_url: str = "redis://localhost:6379"
    plan_ttl_seconds: int = 60 * 60 * 24 * 30  # 30 days

    # HTTP
    allowed_origins: list[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
    ]
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="PLANNER_",
        env_file=".env",
        extra="ignore",
    )


settings = Settings()
