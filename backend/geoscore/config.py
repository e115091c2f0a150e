import json
import secrets
from functools import lru_cache
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CORS_ORIGINS = ["http://localhost:3000"]
ASYNC_POSTGRES_SCHEME = "postgresql+asyncpg://"


def split_origins(raw: str | None) -> List[str]:
    """Accepts either a JSON list or a comma separated string."""
    text = (raw or "").strip()
    if text.startswith("["):
        try:
            items = json.loads(text)
        except json.JSONDecodeError:
            items = text.strip("[]").split(",")
    else:
        items = text.split(",")
    origins = (str(item).strip().strip("'\"") for item in items)
    return [origin for origin in origins if origin]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "GeoScore"
    api_prefix: str = "/api"
    secret_key: str = Field(default_factory=lambda: secrets.token_urlsafe(32))
    access_token_expire_minutes: int = 60 * 24 * 30
    database_url: str = "sqlite+aiosqlite:///./geoscore.db"
    cors_origins_raw: str | None = Field(default=None, alias="CORS_ORIGINS")
    db_init_max_retries: int = 5
    db_init_retry_interval_seconds: float = 2.0

    # groups, scores and notifications
    notification_cap: int = 50
    notification_page_size: int = 20
    history_weeks: int = 12
    og_group_id: str = "grp_og"
    og_group_name: str = "AHA GGs OG"

    # daily insight generator
    anthropic_api_key: str | None = None
    anthropic_model: str = "claude-sonnet-4-20250514"
    anthropic_api_url: str = "https://api.anthropic.com/v1/messages"
    google_custom_search_api_key: str | None = None
    google_custom_search_engine_id: str | None = None
    insight_timeout_seconds: float = 25.0

    @field_validator("database_url")
    @classmethod
    def ensure_async_driver(cls, value: str) -> str:
        """Hosted Postgres URLs come without a driver; pin them to asyncpg."""
        for scheme in ("postgres://", "postgresql://"):
            if value and value.startswith(scheme):
                return ASYNC_POSTGRES_SCHEME + value[len(scheme) :]
        return value

    @property
    def cors_origins(self) -> List[str]:
        return split_origins(self.cors_origins_raw) or DEFAULT_CORS_ORIGINS

    @property
    def insights_enabled(self) -> bool:
        return bool(self.anthropic_api_key)


@lru_cache
def get_settings() -> Settings:
    return Settings()
