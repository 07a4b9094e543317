"""Application settings via Pydantic Settings."""

from enum import Enum
from functools import lru_cache

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LocationStrategy(str, Enum):
    """How the location of a visit is determined."""

    FIXED_SAMPLE = "fixed_sample"
    GEOLOCATION = "geolocation"


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # App
    app_name: str = "Country Counter"
    app_version: str = "0.1.0"
    debug: bool = False

    # Server
    host: str = "0.0.0.0"
    port: int = 8080

    # Store (any SQLAlchemy async URL; SQLite and PostgreSQL are supported)
    database_url: str = Field(
        default="sqlite+aiosqlite:///./country_counter.db",
        validation_alias=AliasChoices("DATABASE_URL", "STORE_URL"),
    )
    store_timeout_seconds: float = Field(default=5.0, gt=0, le=120)

    @property
    def async_database_url(self) -> str:
        """Get database URL with an async driver.

        Hosted Postgres providers hand out postgresql:// but we need
        postgresql+asyncpg://, and plain sqlite:// needs aiosqlite.
        """
        url = self.database_url
        if url.startswith("postgresql://"):
            url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
        elif url.startswith("postgres://"):
            url = url.replace("postgres://", "postgresql+asyncpg://", 1)
        elif url.startswith("sqlite://"):
            url = url.replace("sqlite://", "sqlite+aiosqlite://", 1)
        return url

    @property
    def store_connect_args(self) -> dict[str, object]:
        """Driver connect args.

        Both aiosqlite (busy timeout) and asyncpg (connect timeout) accept `timeout`.
        """
        return {"timeout": self.store_timeout_seconds}

    # Location resolution
    location_strategy: LocationStrategy = LocationStrategy.FIXED_SAMPLE

    @field_validator("location_strategy", mode="before")
    @classmethod
    def _parse_location_strategy(cls, v: object) -> object:
        """Accept "fixed-sample", "GEOLOCATION" and similar spellings."""
        if isinstance(v, str):
            return v.strip().lower().replace("-", "_")
        return v

    # Geolocation lookup (only used by the geolocation strategy)
    geolocation_url: str = Field(
        default="http://ip-api.com/json/{ip}?fields=status,message,country,city,lat,lon",
        description="Lookup endpoint; `{ip}` is replaced with the client address",
    )
    geolocation_timeout_seconds: float = Field(default=3.0, gt=0, le=60)
    client_addr_header: str = Field(
        default="X-Forwarded-For",
        description="Header carrying the client address as `ip[:port]`",
    )

    # Redis (optional cache for geolocation lookups)
    redis_url: str = "redis://localhost:6379/0"
    geolocation_cache_enabled: bool = False


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
