"""Application configuration models."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, HttpUrl, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .genre_tables import GenreTables, load_genre_tables


class Settings(BaseSettings):
    """Settings loaded from environment variables or a .env file."""

    app_name: str = Field(default="WatchNext", alias="APP_NAME")
    server_host: str = Field(default="0.0.0.0", alias="HOST")
    server_port: int = Field(default=3000, alias="PORT")

    tmdb_read_access_token: str | None = Field(
        default=None, alias="TMDB_READ_ACCESS_TOKEN"
    )
    tmdb_api_url: HttpUrl = Field(
        default="https://api.themoviedb.org/3", alias="TMDB_API_URL"
    )
    tmdb_image_url: HttpUrl = Field(
        default="https://image.tmdb.org/t/p", alias="TMDB_IMAGE_URL"
    )

    nominatim_url: HttpUrl = Field(
        default="https://nominatim.openstreetmap.org", alias="NOMINATIM_URL"
    )
    geocoder_user_agent: str = Field(
        default="WatchNextTonight/1.0", alias="GEOCODER_USER_AGENT"
    )
    default_country: str = Field(
        default="US", alias="DEFAULT_COUNTRY", pattern=r"^[A-Za-z]{2}$"
    )

    genre_cache_seconds: int = Field(
        default=86_400, alias="GENRE_CACHE_TTL", ge=3_600
    )
    genre_tables_path: str | None = Field(default=None, alias="GENRE_TABLES_PATH")

    database_url: str = Field(
        default="sqlite+aiosqlite:///./watchnext.db", alias="DATABASE_URL"
    )

    environment: Literal["development", "production"] = Field(
        default="development", alias="ENVIRONMENT"
    )

    @field_validator("default_country")
    @classmethod
    def _upper_country(cls, value: str) -> str:
        return value.upper()

    @field_validator("tmdb_read_access_token", "genre_tables_path", mode="before")
    @classmethod
    def _strip_blank(cls, value: object) -> object:
        """Treat blank environment values as unset."""

        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def tmdb_base_url(self) -> str:
        return str(self.tmdb_api_url).rstrip("/")

    @property
    def image_base_url(self) -> str:
        return str(self.tmdb_image_url).rstrip("/")

    @property
    def genre_tables(self) -> GenreTables:
        """Return the genre mapping tables for this configuration."""

        return load_genre_tables(self.genre_tables_path)

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""

    return Settings()  # type: ignore[call-arg]


settings = get_settings()
