"""Application configuration models."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, Field, HttpUrl, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables or a .env file."""

    app_name: str = Field(default="Logbook", alias="APP_NAME")
    server_host: str = Field(default="0.0.0.0", alias="HOST")
    server_port: int = Field(default=3000, alias="PORT")

    omdb_api_key: str | None = Field(default=None, alias="OMDB_API_KEY")
    google_books_api_key: str | None = Field(
        default=None,
        alias="GOOGLE_BOOK_API_KEY",
        validation_alias=AliasChoices("GOOGLE_BOOK_API_KEY", "GOOGLE_BOOKS_API_KEY"),
    )

    omdb_api_url: HttpUrl = Field(
        default="https://www.omdbapi.com", alias="OMDB_API_URL"
    )
    google_books_api_url: HttpUrl = Field(
        default="https://www.googleapis.com/books/v1", alias="GOOGLE_BOOKS_API_URL"
    )

    episode_request_stagger: float = Field(
        default=0.1, alias="EPISODE_REQUEST_STAGGER", ge=0, le=5
    )
    book_search_limit: int = Field(default=5, alias="BOOK_SEARCH_LIMIT", ge=1, le=40)

    database_url: str = Field(
        default="sqlite+aiosqlite:///./logbook.db", alias="DATABASE_URL"
    )

    environment: Literal["development", "production"] = Field(
        default="development", alias="ENVIRONMENT"
    )

    @field_validator("omdb_api_key", "google_books_api_key", mode="before")
    @classmethod
    def _blank_keys_are_missing(cls, value: object) -> object:
        """Treat empty credentials the same as unset ones."""

        if isinstance(value, str) and not value.strip():
            return None
        return value

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", populate_by_name=True
    )


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""

    return Settings()  # type: ignore[call-arg]


settings = get_settings()
