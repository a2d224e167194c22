"""Configuration settings behaviour tests."""

from __future__ import annotations

import pytest

from app.config import Settings


def test_api_keys_default_to_missing() -> None:
    """Credentials are optional at load time and resolved per lookup path."""

    settings = Settings(_env_file=None, OMDB_API_KEY="", GOOGLE_BOOK_API_KEY="  ")

    assert settings.omdb_api_key is None
    assert settings.google_books_api_key is None


def test_google_books_key_accepts_plural_alias() -> None:
    settings = Settings(_env_file=None, GOOGLE_BOOKS_API_KEY="books-key")

    assert settings.google_books_api_key == "books-key"


def test_episode_stagger_is_bounded() -> None:
    """The per-episode request delay cannot be configured above five seconds."""

    with pytest.raises(ValueError):
        Settings(_env_file=None, EPISODE_REQUEST_STAGGER=10)


def test_book_search_limit_default() -> None:
    settings = Settings(_env_file=None)

    assert settings.book_search_limit == 5
    assert str(settings.omdb_api_url).startswith("https://www.omdbapi.com")
