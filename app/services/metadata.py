"""Resolve free-text titles and identifiers into normalized metadata."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

from ..errors import MissingInputError, NotFoundError
from ..models import BOOK_MEDIUM, MetadataQuery, NormalizedMetadata
from ..utils import clean_sentinel, first_integer, format_runtime
from .google_books import (
    BookVolume,
    GoogleBooksClient,
    book_cover_url,
    detect_isbn,
    extract_isbn,
    find_best_book_match,
)
from .omdb import OMDbClient, find_best_match, is_found, map_omdb_type

logger = logging.getLogger(__name__)

IMDB_PREFIX = "tt"
EPISODE_ESTIMATE_PER_SEASON = 10


@dataclass(slots=True)
class SeasonDetails:
    """Best-effort data gathered for a single requested season."""

    label: str
    episode_count: int
    total_length: str | None = None


class MetadataResolver:
    """Route a lookup to the book or movie/TV catalog and normalize the result."""

    def __init__(
        self,
        omdb: OMDbClient,
        books: GoogleBooksClient,
        *,
        episode_stagger: float = 0.1,
    ) -> None:
        self._omdb = omdb
        self._books = books
        self._episode_stagger = episode_stagger

    async def resolve(self, query: MetadataQuery) -> NormalizedMetadata:
        if not query.has_input:
            raise MissingInputError("Title or IMDb ID/ISBN is required")

        title = query.title.strip() if query.title else None
        identifier = query.identifier.strip() if query.identifier else None

        isbn = detect_isbn(identifier) or detect_isbn(title)
        if isbn or query.medium_hint == BOOK_MEDIUM:
            return await self._resolve_book(title, isbn, year=query.year)

        imdb_id = identifier if identifier and identifier.startswith(IMDB_PREFIX) else None
        if not imdb_id and not title:
            raise MissingInputError("Title or IMDb ID is required")
        return await self._resolve_title(
            title,
            imdb_id,
            kind=query.kind_hint,
            year=query.year,
            season=query.season,
        )

    async def _resolve_book(
        self, title: str | None, isbn: str | None, *, year: str | None
    ) -> NormalizedMetadata:
        self._books.require_api_key()

        volume: BookVolume | None
        if isbn:
            # ISBN lookups are authoritative; the first hit is the book.
            volume = await self._books.search_by_isbn(isbn)
        else:
            if not title:
                raise MissingInputError("Title is required for book search")
            volumes = await self._books.search_by_title(title, year)
            if not volumes:
                raise NotFoundError("Book not found")
            volume = find_best_book_match(title, volumes, year)

        if volume is None:
            raise NotFoundError("Book not found")
        logger.info("Resolved book %r (%s)", volume.full_title, volume.id)
        return normalize_book(volume, requested_year=year)

    async def _resolve_title(
        self,
        title: str | None,
        imdb_id: str | None,
        *,
        kind: str | None,
        year: str | None,
        season: str | None,
    ) -> NormalizedMetadata:
        self._omdb.require_api_key()

        if imdb_id:
            data = await self._omdb.fetch_by_id(imdb_id)
        else:
            data = await self._omdb.fetch_by_title(title or "", kind=kind, year=year)

        if not is_found(data):
            if imdb_id or not title:
                raise NotFoundError(_miss_reason(data))
            data = await self._search_fallback(title, kind=kind, year=year, miss=data)

        season_details: SeasonDetails | None = None
        if season and str(data.get("Type") or "").lower() == "series":
            season_details = await self._season_details(
                season, imdb_id=clean_sentinel(data.get("imdbID")) or imdb_id, title=title
            )
        return normalize_title(data, season_details)

    async def _search_fallback(
        self,
        title: str,
        *,
        kind: str | None,
        year: str | None,
        miss: dict[str, Any] | None,
    ) -> dict[str, Any]:
        candidates = await self._omdb.search(title, kind=kind)
        if not candidates:
            raise NotFoundError(_miss_reason(miss))

        best = find_best_match(title, candidates, kind)
        if best is None:
            raise NotFoundError("Media not found")
        logger.info("Fuzzy match for %r resolved to %r", title, best.title)

        data = await self._omdb.fetch_by_title(best.title, kind=kind, year=year)
        if not is_found(data):
            raise NotFoundError(_miss_reason(data))
        return data

    async def _season_details(
        self, season: str, *, imdb_id: str | None, title: str | None
    ) -> SeasonDetails | None:
        season_number = first_integer(season) or season
        try:
            payload = await self._omdb.fetch_season(
                season_number, imdb_id=imdb_id, title=title
            )
        except Exception:
            logger.exception("Failed to fetch season %s data", season_number)
            return None

        episodes = payload.get("Episodes") if is_found(payload) else None
        if not isinstance(episodes, list) or not episodes:
            return None

        runtimes = await asyncio.gather(
            *(
                self._episode_runtime(episode, index)
                for index, episode in enumerate(episodes)
            )
        )
        return SeasonDetails(
            label=f"Season {season_number}",
            episode_count=len(episodes),
            total_length=format_runtime(sum(runtimes)),
        )

    async def _episode_runtime(self, episode: Any, index: int) -> int:
        episode_id = episode.get("imdbID") if isinstance(episode, dict) else None
        if not episode_id:
            return 0
        try:
            return await self._omdb.fetch_episode_runtime(
                episode_id, delay=index * self._episode_stagger
            )
        except Exception:
            logger.exception("Failed to fetch episode %s", episode_id)
            return 0


def normalize_book(
    volume: BookVolume, *, requested_year: str | None = None
) -> NormalizedMetadata:
    """Map a Google Books volume onto the normalized metadata record."""

    rating = None
    if volume.average_rating is not None:
        rating = round(float(volume.average_rating) * 2, 1)

    length = None
    if volume.page_count and volume.page_count > 0:
        length = f"{volume.page_count} pages"

    genre = [category.strip() for category in volume.categories if category.strip()]

    return NormalizedMetadata(
        title=volume.full_title,
        poster_url=book_cover_url(volume.image_links),
        genre=genre or None,
        language=volume.language,
        average_rating=rating,
        length=length,
        type="Book",
        year=volume.published_year or requested_year,
        plot=volume.description,
        external_id=extract_isbn(volume.industry_identifiers),
    )


def normalize_title(
    data: dict[str, Any], season: SeasonDetails | None = None
) -> NormalizedMetadata:
    """Map an OMDb title payload onto the normalized metadata record."""

    total_seasons = first_integer(clean_sentinel(data.get("totalSeasons")))

    if season is not None:
        episode_count: int | None = season.episode_count
        season_label: str | None = season.label
    else:
        episode_count = (
            int(total_seasons) * EPISODE_ESTIMATE_PER_SEASON if total_seasons else None
        )
        season_label = f"{total_seasons} seasons" if total_seasons else None

    return NormalizedMetadata(
        title=clean_sentinel(data.get("Title")),
        poster_url=clean_sentinel(data.get("Poster")),
        genre=clean_sentinel(data.get("Genre")),
        language=clean_sentinel(data.get("Language")),
        average_rating=_parse_rating(data.get("imdbRating")),
        length=(season.total_length if season else None)
        or clean_sentinel(data.get("Runtime")),
        type=map_omdb_type(data.get("Type")),
        episode_count=episode_count,
        season_label=season_label,
        year=clean_sentinel(data.get("Year")),
        plot=clean_sentinel(data.get("Plot")),
        external_id=clean_sentinel(data.get("imdbID")),
    )


def _parse_rating(value: Any) -> float | None:
    text = clean_sentinel(value)
    if text is None:
        return None
    try:
        return float(text)
    except ValueError:
        return None


def _miss_reason(payload: dict[str, Any] | None) -> str:
    if payload and payload.get("Error"):
        return str(payload["Error"])
    return "Media not found"
