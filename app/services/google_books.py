"""Client and match scoring for the Google Books catalog."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Sequence
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import httpx

from ..config import Settings
from ..errors import ConfigError
from ..utils import first_year, query_year, title_match_score

logger = logging.getLogger(__name__)

ISBN13_RE = re.compile(r"^(978|979)\d{10}$")
ISBN10_RE = re.compile(r"^\d{9}[\dX]$")
_NON_ISBN_RE = re.compile(r"[^0-9X]")

IMAGE_PREFERENCE = ("large", "medium", "thumbnail", "smallThumbnail")
MIN_COVER_ZOOM = 5


def detect_isbn(value: str | None) -> str | None:
    """Return the cleaned ISBN-10/13 contained in ``value`` or ``None``."""

    if not value:
        return None
    cleaned = _NON_ISBN_RE.sub("", value)
    if ISBN13_RE.match(cleaned) or ISBN10_RE.match(cleaned):
        return cleaned
    return None


@dataclass(slots=True)
class BookVolume:
    """The subset of a Google Books volume the resolver relies on."""

    id: str
    title: str
    subtitle: str | None = None
    published_date: str | None = None
    description: str | None = None
    image_links: dict[str, str] = field(default_factory=dict)
    categories: list[str] = field(default_factory=list)
    language: str | None = None
    average_rating: float | None = None
    page_count: int | None = None
    industry_identifiers: list[dict[str, str]] = field(default_factory=list)

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "BookVolume":
        info = payload.get("volumeInfo") or {}
        return cls(
            id=str(payload.get("id") or ""),
            title=str(info.get("title") or ""),
            subtitle=info.get("subtitle") or None,
            published_date=info.get("publishedDate") or None,
            description=info.get("description") or None,
            image_links=dict(info.get("imageLinks") or {}),
            categories=list(info.get("categories") or []),
            language=info.get("language") or None,
            average_rating=info.get("averageRating"),
            page_count=info.get("pageCount"),
            industry_identifiers=list(info.get("industryIdentifiers") or []),
        )

    @property
    def full_title(self) -> str:
        if self.subtitle:
            return f"{self.title}: {self.subtitle}"
        return self.title

    @property
    def published_year(self) -> str | None:
        return first_year(self.published_date)


def score_book(query: str, volume: BookVolume, requested_year: str | None = None) -> int:
    """Return the match score of ``volume`` for ``query``."""

    score = title_match_score(query, volume.title)

    target_year = requested_year or query_year(query.lower())
    if target_year and volume.published_year == target_year:
        score += 200

    if volume.image_links:
        score += 20
    if volume.average_rating:
        score += 10
    if volume.description:
        score += 10
    return score


def find_best_book_match(
    query: str,
    volumes: Sequence[BookVolume],
    requested_year: str | None = None,
) -> BookVolume | None:
    """Return the best scoring volume with a positive score, first seen on ties."""

    best: BookVolume | None = None
    best_score = 0
    for volume in volumes:
        score = score_book(query, volume, requested_year)
        if score > best_score:
            best = volume
            best_score = score
    return best


def book_cover_url(image_links: dict[str, str] | None) -> str | None:
    """Pick the largest cover image and clean its URL for display."""

    if not image_links:
        return None
    image_url = next(
        (image_links[key] for key in IMAGE_PREFERENCE if image_links.get(key)), None
    )
    if not image_url:
        return None

    parts = urlsplit(image_url)
    if not parts.netloc:
        return image_url.replace("http:", "https:").replace("&edge=curl", "")

    query = [(key, value) for key, value in parse_qsl(parts.query) if key != "edge"]
    zoom = next((value for key, value in query if key == "zoom"), None)
    if zoom is None or not zoom.isdigit() or int(zoom) < MIN_COVER_ZOOM:
        query = [(key, value) for key, value in query if key != "zoom"]
        query.append(("zoom", str(MIN_COVER_ZOOM)))
    return urlunsplit(("https", parts.netloc, parts.path, urlencode(query), parts.fragment))


def extract_isbn(identifiers: Sequence[dict[str, str]] | None) -> str | None:
    """Return the ISBN-13 if listed, else the ISBN-10."""

    if not identifiers:
        return None
    by_type = {}
    for entry in identifiers:
        by_type.setdefault(entry.get("type"), entry.get("identifier"))
    return by_type.get("ISBN_13") or by_type.get("ISBN_10") or None


class GoogleBooksClient:
    """Thin wrapper around the Google Books volumes endpoint."""

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient):
        self._settings = settings
        self._client = http_client

    def require_api_key(self) -> str:
        api_key = self._settings.google_books_api_key
        if not api_key:
            raise ConfigError(
                "GOOGLE_BOOK_API_KEY",
                "Get a free API key from https://console.cloud.google.com/apis/credentials "
                "and add it to your .env file",
            )
        return api_key

    async def search_by_isbn(self, isbn: str) -> BookVolume | None:
        """Return the first volume listed for ``isbn``."""

        volumes = await self._search({"q": f"isbn:{isbn}"}, description=f"ISBN {isbn}")
        return volumes[0] if volumes else None

    async def search_by_title(self, title: str, year: str | None = None) -> list[BookVolume]:
        """Return up to ``book_search_limit`` volumes matching ``title``."""

        query = f"intitle:{title}"
        if year:
            query = f"{query} {year}"
        params = {"q": query, "maxResults": str(self._settings.book_search_limit)}
        return await self._search(params, description=f"title {title!r}")

    async def _search(self, params: dict[str, str], *, description: str) -> list[BookVolume]:
        query = {**params, "key": self.require_api_key()}
        try:
            response = await self._client.get("volumes", params=query)
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Google Books search failed for %s: %s", description, exc)
            return []
        items = payload.get("items") if isinstance(payload, dict) else None
        if not isinstance(items, list):
            return []
        return [
            BookVolume.from_payload(item)
            for item in items
            if isinstance(item, dict)
        ]
