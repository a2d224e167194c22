"""Client and match scoring for the OMDb movie/TV catalog."""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Sequence

import httpx

from ..config import Settings
from ..errors import ConfigError
from ..utils import first_integer, title_match_score

logger = logging.getLogger(__name__)

KIND_FILTERS = ("movie", "series")
TYPE_LABELS = {
    "movie": "Movie",
    "series": "TV Show",
    "episode": "TV Show",
}
SEQUEL_INDICATORS = ("2", "3", "4", "5", "ii", "iii", "iv", "v")
SEQUEL_KEYWORDS = ("multiverse", "madness", "sequel", "returns", "reborn", "awakening")
RECENT_YEAR_WINDOW = 20

_LEADING_INT_RE = re.compile(r"\s*(\d+)")


@dataclass(slots=True)
class SearchCandidate:
    """A single row of an OMDb fuzzy search response."""

    title: str
    year: str | None
    external_id: str | None
    kind: str
    has_image: bool

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "SearchCandidate":
        kind = str(payload.get("Type") or "").lower()
        poster = payload.get("Poster")
        return cls(
            title=str(payload.get("Title") or ""),
            year=payload.get("Year"),
            external_id=payload.get("imdbID"),
            kind=kind if kind in KIND_FILTERS else "other",
            has_image=bool(poster) and poster != "N/A",
        )


def map_omdb_type(omdb_type: str | None) -> str | None:
    """Translate OMDb's ``Type`` field into a collection type label."""

    if not omdb_type:
        return None
    return TYPE_LABELS.get(omdb_type.lower())


def is_found(payload: dict[str, Any] | None) -> bool:
    return bool(payload) and payload.get("Response") == "True"


def score_candidate(
    query: str,
    candidate: SearchCandidate,
    requested_kind: str | None = None,
    *,
    current_year: int | None = None,
) -> int:
    """Return the match score of ``candidate`` for ``query``."""

    query_lower = query.lower()
    title_lower = candidate.title.lower()
    score = 0

    if requested_kind and requested_kind.lower() == candidate.kind.lower():
        score += 100

    score += title_match_score(query_lower, title_lower)

    query_number = first_integer(query_lower)
    if query_number is not None and first_integer(title_lower) == query_number:
        score += 200

    if any(token in query_lower for token in SEQUEL_INDICATORS) and any(
        token in title_lower for token in SEQUEL_INDICATORS
    ):
        score += 150

    if "2" in query_lower or "ii" in query_lower:
        score += 100 * sum(1 for word in SEQUEL_KEYWORDS if word in title_lower)

    year = current_year if current_year is not None else datetime.now().year
    candidate_year = _leading_int(candidate.year)
    if candidate_year is not None and candidate_year >= year - RECENT_YEAR_WINDOW:
        score += 10

    return score


def find_best_match(
    query: str,
    candidates: Sequence[SearchCandidate],
    requested_kind: str | None = None,
    *,
    current_year: int | None = None,
) -> SearchCandidate | None:
    """Return the highest scoring candidate; the first one seen wins ties."""

    best: SearchCandidate | None = None
    best_score = 0
    for candidate in candidates:
        score = score_candidate(
            query, candidate, requested_kind, current_year=current_year
        )
        if best is None or score > best_score:
            best = candidate
            best_score = score
    return best


def _leading_int(value: str | None) -> int | None:
    if not value:
        return None
    match = _LEADING_INT_RE.match(value)
    return int(match.group(1)) if match else None


class OMDbClient:
    """Thin wrapper around the OMDb HTTP API."""

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient):
        self._settings = settings
        self._client = http_client

    def require_api_key(self) -> str:
        api_key = self._settings.omdb_api_key
        if not api_key:
            raise ConfigError(
                "OMDB_API_KEY",
                "Get a free API key from http://www.omdbapi.com/apikey.aspx "
                "and add it to your .env file",
            )
        return api_key

    async def fetch_by_title(
        self,
        title: str,
        *,
        kind: str | None = None,
        year: str | None = None,
    ) -> dict[str, Any] | None:
        """Look up a single title, optionally narrowed by kind and year."""

        params: dict[str, str] = {"t": title, "plot": "short"}
        if kind in KIND_FILTERS:
            params["type"] = kind
        if year:
            params["y"] = year
        return await self._get(params, description=f"title {title!r}")

    async def fetch_by_id(self, imdb_id: str) -> dict[str, Any] | None:
        """Look up a title by its IMDb identifier."""

        return await self._get(
            {"i": imdb_id.strip(), "plot": "short"}, description=f"id {imdb_id}"
        )

    async def search(
        self, query: str, *, kind: str | None = None
    ) -> list[SearchCandidate]:
        """Run a fuzzy search and return the candidates OMDb reports."""

        params: dict[str, str] = {"s": query}
        if kind in KIND_FILTERS:
            params["type"] = kind
        payload = await self._get(params, description=f"search {query!r}")
        if not is_found(payload):
            return []
        results = payload.get("Search") or []
        return [
            SearchCandidate.from_payload(item)
            for item in results
            if isinstance(item, dict) and item.get("Title")
        ]

    async def fetch_season(
        self,
        season_number: str,
        *,
        imdb_id: str | None = None,
        title: str | None = None,
    ) -> dict[str, Any] | None:
        """Fetch the episode list of one season of a series."""

        params: dict[str, str] = {"Season": season_number}
        if imdb_id:
            params["i"] = imdb_id
        elif title:
            params["t"] = title
        else:
            return None
        return await self._get(params, description=f"season {season_number}")

    async def fetch_episode_runtime(self, imdb_id: str, *, delay: float = 0.0) -> int:
        """Return an episode's runtime in minutes, or 0 when unavailable."""

        if delay > 0:
            await asyncio.sleep(delay)
        try:
            payload = await self._request({"i": imdb_id})
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Failed to fetch episode %s: %s", imdb_id, exc)
            return 0
        if not is_found(payload):
            return 0
        runtime = payload.get("Runtime")
        if not runtime or runtime == "N/A":
            return 0
        minutes = first_integer(str(runtime))
        return int(minutes) if minutes else 0

    async def _get(
        self, params: dict[str, str], *, description: str
    ) -> dict[str, Any] | None:
        try:
            return await self._request(params)
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("OMDb lookup failed for %s: %s", description, exc)
            return None

    async def _request(self, params: dict[str, str]) -> dict[str, Any]:
        query = {"apikey": self.require_api_key(), **params}
        response = await self._client.get("/", params=query)
        payload = response.json()
        if not isinstance(payload, dict):
            raise ValueError("Unexpected OMDb payload")
        return payload
