"""Tests for the OMDb client and the title match scorer."""

from __future__ import annotations

import httpx
import pytest

from app.config import Settings
from app.errors import ConfigError
from app.services.omdb import (
    OMDbClient,
    SearchCandidate,
    find_best_match,
    map_omdb_type,
    score_candidate,
)


def _candidate(title: str, year: str = "2016", kind: str = "movie") -> SearchCandidate:
    return SearchCandidate(
        title=title, year=year, external_id=None, kind=kind, has_image=True
    )


def test_sequel_query_prefers_multiverse_title() -> None:
    """Sequel number and keyword bonuses outweigh the shorter original title."""

    candidates = [
        _candidate("Doctor Strange", "2016"),
        _candidate("Doctor Strange in the Multiverse of Madness", "2022"),
    ]

    best = find_best_match("Doctor Strange 2", candidates, "movie", current_year=2026)

    assert best is not None
    assert best.title == "Doctor Strange in the Multiverse of Madness"
    assert score_candidate("Doctor Strange 2", candidates[0], "movie", current_year=2026) == 210
    assert score_candidate("Doctor Strange 2", candidates[1], "movie", current_year=2026) == 560


def test_exact_title_outweighs_kind_and_recency() -> None:
    candidates = [
        _candidate("Heat Wave", "2022", kind="series"),
        _candidate("Heat", "1995", kind="movie"),
    ]

    best = find_best_match("heat", candidates, "series", current_year=2026)

    assert best is not None
    assert best.title == "Heat"


def test_ties_keep_the_first_candidate() -> None:
    first = _candidate("Alien", "1979")
    second = _candidate("Alien", "1979")

    assert find_best_match("alien", [first, second]) is first


def test_find_best_match_empty_list() -> None:
    assert find_best_match("anything", []) is None


def test_number_bonus_requires_same_number() -> None:
    query = "Toy Story 3"
    same = score_candidate(query, _candidate("Toy Story 3", "2010"), current_year=2026)
    other = score_candidate(query, _candidate("Toy Story 4", "2019"), current_year=2026)

    # Both titles carry a sequel indicator; only the first shares the number.
    assert same == 1510
    assert other == 260


def test_map_omdb_type() -> None:
    assert map_omdb_type("movie") == "Movie"
    assert map_omdb_type("Series") == "TV Show"
    assert map_omdb_type("episode") == "TV Show"
    assert map_omdb_type("game") is None
    assert map_omdb_type(None) is None


def test_search_candidate_marks_missing_posters() -> None:
    candidate = SearchCandidate.from_payload(
        {"Title": "Pong", "Year": "1972", "imdbID": "tt1", "Type": "game", "Poster": "N/A"}
    )

    assert candidate.kind == "other"
    assert candidate.has_image is False


def _client(handler, **overrides) -> tuple[OMDbClient, httpx.AsyncClient]:
    settings = Settings(_env_file=None, OMDB_API_KEY="omdb-key", **overrides)
    http_client = httpx.AsyncClient(
        transport=httpx.MockTransport(handler), base_url="https://omdb.example.com"
    )
    return OMDbClient(settings, http_client), http_client


@pytest.mark.anyio("asyncio")
async def test_search_passes_kind_filter_and_parses_results() -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(
            200,
            json={
                "Response": "True",
                "Search": [
                    {"Title": "Arrival", "Year": "2016", "imdbID": "tt2543164", "Type": "movie", "Poster": "https://img/a.jpg"},
                    {"Title": "", "Year": "2020", "imdbID": "tt0", "Type": "movie", "Poster": "N/A"},
                ],
            },
        )

    client, http_client = _client(handler)
    async with http_client:
        candidates = await client.search("arrival", kind="movie")

    assert [candidate.external_id for candidate in candidates] == ["tt2543164"]
    params = requests[0].url.params
    assert params["s"] == "arrival"
    assert params["type"] == "movie"
    assert params["apikey"] == "omdb-key"


@pytest.mark.anyio("asyncio")
async def test_search_ignores_unsupported_kind_filter() -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"Response": "False", "Error": "Movie not found!"})

    client, http_client = _client(handler)
    async with http_client:
        candidates = await client.search("arrival", kind="episode")

    assert candidates == []
    assert "type" not in requests[0].url.params


@pytest.mark.anyio("asyncio")
async def test_fetch_by_title_returns_none_on_transport_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("boom", request=request)

    client, http_client = _client(handler)
    async with http_client:
        payload = await client.fetch_by_title("Heat", kind="movie", year="1995")

    assert payload is None


@pytest.mark.anyio("asyncio")
async def test_episode_runtime_parses_minutes_and_swallows_failures() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        episode_id = request.url.params["i"]
        if episode_id == "tt-ok":
            return httpx.Response(200, json={"Response": "True", "Runtime": "52 min"})
        if episode_id == "tt-na":
            return httpx.Response(200, json={"Response": "True", "Runtime": "N/A"})
        return httpx.Response(502, text="<html>bad gateway</html>")

    client, http_client = _client(handler)
    async with http_client:
        assert await client.fetch_episode_runtime("tt-ok") == 52
        assert await client.fetch_episode_runtime("tt-na") == 0
        assert await client.fetch_episode_runtime("tt-broken") == 0


def test_require_api_key_raises_config_error() -> None:
    settings = Settings(_env_file=None, OMDB_API_KEY="")
    client = OMDbClient(settings, httpx.AsyncClient())

    with pytest.raises(ConfigError, match="OMDB_API_KEY not configured"):
        client.require_api_key()
