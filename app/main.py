"""Entry point for the FastAPI-powered logbook service."""

from __future__ import annotations

import json
import logging
from contextlib import AsyncExitStack, asynccontextmanager
from typing import Any

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from .config import settings
from .database import Database
from .errors import InvalidRequestError, LogbookError, UnauthorizedError
from .models import MediaAction, MetadataQuery, ValidationSummary
from .services.action_executor import ActionExecutor
from .services.action_validation import validate_actions
from .services.google_books import GoogleBooksClient
from .services.media_repository import MediaRepository
from .services.metadata import MetadataResolver
from .services.omdb import OMDbClient

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

USER_HEADER = "x-user-id"

app: FastAPI


@asynccontextmanager
async def lifespan(fastapi_app: FastAPI):
    exit_stack = AsyncExitStack()
    omdb_http_client = await exit_stack.enter_async_context(
        httpx.AsyncClient(
            base_url=str(settings.omdb_api_url),
            timeout=httpx.Timeout(15.0, connect=5.0),
        )
    )
    books_http_client = await exit_stack.enter_async_context(
        httpx.AsyncClient(
            base_url=str(settings.google_books_api_url),
            timeout=httpx.Timeout(15.0, connect=5.0),
        )
    )
    database = Database(settings.database_url)
    await database.create_all()

    repository = MediaRepository(database.session_factory)
    resolver = MetadataResolver(
        OMDbClient(settings, omdb_http_client),
        GoogleBooksClient(settings, books_http_client),
        episode_stagger=settings.episode_request_stagger,
    )

    fastapi_app.state.database = database
    fastapi_app.state.repository = repository
    fastapi_app.state.resolver = resolver
    fastapi_app.state.executor = ActionExecutor(repository)

    try:
        yield
    finally:  # pragma: no cover
        await database.dispose()
        await exit_stack.aclose()


def create_app() -> FastAPI:
    fastapi_app = FastAPI(
        title=settings.app_name,
        description="Metadata lookup and collection actions for a personal media logbook",
        version="1.0.0",
        lifespan=lifespan,
    )

    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    register_routes(fastapi_app)
    return fastapi_app


def get_resolver(app: FastAPI) -> MetadataResolver:
    resolver = getattr(app.state, "resolver", None)
    if not isinstance(resolver, MetadataResolver):
        raise RuntimeError("Metadata resolver not initialised")
    return resolver


def get_executor(app: FastAPI) -> ActionExecutor:
    executor = getattr(app.state, "executor", None)
    if not isinstance(executor, ActionExecutor):
        raise RuntimeError("Action executor not initialised")
    return executor


def get_repository(app: FastAPI) -> MediaRepository:
    repository = getattr(app.state, "repository", None)
    if not isinstance(repository, MediaRepository):
        raise RuntimeError("Media repository not initialised")
    return repository


def acting_user_id(request: Request) -> str:
    """Return the user id forwarded by the authentication layer."""

    user_id = (request.headers.get(USER_HEADER) or "").strip()
    if not user_id:
        raise UnauthorizedError("Unauthorized")
    return user_id


def register_routes(fastapi_app: FastAPI) -> None:
    @fastapi_app.exception_handler(LogbookError)
    async def logbook_error_handler(_: Request, exc: LogbookError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("Request failed: %s", exc.message)
        return JSONResponse(exc.to_payload(), status_code=exc.status_code)

    async def _read_json(request: Request) -> dict[str, Any]:
        try:
            payload = await request.json()
        except json.JSONDecodeError:
            payload = None
        if not isinstance(payload, dict):
            raise InvalidRequestError("Missing or invalid actions field")
        return payload

    @fastapi_app.get("/healthz")
    async def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    @fastapi_app.get("/api/metadata")
    async def metadata(request: Request) -> JSONResponse:
        resolver = get_resolver(fastapi_app)
        try:
            query = MetadataQuery.model_validate(dict(request.query_params))
        except ValidationError as exc:
            raise InvalidRequestError(str(exc.errors()[0].get("msg"))) from exc
        try:
            result = await resolver.resolve(query)
        except LogbookError:
            raise
        except Exception:
            logger.exception("Metadata fetch error")
            return JSONResponse({"error": "Failed to fetch metadata"}, status_code=500)
        return JSONResponse(result.to_response())

    @fastapi_app.post("/api/execute-actions")
    async def execute_actions(request: Request) -> JSONResponse:
        user_id = acting_user_id(request)
        executor = get_executor(fastapi_app)
        try:
            payload = await _read_json(request)
            response = await executor.execute(payload.get("actions"), user_id)
        except InvalidRequestError as exc:
            return JSONResponse(
                {"success": False, "error": exc.message}, status_code=400
            )
        except Exception as exc:
            logger.exception("Execute actions error")
            return JSONResponse(
                {"success": False, "error": str(exc) or "Unknown error occurred"},
                status_code=500,
            )
        return JSONResponse(response.to_payload())

    @fastapi_app.post("/api/validate-actions")
    async def validate_actions_endpoint(request: Request) -> JSONResponse:
        user_id = acting_user_id(request)
        repository = get_repository(fastapi_app)
        payload = await _read_json(request)
        raw_actions = payload.get("actions")
        if not isinstance(raw_actions, list):
            raise InvalidRequestError("Missing or invalid actions field")
        try:
            actions = [MediaAction.model_validate(item) for item in raw_actions]
        except ValidationError as exc:
            raise InvalidRequestError("Invalid action payload") from exc

        enrich = payload.get("enrich", True)
        if not isinstance(enrich, bool):
            raise InvalidRequestError("enrich must be a boolean")
        resolver = get_resolver(fastapi_app) if enrich else None
        validated = await validate_actions(
            actions, repository, user_id, resolver=resolver
        )
        summary = ValidationSummary.from_validated(validated)
        return JSONResponse(
            {
                "actions": [item.to_payload() for item in validated],
                "summary": summary.model_dump(by_alias=True),
            }
        )


app = create_app()


if __name__ == "__main__":  # pragma: no cover
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.server_host,
        port=settings.server_port,
        reload=settings.environment == "development",
    )
