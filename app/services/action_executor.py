"""Apply batches of create/update/delete actions to a user's collection."""

from __future__ import annotations

import logging
from typing import Any, Sequence

from pydantic import ValidationError

from ..errors import InvalidRequestError, LogbookError
from ..models import ActionResult, ExecuteActionsResponse, MediaAction
from .media_repository import MediaRepository

logger = logging.getLogger(__name__)

TITLE_REQUIRED = "Title is required for create action"
UNRESOLVED_TARGET = "Entry ID or title match is required for {kind} action"
UPDATE_DATA_REQUIRED = "Update data is required"
UNKNOWN_ERROR = "Unknown error occurred"


class ActionExecutor:
    """Run each action in order, isolating failures to the action that caused them."""

    def __init__(self, repository: MediaRepository):
        self._repository = repository

    async def execute(
        self, actions: Sequence[MediaAction | dict[str, Any]] | Any, user_id: str
    ) -> ExecuteActionsResponse:
        if not isinstance(actions, (list, tuple)):
            raise InvalidRequestError("Missing or invalid actions field")
        if not actions:
            raise InvalidRequestError("No actions provided")

        results: list[ActionResult] = []
        for raw_action in actions:
            results.append(await self._process(raw_action, user_id))

        response = ExecuteActionsResponse.from_results(results)
        logger.info(
            "Executed %s action(s) for user %s: %s succeeded, %s failed",
            response.summary.total,
            user_id,
            response.summary.succeeded,
            response.summary.failed,
        )
        return response

    async def _process(self, raw_action: Any, user_id: str) -> ActionResult:
        echo = raw_action.echo() if isinstance(raw_action, MediaAction) else raw_action
        try:
            action = (
                raw_action
                if isinstance(raw_action, MediaAction)
                else MediaAction.model_validate(raw_action)
            )
            if action.type == "create":
                return await self._create(action, echo, user_id)
            if action.type == "update":
                return await self._update(action, echo, user_id)
            if action.type == "delete":
                return await self._delete(action, echo, user_id)
            return ActionResult.failed(echo, f"Unknown action type: {action.type}")
        except LogbookError as exc:
            logger.info("Action failed for user %s: %s", user_id, exc.message)
            return ActionResult.failed(echo, exc.message)
        except ValidationError as exc:
            return ActionResult.failed(echo, _first_error(exc))
        except Exception as exc:
            logger.exception("Unexpected error while executing action")
            return ActionResult.failed(echo, str(exc) or UNKNOWN_ERROR)

    async def _create(
        self, action: MediaAction, echo: dict[str, Any], user_id: str
    ) -> ActionResult:
        if action.title is None:
            return ActionResult.failed(echo, TITLE_REQUIRED)
        entry = await self._repository.create(user_id, action.data or {})
        return ActionResult.succeeded(echo, entry.id)

    async def _update(
        self, action: MediaAction, echo: dict[str, Any], user_id: str
    ) -> ActionResult:
        target_id = await self._resolve_target(action, user_id)
        if target_id is None:
            return ActionResult.failed(echo, UNRESOLVED_TARGET.format(kind="update"))
        if not action.data:
            return ActionResult.failed(echo, UPDATE_DATA_REQUIRED)
        entry = await self._repository.update(user_id, target_id, action.data)
        return ActionResult.succeeded(echo, entry.id)

    async def _delete(
        self, action: MediaAction, echo: dict[str, Any], user_id: str
    ) -> ActionResult:
        target_id = await self._resolve_target(action, user_id)
        if target_id is None:
            return ActionResult.failed(echo, UNRESOLVED_TARGET.format(kind="delete"))
        await self._repository.delete(user_id, target_id)
        return ActionResult.succeeded(echo, target_id)

    async def _resolve_target(self, action: MediaAction, user_id: str) -> str | None:
        if action.id:
            return action.id
        if action.title is None:
            return None
        entry = await self._repository.find_by_title(user_id, action.title)
        return entry.id if entry is not None else None


def _first_error(exc: ValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return UNKNOWN_ERROR
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    message = first.get("msg") or UNKNOWN_ERROR
    return f"{location}: {message}" if location else message
