"""Tests for batch action execution."""

from __future__ import annotations

import pytest

from app.errors import InvalidRequestError
from app.models import MediaAction
from app.services.action_executor import ActionExecutor


@pytest.mark.anyio("asyncio")
async def test_failures_are_isolated_per_action(memory_repository) -> None:
    memory_repository.explode_on.add("Boom")
    executor = ActionExecutor(memory_repository)

    response = await executor.execute(
        [
            {"type": "create", "data": {"title": "Heat", "status": "Finished"}},
            {"type": "create", "data": {"title": "Boom"}},
            {"type": "create", "data": {"title": "Alien"}},
        ],
        "user-1",
    )

    assert response.success is False
    assert [result.success for result in response.results] == [True, False, True]
    assert response.results[1].error == "store exploded on Boom"
    assert response.summary.model_dump() == {"total": 3, "succeeded": 2, "failed": 1}
    assert sorted(entry.title for entry in memory_repository.entries.values()) == [
        "Alien",
        "Heat",
    ]


@pytest.mark.anyio("asyncio")
async def test_create_without_title_fails(memory_repository) -> None:
    executor = ActionExecutor(memory_repository)

    response = await executor.execute(
        [MediaAction(type="create", data={"title": "   ", "status": "Planned"})],
        "user-1",
    )

    assert response.results[0].error == "Title is required for create action"
    assert memory_repository.entries == {}


@pytest.mark.anyio("asyncio")
async def test_update_and_delete_resolve_targets_by_title(memory_repository) -> None:
    heat = memory_repository.add("user-1", "Heat")
    alien = memory_repository.add("user-1", "Alien")
    memory_repository.add("user-2", "Severance")
    executor = ActionExecutor(memory_repository)

    response = await executor.execute(
        [
            {"type": "update", "data": {"title": "heat", "status": "Finished"}},
            {"type": "delete", "data": {"title": "Alien"}},
            {"type": "delete", "data": {"title": "Severance"}},
        ],
        "user-1",
    )

    payload = response.to_payload()
    assert payload["results"][0] == {
        "success": True,
        "action": {"type": "update", "data": {"title": "heat", "status": "Finished"}},
        "entryId": heat.id,
    }
    assert payload["results"][1]["entryId"] == alien.id
    assert payload["results"][2]["error"] == (
        "Entry ID or title match is required for delete action"
    )
    assert heat.status == "Finished"
    assert alien.id not in memory_repository.entries


@pytest.mark.anyio("asyncio")
async def test_update_requires_data_and_known_type(memory_repository) -> None:
    entry = memory_repository.add("user-1", "Heat")
    executor = ActionExecutor(memory_repository)

    response = await executor.execute(
        [
            {"type": "update", "id": entry.id},
            {"type": "update", "data": {"status": "Finished"}},
            {"type": "archive", "id": entry.id},
        ],
        "user-1",
    )

    assert [result.error for result in response.results] == [
        "Update data is required",
        "Entry ID or title match is required for update action",
        "Unknown action type: archive",
    ]


@pytest.mark.anyio("asyncio")
async def test_persistence_messages_are_reported_verbatim(memory_repository) -> None:
    executor = ActionExecutor(memory_repository)

    response = await executor.execute(
        [{"type": "update", "id": 42, "data": {"status": "Finished"}}], "user-1"
    )

    result = response.results[0]
    assert result.error == "Entry not found"
    assert result.action == {"type": "update", "id": 42, "data": {"status": "Finished"}}


@pytest.mark.anyio("asyncio")
async def test_malformed_action_fails_only_itself(memory_repository) -> None:
    executor = ActionExecutor(memory_repository)
    malformed = {"type": "create", "data": "not a mapping"}

    response = await executor.execute(
        [malformed, {"type": "create", "data": {"title": "Heat"}}], "user-1"
    )

    assert response.results[0].action == malformed
    assert response.results[0].error.startswith("data: ")
    assert response.results[1].success is True


@pytest.mark.anyio("asyncio")
async def test_blank_exception_message_is_replaced(memory_repository) -> None:
    class SilentFailure(type(memory_repository)):
        async def create(self, user_id, data):
            raise RuntimeError()

    executor = ActionExecutor(SilentFailure())

    response = await executor.execute(
        [{"type": "create", "data": {"title": "Heat"}}], "user-1"
    )

    assert response.results[0].error == "Unknown error occurred"


@pytest.mark.anyio("asyncio")
@pytest.mark.parametrize(
    ("actions", "message"),
    [
        (None, "Missing or invalid actions field"),
        ({"type": "create"}, "Missing or invalid actions field"),
        ([], "No actions provided"),
    ],
)
async def test_invalid_batches_are_rejected(memory_repository, actions, message) -> None:
    executor = ActionExecutor(memory_repository)

    with pytest.raises(InvalidRequestError) as exc_info:
        await executor.execute(actions, "user-1")

    assert exc_info.value.message == message


@pytest.mark.anyio("asyncio")
async def test_results_echo_the_action_as_sent(memory_repository) -> None:
    executor = ActionExecutor(memory_repository)
    sent = {"type": "create", "data": {"title": "Heat"}, "reason": "ai"}

    response = await executor.execute([sent], "user-1")

    assert response.results[0].success is True
    assert response.results[0].action == sent
    assert response.to_payload()["results"][0]["action"]["reason"] == "ai"
