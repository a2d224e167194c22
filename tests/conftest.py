"""Pytest configuration and test helpers."""

from __future__ import annotations

import sys
from pathlib import Path
from types import SimpleNamespace
from typing import Any, Mapping

import pytest


# Ensure the application package is importable when running tests without an
# editable install. This mirrors the expected runtime layout where ``app`` sits
# at the project root.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.errors import PersistenceError  # noqa: E402
from app.services.media_repository import MediaRepository  # noqa: E402


class InMemoryRepository(MediaRepository):
    """MediaRepository stand-in that keeps entries in a dictionary."""

    def __init__(self) -> None:
        # Deliberately skip super().__init__ to avoid touching a database.
        self.entries: dict[str, SimpleNamespace] = {}
        self.explode_on: set[str] = set()
        self._counter = 0

    def add(self, user_id: str, title: str, **fields: Any) -> SimpleNamespace:
        self._counter += 1
        entry = SimpleNamespace(
            id=f"entry-{self._counter}",
            user_id=user_id,
            title=title,
            status=fields.pop("status", None),
            **fields,
        )
        self.entries[entry.id] = entry
        return entry

    async def find_by_title(self, user_id: str, title: str):  # type: ignore[override]
        owned = [entry for entry in self.entries.values() if entry.user_id == user_id]
        needle = title.strip().lower()
        for entry in owned:
            if entry.title.lower() == needle:
                return entry
        for entry in owned:
            if needle in entry.title.lower():
                return entry
        return None

    async def create(self, user_id: str, data: Mapping[str, Any]):  # type: ignore[override]
        title = str(data.get("title") or "").strip()
        if title in self.explode_on:
            raise RuntimeError(f"store exploded on {title}")
        if not title:
            raise PersistenceError("Title is required for create action")
        fields = {key: value for key, value in data.items() if key != "title"}
        return self.add(user_id, title, **fields)

    async def update(self, user_id: str, entry_id: str, data: Mapping[str, Any]):  # type: ignore[override]
        entry = self.entries.get(entry_id)
        if entry is None or entry.user_id != user_id:
            raise PersistenceError("Entry not found")
        for key, value in data.items():
            setattr(entry, key, value)
        return entry

    async def delete(self, user_id: str, entry_id: str) -> None:  # type: ignore[override]
        entry = self.entries.get(entry_id)
        if entry is None or entry.user_id != user_id:
            raise PersistenceError("Entry not found")
        del self.entries[entry_id]


@pytest.fixture
def anyio_backend() -> str:
    """Force AnyIO tests to run on asyncio without requiring trio."""

    return "asyncio"


@pytest.fixture
def memory_repository() -> InMemoryRepository:
    return InMemoryRepository()
