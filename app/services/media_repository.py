"""Persistence operations on a user's media collection."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..db_models import MUTABLE_FIELDS, MediaEntry
from ..errors import PersistenceError

logger = logging.getLogger(__name__)


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class MediaRepository:
    """Create, update, delete and look up entries scoped to one user."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def find_by_title(self, user_id: str, title: str) -> MediaEntry | None:
        """Return the user's entry matching ``title``.

        A case-insensitive exact match is preferred; otherwise the first entry
        whose title contains ``title`` is returned.
        """

        normalized = title.strip()
        if not normalized:
            return None

        base = (
            select(MediaEntry)
            .where(MediaEntry.user_id == user_id)
            .order_by(MediaEntry.created_at, MediaEntry.id)
            .limit(1)
        )
        async with self._session_factory() as session:
            exact = await session.scalar(
                base.where(func.lower(MediaEntry.title) == normalized.lower())
            )
            if exact is not None:
                return exact
            return await session.scalar(
                base.where(
                    MediaEntry.title.ilike(f"%{_escape_like(normalized)}%", escape="\\")
                )
            )

    async def get(self, user_id: str, entry_id: str) -> MediaEntry | None:
        async with self._session_factory() as session:
            return await self._owned(session, user_id, entry_id)

    async def create(self, user_id: str, data: Mapping[str, Any]) -> MediaEntry:
        title = data.get("title")
        if not isinstance(title, str) or not title.strip():
            raise PersistenceError("Title is required for create action")

        values = self._column_values(data)
        values["title"] = title.strip()
        entry = MediaEntry(user_id=user_id, **values)
        async with self._session_factory() as session:
            session.add(entry)
            await self._commit(session)
        logger.info("Created media entry %s for user %s", entry.id, user_id)
        return entry

    async def update(
        self, user_id: str, entry_id: str, data: Mapping[str, Any]
    ) -> MediaEntry:
        values = self._column_values(data)
        async with self._session_factory() as session:
            entry = await self._owned(session, user_id, entry_id)
            if entry is None:
                raise PersistenceError("Entry not found")
            for key, value in values.items():
                setattr(entry, key, value)
            await self._commit(session)
        logger.info("Updated media entry %s for user %s", entry_id, user_id)
        return entry

    async def delete(self, user_id: str, entry_id: str) -> None:
        async with self._session_factory() as session:
            entry = await self._owned(session, user_id, entry_id)
            if entry is None:
                raise PersistenceError("Entry not found")
            await session.delete(entry)
            await self._commit(session)
        logger.info("Deleted media entry %s for user %s", entry_id, user_id)

    @staticmethod
    async def _owned(
        session: AsyncSession, user_id: str, entry_id: str
    ) -> MediaEntry | None:
        return await session.scalar(
            select(MediaEntry).where(
                MediaEntry.id == entry_id, MediaEntry.user_id == user_id
            )
        )

    @staticmethod
    def _column_values(data: Mapping[str, Any]) -> dict[str, Any]:
        unknown = sorted(key for key in data if key not in MUTABLE_FIELDS)
        if unknown:
            raise PersistenceError(
                f"Unknown media entry field(s): {', '.join(unknown)}"
            )
        return dict(data)

    @staticmethod
    async def _commit(session: AsyncSession) -> None:
        try:
            await session.commit()
        except SQLAlchemyError as exc:
            await session.rollback()
            logger.warning("Media entry write failed: %s", exc)
            raise PersistenceError(str(getattr(exc, "orig", None) or exc)) from exc
