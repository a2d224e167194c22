"""Pre-flight checks and metadata enrichment for proposed actions."""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Any, Mapping

from ..models import (
    ActionValidation,
    MatchedEntrySummary,
    MediaAction,
    MetadataQuery,
    NormalizedMetadata,
    ValidatedAction,
)
from .media_repository import MediaRepository
from .metadata import MetadataResolver

logger = logging.getLogger(__name__)

ACTION_TYPES = ("create", "update", "delete")
STATUS_OPTIONS = ("Watching", "Finished", "On Hold", "Dropped", "Plan to Watch", "Planned")
MEDIUM_OPTIONS = ("Movie", "TV Show", "Book")
PLATFORM_OPTIONS = (
    "Netflix",
    "Prime Video",
    "Disney+",
    "Max",
    "Apple TV+",
    "Hulu",
    "YouTube",
    "Theater",
    "Kindle",
    "Physical",
    "Other",
)
MEDIUM_KINDS = {"Movie": "movie", "TV Show": "series"}
DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
NUMERIC_FIELDS = {
    "episodes": "Episodes",
    "episodes_watched": "Episodes watched",
    "price": "Price",
}


def merge_metadata(
    data: Mapping[str, Any] | None, defaults: Mapping[str, Any]
) -> dict[str, Any]:
    """Fill keys absent from ``data`` with ``defaults``; supplied keys win, even null ones."""

    merged = dict(data or {})
    for key, value in defaults.items():
        if key not in merged:
            merged[key] = value
    return merged


async def enrich_create_action(
    action: MediaAction, resolver: MetadataResolver
) -> MediaAction:
    """Return ``action`` with resolved metadata merged beneath its data."""

    if action.type != "create" or action.title is None:
        return action

    medium = (action.data or {}).get("medium")
    query = MetadataQuery(
        title=action.title,
        medium_hint=medium,
        kind_hint=MEDIUM_KINDS.get(medium) if isinstance(medium, str) else None,
    )
    try:
        metadata: NormalizedMetadata = await resolver.resolve(query)
    except Exception as exc:
        logger.info("Metadata enrichment skipped for %r: %s", action.title, exc)
        return action

    return action.model_copy(
        update={"data": merge_metadata(action.data, metadata.as_entry_defaults())}
    )


async def validate_action(
    action: MediaAction, repository: MediaRepository, user_id: str
) -> ValidatedAction:
    """Check an action against the collection and the field rules."""

    errors: list[str] = []
    warnings: list[str] = []
    matched: MatchedEntrySummary | None = None

    if action.type not in ACTION_TYPES:
        errors.append(f"Invalid action type: {action.type}")

    if not action.data:
        errors.append("Action data is missing")
        return _validated(action, matched, errors, warnings)

    title = action.title
    if title is None:
        errors.append("Title is required")
        return _validated(action, matched, errors, warnings)

    data = dict(action.data)
    existing = await repository.find_by_title(user_id, title)
    if action.type in ("update", "delete"):
        if existing is None:
            errors.append(f"Could not find entry with title: {title}")
        else:
            matched = MatchedEntrySummary(
                id=existing.id, title=existing.title, status=existing.status
            )
            action = action.model_copy(update={"id": existing.id})
    elif action.type == "create" and existing is not None:
        warnings.append(f"An entry with similar title already exists: {existing.title}")

    status = data.get("status")
    if status and status not in STATUS_OPTIONS:
        errors.append(
            f"Invalid status: {status}. Must be one of: {', '.join(STATUS_OPTIONS)}"
        )

    medium = data.get("medium")
    if medium and medium not in MEDIUM_OPTIONS:
        errors.append(
            f"Invalid medium: {medium}. Must be one of: {', '.join(MEDIUM_OPTIONS)}"
        )

    platform = data.get("platform")
    if platform and platform not in PLATFORM_OPTIONS:
        warnings.append(
            f"Platform '{platform}' is not in the standard list. It will be saved as 'Other'."
        )
        data["platform"] = "Other"

    if "my_rating" in data:
        rating = data["my_rating"]
        if not _is_number(rating) or not 0 <= rating <= 10:
            errors.append(f"Rating must be a number between 0 and 10, got: {rating}")

    for field in ("start_date", "finish_date"):
        value = data.get(field)
        if value and not (isinstance(value, str) and DATE_RE.match(value)):
            errors.append(f"Invalid {field} format: {value}. Use YYYY-MM-DD")

    for field, label in NUMERIC_FIELDS.items():
        if field in data and not _is_number(data[field]):
            errors.append(f"{label} must be a number, got: {data[field]}")

    action = action.model_copy(update={"data": data})
    return _validated(action, matched, errors, warnings)


async def validate_actions(
    actions: list[MediaAction],
    repository: MediaRepository,
    user_id: str,
    *,
    resolver: MetadataResolver | None = None,
) -> list[ValidatedAction]:
    """Enrich create actions, then validate every action in order."""

    if resolver is not None:
        actions = list(
            await asyncio.gather(
                *(enrich_create_action(action, resolver) for action in actions)
            )
        )
    return [await validate_action(action, repository, user_id) for action in actions]


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _validated(
    action: MediaAction,
    matched: MatchedEntrySummary | None,
    errors: list[str],
    warnings: list[str],
) -> ValidatedAction:
    return ValidatedAction(
        action=action,
        matched_entry=matched,
        validation=ActionValidation(
            valid=not errors, errors=errors, warnings=warnings
        ),
    )
